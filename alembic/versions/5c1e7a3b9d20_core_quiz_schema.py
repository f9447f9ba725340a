"""core_quiz_schema

Revision ID: 5c1e7a3b9d20
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "5c1e7a3b9d20"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("credential", sa.String(100), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("cumulative_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("role IN ('administrator','student')", name="ck_accounts_role"),
        sa.CheckConstraint("cumulative_score >= 0", name="ck_accounts_cumulative_score_non_negative"),
        sa.UniqueConstraint("username", "role", name="uq_accounts_username_role"),
    )
    op.create_index("idx_accounts_leaderboard", "accounts", ["role", "cumulative_score", "username"])

    op.create_table(
        "quizzes",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("time_limit", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("time_limit IS NULL OR time_limit >= 0", name="ck_quizzes_time_limit_non_negative"),
    )

    op.create_table(
        "questions",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("quiz_id", sa.BigInteger(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("option_1", sa.Text(), nullable=False),
        sa.Column("option_2", sa.Text(), nullable=False),
        sa.Column("option_3", sa.Text(), nullable=True),
        sa.Column("option_4", sa.Text(), nullable=True),
        sa.Column("correct_option", sa.SmallInteger(), nullable=False),
        sa.CheckConstraint(
            "correct_option >= 1 AND correct_option <= 4",
            name="ck_questions_correct_option_range",
        ),
        sa.CheckConstraint("option_4 IS NULL OR option_3 IS NOT NULL", name="ck_questions_options_contiguous"),
        sa.ForeignKeyConstraint(["quiz_id"], ["quizzes.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_questions_quiz", "questions", ["quiz_id", "id"])

    op.create_table(
        "attempts",
        sa.Column("student_id", sa.BigInteger(), nullable=False),
        sa.Column("quiz_id", sa.BigInteger(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("score >= 0", name="ck_attempts_score_non_negative"),
        sa.ForeignKeyConstraint(["student_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["quiz_id"], ["quizzes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("student_id", "quiz_id"),
    )
    op.create_index("idx_attempts_quiz", "attempts", ["quiz_id"])


def downgrade() -> None:
    op.drop_index("idx_attempts_quiz", table_name="attempts")
    op.drop_table("attempts")
    op.drop_index("idx_questions_quiz", table_name="questions")
    op.drop_table("questions")
    op.drop_table("quizzes")
    op.drop_index("idx_accounts_leaderboard", table_name="accounts")
    op.drop_table("accounts")
