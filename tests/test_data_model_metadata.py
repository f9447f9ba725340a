from __future__ import annotations

from sqlalchemy import CheckConstraint, UniqueConstraint

from quizhall.db.models import Account, Attempt, Question, Quiz  # noqa: F401
from quizhall.db.models.base import Base


def _check_names(table_name: str) -> set[str]:
    table = Base.metadata.tables[table_name]
    return {constraint.name for constraint in table.constraints if isinstance(constraint, CheckConstraint)}


def test_all_tables_registered() -> None:
    assert {"accounts", "quizzes", "questions", "attempts"} == set(Base.metadata.tables)


def test_critical_constraints_present() -> None:
    accounts = Base.metadata.tables["accounts"]
    unique_names = {
        constraint.name for constraint in accounts.constraints if isinstance(constraint, UniqueConstraint)
    }
    assert "uq_accounts_username_role" in unique_names
    assert {"ck_accounts_role", "ck_accounts_cumulative_score_non_negative"} <= _check_names("accounts")
    assert "idx_accounts_leaderboard" in {index.name for index in accounts.indexes}

    assert "ck_quizzes_time_limit_non_negative" in _check_names("quizzes")
    assert {"ck_questions_correct_option_range", "ck_questions_options_contiguous"} <= _check_names("questions")
    assert "ck_attempts_score_non_negative" in _check_names("attempts")


def test_attempt_key_is_student_and_quiz() -> None:
    attempts = Base.metadata.tables["attempts"]
    assert [column.name for column in attempts.primary_key.columns] == ["student_id", "quiz_id"]


def test_dependent_rows_cascade_on_delete() -> None:
    for table_name, column_name in (
        ("questions", "quiz_id"),
        ("attempts", "student_id"),
        ("attempts", "quiz_id"),
    ):
        (foreign_key,) = Base.metadata.tables[table_name].columns[column_name].foreign_keys
        assert foreign_key.ondelete == "CASCADE"


def test_question_options_skip_unused_slots() -> None:
    question = Question(
        quiz_id=1,
        text="Capital of France?",
        option_1="Paris",
        option_2="Rome",
        option_3=None,
        option_4=None,
        correct_option=1,
    )
    assert question.options == ("Paris", "Rome")
