from __future__ import annotations

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, SmallInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from quizhall.db.models.base import Base


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        CheckConstraint("correct_option >= 1 AND correct_option <= 4", name="correct_option_range"),
        CheckConstraint("option_4 IS NULL OR option_3 IS NOT NULL", name="options_contiguous"),
        Index("idx_questions_quiz", "quiz_id", "id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    quiz_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("quizzes.id", ondelete="CASCADE"),
        nullable=False,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    option_1: Mapped[str] = mapped_column(Text, nullable=False)
    option_2: Mapped[str] = mapped_column(Text, nullable=False)
    option_3: Mapped[str | None] = mapped_column(Text, nullable=True)
    option_4: Mapped[str | None] = mapped_column(Text, nullable=True)
    correct_option: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    @property
    def options(self) -> tuple[str, ...]:
        values = (self.option_1, self.option_2, self.option_3, self.option_4)
        return tuple(value for value in values if value is not None)
