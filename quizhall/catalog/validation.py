from __future__ import annotations

from collections.abc import Sequence

from quizhall.catalog.errors import QuestionValidationError, QuizValidationError
from quizhall.catalog.types import QuestionDraft

MIN_OPTIONS = 2
MAX_OPTIONS = 4
TITLE_MAX_LENGTH = 100


def validate_question(draft: QuestionDraft) -> None:
    if not draft.text or not draft.text.strip():
        raise QuestionValidationError("question text must not be empty")
    option_count = len(draft.options)
    if option_count < MIN_OPTIONS or option_count > MAX_OPTIONS:
        raise QuestionValidationError(
            f"a question needs {MIN_OPTIONS} to {MAX_OPTIONS} options, got {option_count}"
        )
    for position, option in enumerate(draft.options, start=1):
        if not option or not option.strip():
            raise QuestionValidationError(f"option {position} must not be empty")
    if isinstance(draft.correct_option, bool) or not 1 <= draft.correct_option <= option_count:
        raise QuestionValidationError(
            f"correct option must be between 1 and {option_count}, got {draft.correct_option}"
        )


def validate_quiz(
    *,
    title: str,
    time_limit: int | None,
    questions: Sequence[QuestionDraft],
) -> None:
    if not title or not title.strip():
        raise QuizValidationError("quiz title must not be empty")
    if len(title) > TITLE_MAX_LENGTH:
        raise QuizValidationError(f"quiz title exceeds {TITLE_MAX_LENGTH} characters")
    if time_limit is not None and time_limit < 0:
        raise QuizValidationError("time limit must not be negative")
    for question in questions:
        validate_question(question)
