from __future__ import annotations

from collections.abc import Sequence

from quizhall.catalog.types import QuestionSnapshot
from quizhall.ledger.errors import AnswerCountMismatchError


def score_answers(
    questions: Sequence[QuestionSnapshot],
    choices: Sequence[int | None],
) -> int:
    """Count the questions whose 1-based choice equals the correct option.

    A skipped or out-of-range choice simply counts as wrong.
    """
    if len(questions) != len(choices):
        raise AnswerCountMismatchError(
            f"expected {len(questions)} answers, got {len(choices)}"
        )
    return sum(
        1
        for question, choice in zip(questions, choices)
        if choice is not None and question.is_correct(choice)
    )
