from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizhall.accounts.roles import ROLE_STUDENT
from quizhall.catalog.errors import QuizNotFoundError
from quizhall.db.models.attempts import Attempt
from quizhall.db.repo.accounts_repo import AccountsRepo
from quizhall.db.repo.attempts_repo import AttemptsRepo
from quizhall.db.repo.quizzes_repo import QuizzesRepo
from quizhall.ledger.errors import AttemptValidationError, StudentNotFoundError
from quizhall.ledger.types import AttemptSnapshot, LeaderboardEntry, RankSnapshot

logger = structlog.get_logger(__name__)


def _attempt_snapshot(attempt: Attempt, *, cumulative_score: int | None = None) -> AttemptSnapshot:
    return AttemptSnapshot(
        student_id=int(attempt.student_id),
        quiz_id=int(attempt.quiz_id),
        score=int(attempt.score),
        completed_at=attempt.completed_at,
        cumulative_score=cumulative_score,
    )


async def record_attempt(
    session: AsyncSession,
    *,
    student_id: int,
    quiz_id: int,
    score: int,
    now_utc: datetime | None = None,
) -> AttemptSnapshot:
    """Store the student's score for a quiz and add it to the cumulative score.

    The attempt row is last-write-wins per (student, quiz), while the
    cumulative score grows by every submitted score, re-attempts included.
    The student row stays locked from the check until the increment, and both
    writes share one savepoint.
    """
    if isinstance(score, bool) or score < 0:
        raise AttemptValidationError(f"score must be a non-negative integer, got {score!r}")
    completed_at = now_utc or datetime.now(timezone.utc)

    async with session.begin_nested():
        student = await AccountsRepo.get_by_id_for_update(session, student_id)
        if student is None or student.role != ROLE_STUDENT:
            raise StudentNotFoundError(student_id)
        if not await QuizzesRepo.exists(session, quiz_id):
            raise QuizNotFoundError(quiz_id)

        attempt = await AttemptsRepo.upsert(
            session,
            student_id=student_id,
            quiz_id=quiz_id,
            score=score,
            completed_at=completed_at,
        )
        cumulative_score = await AccountsRepo.increment_cumulative_score(
            session,
            account_id=student_id,
            delta=score,
        )

    logger.info(
        "attempt_recorded",
        student_id=student_id,
        quiz_id=quiz_id,
        score=score,
        cumulative_score=cumulative_score,
    )
    return _attempt_snapshot(attempt, cumulative_score=cumulative_score)


async def list_attempts(session: AsyncSession, student_id: int) -> tuple[AttemptSnapshot, ...]:
    attempts = await AttemptsRepo.list_for_student(session, student_id)
    return tuple(_attempt_snapshot(attempt) for attempt in attempts)


async def leaderboard(session: AsyncSession) -> tuple[LeaderboardEntry, ...]:
    rows = await AccountsRepo.list_students_ranked(session)
    return tuple(
        LeaderboardEntry(
            rank=rank,
            account_id=account_id,
            username=username,
            cumulative_score=cumulative_score,
        )
        for rank, account_id, username, cumulative_score in rows
    )


async def rank_of(session: AsyncSession, student_id: int) -> RankSnapshot | None:
    row = await AccountsRepo.get_student_rank(session, account_id=student_id)
    if row is None:
        return None
    rank, students_total, cumulative_score = row
    return RankSnapshot(rank=rank, students_total=students_total, cumulative_score=cumulative_score)
