from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from quizhall.db.models.attempts import Attempt


class AttemptsRepo:
    @staticmethod
    async def upsert(
        session: AsyncSession,
        *,
        student_id: int,
        quiz_id: int,
        score: int,
        completed_at: datetime,
    ) -> Attempt:
        stmt = insert(Attempt).values(
            student_id=student_id,
            quiz_id=quiz_id,
            score=score,
            completed_at=completed_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Attempt.student_id, Attempt.quiz_id],
            set_={
                "score": stmt.excluded.score,
                "completed_at": stmt.excluded.completed_at,
            },
        ).returning(Attempt)
        result = await session.execute(stmt, execution_options={"populate_existing": True})
        return result.scalar_one()

    @staticmethod
    async def list_for_student(session: AsyncSession, student_id: int) -> list[Attempt]:
        stmt = (
            select(Attempt)
            .where(Attempt.student_id == student_id)
            .order_by(Attempt.completed_at.desc(), Attempt.quiz_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
