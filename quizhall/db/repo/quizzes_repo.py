from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizhall.db.models.quizzes import Quiz


class QuizzesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, quiz_id: int) -> Quiz | None:
        return await session.get(Quiz, quiz_id)

    @staticmethod
    async def exists(session: AsyncSession, quiz_id: int) -> bool:
        stmt = select(Quiz.id).where(Quiz.id == quiz_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_all(session: AsyncSession) -> list[Quiz]:
        stmt = select(Quiz).order_by(Quiz.id.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        title: str,
        description: str,
        time_limit: int | None,
    ) -> Quiz:
        quiz = Quiz(title=title, description=description, time_limit=time_limit)
        session.add(quiz)
        await session.flush()
        return quiz

    @staticmethod
    async def delete_by_id(session: AsyncSession, quiz_id: int) -> int:
        result = await session.execute(delete(Quiz).where(Quiz.id == quiz_id))
        return result.rowcount or 0
