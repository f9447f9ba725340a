from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizhall.db.models.questions import Question


class QuestionsRepo:
    @staticmethod
    async def list_for_quizzes(
        session: AsyncSession,
        quiz_ids: Sequence[int],
    ) -> dict[int, list[Question]]:
        ids = tuple({int(quiz_id) for quiz_id in quiz_ids})
        if not ids:
            return {}
        stmt = select(Question).where(Question.quiz_id.in_(ids)).order_by(Question.quiz_id, Question.id)
        result = await session.execute(stmt)
        grouped: dict[int, list[Question]] = defaultdict(list)
        for question in result.scalars().all():
            grouped[int(question.quiz_id)].append(question)
        return dict(grouped)

    @staticmethod
    async def list_for_quiz(session: AsyncSession, quiz_id: int) -> list[Question]:
        stmt = select(Question).where(Question.quiz_id == quiz_id).order_by(Question.id.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        quiz_id: int,
        text: str,
        options: Sequence[str],
        correct_option: int,
    ) -> Question:
        padded = list(options) + [None] * (4 - len(options))
        question = Question(
            quiz_id=quiz_id,
            text=text,
            option_1=padded[0],
            option_2=padded[1],
            option_3=padded[2],
            option_4=padded[3],
            correct_option=correct_option,
        )
        session.add(question)
        await session.flush()
        return question

    @staticmethod
    async def delete_by_id(session: AsyncSession, question_id: int) -> int:
        result = await session.execute(delete(Question).where(Question.id == question_id))
        return result.rowcount or 0
