from __future__ import annotations

from collections.abc import Sequence

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quizhall.catalog.errors import QuizNotFoundError
from quizhall.catalog.types import QuestionDraft, QuestionSnapshot, QuizSnapshot
from quizhall.catalog.validation import validate_question, validate_quiz
from quizhall.db.models.questions import Question
from quizhall.db.models.quizzes import Quiz
from quizhall.db.repo.questions_repo import QuestionsRepo
from quizhall.db.repo.quizzes_repo import QuizzesRepo

logger = structlog.get_logger(__name__)


def build_question_snapshot(question: Question) -> QuestionSnapshot:
    return QuestionSnapshot(
        question_id=int(question.id),
        quiz_id=int(question.quiz_id),
        text=question.text,
        options=question.options,
        correct_option=int(question.correct_option),
    )


def build_quiz_snapshot(quiz: Quiz, questions: Sequence[Question]) -> QuizSnapshot:
    return QuizSnapshot(
        quiz_id=int(quiz.id),
        title=quiz.title,
        description=quiz.description or "",
        time_limit=quiz.time_limit,
        questions=tuple(build_question_snapshot(question) for question in questions),
    )


async def list_quizzes(session: AsyncSession) -> tuple[QuizSnapshot, ...]:
    quizzes = await QuizzesRepo.list_all(session)
    questions_by_quiz = await QuestionsRepo.list_for_quizzes(session, [quiz.id for quiz in quizzes])
    return tuple(
        build_quiz_snapshot(quiz, questions_by_quiz.get(int(quiz.id), ()))
        for quiz in quizzes
    )


async def get_quiz(session: AsyncSession, quiz_id: int) -> QuizSnapshot | None:
    quiz = await QuizzesRepo.get_by_id(session, quiz_id)
    if quiz is None:
        return None
    questions = await QuestionsRepo.list_for_quiz(session, quiz_id)
    return build_quiz_snapshot(quiz, questions)


async def create_quiz(
    session: AsyncSession,
    *,
    title: str,
    description: str,
    questions: Sequence[QuestionDraft],
    time_limit: int | None = None,
) -> int:
    """Create a quiz together with its questions.

    Every draft is validated before the first insert, and the inserts share one
    savepoint: a failing question leaves no quiz row behind.
    """
    validate_quiz(title=title, time_limit=time_limit, questions=questions)

    async with session.begin_nested():
        quiz = await QuizzesRepo.create(
            session,
            title=title,
            description=description or "",
            time_limit=time_limit,
        )
        for draft in questions:
            await QuestionsRepo.create(
                session,
                quiz_id=quiz.id,
                text=draft.text,
                options=draft.options,
                correct_option=draft.correct_option,
            )

    logger.info("quiz_created", quiz_id=quiz.id, questions_total=len(questions))
    return int(quiz.id)


async def add_question(session: AsyncSession, *, quiz_id: int, question: QuestionDraft) -> int:
    validate_question(question)
    if not await QuizzesRepo.exists(session, quiz_id):
        raise QuizNotFoundError(quiz_id)

    try:
        async with session.begin_nested():
            created = await QuestionsRepo.create(
                session,
                quiz_id=quiz_id,
                text=question.text,
                options=question.options,
                correct_option=question.correct_option,
            )
    except IntegrityError as exc:
        # quiz deleted by another session after the existence check
        raise QuizNotFoundError(quiz_id) from exc
    logger.info("question_added", quiz_id=quiz_id, question_id=created.id)
    return int(created.id)


async def delete_quiz(session: AsyncSession, quiz_id: int) -> bool:
    deleted = await QuizzesRepo.delete_by_id(session, quiz_id)
    if deleted:
        logger.info("quiz_deleted", quiz_id=quiz_id)
    return deleted > 0


async def delete_question(session: AsyncSession, question_id: int) -> bool:
    deleted = await QuestionsRepo.delete_by_id(session, question_id)
    if deleted:
        logger.info("question_deleted", question_id=question_id)
    return deleted > 0
