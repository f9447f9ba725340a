from __future__ import annotations

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quizhall.accounts.roles import ROLE_ADMINISTRATOR, ROLE_STUDENT
from quizhall.db.models.accounts import Account

ROLE_ORDER = case((Account.role == ROLE_ADMINISTRATOR, 0), else_=1)
# ties break on code-point username order, whatever the database collation
LEADERBOARD_ORDER = (Account.cumulative_score.desc(), Account.username.collate("C").asc())


class AccountsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, account_id: int) -> Account | None:
        return await session.get(Account, account_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, account_id: int) -> Account | None:
        stmt = select(Account).where(Account.id == account_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_username_role(
        session: AsyncSession,
        *,
        username: str,
        role: str,
    ) -> Account | None:
        stmt = select(Account).where(Account.username == username, Account.role == role)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        username: str,
        credential: str,
        role: str,
    ) -> Account:
        account = Account(
            username=username,
            credential=credential,
            role=role,
            cumulative_score=0,
        )
        session.add(account)
        await session.flush()
        return account

    @staticmethod
    async def credential_matches(session: AsyncSession, *, username: str, credential: str) -> bool:
        stmt = (
            select(Account.id)
            .where(Account.username == username, Account.credential == credential)
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_roles(
        session: AsyncSession,
        *,
        username: str,
        credential: str | None = None,
    ) -> list[tuple[int, str]]:
        stmt = select(Account.id, Account.role).where(Account.username == username)
        if credential is not None:
            stmt = stmt.where(Account.credential == credential)
        stmt = stmt.order_by(ROLE_ORDER, Account.id.asc())
        result = await session.execute(stmt)
        return [(int(account_id), str(role)) for account_id, role in result.all()]

    @staticmethod
    async def delete_by_id_role(session: AsyncSession, *, account_id: int, role: str) -> int:
        stmt = delete(Account).where(Account.id == account_id, Account.role == role)
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def increment_cumulative_score(session: AsyncSession, *, account_id: int, delta: int) -> int | None:
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(cumulative_score=Account.cumulative_score + delta)
            .returning(Account.cumulative_score)
        )
        result = await session.execute(stmt)
        value = result.scalar_one_or_none()
        return int(value) if value is not None else None

    @staticmethod
    async def list_students_ranked(session: AsyncSession) -> list[tuple[int, int, str, int]]:
        rank_col = func.row_number().over(order_by=LEADERBOARD_ORDER)
        stmt = (
            select(rank_col, Account.id, Account.username, Account.cumulative_score)
            .where(Account.role == ROLE_STUDENT)
            .order_by(*LEADERBOARD_ORDER)
        )
        result = await session.execute(stmt)
        return [
            (int(rank), int(account_id), str(username), int(score))
            for rank, account_id, username, score in result.all()
        ]

    @staticmethod
    async def get_student_rank(
        session: AsyncSession,
        *,
        account_id: int,
    ) -> tuple[int, int, int] | None:
        """Return ``(rank, students_total, cumulative_score)`` for one student."""
        ranked = (
            select(
                func.row_number()
                .over(order_by=LEADERBOARD_ORDER)
                .label("rank"),
                func.count().over().label("students_total"),
                Account.id.label("account_id"),
                Account.cumulative_score.label("cumulative_score"),
            )
            .where(Account.role == ROLE_STUDENT)
            .subquery()
        )
        stmt = select(
            ranked.c.rank,
            ranked.c.students_total,
            ranked.c.cumulative_score,
        ).where(ranked.c.account_id == account_id)
        result = await session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        rank, students_total, score = row
        return int(rank), int(students_total), int(score)
