from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import Row, text
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.sql import Executable

from quizhall.core.config import Settings
from quizhall.core.errors import ConstraintViolationError, StoreConnectionError, StoreError
from quizhall.db.models import Base
from quizhall.db.session import build_engine, build_sessionmaker

logger = structlog.get_logger(__name__)

Statement = Executable | str


def translate_store_error(exc: BaseException) -> StoreError:
    if isinstance(exc, StoreError):
        return exc
    if isinstance(exc, IntegrityError):
        return ConstraintViolationError(str(exc.orig))
    if isinstance(exc, (OperationalError, InterfaceError, PoolTimeoutError, OSError, TimeoutError)):
        return StoreConnectionError(type(exc).__name__)
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return StoreConnectionError(type(exc).__name__)
    return StoreError(str(exc))


def _coerce(statement: Statement) -> Executable:
    if isinstance(statement, str):
        return text(statement)
    return statement


class PersistenceGateway:
    """Owns the engine and hands out sessions.

    Acquired once with ``startup()`` and released with ``shutdown()``; domain
    services receive the sessions it yields and never reach for a global handle.
    Driver failures leave this class as ``StoreError`` subclasses with the
    original exception chained.
    """

    def __init__(
        self,
        database_url: str,
        *,
        echo: bool = False,
        connect_timeout_sec: float = 5.0,
        statement_timeout_ms: int = 15_000,
    ) -> None:
        self._database_url = database_url
        self._echo = echo
        self._connect_timeout_sec = connect_timeout_sec
        self._statement_timeout_ms = statement_timeout_ms
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> PersistenceGateway:
        return cls(
            settings.database_url,
            echo=settings.db_echo,
            connect_timeout_sec=settings.db_connect_timeout_sec,
            statement_timeout_ms=settings.db_statement_timeout_ms,
        )

    @property
    def is_started(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("persistence gateway is not started")
        return self._engine

    def _require_sessionmaker(self) -> async_sessionmaker[AsyncSession]:
        if self._sessionmaker is None:
            raise RuntimeError("persistence gateway is not started")
        return self._sessionmaker

    async def startup(self) -> None:
        if self._engine is not None:
            return
        engine = build_engine(
            self._database_url,
            echo=self._echo,
            connect_timeout_sec=self._connect_timeout_sec,
            statement_timeout_ms=self._statement_timeout_ms,
        )
        try:
            async with engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                await conn.run_sync(Base.metadata.create_all, checkfirst=True)
        except (SQLAlchemyError, OSError, TimeoutError) as exc:
            await engine.dispose()
            logger.error(
                "store_connection_failed",
                backend=engine.url.get_backend_name(),
                host=engine.url.host,
                error_type=type(exc).__name__,
            )
            raise StoreConnectionError("unable to connect to the store") from exc

        self._engine = engine
        self._sessionmaker = build_sessionmaker(engine)
        logger.info(
            "store_connected",
            backend=engine.url.get_backend_name(),
            host=engine.url.host,
            database=engine.url.database,
        )

    async def shutdown(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("store_disconnected")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        sessionmaker = self._require_sessionmaker()
        try:
            async with sessionmaker() as session:
                yield session
        except (SQLAlchemyError, OSError, TimeoutError) as exc:
            raise translate_store_error(exc) from exc

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        sessionmaker = self._require_sessionmaker()
        try:
            async with sessionmaker.begin() as session:
                yield session
        except (SQLAlchemyError, OSError, TimeoutError) as exc:
            raise translate_store_error(exc) from exc

    async def execute(self, statement: Statement, params: Mapping[str, Any] | None = None) -> int:
        async with self.transaction() as session:
            result = await session.execute(_coerce(statement), dict(params or {}))
            return int(getattr(result, "rowcount", 0) or 0)

    async def query(self, statement: Statement, params: Mapping[str, Any] | None = None) -> list[Row[Any]]:
        async with self.session() as session:
            result = await session.execute(_coerce(statement), dict(params or {}))
            return list(result.all())
