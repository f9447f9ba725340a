from __future__ import annotations

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine


def _connect_args(
    database_url: str,
    *,
    connect_timeout_sec: float,
    statement_timeout_ms: int,
) -> dict[str, Any]:
    if make_url(database_url).get_driver_name() != "asyncpg":
        return {}
    connect_args: dict[str, Any] = {"timeout": connect_timeout_sec}
    if statement_timeout_ms > 0:
        connect_args["command_timeout"] = statement_timeout_ms / 1000
        connect_args["server_settings"] = {"statement_timeout": str(statement_timeout_ms)}
    return connect_args


def build_engine(
    database_url: str,
    *,
    echo: bool = False,
    connect_timeout_sec: float = 5.0,
    statement_timeout_ms: int = 15_000,
) -> AsyncEngine:
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        connect_args=_connect_args(
            database_url,
            connect_timeout_sec=connect_timeout_sec,
            statement_timeout_ms=statement_timeout_ms,
        ),
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
