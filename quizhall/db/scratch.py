from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.engine import URL, make_url

from quizhall.db.gateway import PersistenceGateway
from quizhall.db.models import Base

SCRATCH_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "postgres", "quizhall_postgres"})


class UnsafeStoreTargetError(RuntimeError):
    pass


def scratch_target_problem(database_url: str | URL) -> str | None:
    """Why ``database_url`` may not be wiped, or ``None`` when it may.

    A scratch store is a local PostgreSQL database whose name says ``test``.
    """
    url = make_url(database_url)
    name = (url.database or "").strip()
    if url.get_backend_name() != "postgresql":
        return f"backend {url.get_backend_name()!r} is not postgresql"
    if "test" not in name.lower():
        return f"database {name!r} is not named as a test database"
    if (url.host or "").lower() not in SCRATCH_HOSTS:
        return f"host {url.host!r} is not local"
    return None


def wipe_targets() -> tuple[str, ...]:
    """Every quizhall table, dependents first."""
    return tuple(table.name for table in reversed(Base.metadata.sorted_tables))


def wipe_statement() -> str:
    return f"TRUNCATE TABLE {', '.join(wipe_targets())} RESTART IDENTITY CASCADE"


async def wipe_store(gateway: PersistenceGateway) -> None:
    """Empty every quizhall table behind a started gateway."""
    url = gateway.engine.url
    problem = scratch_target_problem(url)
    if problem is not None:
        raise UnsafeStoreTargetError(f"refusing to wipe {url.database!r}: {problem}")
    async with gateway.engine.begin() as conn:
        await conn.execute(text(wipe_statement()))
