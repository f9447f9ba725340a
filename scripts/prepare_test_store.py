from __future__ import annotations

import argparse
import asyncio
import re

import asyncpg
from sqlalchemy.engine import URL, make_url

from quizhall.core.config import get_settings
from quizhall.core.logging import configure_logging
from quizhall.db.gateway import PersistenceGateway
from quizhall.db.scratch import scratch_target_problem, wipe_store, wipe_targets

DATABASE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create the local quizhall test database and its tables for integration runs."
    )
    parser.add_argument("--wipe", action="store_true", help="empty every quizhall table afterwards")
    return parser.parse_args()


def check_scratch_url(database_url: str) -> URL:
    """Parse ``database_url``; raises ``ValueError`` unless it names a creatable scratch store."""
    problem = scratch_target_problem(database_url)
    if problem is not None:
        raise ValueError(problem)
    url = make_url(database_url)
    if DATABASE_NAME_RE.fullmatch(url.database or "") is None:
        raise ValueError(f"database {url.database!r} is not a plain [A-Za-z0-9_] identifier")
    if url.username is None:
        raise ValueError("DATABASE_URL carries no username")
    return url


async def _create_database(url: URL) -> bool:
    # the target does not exist yet, so connect through the maintenance database
    conn = await asyncpg.connect(
        host=url.host,
        port=int(url.port or 5432),
        user=url.username,
        password=url.password,
        database="postgres",
    )
    try:
        if await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", url.database):
            return False
        # CREATE DATABASE takes no bind parameters; the name matched DATABASE_NAME_RE
        await conn.execute(f'CREATE DATABASE "{url.database}"')
        return True
    finally:
        await conn.close()


async def prepare(database_url: str, *, wipe: bool) -> bool:
    url = check_scratch_url(database_url)
    created = await _create_database(url)

    gateway = PersistenceGateway(database_url)
    await gateway.startup()
    try:
        if wipe:
            await wipe_store(gateway)
    finally:
        await gateway.shutdown()
    return created


def main() -> int:
    args = _parse_args()
    settings = get_settings()
    configure_logging(settings.log_level)
    try:
        created = asyncio.run(prepare(settings.database_url, wipe=args.wipe))
    except ValueError as exc:
        print(f"prepare_test_store: refusing: {exc}")  # noqa: T201
        return 2

    print(  # noqa: T201
        f"prepare_test_store: {'created' if created else 'exists'} "
        f"db={make_url(settings.database_url).database} tables={','.join(wipe_targets())} wiped={args.wipe}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
