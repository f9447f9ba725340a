from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from quizhall.core.config import get_settings
from quizhall.core.errors import StoreConnectionError
from quizhall.db.gateway import PersistenceGateway
from quizhall.db.scratch import scratch_target_problem, wipe_store


@pytest.fixture(scope="session", autouse=True)
def require_scratch_store() -> None:
    problem = scratch_target_problem(get_settings().database_url)
    if problem is not None:
        pytest.skip(f"integration tests need a local PostgreSQL test DB: {problem}")


@pytest.fixture
async def gateway() -> AsyncIterator[PersistenceGateway]:
    store = PersistenceGateway.from_settings(get_settings())
    try:
        await store.startup()
    except StoreConnectionError as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc.__cause__!r}")

    await wipe_store(store)
    yield store
    await store.shutdown()
