from __future__ import annotations

import asyncio
import sys

import structlog

from quizhall.console.app import ConsoleApp
from quizhall.console.prompts import ConsoleIO
from quizhall.core.config import Settings, get_settings
from quizhall.core.errors import StoreConnectionError
from quizhall.core.logging import configure_logging
from quizhall.db.gateway import PersistenceGateway

logger = structlog.get_logger(__name__)


async def run_console(settings: Settings, io: ConsoleIO | None = None) -> int:
    gateway = PersistenceGateway.from_settings(settings)
    try:
        await gateway.startup()
    except StoreConnectionError:
        # nothing works without the store
        print("Connection Error: the quiz database is unreachable.", file=sys.stderr)  # noqa: T201
        return 1

    try:
        await ConsoleApp(gateway, io).run()
    except (EOFError, KeyboardInterrupt):
        logger.info("console_interrupted")
    finally:
        await gateway.shutdown()
    return 0


def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.app_env != "dev")
    raise SystemExit(asyncio.run(run_console(settings)))


if __name__ == "__main__":
    run()
