from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any

from quizhall.catalog import service as catalog
from quizhall.catalog.errors import CatalogError
from quizhall.catalog.types import QuestionDraft
from quizhall.catalog.validation import validate_quiz
from quizhall.core.config import get_settings
from quizhall.core.logging import configure_logging
from quizhall.db.gateway import PersistenceGateway


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import quizzes from a JSON file into the catalog.")
    parser.add_argument("path", type=Path, help="JSON file holding one quiz object or a list of them")
    parser.add_argument("--dry-run", action="store_true", help="validate only, write nothing")
    return parser.parse_args()


def _build_question(raw: dict[str, Any], *, position: int) -> QuestionDraft:
    try:
        return QuestionDraft(
            text=str(raw["text"]),
            options=tuple(str(option) for option in raw["options"]),
            correct_option=int(raw["correct_option"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"question {position}: expected text, options and correct_option") from exc


def load_quiz_payloads(path: Path) -> list[dict[str, Any]]:
    """Read and validate quiz payloads; raises ``ValueError`` or ``CatalogError``."""
    data = json.loads(path.read_text(encoding="utf-8"))
    raw_quizzes = data if isinstance(data, list) else [data]
    payloads: list[dict[str, Any]] = []
    for index, raw in enumerate(raw_quizzes, start=1):
        if not isinstance(raw, dict) or "title" not in raw:
            raise ValueError(f"quiz {index}: expected an object with a title")
        questions = [
            _build_question(item, position=position)
            for position, item in enumerate(raw.get("questions", []), start=1)
        ]
        time_limit = raw.get("time_limit")
        payload = {
            "title": str(raw["title"]),
            "description": str(raw.get("description", "")),
            "time_limit": int(time_limit) if time_limit is not None else None,
            "questions": questions,
        }
        validate_quiz(
            title=payload["title"],
            time_limit=payload["time_limit"],
            questions=questions,
        )
        payloads.append(payload)
    return payloads


async def _import(payloads: list[dict[str, Any]]) -> list[int]:
    gateway = PersistenceGateway.from_settings(get_settings())
    await gateway.startup()
    try:
        async with gateway.transaction() as session:
            return [await catalog.create_quiz(session, **payload) for payload in payloads]
    finally:
        await gateway.shutdown()


def main() -> int:
    args = _parse_args()
    configure_logging(get_settings().log_level)
    try:
        payloads = load_quiz_payloads(args.path)
    except (ValueError, CatalogError) as exc:
        print(f"import_quiz: invalid input: {exc}")  # noqa: T201
        return 2

    questions_total = sum(len(payload["questions"]) for payload in payloads)
    if args.dry_run:
        print(f"import_quiz: dry run ok quizzes={len(payloads)} questions={questions_total}")  # noqa: T201
        return 0

    quiz_ids = asyncio.run(_import(payloads))
    print(f"import_quiz: imported quiz_ids={quiz_ids} questions={questions_total}")  # noqa: T201
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
