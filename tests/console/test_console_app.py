from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import pytest

from quizhall.accounts.errors import DuplicateIdentityError, InvalidCredentialsError
from quizhall.accounts.types import AccountIdentity, DeletionOutcome, LoginResult, RoleEntry
from quizhall.catalog.types import QuestionSnapshot, QuizSnapshot
from quizhall.console import app as console_app
from quizhall.console.app import ConsoleApp
from quizhall.console.prompts import ConsoleIO
from quizhall.core.errors import StoreConnectionError
from quizhall.ledger.types import AttemptSnapshot, LeaderboardEntry, RankSnapshot
from tests.service_fakes import FakeSession

STUDENT = AccountIdentity(account_id=2, username="bob", role="student", cumulative_score=0)
ADMIN = AccountIdentity(account_id=1, username="bob", role="administrator", cumulative_score=0)
GEO = QuizSnapshot(
    quiz_id=10,
    title="Geo",
    description="Capitals",
    time_limit=None,
    questions=(
        QuestionSnapshot(
            question_id=100,
            quiz_id=10,
            text="Capital of France?",
            options=("Paris", "Rome"),
            correct_option=1,
        ),
    ),
)


class _FakeGateway:
    def __init__(self) -> None:
        self.transactions = 0

    @asynccontextmanager
    async def session(self):
        yield FakeSession()

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield FakeSession()


def _io(lines: list[str], secrets: list[str] | None = None) -> tuple[ConsoleIO, list[str]]:
    output: list[str] = []
    line_iter = iter(lines)
    secret_iter = iter(secrets or [])
    io = ConsoleIO(
        read_line=lambda prompt: next(line_iter),
        read_secret=lambda prompt: next(secret_iter),
        write=output.append,
    )
    return io, output


@pytest.mark.asyncio
async def test_register_as_student(monkeypatch) -> None:
    captured: dict[str, str] = {}

    async def _fake_register(session, *, username: str, credential: str, role: str):
        captured.update(username=username, credential=credential, role=role)
        return STUDENT

    monkeypatch.setattr(console_app.accounts, "register", _fake_register)
    io, output = _io(["2", "bob", "1", "4"], ["pw", "typo", "pw", "pw"])
    gateway = _FakeGateway()

    await ConsoleApp(gateway, io).run()

    assert captured == {"username": "bob", "credential": "pw", "role": "student"}
    assert "Passwords do not match. Please try again." in output
    assert "Registration successful! Please login." in output
    assert gateway.transactions == 1


@pytest.mark.asyncio
async def test_register_duplicate_is_reported_and_loop_continues(monkeypatch) -> None:
    async def _fake_register(session, **kwargs):
        raise DuplicateIdentityError("'bob' is already registered as administrator")

    monkeypatch.setattr(console_app.accounts, "register", _fake_register)
    io, output = _io(["2", "bob", "2", "4"], ["pw", "pw"])

    await ConsoleApp(_FakeGateway(), io).run()

    assert "Error: 'bob' is already registered as administrator" in output
    assert output[-1] == "Goodbye!"


@pytest.mark.asyncio
async def test_login_failure_does_not_reveal_which_field_was_wrong(monkeypatch) -> None:
    async def _fake_login(session, **kwargs):
        raise InvalidCredentialsError("unknown username or wrong credential")

    monkeypatch.setattr(console_app.accounts, "login", _fake_login)
    io, output = _io(["1", "bob", "4"], ["wrong"])

    await ConsoleApp(_FakeGateway(), io).run()

    assert "Error: unknown username or wrong credential" in output


@pytest.mark.asyncio
async def test_student_takes_quiz_and_sees_rank(monkeypatch) -> None:
    recorded: dict[str, int] = {}

    async def _fake_login(session, **kwargs):
        return LoginResult(identity=STUDENT, choices=(RoleEntry(2, "student"),))

    async def _fake_list_quizzes(session):
        return (GEO,)

    async def _fake_record_attempt(session, *, student_id: int, quiz_id: int, score: int):
        recorded.update(student_id=student_id, quiz_id=quiz_id, score=score)
        return AttemptSnapshot(
            student_id=student_id,
            quiz_id=quiz_id,
            score=score,
            completed_at=datetime(2026, 10, 19, tzinfo=timezone.utc),
            cumulative_score=1,
        )

    async def _fake_leaderboard(session):
        return (LeaderboardEntry(rank=1, account_id=2, username="bob", cumulative_score=1),)

    async def _fake_rank_of(session, student_id: int):
        return RankSnapshot(rank=1, students_total=1, cumulative_score=1)

    monkeypatch.setattr(console_app.accounts, "login", _fake_login)
    monkeypatch.setattr(console_app.catalog, "list_quizzes", _fake_list_quizzes)
    monkeypatch.setattr(console_app.ledger, "record_attempt", _fake_record_attempt)
    monkeypatch.setattr(console_app.ledger, "leaderboard", _fake_leaderboard)
    monkeypatch.setattr(console_app.ledger, "rank_of", _fake_rank_of)

    # login, take quiz 1, answer 1, view rank, logout, exit
    io, output = _io(["1", "bob", "1", "1", "1", "5", "6", "4"], ["pw"])

    await ConsoleApp(_FakeGateway(), io).run()

    assert recorded == {"student_id": 2, "quiz_id": 10, "score": 1}
    assert "\nYou scored 1 out of 1." in output
    assert "1\tbob\t\t1" in output
    assert "\nYour rank is: 1 of 1" in output
    assert "Your total score is: 1" in output


@pytest.mark.asyncio
async def test_multi_role_login_asks_for_role_and_admin_creates_quiz(monkeypatch) -> None:
    selections: list[str | None] = []
    created: dict[str, object] = {}

    async def _fake_login(session, *, username: str, credential: str, selected_role: str | None = None):
        selections.append(selected_role)
        choices = (RoleEntry(1, "administrator"), RoleEntry(2, "student"))
        if selected_role is None:
            return LoginResult(identity=None, choices=choices)
        return LoginResult(identity=ADMIN, choices=choices)

    async def _fake_create_quiz(session, *, title, description, questions, time_limit):
        created.update(title=title, description=description, questions=questions, time_limit=time_limit)
        return 10

    monkeypatch.setattr(console_app.accounts, "login", _fake_login)
    monkeypatch.setattr(console_app.catalog, "create_quiz", _fake_create_quiz)

    lines = [
        "1", "bob",             # login
        "1",                    # role: administrator
        "1",                    # create quiz
        "Geo", "Capitals", "",  # title, description, no time limit
        "1",                    # one question
        "Capital of France?", "Paris", "Rome", "",
        "1",                    # correct option
        "7",                    # logout
        "4",                    # exit
    ]
    io, output = _io(lines, ["pw"])

    await ConsoleApp(_FakeGateway(), io).run()

    assert selections == [None, "administrator"]
    assert created["title"] == "Geo"
    assert created["time_limit"] is None
    (draft,) = created["questions"]
    assert draft.options == ("Paris", "Rome")
    assert draft.correct_option == 1
    assert "Quiz created with id 10." in output


@pytest.mark.asyncio
async def test_delete_all_roles_reports_each_outcome(monkeypatch) -> None:
    async def _fake_roles_for(session, *, username: str, credential: str | None = None):
        if credential is not None and credential != "pw":
            return ()
        return (RoleEntry(1, "administrator"), RoleEntry(2, "student"))

    async def _fake_delete_identities(session, *, entries):
        return tuple(DeletionOutcome(entry.account_id, entry.role, entry.role == "student") for entry in entries)

    monkeypatch.setattr(console_app.accounts, "roles_for", _fake_roles_for)
    monkeypatch.setattr(console_app.accounts, "delete_identities", _fake_delete_identities)

    io, output = _io(["3", "bob", "3", "4"], ["nope", "pw"])

    await ConsoleApp(_FakeGateway(), io).run()

    assert "Incorrect password. Try again or type 'cancel'." in output
    assert "Role 'administrator': not found." in output
    assert "Role 'student': deleted." in output


@pytest.mark.asyncio
async def test_cancel_word_aborts_action(monkeypatch) -> None:
    io, output = _io(["2", "cancel", "4"])

    await ConsoleApp(_FakeGateway(), io).run()

    assert "Cancelled." in output


@pytest.mark.asyncio
async def test_lost_store_connection_is_reported_without_exiting(monkeypatch) -> None:
    async def _fake_list_quizzes(session):
        raise StoreConnectionError("OperationalError")

    async def _fake_login(session, **kwargs):
        return LoginResult(identity=STUDENT, choices=(RoleEntry(2, "student"),))

    monkeypatch.setattr(console_app.accounts, "login", _fake_login)
    monkeypatch.setattr(console_app.catalog, "list_quizzes", _fake_list_quizzes)
    io, output = _io(["1", "bob", "1", "6", "4"], ["pw"])

    await ConsoleApp(_FakeGateway(), io).run()

    assert "The quiz database is unavailable. Please try again later." in output
    assert output[-1] == "Goodbye!"


@pytest.mark.asyncio
async def test_student_views_own_results(monkeypatch) -> None:
    async def _fake_login(session, **kwargs):
        return LoginResult(identity=STUDENT, choices=(RoleEntry(2, "student"),))

    async def _fake_list_attempts(session, student_id: int):
        assert student_id == 2
        return (
            AttemptSnapshot(
                student_id=2,
                quiz_id=10,
                score=1,
                completed_at=datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc),
            ),
        )

    async def _fake_list_quizzes(session):
        return (GEO,)

    monkeypatch.setattr(console_app.accounts, "login", _fake_login)
    monkeypatch.setattr(console_app.ledger, "list_attempts", _fake_list_attempts)
    monkeypatch.setattr(console_app.catalog, "list_quizzes", _fake_list_quizzes)
    io, output = _io(["1", "bob", "4", "6", "4"], ["pw"])

    await ConsoleApp(_FakeGateway(), io).run()

    assert "Geo: 1/1 (2026-10-19 09:30)" in output


@pytest.mark.asyncio
async def test_student_lists_quizzes_without_answer_markers(monkeypatch) -> None:
    async def _fake_login(session, **kwargs):
        return LoginResult(identity=STUDENT, choices=(RoleEntry(2, "student"),))

    async def _fake_list_quizzes(session):
        return (GEO,)

    monkeypatch.setattr(console_app.accounts, "login", _fake_login)
    monkeypatch.setattr(console_app.catalog, "list_quizzes", _fake_list_quizzes)
    io, output = _io(["1", "bob", "2", "6", "4"], ["pw"])

    await ConsoleApp(_FakeGateway(), io).run()

    assert "\n[10] Geo" in output
    assert "    Capitals" in output
    assert "  Q1. Capital of France?" in output
    assert "      1) Paris" in output
    assert "      2) Rome" in output
    assert not any(line.lstrip().startswith("*") for line in output)


@pytest.mark.asyncio
async def test_administrator_quiz_list_marks_correct_option(monkeypatch) -> None:
    async def _fake_login(session, **kwargs):
        return LoginResult(identity=ADMIN, choices=(RoleEntry(1, "administrator"),))

    async def _fake_list_quizzes(session):
        return (GEO,)

    monkeypatch.setattr(console_app.accounts, "login", _fake_login)
    monkeypatch.setattr(console_app.catalog, "list_quizzes", _fake_list_quizzes)
    io, output = _io(["1", "bob", "2", "7", "4"], ["pw"])

    await ConsoleApp(_FakeGateway(), io).run()

    assert "     *1) Paris" in output
    assert "      2) Rome" in output


@pytest.mark.asyncio
async def test_student_score_is_read_fresh_from_the_store(monkeypatch) -> None:
    reads: list[int] = []

    async def _fake_login(session, **kwargs):
        return LoginResult(identity=STUDENT, choices=(RoleEntry(2, "student"),))

    async def _fake_get_identity(session, account_id: int):
        reads.append(account_id)
        return AccountIdentity(account_id=2, username="bob", role="student", cumulative_score=7)

    monkeypatch.setattr(console_app.accounts, "login", _fake_login)
    monkeypatch.setattr(console_app.accounts, "get_identity", _fake_get_identity)
    io, output = _io(["1", "bob", "3", "6", "4"], ["pw"])

    await ConsoleApp(_FakeGateway(), io).run()

    assert STUDENT.cumulative_score == 0
    assert reads == [2]
    assert "\nYour total score is: 7" in output


@pytest.mark.asyncio
async def test_login_without_resolved_identity_returns_to_main_menu(monkeypatch) -> None:
    async def _fake_login(session, **kwargs):
        return LoginResult(identity=None, choices=(RoleEntry(1, "administrator"), RoleEntry(2, "student")))

    monkeypatch.setattr(console_app.accounts, "login", _fake_login)
    io, output = _io(["1", "bob", "2", "4"], ["pw"])

    await ConsoleApp(_FakeGateway(), io).run()

    assert not any("Login successful" in line for line in output)
    assert output[-1] == "Goodbye!"
