from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from quizhall.accounts import service as accounts
from quizhall.accounts.errors import AccountError
from quizhall.accounts.roles import ROLE_ADMINISTRATOR, ROLE_LABELS, ROLE_STUDENT
from quizhall.accounts.types import AccountIdentity
from quizhall.catalog import service as catalog
from quizhall.catalog.errors import CatalogError
from quizhall.catalog.types import QuestionDraft, QuizSnapshot
from quizhall.catalog.validation import MAX_OPTIONS, MIN_OPTIONS
from quizhall.console.prompts import ConsoleIO, InputCancelled
from quizhall.core.errors import StoreConnectionError, StoreError
from quizhall.db.gateway import PersistenceGateway
from quizhall.ledger import service as ledger
from quizhall.ledger.errors import LedgerError
from quizhall.ledger.scoring import score_answers

logger = structlog.get_logger(__name__)

DOMAIN_ERRORS = (AccountError, CatalogError, LedgerError)


class ConsoleApp:
    """Text menus over the account, catalog and ledger services.

    Each action runs in its own transaction; domain and store errors are
    reported to the user and the menu loop carries on.
    """

    def __init__(self, gateway: PersistenceGateway, io: ConsoleIO | None = None) -> None:
        self._gateway = gateway
        self._io = io or ConsoleIO()

    async def run(self) -> None:
        actions = (
            ("Login", self._login),
            ("Register", self._register),
            ("Delete account", self._delete_account),
            ("Exit", None),
        )
        while True:
            index = self._io.choose("=== Quiz Hall ===", [label for label, _ in actions])
            action = actions[index][1]
            if action is None:
                self._io.write("Goodbye!")
                return
            await self._guarded(action)

    async def _guarded(self, action: Callable[..., Awaitable[None]], *args: Any) -> None:
        try:
            await action(*args)
        except InputCancelled:
            self._io.write("Cancelled.")
        except DOMAIN_ERRORS as exc:
            self._io.write(f"Error: {exc}")
        except StoreConnectionError:
            logger.warning("console_store_unavailable")
            self._io.write("The quiz database is unavailable. Please try again later.")
        except StoreError as exc:
            logger.warning("console_store_error", error=str(exc))
            self._io.write("The request could not be saved.")

    # --- accounts ---

    async def _login(self) -> None:
        username = self._io.text("Username: ")
        credential = self._io.secret("Password: ")
        async with self._gateway.session() as session:
            result = await accounts.login(session, username=username, credential=credential)
        if result.needs_role_selection:
            self._io.write("\nYou have multiple roles.")
            index = self._io.choose(
                "Login as:",
                [ROLE_LABELS[entry.role] for entry in result.choices],
            )
            async with self._gateway.session() as session:
                result = await accounts.login(
                    session,
                    username=username,
                    credential=credential,
                    selected_role=result.choices[index].role,
                )
        identity = result.identity
        if identity is None:
            return
        self._io.write(f"\nLogin successful! Welcome, {identity.username} ({identity.role}).")
        if identity.role == ROLE_ADMINISTRATOR:
            await self._administrator_menu(identity)
        else:
            await self._student_menu(identity)

    async def _register(self) -> None:
        username = self._io.text("Username: ")
        while True:
            credential = self._io.secret("Password: ")
            if credential == self._io.secret("Confirm Password: "):
                break
            self._io.write("Passwords do not match. Please try again.")
        roles = (ROLE_STUDENT, ROLE_ADMINISTRATOR)
        role = roles[self._io.choose("Select your role:", [ROLE_LABELS[item] for item in roles])]
        async with self._gateway.transaction() as session:
            await accounts.register(session, username=username, credential=credential, role=role)
        self._io.write("Registration successful! Please login.")

    async def _delete_account(self) -> None:
        username = self._io.text("Username: ")
        async with self._gateway.session() as session:
            known = await accounts.roles_for(session, username=username)
        if not known:
            self._io.write("No account found for this username.")
            return

        while True:
            credential = self._io.secret("Password: ")
            async with self._gateway.session() as session:
                entries = await accounts.roles_for(session, username=username, credential=credential)
            if entries:
                break
            self._io.write("Incorrect password. Try again or type 'cancel'.")

        if len(entries) == 1:
            if not self._io.confirm(f"Delete your '{entries[0].role}' account?"):
                return
            selected = entries
        else:
            labels = [ROLE_LABELS[entry.role] for entry in entries] + ["Delete ALL roles", "Cancel"]
            index = self._io.choose("You have multiple roles:", labels)
            if index == len(entries) + 1:
                return
            selected = entries if index == len(entries) else (entries[index],)

        async with self._gateway.transaction() as session:
            outcomes = await accounts.delete_identities(session, entries=selected)
        for outcome in outcomes:
            status = "deleted" if outcome.deleted else "not found"
            self._io.write(f"Role '{outcome.role}': {status}.")

    # --- administrator ---

    async def _administrator_menu(self, identity: AccountIdentity) -> None:
        accounts.require_administrator(identity)
        actions = (
            ("Create quiz", self._create_quiz),
            ("List quizzes", self._show_quizzes),
            ("Delete quiz", self._delete_quiz),
            ("Add question", self._add_question),
            ("Delete question", self._delete_question),
            ("Show leaderboard", self._show_leaderboard),
            ("Logout", None),
        )
        while True:
            index = self._io.choose("=== Administrator Menu ===", [label for label, _ in actions])
            action = actions[index][1]
            if action is None:
                return
            await self._guarded(action)

    def _read_question(self, number: int) -> QuestionDraft:
        self._io.write(f"\nQuestion {number}")
        text = self._io.text("Question text: ")
        options: list[str] = []
        for position in range(1, MAX_OPTIONS + 1):
            required = position <= MIN_OPTIONS
            value = self._io.text(
                f"Option {position}{'' if required else ' (leave blank to stop)'}: ",
                allow_empty=not required,
            )
            if not value:
                break
            options.append(value)
        correct = self._io.integer(
            f"Correct option (1-{len(options)}): ",
            minimum=1,
            maximum=len(options),
        )
        assert correct is not None
        return QuestionDraft(text=text, options=tuple(options), correct_option=correct)

    async def _create_quiz(self) -> None:
        title = self._io.text("Quiz title: ")
        description = self._io.text("Description: ", allow_empty=True)
        time_limit = self._io.integer("Time limit in minutes (blank for none): ", minimum=0, allow_empty=True)
        count = self._io.integer("Number of questions: ", minimum=0)
        assert count is not None
        drafts = [self._read_question(number) for number in range(1, count + 1)]
        async with self._gateway.transaction() as session:
            quiz_id = await catalog.create_quiz(
                session,
                title=title,
                description=description,
                questions=drafts,
                time_limit=time_limit,
            )
        self._io.write(f"Quiz created with id {quiz_id}.")

    async def _pick_quiz(self) -> QuizSnapshot | None:
        async with self._gateway.session() as session:
            quizzes = await catalog.list_quizzes(session)
        if not quizzes:
            self._io.write("No quizzes available.")
            return None
        index = self._io.choose(
            "Quizzes:",
            [f"{quiz.title} ({quiz.question_count} questions)" for quiz in quizzes],
        )
        return quizzes[index]

    async def _show_quizzes(self, *, show_answers: bool = True) -> None:
        async with self._gateway.session() as session:
            quizzes = await catalog.list_quizzes(session)
        if not quizzes:
            self._io.write("No quizzes available.")
            return
        for quiz in quizzes:
            limit = f", time limit {quiz.time_limit} min" if quiz.time_limit else ""
            self._io.write(f"\n[{quiz.quiz_id}] {quiz.title}{limit}")
            if quiz.description:
                self._io.write(f"    {quiz.description}")
            for number, question in enumerate(quiz.questions, start=1):
                self._io.write(f"  Q{number}. {question.text}")
                for position, option in enumerate(question.options, start=1):
                    marker = "*" if show_answers and position == question.correct_option else " "
                    self._io.write(f"     {marker}{position}) {option}")

    async def _delete_quiz(self) -> None:
        quiz = await self._pick_quiz()
        if quiz is None or not self._io.confirm(f"Delete quiz '{quiz.title}'?"):
            return
        async with self._gateway.transaction() as session:
            deleted = await catalog.delete_quiz(session, quiz.quiz_id)
        self._io.write("Quiz deleted." if deleted else "Quiz no longer exists.")

    async def _add_question(self) -> None:
        quiz = await self._pick_quiz()
        if quiz is None:
            return
        draft = self._read_question(quiz.question_count + 1)
        async with self._gateway.transaction() as session:
            await catalog.add_question(session, quiz_id=quiz.quiz_id, question=draft)
        self._io.write("Question added.")

    async def _delete_question(self) -> None:
        quiz = await self._pick_quiz()
        if quiz is None:
            return
        if not quiz.questions:
            self._io.write("This quiz has no questions.")
            return
        index = self._io.choose("Questions:", [question.text for question in quiz.questions])
        async with self._gateway.transaction() as session:
            deleted = await catalog.delete_question(session, quiz.questions[index].question_id)
        self._io.write("Question deleted." if deleted else "Question no longer exists.")

    # --- student ---

    async def _student_menu(self, identity: AccountIdentity) -> None:
        accounts.require_student(identity)
        actions = (
            ("Take quiz", self._take_quiz),
            ("List quizzes", self._list_quizzes_for_student),
            ("View my score", self._show_score),
            ("View my results", self._show_attempts),
            ("View leaderboard and rank", self._show_rank),
            ("Logout", None),
        )
        while True:
            index = self._io.choose("=== Student Menu ===", [label for label, _ in actions])
            action = actions[index][1]
            if action is None:
                return
            await self._guarded(action, identity)

    async def _take_quiz(self, identity: AccountIdentity) -> None:
        quiz = await self._pick_quiz()
        if quiz is None:
            return
        self._io.write(f"\n=== {quiz.title} ===")
        if quiz.description:
            self._io.write(quiz.description)
        choices: list[int | None] = []
        for number, question in enumerate(quiz.questions, start=1):
            self._io.write(f"\nQ{number}. {question.text}")
            for position, option in enumerate(question.options, start=1):
                self._io.write(f"  {position}. {option}")
            choices.append(
                self._io.integer(
                    f"Your answer (1-{len(question.options)}): ",
                    minimum=1,
                    maximum=len(question.options),
                )
            )
        score = score_answers(quiz.questions, choices)
        async with self._gateway.transaction() as session:
            attempt = await ledger.record_attempt(
                session,
                student_id=identity.account_id,
                quiz_id=quiz.quiz_id,
                score=score,
            )
        self._io.write(f"\nYou scored {score} out of {quiz.question_count}.")
        self._io.write(f"Your total score is now {attempt.cumulative_score}.")

    async def _list_quizzes_for_student(self, identity: AccountIdentity) -> None:
        await self._show_quizzes(show_answers=False)

    async def _show_score(self, identity: AccountIdentity) -> None:
        # the login-time snapshot goes stale after each attempt
        async with self._gateway.session() as session:
            current = await accounts.get_identity(session, identity.account_id)
        if current is None:
            self._io.write("Your account no longer exists.")
            return
        self._io.write(f"\nYour total score is: {current.cumulative_score}")

    async def _show_attempts(self, identity: AccountIdentity) -> None:
        async with self._gateway.session() as session:
            attempts = await ledger.list_attempts(session, identity.account_id)
            quizzes = {quiz.quiz_id: quiz for quiz in await catalog.list_quizzes(session)}
        if not attempts:
            self._io.write("You have not completed any quizzes yet.")
            return
        for attempt in attempts:
            quiz = quizzes.get(attempt.quiz_id)
            title = quiz.title if quiz is not None else f"quiz {attempt.quiz_id}"
            total = quiz.question_count if quiz is not None else "?"
            self._io.write(f"{title}: {attempt.score}/{total} ({attempt.completed_at:%Y-%m-%d %H:%M})")

    async def _show_leaderboard(self) -> None:
        async with self._gateway.session() as session:
            entries = await ledger.leaderboard(session)
        self._io.write("\n--- Student Leaderboard ---")
        self._io.write("Rank\tUsername\tScore")
        for entry in entries:
            self._io.write(f"{entry.rank}\t{entry.username}\t\t{entry.cumulative_score}")

    async def _show_rank(self, identity: AccountIdentity) -> None:
        await self._show_leaderboard()
        async with self._gateway.session() as session:
            rank = await ledger.rank_of(session, identity.account_id)
        if rank is None:
            self._io.write("\nYou are not ranked yet.")
        else:
            self._io.write(f"\nYour rank is: {rank.rank} of {rank.students_total}")
            self._io.write(f"Your total score is: {rank.cumulative_score}")
