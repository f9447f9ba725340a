from __future__ import annotations

from collections.abc import Iterable

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quizhall.accounts.errors import (
    AccountValidationError,
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidRoleError,
    PermissionDeniedError,
    RoleSelectionError,
)
from quizhall.accounts.roles import can_author_quizzes, can_take_quizzes, is_valid_role
from quizhall.accounts.types import AccountIdentity, DeletionOutcome, LoginResult, RoleEntry
from quizhall.db.models.accounts import Account
from quizhall.db.repo.accounts_repo import AccountsRepo

logger = structlog.get_logger(__name__)

USERNAME_MAX_LENGTH = 50
CREDENTIAL_MAX_LENGTH = 100


def _identity_from_account(account: Account) -> AccountIdentity:
    return AccountIdentity(
        account_id=int(account.id),
        username=account.username,
        role=account.role,
        cumulative_score=int(account.cumulative_score or 0),
    )


def _validate_registration(*, username: str, credential: str, role: str) -> None:
    if not is_valid_role(role):
        raise InvalidRoleError(role)
    if not username or not username.strip():
        raise AccountValidationError("username must not be empty")
    if len(username) > USERNAME_MAX_LENGTH:
        raise AccountValidationError(f"username exceeds {USERNAME_MAX_LENGTH} characters")
    if not credential:
        raise AccountValidationError("credential must not be empty")
    if len(credential) > CREDENTIAL_MAX_LENGTH:
        raise AccountValidationError(f"credential exceeds {CREDENTIAL_MAX_LENGTH} characters")


async def register(
    session: AsyncSession,
    *,
    username: str,
    credential: str,
    role: str,
) -> AccountIdentity:
    _validate_registration(username=username, credential=credential, role=role)

    existing = await AccountsRepo.get_by_username_role(session, username=username, role=role)
    if existing is not None:
        raise DuplicateIdentityError(f"{username!r} is already registered as {role}")

    try:
        async with session.begin_nested():
            account = await AccountsRepo.create(
                session,
                username=username,
                credential=credential,
                role=role,
            )
    except IntegrityError as exc:
        # a concurrent registration won the unique (username, role) slot
        raise DuplicateIdentityError(f"{username!r} is already registered as {role}") from exc

    logger.info("account_registered", account_id=account.id, role=role)
    return _identity_from_account(account)


async def verify_credential(session: AsyncSession, *, username: str, credential: str) -> bool:
    return await AccountsRepo.credential_matches(session, username=username, credential=credential)


async def roles_for(
    session: AsyncSession,
    *,
    username: str,
    credential: str | None = None,
) -> tuple[RoleEntry, ...]:
    """Roles registered under ``username``.

    Without ``credential`` every role is returned; with it only the identities
    whose stored credential matches exactly.
    """
    rows = await AccountsRepo.list_roles(session, username=username, credential=credential)
    return tuple(RoleEntry(account_id=account_id, role=role) for account_id, role in rows)


async def get_identity(session: AsyncSession, account_id: int) -> AccountIdentity | None:
    account = await AccountsRepo.get_by_id(session, account_id)
    if account is None:
        return None
    return _identity_from_account(account)


async def login(
    session: AsyncSession,
    *,
    username: str,
    credential: str,
    selected_role: str | None = None,
) -> LoginResult:
    if not await verify_credential(session, username=username, credential=credential):
        logger.info("login_rejected")
        raise InvalidCredentialsError("unknown username or wrong credential")

    choices = await roles_for(session, username=username, credential=credential)
    if not choices:
        # the matching row disappeared between the two reads
        raise InvalidCredentialsError("unknown username or wrong credential")

    if selected_role is None:
        if len(choices) > 1:
            return LoginResult(identity=None, choices=choices)
        chosen = choices[0]
    else:
        chosen = next((entry for entry in choices if entry.role == selected_role), None)
        if chosen is None:
            raise RoleSelectionError(f"no {selected_role} identity for this login")

    identity = await get_identity(session, chosen.account_id)
    if identity is None:
        raise InvalidCredentialsError("unknown username or wrong credential")
    logger.info("login_succeeded", account_id=identity.account_id, role=identity.role)
    return LoginResult(identity=identity, choices=choices)


async def delete_account(session: AsyncSession, *, account_id: int, role: str) -> bool:
    deleted = await AccountsRepo.delete_by_id_role(session, account_id=account_id, role=role)
    if deleted:
        logger.info("account_deleted", account_id=account_id, role=role)
    return deleted > 0


async def delete_identities(
    session: AsyncSession,
    *,
    entries: Iterable[RoleEntry],
) -> tuple[DeletionOutcome, ...]:
    outcomes: list[DeletionOutcome] = []
    for entry in entries:
        deleted = await delete_account(session, account_id=entry.account_id, role=entry.role)
        outcomes.append(DeletionOutcome(account_id=entry.account_id, role=entry.role, deleted=deleted))
    return tuple(outcomes)


def require_administrator(identity: AccountIdentity) -> None:
    if not can_author_quizzes(identity.role):
        raise PermissionDeniedError("only administrators can author quizzes")


def require_student(identity: AccountIdentity) -> None:
    if not can_take_quizzes(identity.role):
        raise PermissionDeniedError("only students can take quizzes")
