from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AccountIdentity:
    account_id: int
    username: str
    role: str
    cumulative_score: int


@dataclass(frozen=True, slots=True)
class RoleEntry:
    account_id: int
    role: str


@dataclass(frozen=True, slots=True)
class LoginResult:
    identity: AccountIdentity | None
    choices: tuple[RoleEntry, ...]

    @property
    def needs_role_selection(self) -> bool:
        return self.identity is None


@dataclass(frozen=True, slots=True)
class DeletionOutcome:
    account_id: int
    role: str
    deleted: bool
