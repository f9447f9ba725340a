from __future__ import annotations

ROLE_ADMINISTRATOR = "administrator"
ROLE_STUDENT = "student"
ROLES = (ROLE_ADMINISTRATOR, ROLE_STUDENT)

ROLE_LABELS = {
    ROLE_ADMINISTRATOR: "Administrator",
    ROLE_STUDENT: "Student",
}


def is_valid_role(role: str) -> bool:
    return role in ROLES


def can_author_quizzes(role: str) -> bool:
    return role == ROLE_ADMINISTRATOR


def can_take_quizzes(role: str) -> bool:
    return role == ROLE_STUDENT
