"""Roles for LearnHub.

Two flat roles, no hierarchy:
- STUDENT: enrolls in courses, starts paths, submits work
- COACH: authors courses, assignments and paths and grades submissions

A user mirrored from the identity provider may have no role yet; such a user
can only read public data and choose a role once.
"""

from enum import Enum
from typing import Any


class UserRole(str, Enum):
    """Closed set of roles accepted at the trust boundary."""

    STUDENT = "student"
    COACH = "coach"


def parse_role(value: Any) -> UserRole | None:
    """Validate an untrusted role value.

    Anything other than an exact role name (case-insensitive, surrounding
    whitespace ignored) yields ``None``.

    Examples:
        >>> parse_role("coach")
        <UserRole.COACH: 'coach'>
        >>> parse_role("admin") is None
        True
    """
    if isinstance(value, UserRole):
        return value
    if not isinstance(value, str):
        return None
    try:
        return UserRole(value.strip().lower())
    except ValueError:
        return None


def is_coach(role: UserRole | str | None) -> bool:
    """Check if role is COACH."""
    return parse_role(role) is UserRole.COACH


def is_student(role: UserRole | str | None) -> bool:
    """Check if role is STUDENT."""
    return parse_role(role) is UserRole.STUDENT
