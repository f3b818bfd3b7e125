"""Tests for auth permissions."""

import pytest

from learnhub.auth.permissions import UserRole, is_coach, is_student, parse_role


class TestUserRole:
    """Tests for UserRole enum."""

    def test_role_values(self) -> None:
        assert UserRole.STUDENT.value == "student"
        assert UserRole.COACH.value == "coach"

    def test_only_two_roles(self) -> None:
        assert set(UserRole) == {UserRole.STUDENT, UserRole.COACH}


class TestParseRole:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("student", UserRole.STUDENT),
            ("coach", UserRole.COACH),
            ("  Coach ", UserRole.COACH),
            ("STUDENT", UserRole.STUDENT),
            (UserRole.COACH, UserRole.COACH),
        ],
    )
    def test_valid_roles(self, value, expected) -> None:
        assert parse_role(value) is expected

    @pytest.mark.parametrize("value", ["admin", "instructor", "", None, 1, ["coach"]])
    def test_unknown_values_are_none(self, value) -> None:
        assert parse_role(value) is None


class TestRoleChecks:
    def test_is_coach(self) -> None:
        assert is_coach("coach")
        assert is_coach(UserRole.COACH)
        assert not is_coach("student")
        assert not is_coach(None)

    def test_is_student(self) -> None:
        assert is_student("student")
        assert not is_student(UserRole.COACH)
        assert not is_student("admin")
