"""Shared fixtures.

Services are replaced by mocks on ``app.state`` and authentication by a
``get_current_user`` override, so no Cassandra or identity provider is
needed.
"""

import os
import tempfile
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="learnhub-logs-"))
os.environ.setdefault("LOG_REQUESTS", "false")

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from learnhub.auth.dependencies import get_current_user  # noqa: E402
from learnhub.auth.permissions import UserRole  # noqa: E402
from learnhub.auth.schemas import UserResponse  # noqa: E402
from learnhub.main import create_app  # noqa: E402


class FakeResult(list):
    """Stand-in for a driver ResultSet."""

    def __init__(self, rows: Any = (), was_applied: bool = True):
        super().__init__(rows)
        self.was_applied = was_applied

    def one(self) -> Any:
        return self[0] if self else None


@pytest.fixture
def result() -> Callable[..., FakeResult]:
    """Build a fake result set: ``result(row1, row2, was_applied=False)``."""

    def _result(*rows: Any, was_applied: bool = True) -> FakeResult:
        return FakeResult(rows, was_applied=was_applied)

    return _result


@pytest.fixture
def row() -> Callable[..., SimpleNamespace]:
    """Build a fake Cassandra row from keyword arguments."""
    return SimpleNamespace


@pytest.fixture
def mock_session() -> Mock:
    """Cassandra session whose prepared statements are their CQL text."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda cql: cql)
    session.aexecute = AsyncMock(return_value=FakeResult())
    return session


# ==============================================================================
# Users
# ==============================================================================


@pytest.fixture
def user_factory() -> Callable[..., UserResponse]:
    """Factory for authenticated users."""

    def _create_user(
        role: UserRole | None = UserRole.STUDENT,
        name: str | None = None,
    ) -> UserResponse:
        user_id = uuid4()
        label = role.value if role else "guest"
        return UserResponse(
            id=user_id,
            subject=f"sub-{user_id.hex[:12]}",
            email=f"{label}_{user_id.hex[:8]}@test.com",
            name=name or f"Test {label.title()}",
            role=role,
            created_at=datetime.now(UTC),
        )

    return _create_user


@pytest.fixture
def student(user_factory) -> UserResponse:
    return user_factory(UserRole.STUDENT)


@pytest.fixture
def coach(user_factory) -> UserResponse:
    return user_factory(UserRole.COACH)


# ==============================================================================
# Application
# ==============================================================================


@pytest.fixture
def app() -> FastAPI:
    """Application with mocked services; the lifespan is not run."""
    application = create_app()
    for name in (
        "auth_service",
        "course_service",
        "assignment_service",
        "progress_service",
        "path_service",
        "comment_service",
    ):
        setattr(application.state, name, AsyncMock())
    return application


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(app: FastAPI) -> Callable[[UserResponse | None], None]:
    """Authenticate every following request as ``user`` (None to log out)."""

    def _login(user: UserResponse | None) -> None:
        if user is None:
            app.dependency_overrides.pop(get_current_user, None)
            return
        app.dependency_overrides[get_current_user] = lambda: user

    return _login
