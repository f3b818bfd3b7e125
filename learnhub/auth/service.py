"""User service.

Business logic for:
- Mirroring identity-provider users on first login
- Choosing a role
- User lookups used by other modules
"""

from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from learnhub.auth.models import User
from learnhub.auth.permissions import UserRole
from learnhub.utils.dates import utc_now


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AuthError(Exception):
    """Base user/auth error."""

    def __init__(self, message: str, code: str = "auth_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class UserNotFoundError(AuthError):
    def __init__(self, message: str = "User not found"):
        super().__init__(message, "user_not_found")


class RoleAlreadySetError(AuthError):
    def __init__(self, message: str = "Role already set"):
        super().__init__(message, "role_already_set")


# ==============================================================================
# Auth Service
# ==============================================================================


class AuthService:
    """Local user records keyed by identity-provider subject."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_user_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE id = ?"
        )
        self._get_user_id_by_subject = self.session.prepare(
            f"SELECT user_id FROM {self.keyspace}.users_by_subject WHERE subject = ?"
        )
        self._claim_subject = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users_by_subject (subject, user_id)
            VALUES (?, ?)
            IF NOT EXISTS
        """)
        self._insert_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users
            (id, subject, email, name, role, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_user_profile = self.session.prepare(f"""
            UPDATE {self.keyspace}.users
            SET email = ?, name = ?, updated_at = ?
            WHERE id = ?
        """)
        self._update_user_role = self.session.prepare(f"""
            UPDATE {self.keyspace}.users
            SET role = ?, updated_at = ?
            WHERE id = ?
        """)

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        result = await self.session.aexecute(self._get_user_by_id, [user_id])
        row = result.one()
        return User.from_row(row) if row else None

    async def get_user_by_subject(self, subject: str) -> User | None:
        result = await self.session.aexecute(self._get_user_id_by_subject, [subject])
        row = result.one()
        if not row:
            return None
        return await self.get_user_by_id(row.user_id)

    async def get_users_by_ids(self, user_ids: list[UUID]) -> dict[UUID, User]:
        """Fetch several users, skipping ids that no longer exist."""
        users: dict[UUID, User] = {}
        for user_id in dict.fromkeys(user_ids):
            user = await self.get_user_by_id(user_id)
            if user:
                users[user_id] = user
        return users

    # ==========================================================================
    # First login
    # ==========================================================================

    async def get_or_create_user(
        self,
        claims: dict[str, Any],
        role: UserRole | None = None,
    ) -> User:
        """Return the local user for verified token claims.

        On first sight of a subject the user is created with the email, name
        and role carried by the token. The subject is claimed with an LWT so
        two concurrent first requests end up with the same user.

        Args:
            claims: Verified token claims (``sub`` required)
            role: Role read from the provider metadata, or the default

        Returns:
            The existing or newly created user.
        """
        subject = claims["sub"]
        email = claims.get("email") or ""
        name = claims.get("name") or ""

        existing = await self.get_user_by_subject(subject)
        if existing:
            if (email and email.lower() != existing.email) or (
                name and name != existing.name
            ):
                existing.email = email.lower().strip() or existing.email
                existing.name = name or existing.name
                existing.updated_at = utc_now()
                await self.session.aexecute(
                    self._update_user_profile,
                    [existing.email, existing.name, existing.updated_at, existing.id],
                )
            return existing

        user = User(subject=subject, email=email, name=name, role=role)
        claim = await self.session.aexecute(self._claim_subject, [subject, user.id])
        if not claim.was_applied:
            # Lost the race; the winner's row may still be in flight
            winner = await self.get_user_by_subject(subject)
            if winner:
                return winner
            user.id = claim.one().user_id

        await self.session.aexecute(
            self._insert_user,
            [
                user.id,
                user.subject,
                user.email,
                user.name,
                user.role.value if user.role else None,
                user.created_at,
                user.updated_at,
            ],
        )
        logger.info(
            "user_created",
            user_id=str(user.id),
            role=user.role.value if user.role else None,
        )
        return user

    async def set_role(self, user_id: UUID, role: UserRole) -> User:
        """Set the user's role; allowed once.

        Raises:
            UserNotFoundError: If the user does not exist
            RoleAlreadySetError: If the user already has a role
        """
        user = await self.get_user_by_id(user_id)
        if not user:
            raise UserNotFoundError
        if user.role is not None:
            raise RoleAlreadySetError

        user.role = role
        user.updated_at = utc_now()
        await self.session.aexecute(
            self._update_user_role, [role.value, user.updated_at, user.id]
        )
        logger.info("user_role_set", user_id=str(user.id), role=role.value)
        return user
