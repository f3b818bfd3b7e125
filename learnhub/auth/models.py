"""Database models for the local user mirror.

Users authenticate against the external identity provider; the API keeps a
local record per identity so that courses, progress and comments can refer
to a stable UUID and so that the role chosen in LearnHub is stored here.

Cassandra tables:
- users: main user table
- users_by_subject: identity-provider subject -> user id, claimed with an
  LWT on first login so concurrent first requests create a single user
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from learnhub.auth.permissions import UserRole, parse_role
from learnhub.utils.dates import ensure_utc_aware, utc_now


USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id UUID PRIMARY KEY,
    subject TEXT,
    email TEXT,
    name TEXT,
    role TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

USER_BY_SUBJECT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users_by_subject (
    subject TEXT PRIMARY KEY,
    user_id UUID
)
"""

AUTH_TABLES_CQL = [
    USER_TABLE_CQL,
    USER_BY_SUBJECT_TABLE_CQL,
]


class User:
    """Local user mirrored from an OIDC identity.

    Attributes:
        id: Local identifier referenced by every other table
        subject: ``sub`` claim from the identity provider
        email: Email claim (lower-cased)
        name: Display name claim
        role: Role from the provider metadata, student by default
        created_at: First login timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        subject: str,
        email: str = "",
        name: str = "",
        role: UserRole | str | None = None,
        id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.subject = subject
        self.email = (email or "").lower().strip()
        self.name = name or ""
        self.role = parse_role(role)
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "User":
        """Create User instance from Cassandra row."""
        return cls(
            id=row.id,
            subject=row.subject,
            email=row.email,
            name=row.name,
            role=row.role,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @property
    def display_name(self) -> str:
        """Name to show next to authored content."""
        return self.name or self.email.split("@")[0]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "email": self.email,
            "name": self.name,
            "role": self.role.value if self.role else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        role = self.role.value if self.role else "no-role"
        return f"<User {self.email} ({role})>"
