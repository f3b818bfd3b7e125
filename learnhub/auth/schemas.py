"""Pydantic schemas for users."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learnhub.auth.permissions import UserRole


class SetRoleRequest(BaseModel):
    """Choose a role on first use."""

    role: UserRole = Field(..., description="student or coach")


class UserResponse(BaseModel):
    """Local user as seen by API clients and route handlers."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    subject: str
    email: str
    name: str
    role: UserRole | None = None
    created_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.email.split("@")[0]


class AuthorSummary(BaseModel):
    """Public fields of a user shown next to content they authored."""

    id: UUID
    name: str
    email: str
    role: UserRole | None = None
