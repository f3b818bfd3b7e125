"""Authentication and user module.

Verifies identity-provider tokens, mirrors users locally and
enforces the student/coach roles.
"""

from learnhub.auth.dependencies import CoachUser, CurrentUser, StudentUser
from learnhub.auth.permissions import UserRole
from learnhub.auth.router import router
from learnhub.auth.schemas import UserResponse
from learnhub.auth.service import AuthService


__all__ = [
    "AuthService",
    "CoachUser",
    "CurrentUser",
    "StudentUser",
    "UserResponse",
    "UserRole",
    "router",
]
