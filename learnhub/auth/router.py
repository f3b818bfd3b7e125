"""User API endpoints.

Provides routes for:
- The authenticated user's profile
- Choosing a role on first use
"""

import structlog
from fastapi import APIRouter

from learnhub.auth.dependencies import AuthServiceDep, CurrentUser, handle_auth_error
from learnhub.auth.schemas import SetRoleRequest, UserResponse
from learnhub.auth.service import AuthError


logger = structlog.get_logger(__name__)


router = APIRouter(prefix="/v1/users", tags=["users"])


@router.get("/me", response_model=UserResponse, summary="Current user")
async def get_me(user: CurrentUser) -> UserResponse:
    return user


@router.post("/set-role", response_model=UserResponse, summary="Choose role")
async def set_role(
    data: SetRoleRequest,
    user: CurrentUser,
    auth_service: AuthServiceDep,
) -> UserResponse:
    """Set the caller's role. Only allowed while no role is set."""
    try:
        updated = await auth_service.set_role(user.id, data.role)
    except AuthError as e:
        raise handle_auth_error(e) from e
    return UserResponse.model_validate(updated, from_attributes=True)
