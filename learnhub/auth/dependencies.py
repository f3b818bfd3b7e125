"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Bearer token verification against the identity provider
- The local user behind a token (created on first login)
- Role checks (student / coach)
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from learnhub.auth.permissions import UserRole
from learnhub.auth.schemas import UserResponse
from learnhub.auth.security import (
    IdentityProviderUnavailableError,
    OIDCTokenVerifier,
    TokenVerificationError,
    extract_role,
)
from learnhub.auth.service import AuthError, AuthService
from learnhub.config.settings import get_settings
from learnhub.core.context import set_user_id


def get_auth_service(request: Request) -> AuthService:
    """Get AuthService from app state."""
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Auth service not available",
        )
    return service


def get_token_verifier(request: Request) -> OIDCTokenVerifier:
    """Get the OIDC token verifier from app state."""
    verifier = getattr(request.app.state, "token_verifier", None)
    if verifier is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication not available",
        )
    return verifier


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
TokenVerifierDep = Annotated[OIDCTokenVerifier, Depends(get_token_verifier)]


def handle_auth_error(error: AuthError) -> HTTPException:
    """Convert AuthError to HTTPException."""
    status_map = {
        "user_not_found": status.HTTP_404_NOT_FOUND,
        "role_already_set": status.HTTP_403_FORBIDDEN,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
    )


async def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> UserResponse:
    """Resolve the authenticated local user.

    Raises:
        HTTPException(401): If the token is missing or fails verification
        HTTPException(503): If the identity provider keys cannot be fetched
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    verifier = get_token_verifier(request)
    try:
        claims = await verifier.verify(token)
    except IdentityProviderUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.message,
        ) from e
    except TokenVerificationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    settings = get_settings()
    auth_service = get_auth_service(request)
    user = await auth_service.get_or_create_user(
        claims,
        role=extract_role(claims, settings.oidc_role_claim, settings.oidc_role_key)
        or UserRole.STUDENT,
    )

    set_user_id(user.id)
    return UserResponse.model_validate(user, from_attributes=True)


def require_role(*allowed_roles: UserRole):
    """Create dependency requiring one of the given roles.

    Users that have not chosen a role yet are rejected as well.
    """

    async def role_checker(
        user: Annotated[UserResponse, Depends(get_current_user)],
    ) -> UserResponse:
        if user.role is None or user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return role_checker


# ==============================================================================
# Type Aliases for Cleaner Code
# ==============================================================================

CurrentUser = Annotated[UserResponse, Depends(get_current_user)]
StudentUser = Annotated[UserResponse, Depends(require_role(UserRole.STUDENT))]
CoachUser = Annotated[UserResponse, Depends(require_role(UserRole.COACH))]
