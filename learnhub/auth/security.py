"""OIDC access token verification.

Tokens are issued by the external identity provider (Zitadel) and signed
with RS256. Verification:
- the signing key is looked up by ``kid`` in the provider's JWKS document,
  fetched with httpx and reused for ``oidc_jwks_cache_seconds``
- an unknown ``kid`` triggers a single refetch (key rotation)
- signature, expiry, ``iss`` and ``aud`` are checked by python-jose
"""

import asyncio
import base64
import binascii
import time
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from jose import ExpiredSignatureError, JWTError, jwt

from learnhub.auth.permissions import UserRole, parse_role


if TYPE_CHECKING:
    from learnhub.config.settings import Settings


logger = structlog.get_logger(__name__)


class TokenVerificationError(Exception):
    """Raised when a bearer token cannot be trusted."""

    def __init__(self, message: str = "Invalid or expired token"):
        self.message = message
        super().__init__(message)


class IdentityProviderUnavailableError(TokenVerificationError):
    """Raised when the JWKS document cannot be fetched."""

    def __init__(self, message: str = "Identity provider unavailable"):
        super().__init__(message)


class OIDCTokenVerifier:
    """Verify bearer tokens against an OIDC provider's JWKS."""

    def __init__(
        self,
        issuer: str,
        audience: str,
        jwks_uri: str,
        algorithms: list[str] | None = None,
        cache_seconds: int = 600,
        http_timeout: float = 5.0,
    ):
        self.issuer = issuer
        self.audience = audience
        self.jwks_uri = jwks_uri
        self.algorithms = algorithms or ["RS256"]
        self.cache_seconds = cache_seconds
        self.http_timeout = http_timeout

        self._keys: dict[str, dict[str, Any]] = {}
        self._fetched_at: float | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: "Settings") -> "OIDCTokenVerifier":
        return cls(
            issuer=settings.oidc_issuer,
            audience=settings.oidc_client_id,
            jwks_uri=settings.oidc_jwks_uri,
            algorithms=settings.oidc_algorithms,
            cache_seconds=settings.oidc_jwks_cache_seconds,
            http_timeout=settings.oidc_http_timeout,
        )

    async def _fetch_jwks(self) -> dict[str, Any]:
        """Download the JWKS document."""
        async with httpx.AsyncClient(timeout=self.http_timeout) as client:
            response = await client.get(self.jwks_uri)
            response.raise_for_status()
            return response.json()

    def _is_stale(self) -> bool:
        if self._fetched_at is None:
            return True
        return time.monotonic() - self._fetched_at > self.cache_seconds

    async def _refresh_keys(self) -> None:
        try:
            document = await self._fetch_jwks()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("jwks_fetch_failed", jwks_uri=self.jwks_uri, error=str(e))
            raise IdentityProviderUnavailableError from e

        self._keys = {
            key["kid"]: key for key in document.get("keys", []) if key.get("kid")
        }
        self._fetched_at = time.monotonic()
        logger.info("jwks_refreshed", jwks_uri=self.jwks_uri, key_count=len(self._keys))

    async def get_signing_key(self, kid: str) -> dict[str, Any] | None:
        """Return the JWK for ``kid``, refreshing the key set when needed."""
        async with self._lock:
            if self._is_stale():
                await self._refresh_keys()
            elif kid not in self._keys:
                # Possibly rotated since the last fetch
                await self._refresh_keys()
            return self._keys.get(kid)

    async def verify(self, token: str) -> dict[str, Any]:
        """Verify a token and return its claims.

        Raises:
            TokenVerificationError: If the token is malformed, signed by an
                unknown key, expired, or issued for another issuer/audience.
            IdentityProviderUnavailableError: If the JWKS cannot be fetched.
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise TokenVerificationError("Malformed token") from e

        kid = header.get("kid")
        if not kid or header.get("alg") not in self.algorithms:
            raise TokenVerificationError("Unsupported token header")

        key = await self.get_signing_key(kid)
        if key is None:
            raise TokenVerificationError("Unknown signing key")

        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
            )
        except ExpiredSignatureError as e:
            raise TokenVerificationError("Token expired") from e
        except JWTError as e:
            raise TokenVerificationError from e

        if not claims.get("sub"):
            raise TokenVerificationError("Token has no subject")
        return claims


def extract_role(claims: dict[str, Any], claim: str, key: str) -> UserRole | None:
    """Read the role from the provider's user metadata claim.

    Zitadel delivers metadata values base64-encoded; plain values are
    accepted too. Anything that is not a known role yields ``None``.
    """
    metadata = claims.get(claim)
    if not isinstance(metadata, dict):
        return None

    raw = metadata.get(key)
    role = parse_role(raw)
    if role is not None or not isinstance(raw, str):
        return role

    try:
        decoded = base64.b64decode(raw, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    return parse_role(decoded)
