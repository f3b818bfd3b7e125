"""Tests for OIDC token verification."""

import base64
import time
from unittest.mock import AsyncMock

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

from learnhub.auth.permissions import UserRole
from learnhub.auth.security import (
    IdentityProviderUnavailableError,
    OIDCTokenVerifier,
    TokenVerificationError,
    extract_role,
)


ISSUER = "https://idp.test"
AUDIENCE = "learnhub-client"
KID = "key-1"


def _generate_key_pair() -> tuple[str, dict]:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode()
    )
    public_jwk = jwk.construct(public_pem, "RS256").to_dict()
    return private_pem, public_jwk


@pytest.fixture(scope="module")
def key_pair() -> tuple[str, dict]:
    return _generate_key_pair()


@pytest.fixture
def jwks(key_pair) -> dict:
    _, public_jwk = key_pair
    return {"keys": [{**public_jwk, "kid": KID, "use": "sig"}]}


@pytest.fixture
def verifier(jwks) -> OIDCTokenVerifier:
    instance = OIDCTokenVerifier(
        issuer=ISSUER,
        audience=AUDIENCE,
        jwks_uri=f"{ISSUER}/oauth/v2/keys",
    )
    instance._fetch_jwks = AsyncMock(return_value=jwks)
    return instance


@pytest.fixture
def make_token(key_pair):
    private_pem, _ = key_pair

    def _make_token(kid: str = KID, **overrides) -> str:
        now = int(time.time())
        claims = {
            "sub": "user-123",
            "iss": ISSUER,
            "aud": AUDIENCE,
            "iat": now,
            "exp": now + 300,
            "email": "ana@example.com",
        }
        claims.update(overrides)
        return jwt.encode(claims, private_pem, algorithm="RS256", headers={"kid": kid})

    return _make_token


class TestVerify:
    """Tests for OIDCTokenVerifier.verify."""

    async def test_valid_token(self, verifier, make_token) -> None:
        claims = await verifier.verify(make_token())
        assert claims["sub"] == "user-123"
        assert claims["email"] == "ana@example.com"

    async def test_keys_are_cached(self, verifier, make_token) -> None:
        await verifier.verify(make_token())
        await verifier.verify(make_token())
        assert verifier._fetch_jwks.await_count == 1

    async def test_unknown_kid_refetches_once(self, verifier, make_token) -> None:
        await verifier.verify(make_token())

        with pytest.raises(TokenVerificationError, match="Unknown signing key"):
            await verifier.verify(make_token(kid="rotated"))
        assert verifier._fetch_jwks.await_count == 2

    async def test_expired_token(self, verifier, make_token) -> None:
        token = make_token(exp=int(time.time()) - 60)
        with pytest.raises(TokenVerificationError, match="Token expired"):
            await verifier.verify(token)

    async def test_wrong_audience(self, verifier, make_token) -> None:
        with pytest.raises(TokenVerificationError):
            await verifier.verify(make_token(aud="another-client"))

    async def test_wrong_issuer(self, verifier, make_token) -> None:
        with pytest.raises(TokenVerificationError):
            await verifier.verify(make_token(iss="https://evil.test"))

    async def test_token_signed_by_other_key(self, verifier, jwks) -> None:
        other_private, _ = _generate_key_pair()
        now = int(time.time())
        token = jwt.encode(
            {"sub": "x", "iss": ISSUER, "aud": AUDIENCE, "exp": now + 60},
            other_private,
            algorithm="RS256",
            headers={"kid": KID},
        )
        with pytest.raises(TokenVerificationError):
            await verifier.verify(token)

    async def test_malformed_token(self, verifier) -> None:
        with pytest.raises(TokenVerificationError, match="Malformed token"):
            await verifier.verify("not-a-jwt")

    async def test_hs256_token_rejected(self, verifier) -> None:
        token = jwt.encode(
            {"sub": "x"}, "shared-secret", algorithm="HS256", headers={"kid": KID}
        )
        with pytest.raises(TokenVerificationError, match="Unsupported token header"):
            await verifier.verify(token)

    async def test_missing_subject(self, verifier, make_token) -> None:
        with pytest.raises(TokenVerificationError, match="no subject"):
            await verifier.verify(make_token(sub=""))

    async def test_jwks_unavailable(self, verifier, make_token) -> None:
        verifier._fetch_jwks = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(IdentityProviderUnavailableError):
            await verifier.verify(make_token())


class TestExtractRole:
    """Tests for reading the role out of provider metadata."""

    CLAIM = "urn:zitadel:iam:user:metadata"

    def test_plain_value(self) -> None:
        claims = {self.CLAIM: {"role": "coach"}}
        assert extract_role(claims, self.CLAIM, "role") is UserRole.COACH

    def test_base64_value(self) -> None:
        encoded = base64.b64encode(b"student").decode()
        claims = {self.CLAIM: {"role": encoded}}
        assert extract_role(claims, self.CLAIM, "role") is UserRole.STUDENT

    @pytest.mark.parametrize(
        "claims",
        [
            {},
            {CLAIM: "coach"},
            {CLAIM: {}},
            {CLAIM: {"role": "admin"}},
            {CLAIM: {"role": base64.b64encode(b"admin").decode()}},
            {CLAIM: {"role": 7}},
        ],
    )
    def test_missing_or_invalid_role(self, claims) -> None:
        assert extract_role(claims, self.CLAIM, "role") is None
