"""Verification of access tokens issued by the identity provider.

Tokens are never minted here. The provider signs them and this service only
checks signature, expiry, issuer and audience before trusting the claims.
"""

from dataclasses import dataclass, field
from typing import Any

from jose import JWTError, jwt

from src.nexus_projects.core.config import get_settings
from src.nexus_projects.core.exceptions import Unauthorized
from src.nexus_projects.models.enums import Role


@dataclass(frozen=True)
class TokenClaims:
    """The subset of verified claims the service relies on."""

    sub: str
    roles: frozenset[str] = frozenset()
    name: str | None = None
    avatar: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def has_role(self, *roles: Role) -> bool:
        return any(role.value in self.roles for role in roles)


def extract_bearer(authorization: str | None) -> str:
    """Return the token part of a ``Bearer`` header or raise Unauthorized."""
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthorized("Missing or invalid authorization header")
    token = authorization[7:].strip()
    if not token:
        raise Unauthorized("Empty bearer token")
    return token


def verify_access_token(token: str) -> TokenClaims:
    """Verify a JWT and map its payload onto TokenClaims.

    Raises:
        Unauthorized: On any signature, expiry, issuer or audience failure,
            or when the subject claim is missing.
    """
    settings = get_settings()
    options = {"verify_aud": settings.jwt_audience is not None}
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_verification_key,
            algorithms=settings.jwt_algorithms,
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options=options,
        )
    except JWTError as e:
        raise Unauthorized(f"Token rejected: {e}") from e

    sub = payload.get("sub")
    if not sub or not isinstance(sub, str):
        raise Unauthorized("Token has no subject")

    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        roles = []

    return TokenClaims(
        sub=sub,
        roles=frozenset(str(r) for r in roles),
        name=payload.get("name") or payload.get("displayName"),
        avatar=payload.get("avatarUrl") or payload.get("picture"),
        raw=payload,
    )
