"""Security utilities - access token verification."""

from src.nexus_projects.core.security.tokens import (
    TokenClaims,
    extract_bearer,
    verify_access_token,
)

__all__ = [
    "TokenClaims",
    "extract_bearer",
    "verify_access_token",
]
