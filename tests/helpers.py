"""Test helpers: token minting and in-memory actors."""

import time
from dataclasses import dataclass
from typing import Any

from httpx import AsyncClient
from jose import jwt

from src.nexus_projects.core.config import get_settings
from src.nexus_projects.core.security import TokenClaims
from src.nexus_projects.models import Role
from src.nexus_projects.services.identity_service import Actor, Scope


def mint_token(
    sub: str,
    roles: list[Role] | list[str],
    tenant_id: str | None = None,
    department: str | None = None,
    name: str | None = None,
    expires_in: int = 3600,
    **extra: Any,
) -> str:
    """Sign a token the way the identity provider would.

    Scope claims (collegeId, department) are embedded so the token tier of
    the identity resolver can complete without network lookups.
    """
    settings = get_settings()
    now = int(time.time())
    payload: dict[str, Any] = {
        "sub": sub,
        "roles": [r.value if isinstance(r, Role) else r for r in roles],
        "name": name or f"User {sub}",
        "iat": now,
        "exp": now + expires_in,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }
    if tenant_id:
        payload["collegeId"] = tenant_id
    if department:
        payload["department"] = department
    payload.update(extra)
    return jwt.encode(payload, settings.jwt_verification_key, algorithm=settings.jwt_algorithms[0])


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def make_actor(
    sub: str = "user-1",
    roles: tuple[Role, ...] = (Role.STUDENT,),
    tenant_id: str | None = "college-a",
    department: str | None = "CS",
    name: str | None = None,
) -> Actor:
    """Build an Actor directly, bypassing token verification."""
    claims = TokenClaims(
        sub=sub,
        roles=frozenset(r.value for r in roles),
        name=name or f"User {sub}",
    )
    return Actor(
        claims=claims,
        scope=Scope(tenant_id=tenant_id, department=department, display_name=claims.name),
    )


class FakeSocket:
    """Stand-in for a websocket that records what it was sent."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    async def send_json(self, data: Any) -> None:
        self.sent.append(data)


class BrokenSocket:
    async def send_json(self, data: Any) -> None:
        raise RuntimeError("socket closed")


# --- HTTP personas and request helpers ---


@dataclass(frozen=True)
class Persona:
    id: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return auth_header(self.token)


def persona(
    sub: str,
    role: Role,
    tenant_id: str | None,
    department: str | None,
    name: str | None = None,
) -> Persona:
    return Persona(
        id=sub,
        token=mint_token(sub, [role], tenant_id=tenant_id, department=department, name=name),
    )


def project_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": "Graph neural networks for traffic",
        "description": "Forecast congestion from sensor graphs",
        "visible_to_all_depts": True,
        "max_students": 2,
        "skills": ["python", "pytorch"],
        "tags": ["ml"],
    }
    payload.update(overrides)
    return payload


async def create_project(client: AsyncClient, author: Persona, **overrides: Any) -> dict[str, Any]:
    response = await client.post(
        "/v1/projects", json=project_payload(**overrides), headers=author.headers
    )
    assert response.status_code == 201, response.text
    return response.json()


async def apply(client: AsyncClient, student: Persona, project_id: str) -> dict[str, Any]:
    response = await client.post(
        f"/v1/projects/{project_id}/applications",
        json={"message": "I'd like to join"},
        headers=student.headers,
    )
    assert response.status_code == 201, response.text
    return response.json()
