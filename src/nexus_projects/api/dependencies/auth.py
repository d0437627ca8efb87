"""Authentication dependencies: verified token plus resolved scope."""

from typing import Annotated

from fastapi import Depends, Header

from src.nexus_projects.core.logging import bind_actor_context
from src.nexus_projects.core.security import extract_bearer, verify_access_token
from src.nexus_projects.services import policies
from src.nexus_projects.services.identity_service import Actor, IdentityResolver


def get_identity_resolver() -> IdentityResolver:
    """Resolver with the default strategy chain. Overridden in tests."""
    return IdentityResolver()


IdentityResolverDep = Annotated[IdentityResolver, Depends(get_identity_resolver)]


async def authenticate(authorization: str | None, resolver: IdentityResolver) -> Actor:
    """Verify ``authorization`` and resolve the caller's scope.

    Shared by HTTP dependencies and the WebSocket handshake.

    Raises:
        Unauthorized: Missing, malformed or invalid credential.
    """
    claims = verify_access_token(extract_bearer(authorization))
    scope = await resolver.resolve(claims, authorization)
    actor = Actor(claims=claims, scope=scope)
    bind_actor_context(actor.id, actor.tenant_id, sorted(actor.roles))
    return actor


async def get_current_actor(
    resolver: IdentityResolverDep,
    authorization: Annotated[str | None, Header()] = None,
) -> Actor:
    return await authenticate(authorization, resolver)


CurrentActor = Annotated[Actor, Depends(get_current_actor)]


async def require_admin(actor: CurrentActor) -> Actor:
    """Require HEAD_ADMIN or SUPER_ADMIN."""
    policies.ensure_admin(actor)
    return actor


AdminActor = Annotated[Actor, Depends(require_admin)]
