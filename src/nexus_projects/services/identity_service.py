"""Resolution of a caller's authorization scope from a verified token.

Scope is resolved by an ordered list of strategies. Each strategy returns a
complete Scope, or None meaning "incomplete, try the next one". Results
from every tier after the cache are written through to the cache.
"""

from dataclasses import asdict, dataclass
from typing import Any, Protocol

import httpx

from src.nexus_projects.core import cache
from src.nexus_projects.core.config import get_settings
from src.nexus_projects.core.exceptions import Unauthorized
from src.nexus_projects.core.logging import get_logger
from src.nexus_projects.core.security import TokenClaims
from src.nexus_projects.models.enums import Role

logger = get_logger(__name__)


@dataclass(frozen=True)
class Scope:
    """Identity attributes that parameterize every authorization decision."""

    tenant_id: str | None = None
    department: str | None = None
    display_name: str | None = None
    avatar: str | None = None
    year: int | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.tenant_id and self.department)

    def to_cache(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "Scope":
        """Build a Scope from either our cached shape or the provider's camelCase shape."""
        year = data.get("year")
        try:
            year = int(year) if year is not None else None
        except (TypeError, ValueError):
            year = None
        return cls(
            tenant_id=_str_or_none(data.get("tenant_id") or data.get("collegeId")),
            department=_str_or_none(data.get("department")),
            display_name=_str_or_none(data.get("display_name") or data.get("displayName")),
            avatar=_str_or_none(
                data.get("avatar") or data.get("avatarUrl") or data.get("picture")
            ),
            year=year,
        )


def _str_or_none(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True)
class Actor:
    """Verified claims plus resolved scope: the input to every policy check."""

    claims: TokenClaims
    scope: Scope

    @property
    def id(self) -> str:
        return self.claims.sub

    @property
    def roles(self) -> frozenset[str]:
        return self.claims.roles

    @property
    def tenant_id(self) -> str | None:
        return self.scope.tenant_id

    @property
    def department(self) -> str | None:
        return self.scope.department

    @property
    def display_name(self) -> str | None:
        return self.scope.display_name or self.claims.name

    def has_role(self, *roles: Role) -> bool:
        return self.claims.has_role(*roles)

    @property
    def is_student(self) -> bool:
        return self.has_role(Role.STUDENT)

    @property
    def is_faculty(self) -> bool:
        return self.has_role(Role.FACULTY)

    @property
    def is_admin(self) -> bool:
        return self.has_role(Role.HEAD_ADMIN, Role.SUPER_ADMIN)

    @property
    def is_super_admin(self) -> bool:
        return self.has_role(Role.SUPER_ADMIN)


@dataclass(frozen=True)
class DisplaySnapshot:
    name: str | None
    avatar: str | None
    department: str | None


def snapshot_identity(actor: Actor) -> DisplaySnapshot:
    """Capture the display fields stored alongside rows written by ``actor``.

    Every denormalized name/avatar/department column is filled from here, so
    switching to live lookups only touches this function.
    """
    return DisplaySnapshot(
        name=actor.display_name,
        avatar=actor.scope.avatar or actor.claims.avatar,
        department=actor.scope.department,
    )


@dataclass
class ResolutionContext:
    claims: TokenClaims
    authorization: str | None
    http: httpx.AsyncClient


class ScopeStrategy(Protocol):
    name: str
    needs_credential: bool
    write_through: bool
    accepts_partial: bool

    async def resolve(self, ctx: ResolutionContext) -> Scope | None: ...


class CachedScopeStrategy:
    name = "cache"
    needs_credential = False
    write_through = False
    accepts_partial = False

    async def resolve(self, ctx: ResolutionContext) -> Scope | None:
        data = await cache.get_json(cache.user_scope_key(ctx.claims.sub))
        if data is None:
            return None
        scope = Scope.from_mapping(data)
        return scope if scope.is_complete else None


class TokenClaimsStrategy:
    """Scope embedded by the provider in freshly issued tokens."""

    name = "token"
    needs_credential = False
    write_through = True
    accepts_partial = False

    async def resolve(self, ctx: ResolutionContext) -> Scope | None:
        raw = ctx.claims.raw
        profile = raw.get("profile")
        source = dict(profile) if isinstance(profile, dict) else {}
        for key in ("collegeId", "department", "year"):
            source.setdefault(key, raw.get(key))
        source.setdefault("displayName", ctx.claims.name)
        source.setdefault("avatarUrl", ctx.claims.avatar)
        scope = Scope.from_mapping(source)
        return scope if scope.is_complete else None


class IdentityServiceStrategy:
    """Auth service lookup: ``GET /v1/users/{sub}/identity``."""

    name = "identity_service"
    needs_credential = True
    write_through = True
    accepts_partial = False

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    async def resolve(self, ctx: ResolutionContext) -> Scope | None:
        url = f"{self.base_url}/v1/users/{ctx.claims.sub}/identity"
        response = await ctx.http.get(url, headers={"Authorization": ctx.authorization or ""})
        response.raise_for_status()
        body = response.json()
        data = body.get("identity", body) if isinstance(body, dict) else {}
        if not isinstance(data, dict):
            return None
        scope = Scope.from_mapping(data)
        if scope.display_name is None and ctx.claims.name:
            scope = Scope(**{**scope.to_cache(), "display_name": ctx.claims.name})
        return scope if scope.is_complete else None


class ProfileServiceStrategy:
    """Profile service lookup: ``GET /v1/profile/me``.

    Last network tier, so whatever it returns is accepted even if incomplete.
    """

    name = "profile_service"
    needs_credential = True
    write_through = True
    accepts_partial = True

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    async def resolve(self, ctx: ResolutionContext) -> Scope | None:
        response = await ctx.http.get(
            f"{self.base_url}/v1/profile/me",
            headers={"Authorization": ctx.authorization or ""},
        )
        response.raise_for_status()
        body = response.json()
        profile = body.get("profile") if isinstance(body, dict) else None
        data = dict(profile) if isinstance(profile, dict) else {}
        data["displayName"] = ctx.claims.name or data.get("displayName")
        return Scope.from_mapping(data)


def default_strategies() -> list[ScopeStrategy]:
    settings = get_settings()
    return [
        CachedScopeStrategy(),
        TokenClaimsStrategy(),
        IdentityServiceStrategy(settings.auth_base_url),
        ProfileServiceStrategy(settings.profile_base_url),
    ]


class IdentityResolver:
    """Runs the strategy chain and never fails for missing profile data."""

    def __init__(
        self,
        strategies: list[ScopeStrategy] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.strategies = strategies if strategies is not None else default_strategies()
        self._http = http_client

    async def resolve(self, claims: TokenClaims, authorization: str | None) -> Scope:
        """Resolve the scope for verified claims.

        Raises:
            Unauthorized: A network tier is needed but no credential was sent.
        """
        if self._http is not None:
            return await self._run(claims, authorization, self._http)
        timeout = get_settings().identity_request_timeout_seconds
        async with httpx.AsyncClient(timeout=timeout) as http:
            return await self._run(claims, authorization, http)

    async def _run(
        self, claims: TokenClaims, authorization: str | None, http: httpx.AsyncClient
    ) -> Scope:
        ctx = ResolutionContext(claims=claims, authorization=authorization, http=http)

        for strategy in self.strategies:
            if strategy.needs_credential and not authorization:
                raise Unauthorized("Missing Authorization header for profile lookup")
            try:
                scope = await strategy.resolve(ctx)
            except (httpx.HTTPError, ValueError) as e:
                # Network, HTTP status or JSON decode failures fall through to the next tier
                logger.warning(
                    "Scope strategy failed",
                    strategy=strategy.name,
                    user_id=claims.sub,
                    error=str(e),
                )
                continue

            if scope is None or not (scope.is_complete or strategy.accepts_partial):
                continue

            logger.debug("Scope resolved", strategy=strategy.name, user_id=claims.sub)
            if strategy.write_through:
                await cache.set_json(
                    cache.user_scope_key(claims.sub),
                    scope.to_cache(),
                    get_settings().scope_cache_ttl_seconds,
                )
            return scope

        logger.info("Scope unresolved, using minimal scope", user_id=claims.sub)
        return Scope(display_name=claims.name)
