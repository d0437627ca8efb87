"""Integration test fixtures for database and HTTP client operations.

Each test gets a fresh file-backed SQLite database with the full schema, the
real application, and an identity resolver that trusts scope claims embedded
in test tokens (no identity or profile service calls).
"""

from collections.abc import AsyncGenerator, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from src.nexus_projects import models  # noqa: F401 - registers tables on the metadata
from src.nexus_projects.api.dependencies import get_identity_resolver
from src.nexus_projects.core import redis as redis_core
from src.nexus_projects.core.config import get_settings
from src.nexus_projects.core.db import engine as engine_module
from src.nexus_projects.core.db import get_session
from src.nexus_projects.core.health import reset_health_cache
from src.nexus_projects.core.shutdown import request_tracker
from src.nexus_projects.main import create_app
from src.nexus_projects.models import Role
from src.nexus_projects.services.identity_service import IdentityResolver, TokenClaimsStrategy
from tests.helpers import Persona, persona


@pytest.fixture(autouse=True)
def _reset_process_state() -> Generator[None, None, None]:
    """Module-level singletons must not leak between tests."""
    redis_core.reset_redis_state()
    request_tracker.reset()
    reset_health_cache()
    yield
    redis_core.reset_redis_state()
    request_tracker.reset()
    reset_health_cache()


@pytest.fixture
def database_url(tmp_path, monkeypatch: pytest.MonkeyPatch) -> Generator[str, None, None]:
    """Create the schema in a temp SQLite file and point the app at it."""
    path = tmp_path / "nexus_projects.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    SQLModel.metadata.create_all(sync_engine)
    sync_engine.dispose()

    url = f"sqlite+aiosqlite:///{path}"
    monkeypatch.setenv("DATABASE_URL", url)
    get_settings.cache_clear()
    engine_module._engine = None
    yield url
    engine_module._engine = None
    get_settings.cache_clear()


@pytest.fixture
def app(database_url: str) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_identity_resolver] = lambda: IdentityResolver(
        strategies=[TokenClaimsStrategy()]
    )
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app (no lifespan)."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sync_client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Sync client with lifespan, needed for websocket tests."""
    with TestClient(app) as tc:
        yield tc


@pytest.fixture
async def db_session(database_url: str) -> AsyncGenerator[AsyncSession, None]:
    """Session on the app's engine. Tests must commit explicitly."""
    async with get_session() as session:
        yield session



@pytest.fixture
def faculty() -> Persona:
    """Faculty F: tenant c1, CS."""
    return persona("faculty-f", Role.FACULTY, "c1", "CS", name="Dr. F")


@pytest.fixture
def other_faculty() -> Persona:
    return persona("faculty-g", Role.FACULTY, "c1", "ME", name="Dr. G")


@pytest.fixture
def student_cs() -> Persona:
    """Student A: tenant c1, CS."""
    return persona("student-a", Role.STUDENT, "c1", "CS", name="Ada")


@pytest.fixture
def student_ee() -> Persona:
    """Student B: tenant c1, EE."""
    return persona("student-b", Role.STUDENT, "c1", "EE", name="Ben")


@pytest.fixture
def student_other_tenant() -> Persona:
    """Student C: tenant c2, CS."""
    return persona("student-c", Role.STUDENT, "c2", "CS", name="Cai")


@pytest.fixture
def head_admin() -> Persona:
    return persona("admin-h", Role.HEAD_ADMIN, "c1", "Administration", name="Head")


@pytest.fixture
def other_head_admin() -> Persona:
    return persona("admin-k", Role.HEAD_ADMIN, "c2", "Administration", name="Other Head")


@pytest.fixture
def super_admin() -> Persona:
    return persona("admin-s", Role.SUPER_ADMIN, "c0", "Platform", name="Super")

