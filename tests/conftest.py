"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database and HTTP client fixtures are in tests/integration/conftest.py.
"""

import os

# Settings are read from the environment, so configure it before any app imports
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("JWT_VERIFICATION_KEY", "test-signing-key-not-for-production-use-0123456789")
os.environ.setdefault("JWT_ALGORITHMS", '["HS256"]')
os.environ.setdefault("JWT_ISSUER", "nexus-auth")
os.environ.setdefault("JWT_AUDIENCE", "nexus")
os.environ.setdefault("AUTH_BASE_URL", "http://auth.test")
os.environ.setdefault("PROFILE_BASE_URL", "http://profile.test")
os.environ.pop("REDIS_URL", None)

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator, Callable, Generator
from types import ModuleType

import pytest
import structlog
from fakeredis import aioredis as fakeredis_aio
from redis.asyncio import Redis
from structlog.testing import CapturingLogger

from src.nexus_projects.core import realtime
from src.nexus_projects.core import redis as redis_core
from src.nexus_projects.core.config import get_settings

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _fresh_registry() -> Generator[None, None, None]:
    """Each test gets its own realtime registry."""
    realtime.reset_registry()
    yield
    realtime.reset_registry()


# --- Redis Test Fixtures (shared) ---


@pytest.fixture
async def fake_redis() -> AsyncGenerator[Redis, None]:
    """In-memory Redis that behaves like a real server."""
    client = fakeredis_aio.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
async def mock_redis(
    fake_redis: Redis, monkeypatch: pytest.MonkeyPatch
) -> AsyncGenerator[Redis, None]:
    """Patches get_redis() to return the fakeredis client.

    Patches both core.redis and core.cache so the fake is used everywhere.
    """
    redis_core.reset_redis_state()

    async def _get_fake_redis() -> Redis:
        return fake_redis

    monkeypatch.setattr("src.nexus_projects.core.redis.get_redis", _get_fake_redis)
    monkeypatch.setattr("src.nexus_projects.core.cache.get_redis", _get_fake_redis)
    yield fake_redis
    redis_core.reset_redis_state()


@pytest.fixture
async def mock_redis_unavailable(monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[None, None]:
    """Patches get_redis() to return None (Redis not configured or down)."""
    redis_core.reset_redis_state()

    async def _get_none() -> None:
        return None

    monkeypatch.setattr("src.nexus_projects.core.redis.get_redis", _get_none)
    monkeypatch.setattr("src.nexus_projects.core.cache.get_redis", _get_none)
    yield
    redis_core.reset_redis_state()


# --- Logging ---


@pytest.fixture
def capture_logger(monkeypatch: pytest.MonkeyPatch) -> Callable[[ModuleType], CapturingLogger]:
    """Swap a module's ``logger`` for a stdlib-style bound logger that records calls.

    Uses the same wrapper class as production so keyword clashes with the
    event argument raise here too.
    """

    def _capture(module: ModuleType) -> CapturingLogger:
        cap = CapturingLogger()
        monkeypatch.setattr(
            module,
            "logger",
            structlog.wrap_logger(
                cap, processors=[], wrapper_class=structlog.stdlib.BoundLogger
            ),
        )
        return cap

    return _capture
