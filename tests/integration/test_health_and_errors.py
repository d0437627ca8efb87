"""Health, metrics, security headers and request_id in error bodies."""

from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from src.nexus_projects.core.shutdown import request_tracker
from src.nexus_projects.repositories import ProjectRepository

pytestmark = pytest.mark.integration


class TestHealth:
    async def test_healthy_without_redis(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "healthy"
        assert body["redis"] == "not_configured"
        assert body["cached"] is False
        assert body["realtime"]["connections"] == 0

    async def test_second_call_is_cached(self, client: AsyncClient):
        await client.get("/health")
        response = await client.get("/health")
        assert response.json()["cached"] is True

    async def test_draining_returns_503(self, client: AsyncClient):
        await request_tracker.start_shutdown()

        response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "draining"

    async def test_metrics_exposed(self, client: AsyncClient):
        response = await client.get("/metrics")
        assert response.status_code == 200


class TestErrorBodies:
    async def test_not_found_includes_request_id(self, client: AsyncClient):
        response = await client.get("/v1/nonexistent-endpoint")

        assert response.status_code == 404
        body = response.json()
        assert body["request_id"]
        assert body["request_id"] == response.headers["X-Request-ID"]

    async def test_incoming_request_id_is_echoed(self, client: AsyncClient):
        request_id = str(uuid4())

        response = await client.get("/v1/projects", headers={"X-Request-ID": request_id})

        assert response.status_code == 401
        assert response.json()["request_id"] == request_id
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_domain_errors_carry_request_id(self, client: AsyncClient, student_cs):
        response = await client.get(f"/v1/projects/{uuid4()}", headers=student_cs.headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Project not found"
        assert response.json()["request_id"]

    async def test_database_outage_returns_503(
        self, client: AsyncClient, faculty, monkeypatch: pytest.MonkeyPatch
    ):
        async def unreachable(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))

        monkeypatch.setattr(ProjectRepository, "list_filtered", unreachable)

        response = await client.get("/v1/projects", headers=faculty.headers)

        assert response.status_code == 503
        assert response.json()["detail"] == "Database unavailable"
        assert response.json()["request_id"]

    async def test_different_requests_have_different_ids(self, client: AsyncClient):
        first = await client.get("/v1/endpoint1")
        second = await client.get("/v1/endpoint2")
        assert first.json()["request_id"] != second.json()["request_id"]


class TestSecurityHeaders:
    async def test_headers_on_every_response(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "Content-Security-Policy" in response.headers

    async def test_per_user_listings_not_cached(self, client: AsyncClient, faculty):
        response = await client.get("/v1/projects/mine", headers=faculty.headers)
        assert response.headers["Cache-Control"] == "no-store"
