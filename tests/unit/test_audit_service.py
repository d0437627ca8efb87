"""Unit tests for AuditService."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.nexus_projects.core.audit_context import clear_audit_context, set_audit_context
from src.nexus_projects.models import AuditAction, Role
from src.nexus_projects.services.audit_service import AuditService
from tests.helpers import make_actor

pytestmark = pytest.mark.unit


@pytest.fixture
def mock_audit_repo() -> MagicMock:
    repo = MagicMock()
    repo.add = MagicMock()
    return repo


@pytest.fixture
def mock_session() -> AsyncMock:
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def audit_service(mock_audit_repo, mock_session) -> AuditService:
    return AuditService(mock_audit_repo, mock_session)


@pytest.fixture
def admin():
    return make_actor(sub="admin-1", roles=(Role.HEAD_ADMIN,), name="Head Admin")


@pytest.fixture(autouse=True)
def _clean_context():
    clear_audit_context()
    yield
    clear_audit_context()


class TestRecord:
    async def test_record_persists_entry(self, audit_service, mock_audit_repo, mock_session, admin):
        entity_id = uuid4()

        log = await audit_service.record(
            admin,
            AuditAction.MODERATE_PROJECT_APPROVE,
            entity_type="project",
            entity_id=entity_id,
            tenant_id="college-a",
            old={"moderation_status": "PENDING_APPROVAL"},
            new={"moderation_status": "APPROVED"},
            reason="Looks good",
        )

        assert log is not None
        mock_audit_repo.add.assert_called_once_with(log)
        mock_session.commit.assert_awaited_once()
        assert log.actor_id == "admin-1"
        assert log.actor_name == "Head Admin"
        assert log.action == "MODERATE_PROJECT_APPROVE"
        assert log.entity_id == entity_id
        assert log.tenant_id == "college-a"
        assert log.changes == {
            "old": {"moderation_status": "PENDING_APPROVAL"},
            "new": {"moderation_status": "APPROVED"},
        }

    async def test_record_uses_request_context(self, audit_service, admin):
        set_audit_context(ip_address="10.0.0.1", user_agent="pytest", request_id="req-1")

        log = await audit_service.record(admin, AuditAction.UPDATE_APPLICATION_STATUS, "application")

        assert log.ip_address == "10.0.0.1"
        assert log.user_agent == "pytest"
        assert log.request_id == "req-1"

    async def test_record_without_context(self, audit_service, admin):
        log = await audit_service.record(admin, "CUSTOM_ACTION", "project")

        assert log.action == "CUSTOM_ACTION"
        assert log.ip_address is None
        assert log.changes == {"old": {}, "new": {}}

    async def test_long_reason_truncated(self, audit_service, admin):
        log = await audit_service.record(
            admin, AuditAction.MODERATE_PROJECT_REJECT, "project", reason="x" * 2000
        )
        assert len(log.reason) == 1000

    async def test_commit_failure_is_swallowed(self, audit_service, mock_session, admin):
        mock_session.commit.side_effect = RuntimeError("db down")

        result = await audit_service.record(admin, AuditAction.MODERATE_PROJECT_ARCHIVE, "project")

        assert result is None
        mock_session.rollback.assert_awaited_once()


class TestListLogs:
    async def test_delegates_to_repository(self, audit_service, mock_audit_repo):
        mock_audit_repo.list_logs = AsyncMock(return_value=([], 0))
        params = MagicMock()

        result = await audit_service.list_logs(params, "college-a", action="X")

        assert result == ([], 0)
        mock_audit_repo.list_logs.assert_awaited_once_with(
            params, tenant_id="college-a", action="X", actor_id=None, entity_id=None
        )
