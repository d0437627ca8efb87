"""Unit tests for the moderation state machine."""

import pytest

from src.nexus_projects.core.exceptions import Conflict
from src.nexus_projects.models import AuditAction, ModerationAction, ModerationStatus
from src.nexus_projects.models.base import utc_now
from src.nexus_projects.services.admin_service import apply_moderation
from src.nexus_projects.services.notifier import EventType
from tests.factories import ProjectFactory

pytestmark = pytest.mark.unit


class TestApplyModeration:
    def test_approve_pending(self):
        project = ProjectFactory.pending()

        event = apply_moderation(project, ModerationAction.APPROVE, utc_now())

        assert project.moderation_status == ModerationStatus.APPROVED.value
        assert event == EventType.PROJECT_UPDATED

    def test_reject_pending(self):
        project = ProjectFactory.pending()
        apply_moderation(project, ModerationAction.REJECT, utc_now())
        assert project.moderation_status == ModerationStatus.REJECTED.value

    @pytest.mark.parametrize("action", [ModerationAction.APPROVE, ModerationAction.REJECT])
    def test_approve_or_reject_requires_pending(self, action):
        project = ProjectFactory.build(moderation_status=ModerationStatus.APPROVED.value)
        with pytest.raises(Conflict):
            apply_moderation(project, action, utc_now())

    def test_approve_archived_conflicts(self):
        project = ProjectFactory.pending(archived_at=utc_now())
        with pytest.raises(Conflict):
            apply_moderation(project, ModerationAction.APPROVE, utc_now())

    def test_archive_sets_timestamp(self):
        project = ProjectFactory.build()
        now = utc_now()

        event = apply_moderation(project, ModerationAction.ARCHIVE, now)

        assert project.archived_at == now
        assert project.updated_at == now
        assert event == EventType.PROJECT_ARCHIVED

    def test_archive_twice_conflicts(self):
        with pytest.raises(Conflict):
            apply_moderation(ProjectFactory.archived(), ModerationAction.ARCHIVE, utc_now())

    def test_reopen_returns_to_pending_and_unarchives(self):
        project = ProjectFactory.archived(moderation_status=ModerationStatus.REJECTED.value)

        apply_moderation(project, ModerationAction.REOPEN, utc_now())

        assert project.moderation_status == ModerationStatus.PENDING_APPROVAL.value
        assert project.archived_at is None


class TestAuditActionNames:
    def test_single_and_bulk_names(self):
        assert AuditAction.for_moderation("APPROVE") == AuditAction.MODERATE_PROJECT_APPROVE
        assert (
            AuditAction.for_moderation("ARCHIVE", bulk=True)
            == AuditAction.BULK_MODERATE_PROJECT_ARCHIVE
        )
