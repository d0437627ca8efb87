"""Maps entity mutations to real-time audiences and schedules delivery.

Delivery never blocks or fails the triggering request: events are handed
to the channel registry, which sends them in a background task.
"""

from enum import Enum
from typing import Any

from src.nexus_projects.core.logging import get_logger
from src.nexus_projects.core.realtime import (
    ChannelRegistry,
    Connection,
    ConnectionFilter,
    department_channel,
    faculty_applications_channel,
    get_registry,
    tenant_channel,
    user_channel,
)
from src.nexus_projects.models import ModerationStatus, Project

logger = get_logger(__name__)


class EventType(str, Enum):
    NEW_PROJECT = "new-project"
    PROJECT_UPDATED = "project-updated"
    PROJECT_DELETED = "project-deleted"
    PROJECT_ARCHIVED = "project-archived"
    NEW_APPLICATION = "new-application"
    APPLICATION_STATUS_CHANGED = "application-status-changed"
    APPLICATION_WITHDRAWN = "application-withdrawn"
    TASK_CREATED = "task-created"
    TASK_UPDATED = "task-updated"
    TASK_DELETED = "task-deleted"
    FILE_UPLOADED = "file-uploaded"
    COMMENT_ADDED = "comment-added"


def project_audience(project: Project) -> list[str]:
    """Tenant channel, plus each department channel for restricted projects."""
    channels = [tenant_channel(project.tenant_id)]
    if not project.visible_to_all_depts:
        channels.extend(department_channel(project.tenant_id, d) for d in project.department_names)
    return channels


def _sees_all(connection: Connection) -> bool:
    return connection.sees_all


def project_filter(project: Project) -> ConnectionFilter | None:
    """Per-connection filter for a project event; None lets every subscriber through.

    Projects that are not approved reach faculty and admins only. Restricted
    projects reach their listed departments plus faculty and admins.
    """
    if project.moderation_status != ModerationStatus.APPROVED.value:
        return _sees_all
    if project.visible_to_all_depts:
        return None
    wanted = frozenset(department_channel(project.tenant_id, d) for d in project.department_names)

    def accept(connection: Connection) -> bool:
        return connection.sees_all or not wanted.isdisjoint(connection.channels)

    return accept


def application_audience(project: Project, student_id: str, include_student: bool) -> list[str]:
    channels = [faculty_applications_channel(project.author_id)]
    if include_student:
        channels.append(user_channel(student_id))
    return channels


def member_audience(member_ids: list[str]) -> list[str]:
    return [user_channel(uid) for uid in dict.fromkeys(member_ids)]


class Notifier:
    """Only entry point business code uses to reach live connections."""

    def __init__(self, registry: ChannelRegistry | None = None):
        self.registry = registry or get_registry()

    def _emit(
        self,
        event: EventType,
        channels: list[str],
        payload: dict[str, Any],
        only: ConnectionFilter | None = None,
    ) -> None:
        message = {"type": event.value, **payload}
        try:
            self.registry.publish(channels, message, only=only)
        except Exception as e:
            # Never let a scheduling problem surface to the request
            logger.warning("Realtime publish failed", event_type=event.value, error=str(e))
            return
        logger.debug("Realtime event published", event_type=event.value, channels=channels)

    def project_event(self, event: EventType, project: Project, data: dict[str, Any]) -> None:
        self._emit(
            event,
            project_audience(project),
            {
                "project": data,
                "tenant_id": project.tenant_id,
                "departments": project.department_names,
                "visible_to_all_depts": project.visible_to_all_depts,
            },
            only=project_filter(project),
        )

    def application_event(
        self,
        event: EventType,
        project: Project,
        student_id: str,
        data: dict[str, Any],
    ) -> None:
        include_student = event == EventType.APPLICATION_STATUS_CHANGED
        self._emit(
            event,
            application_audience(project, student_id, include_student),
            {"application": data, "project_id": str(project.id), "tenant_id": project.tenant_id},
        )

    def collaboration_event(
        self,
        event: EventType,
        project: Project,
        member_ids: list[str],
        data: dict[str, Any],
    ) -> None:
        self._emit(
            event,
            member_audience(member_ids),
            {"project_id": str(project.id), "data": data},
        )
