"""Admin console schemas: moderation, overrides, analytics, audit trail."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.nexus_projects.models.enums import ApplicationStatus, ModerationAction
from src.nexus_projects.schemas.application import ApplicationRead
from src.nexus_projects.schemas.project import ProjectRead


class ModerateProjectRequest(BaseModel):
    action: ModerationAction
    reason: str | None = Field(default=None, max_length=1000)


class ModerateProjectResponse(BaseModel):
    message: str
    project: ProjectRead


class BulkModerateRequest(BaseModel):
    project_ids: list[UUID] = Field(min_length=1, max_length=50)
    action: ModerationAction
    reason: str | None = Field(default=None, max_length=1000)


class BulkModerateResponse(BaseModel):
    message: str
    processed_count: int
    skipped_count: int


class ApplicationOverrideRequest(BaseModel):
    status: ApplicationStatus
    reason: str | None = Field(default=None, max_length=1000)


class ApplicationOverrideResponse(BaseModel):
    message: str
    application: ApplicationRead


class AnalyticsMetrics(BaseModel):
    total_projects: int
    total_applications: int


class AnalyticsDistributions(BaseModel):
    projects_by_status: dict[str, int]
    projects_by_type: dict[str, int]
    applications_by_status: dict[str, int]


class AnalyticsResponse(BaseModel):
    metrics: AnalyticsMetrics
    distributions: AnalyticsDistributions


class AuditLogRead(BaseModel):
    """Audit log entry for API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: str | None
    actor_id: str
    actor_name: str | None
    action: str
    entity_type: str
    entity_id: UUID | None
    changes: dict[str, Any] | None
    reason: str | None
    ip_address: str | None
    user_agent: str | None
    request_id: str | None
    created_at: datetime
