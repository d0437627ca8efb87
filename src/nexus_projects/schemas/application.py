"""Application schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.nexus_projects.models.enums import ApplicationStatus
from src.nexus_projects.schemas.project import ProjectRead


class ApplicationCreate(BaseModel):
    message: str | None = Field(default=None, max_length=2000)


class ApplicationDecision(BaseModel):
    """Owner decision on a pending application."""

    status: ApplicationStatus


class ApplicationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    student_id: str
    student_name: str | None
    student_department: str | None
    status: ApplicationStatus
    message: str | None
    applied_at: datetime
    updated_at: datetime


class ApplicationWithProject(ApplicationRead):
    project: ProjectRead


class ApplicationProjectSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    author_name: str | None
    project_type: str
    tenant_id: str


class AdminApplicationRead(ApplicationRead):
    project: ApplicationProjectSummary


class ApplicationWithdrawn(BaseModel):
    success: bool = True
