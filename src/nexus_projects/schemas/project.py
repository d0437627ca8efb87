"""Project schemas for API request/response."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.nexus_projects.models import Project
from src.nexus_projects.models.enums import (
    ApplicationStatus,
    ModerationStatus,
    ProgressStatus,
    ProjectType,
)


def _clean_list(values: list[str]) -> list[str]:
    return list(dict.fromkeys(v.strip() for v in values if v and v.strip()))


class ProjectCreate(BaseModel):
    """Schema for creating a project."""

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=10000)
    project_duration: str | None = Field(default=None, max_length=100)
    skills: list[str] = Field(default_factory=list, max_length=50)
    departments: list[str] = Field(default_factory=list, max_length=50)
    visible_to_all_depts: bool = False
    project_type: ProjectType = ProjectType.PROJECT
    max_students: int = Field(ge=1, le=1000)
    deadline: datetime | None = None
    tags: list[str] = Field(default_factory=list, max_length=50)
    requirements: list[str] = Field(default_factory=list, max_length=50)
    outcomes: list[str] = Field(default_factory=list, max_length=50)

    @field_validator("title", "description")
    @classmethod
    def validate_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Must not be empty or whitespace only")
        return v

    @field_validator("skills", "departments", "tags", "requirements", "outcomes")
    @classmethod
    def validate_lists(cls, v: list[str]) -> list[str]:
        return _clean_list(v)


class ProjectUpdate(BaseModel):
    """Partial update by the project owner. Unset fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=10000)
    project_duration: str | None = Field(default=None, max_length=100)
    skills: list[str] | None = Field(default=None, max_length=50)
    departments: list[str] | None = Field(default=None, max_length=50)
    visible_to_all_depts: bool | None = None
    project_type: ProjectType | None = None
    max_students: int | None = Field(default=None, ge=1, le=1000)
    deadline: datetime | None = None
    tags: list[str] | None = Field(default=None, max_length=50)
    requirements: list[str] | None = Field(default=None, max_length=50)
    outcomes: list[str] | None = Field(default=None, max_length=50)
    progress_status: ProgressStatus | None = None

    @field_validator("title", "description")
    @classmethod
    def validate_text(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Must not be empty or whitespace only")
        return v

    @field_validator("skills", "departments", "tags", "requirements", "outcomes")
    @classmethod
    def validate_lists(cls, v: list[str] | None) -> list[str] | None:
        return _clean_list(v) if v is not None else None


class ProjectRead(BaseModel):
    """Schema for reading a project."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: str
    author_id: str
    author_name: str | None
    author_avatar: str | None
    title: str
    description: str
    project_duration: str | None
    skills: list[str]
    departments: list[str]
    visible_to_all_depts: bool
    project_type: ProjectType
    max_students: int
    deadline: datetime | None
    tags: list[str]
    requirements: list[str]
    outcomes: list[str]
    moderation_status: ModerationStatus
    progress_status: ProgressStatus
    archived_at: datetime | None
    created_at: datetime
    updated_at: datetime
    accepted_students_count: int = 0

    # Present only for student callers
    has_applied: bool | None = None
    my_application_status: ApplicationStatus | None = None

    @classmethod
    def from_project(
        cls,
        project: Project,
        my_application_status: str | None = None,
        include_application: bool = False,
    ) -> "ProjectRead":
        data = {name: getattr(project, name) for name in _COLUMN_FIELDS}
        read = cls(
            **data,
            departments=project.department_names,
            accepted_students_count=project.accepted_count,
        )
        if include_application:
            read.has_applied = my_application_status is not None
            read.my_application_status = (
                ApplicationStatus(my_application_status) if my_application_status else None
            )
        return read


class AdminProjectRead(ProjectRead):
    """Project with per-status application counts for the admin console."""

    application_count: int = 0
    pending_applications: int = 0
    accepted_applications: int = 0
    rejected_applications: int = 0


class ProjectDeleted(BaseModel):
    success: bool = True


_DERIVED_FIELDS = {"departments", "accepted_students_count", "has_applied", "my_application_status"}
_COLUMN_FIELDS = [name for name in ProjectRead.model_fields if name not in _DERIVED_FIELDS]
