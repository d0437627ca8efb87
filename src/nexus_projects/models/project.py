"""Project model - tenant-owned entity."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Column, Index, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from src.nexus_projects.models.base import json_type, utc_now
from src.nexus_projects.models.enums import ModerationStatus, ProgressStatus, ProjectType


class ProjectDepartment(SQLModel, table=True):
    """One department a department-restricted project is visible to."""

    __tablename__ = "project_departments"
    __table_args__ = (
        UniqueConstraint("project_id", "name", name="uq_project_departments_project_name"),
        Index("ix_project_departments_name", "name"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", ondelete="CASCADE", index=True)
    name: str = Field(max_length=100)


class Project(SQLModel, table=True):
    """Project posted by a faculty member within one tenant (college).

    ``accepted_count`` is maintained only by the application lifecycle with
    conditional updates, so it always equals the number of ACCEPTED
    applications and never exceeds ``max_students``.
    """

    __tablename__ = "projects"
    __table_args__ = (
        Index("ix_projects_tenant_created", "tenant_id", "created_at"),
        Index("ix_projects_tenant_moderation", "tenant_id", "moderation_status"),
        Index("ix_projects_author", "author_id"),
        CheckConstraint(
            "accepted_count >= 0 AND accepted_count <= max_students",
            name="ck_projects_accepted_within_capacity",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    tenant_id: str = Field(max_length=100)
    author_id: str = Field(max_length=100)
    author_name: str | None = Field(default=None, max_length=200)
    author_avatar: str | None = Field(default=None, max_length=500)

    title: str = Field(max_length=200)
    description: str = Field(max_length=10000)
    project_duration: str | None = Field(default=None, max_length=100)
    skills: list[str] = Field(default_factory=list, sa_column=Column(json_type(), nullable=False))
    tags: list[str] = Field(default_factory=list, sa_column=Column(json_type(), nullable=False))
    requirements: list[str] = Field(
        default_factory=list, sa_column=Column(json_type(), nullable=False)
    )
    outcomes: list[str] = Field(default_factory=list, sa_column=Column(json_type(), nullable=False))

    visible_to_all_depts: bool = Field(default=True)
    project_type: str = Field(default=ProjectType.PROJECT.value, max_length=20)
    max_students: int = Field(default=1, ge=1)
    accepted_count: int = Field(default=0)
    deadline: datetime | None = Field(default=None)

    moderation_status: str = Field(default=ModerationStatus.APPROVED.value, max_length=20)
    progress_status: str = Field(default=ProgressStatus.OPEN.value, max_length=20)
    archived_at: datetime | None = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    departments: list[ProjectDepartment] = Relationship(
        sa_relationship_kwargs={"lazy": "selectin", "cascade": "all, delete-orphan"}
    )

    @property
    def department_names(self) -> list[str]:
        return sorted(d.name for d in self.departments)

    def set_departments(self, names: list[str]) -> None:
        """Replace the department list, keeping rows for names that stay."""
        wanted = list(dict.fromkeys(n for n in names if n))
        kept = [d for d in self.departments if d.name in wanted]
        existing = {d.name for d in kept}
        self.departments = kept + [
            ProjectDepartment(project_id=self.id, name=n) for n in wanted if n not in existing
        ]

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None
