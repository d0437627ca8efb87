"""Student application to a project."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Index, UniqueConstraint
from sqlmodel import Field, SQLModel

from src.nexus_projects.models.base import utc_now
from src.nexus_projects.models.enums import ApplicationStatus


class Application(SQLModel, table=True):
    """A student's request to join a project.

    At most one row per (project, student); the unique constraint backs the
    duplicate check done before insert.
    """

    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("project_id", "student_id", name="uq_applications_project_student"),
        Index("ix_applications_project_status", "project_id", "status"),
        Index("ix_applications_student", "student_id"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", ondelete="CASCADE")
    student_id: str = Field(max_length=100)
    student_name: str | None = Field(default=None, max_length=200)
    student_department: str | None = Field(default=None, max_length=100)
    status: str = Field(default=ApplicationStatus.PENDING.value, max_length=20)
    message: str | None = Field(default=None, max_length=2000)
    applied_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
