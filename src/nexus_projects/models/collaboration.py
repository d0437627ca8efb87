"""Member-gated collaboration entities: tasks, attachments, comments."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from src.nexus_projects.models.base import utc_now
from src.nexus_projects.models.enums import TaskStatus


class ProjectTask(SQLModel, table=True):
    __tablename__ = "project_tasks"
    __table_args__ = (Index("ix_project_tasks_project_created", "project_id", "created_at"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", ondelete="CASCADE")
    title: str = Field(max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    assigned_to_id: str | None = Field(default=None, max_length=100)  # ACCEPTED applicant
    status: str = Field(default=TaskStatus.TODO.value, max_length=20)
    created_by_id: str = Field(max_length=100)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ProjectAttachment(SQLModel, table=True):
    """Metadata for a file stored elsewhere; only the URL is kept."""

    __tablename__ = "project_attachments"
    __table_args__ = (
        Index("ix_project_attachments_project_created", "project_id", "created_at"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", ondelete="CASCADE")
    uploader_id: str = Field(max_length=100)
    uploader_name: str | None = Field(default=None, max_length=200)
    file_name: str = Field(max_length=255)
    file_url: str = Field(max_length=2000)
    file_type: str = Field(max_length=100)
    created_at: datetime = Field(default_factory=utc_now)


class ProjectComment(SQLModel, table=True):
    __tablename__ = "project_comments"
    __table_args__ = (
        Index("ix_project_comments_project_created", "project_id", "created_at"),
        Index("ix_project_comments_task", "task_id"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", ondelete="CASCADE")
    task_id: UUID | None = Field(default=None, foreign_key="project_tasks.id", ondelete="SET NULL")
    author_id: str = Field(max_length=100)
    author_name: str | None = Field(default=None, max_length=200)
    body: str = Field(max_length=5000)
    created_at: datetime = Field(default_factory=utc_now)
