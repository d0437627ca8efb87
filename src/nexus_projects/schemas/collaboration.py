"""Task, attachment and comment schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from src.nexus_projects.models.enums import TaskStatus


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    assigned_to_id: str | None = Field(default=None, max_length=100)
    status: TaskStatus = TaskStatus.TODO

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Task title cannot be empty or whitespace only")
        return v


class TaskUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    assigned_to_id: str | None = Field(default=None, max_length=100)
    status: TaskStatus | None = None


class TaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    title: str
    description: str | None
    assigned_to_id: str | None
    status: TaskStatus
    created_by_id: str
    created_at: datetime
    updated_at: datetime


class AttachmentCreate(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    file_url: HttpUrl
    file_type: str = Field(min_length=1, max_length=100)


class AttachmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    uploader_id: str
    uploader_name: str | None
    file_name: str
    file_url: str
    file_type: str
    created_at: datetime


class CommentCreate(BaseModel):
    body: str = Field(min_length=1, max_length=5000)
    task_id: UUID | None = None

    @field_validator("body")
    @classmethod
    def validate_body(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment cannot be empty or whitespace only")
        return v


class CommentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    task_id: UUID | None
    author_id: str
    author_name: str | None
    body: str
    created_at: datetime


class Deleted(BaseModel):
    success: bool = True
