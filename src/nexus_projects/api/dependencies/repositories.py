"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.nexus_projects.api.dependencies.db import DBSession
from src.nexus_projects.repositories import (
    ApplicationRepository,
    AttachmentRepository,
    CommentRepository,
    MembershipRepository,
    ProjectRepository,
    TaskRepository,
)


def get_project_repository(session: DBSession) -> ProjectRepository:
    return ProjectRepository(session)


def get_application_repository(session: DBSession) -> ApplicationRepository:
    return ApplicationRepository(session)


def get_membership_repository(session: DBSession) -> MembershipRepository:
    return MembershipRepository(session)


def get_task_repository(session: DBSession) -> TaskRepository:
    return TaskRepository(session)


def get_attachment_repository(session: DBSession) -> AttachmentRepository:
    return AttachmentRepository(session)


def get_comment_repository(session: DBSession) -> CommentRepository:
    return CommentRepository(session)


ProjectRepo = Annotated[ProjectRepository, Depends(get_project_repository)]
ApplicationRepo = Annotated[ApplicationRepository, Depends(get_application_repository)]
MembershipRepo = Annotated[MembershipRepository, Depends(get_membership_repository)]
TaskRepo = Annotated[TaskRepository, Depends(get_task_repository)]
AttachmentRepo = Annotated[AttachmentRepository, Depends(get_attachment_repository)]
CommentRepo = Annotated[CommentRepository, Depends(get_comment_repository)]
