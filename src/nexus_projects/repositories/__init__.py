"""Repository layer - data access abstraction."""

from src.nexus_projects.repositories.application import ApplicationRepository
from src.nexus_projects.repositories.audit import AuditLogRepository
from src.nexus_projects.repositories.base import BaseRepository
from src.nexus_projects.repositories.collaboration import (
    AttachmentRepository,
    CommentRepository,
    TaskRepository,
)
from src.nexus_projects.repositories.membership import MembershipRepository
from src.nexus_projects.repositories.project import ProjectRepository

__all__ = [
    "ApplicationRepository",
    "AttachmentRepository",
    "AuditLogRepository",
    "BaseRepository",
    "CommentRepository",
    "MembershipRepository",
    "ProjectRepository",
    "TaskRepository",
]
