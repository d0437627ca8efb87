"""Model exports.

Import from here: `from src.nexus_projects.models import Project, Application`
"""

from src.nexus_projects.models.application import Application
from src.nexus_projects.models.audit import AuditAction, AuditLog
from src.nexus_projects.models.collaboration import (
    ProjectAttachment,
    ProjectComment,
    ProjectTask,
)
from src.nexus_projects.models.enums import (
    ApplicationStatus,
    ModerationAction,
    ModerationStatus,
    ProgressStatus,
    ProjectType,
    Role,
    TaskStatus,
)
from src.nexus_projects.models.project import Project, ProjectDepartment

__all__ = [
    # Enums
    "ApplicationStatus",
    "AuditAction",
    "ModerationAction",
    "ModerationStatus",
    "ProgressStatus",
    "ProjectType",
    "Role",
    "TaskStatus",
    # Tables
    "Application",
    "AuditLog",
    "Project",
    "ProjectAttachment",
    "ProjectComment",
    "ProjectDepartment",
    "ProjectTask",
]
