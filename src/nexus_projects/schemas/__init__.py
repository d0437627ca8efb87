from src.nexus_projects.schemas.application import (
    ApplicationCreate,
    ApplicationDecision,
    ApplicationRead,
    ApplicationWithProject,
)
from src.nexus_projects.schemas.collaboration import (
    AttachmentCreate,
    AttachmentRead,
    CommentCreate,
    CommentRead,
    TaskCreate,
    TaskRead,
    TaskUpdate,
)
from src.nexus_projects.schemas.pagination import Page, PageParams
from src.nexus_projects.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate

__all__ = [
    # Applications
    "ApplicationCreate",
    "ApplicationDecision",
    "ApplicationRead",
    "ApplicationWithProject",
    # Collaboration
    "AttachmentCreate",
    "AttachmentRead",
    "CommentCreate",
    "CommentRead",
    "TaskCreate",
    "TaskRead",
    "TaskUpdate",
    # Pagination
    "Page",
    "PageParams",
    # Projects
    "ProjectCreate",
    "ProjectRead",
    "ProjectUpdate",
]
