"""FastAPI dependency injection definitions.

Re-exports all dependencies so routers import from one place.
"""

# Auth
from src.nexus_projects.api.dependencies.auth import (
    AdminActor,
    CurrentActor,
    IdentityResolverDep,
    authenticate,
    get_current_actor,
    get_identity_resolver,
    require_admin,
)

# Database
from src.nexus_projects.api.dependencies.db import DBSession, get_db_session

# Pagination
from src.nexus_projects.api.dependencies.pagination import Pagination, get_page_params

# Services
from src.nexus_projects.api.dependencies.services import (
    AdminServiceDep,
    ApplicationServiceDep,
    AuditServiceDep,
    CollaborationServiceDep,
    NotifierDep,
    ProjectServiceDep,
    get_admin_service,
    get_application_service,
    get_audit_service,
    get_collaboration_service,
    get_notifier,
    get_project_service,
)

__all__ = [
    # Database
    "DBSession",
    "get_db_session",
    # Auth
    "AdminActor",
    "CurrentActor",
    "IdentityResolverDep",
    "authenticate",
    "get_current_actor",
    "get_identity_resolver",
    "require_admin",
    # Pagination
    "Pagination",
    "get_page_params",
    # Services
    "AdminServiceDep",
    "ApplicationServiceDep",
    "AuditServiceDep",
    "CollaborationServiceDep",
    "NotifierDep",
    "ProjectServiceDep",
    "get_admin_service",
    "get_application_service",
    "get_audit_service",
    "get_collaboration_service",
    "get_notifier",
    "get_project_service",
]
