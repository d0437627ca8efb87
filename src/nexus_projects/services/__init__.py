from src.nexus_projects.services.admin_service import AdminService
from src.nexus_projects.services.application_service import ApplicationService
from src.nexus_projects.services.audit_service import AuditService
from src.nexus_projects.services.collaboration_service import CollaborationService
from src.nexus_projects.services.membership_service import MembershipService
from src.nexus_projects.services.project_service import ProjectService

__all__ = [
    "AdminService",
    "ApplicationService",
    "AuditService",
    "CollaborationService",
    "MembershipService",
    "ProjectService",
]
