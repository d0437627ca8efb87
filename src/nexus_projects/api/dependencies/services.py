"""Service factory dependencies."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.nexus_projects.api.dependencies.db import DBSession
from src.nexus_projects.api.dependencies.repositories import (
    ApplicationRepo,
    AttachmentRepo,
    CommentRepo,
    MembershipRepo,
    ProjectRepo,
    TaskRepo,
)
from src.nexus_projects.core.db import get_engine
from src.nexus_projects.repositories import AuditLogRepository
from src.nexus_projects.services.admin_service import AdminService
from src.nexus_projects.services.application_service import ApplicationService
from src.nexus_projects.services.audit_service import AuditService
from src.nexus_projects.services.collaboration_service import CollaborationService
from src.nexus_projects.services.membership_service import MembershipService
from src.nexus_projects.services.notifier import Notifier
from src.nexus_projects.services.project_service import ProjectService


def get_notifier() -> Notifier:
    return Notifier()


NotifierDep = Annotated[Notifier, Depends(get_notifier)]


async def get_audit_service() -> AsyncGenerator[AuditService, None]:
    """Get audit service with its own isolated session.

    Uses a dedicated session that commits independently from business transactions.
    This ensures audit logs are preserved even if the main transaction rolls back.
    """
    async with AsyncSession(get_engine(), expire_on_commit=False) as session:
        yield AuditService(AuditLogRepository(session), session)


AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]


def get_project_service(
    project_repo: ProjectRepo,
    application_repo: ApplicationRepo,
    membership_repo: MembershipRepo,
    session: DBSession,
    notifier: NotifierDep,
) -> ProjectService:
    return ProjectService(project_repo, application_repo, membership_repo, session, notifier)


def get_application_service(
    application_repo: ApplicationRepo,
    project_repo: ProjectRepo,
    session: DBSession,
    notifier: NotifierDep,
) -> ApplicationService:
    return ApplicationService(application_repo, project_repo, session, notifier)


def get_membership_service(
    membership_repo: MembershipRepo, project_repo: ProjectRepo
) -> MembershipService:
    return MembershipService(membership_repo, project_repo)


def get_collaboration_service(
    membership: Annotated[MembershipService, Depends(get_membership_service)],
    project_repo: ProjectRepo,
    application_repo: ApplicationRepo,
    task_repo: TaskRepo,
    attachment_repo: AttachmentRepo,
    comment_repo: CommentRepo,
    session: DBSession,
    notifier: NotifierDep,
) -> CollaborationService:
    return CollaborationService(
        membership,
        project_repo,
        application_repo,
        task_repo,
        attachment_repo,
        comment_repo,
        session,
        notifier,
    )


def get_admin_service(
    project_repo: ProjectRepo,
    application_repo: ApplicationRepo,
    session: DBSession,
    audit_service: AuditServiceDep,
    notifier: NotifierDep,
) -> AdminService:
    return AdminService(project_repo, application_repo, session, audit_service, notifier)


ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
ApplicationServiceDep = Annotated[ApplicationService, Depends(get_application_service)]
CollaborationServiceDep = Annotated[CollaborationService, Depends(get_collaboration_service)]
AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]
