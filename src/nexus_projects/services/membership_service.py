"""Membership gate for collaboration surfaces."""

from uuid import UUID

from src.nexus_projects.models import Project
from src.nexus_projects.repositories import MembershipRepository, ProjectRepository
from src.nexus_projects.services import policies
from src.nexus_projects.services.identity_service import Actor


class MembershipService:
    def __init__(self, membership_repo: MembershipRepository, project_repo: ProjectRepository):
        self.membership_repo = membership_repo
        self.project_repo = project_repo

    async def require_member(self, actor: Actor, project_id: UUID) -> Project:
        """Load a project the caller collaborates on.

        Raises:
            NotFound: Project is absent, archived or in another tenant.
            Forbidden: Caller is neither the author nor an accepted student.
        """
        project = policies.ensure_collaboration_project(
            actor, await self.project_repo.get_by_id(project_id)
        )
        await self.require_membership_of(actor, project)
        return project

    async def require_membership_of(self, actor: Actor, project: Project) -> None:
        accepted = project.author_id != actor.id and await self.membership_repo.is_member(
            project.id, actor.id
        )
        policies.ensure_member(actor, project, accepted)

    async def member_ids(self, project: Project) -> list[str]:
        return await self.membership_repo.member_ids(project)
