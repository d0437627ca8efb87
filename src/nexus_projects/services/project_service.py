"""Project service - listing, creation and owner edits of projects."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.nexus_projects.core.config import get_settings
from src.nexus_projects.core.exceptions import Conflict, Forbidden
from src.nexus_projects.core.logging import get_logger
from src.nexus_projects.models import (
    ModerationStatus,
    ProgressStatus,
    Project,
    Role,
)
from src.nexus_projects.models.base import to_naive_utc, utc_now
from src.nexus_projects.repositories import (
    ApplicationRepository,
    MembershipRepository,
    ProjectRepository,
)
from src.nexus_projects.repositories.project import has_department_filter, text_search_filter
from src.nexus_projects.schemas.pagination import Page, PageParams
from src.nexus_projects.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate
from src.nexus_projects.services import policies
from src.nexus_projects.services.identity_service import Actor, snapshot_identity
from src.nexus_projects.services.notifier import EventType, Notifier

logger = get_logger(__name__)


def _any_match(values: list[str], wanted: list[str]) -> bool:
    have = {v.lower() for v in values}
    return any(w.lower() in have for w in wanted)


class ProjectService:
    """Project reads are filtered by the visibility rules; writes are owner-only."""

    def __init__(
        self,
        project_repo: ProjectRepository,
        application_repo: ApplicationRepository,
        membership_repo: MembershipRepository,
        session: AsyncSession,
        notifier: Notifier,
    ):
        self.project_repo = project_repo
        self.application_repo = application_repo
        self.membership_repo = membership_repo
        self.session = session
        self.notifier = notifier

    async def _to_read(self, actor: Actor, projects: list[Project]) -> list[ProjectRead]:
        """Serialize, adding the caller's own application status for students."""
        if not actor.is_student:
            return [ProjectRead.from_project(p) for p in projects]
        statuses = await self.application_repo.statuses_for_student(
            [p.id for p in projects], actor.id
        )
        return [
            ProjectRead.from_project(p, statuses.get(p.id), include_application=True)
            for p in projects
        ]

    async def list_projects(
        self,
        actor: Actor,
        params: PageParams,
        q: str | None = None,
        project_type: str | None = None,
        progress_status: str | None = None,
    ) -> Page[ProjectRead]:
        conditions = policies.project_listing_filters(actor)
        if q:
            conditions.append(text_search_filter(q, Project.title, Project.description))
        if project_type:
            conditions.append(Project.project_type == project_type)
        if progress_status:
            conditions.append(Project.progress_status == progress_status)

        projects, total = await self.project_repo.list_filtered(conditions, params)
        return Page.build(await self._to_read(actor, projects), params, total)

    async def marketplace(
        self,
        actor: Actor,
        params: PageParams,
        q: str | None = None,
        project_type: str | None = None,
        department: str | None = None,
        skills: list[str] | None = None,
        tags: list[str] | None = None,
    ) -> Page[ProjectRead]:
        """Open, approved projects a student can apply to.

        Skill and tag filters are any-match and case-insensitive.
        """
        if not actor.has_role(Role.STUDENT):
            raise Forbidden("Marketplace is available to students only")

        conditions = policies.project_listing_filters(actor)
        conditions.append(Project.moderation_status == ModerationStatus.APPROVED.value)
        conditions.append(policies.department_visibility_filter(actor.department))
        conditions.append(Project.progress_status == ProgressStatus.OPEN.value)
        if project_type:
            conditions.append(Project.project_type == project_type)
        if department:
            conditions.append(has_department_filter(department))
        if q:
            conditions.append(
                text_search_filter(q, Project.title, Project.description, Project.author_name)
            )

        if not skills and not tags:
            projects, total = await self.project_repo.list_filtered(conditions, params)
            return Page.build(await self._to_read(actor, projects), params, total)

        # JSON list membership is filtered in Python to stay portable across backends
        candidates = await self.project_repo.list_all(conditions)
        matched = [
            p
            for p in candidates
            if (not skills or _any_match(p.skills, skills)) and (not tags or _any_match(p.tags, tags))
        ]
        window = matched[params.offset : params.offset + params.limit]
        return Page.build(await self._to_read(actor, window), params, len(matched))

    async def list_mine(self, actor: Actor) -> list[ProjectRead]:
        """Faculty: own, non-archived projects in the current tenant."""
        if not actor.has_role(Role.FACULTY):
            raise Forbidden("Only faculty have authored projects")
        if not actor.tenant_id:
            return []
        projects = await self.project_repo.list_all(
            [
                Project.author_id == actor.id,
                Project.tenant_id == actor.tenant_id,
                Project.archived_at.is_(None),  # type: ignore[union-attr]
            ]
        )
        return [ProjectRead.from_project(p) for p in projects]

    async def list_accepted(self, actor: Actor) -> list[ProjectRead]:
        """Student: projects where the caller's application was accepted."""
        if not actor.has_role(Role.STUDENT):
            raise Forbidden("Only students have accepted projects")
        ids = await self.membership_repo.accepted_project_ids(actor.id)
        projects = [
            p
            for p in await self.project_repo.get_many(ids)
            if p.tenant_id == actor.tenant_id and p.archived_at is None
        ]
        projects.sort(key=lambda p: p.created_at, reverse=True)
        return await self._to_read(actor, projects)

    async def get_project(self, actor: Actor, project_id: UUID) -> ProjectRead:
        project = policies.ensure_can_view_project(
            actor, await self.project_repo.get_by_id(project_id)
        )
        return (await self._to_read(actor, [project]))[0]

    async def create_project(self, actor: Actor, data: ProjectCreate) -> ProjectRead:
        policies.ensure_can_create_project(actor)
        policies.validate_department_visibility(data.visible_to_all_depts, data.departments)

        author = snapshot_identity(actor)
        moderation = (
            ModerationStatus.PENDING_APPROVAL
            if get_settings().projects_require_approval
            else ModerationStatus.APPROVED
        )
        project = Project(
            tenant_id=actor.tenant_id,
            author_id=actor.id,
            author_name=author.name,
            author_avatar=author.avatar,
            title=data.title,
            description=data.description,
            project_duration=data.project_duration,
            skills=data.skills,
            tags=data.tags,
            requirements=data.requirements,
            outcomes=data.outcomes,
            visible_to_all_depts=data.visible_to_all_depts,
            project_type=data.project_type.value,
            max_students=data.max_students,
            deadline=to_naive_utc(data.deadline),
            moderation_status=moderation.value,
        )
        project.set_departments(data.departments)
        self.project_repo.add(project)
        await self.session.commit()

        logger.info(
            "Project created",
            project_id=str(project.id),
            tenant_id=project.tenant_id,
            moderation_status=project.moderation_status,
        )
        read = ProjectRead.from_project(project)
        if project.moderation_status == ModerationStatus.APPROVED.value:
            self.notifier.project_event(
                EventType.NEW_PROJECT, project, read.model_dump(mode="json")
            )
        return read

    async def update_project(
        self, actor: Actor, project_id: UUID, data: ProjectUpdate
    ) -> ProjectRead:
        project = policies.ensure_project_owner(
            actor, await self.project_repo.get_by_id(project_id)
        )
        changes = data.model_dump(exclude_unset=True)

        visible = changes.get("visible_to_all_depts", project.visible_to_all_depts)
        if visible is None:
            visible = project.visible_to_all_depts
        departments = changes.get("departments")
        if departments is None:
            departments = project.department_names
        policies.validate_department_visibility(visible, departments)

        if changes.get("max_students") is not None:
            # Capacity may not drop below the seats already taken
            if not await self.project_repo.set_max_students(project.id, changes["max_students"]):
                await self.session.rollback()
                raise Conflict("max_students cannot be lower than the accepted student count")
            project.max_students = changes["max_students"]

        if changes.get("progress_status") is not None:
            requested = changes["progress_status"].value
            resolved = policies.next_progress_status(project.progress_status, requested)
            if resolved != requested:
                logger.info(
                    "Ignoring backwards progress transition",
                    project_id=str(project.id),
                    current=project.progress_status,
                    requested=requested,
                )
            project.progress_status = resolved

        for field in ("title", "description", "skills", "tags", "requirements", "outcomes"):
            if changes.get(field) is not None:
                setattr(project, field, changes[field])
        if "project_duration" in changes:
            project.project_duration = changes["project_duration"]
        if changes.get("project_type") is not None:
            project.project_type = changes["project_type"].value
        if "deadline" in changes:
            project.deadline = to_naive_utc(changes["deadline"])
        project.visible_to_all_depts = visible
        if changes.get("departments") is not None:
            project.set_departments(changes["departments"])
        project.updated_at = utc_now()

        await self.session.commit()
        await self.project_repo.refresh(project)

        logger.info("Project updated", project_id=str(project.id), fields=sorted(changes))
        read = ProjectRead.from_project(project)
        self.notifier.project_event(
            EventType.PROJECT_UPDATED, project, read.model_dump(mode="json")
        )
        return read

    async def delete_project(self, actor: Actor, project_id: UUID) -> None:
        """Owner soft delete: the project is archived, not removed."""
        project = policies.ensure_project_owner(
            actor, await self.project_repo.get_by_id(project_id)
        )
        project.archived_at = utc_now()
        project.updated_at = project.archived_at
        await self.session.commit()

        logger.info("Project archived by owner", project_id=str(project.id))
        self.notifier.project_event(
            EventType.PROJECT_DELETED,
            project,
            {"id": str(project.id), "archived_at": project.archived_at.isoformat()},
        )
