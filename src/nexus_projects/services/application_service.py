"""Application lifecycle: apply, decide, withdraw.

Accepting runs as one transaction of two conditional updates: take a seat
on the project (only while ``accepted_count < max_students``) and move the
application out of its expected status. If either touches zero rows the
transaction is rolled back and the caller gets a Conflict, so the accepted
count can never exceed capacity under concurrent accepts.
"""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.nexus_projects.core.exceptions import Conflict, Forbidden, NotFound
from src.nexus_projects.core.logging import get_logger
from src.nexus_projects.models import Application, ApplicationStatus, Project, Role
from src.nexus_projects.models.base import utc_now
from src.nexus_projects.repositories import (
    ApplicationRepository,
    ProjectRepository,
    TaskRepository,
)
from src.nexus_projects.schemas.application import (
    ApplicationCreate,
    ApplicationRead,
    ApplicationWithProject,
)
from src.nexus_projects.schemas.pagination import Page, PageParams
from src.nexus_projects.schemas.project import ProjectRead
from src.nexus_projects.services import policies
from src.nexus_projects.services.identity_service import Actor, snapshot_identity
from src.nexus_projects.services.notifier import EventType, Notifier

logger = get_logger(__name__)


async def change_application_status(
    session: AsyncSession,
    project_repo: ProjectRepository,
    application_repo: ApplicationRepository,
    application: Application,
    new_status: str,
) -> None:
    """Move ``application`` from its current status to ``new_status`` and commit.

    Seats are taken when entering ACCEPTED and released when leaving it, in
    the same transaction as the status change. Leaving ACCEPTED also ends
    membership, so the student's task assignments on the project are cleared.

    Raises:
        Conflict: Capacity is exhausted, or the application changed concurrently.
    """
    expected = application.status
    accepted = ApplicationStatus.ACCEPTED.value

    if new_status == accepted and expected != accepted:
        if not await project_repo.try_reserve_seat(application.project_id):
            await session.rollback()
            raise Conflict("Project capacity reached")
    elif expected == accepted and new_status != accepted:
        await project_repo.release_seat(application.project_id)
        unassigned = await TaskRepository(session).unassign(
            application.project_id, application.student_id
        )
        if unassigned:
            logger.info(
                "Cleared task assignments for former member",
                project_id=str(application.project_id),
                student_id=application.student_id,
                tasks=unassigned,
            )

    if not await application_repo.transition(application.id, expected, new_status):
        await session.rollback()
        raise Conflict("Application was modified concurrently")

    await session.commit()
    await session.refresh(application)


class ApplicationService:
    """Student applications and the project owner's decisions on them."""

    def __init__(
        self,
        application_repo: ApplicationRepository,
        project_repo: ProjectRepository,
        session: AsyncSession,
        notifier: Notifier,
    ):
        self.application_repo = application_repo
        self.project_repo = project_repo
        self.session = session
        self.notifier = notifier

    async def apply(
        self, actor: Actor, project_id: UUID, data: ApplicationCreate
    ) -> ApplicationRead:
        """Create a PENDING application.

        Raises:
            Forbidden: Caller is not a student.
            NotFound: Project is not visible to the caller.
            Conflict: Completed, past deadline, full, or already applied.
        """
        project = await self.project_repo.get_by_id(project_id)
        existing = (
            await self.application_repo.get_for_student(project_id, actor.id) if project else None
        )
        project = policies.ensure_can_apply(actor, project, existing, utc_now())

        student = snapshot_identity(actor)
        application = Application(
            project_id=project.id,
            student_id=actor.id,
            student_name=student.name,
            student_department=student.department,
            status=ApplicationStatus.PENDING.value,
            message=data.message,
        )
        self.application_repo.add(application)
        try:
            await self.session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent apply from the same student
            await self.session.rollback()
            raise Conflict("Already applied") from e

        logger.info(
            "Application submitted",
            application_id=str(application.id),
            project_id=str(project.id),
        )
        read = ApplicationRead.model_validate(application)
        self.notifier.application_event(
            EventType.NEW_APPLICATION, project, actor.id, read.model_dump(mode="json")
        )
        return read

    async def list_for_project(
        self, actor: Actor, project_id: UUID, status: str | None = None
    ) -> list[ApplicationRead]:
        project = policies.ensure_project_owner(
            actor, await self.project_repo.get_by_id(project_id)
        )
        applications = await self.application_repo.list_for_project(project.id, status)
        return [ApplicationRead.model_validate(a) for a in applications]

    async def list_mine(
        self, actor: Actor, params: PageParams, status: str | None = None
    ) -> Page[ApplicationWithProject]:
        if not actor.has_role(Role.STUDENT):
            raise Forbidden("Only students have applications")
        if not actor.tenant_id:
            return Page.build([], params, 0)
        rows, total = await self.application_repo.list_for_student(
            actor.id, actor.tenant_id, params, status
        )
        items = [
            ApplicationWithProject(
                **ApplicationRead.model_validate(application).model_dump(),
                project=ProjectRead.from_project(project),
            )
            for application, project in rows
        ]
        return Page.build(items, params, total)

    async def decide(self, actor: Actor, application_id: UUID, new_status: str) -> ApplicationRead:
        """Accept or reject a PENDING application as the project author."""
        row = await self.application_repo.get_with_project(application_id)
        application, project = row if row else (None, None)
        project, application = policies.ensure_can_decide_application(
            actor, project, application, new_status
        )

        await change_application_status(
            self.session, self.project_repo, self.application_repo, application, new_status
        )

        logger.info(
            "Application decided",
            application_id=str(application.id),
            project_id=str(project.id),
            status=new_status,
        )
        read = ApplicationRead.model_validate(application)
        self._notify_status_change(project, application, read)
        return read

    async def withdraw(self, actor: Actor, application_id: UUID) -> None:
        """Delete the caller's own PENDING application."""
        row = await self.application_repo.get_with_project(application_id)
        if row is None:
            raise NotFound("Application not found")
        application, project = row
        if project.tenant_id != actor.tenant_id and application.student_id != actor.id:
            raise NotFound("Application not found")
        policies.ensure_can_withdraw(actor, application)

        snapshot = ApplicationRead.model_validate(application).model_dump(mode="json")
        if not await self.application_repo.delete_if_status(
            application.id, ApplicationStatus.PENDING.value
        ):
            await self.session.rollback()
            raise Conflict("Only pending applications can be withdrawn")
        await self.session.commit()

        logger.info("Application withdrawn", application_id=str(application.id))
        self.notifier.application_event(
            EventType.APPLICATION_WITHDRAWN, project, application.student_id, snapshot
        )

    def _notify_status_change(
        self, project: Project, application: Application, read: ApplicationRead
    ) -> None:
        self.notifier.application_event(
            EventType.APPLICATION_STATUS_CHANGED,
            project,
            application.student_id,
            read.model_dump(mode="json"),
        )
