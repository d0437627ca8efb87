"""Tasks, attachments and comments on a project, gated on membership."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.nexus_projects.core.exceptions import NotFound, ValidationFailed
from src.nexus_projects.core.logging import get_logger
from src.nexus_projects.models import (
    Project,
    ProjectAttachment,
    ProjectComment,
    ProjectTask,
)
from src.nexus_projects.models.base import utc_now
from src.nexus_projects.repositories import (
    ApplicationRepository,
    AttachmentRepository,
    CommentRepository,
    ProjectRepository,
    TaskRepository,
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
from src.nexus_projects.services import policies
from src.nexus_projects.services.identity_service import Actor, snapshot_identity
from src.nexus_projects.services.membership_service import MembershipService
from src.nexus_projects.services.notifier import EventType, Notifier

logger = get_logger(__name__)


class CollaborationService:
    """Every operation first checks that the caller is a project member."""

    def __init__(
        self,
        membership: MembershipService,
        project_repo: ProjectRepository,
        application_repo: ApplicationRepository,
        task_repo: TaskRepository,
        attachment_repo: AttachmentRepository,
        comment_repo: CommentRepository,
        session: AsyncSession,
        notifier: Notifier,
    ):
        self.membership = membership
        self.project_repo = project_repo
        self.application_repo = application_repo
        self.task_repo = task_repo
        self.attachment_repo = attachment_repo
        self.comment_repo = comment_repo
        self.session = session
        self.notifier = notifier

    async def _notify(self, event: EventType, project: Project, data: dict) -> None:
        members = await self.membership.member_ids(project)
        self.notifier.collaboration_event(event, project, members, data)

    async def _ensure_assignable(self, project: Project, assignee: str | None) -> None:
        if assignee and not await self.application_repo.is_accepted(project.id, assignee):
            raise ValidationFailed(
                "assigned_to_id must be an accepted member of the project",
                fields=["assigned_to_id"],
            )

    async def _load_task(self, actor: Actor, task_id: UUID) -> tuple[ProjectTask, Project]:
        task = await self.task_repo.get_by_id(task_id)
        project = await self.project_repo.get_by_id(task.project_id) if task else None
        if task is None or project is None:
            raise NotFound("Task not found")
        try:
            policies.ensure_collaboration_project(actor, project)
        except NotFound as e:
            raise NotFound("Task not found") from e
        await self.membership.require_membership_of(actor, project)
        return task, project

    # --- Tasks ---

    async def list_tasks(self, actor: Actor, project_id: UUID) -> list[TaskRead]:
        project = await self.membership.require_member(actor, project_id)
        return [TaskRead.model_validate(t) for t in await self.task_repo.list_for_project(project.id)]

    async def create_task(self, actor: Actor, project_id: UUID, data: TaskCreate) -> TaskRead:
        project = await self.membership.require_member(actor, project_id)
        policies.ensure_project_author(actor, project)
        await self._ensure_assignable(project, data.assigned_to_id)

        task = ProjectTask(
            project_id=project.id,
            title=data.title,
            description=data.description,
            assigned_to_id=data.assigned_to_id,
            status=data.status.value,
            created_by_id=actor.id,
        )
        self.task_repo.add(task)
        await self.session.commit()

        logger.info("Task created", task_id=str(task.id), project_id=str(project.id))
        read = TaskRead.model_validate(task)
        await self._notify(EventType.TASK_CREATED, project, read.model_dump(mode="json"))
        return read

    async def update_task(self, actor: Actor, task_id: UUID, data: TaskUpdate) -> TaskRead:
        """Author may change any field; the assignee may change only ``status``."""
        task, project = await self._load_task(actor, task_id)
        changes = data.model_dump(exclude_unset=True)
        policies.task_update_scope(actor, project, task, set(changes))

        if "assigned_to_id" in changes:
            await self._ensure_assignable(project, changes["assigned_to_id"])
            task.assigned_to_id = changes["assigned_to_id"]
        if changes.get("title") is not None:
            task.title = changes["title"].strip()
        if "description" in changes:
            task.description = changes["description"]
        if changes.get("status") is not None:
            task.status = changes["status"].value
        task.updated_at = utc_now()
        await self.session.commit()

        logger.info("Task updated", task_id=str(task.id), fields=sorted(changes))
        read = TaskRead.model_validate(task)
        await self._notify(EventType.TASK_UPDATED, project, read.model_dump(mode="json"))
        return read

    async def delete_task(self, actor: Actor, task_id: UUID) -> None:
        task, project = await self._load_task(actor, task_id)
        policies.ensure_project_author(actor, project)
        await self.task_repo.delete(task)
        await self.session.commit()

        logger.info("Task deleted", task_id=str(task_id), project_id=str(project.id))
        await self._notify(EventType.TASK_DELETED, project, {"id": str(task_id)})

    # --- Attachments ---

    async def list_attachments(self, actor: Actor, project_id: UUID) -> list[AttachmentRead]:
        project = await self.membership.require_member(actor, project_id)
        attachments = await self.attachment_repo.list_for_project(project.id)
        return [AttachmentRead.model_validate(a) for a in attachments]

    async def add_attachment(
        self, actor: Actor, project_id: UUID, data: AttachmentCreate
    ) -> AttachmentRead:
        project = await self.membership.require_member(actor, project_id)
        attachment = ProjectAttachment(
            project_id=project.id,
            uploader_id=actor.id,
            uploader_name=snapshot_identity(actor).name,
            file_name=data.file_name,
            file_url=str(data.file_url),
            file_type=data.file_type,
        )
        self.attachment_repo.add(attachment)
        await self.session.commit()

        logger.info("Attachment added", attachment_id=str(attachment.id))
        read = AttachmentRead.model_validate(attachment)
        await self._notify(EventType.FILE_UPLOADED, project, read.model_dump(mode="json"))
        return read

    async def delete_attachment(self, actor: Actor, attachment_id: UUID) -> None:
        attachment = await self.attachment_repo.get_by_id(attachment_id)
        project = (
            await self.project_repo.get_by_id(attachment.project_id) if attachment else None
        )
        if attachment is None or project is None:
            raise NotFound("Attachment not found")
        try:
            policies.ensure_collaboration_project(actor, project)
        except NotFound as e:
            raise NotFound("Attachment not found") from e
        await self.membership.require_membership_of(actor, project)
        policies.ensure_can_delete_attachment(actor, project, attachment)

        await self.attachment_repo.delete(attachment)
        await self.session.commit()
        logger.info("Attachment deleted", attachment_id=str(attachment_id))

    # --- Comments ---

    async def list_comments(
        self, actor: Actor, project_id: UUID, task_id: UUID | None = None
    ) -> list[CommentRead]:
        project = await self.membership.require_member(actor, project_id)
        comments = await self.comment_repo.list_for_project(project.id, task_id)
        return [CommentRead.model_validate(c) for c in comments]

    async def add_comment(self, actor: Actor, project_id: UUID, data: CommentCreate) -> CommentRead:
        project = await self.membership.require_member(actor, project_id)
        if data.task_id is not None:
            task = await self.task_repo.get_by_id(data.task_id)
            if task is None or task.project_id != project.id:
                raise ValidationFailed("task_id does not belong to this project", fields=["task_id"])

        comment = ProjectComment(
            project_id=project.id,
            task_id=data.task_id,
            author_id=actor.id,
            author_name=snapshot_identity(actor).name,
            body=data.body,
        )
        self.comment_repo.add(comment)
        await self.session.commit()

        logger.info("Comment added", comment_id=str(comment.id), project_id=str(project.id))
        read = CommentRead.model_validate(comment)
        await self._notify(EventType.COMMENT_ADDED, project, read.model_dump(mode="json"))
        return read
