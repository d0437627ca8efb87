"""Visibility and authorization rules.

Everything here is pure: decisions are made only from the actor and the
entities passed in. Row filters return SQLAlchemy conditions that callers AND
into their queries; single-entity checks raise the typed errors from
``core.exceptions``.

``NotFound`` is raised where the caller must not learn that an entity
exists. ``Forbidden`` is raised where the entity is already known to the
caller (collaboration surfaces, admin scope).
"""

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import ColumnElement, exists, false, or_, select

from src.nexus_projects.core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from src.nexus_projects.models import (
    Application,
    ApplicationStatus,
    ModerationStatus,
    ProgressStatus,
    Project,
    ProjectAttachment,
    ProjectDepartment,
    ProjectTask,
    Role,
)
from src.nexus_projects.services.identity_service import Actor

# Fields an assigned, non-author member may change on a task
MEMBER_TASK_FIELDS = frozenset({"status"})


def sees_all_moderation_states(actor: Actor) -> bool:
    """Faculty and admins see every moderation state within their tenant."""
    return actor.is_faculty or actor.is_admin


# --- Row filters ---------------------------------------------------------


def department_visibility_filter(department: str | None) -> ColumnElement[bool]:
    if not department:
        return Project.visible_to_all_depts == True  # noqa: E712
    return or_(
        Project.visible_to_all_depts == True,  # noqa: E712
        exists(
            select(ProjectDepartment.id).where(
                ProjectDepartment.project_id == Project.id,
                ProjectDepartment.name == department,
            )
        ),
    )


def project_listing_filters(actor: Actor) -> list[ColumnElement[bool]]:
    """Conditions restricting a project listing to what ``actor`` may see.

    A missing tenant yields a condition that matches nothing.
    """
    if not actor.tenant_id:
        return [false()]

    conditions: list[ColumnElement[bool]] = [
        Project.tenant_id == actor.tenant_id,
        Project.archived_at.is_(None),  # type: ignore[union-attr]
    ]
    if not sees_all_moderation_states(actor):
        conditions.append(Project.moderation_status == ModerationStatus.APPROVED.value)
        conditions.append(department_visibility_filter(actor.department))
    return conditions


def admin_tenant_filter(actor: Actor) -> str | None:
    """Effective tenant for admin queries; None means every tenant.

    Raises:
        Forbidden: The actor is not an admin, or is a HEAD_ADMIN without a tenant.
    """
    ensure_admin(actor)
    if actor.is_super_admin:
        return None
    if not actor.tenant_id:
        raise Forbidden("Admin profile has no college affiliation")
    return actor.tenant_id


# --- Projects ------------------------------------------------------------


def is_department_visible(project: Project, department: str | None) -> bool:
    if project.visible_to_all_depts:
        return True
    return bool(department) and department in project.department_names


def can_view_project(actor: Actor, project: Project) -> bool:
    if not actor.tenant_id or project.tenant_id != actor.tenant_id:
        return False
    if project.archived_at is not None:
        return False
    if sees_all_moderation_states(actor):
        return True
    return project.moderation_status == ModerationStatus.APPROVED.value and is_department_visible(
        project, actor.department
    )


def ensure_can_view_project(actor: Actor, project: Project | None) -> Project:
    if project is None or not can_view_project(actor, project):
        raise NotFound("Project not found")
    return project


def ensure_can_create_project(actor: Actor) -> None:
    if not actor.has_role(Role.FACULTY):
        raise Forbidden("Only faculty can create projects")
    if not actor.tenant_id:
        raise ValidationFailed(
            "Your profile is incomplete. Contact an admin to set your college affiliation.",
            fields=["tenant_id"],
        )


def validate_department_visibility(visible_to_all_depts: bool, departments: Iterable[str]) -> None:
    if not visible_to_all_depts and not any(departments):
        raise ValidationFailed(
            "Specify at least one department when visible_to_all_depts is false",
            fields=["departments"],
        )


def ensure_project_owner(actor: Actor, project: Project | None) -> Project:
    """Owner-only actions. Non-owners get NotFound, as the original lookup is owner-scoped."""
    if (
        project is None
        or project.archived_at is not None
        or not actor.tenant_id
        or project.tenant_id != actor.tenant_id
        or project.author_id != actor.id
    ):
        raise NotFound("Project not found")
    return project


def next_progress_status(current: str, requested: str) -> str:
    """Apply the monotonic OPEN -> IN_PROGRESS -> COMPLETED rule.

    A request to move backwards leaves the current status unchanged.
    """
    if ProgressStatus(requested).rank < ProgressStatus(current).rank:
        return current
    return requested


# --- Applications --------------------------------------------------------


def ensure_can_apply(
    actor: Actor,
    project: Project | None,
    existing_application: Application | None,
    now: datetime,
) -> Project:
    if not actor.has_role(Role.STUDENT):
        raise Forbidden("Only students can apply to projects")
    if not actor.tenant_id:
        raise ValidationFailed("College affiliation is required to apply", fields=["tenant_id"])
    if (
        project is None
        or project.tenant_id != actor.tenant_id
        or project.archived_at is not None
        or project.moderation_status != ModerationStatus.APPROVED.value
        or not is_department_visible(project, actor.department)
    ):
        raise NotFound("Project not found")
    if project.progress_status == ProgressStatus.COMPLETED.value:
        raise Conflict("Project already completed")
    if project.deadline is not None and now > project.deadline:
        raise Conflict("Application deadline has passed")
    if project.accepted_count >= project.max_students:
        raise Conflict("Project capacity reached")
    if existing_application is not None:
        raise Conflict("Already applied")
    return project


def ensure_can_decide_application(
    actor: Actor,
    project: Project | None,
    application: Application | None,
    new_status: str,
) -> tuple[Project, Application]:
    """Author (or in-scope admin) decision on a pending application.

    Non-PENDING applications never change through this path, and nothing
    moves back to PENDING here.
    """
    if application is None or project is None:
        raise NotFound("Application not found")
    is_author = (
        bool(actor.tenant_id)
        and project.tenant_id == actor.tenant_id
        and project.author_id == actor.id
    )
    if not is_author and not (actor.is_admin and can_access_tenant(actor, project.tenant_id)):
        raise NotFound("Application not found")
    if new_status not in (ApplicationStatus.ACCEPTED.value, ApplicationStatus.REJECTED.value):
        raise Conflict("Applications can only be accepted or rejected")
    if application.status != ApplicationStatus.PENDING.value:
        raise Conflict("Only pending applications can be updated")
    return project, application


def ensure_can_withdraw(actor: Actor, application: Application | None) -> Application:
    if application is None:
        raise NotFound("Application not found")
    if application.student_id != actor.id:
        raise Forbidden("Only the applicant can withdraw an application")
    if application.status != ApplicationStatus.PENDING.value:
        raise Conflict("Only pending applications can be withdrawn")
    return application


# --- Collaboration -------------------------------------------------------


def ensure_collaboration_project(actor: Actor, project: Project | None) -> Project:
    """Project lookup for member-gated surfaces: tenant-scoped and not archived."""
    if (
        project is None
        or not actor.tenant_id
        or project.tenant_id != actor.tenant_id
        or project.archived_at is not None
    ):
        raise NotFound("Project not found")
    return project


def is_member(actor: Actor, project: Project, is_accepted_applicant: bool) -> bool:
    return project.author_id == actor.id or is_accepted_applicant


def ensure_member(actor: Actor, project: Project, is_accepted_applicant: bool) -> None:
    if not is_member(actor, project, is_accepted_applicant):
        raise Forbidden("Only project members can access this")


def ensure_project_author(actor: Actor, project: Project) -> None:
    if project.author_id != actor.id:
        raise Forbidden("Only the project author can do this")


def task_update_scope(actor: Actor, project: Project, task: ProjectTask, changes: set[str]) -> None:
    """The author may change any field; the assignee may change ``status`` only."""
    if project.author_id == actor.id:
        return
    if task.assigned_to_id == actor.id:
        if not changes or not changes <= MEMBER_TASK_FIELDS:
            raise Forbidden("Assigned members can only update the status of their tasks")
        return
    raise Forbidden("Only the project author or the assignee can update this task")


def ensure_can_delete_attachment(
    actor: Actor, project: Project, attachment: ProjectAttachment
) -> None:
    if attachment.uploader_id != actor.id and project.author_id != actor.id:
        raise Forbidden("Only the uploader or the project author can delete this attachment")


# --- Admin ---------------------------------------------------------------


def ensure_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise Forbidden("Admin role required")


def can_access_tenant(actor: Actor, tenant_id: str | None) -> bool:
    if actor.is_super_admin:
        return True
    return actor.has_role(Role.HEAD_ADMIN) and bool(actor.tenant_id) and actor.tenant_id == tenant_id


def ensure_admin_scope(actor: Actor, tenant_id: str | None) -> None:
    """Single-entity admin actions outside the admin's tenant are denied, never filtered."""
    ensure_admin(actor)
    if not can_access_tenant(actor, tenant_id):
        raise Forbidden("Access denied to this college's data")
