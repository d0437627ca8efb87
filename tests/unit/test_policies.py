"""Unit tests for visibility and authorization rules."""

from datetime import timedelta

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from src.nexus_projects.core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from src.nexus_projects.models import (
    ApplicationStatus,
    ModerationStatus,
    ProgressStatus,
    Role,
)
from src.nexus_projects.models.base import utc_now
from src.nexus_projects.services import policies
from tests.factories import ApplicationFactory, ProjectFactory, TaskFactory
from tests.helpers import make_actor

pytestmark = pytest.mark.unit

DEPARTMENTS = ["CS", "EE", "ME", "CE"]
TENANTS = ["college-a", "college-b"]


class TestCanViewProject:
    """Department and moderation visibility for single projects."""

    def test_student_sees_all_department_project(self):
        project = ProjectFactory.build()
        assert policies.can_view_project(make_actor(department="EE"), project)

    def test_restricted_project_visible_to_listed_department(self):
        project = ProjectFactory.restricted(["CS"])
        assert policies.can_view_project(make_actor(department="CS"), project)

    def test_restricted_project_hidden_from_other_department(self):
        project = ProjectFactory.restricted(["CS"])
        assert not policies.can_view_project(make_actor(department="EE"), project)

    def test_restricted_project_hidden_without_department(self):
        project = ProjectFactory.restricted(["CS"])
        assert not policies.can_view_project(make_actor(department=None), project)

    def test_other_tenant_never_visible(self):
        project = ProjectFactory.build(tenant_id="college-b")
        faculty = make_actor(roles=(Role.FACULTY,), tenant_id="college-a")
        assert not policies.can_view_project(faculty, project)

    def test_missing_tenant_sees_nothing(self):
        assert not policies.can_view_project(make_actor(tenant_id=None), ProjectFactory.build())

    def test_student_does_not_see_pending_project(self):
        project = ProjectFactory.pending()
        assert not policies.can_view_project(make_actor(), project)

    def test_faculty_sees_pending_and_restricted_projects(self):
        project = ProjectFactory.restricted(
            ["ME"], moderation_status=ModerationStatus.PENDING_APPROVAL.value
        )
        faculty = make_actor(sub="faculty-2", roles=(Role.FACULTY,), department="CS")
        assert policies.can_view_project(faculty, project)

    def test_archived_project_hidden_from_everyone(self):
        project = ProjectFactory.archived()
        assert not policies.can_view_project(make_actor(), project)
        assert not policies.can_view_project(make_actor(roles=(Role.HEAD_ADMIN,)), project)

    def test_ensure_can_view_conceals_with_not_found(self):
        with pytest.raises(NotFound):
            policies.ensure_can_view_project(make_actor(), ProjectFactory.pending())
        with pytest.raises(NotFound):
            policies.ensure_can_view_project(make_actor(), None)


class TestCanViewProperties:
    """Invariants that hold for every combination of actor and project."""

    @settings(max_examples=200)
    @given(
        actor_tenant=st.sampled_from(TENANTS),
        project_tenant=st.sampled_from(TENANTS),
        department=st.one_of(st.none(), st.sampled_from(DEPARTMENTS)),
        restricted_to=st.lists(st.sampled_from(DEPARTMENTS), max_size=3),
        visible_to_all=st.booleans(),
        moderation=st.sampled_from(list(ModerationStatus)),
        archived=st.booleans(),
        role=st.sampled_from(list(Role)),
    )
    def test_visibility_invariants(
        self,
        actor_tenant,
        project_tenant,
        department,
        restricted_to,
        visible_to_all,
        moderation,
        archived,
        role,
    ):
        project = ProjectFactory.build(
            tenant_id=project_tenant,
            visible_to_all_depts=visible_to_all,
            moderation_status=moderation.value,
            archived_at=utc_now() if archived else None,
        )
        project.set_departments(restricted_to)
        actor = make_actor(roles=(role,), tenant_id=actor_tenant, department=department)

        visible = policies.can_view_project(actor, project)

        if project_tenant != actor_tenant or archived:
            assert not visible
        if role == Role.STUDENT and moderation != ModerationStatus.APPROVED:
            assert not visible
        if role == Role.STUDENT and not visible_to_all and department not in restricted_to:
            assert not visible
        if (
            project_tenant == actor_tenant
            and not archived
            and moderation == ModerationStatus.APPROVED
            and visible_to_all
        ):
            assert visible


class TestProjectRules:
    def test_only_faculty_may_create(self):
        with pytest.raises(Forbidden):
            policies.ensure_can_create_project(make_actor(roles=(Role.STUDENT,)))

    def test_faculty_without_tenant_gets_validation_error(self):
        with pytest.raises(ValidationFailed) as exc_info:
            policies.ensure_can_create_project(make_actor(roles=(Role.FACULTY,), tenant_id=None))
        assert exc_info.value.fields == ["tenant_id"]

    def test_restricted_visibility_requires_departments(self):
        with pytest.raises(ValidationFailed):
            policies.validate_department_visibility(False, [])
        policies.validate_department_visibility(False, ["CS"])
        policies.validate_department_visibility(True, [])

    def test_non_owner_gets_not_found(self):
        project = ProjectFactory.build(author_id="faculty-1")
        other = make_actor(sub="faculty-2", roles=(Role.FACULTY,))
        with pytest.raises(NotFound):
            policies.ensure_project_owner(other, project)

    def test_owner_passes(self):
        project = ProjectFactory.build(author_id="faculty-1")
        owner = make_actor(sub="faculty-1", roles=(Role.FACULTY,))
        assert policies.ensure_project_owner(owner, project) is project

    @pytest.mark.parametrize(
        ("current", "requested", "expected"),
        [
            ("OPEN", "IN_PROGRESS", "IN_PROGRESS"),
            ("OPEN", "COMPLETED", "COMPLETED"),
            ("IN_PROGRESS", "OPEN", "IN_PROGRESS"),
            ("COMPLETED", "OPEN", "COMPLETED"),
            ("COMPLETED", "IN_PROGRESS", "COMPLETED"),
        ],
    )
    def test_progress_never_moves_backwards(self, current, requested, expected):
        assert policies.next_progress_status(current, requested) == expected


class TestApplyRules:
    def test_faculty_cannot_apply(self):
        faculty = make_actor(roles=(Role.FACULTY,))
        with pytest.raises(Forbidden):
            policies.ensure_can_apply(faculty, ProjectFactory.build(), None, utc_now())

    def test_invisible_project_is_not_found(self):
        project = ProjectFactory.restricted(["CS"])
        with pytest.raises(NotFound):
            policies.ensure_can_apply(make_actor(department="EE"), project, None, utc_now())

    def test_completed_project_conflicts(self):
        project = ProjectFactory.build(progress_status=ProgressStatus.COMPLETED.value)
        with pytest.raises(Conflict, match="completed"):
            policies.ensure_can_apply(make_actor(), project, None, utc_now())

    def test_past_deadline_conflicts(self):
        project = ProjectFactory.build(deadline=utc_now() - timedelta(days=1))
        with pytest.raises(Conflict, match="deadline"):
            policies.ensure_can_apply(make_actor(), project, None, utc_now())

    def test_full_project_conflicts(self):
        project = ProjectFactory.build(max_students=1, accepted_count=1)
        with pytest.raises(Conflict, match="capacity"):
            policies.ensure_can_apply(make_actor(), project, None, utc_now())

    def test_duplicate_application_conflicts(self):
        project = ProjectFactory.build()
        existing = ApplicationFactory.build(project_id=project.id)
        with pytest.raises(Conflict, match="Already applied"):
            policies.ensure_can_apply(make_actor(), project, existing, utc_now())


class TestDecisionRules:
    def test_author_may_accept_pending(self):
        project = ProjectFactory.build(author_id="faculty-1")
        application = ApplicationFactory.build(project_id=project.id)
        author = make_actor(sub="faculty-1", roles=(Role.FACULTY,))
        policies.ensure_can_decide_application(
            author, project, application, ApplicationStatus.ACCEPTED.value
        )

    def test_other_faculty_gets_not_found(self):
        project = ProjectFactory.build(author_id="faculty-1")
        application = ApplicationFactory.build(project_id=project.id)
        other = make_actor(sub="faculty-9", roles=(Role.FACULTY,))
        with pytest.raises(NotFound):
            policies.ensure_can_decide_application(
                other, project, application, ApplicationStatus.ACCEPTED.value
            )

    def test_in_scope_admin_may_decide(self):
        project = ProjectFactory.build()
        application = ApplicationFactory.build(project_id=project.id)
        admin = make_actor(sub="admin-1", roles=(Role.HEAD_ADMIN,))
        policies.ensure_can_decide_application(
            admin, project, application, ApplicationStatus.REJECTED.value
        )

    def test_non_pending_application_conflicts(self):
        project = ProjectFactory.build(author_id="faculty-1")
        application = ApplicationFactory.build(
            project_id=project.id, status=ApplicationStatus.REJECTED.value
        )
        author = make_actor(sub="faculty-1", roles=(Role.FACULTY,))
        with pytest.raises(Conflict):
            policies.ensure_can_decide_application(
                author, project, application, ApplicationStatus.ACCEPTED.value
            )

    def test_moving_back_to_pending_conflicts(self):
        project = ProjectFactory.build(author_id="faculty-1")
        application = ApplicationFactory.build(project_id=project.id)
        author = make_actor(sub="faculty-1", roles=(Role.FACULTY,))
        with pytest.raises(Conflict):
            policies.ensure_can_decide_application(
                author, project, application, ApplicationStatus.PENDING.value
            )

    def test_withdraw_by_someone_else_forbidden(self):
        application = ApplicationFactory.build(student_id="student-1")
        with pytest.raises(Forbidden):
            policies.ensure_can_withdraw(make_actor(sub="student-2"), application)

    def test_withdraw_after_decision_conflicts(self):
        application = ApplicationFactory.build(
            student_id="student-1", status=ApplicationStatus.ACCEPTED.value
        )
        with pytest.raises(Conflict):
            policies.ensure_can_withdraw(make_actor(sub="student-1"), application)


class TestCollaborationRules:
    def test_author_is_member(self):
        project = ProjectFactory.build(author_id="faculty-1")
        author = make_actor(sub="faculty-1", roles=(Role.FACULTY,))
        assert policies.is_member(author, project, is_accepted_applicant=False)

    def test_accepted_student_is_member(self):
        project = ProjectFactory.build()
        assert policies.is_member(make_actor(), project, is_accepted_applicant=True)

    def test_outsider_is_forbidden(self):
        with pytest.raises(Forbidden):
            policies.ensure_member(make_actor(), ProjectFactory.build(), is_accepted_applicant=False)

    def test_archived_project_hidden_from_collaboration(self):
        with pytest.raises(NotFound):
            policies.ensure_collaboration_project(make_actor(), ProjectFactory.archived())

    def test_assignee_may_change_status_only(self):
        project = ProjectFactory.build(author_id="faculty-1")
        task = TaskFactory.build(project_id=project.id, assigned_to_id="student-1")
        student = make_actor(sub="student-1")
        policies.task_update_scope(student, project, task, {"status"})
        with pytest.raises(Forbidden):
            policies.task_update_scope(student, project, task, {"title"})
        with pytest.raises(Forbidden):
            policies.task_update_scope(student, project, task, {"status", "title"})

    def test_unassigned_member_cannot_update(self):
        project = ProjectFactory.build(author_id="faculty-1")
        task = TaskFactory.build(project_id=project.id, assigned_to_id="student-1")
        with pytest.raises(Forbidden):
            policies.task_update_scope(make_actor(sub="student-2"), project, task, {"status"})

    def test_author_may_change_anything(self):
        project = ProjectFactory.build(author_id="faculty-1")
        task = TaskFactory.build(project_id=project.id)
        author = make_actor(sub="faculty-1", roles=(Role.FACULTY,))
        policies.task_update_scope(author, project, task, {"title", "assigned_to_id"})


class TestAdminScope:
    def test_super_admin_reaches_every_tenant(self):
        admin = make_actor(roles=(Role.SUPER_ADMIN,), tenant_id=None)
        assert policies.admin_tenant_filter(admin) is None
        policies.ensure_admin_scope(admin, "college-b")

    def test_head_admin_confined_to_own_tenant(self):
        admin = make_actor(roles=(Role.HEAD_ADMIN,), tenant_id="college-a")
        assert policies.admin_tenant_filter(admin) == "college-a"
        policies.ensure_admin_scope(admin, "college-a")
        with pytest.raises(Forbidden):
            policies.ensure_admin_scope(admin, "college-b")

    def test_head_admin_without_tenant_forbidden(self):
        with pytest.raises(Forbidden):
            policies.admin_tenant_filter(make_actor(roles=(Role.HEAD_ADMIN,), tenant_id=None))

    def test_non_admin_forbidden(self):
        with pytest.raises(Forbidden):
            policies.ensure_admin(make_actor(roles=(Role.FACULTY,)))
