"""Member-gated tasks, attachments and comments."""

import pytest
from httpx import AsyncClient

from tests.helpers import apply, create_project

pytestmark = pytest.mark.integration


@pytest.fixture
async def team(client: AsyncClient, faculty, student_cs) -> dict:
    """Project by F with student A accepted."""
    project = await create_project(client, faculty)
    application = await apply(client, student_cs, project["id"])
    response = await client.put(
        f"/v1/applications/{application['id']}/status",
        json={"status": "ACCEPTED"},
        headers=faculty.headers,
    )
    assert response.status_code == 200
    return project


@pytest.fixture
async def assigned_task(client: AsyncClient, team, faculty, student_cs) -> dict:
    response = await client.post(
        f"/v1/projects/{team['id']}/tasks",
        json={"title": "Collect dataset", "assigned_to_id": student_cs.id},
        headers=faculty.headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestTasks:
    async def test_author_creates_and_member_lists(
        self, client: AsyncClient, team, assigned_task, student_cs
    ):
        assert assigned_task["status"] == "TODO"
        assert assigned_task["created_by_id"] == "faculty-f"

        response = await client.get(f"/v1/projects/{team['id']}/tasks", headers=student_cs.headers)

        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == [assigned_task["id"]]

    async def test_non_member_is_forbidden(self, client: AsyncClient, team, student_ee):
        response = await client.get(f"/v1/projects/{team['id']}/tasks", headers=student_ee.headers)
        assert response.status_code == 403

    async def test_member_cannot_create_task(self, client: AsyncClient, team, student_cs):
        response = await client.post(
            f"/v1/projects/{team['id']}/tasks", json={"title": "Mine"}, headers=student_cs.headers
        )
        assert response.status_code == 403

    async def test_assignee_must_be_accepted_member(self, client: AsyncClient, team, faculty):
        response = await client.post(
            f"/v1/projects/{team['id']}/tasks",
            json={"title": "Orphan", "assigned_to_id": "student-nobody"},
            headers=faculty.headers,
        )
        assert response.status_code == 422
        assert response.json()["fields"] == ["assigned_to_id"]

    async def test_assignee_updates_status(self, client: AsyncClient, assigned_task, student_cs):
        response = await client.put(
            f"/v1/tasks/{assigned_task['id']}",
            json={"status": "IN_PROGRESS"},
            headers=student_cs.headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "IN_PROGRESS"

    async def test_assignee_cannot_edit_title(self, client: AsyncClient, assigned_task, student_cs):
        response = await client.put(
            f"/v1/tasks/{assigned_task['id']}",
            json={"title": "Renamed"},
            headers=student_cs.headers,
        )
        assert response.status_code == 403

    async def test_author_edits_anything(self, client: AsyncClient, assigned_task, faculty):
        response = await client.put(
            f"/v1/tasks/{assigned_task['id']}",
            json={"title": "Clean dataset", "assigned_to_id": None, "status": "COMPLETED"},
            headers=faculty.headers,
        )
        body = response.json()
        assert body["title"] == "Clean dataset"
        assert body["assigned_to_id"] is None
        assert body["status"] == "COMPLETED"

    async def test_author_deletes_task(self, client: AsyncClient, team, assigned_task, faculty):
        response = await client.delete(f"/v1/tasks/{assigned_task['id']}", headers=faculty.headers)
        assert response.json() == {"success": True}

        remaining = await client.get(f"/v1/projects/{team['id']}/tasks", headers=faculty.headers)
        assert remaining.json() == []


class TestAttachments:
    async def test_member_uploads_and_author_deletes(
        self, client: AsyncClient, team, faculty, student_cs
    ):
        created = await client.post(
            f"/v1/projects/{team['id']}/attachments",
            json={
                "file_name": "notes.pdf",
                "file_url": "https://files.example.com/notes.pdf",
                "file_type": "application/pdf",
            },
            headers=student_cs.headers,
        )
        assert created.status_code == 201
        attachment = created.json()
        assert attachment["uploader_id"] == student_cs.id
        assert attachment["uploader_name"] == "Ada"

        listed = await client.get(f"/v1/projects/{team['id']}/attachments", headers=faculty.headers)
        assert [a["id"] for a in listed.json()] == [attachment["id"]]

        deleted = await client.delete(
            f"/v1/attachments/{attachment['id']}", headers=faculty.headers
        )
        assert deleted.status_code == 200

    async def test_former_member_cannot_delete_own_upload(
        self, client: AsyncClient, faculty, student_cs, head_admin
    ):
        project = await create_project(client, faculty)
        application = await apply(client, student_cs, project["id"])
        status_url = f"/v1/applications/{application['id']}/status"
        await client.put(status_url, json={"status": "ACCEPTED"}, headers=faculty.headers)
        created = await client.post(
            f"/v1/projects/{project['id']}/attachments",
            json={
                "file_name": "draft.pdf",
                "file_url": "https://files.example.com/draft.pdf",
                "file_type": "application/pdf",
            },
            headers=student_cs.headers,
        )
        await client.put(
            f"/v1/admin/applications/{application['id']}/status",
            json={"status": "REJECTED"},
            headers=head_admin.headers,
        )

        response = await client.delete(
            f"/v1/attachments/{created.json()['id']}", headers=student_cs.headers
        )

        assert response.status_code == 403

    async def test_invalid_url_rejected(self, client: AsyncClient, team, student_cs):
        response = await client.post(
            f"/v1/projects/{team['id']}/attachments",
            json={"file_name": "x", "file_url": "not a url", "file_type": "text/plain"},
            headers=student_cs.headers,
        )
        assert response.status_code == 422


class TestComments:
    async def test_comment_on_task_and_filter(
        self, client: AsyncClient, team, assigned_task, student_cs, faculty
    ):
        on_task = await client.post(
            f"/v1/projects/{team['id']}/comments",
            json={"body": "Started scraping", "task_id": assigned_task["id"]},
            headers=student_cs.headers,
        )
        assert on_task.status_code == 201
        await client.post(
            f"/v1/projects/{team['id']}/comments",
            json={"body": "Weekly sync on Friday"},
            headers=faculty.headers,
        )

        everything = await client.get(f"/v1/projects/{team['id']}/comments", headers=faculty.headers)
        filtered = await client.get(
            f"/v1/projects/{team['id']}/comments",
            params={"task_id": assigned_task["id"]},
            headers=faculty.headers,
        )

        assert len(everything.json()) == 2
        assert [c["body"] for c in filtered.json()] == ["Started scraping"]

    async def test_task_from_other_project_rejected(
        self, client: AsyncClient, team, faculty, assigned_task
    ):
        other = await create_project(client, faculty)
        response = await client.post(
            f"/v1/projects/{other['id']}/comments",
            json={"body": "Wrong place", "task_id": assigned_task["id"]},
            headers=faculty.headers,
        )
        assert response.status_code == 422
