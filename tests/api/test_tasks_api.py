"""
Tests for /projects, /tasks and /dependencies.
"""

import pytest


async def create_task(client, headers, project_id, text, **fields):
    response = await client.post("/tasks", json={"project_id": project_id, "text": text, **fields}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestProjectsApi:
    async def test_create_and_list(self, client, headers, project_id):
        response = await client.get("/projects", headers=headers)

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [project_id]
        assert response.json()[0]["color"]

    async def test_invalid_color(self, client, headers):
        response = await client.post("/projects", json={"name": "Bad", "color": "red"}, headers=headers)

        assert response.status_code == 400

    async def test_other_users_project(self, client, headers, project_id):
        other = await client.post(
            "/auth/register", json={"email": "grace@example.com", "password": "battery-staple"}
        )
        other_headers = {"Authorization": f"Bearer {other.json()['token']}"}

        response = await client.get(f"/projects/{project_id}", headers=other_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    async def test_update_and_delete(self, client, headers, project_id):
        updated = await client.patch(f"/projects/{project_id}", json={"name": "Job"}, headers=headers)
        deleted = await client.delete(f"/projects/{project_id}", headers=headers)

        assert updated.json()["name"] == "Job"
        assert deleted.json() == {"success": True}
        assert (await client.get(f"/projects/{project_id}", headers=headers)).status_code == 404

    async def test_project_tasks(self, client, headers, project_id):
        await create_task(client, headers, project_id, "Inside")

        response = await client.get(f"/projects/{project_id}/tasks", headers=headers)

        assert response.json()["total"] == 1
        assert response.json()["items"][0]["text"] == "Inside"


class TestTasksApi:
    async def test_create_with_subtasks_and_recurrence(self, client, headers, project_id):
        task = await create_task(
            client, headers, project_id, "Water plants",
            priority="high",
            due_date="2030-01-06T09:00:00",
            subtasks=[{"text": "Kitchen"}, {"text": "Balcony"}],
            is_recurring=True,
            recurrence_pattern={"frequency": "weekly"},
        )

        assert task["priority"] == "high"
        assert len(task["subtasks"]) == 2
        assert task["recurrence_pattern"]["frequency"] == "weekly"

    async def test_validation_errors(self, client, headers, project_id):
        bad_priority = await client.post(
            "/tasks", json={"project_id": project_id, "text": "x", "priority": "urgent"}, headers=headers
        )
        empty_text = await client.post("/tasks", json={"project_id": project_id, "text": ""}, headers=headers)
        no_pattern = await client.post(
            "/tasks", json={"project_id": project_id, "text": "x", "is_recurring": True}, headers=headers
        )

        assert bad_priority.status_code == 400
        assert bad_priority.json()["error"] == "BAD_USER_INPUT"
        assert empty_text.status_code == 422
        assert no_pattern.status_code == 400

    async def test_list_filters_and_pagination(self, client, headers, project_id):
        for text, priority in (("a", "high"), ("b", "low"), ("c", "high")):
            await create_task(client, headers, project_id, text, priority=priority)

        high = await client.get("/tasks", params={"priority": "high", "sort": "alphabetical"}, headers=headers)
        paged = await client.get("/tasks", params={"limit": 2, "offset": 0}, headers=headers)
        bad_view = await client.get("/tasks", params={"view": "archived"}, headers=headers)

        assert [t["text"] for t in high.json()["items"]] == ["a", "c"]
        assert paged.json()["total"] == 3
        assert paged.json()["has_more"] is True
        assert len(paged.json()["items"]) == 2
        assert bad_view.status_code == 400

    async def test_search_and_stats(self, client, headers, project_id):
        await create_task(client, headers, project_id, "Buy oat milk")
        await create_task(client, headers, project_id, "Call plumber")

        search = await client.get("/tasks/search", params={"q": "milk"}, headers=headers)
        stats = await client.get("/tasks/stats", headers=headers)

        assert [t["text"] for t in search.json()] == ["Buy oat milk"]
        assert stats.json()["total"] == 2
        assert stats.json()["completed"] == 0

    async def test_complete_returns_rewards(self, client, headers, project_id):
        task = await create_task(client, headers, project_id, "Ship it", priority="high")

        response = await client.post(f"/tasks/{task['id']}/complete", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["task"]["completed"] is True
        assert body["task"]["status"] == "completed"
        assert body["rewards"]["xp_awarded"] == 50
        assert body["next_occurrence"] is None
        again = await client.post(f"/tasks/{task['id']}/complete", headers=headers)
        assert again.status_code == 400

    async def test_uncomplete_and_update(self, client, headers, project_id):
        task = await create_task(client, headers, project_id, "Draft")
        await client.post(f"/tasks/{task['id']}/complete", headers=headers)

        reopened = await client.post(f"/tasks/{task['id']}/uncomplete", headers=headers)
        updated = await client.patch(
            f"/tasks/{task['id']}", json={"text": "Final draft", "tags": ["writing"]}, headers=headers
        )

        assert reopened.json()["completed"] is False
        assert updated.json()["text"] == "Final draft"
        assert updated.json()["tags"] == ["writing"]

    async def test_toggle_subtask(self, client, headers, project_id):
        task = await create_task(client, headers, project_id, "Pack", subtasks=[{"text": "Socks"}])
        subtask_id = task["subtasks"][0]["id"]

        response = await client.post(f"/tasks/{task['id']}/subtasks/{subtask_id}/toggle", headers=headers)

        assert response.json()["subtasks"][0]["completed"] is True

    async def test_bulk_operations(self, client, headers, project_id):
        ids = [(await create_task(client, headers, project_id, f"t{n}"))["id"] for n in range(3)]

        updated = await client.post(
            "/tasks/bulk-update", json={"task_ids": ids[:2], "priority": "low"}, headers=headers
        )
        deleted = await client.post("/tasks/bulk-delete", json={"task_ids": ids}, headers=headers)

        assert updated.json()["updated"] == 2
        assert {t["priority"] for t in updated.json()["tasks"]} == {"low"}
        assert deleted.json() == {"deleted": 3}

    async def test_delete(self, client, headers, project_id):
        task = await create_task(client, headers, project_id, "Temp")

        assert (await client.delete(f"/tasks/{task['id']}", headers=headers)).json() == {"success": True}
        assert (await client.get(f"/tasks/{task['id']}", headers=headers)).status_code == 404


class TestDependenciesApi:
    async def test_dependency_flow(self, client, headers, project_id):
        design = await create_task(client, headers, project_id, "Design")
        build = await create_task(client, headers, project_id, "Build")

        created = await client.post(
            f"/tasks/{build['id']}/dependencies", json={"predecessor_task_id": design["id"]}, headers=headers
        )
        cycle = await client.post(
            f"/tasks/{design['id']}/dependencies", json={"predecessor_task_id": build["id"]}, headers=headers
        )
        graph = await client.get("/dependencies/graph", params={"project_id": project_id}, headers=headers)

        assert created.status_code == 201
        assert cycle.status_code == 400
        assert len(graph.json()["edges"]) == 1

        removed = await client.delete(f"/dependencies/{created.json()['id']}", headers=headers)
        assert removed.json() == {"success": True}


class TestUnexpectedErrors:
    async def test_unhandled_exception_is_500(self, client, headers, monkeypatch):
        from taskflow.services.tasks import TaskService

        async def broken(self, user_id, now=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(TaskService, "stats", broken)

        response = await client.get("/tasks/stats", headers=headers)

        assert response.status_code == 500
        assert response.json() == {"error": "INTERNAL_SERVER_ERROR", "message": "An unexpected error occurred"}
