"""
Tests for /export, /import and quick-add.
"""

import csv
import io

PLANNER_CSV = """Task,Priority,Due Date
Pack boxes,high,2030-01-06
,low,
"""


class TestExportApi:
    async def test_json_download(self, client, headers, project_id):
        await client.post("/tasks", json={"project_id": project_id, "text": "Plan"}, headers=headers)

        response = await client.get("/export", params={"format": "json"}, headers=headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.headers["content-disposition"].startswith('attachment; filename="taskflow-export-')
        assert [t["text"] for t in response.json()["tasks"]] == ["Plan"]

    async def test_csv_download(self, client, headers, project_id):
        await client.post("/tasks", json={"project_id": project_id, "text": "Plan", "tags": ["a", "b"]}, headers=headers)

        response = await client.get(
            "/export", params={"format": "csv", "project_id": project_id}, headers=headers
        )
        rows = list(csv.DictReader(io.StringIO(response.text)))

        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"].endswith('.csv"')
        assert rows[0]["Task"] == "Plan"
        assert rows[0]["Tags"] == "a, b"
        assert rows[0]["Project"] == "Work"

    async def test_unknown_format(self, client, headers):
        response = await client.get("/export", params={"format": "xml"}, headers=headers)

        assert response.status_code == 400

    async def test_requires_login(self, client):
        response = await client.get("/export")

        assert response.status_code == 401


class TestImportApi:
    async def test_preview(self, client, headers):
        response = await client.post("/import/preview", json={"content": PLANNER_CSV}, headers=headers)

        assert response.status_code == 200
        assert response.json()["source"] == "generic"
        assert response.json()["valid_rows"] == 1
        assert response.json()["invalid_rows"] == 1

    async def test_import_reports_skipped_rows(self, client, headers, project_id):
        response = await client.post(
            "/import", json={"content": PLANNER_CSV, "project_id": project_id}, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["imported"] == 1
        assert response.json()["errors"] == ["Row 3: Missing required field(s)"]
        assert response.json()["tasks"][0]["due_date"] == "2030-01-06T00:00:00"

        listed = await client.get(f"/projects/{project_id}/tasks", headers=headers)
        assert listed.json()["total"] == 1

    async def test_unknown_project(self, client, headers):
        response = await client.post(
            "/import", json={"content": PLANNER_CSV, "project_id": "missing"}, headers=headers
        )

        assert response.status_code == 404


class TestQuickAddApi:
    async def test_quick_add(self, client, headers, project_id):
        response = await client.post(
            "/tasks/quick",
            json={"project_id": project_id, "text": "Pack boxes on 2030-01-06 !!! #home #move"},
            headers=headers,
        )

        assert response.status_code == 201
        task = response.json()["task"]
        assert task["text"] == "Pack boxes"
        assert task["priority"] == "high"
        assert task["category"] == "home"
        assert task["tags"] == ["move"]
        assert task["due_date"] == "2030-01-06T23:59:00"
        assert response.json()["parsed"]["priority"] == "high"

    async def test_parse_only(self, client, headers):
        response = await client.post("/tasks/parse", json={"text": "Renew visa 2030-02-01 low priority"}, headers=headers)

        assert response.status_code == 200
        assert response.json() == {
            "text": "Renew visa",
            "priority": "low",
            "category": None,
            "tags": [],
            "due_date": "2030-02-01T23:59:00",
        }
