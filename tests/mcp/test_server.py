"""
Tests for the TaskFlow MCP tools.

Tools run against the test database through the global adapter; the
configured identity is pre-resolved to the `user` fixture.
"""

import pytest


@pytest.fixture
async def server(db, user, monkeypatch):
    from taskflow.db import reset_adapter, set_adapter
    from taskflow_mcp import server as server_module

    set_adapter(db)
    monkeypatch.setattr(server_module, "_initialized", True)
    monkeypatch.setattr(server_module, "_user_id", user.id)
    yield server_module
    reset_adapter()


class TestToolRegistry:
    async def test_tools_registered(self):
        from taskflow_mcp.server import create_server

        tools = {tool.name for tool in await create_server().list_tools()}

        assert tools == {
            "taskflow_health",
            "taskflow_projects",
            "taskflow_list",
            "taskflow_create",
            "taskflow_complete",
            "taskflow_profile",
        }


class TestTools:
    async def test_health(self, server):
        result = await server.taskflow_health()

        assert result["status"] == "healthy"
        assert result["database_type"] == "sqlite"

    async def test_projects(self, server, project):
        result = await server.taskflow_projects()

        assert result["count"] == 1
        assert result["projects"][0]["id"] == project.id

    async def test_create_list_complete(self, server, project):
        created = await server.taskflow_create(project.id, "Review PR", priority="high", tags=["code"])
        task_id = created["task"]["id"]

        listed = await server.taskflow_list(project_id=project.id)
        completed = await server.taskflow_complete(task_id)
        after = await server.taskflow_list(project_id=project.id)

        assert created["success"] is True
        assert [t["id"] for t in listed["tasks"]] == [task_id]
        assert completed["task"]["completed"] is True
        assert completed["rewards"]["xp_awarded"] == 50
        assert after["total"] == 0

    async def test_errors_are_returned(self, server, project):
        missing_project = await server.taskflow_create("nope", "Orphan")
        bad_priority = await server.taskflow_create(project.id, "Odd", priority="urgent")
        bad_date = await server.taskflow_create(project.id, "When?", due_date="next tuesday")
        missing_task = await server.taskflow_complete("nope")
        bad_view = await server.taskflow_list(view="archived")

        assert missing_project == {"error": "Project not found"}
        assert "Invalid priority" in bad_priority["error"]
        assert "error" in bad_date
        assert missing_task == {"error": "Task not found"}
        assert bad_view["error"].startswith("Invalid view")

    async def test_profile(self, server, project):
        result = await server.taskflow_profile()

        assert result["level"] == 1
        assert result["xp"] == 10
        assert result["achievements_unlocked"] == 1
        assert result["achievements_total"] == 16


class TestIdentity:
    """The configured identity is created on first use."""

    async def test_identity_from_config(self, db, monkeypatch):
        from taskflow.config import IdentityConfig, TaskflowConfig
        from taskflow.db import reset_adapter, set_adapter
        from taskflow_mcp import server as server_module

        config = TaskflowConfig(identity=IdentityConfig(user_email="Agent@Example.com", user_name="Agent"))
        monkeypatch.setattr("taskflow.config.get_config", lambda: config)
        monkeypatch.setattr(server_module, "_user_id", None)
        set_adapter(db)
        try:
            first = await server_module.current_user_id()
            monkeypatch.setattr(server_module, "_user_id", None)
            second = await server_module.current_user_id()
        finally:
            reset_adapter()

        assert first == second
        row = await db.fetchrow("SELECT email, password_hash FROM users WHERE id = $1", first)
        assert row["email"] == "agent@example.com"
        assert row["password_hash"] is None

    async def test_missing_identity(self, db, monkeypatch):
        from taskflow.config import TaskflowConfig
        from taskflow.errors import UserInputError
        from taskflow_mcp import server as server_module

        monkeypatch.setattr("taskflow.config.get_config", lambda: TaskflowConfig())
        monkeypatch.setattr(server_module, "_user_id", None)

        with pytest.raises(UserInputError, match="No identity configured"):
            await server_module.current_user_id()
