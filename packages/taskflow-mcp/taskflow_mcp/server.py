"""
TaskFlow MCP Server

Exposes a single user's TaskFlow workspace as MCP tools. The user is the one
named by identity.user_email in the config (or TASKFLOW_USER_EMAIL) and is
created on first use.
"""

import asyncio
import logging
from typing import List, Optional

from mcp.server.fastmcp import FastMCP

from taskflow.errors import TaskflowError

# Initialize FastMCP server
mcp = FastMCP("taskflow")

logger = logging.getLogger(__name__)

# Global state
_initialized = False
_user_id: Optional[str] = None


async def ensure_initialized():
    """Connect, migrate and seed the database once per process."""
    global _initialized
    if _initialized:
        return

    from taskflow.config import get_config
    from taskflow.db import init_adapter, run_migrations
    from taskflow.seed import seed_definitions

    adapter = await init_adapter(get_config())
    applied = await run_migrations(adapter)
    if applied:
        logger.info(f"Applied migrations: {', '.join(applied)}")
    await seed_definitions(adapter)

    _initialized = True
    logger.info("TaskFlow initialized")


async def current_user_id() -> str:
    """Id of the configured identity, creating the account if needed."""
    global _user_id
    if _user_id:
        return _user_id

    from taskflow.config import get_config
    from taskflow.errors import UserInputError
    from taskflow.services import AuthService

    config = get_config()
    if not config.identity.user_email:
        raise UserInputError(
            "No identity configured. Set identity.user_email in config or TASKFLOW_USER_EMAIL."
        )
    user = await AuthService(config=config).ensure_user(
        config.identity.user_email, config.identity.user_name
    )
    _user_id = user.id
    return _user_id


# =============================================================================
# TOOLS
# =============================================================================

@mcp.tool()
async def taskflow_health() -> dict:
    """
    Check database connectivity.

    Returns:
        Health status and database type
    """
    await ensure_initialized()
    from taskflow import __version__
    from taskflow.db import get_adapter

    adapter = get_adapter()
    try:
        connected = await adapter.fetchval("SELECT 1") == 1
    except Exception as e:
        connected = False
        logger.error(f"Health check failed: {e}")

    return {
        "status": "healthy" if connected else "unhealthy",
        "database_type": "postgres" if adapter.supports_jsonb else "sqlite",
        "version": __version__,
    }


@mcp.tool()
async def taskflow_projects(search: Optional[str] = None) -> dict:
    """
    List projects with task counts.

    Args:
        search: Optional case-insensitive name filter
    """
    await ensure_initialized()
    from taskflow.services import ProjectService

    try:
        projects = await ProjectService().list(await current_user_id(), search)
    except TaskflowError as e:
        return {"error": e.message}

    return {
        "projects": [p.to_dict() for p in projects],
        "count": len(projects),
    }


@mcp.tool()
async def taskflow_list(
    project_id: Optional[str] = None,
    view: str = "active",
    priority: Optional[str] = None,
    search: Optional[str] = None,
    sort: str = "priority-desc",
    limit: int = 50,
) -> dict:
    """
    List tasks with optional filters.

    Args:
        project_id: Only tasks in this project
        view: all, active or completed (default active)
        priority: Comma separated priorities (low, medium, high)
        search: Text to look for in task text and description
        sort: date-desc, date-asc, priority-desc, priority-asc, alphabetical, due-date
        limit: Maximum results (default 50, max 100)

    Returns:
        Matching tasks and the total before pagination
    """
    await ensure_initialized()
    from taskflow.filters import TaskFilter
    from taskflow.services import TaskService

    try:
        task_filter = TaskFilter(view=view, project_id=project_id, priority=priority, search=search)
        result = await TaskService().list(await current_user_id(), task_filter, sort, limit)
    except TaskflowError as e:
        return {"error": e.message}

    return {
        "tasks": [t.to_dict() for t in result["items"]],
        "count": len(result["items"]),
        "total": result["total"],
    }


@mcp.tool()
async def taskflow_create(
    project_id: str,
    text: str,
    description: Optional[str] = None,
    priority: str = "medium",
    category: Optional[str] = None,
    tags: Optional[List[str]] = None,
    due_date: Optional[str] = None,
    estimated_minutes: Optional[int] = None,
) -> dict:
    """
    Create a task.

    Args:
        project_id: Project to add the task to
        text: Task title
        description: Longer notes
        priority: low, medium or high
        category: Free-form category
        tags: Tags to attach
        due_date: ISO 8601 due date (UTC)
        estimated_minutes: Expected effort

    Returns:
        The created task
    """
    await ensure_initialized()
    from taskflow.services import TaskService

    try:
        task = await TaskService().create(
            await current_user_id(),
            project_id,
            text,
            description=description,
            priority=priority,
            category=category,
            tags=tags,
            due_date=due_date,
            estimated_minutes=estimated_minutes,
        )
    except TaskflowError as e:
        return {"error": e.message}
    except ValueError as e:
        # Malformed due_date
        return {"error": str(e)}

    return {"success": True, "task": task.to_dict()}


@mcp.tool()
async def taskflow_complete(task_id: str) -> dict:
    """
    Complete a task and collect its rewards.

    Args:
        task_id: Task to complete

    Returns:
        The task, XP/streak rewards and the next occurrence of a recurring task
    """
    await ensure_initialized()
    from taskflow.services import TaskService

    try:
        result = await TaskService().complete(await current_user_id(), task_id)
    except TaskflowError as e:
        return {"error": e.message}

    next_occurrence = result["next_occurrence"]
    return {
        "success": True,
        "task": result["task"].to_dict(),
        "rewards": result["rewards"],
        "next_occurrence": next_occurrence.to_dict() if next_occurrence else None,
    }


@mcp.tool()
async def taskflow_profile() -> dict:
    """
    Level, XP, streak and power-up summary for the configured user.
    """
    await ensure_initialized()
    from taskflow.services import GamificationService

    try:
        return await GamificationService().stats(await current_user_id())
    except TaskflowError as e:
        return {"error": e.message}


# =============================================================================
# CLI ENTRY POINT
# =============================================================================

def create_server() -> FastMCP:
    return mcp


def main():
    """Main entry point for taskflow-mcp command."""
    import argparse

    from taskflow.config import get_config
    from taskflow.logs import setup_logging

    parser = argparse.ArgumentParser(description="TaskFlow MCP Server")
    parser.add_argument("command", nargs="?", default="serve", help="Command to run (serve, migrate)")
    args = parser.parse_args()

    config = get_config()
    setup_logging(config.server.log_level, log_file=config.server.log_file)

    if args.command == "migrate":
        async def do_migrate():
            await ensure_initialized()
            print("Migrations complete")

        asyncio.run(do_migrate())
    else:
        mcp.run()


if __name__ == "__main__":
    main()
