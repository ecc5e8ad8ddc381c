"""
Project Service for TaskFlow.

Projects group a user's tasks. Deleting a project deletes its tasks.
"""

import logging
from datetime import datetime
from typing import List, Optional

from taskflow.db import affected_rows
from taskflow.errors import NotFoundError, UserInputError
from taskflow.models.project import (
    COLOR_PATTERN,
    DEFAULT_PROJECT_COLOR,
    PROJECT_DESCRIPTION_MAX,
    PROJECT_NAME_MAX,
    Project,
)
from taskflow.services.base import BaseService

logger = logging.getLogger(__name__)

COUNTS_QUERY = """
    SELECT p.*,
        (SELECT COUNT(*) FROM tasks t WHERE t.project_id = p.id) AS task_count,
        (SELECT COUNT(*) FROM tasks t WHERE t.project_id = p.id AND t.completed = $1) AS completed_count
    FROM projects p
"""


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise UserInputError("Project name is required")
    if len(name) > PROJECT_NAME_MAX:
        raise UserInputError(f"Project name must be at most {PROJECT_NAME_MAX} characters")
    return name


def _clean_description(description: Optional[str]) -> str:
    description = (description or "").strip()
    if len(description) > PROJECT_DESCRIPTION_MAX:
        raise UserInputError(f"Description must be at most {PROJECT_DESCRIPTION_MAX} characters")
    return description


def _clean_color(color: Optional[str]) -> str:
    if not color:
        return DEFAULT_PROJECT_COLOR
    if not COLOR_PATTERN.match(color):
        raise UserInputError("Invalid color. Must be a hex color like #6366f1")
    return color


class ProjectService(BaseService):
    """Service for managing a user's projects."""

    async def list(self, user_id: str, search: Optional[str] = None) -> List[Project]:
        """
        List a user's projects with task counts, newest first.

        Args:
            user_id: Owner
            search: Case-insensitive substring on name or description
        """
        query = COUNTS_QUERY + " WHERE p.user_id = $2"
        params = [True, user_id]
        if search:
            pattern = f"%{search.strip().lower()}%"
            query += " AND (LOWER(p.name) LIKE $3 OR LOWER(p.description) LIKE $4)"
            params.extend([pattern, pattern])
        query += " ORDER BY p.created_at DESC"

        rows = await self.adapter.fetch(query, *params)
        return [Project.from_dict(r) for r in rows]

    async def get(self, user_id: str, project_id: str) -> Project:
        row = await self.adapter.fetchrow(
            COUNTS_QUERY + " WHERE p.id = $2 AND p.user_id = $3",
            True, project_id, user_id,
        )
        if not row:
            raise NotFoundError("Project not found")
        return Project.from_dict(row)

    async def exists(self, user_id: str, project_id: str) -> bool:
        value = await self.adapter.fetchval(
            "SELECT 1 FROM projects WHERE id = $1 AND user_id = $2", project_id, user_id
        )
        return value is not None

    async def create(
        self,
        user_id: str,
        name: str,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Project:
        """
        Create a project.

        The first project a user creates unlocks the project-creator achievement.
        """
        from taskflow.services.gamification import GamificationService

        project = Project(
            user_id=user_id,
            name=_clean_name(name),
            description=_clean_description(description),
            color=_clean_color(color),
        )
        await self._insert("projects", {
            "id": project.id,
            "user_id": project.user_id,
            "name": project.name,
            "description": project.description,
            "color": project.color,
            "created_at": project.created_at,
            "updated_at": project.updated_at,
        })
        logger.info(f"Created project: {project.id} - {project.name}")

        await GamificationService(self.adapter).unlock_achievement(
            user_id, "project-creator", project.created_at
        )
        project.task_count = 0
        project.completed_count = 0
        return project

    async def update(
        self,
        user_id: str,
        project_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Project:
        """Update the given fields; None leaves a field unchanged."""
        await self.get(user_id, project_id)

        values = {}
        if name is not None:
            values["name"] = _clean_name(name)
        if description is not None:
            values["description"] = _clean_description(description)
        if color is not None:
            values["color"] = _clean_color(color)

        if values:
            values["updated_at"] = datetime.utcnow()
            await self._update_columns("projects", values, {"id": project_id, "user_id": user_id})
            logger.info(f"Updated project: {project_id}")
        return await self.get(user_id, project_id)

    async def delete(self, user_id: str, project_id: str) -> bool:
        """Delete a project and, through the foreign key, its tasks."""
        result = await self.adapter.execute(
            "DELETE FROM projects WHERE id = $1 AND user_id = $2", project_id, user_id
        )
        if affected_rows(result) == 0:
            raise NotFoundError("Project not found")
        logger.info(f"Deleted project: {project_id}")
        return True

    async def stats(self, user_id: str) -> dict:
        """Totals across all of a user's projects."""
        projects = await self.list(user_id)
        total_tasks = sum(p.task_count or 0 for p in projects)
        completed = sum(p.completed_count or 0 for p in projects)
        return {
            "total_projects": len(projects),
            "total_tasks": total_tasks,
            "completed_tasks": completed,
            "completion_rate": round(completed / total_tasks * 100, 1) if total_tasks else 0.0,
            "projects": [
                {
                    "id": p.id,
                    "name": p.name,
                    "color": p.color,
                    "task_count": p.task_count or 0,
                    "completed_count": p.completed_count or 0,
                }
                for p in projects
            ],
        }
