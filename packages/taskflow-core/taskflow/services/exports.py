"""
Export Service for TaskFlow.

Dumps a user's projects and tasks as a JSON document (which the import
service can read back) or as a flat CSV sheet for spreadsheets.
"""

import csv
import io
import json
import logging
from datetime import date, datetime
from typing import List, Optional

from taskflow.errors import UserInputError
from taskflow.models.task import Task
from taskflow.services.base import BaseService, now_or, placeholders
from taskflow.timeutil import day_bounds, parse_date

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "csv")
EXPORT_VERSION = "1.0.0"

CSV_HEADERS = (
    "ID",
    "Task",
    "Description",
    "Project",
    "Priority",
    "Status",
    "Category",
    "Tags",
    "Due Date",
    "Created At",
    "Completed At",
    "Subtasks Total",
    "Subtasks Completed",
    "Recurring",
)

CONTENT_TYPES = {
    "json": "application/json",
    "csv": "text/csv; charset=utf-8",
}


def export_filename(fmt: str, today: date) -> str:
    return f"taskflow-export-{today.isoformat()}.{fmt}"


class ExportService(BaseService):
    """Service for downloading a user's data."""

    async def _tasks(
        self,
        user_id: str,
        project_ids: Optional[List[str]],
        include_completed: bool,
        start: Optional[date],
        end: Optional[date],
    ) -> List[Task]:
        query = "SELECT * FROM tasks WHERE user_id = $1"
        params = [user_id]
        if project_ids:
            query += f" AND project_id IN ({placeholders(project_ids, len(params) + 1)})"
            params.extend(project_ids)
        if not include_completed:
            params.append(False)
            query += f" AND completed = ${len(params)}"
        if start:
            params.append(day_bounds(start)[0])
            query += f" AND created_at >= ${len(params)}"
        if end:
            params.append(day_bounds(end)[1])
            query += f" AND created_at < ${len(params)}"
        query += " ORDER BY created_at DESC"

        rows = await self.adapter.fetch(query, *self._encode(*params))
        return [Task.from_dict(r) for r in rows]

    async def export(
        self,
        user_id: str,
        fmt: str = "json",
        project_ids: Optional[List[str]] = None,
        include_completed: bool = True,
        include_subtasks: bool = True,
        include_gamification: bool = False,
        start=None,
        end=None,
        now: Optional[datetime] = None,
    ) -> dict:
        """
        Export tasks, newest first.

        Args:
            fmt: json or csv
            project_ids: Limit to these projects (default: all)
            include_completed: Keep completed tasks
            include_subtasks: Keep subtask lists (JSON only; CSV has counts)
            include_gamification: Add XP, level, streak and achievements (JSON only)
            start, end: Inclusive range of creation days

        Returns:
            {"filename", "content_type", "content", "count"}
        """
        from taskflow.services.projects import ProjectService

        now = now_or(now)
        if fmt not in EXPORT_FORMATS:
            raise UserInputError(f"Invalid format. Must be one of: {', '.join(EXPORT_FORMATS)}")
        start, end = parse_date(start), parse_date(end)
        if start and end and start > end:
            raise UserInputError("start must be on or before end")

        projects = await ProjectService(self.adapter).list(user_id)
        if project_ids:
            owned = {p.id for p in projects}
            missing = [pid for pid in project_ids if pid not in owned]
            if missing:
                raise UserInputError(f"Unknown projects: {', '.join(missing)}")
            projects = [p for p in projects if p.id in project_ids]

        tasks = await self._tasks(user_id, project_ids, include_completed, start, end)
        if fmt == "csv":
            names = {p.id: p.name for p in projects}
            content = self._to_csv(tasks, names)
        else:
            content = await self._to_json(
                user_id, tasks, projects, include_subtasks, include_gamification, now
            )

        logger.info(f"Exported {len(tasks)} tasks for {user_id} as {fmt}")
        return {
            "filename": export_filename(fmt, now.date()),
            "content_type": CONTENT_TYPES[fmt],
            "content": content,
            "count": len(tasks),
        }

    async def _to_json(self, user_id, tasks, projects, include_subtasks, include_gamification, now) -> str:
        exported = []
        for task in tasks:
            data = task.to_dict()
            data.pop("user_id")
            if not include_subtasks:
                data.pop("subtasks")
            exported.append(data)

        document = {
            "version": EXPORT_VERSION,
            "app": "TaskFlow",
            "exported_at": now.isoformat(),
            "projects": [
                {k: v for k, v in p.to_dict().items() if k != "user_id"} for p in projects
            ],
            "tasks": exported,
        }
        if include_gamification:
            document["gamification"] = await self._gamification(user_id, now)
        return json.dumps(document, indent=2, ensure_ascii=False)

    async def _gamification(self, user_id: str, now: datetime) -> dict:
        from taskflow.services.gamification import GamificationService

        game = GamificationService(self.adapter)
        profile = await game.get_profile(user_id, now)
        return {
            "xp": profile.xp,
            "level": profile.level,
            "streak": profile.current_streak,
            "achievements": [a.id for a in await game.achievements(user_id) if a.unlocked],
        }

    def _to_csv(self, tasks: List[Task], project_names: dict) -> str:
        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for task in tasks:
            progress = task.subtask_progress
            writer.writerow([
                task.id,
                task.text,
                task.description or "",
                project_names.get(task.project_id, ""),
                task.priority,
                task.status,
                task.category,
                ", ".join(task.tags),
                task.due_date.isoformat() if task.due_date else "",
                task.created_at.isoformat() if task.created_at else "",
                task.completed_at.isoformat() if task.completed_at else "",
                progress["total"],
                progress["completed"],
                "Yes" if task.is_recurring else "No",
            ])
        return output.getvalue()
