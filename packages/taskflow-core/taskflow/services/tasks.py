"""
Task Service for TaskFlow.

CRUD, completion (with gamification rewards and recurring instances),
subtasks, bulk operations and the task views used by the dashboard.
"""

import builtins
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from taskflow.db import affected_rows
from taskflow.errors import NotFoundError, UserInputError
from taskflow.filters import DEFAULT_SORT, TaskFilter, apply_filters, paginate
from taskflow.models.dependency import BLOCKING_TYPES
from taskflow.models.task import (
    ESTIMATED_MINUTES_MAX,
    SUBTASK_TEXT_MAX,
    SUBTASKS_MAX,
    TAG_MAX,
    TASK_CATEGORY_MAX,
    TASK_DESCRIPTION_MAX,
    TASK_PRIORITIES,
    TASK_STATUSES,
    TASK_TEXT_MAX,
    Subtask,
    Task,
)
from taskflow.quick_add import parse_quick_add
from taskflow.recurrence import RecurrencePattern, can_continue, next_occurrence
from taskflow.services.base import BaseService, now_or, placeholders
from taskflow.timeutil import day_bounds, parse_datetime

logger = logging.getLogger(__name__)

# Fields a caller may change through update()
UPDATABLE_FIELDS = (
    "text",
    "description",
    "priority",
    "category",
    "tags",
    "estimated_minutes",
    "due_date",
    "subtasks",
    "is_recurring",
    "recurrence_pattern",
    "notification_settings",
    "project_id",
)

BULK_FIELDS = ("priority", "category", "status", "completed", "project_id", "due_date")

OPEN_STATUSES = tuple(s for s in TASK_STATUSES if s != "completed")


# =============================================================================
# VALIDATION
# =============================================================================

def _clean_text(text: Optional[str]) -> str:
    text = (text or "").strip()
    if not text:
        raise UserInputError("Task text is required")
    if len(text) > TASK_TEXT_MAX:
        raise UserInputError(f"Task text must be at most {TASK_TEXT_MAX} characters")
    return text


def _clean_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    if len(description) > TASK_DESCRIPTION_MAX:
        raise UserInputError(f"Description must be at most {TASK_DESCRIPTION_MAX} characters")
    return description


def _check_priority(priority: str) -> str:
    if priority not in TASK_PRIORITIES:
        raise UserInputError(f"Invalid priority. Must be one of: {', '.join(TASK_PRIORITIES)}")
    return priority


def _check_status(status: str) -> str:
    if status not in TASK_STATUSES:
        raise UserInputError(f"Invalid status. Must be one of: {', '.join(TASK_STATUSES)}")
    return status


def _clean_category(category: Optional[str]) -> str:
    category = (category or "").strip() or "general"
    if len(category) > TASK_CATEGORY_MAX:
        raise UserInputError(f"Category must be at most {TASK_CATEGORY_MAX} characters")
    return category


def _clean_tags(tags: Optional[List[str]]) -> List[str]:
    cleaned = []
    for tag in tags or []:
        tag = str(tag).strip()
        if not tag:
            continue
        if len(tag) > TAG_MAX:
            raise UserInputError(f"Tags must be at most {TAG_MAX} characters")
        if tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def _check_estimate(minutes: Optional[int]) -> Optional[int]:
    if minutes is None:
        return None
    if not 1 <= int(minutes) <= ESTIMATED_MINUTES_MAX:
        raise UserInputError(f"Estimated minutes must be between 1 and {ESTIMATED_MINUTES_MAX}")
    return int(minutes)


def _clean_subtasks(subtasks: Optional[List[Any]]) -> List[Subtask]:
    subtasks = subtasks or []
    if len(subtasks) > SUBTASKS_MAX:
        raise UserInputError(f"A task can have at most {SUBTASKS_MAX} subtasks")
    cleaned = []
    for item in subtasks:
        subtask = item if isinstance(item, Subtask) else Subtask.from_dict(
            item if isinstance(item, dict) else {"text": str(item)}
        )
        subtask.text = subtask.text.strip()
        if not subtask.text:
            raise UserInputError("Subtask text is required")
        if len(subtask.text) > SUBTASK_TEXT_MAX:
            raise UserInputError(f"Subtask text must be at most {SUBTASK_TEXT_MAX} characters")
        cleaned.append(subtask)
    return cleaned


def _clean_pattern(pattern: Any) -> Optional[RecurrencePattern]:
    if pattern is None:
        return None
    if not isinstance(pattern, RecurrencePattern):
        pattern = RecurrencePattern.from_dict(pattern)
    errors = pattern.validate()
    if errors:
        raise UserInputError("; ".join(errors))
    return pattern


def _clean_notifications(settings: Optional[dict]) -> Optional[dict]:
    if settings is None:
        return None
    minutes = settings.get("remind_before_minutes")
    if minutes is None:
        minutes = [15]
    if not isinstance(minutes, list) or any(int(m) < 0 for m in minutes):
        raise UserInputError("remind_before_minutes must be a list of non-negative minutes")
    return {
        "enabled": bool(settings.get("enabled", True)),
        "remind_before_minutes": sorted({int(m) for m in minutes}, reverse=True),
    }


def _column_values(task: Task) -> Dict[str, Any]:
    """Every stored column of a task, ready for the adapter."""
    return {
        "id": task.id,
        "user_id": task.user_id,
        "project_id": task.project_id,
        "text": task.text,
        "description": task.description,
        "completed": task.completed,
        "status": task.status,
        "priority": task.priority,
        "category": task.category,
        "tags": task.tags,
        "estimated_minutes": task.estimated_minutes,
        "due_date": task.due_date,
        "started_at": task.started_at,
        "completed_at": task.completed_at,
        "subtasks": [s.to_dict() for s in task.subtasks],
        "is_recurring": task.is_recurring,
        "recurrence_pattern": task.recurrence_pattern.to_dict() if task.recurrence_pattern else None,
        "parent_recurring_id": task.parent_recurring_id,
        "occurrence_number": task.occurrence_number,
        "notification_settings": task.notification_settings,
        "created_at": task.created_at,
        "updated_at": task.updated_at,
    }


class TaskService(BaseService):
    """
    Service for managing tasks.

    Every lookup is scoped by user_id; another user's task reads as not found.
    """

    # ---------------------------------------------------------------- helpers

    async def _project_exists(self, user_id: str, project_id: str) -> bool:
        value = await self.adapter.fetchval(
            "SELECT 1 FROM projects WHERE id = $1 AND user_id = $2", project_id, user_id
        )
        return value is not None

    async def _save(self, task: Task, *fields: str) -> None:
        values = _column_values(task)
        await self._update_columns(
            "tasks",
            {f: values[f] for f in fields + ("updated_at",)},
            {"id": task.id, "user_id": task.user_id},
        )

    async def _insert_task(self, task: Task) -> None:
        await self._insert("tasks", _column_values(task))

    async def _fetch_tasks(self, user_id: str, project_id: Optional[str] = None) -> List[Task]:
        if project_id:
            rows = await self.adapter.fetch(
                "SELECT * FROM tasks WHERE user_id = $1 AND project_id = $2",
                user_id, project_id,
            )
        else:
            rows = await self.adapter.fetch("SELECT * FROM tasks WHERE user_id = $1", user_id)
        return [Task.from_dict(r) for r in rows]

    async def blockers(self, task_id: str) -> List[Task]:
        """Incomplete tasks that block task_id."""
        rows = await self.adapter.fetch(
            f"""
            SELECT t.* FROM task_dependencies d
            JOIN tasks t ON t.id = d.predecessor_task_id
            WHERE d.successor_task_id = $1
              AND d.type IN ({placeholders(BLOCKING_TYPES, 2)})
              AND t.completed = ${len(BLOCKING_TYPES) + 2}
            """,
            task_id, *BLOCKING_TYPES, False,
        )
        return [Task.from_dict(r) for r in rows]

    async def _ensure_unblocked(self, task: Task) -> None:
        blocking = await self.blockers(task.id)
        if blocking:
            names = ", ".join(b.text for b in blocking)
            raise UserInputError(f"Task is blocked by incomplete dependencies: {names}")

    # ------------------------------------------------------------------- read

    async def get(self, user_id: str, task_id: str) -> Task:
        row = await self.adapter.fetchrow(
            "SELECT * FROM tasks WHERE id = $1 AND user_id = $2", task_id, user_id
        )
        if not row:
            raise NotFoundError("Task not found")
        return Task.from_dict(row)

    async def list(
        self,
        user_id: str,
        task_filter: Optional[TaskFilter] = None,
        sort: str = DEFAULT_SORT,
        limit: Optional[int] = None,
        offset: int = 0,
        now: Optional[datetime] = None,
    ) -> dict:
        """
        List tasks matching a filter.

        Returns:
            {"items": [Task], "total", "has_more", "limit", "offset"}
        """
        task_filter = task_filter or TaskFilter()
        tasks = await self._fetch_tasks(user_id, task_filter.project_id)
        return paginate(apply_filters(tasks, task_filter, sort, now_or(now)), limit, offset)

    async def list_by_project(
        self,
        user_id: str,
        project_id: str,
        task_filter: Optional[TaskFilter] = None,
        sort: str = DEFAULT_SORT,
        limit: Optional[int] = None,
        offset: int = 0,
        now: Optional[datetime] = None,
    ) -> dict:
        if not await self._project_exists(user_id, project_id):
            raise NotFoundError("Project not found")
        task_filter = task_filter or TaskFilter()
        task_filter.project_id = project_id
        return await self.list(user_id, task_filter, sort, limit, offset, now)

    async def due_today(self, user_id: str, now: Optional[datetime] = None) -> List[Task]:
        start, end = day_bounds(now_or(now).date())
        rows = await self.adapter.fetch(
            """
            SELECT * FROM tasks
            WHERE user_id = $1 AND completed = $2 AND due_date >= $3 AND due_date < $4
            ORDER BY due_date
            """,
            *self._encode(user_id, False, start, end),
        )
        return [Task.from_dict(r) for r in rows]

    async def overdue(self, user_id: str, now: Optional[datetime] = None) -> List[Task]:
        rows = await self.adapter.fetch(
            """
            SELECT * FROM tasks
            WHERE user_id = $1 AND completed = $2 AND due_date IS NOT NULL AND due_date < $3
            ORDER BY due_date
            """,
            *self._encode(user_id, False, now_or(now)),
        )
        return [Task.from_dict(r) for r in rows]

    async def stats(self, user_id: str, now: Optional[datetime] = None) -> dict:
        now = now_or(now)
        tasks = await self._fetch_tasks(user_id)
        start, end = day_bounds(now.date())
        completed = [t for t in tasks if t.completed]
        return {
            "total": len(tasks),
            "completed": len(completed),
            "pending": len(tasks) - len(completed),
            "in_progress": sum(1 for t in tasks if t.status == "in_progress"),
            "overdue": sum(1 for t in tasks if t.is_overdue(now)),
            "due_today": sum(
                1 for t in tasks
                if not t.completed and t.due_date and start <= t.due_date < end
            ),
            "completed_today": sum(
                1 for t in completed if t.completed_at and start <= t.completed_at < end
            ),
            "by_priority": {
                p: sum(1 for t in tasks if t.priority == p and not t.completed)
                for p in TASK_PRIORITIES
            },
        }

    async def search(self, user_id: str, query: str, limit: int = 20) -> List[Task]:
        """Full-text search (PostgreSQL) or LIKE search (SQLite) over text and description."""
        query = (query or "").strip()
        if not query:
            return []
        rows = await self.adapter.search_text(
            "tasks",
            query,
            ["text", "description"],
            limit=max(1, min(int(limit), 100)),
            where_clause="user_id = $2",
            params=(user_id,),
        )
        return [Task.from_dict(r) for r in rows]

    # ------------------------------------------------------------------ write

    async def create(
        self,
        user_id: str,
        project_id: str,
        text: str,
        description: Optional[str] = None,
        priority: str = "medium",
        status: str = "pending",
        category: Optional[str] = None,
        tags: Optional[List[str]] = None,
        estimated_minutes: Optional[int] = None,
        due_date: Optional[datetime] = None,
        subtasks: Optional[List[Any]] = None,
        is_recurring: bool = False,
        recurrence_pattern: Any = None,
        notification_settings: Optional[dict] = None,
        now: Optional[datetime] = None,
    ) -> Task:
        """
        Create a task in one of the user's projects.

        Args:
            user_id: Owner
            project_id: Project that must belong to the owner
            text: Task title
            priority: low, medium, high
            status: pending, in_progress, on_hold
            recurrence_pattern: Required when is_recurring is set

        Returns:
            Created Task object
        """
        now = now_or(now)
        _check_priority(priority)
        _check_status(status)
        if status == "completed":
            raise UserInputError("Create the task first, then complete it")
        if not project_id or not await self._project_exists(user_id, project_id):
            raise NotFoundError("Project not found")

        pattern = _clean_pattern(recurrence_pattern)
        if is_recurring and pattern is None:
            raise UserInputError("Recurring tasks require a recurrence pattern")

        task = Task(
            user_id=user_id,
            project_id=project_id,
            text=_clean_text(text),
            description=_clean_description(description),
            priority=priority,
            status=status,
            category=_clean_category(category),
            tags=_clean_tags(tags),
            estimated_minutes=_check_estimate(estimated_minutes),
            due_date=parse_datetime(due_date),
            subtasks=_clean_subtasks(subtasks),
            is_recurring=bool(is_recurring),
            recurrence_pattern=pattern if is_recurring else None,
            notification_settings=_clean_notifications(notification_settings),
            started_at=now if status == "in_progress" else None,
            created_at=now,
        )
        await self._insert_task(task)
        logger.info(f"Created task: {task.id} - {task.text}")

        await self._record_created(user_id, now)
        return task

    async def quick_add(
        self,
        user_id: str,
        project_id: str,
        entry: str,
        now: Optional[datetime] = None,
    ) -> dict:
        """
        Create a task from a one-line entry like "pay rent friday !high #home".

        Returns:
            {"task": Task, "parsed": ParsedTask}
        """
        now = now_or(now)
        parsed = parse_quick_add(entry, now.date())
        task = await self.create(
            user_id,
            project_id,
            parsed.text,
            priority=parsed.priority or "medium",
            category=parsed.category,
            tags=parsed.tags,
            due_date=parsed.due_datetime,
            now=now,
        )
        return {"task": task, "parsed": parsed}

    async def restore(
        self,
        user_id: str,
        project_id: str,
        data: dict,
        now: Optional[datetime] = None,
    ) -> Task:
        """
        Insert a task from imported data.

        Values are validated like create(), but the task may arrive already
        completed. Imports earn no XP and leave analytics and challenges alone.
        """
        now = now_or(now)
        if not await self._project_exists(user_id, project_id):
            raise NotFoundError("Project not found")

        try:
            due_date = parse_datetime(data.get("due_date"))
            created_at = parse_datetime(data.get("created_at")) or now
            completed_at = parse_datetime(data.get("completed_at"))
        except ValueError as e:
            raise UserInputError(f"Invalid date: {e}")

        completed = bool(data.get("completed")) or data.get("status") == "completed"
        status = "completed" if completed else (data.get("status") or "pending")
        _check_status(status)

        task = Task(
            user_id=user_id,
            project_id=project_id,
            text=_clean_text(data.get("text")),
            description=_clean_description(data.get("description")),
            priority=_check_priority(data.get("priority") or "medium"),
            status=status,
            completed=completed,
            category=_clean_category(data.get("category")),
            tags=_clean_tags(data.get("tags")),
            estimated_minutes=_check_estimate(data.get("estimated_minutes")),
            due_date=due_date,
            subtasks=_clean_subtasks(data.get("subtasks")),
            completed_at=(completed_at or now) if completed else None,
            created_at=created_at,
            updated_at=now,
        )
        await self._insert_task(task)
        logger.info(f"Restored task: {task.id} - {task.text}")
        return task

    async def _record_created(self, user_id: str, now: datetime) -> None:
        from taskflow.services.analytics import AnalyticsService
        from taskflow.services.gamification import GamificationService

        await self._side_effect(
            "Analytics update",
            AnalyticsService(self.adapter).record(user_id, now.date(), tasks_created=1),
        )
        await self._side_effect(
            "Challenge progress",
            GamificationService(self.adapter).record_event(user_id, "tasks_created", 1, now),
        )

    async def update(self, user_id: str, task_id: str, now: Optional[datetime] = None, **changes) -> Task:
        """
        Partially update a task.

        A change to status or completed goes through complete()/uncomplete()
        so completed always matches status.
        """
        now = now_or(now)
        task = await self.get(user_id, task_id)

        status = changes.pop("status", None)
        completed = changes.pop("completed", None)
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise UserInputError(f"Unknown task fields: {', '.join(sorted(unknown))}")

        fields = []
        for key, value in changes.items():
            if key == "text":
                task.text = _clean_text(value)
            elif key == "description":
                task.description = _clean_description(value)
            elif key == "priority":
                task.priority = _check_priority(value)
            elif key == "category":
                task.category = _clean_category(value)
            elif key == "tags":
                task.tags = _clean_tags(value)
            elif key == "estimated_minutes":
                task.estimated_minutes = _check_estimate(value)
            elif key == "due_date":
                task.due_date = parse_datetime(value)
            elif key == "subtasks":
                checked = {s.id: s.completed_at for s in task.subtasks}
                task.subtasks = _clean_subtasks(value)
                for subtask in task.subtasks:
                    subtask.completed_at = checked.get(subtask.id)
            elif key == "is_recurring":
                task.is_recurring = bool(value)
            elif key == "recurrence_pattern":
                task.recurrence_pattern = _clean_pattern(value)
            elif key == "notification_settings":
                task.notification_settings = _clean_notifications(value)
            elif key == "project_id":
                if not await self._project_exists(user_id, value):
                    raise NotFoundError("Project not found")
                task.project_id = value
            fields.append(key)

        if task.is_recurring and task.recurrence_pattern is None:
            raise UserInputError("Recurring tasks require a recurrence pattern")
        if not task.is_recurring and "is_recurring" in fields:
            task.recurrence_pattern = None
            fields.append("recurrence_pattern")

        if status is not None:
            _check_status(status)
        wants_complete = status == "completed" or completed is True
        wants_open = status in OPEN_STATUSES or completed is False
        if wants_complete and wants_open:
            raise UserInputError("status and completed disagree")

        if status in OPEN_STATUSES and not task.completed and status != task.status:
            if status == "in_progress":
                await self._ensure_unblocked(task)
                task.started_at = task.started_at or now
                fields.append("started_at")
            task.status = status
            fields.append("status")

        # A blocked completion or reopen must be rejected before anything is written
        if (wants_complete and not task.completed) or (status == "in_progress" and task.completed):
            await self._ensure_unblocked(task)

        if fields:
            task.updated_at = now
            await self._save(task, *dict.fromkeys(fields))
            logger.info(f"Updated task: {task_id}")

        if wants_complete and not task.completed:
            return (await self.complete(user_id, task_id, now))["task"]
        if wants_open and task.completed:
            return await self.uncomplete(user_id, task_id, status or "pending", now)
        return task

    async def delete(self, user_id: str, task_id: str) -> bool:
        result = await self.adapter.execute(
            "DELETE FROM tasks WHERE id = $1 AND user_id = $2", task_id, user_id
        )
        if affected_rows(result) == 0:
            raise NotFoundError("Task not found")
        logger.info(f"Deleted task: {task_id}")
        return True

    # ------------------------------------------------------------- completion

    async def complete(self, user_id: str, task_id: str, now: Optional[datetime] = None) -> dict:
        """
        Mark a task completed and hand out rewards.

        Reward or analytics failures are logged and leave rewards as None;
        the completion itself still stands.

        Returns:
            {"task": Task, "rewards": dict | None, "next_occurrence": Task | None}
        """
        from taskflow.services.analytics import AnalyticsService
        from taskflow.services.gamification import GamificationService

        now = now_or(now)
        task = await self.get(user_id, task_id)
        if task.completed:
            raise UserInputError("Task is already completed")
        await self._ensure_unblocked(task)

        task.completed = True
        task.status = "completed"
        task.completed_at = now
        task.updated_at = now
        await self._save(task, "completed", "status", "completed_at")
        logger.info(f"Completed task: {task_id}")

        rewards = await self._side_effect(
            "Gamification update",
            GamificationService(self.adapter).record_task_completion(user_id, task, now),
        )
        await self._side_effect(
            "Analytics update",
            AnalyticsService(self.adapter).record(user_id, now.date(), tasks_completed=1),
        )

        next_task = None
        if task.is_recurring and task.recurrence_pattern:
            next_task = await self._spawn_next(task, now)

        return {"task": task, "rewards": rewards, "next_occurrence": next_task}

    async def _spawn_next(self, task: Task, now: datetime) -> Optional[Task]:
        """Create the next instance of a recurring series, if the series continues."""
        pattern = task.recurrence_pattern
        due = next_occurrence(pattern, task.due_date or now)
        number = task.occurrence_number + 1
        if not can_continue(pattern, number, due):
            logger.info(f"Recurring series {task.series_id} ended at occurrence {task.occurrence_number}")
            return None

        existing = await self.adapter.fetchval(
            """
            SELECT id FROM tasks
            WHERE user_id = $1 AND parent_recurring_id = $2 AND occurrence_number = $3
            """,
            task.user_id, task.series_id, number,
        )
        if existing:
            return None

        next_task = Task(
            user_id=task.user_id,
            project_id=task.project_id,
            text=task.text,
            description=task.description,
            priority=task.priority,
            category=task.category,
            tags=list(task.tags),
            estimated_minutes=task.estimated_minutes,
            due_date=due,
            subtasks=[Subtask(text=s.text) for s in task.subtasks],
            is_recurring=True,
            recurrence_pattern=pattern,
            parent_recurring_id=task.series_id,
            occurrence_number=number,
            notification_settings=task.notification_settings,
            created_at=now,
        )
        await self._insert_task(next_task)
        logger.info(f"Created occurrence {number} of series {task.series_id}: {next_task.id}")
        return next_task

    async def uncomplete(
        self,
        user_id: str,
        task_id: str,
        status: str = "pending",
        now: Optional[datetime] = None,
    ) -> Task:
        """Reopen a completed task. XP already awarded is kept."""
        from taskflow.services.analytics import AnalyticsService

        now = now_or(now)
        if status not in OPEN_STATUSES:
            raise UserInputError(f"Invalid status. Must be one of: {', '.join(OPEN_STATUSES)}")
        task = await self.get(user_id, task_id)
        if not task.completed:
            raise UserInputError("Task is not completed")
        if status == "in_progress":
            await self._ensure_unblocked(task)
            task.started_at = task.started_at or now

        completed_day = (task.completed_at or now).date()
        task.completed = False
        task.status = status
        task.completed_at = None
        task.updated_at = now
        await self._save(task, "completed", "status", "completed_at", "started_at")
        logger.info(f"Reopened task: {task_id}")

        await self._side_effect(
            "Analytics update",
            AnalyticsService(self.adapter).record(user_id, completed_day, tasks_completed=-1),
        )
        return task

    async def toggle_subtask(
        self,
        user_id: str,
        task_id: str,
        subtask_id: str,
        now: Optional[datetime] = None,
    ) -> Task:
        from taskflow.services.gamification import GamificationService

        now = now_or(now)
        task = await self.get(user_id, task_id)
        subtask = next((s for s in task.subtasks if s.id == subtask_id), None)
        if subtask is None:
            raise NotFoundError("Subtask not found")

        subtask.completed = not subtask.completed
        first_completion = subtask.completed and subtask.completed_at is None
        if first_completion:
            subtask.completed_at = now
        task.updated_at = now
        await self._save(task, "subtasks")

        if first_completion:
            await self._side_effect(
                "Challenge progress",
                GamificationService(self.adapter).record_event(user_id, "subtasks_completed", 1, now),
            )
        return task

    # ------------------------------------------------------------------- bulk

    async def _owned_ids(self, user_id: str, task_ids: List[str]) -> List[str]:
        ids = list(dict.fromkeys(task_ids or []))
        if not ids:
            raise UserInputError("No task ids given")
        rows = await self.adapter.fetch(
            f"SELECT id FROM tasks WHERE user_id = $1 AND id IN ({placeholders(ids, 2)})",
            user_id, *ids,
        )
        if len(rows) != len(ids):
            raise NotFoundError("One or more tasks not found")
        return ids

    async def bulk_update(
        self,
        user_id: str,
        task_ids: List[str],
        changes: dict,
        now: Optional[datetime] = None,
    ) -> builtins.list:
        """
        Apply the same changes to several tasks.

        Everything is validated up front (ownership, values, blockers) so a
        rejected batch changes nothing.
        """
        now = now_or(now)
        unknown = set(changes) - set(BULK_FIELDS)
        if unknown:
            raise UserInputError(f"Fields not allowed in bulk update: {', '.join(sorted(unknown))}")
        if not changes:
            raise UserInputError("No changes given")
        ids = await self._owned_ids(user_id, task_ids)

        if "priority" in changes:
            _check_priority(changes["priority"])
        if "status" in changes:
            _check_status(changes["status"])
        if "category" in changes:
            _clean_category(changes["category"])
        if "project_id" in changes and not await self._project_exists(user_id, changes["project_id"]):
            raise NotFoundError("Project not found")

        if changes.get("status") in ("completed", "in_progress") or changes.get("completed") is True:
            for task_id in ids:
                task = await self.get(user_id, task_id)
                if not task.completed:
                    await self._ensure_unblocked(task)

        updated = []
        for task_id in ids:
            task = await self.get(user_id, task_id)
            current = dict(changes)
            if task.completed and (current.get("status") == "completed" or current.get("completed") is True):
                current.pop("status", None)
                current.pop("completed", None)
            updated.append(await self.update(user_id, task_id, now, **current))
        logger.info(f"Bulk updated {len(updated)} tasks for {user_id}")
        return updated

    async def bulk_delete(self, user_id: str, task_ids: List[str]) -> int:
        ids = await self._owned_ids(user_id, task_ids)
        result = await self.adapter.execute(
            f"DELETE FROM tasks WHERE user_id = $1 AND id IN ({placeholders(ids, 2)})",
            user_id, *ids,
        )
        count = affected_rows(result)
        logger.info(f"Bulk deleted {count} tasks for {user_id}")
        return count

    async def create_from_blueprint(
        self,
        user_id: str,
        project_id: str,
        blueprint: dict,
        due_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> Task:
        """Create a task from a template blueprint dict."""
        return await self.create(
            user_id,
            project_id,
            text=blueprint.get("text", ""),
            description=blueprint.get("description"),
            priority=blueprint.get("priority", "medium"),
            category=blueprint.get("category"),
            tags=blueprint.get("tags"),
            estimated_minutes=blueprint.get("estimated_minutes"),
            due_date=due_date,
            subtasks=[{"id": str(uuid4()), **s} for s in blueprint.get("subtasks") or []],
            is_recurring=bool(blueprint.get("is_recurring")),
            recurrence_pattern=blueprint.get("recurrence_pattern"),
            notification_settings=blueprint.get("notification_settings"),
            now=now,
        )
