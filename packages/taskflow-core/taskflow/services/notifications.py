"""
Notification Service for TaskFlow.

Reminders are derived, not stored: each open task with a due date and
enabled notification settings yields one reminder per lead time.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from taskflow.errors import UserInputError
from taskflow.models.task import Task
from taskflow.services.base import BaseService, now_or

logger = logging.getLogger(__name__)

DEFAULT_REMIND_BEFORE = [15]
MAX_WINDOW_MINUTES = 7 * 24 * 60


def reminder_message(task: Task, minutes_before: int) -> str:
    if minutes_before == 0:
        return f'"{task.text}" is due now'
    if minutes_before % (24 * 60) == 0:
        days = minutes_before // (24 * 60)
        return f'"{task.text}" is due in {days} day{"s" if days != 1 else ""}'
    if minutes_before % 60 == 0:
        hours = minutes_before // 60
        return f'"{task.text}" is due in {hours} hour{"s" if hours != 1 else ""}'
    return f'"{task.text}" is due in {minutes_before} minutes'


def reminders_for(task: Task, now: datetime, until: datetime) -> List[dict]:
    """Reminders for one task whose fire time falls in [now, until]."""
    settings = task.notification_settings or {}
    if task.completed or task.due_date is None or not settings.get("enabled", False):
        return []
    reminders = []
    for minutes in settings.get("remind_before_minutes") or DEFAULT_REMIND_BEFORE:
        fire_at = task.due_date - timedelta(minutes=int(minutes))
        if now <= fire_at <= until:
            reminders.append({
                "task_id": task.id,
                "text": task.text,
                "priority": task.priority,
                "due_date": task.due_date.isoformat(),
                "remind_at": fire_at.isoformat(),
                "minutes_before": int(minutes),
                "message": reminder_message(task, int(minutes)),
            })
    return reminders


class NotificationService(BaseService):
    """Service for upcoming task reminders."""

    async def upcoming(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        within_minutes: int = 60,
    ) -> List[dict]:
        """Reminders that fire in the next `within_minutes`, soonest first."""
        if not 1 <= within_minutes <= MAX_WINDOW_MINUTES:
            raise UserInputError(f"within_minutes must be between 1 and {MAX_WINDOW_MINUTES}")
        now = now_or(now)
        until = now + timedelta(minutes=within_minutes)

        rows = await self.adapter.fetch(
            """
            SELECT * FROM tasks
            WHERE user_id = $1 AND completed = $2 AND due_date IS NOT NULL
              AND due_date >= $3 AND notification_settings IS NOT NULL
            """,
            *self._encode(user_id, False, now),
        )
        reminders = []
        for row in rows:
            reminders.extend(reminders_for(Task.from_dict(row), now, until))
        reminders.sort(key=lambda r: r["remind_at"])
        logger.debug(f"{len(reminders)} reminders for {user_id} in the next {within_minutes} min")
        return reminders
