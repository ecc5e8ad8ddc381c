"""
Calendar Service for TaskFlow.

Month view: tasks grouped by due day, with upcoming instances of recurring
series projected into the month.
"""

import calendar as calendar_module
import logging
from collections import defaultdict
from datetime import datetime
from typing import Optional

from taskflow.errors import UserInputError
from taskflow.models.task import Task
from taskflow.recurrence import MAX_GENERATED_INSTANCES, can_continue, next_occurrence
from taskflow.services.base import BaseService

logger = logging.getLogger(__name__)


def month_bounds(year: int, month: int) -> tuple:
    if not 1 <= month <= 12:
        raise UserInputError("Month must be between 1 and 12")
    if not 1970 <= year <= 9998:
        raise UserInputError("Year out of range")
    start = datetime(year, month, 1)
    end = datetime(year + month // 12, month % 12 + 1, 1)
    return start, end


class CalendarService(BaseService):
    """Service for the calendar view."""

    async def month(self, user_id: str, year: int, month: int) -> dict:
        """
        Tasks due in one month, keyed by ISO day.

        The latest instance of each open recurring series is projected forward,
        at most MAX_GENERATED_INSTANCES occurrences past it. Projected entries
        carry "virtual": True and the series id.
        """
        start, end = month_bounds(year, month)
        rows = await self.adapter.fetch(
            """
            SELECT * FROM tasks
            WHERE user_id = $1 AND due_date IS NOT NULL AND due_date >= $2 AND due_date < $3
            ORDER BY due_date
            """,
            *self._encode(user_id, start, end),
        )
        days = defaultdict(list)
        for row in rows:
            task = Task.from_dict(row)
            days[task.due_date.date().isoformat()].append({**task.to_dict(), "virtual": False})

        recurring = await self.adapter.fetch(
            """
            SELECT * FROM tasks
            WHERE user_id = $1 AND is_recurring = $2 AND completed = $3 AND due_date IS NOT NULL
              AND due_date < $4
            """,
            *self._encode(user_id, True, False, end),
        )
        for row in recurring:
            task = Task.from_dict(row)
            if not task.recurrence_pattern:
                continue
            number = task.occurrence_number
            due = task.due_date
            for _ in range(MAX_GENERATED_INSTANCES):
                due = next_occurrence(task.recurrence_pattern, due)
                number += 1
                if due >= end or not can_continue(task.recurrence_pattern, number, due):
                    break
                if due < start:
                    continue
                days[due.date().isoformat()].append({
                    "id": f"{task.series_id}:{number}",
                    "series_id": task.series_id,
                    "text": task.text,
                    "priority": task.priority,
                    "category": task.category,
                    "project_id": task.project_id,
                    "due_date": due.isoformat(),
                    "occurrence_number": number,
                    "completed": False,
                    "virtual": True,
                })

        return {
            "year": year,
            "month": month,
            "days_in_month": calendar_module.monthrange(year, month)[1],
            "days": {day: items for day, items in sorted(days.items())},
            "total": sum(len(items) for items in days.values()),
        }
