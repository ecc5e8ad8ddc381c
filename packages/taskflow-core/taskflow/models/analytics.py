"""
Daily analytics rollup model.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional
from uuid import uuid4

from taskflow.timeutil import parse_date


def completion_rate(created: int, completed: int) -> float:
    """Percent of created tasks completed, capped at 100."""
    if created <= 0:
        return 100.0 if completed > 0 else 0.0
    return round(min(completed / created, 1.0) * 100, 1)


@dataclass
class DailyAnalytics:
    """Counters for one user on one UTC day. focus_time is in minutes."""

    user_id: str
    date: date
    id: str = field(default_factory=lambda: str(uuid4()))
    tasks_created: int = 0
    tasks_completed: int = 0
    focus_time: int = 0
    completion_rate: float = 0.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "tasks_created": self.tasks_created,
            "tasks_completed": self.tasks_completed,
            "focus_time": self.focus_time,
            "completion_rate": self.completion_rate,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DailyAnalytics":
        return cls(
            id=data.get("id"),
            user_id=data.get("user_id"),
            date=parse_date(data.get("date")),
            tasks_created=data.get("tasks_created") or 0,
            tasks_completed=data.get("tasks_completed") or 0,
            focus_time=data.get("focus_time") or 0,
            completion_rate=float(data.get("completion_rate") or 0.0),
        )
