"""
Project model for TaskFlow.

Projects group a user's tasks; deleting a project deletes its tasks.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import uuid4

from taskflow.timeutil import parse_datetime

DEFAULT_PROJECT_COLOR = "#6366f1"
COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

PROJECT_NAME_MAX = 100
PROJECT_DESCRIPTION_MAX = 1000


@dataclass
class Project:
    """A named, colored group of tasks owned by one user."""

    user_id: str
    name: str
    id: str = field(default_factory=lambda: str(uuid4()))
    description: str = ""
    color: str = DEFAULT_PROJECT_COLOR
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Populated by ProjectService.get()
    task_count: Optional[int] = None
    completed_count: Optional[int] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = datetime.utcnow()
        if self.updated_at is None:
            self.updated_at = self.created_at

    def to_dict(self) -> dict:
        result = {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if self.task_count is not None:
            result["task_count"] = self.task_count
            result["completed_count"] = self.completed_count or 0
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        """Create Project from a database row."""
        return cls(
            id=data.get("id"),
            user_id=data.get("user_id"),
            name=data.get("name", ""),
            description=data.get("description") or "",
            color=data.get("color") or DEFAULT_PROJECT_COLOR,
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
            task_count=data.get("task_count"),
            completed_count=data.get("completed_count"),
        )
