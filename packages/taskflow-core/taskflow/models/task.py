"""
Task model for TaskFlow.

Tasks are the core work items. A task belongs to one project and one user,
may carry a checklist of subtasks, and may be one instance of a recurring series.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List
from uuid import uuid4

from taskflow.timeutil import parse_datetime, parse_json
from taskflow.recurrence import RecurrencePattern


@dataclass
class Subtask:
    """A checklist item inside a task."""

    text: str
    id: str = field(default_factory=lambda: str(uuid4()))
    completed: bool = False
    # First time the item was checked off; kept when it is unchecked again
    completed_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Subtask":
        return cls(
            id=data.get("id") or str(uuid4()),
            text=data.get("text", ""),
            completed=bool(data.get("completed", False)),
            completed_at=parse_datetime(data.get("completed_at")),
        )


@dataclass
class Task:
    """
    A task or work item.

    Attributes:
        id: Unique identifier (UUID)
        user_id: Owner
        project_id: Containing project
        text: Task title
        description: Detailed description
        completed: Mirrors status == "completed"
        status: pending, in_progress, completed, on_hold
        priority: low, medium, high
        category: Free-form category (work, personal, ...)
        tags: List of tags for filtering
        estimated_minutes: Optional effort estimate
        due_date: Optional due date/time (UTC)
        started_at: When the task first moved to in_progress
        completed_at: When the task was completed
        subtasks: Checklist items
        is_recurring: Whether completing it spawns the next instance
        recurrence_pattern: Schedule for the series
        parent_recurring_id: Root task of the series this instance belongs to
        occurrence_number: 1 for the root, incremented per instance
        notification_settings: {"enabled": bool, "remind_before_minutes": [int]}
    """

    user_id: str
    project_id: str
    text: str
    id: str = field(default_factory=lambda: str(uuid4()))
    description: Optional[str] = None
    completed: bool = False
    status: str = "pending"
    priority: str = "medium"
    category: str = "general"
    tags: List[str] = field(default_factory=list)
    estimated_minutes: Optional[int] = None
    due_date: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    subtasks: List[Subtask] = field(default_factory=list)
    is_recurring: bool = False
    recurrence_pattern: Optional[RecurrencePattern] = None
    parent_recurring_id: Optional[str] = None
    occurrence_number: int = 1
    notification_settings: Optional[dict] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = datetime.utcnow()
        if self.updated_at is None:
            self.updated_at = self.created_at

    @property
    def series_id(self) -> str:
        """Id of the root task of a recurring series."""
        return self.parent_recurring_id or self.id

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.utcnow()
        return self.due_date is not None and not self.completed and self.due_date < now

    @property
    def subtask_progress(self) -> dict:
        done = sum(1 for s in self.subtasks if s.completed)
        return {"completed": done, "total": len(self.subtasks)}

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "project_id": self.project_id,
            "text": self.text,
            "description": self.description,
            "completed": self.completed,
            "status": self.status,
            "priority": self.priority,
            "category": self.category,
            "tags": self.tags,
            "estimated_minutes": self.estimated_minutes,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "subtasks": [s.to_dict() for s in self.subtasks],
            "is_recurring": self.is_recurring,
            "recurrence_pattern": self.recurrence_pattern.to_dict() if self.recurrence_pattern else None,
            "parent_recurring_id": self.parent_recurring_id,
            "occurrence_number": self.occurrence_number,
            "notification_settings": self.notification_settings,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from dictionary (e.g., database row)."""
        pattern = parse_json(data.get("recurrence_pattern"))
        return cls(
            id=data.get("id"),
            user_id=data.get("user_id"),
            project_id=data.get("project_id"),
            text=data.get("text", ""),
            description=data.get("description"),
            completed=bool(data.get("completed", False)),
            status=data.get("status", "pending"),
            priority=data.get("priority", "medium"),
            category=data.get("category") or "general",
            tags=parse_json(data.get("tags"), []),
            estimated_minutes=data.get("estimated_minutes"),
            due_date=parse_datetime(data.get("due_date")),
            started_at=parse_datetime(data.get("started_at")),
            completed_at=parse_datetime(data.get("completed_at")),
            subtasks=[Subtask.from_dict(s) for s in parse_json(data.get("subtasks"), [])],
            is_recurring=bool(data.get("is_recurring", False)),
            recurrence_pattern=RecurrencePattern.from_dict(pattern) if pattern else None,
            parent_recurring_id=data.get("parent_recurring_id"),
            occurrence_number=data.get("occurrence_number") or 1,
            notification_settings=parse_json(data.get("notification_settings")),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )


# Valid status values
TASK_STATUSES = ("pending", "in_progress", "completed", "on_hold")

# Valid priority values, lowest first
TASK_PRIORITIES = ("low", "medium", "high")

PRIORITY_WEIGHTS = {"low": 1, "medium": 2, "high": 3}

TASK_TEXT_MAX = 500
TASK_DESCRIPTION_MAX = 5000
TASK_CATEGORY_MAX = 50
TAG_MAX = 50
SUBTASKS_MAX = 20
SUBTASK_TEXT_MAX = 200
ESTIMATED_MINUTES_MAX = 1440
