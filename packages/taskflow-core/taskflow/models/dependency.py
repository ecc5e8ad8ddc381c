"""
Task dependency model.

A dependency links a predecessor task to a successor task.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import uuid4

from taskflow.timeutil import parse_datetime

# blocks / blocked_by: the successor cannot start until the predecessor is done.
# relates_to: informational link only.
DEPENDENCY_TYPES = ("blocks", "blocked_by", "relates_to")
BLOCKING_TYPES = ("blocks", "blocked_by")


@dataclass
class TaskDependency:
    predecessor_task_id: str
    successor_task_id: str
    type: str = "blocks"
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = datetime.utcnow()

    @property
    def is_blocking(self) -> bool:
        return self.type in BLOCKING_TYPES

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "predecessor_task_id": self.predecessor_task_id,
            "successor_task_id": self.successor_task_id,
            "type": self.type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TaskDependency":
        return cls(
            id=data.get("id"),
            predecessor_task_id=data.get("predecessor_task_id"),
            successor_task_id=data.get("successor_task_id"),
            type=data.get("type", "blocks"),
            created_at=parse_datetime(data.get("created_at")),
        )
