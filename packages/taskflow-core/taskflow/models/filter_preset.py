"""
Saved filter presets.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import uuid4

from taskflow.timeutil import parse_datetime, parse_json


@dataclass
class FilterPreset:
    """A named TaskFilter plus sort option saved by a user."""

    user_id: str
    name: str
    filters: dict = field(default_factory=dict)
    sort: str = "date-desc"
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = datetime.utcnow()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "filters": self.filters,
            "sort": self.sort,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FilterPreset":
        return cls(
            id=data.get("id"),
            user_id=data.get("user_id"),
            name=data.get("name", ""),
            filters=parse_json(data.get("filters"), {}),
            sort=data.get("sort") or "date-desc",
            created_at=parse_datetime(data.get("created_at")),
        )
