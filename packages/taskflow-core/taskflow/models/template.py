"""
Task template model.

A template stores a task blueprint (template_data) that can be stamped out
into a real task. Built-in templates have no owner and cannot be modified.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional
from uuid import uuid4

from taskflow.timeutil import parse_datetime, parse_json

DEFAULT_TEMPLATE_ICON = "📋"

# Keys of template_data copied onto the created task
BLUEPRINT_FIELDS = (
    "text",
    "description",
    "priority",
    "category",
    "tags",
    "estimated_minutes",
    "subtasks",
    "is_recurring",
    "recurrence_pattern",
    "notification_settings",
)

VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")


def interpolate(text: str, values: Dict[str, str]) -> str:
    """Replace {{name}} placeholders; unknown names are left as written."""
    return VARIABLE_PATTERN.sub(lambda m: values.get(m.group(1)) or m.group(0), text)


@dataclass
class Template:
    name: str
    template_data: dict
    id: str = field(default_factory=lambda: str(uuid4()))
    user_id: Optional[str] = None
    description: str = ""
    category: str = "general"
    icon: str = DEFAULT_TEMPLATE_ICON
    is_built_in: bool = False
    usage_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = datetime.utcnow()
        if self.updated_at is None:
            self.updated_at = self.created_at

    @property
    def variables(self) -> List[dict]:
        """Declared placeholders: [{"name", "placeholder", "required", "default"}]."""
        return self.template_data.get("variables") or []

    def missing_variables(self, values: Dict[str, str]) -> List[str]:
        return [
            v["name"] for v in self.variables
            if v.get("required") and not (values.get(v["name"]) or "").strip()
        ]

    def blueprint(self, values: Optional[Dict[str, str]] = None) -> dict:
        """The task fields this template fills in, with variables substituted."""
        merged = {v["name"]: v["default"] for v in self.variables if v.get("default")}
        merged.update(values or {})

        data = {k: self.template_data[k] for k in BLUEPRINT_FIELDS if k in self.template_data}
        data["text"] = interpolate(data.get("text") or self.name, merged)
        if data.get("description"):
            data["description"] = interpolate(data["description"], merged)
        data["subtasks"] = [
            {"text": interpolate(s.get("text", ""), merged), "completed": False}
            for s in data.get("subtasks") or []
        ]
        return data

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "icon": self.icon,
            "is_built_in": self.is_built_in,
            "usage_count": self.usage_count,
            "template_data": self.template_data,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Template":
        return cls(
            id=data.get("id"),
            user_id=data.get("user_id"),
            name=data.get("name", ""),
            description=data.get("description") or "",
            category=data.get("category") or "general",
            icon=data.get("icon") or DEFAULT_TEMPLATE_ICON,
            is_built_in=bool(data.get("is_built_in")),
            usage_count=data.get("usage_count") or 0,
            template_data=parse_json(data.get("template_data"), {}),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )
