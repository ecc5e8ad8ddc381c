"""
In-memory task filtering, sorting and pagination.

Filtering is a linear pass of predicates followed by one stable sort, so it
runs the same way over a user's tasks whatever database backs them.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from taskflow.errors import UserInputError
from taskflow.models.task import PRIORITY_WEIGHTS, Task
from taskflow.timeutil import parse_datetime

VIEWS = ("all", "active", "completed")
SORT_OPTIONS = ("date-desc", "date-asc", "priority-desc", "priority-asc", "alphabetical", "due-date")
DEFAULT_SORT = "priority-desc"

DEFAULT_LIMIT = 50
MAX_LIMIT = 100


def _as_list(value) -> List[str]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return list(value)


@dataclass
class TaskFilter:
    """
    Criteria for narrowing a task list. Empty criteria match everything.

    status, priority and category accept several values (any may match);
    tags must all be present. date_from/date_to bound the due date but let
    tasks without one through; due_before/due_after require a due date.
    """

    view: str = "all"
    project_id: Optional[str] = None
    status: List[str] = field(default_factory=list)
    priority: List[str] = field(default_factory=list)
    category: List[str] = field(default_factory=list)
    completed: Optional[bool] = None
    overdue: bool = False
    due_before: Optional[datetime] = None
    due_after: Optional[datetime] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.view not in VIEWS:
            raise UserInputError(f"Invalid view. Must be one of: {', '.join(VIEWS)}")
        self.status = _as_list(self.status)
        self.priority = _as_list(self.priority)
        self.category = _as_list(self.category)
        self.tags = _as_list(self.tags)

    def matches(self, task: Task, now: datetime) -> bool:
        if self.view == "active" and task.completed:
            return False
        if self.view == "completed" and not task.completed:
            return False
        if self.project_id and task.project_id != self.project_id:
            return False
        if self.status and task.status not in self.status:
            return False
        if self.priority and task.priority not in self.priority:
            return False
        if self.category and task.category not in self.category:
            return False
        if self.completed is not None and task.completed != self.completed:
            return False
        if self.overdue and not task.is_overdue(now):
            return False
        if self.due_before and (task.due_date is None or task.due_date >= self.due_before):
            return False
        if self.due_after and (task.due_date is None or task.due_date <= self.due_after):
            return False
        if task.due_date is not None:
            if self.date_from and task.due_date < self.date_from:
                return False
            if self.date_to and task.due_date > self.date_to:
                return False
        if self.tags and not set(self.tags).issubset(task.tags):
            return False
        if self.search:
            needle = self.search.casefold()
            haystack = f"{task.text}\n{task.description or ''}".casefold()
            if needle not in haystack:
                return False
        return True

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in ("due_before", "due_after", "date_from", "date_to"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        defaults = {"view": "all", "overdue": False}
        return {
            k: v for k, v in data.items()
            if v is not None and v != [] and v != "" and defaults.get(k, object()) != v
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "TaskFilter":
        data = dict(data or {})
        for key in ("due_before", "due_after", "date_from", "date_to"):
            data[key] = parse_datetime(data.get(key))
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})


def _created_ts(task: Task) -> float:
    return task.created_at.timestamp() if task.created_at else 0.0


def sort_tasks(tasks: Iterable[Task], sort: str = DEFAULT_SORT) -> List[Task]:
    if sort not in SORT_OPTIONS:
        raise UserInputError(f"Invalid sort. Must be one of: {', '.join(SORT_OPTIONS)}")

    tasks = list(tasks)
    if sort == "date-desc":
        return sorted(tasks, key=_created_ts, reverse=True)
    if sort == "date-asc":
        return sorted(tasks, key=_created_ts)
    if sort == "priority-desc":
        return sorted(tasks, key=lambda t: (-PRIORITY_WEIGHTS.get(t.priority, 0), -_created_ts(t)))
    if sort == "priority-asc":
        return sorted(tasks, key=lambda t: (PRIORITY_WEIGHTS.get(t.priority, 0), -_created_ts(t)))
    if sort == "alphabetical":
        return sorted(tasks, key=lambda t: t.text.casefold())
    # due-date: soonest first, undated last
    return sorted(tasks, key=lambda t: (t.due_date is None, t.due_date or datetime.max))


def apply_filters(
    tasks: Iterable[Task],
    task_filter: Optional[TaskFilter] = None,
    sort: str = DEFAULT_SORT,
    now: Optional[datetime] = None,
) -> List[Task]:
    """Filter then sort."""
    now = now or datetime.utcnow()
    task_filter = task_filter or TaskFilter()
    return sort_tasks((t for t in tasks if task_filter.matches(t, now)), sort)


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(int(limit), MAX_LIMIT))


def paginate(items: Sequence, limit: Optional[int] = None, offset: int = 0) -> dict:
    """Slice a result list into {items, total, has_more, limit, offset}."""
    limit = clamp_limit(limit)
    offset = max(int(offset or 0), 0)
    page = list(items[offset:offset + limit])
    return {
        "items": page,
        "total": len(items),
        "has_more": offset + len(page) < len(items),
        "limit": limit,
        "offset": offset,
    }
