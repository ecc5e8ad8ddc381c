"""
Gamification models: profile, achievements and daily challenges.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import uuid4

from taskflow.progression import ActivePowerUp
from taskflow.timeutil import isoformat, parse_date, parse_datetime, parse_json


@dataclass
class GamificationProfile:
    """
    Per-user progression state.

    Attributes:
        xp: Lifetime experience points
        level: Level derived from xp
        current_streak: Consecutive days with a completed task, as last stored
        max_streak: Longest streak ever reached
        last_streak_date: Last day that counted toward the streak
        last_streak_reward: Streak length at which the last milestone bonus was paid
        completed_tasks_today: Completions on last_streak_date
        power_up_inventory: Unused power-ups by type
        active_power_ups: Power-ups currently in effect
    """

    user_id: str
    id: str = field(default_factory=lambda: str(uuid4()))
    xp: int = 0
    level: int = 1
    current_streak: int = 0
    max_streak: int = 0
    last_streak_date: Optional[date] = None
    last_streak_reward: int = 0
    total_tasks_completed: int = 0
    completed_tasks_today: int = 0
    high_priority_completed: int = 0
    total_focus_minutes: int = 0
    last_login_date: Optional[date] = None
    session_start: Optional[datetime] = None
    power_up_inventory: Dict[str, int] = field(default_factory=dict)
    active_power_ups: List[ActivePowerUp] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = datetime.utcnow()
        if self.updated_at is None:
            self.updated_at = self.created_at

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "xp": self.xp,
            "level": self.level,
            "current_streak": self.current_streak,
            "max_streak": self.max_streak,
            "last_streak_date": isoformat(self.last_streak_date),
            "total_tasks_completed": self.total_tasks_completed,
            "completed_tasks_today": self.completed_tasks_today,
            "high_priority_completed": self.high_priority_completed,
            "total_focus_minutes": self.total_focus_minutes,
            "last_login_date": isoformat(self.last_login_date),
            "power_up_inventory": self.power_up_inventory,
            "active_power_ups": [p.to_dict() for p in self.active_power_ups],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GamificationProfile":
        return cls(
            id=data.get("id"),
            user_id=data.get("user_id"),
            xp=data.get("xp") or 0,
            level=data.get("level") or 1,
            current_streak=data.get("current_streak") or 0,
            max_streak=data.get("max_streak") or 0,
            last_streak_date=parse_date(data.get("last_streak_date")),
            last_streak_reward=data.get("last_streak_reward") or 0,
            total_tasks_completed=data.get("total_tasks_completed") or 0,
            completed_tasks_today=data.get("completed_tasks_today") or 0,
            high_priority_completed=data.get("high_priority_completed") or 0,
            total_focus_minutes=data.get("total_focus_minutes") or 0,
            last_login_date=parse_date(data.get("last_login_date")),
            session_start=parse_datetime(data.get("session_start")),
            power_up_inventory=parse_json(data.get("power_up_inventory"), {}),
            active_power_ups=[
                ActivePowerUp.from_dict(p) for p in parse_json(data.get("active_power_ups"), [])
            ],
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
        )


@dataclass
class Achievement:
    """An achievement definition, optionally joined with the user's unlock time."""

    id: str
    title: str
    description: str
    icon: str
    points: int = 0
    category: str = "general"
    unlocked_at: Optional[datetime] = None

    @property
    def unlocked(self) -> bool:
        return self.unlocked_at is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "points": self.points,
            "category": self.category,
            "unlocked": self.unlocked,
            "unlocked_at": self.unlocked_at.isoformat() if self.unlocked_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Achievement":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            icon=data.get("icon", ""),
            points=data.get("points") or 0,
            category=data.get("category") or "general",
            unlocked_at=parse_datetime(data.get("unlocked_at")),
        )


# Event counters a daily challenge can track
CHALLENGE_METRICS = (
    "tasks_completed",
    "tasks_created",
    "high_priority_completed",
    "focus_minutes",
    "pomodoros_completed",
    "subtasks_completed",
)


@dataclass
class DailyChallenge:
    """A challenge definition joined with one user's progress on one day."""

    id: str
    challenge_id: str
    title: str
    description: str
    metric: str
    target: int
    reward: int
    icon: str
    date: date
    current: int = 0
    completed: bool = False
    completed_at: Optional[datetime] = None

    @property
    def progress_percent(self) -> float:
        if self.target <= 0:
            return 100.0
        return round(min(self.current / self.target, 1.0) * 100, 1)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "challenge_id": self.challenge_id,
            "title": self.title,
            "description": self.description,
            "metric": self.metric,
            "target": self.target,
            "reward": self.reward,
            "icon": self.icon,
            "date": self.date.isoformat(),
            "current": self.current,
            "completed": self.completed,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "progress_percent": self.progress_percent,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DailyChallenge":
        return cls(
            id=data["id"],
            challenge_id=data["challenge_id"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            metric=data.get("metric", ""),
            target=data.get("target") or 0,
            reward=data.get("reward") or 0,
            icon=data.get("icon", ""),
            date=parse_date(data.get("date")),
            current=data.get("current") or 0,
            completed=bool(data.get("completed")),
            completed_at=parse_datetime(data.get("completed_at")),
        )
