"""
Pomodoro timer models.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from taskflow.timeutil import parse_datetime

SESSION_TYPES = ("work", "short_break", "long_break")


@dataclass
class TimerSettings:
    """Per-user Pomodoro durations in minutes."""

    work: int = 25
    short_break: int = 5
    long_break: int = 15
    sessions_before_long_break: int = 4

    def validate(self) -> list:
        errors = []
        for name in ("work", "short_break", "long_break"):
            if not 1 <= getattr(self, name) <= 120:
                errors.append(f"{name} must be between 1 and 120 minutes")
        if not 1 <= self.sessions_before_long_break <= 12:
            errors.append("sessions_before_long_break must be between 1 and 12")
        return errors

    def duration_for(self, session_type: str) -> int:
        return getattr(self, session_type)

    def next_phase(self, last_type: Optional[str], completed_work_sessions: int) -> str:
        """
        Phase that follows `last_type`.

        After a work session every Nth completed one earns a long break;
        any break is followed by work.
        """
        if last_type != "work":
            return "work"
        if completed_work_sessions > 0 and completed_work_sessions % self.sessions_before_long_break == 0:
            return "long_break"
        return "short_break"

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "TimerSettings":
        data = data or {}
        defaults = cls()
        return cls(
            work=int(data.get("work", defaults.work)),
            short_break=int(data.get("short_break", defaults.short_break)),
            long_break=int(data.get("long_break", defaults.long_break)),
            sessions_before_long_break=int(
                data.get("sessions_before_long_break", defaults.sessions_before_long_break)
            ),
        )


@dataclass
class PomodoroSession:
    """
    One timed interval.

    A session is active until end_time is set. Pausing records paused_at;
    resuming adds the paused span to paused_seconds.
    """

    user_id: str
    duration: int
    type: str = "work"
    id: str = field(default_factory=lambda: str(uuid4()))
    task_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    completed: bool = False
    paused_at: Optional[datetime] = None
    paused_seconds: int = 0

    def __post_init__(self):
        if self.start_time is None:
            self.start_time = datetime.utcnow()

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    @property
    def is_paused(self) -> bool:
        return self.paused_at is not None

    def elapsed_seconds(self, now: Optional[datetime] = None) -> int:
        """Running time, excluding pauses."""
        end = self.end_time or self.paused_at or now or datetime.utcnow()
        return max(int((end - self.start_time).total_seconds()) - self.paused_seconds, 0)

    def remaining_seconds(self, now: Optional[datetime] = None) -> int:
        return max(self.duration * 60 - self.elapsed_seconds(now), 0)

    def ends_at(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration, seconds=self.paused_seconds)

    def to_dict(self, now: Optional[datetime] = None) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "task_id": self.task_id,
            "type": self.type,
            "duration": self.duration,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "completed": self.completed,
            "paused": self.is_paused,
            "paused_seconds": self.paused_seconds,
            "remaining_seconds": self.remaining_seconds(now) if self.is_active else 0,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PomodoroSession":
        return cls(
            id=data.get("id"),
            user_id=data.get("user_id"),
            task_id=data.get("task_id"),
            type=data.get("type", "work"),
            duration=data.get("duration") or 0,
            start_time=parse_datetime(data.get("start_time")),
            end_time=parse_datetime(data.get("end_time")),
            completed=bool(data.get("completed")),
            paused_at=parse_datetime(data.get("paused_at")),
            paused_seconds=data.get("paused_seconds") or 0,
        )
