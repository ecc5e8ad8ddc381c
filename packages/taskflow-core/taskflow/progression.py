"""
XP, level, streak and power-up arithmetic.

Everything here is pure: callers pass in the current state and "now" and get
the new state back. GamificationService does the persistence.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from taskflow.timeutil import parse_datetime

# XP awarded per completed task, by priority
XP_REWARDS = {"high": 50, "medium": 25, "low": 10}
POMODORO_XP = 10

# Cost of leaving level n is floor(XP_BASE * XP_MULTIPLIER ** (n - 1))
XP_BASE = 100
XP_MULTIPLIER = 1.5
MAX_LEVEL = 100

# (minimum streak days, multiplier), highest first
STREAK_MULTIPLIERS = ((30, 3.0), (14, 2.0), (7, 1.5), (3, 1.25))

STREAK_BONUS_INTERVAL = 7
STREAK_BONUS_XP = 100

# Power-up granted for reaching each new level, rotating
LEVEL_UP_REWARDS = ("xp_boost", "focus_mode", "priority_task", "extra_challenge")


# =============================================================================
# LEVELS
# =============================================================================

def xp_for_level(level: int) -> int:
    """XP needed to go from `level` to `level + 1`."""
    return int(math.floor(XP_BASE * XP_MULTIPLIER ** (max(level, 1) - 1)))


def total_xp_for_level(level: int) -> int:
    """Total XP at which `level` is reached (level 1 starts at 0)."""
    return sum(xp_for_level(n) for n in range(1, max(level, 1)))


def level_from_xp(xp: int) -> int:
    level = 1
    threshold = xp_for_level(level)
    while xp >= threshold and level < MAX_LEVEL:
        level += 1
        threshold += xp_for_level(level)
    return level


def xp_progress(xp: int) -> dict:
    """Where `xp` sits inside its level."""
    level = level_from_xp(xp)
    level_start = total_xp_for_level(level)
    needed = xp_for_level(level)
    into = xp - level_start
    return {
        "level": level,
        "xp": xp,
        "xp_into_level": into,
        "xp_for_level": needed,
        "xp_to_next_level": max(needed - into, 0),
        "progress_percent": round(min(into / needed, 1.0) * 100, 1) if needed else 100.0,
    }


def level_up_rewards(old_level: int, new_level: int) -> List[str]:
    """Power-ups granted when moving from old_level to new_level."""
    return [
        LEVEL_UP_REWARDS[(level - 2) % len(LEVEL_UP_REWARDS)]
        for level in range(old_level + 1, new_level + 1)
    ]


# =============================================================================
# STREAKS
# =============================================================================

def streak_multiplier(streak: int) -> float:
    for minimum, multiplier in STREAK_MULTIPLIERS:
        if streak >= minimum:
            return multiplier
    return 1.0


# (minimum streak days, color, emoji)
STREAK_BADGES = (
    (30, "#FFD700", "🔥"),
    (14, "#FF6B6B", "🔥"),
    (7, "#4ECDC4", "⚡"),
    (3, "#45B7D1", "✨"),
    (0, "#96CEB4", "⭐"),
)


def streak_badge(streak: int) -> dict:
    for minimum, color, emoji in STREAK_BADGES:
        if streak >= minimum:
            break
    return {"color": color, "emoji": emoji, "multiplier": streak_multiplier(streak)}


@dataclass
class StreakUpdate:
    """Result of recording activity on `today`."""

    streak: int
    max_streak: int
    changed: bool
    is_new_record: bool = False
    used_freeze: bool = False
    was_reset: bool = False
    bonus_xp: int = 0

    @property
    def is_milestone(self) -> bool:
        return self.bonus_xp > 0


def advance_streak(
    current: int,
    max_streak: int,
    last_date: Optional[date],
    today: date,
    freeze_available: bool = False,
) -> StreakUpdate:
    """
    Apply one day of activity to a streak.

    Same day leaves the streak alone. Yesterday extends it. Missing exactly one
    day is forgiven when a streak freeze is available. Anything else restarts at 1.
    """
    if last_date == today:
        return StreakUpdate(streak=current, max_streak=max_streak, changed=False)

    used_freeze = False
    was_reset = False
    if last_date is not None and current > 0 and last_date == today - timedelta(days=1):
        streak = current + 1
    elif (
        freeze_available
        and last_date is not None
        and current > 0
        and last_date == today - timedelta(days=2)
    ):
        streak = current + 1
        used_freeze = True
    else:
        streak = 1
        was_reset = current > 0

    is_new_record = streak > max_streak
    bonus = STREAK_BONUS_XP if streak % STREAK_BONUS_INTERVAL == 0 else 0

    return StreakUpdate(
        streak=streak,
        max_streak=max(streak, max_streak),
        changed=True,
        is_new_record=is_new_record,
        used_freeze=used_freeze,
        was_reset=was_reset,
        bonus_xp=bonus,
    )


def effective_streak(
    current: int,
    last_date: Optional[date],
    today: date,
    freeze_available: bool = False,
) -> int:
    """Streak as of `today`, with decay applied but nothing persisted."""
    if not last_date or current <= 0:
        return 0
    gap = (today - last_date).days
    if gap <= 1:
        return current
    if gap == 2 and freeze_available:
        return current
    return 0


# =============================================================================
# POWER-UPS
# =============================================================================

@dataclass(frozen=True)
class PowerUpDefinition:
    id: str
    name: str
    description: str
    icon: str
    multiplier: float = 1.0
    duration_minutes: Optional[int] = None  # None: lasts until consumed
    applies_to: str = "all"  # all, high_priority, task, streak, instant
    required_level: int = 1

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "multiplier": self.multiplier,
            "duration_minutes": self.duration_minutes,
            "applies_to": self.applies_to,
            "required_level": self.required_level,
        }


POWER_UPS: Dict[str, PowerUpDefinition] = {
    p.id: p for p in (
        PowerUpDefinition(
            "xp_boost", "XP Boost", "Double XP on every task for 30 minutes",
            "⚡", multiplier=2.0, duration_minutes=30,
        ),
        PowerUpDefinition(
            "focus_mode", "Focus Mode", "Double XP on high-priority tasks for 45 minutes",
            "🎯", multiplier=2.0, duration_minutes=45, applies_to="high_priority",
            required_level=7,
        ),
        PowerUpDefinition(
            "priority_task", "Priority Task", "Triple XP for one chosen task",
            "⭐", multiplier=3.0, duration_minutes=24 * 60, applies_to="task",
            required_level=3,
        ),
        PowerUpDefinition(
            "streak_freeze", "Streak Freeze", "Keeps your streak alive through one missed day",
            "🧊", applies_to="streak",
        ),
        PowerUpDefinition(
            "extra_challenge", "Extra Challenge", "Adds one more daily challenge today",
            "🎲", applies_to="instant", required_level=5,
        ),
    )
}

POWER_UP_TYPES = tuple(POWER_UPS)


@dataclass
class ActivePowerUp:
    """A power-up taken out of the inventory and currently in effect."""

    type: str
    activated_at: datetime
    expires_at: Optional[datetime] = None
    task_id: Optional[str] = None

    @property
    def definition(self) -> PowerUpDefinition:
        return POWER_UPS[self.type]

    def is_active(self, now: datetime) -> bool:
        return self.expires_at is None or now < self.expires_at

    def applies_to_task(self, priority: str, task_id: Optional[str]) -> bool:
        scope = self.definition.applies_to
        if scope == "all":
            return True
        if scope == "high_priority":
            return priority == "high"
        if scope == "task":
            return task_id is not None and task_id == self.task_id
        return False

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "activated_at": self.activated_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "task_id": self.task_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ActivePowerUp":
        return cls(
            type=data["type"],
            activated_at=parse_datetime(data.get("activated_at")),
            expires_at=parse_datetime(data.get("expires_at")),
            task_id=data.get("task_id"),
        )


def activate(power_up_type: str, now: datetime, task_id: Optional[str] = None) -> ActivePowerUp:
    definition = POWER_UPS[power_up_type]
    expires_at = None
    if definition.duration_minutes:
        expires_at = now + timedelta(minutes=definition.duration_minutes)
    return ActivePowerUp(type=power_up_type, activated_at=now, expires_at=expires_at, task_id=task_id)


def prune_expired(active: Iterable[ActivePowerUp], now: datetime) -> List[ActivePowerUp]:
    return [p for p in active if p.is_active(now)]


def has_active(active: Iterable[ActivePowerUp], power_up_type: str, now: datetime) -> bool:
    return any(p.type == power_up_type and p.is_active(now) for p in active)


# =============================================================================
# XP AWARDS
# =============================================================================

@dataclass
class XpAward:
    base: int
    multiplier: float
    amount: int
    applied_power_ups: List[str]


def task_xp(
    priority: str,
    streak: int,
    active: Iterable[ActivePowerUp] = (),
    now: Optional[datetime] = None,
    task_id: Optional[str] = None,
) -> XpAward:
    """
    XP for completing one task.

    The streak multiplier and every applicable active power-up multiply together.
    """
    now = now or datetime.utcnow()
    base = XP_REWARDS.get(priority, XP_REWARDS["medium"])
    multiplier = streak_multiplier(streak)
    applied = []
    for power_up in active:
        if not power_up.is_active(now):
            continue
        if power_up.definition.multiplier != 1.0 and power_up.applies_to_task(priority, task_id):
            multiplier *= power_up.definition.multiplier
            applied.append(power_up.type)
    return XpAward(
        base=base,
        multiplier=multiplier,
        amount=int(math.floor(base * multiplier)),
        applied_power_ups=applied,
    )
