"""
Recurrence rules for repeating tasks.

Days of week use 0=Sunday .. 6=Saturday. Month arithmetic clamps to the last
day of the target month, so "monthly on the 31st" lands on Feb 28/29.
"""

import calendar
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from taskflow.timeutil import parse_datetime

FREQUENCIES = ("daily", "weekly", "monthly", "yearly", "custom")

DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

MAX_INTERVAL = 365
MAX_GENERATED_INSTANCES = 100


@dataclass
class RecurrencePattern:
    """How often a recurring task repeats and when the series ends."""

    frequency: str = "daily"
    interval: int = 1
    days_of_week: List[int] = field(default_factory=list)
    day_of_month: Optional[int] = None
    month_of_year: Optional[int] = None
    custom_days: List[int] = field(default_factory=list)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_occurrences: Optional[int] = None

    def validate(self) -> List[str]:
        """Return a list of problems; empty when the pattern is usable."""
        errors = []
        if self.frequency not in FREQUENCIES:
            errors.append(f"Invalid frequency. Must be one of: {', '.join(FREQUENCIES)}")
        if not 1 <= self.interval <= MAX_INTERVAL:
            errors.append(f"Interval must be between 1 and {MAX_INTERVAL}")
        if any(d < 0 or d > 6 for d in self.days_of_week):
            errors.append("Days of week must be between 0 (Sunday) and 6 (Saturday)")
        if self.day_of_month is not None and not 1 <= self.day_of_month <= 31:
            errors.append("Day of month must be between 1 and 31")
        if self.month_of_year is not None and not 1 <= self.month_of_year <= 12:
            errors.append("Month of year must be between 1 and 12")
        if any(d < 1 for d in self.custom_days):
            errors.append("Custom day offsets must be positive")
        if self.max_occurrences is not None and self.max_occurrences < 1:
            errors.append("Max occurrences must be at least 1")
        if self.end_date and self.max_occurrences:
            errors.append("Cannot have both end date and max occurrences")
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            errors.append("End date must be after start date")
        return errors

    def to_dict(self) -> dict:
        return {
            "frequency": self.frequency,
            "interval": self.interval,
            "days_of_week": self.days_of_week,
            "day_of_month": self.day_of_month,
            "month_of_year": self.month_of_year,
            "custom_days": self.custom_days,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "max_occurrences": self.max_occurrences,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RecurrencePattern":
        return cls(
            frequency=data.get("frequency", "daily"),
            interval=int(data.get("interval") or 1),
            days_of_week=sorted(set(data.get("days_of_week") or [])),
            day_of_month=data.get("day_of_month"),
            month_of_year=data.get("month_of_year"),
            custom_days=list(data.get("custom_days") or []),
            start_date=parse_datetime(data.get("start_date")),
            end_date=parse_datetime(data.get("end_date")),
            max_occurrences=data.get("max_occurrences"),
        )


PRESETS = {
    "every_day": RecurrencePattern("daily", 1),
    "every_weekday": RecurrencePattern("weekly", 1, days_of_week=[1, 2, 3, 4, 5]),
    "every_week": RecurrencePattern("weekly", 1),
    "every_2_weeks": RecurrencePattern("weekly", 2),
    "every_month": RecurrencePattern("monthly", 1),
    "every_quarter": RecurrencePattern("monthly", 3),
    "every_year": RecurrencePattern("yearly", 1),
}


def weekday_index(value: datetime) -> int:
    """Sunday-based weekday (0=Sunday)."""
    return (value.weekday() + 1) % 7


def _with_clamped_day(value: datetime, year: int, month: int, day: int) -> datetime:
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(day, last_day))


def _add_months(value: datetime, months: int, day: int) -> datetime:
    index = value.month - 1 + months
    return _with_clamped_day(value, value.year + index // 12, index % 12 + 1, day)


def next_occurrence(pattern: RecurrencePattern, from_date: datetime) -> datetime:
    """Due date of the instance after the one due at from_date."""
    interval = max(pattern.interval, 1)

    if pattern.frequency == "daily":
        return from_date + timedelta(days=interval)

    if pattern.frequency == "weekly":
        if not pattern.days_of_week:
            return from_date + timedelta(weeks=interval)
        days = sorted(pattern.days_of_week)
        current = weekday_index(from_date)
        later = [d for d in days if d > current]
        if later:
            return from_date + timedelta(days=later[0] - current)
        # Wrap to the first listed day, skipping interval-1 whole weeks
        return from_date + timedelta(days=(7 - current) + days[0] + (interval - 1) * 7)

    if pattern.frequency == "monthly":
        return _add_months(from_date, interval, pattern.day_of_month or from_date.day)

    if pattern.frequency == "yearly":
        month = pattern.month_of_year or from_date.month
        day = pattern.day_of_month or from_date.day
        return _with_clamped_day(from_date, from_date.year + interval, month, day)

    # custom: first offset in days, else the interval in days
    offset = pattern.custom_days[0] if pattern.custom_days else interval
    return from_date + timedelta(days=offset)


def occurrences_between(
    pattern: RecurrencePattern,
    start: datetime,
    end: datetime,
    max_instances: int = MAX_GENERATED_INSTANCES,
) -> List[datetime]:
    """
    Due dates of a series starting at `start`, up to and including `end`.

    Honours the pattern's end_date and max_occurrences, and never returns
    more than max_instances dates.
    """
    limit = min(pattern.max_occurrences or max_instances, max_instances)
    dates = []
    current = start
    while current <= end and len(dates) < limit:
        if pattern.end_date and current > pattern.end_date:
            break
        dates.append(current)
        current = next_occurrence(pattern, current)
    return dates


def can_continue(pattern: RecurrencePattern, occurrence_number: int, next_due: datetime) -> bool:
    """Whether the series may produce occurrence `occurrence_number` due at next_due."""
    if pattern.max_occurrences and occurrence_number > pattern.max_occurrences:
        return False
    if pattern.end_date and next_due > pattern.end_date:
        return False
    return True


def ordinal(n: int) -> str:
    """1 -> 1st, 2 -> 2nd, 11 -> 11th, 23 -> 23rd."""
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def describe(pattern: RecurrencePattern) -> str:
    """Human-readable summary such as "Weekdays" or "Every 2 months on the 15th"."""
    n = pattern.interval

    if pattern.frequency == "daily":
        return "Daily" if n == 1 else f"Every {n} days"

    if pattern.frequency == "weekly":
        days = sorted(pattern.days_of_week)
        if days:
            if len(days) == 7:
                return "Daily"
            if days == [1, 2, 3, 4, 5]:
                return "Weekdays"
            if days == [0, 6]:
                return "Weekends"
            names = ", ".join(DAY_NAMES[d] for d in days)
            return f"Weekly on {names}" if n == 1 else f"Every {n} weeks on {names}"
        return "Weekly" if n == 1 else f"Every {n} weeks"

    if pattern.frequency == "monthly":
        if pattern.day_of_month:
            day = ordinal(pattern.day_of_month)
            return f"Monthly on the {day}" if n == 1 else f"Every {n} months on the {day}"
        return "Monthly" if n == 1 else f"Every {n} months"

    if pattern.frequency == "yearly":
        if pattern.month_of_year and pattern.day_of_month:
            when = f"{MONTH_NAMES[pattern.month_of_year - 1]} {pattern.day_of_month}"
            return f"Yearly on {when}" if n == 1 else f"Every {n} years on {when}"
        return "Yearly" if n == 1 else f"Every {n} years"

    return "Custom schedule"
