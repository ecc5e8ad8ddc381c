"""
Date and row-value helpers.

SQLite hands back ISO strings, JSON text and 0/1 integers; asyncpg hands back
native datetimes, dates and booleans but JSONB as text. The parsers accept both.
All stored datetimes are naive UTC.
"""

import json
from datetime import date, datetime, timedelta
from typing import Any, Optional


def parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    # Stored values are naive UTC
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - parsed.utcoffset()
    return parsed


def parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def parse_json(value: Any, default: Any = None) -> Any:
    if value is None or value == "":
        return default
    if isinstance(value, (dict, list)):
        return value
    return json.loads(value)


def isoformat(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def utcnow() -> datetime:
    return datetime.utcnow()


def day_bounds(day: date) -> tuple:
    """[start, end) datetimes covering one UTC day."""
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)
