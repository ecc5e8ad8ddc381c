"""
Quick-add parsing for TaskFlow.

Turns a one-line entry such as "call mom tomorrow !high #personal" into task
fields: the remaining text plus priority, category, tags and a due date.
Dates resolve against the `today` passed in, never the wall clock.
"""

import calendar
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List, Optional

# Category hashtags; other hashtags become tags
CATEGORY_TAGS = {
    "work": "work",
    "personal": "personal",
    "health": "health",
    "fitness": "health",
    "finance": "finance",
    "shopping": "shopping",
    "learning": "learning",
    "home": "home",
}

# Checked in order; the first match sets the priority
PRIORITY_PATTERNS = (
    (re.compile(r"(?<!\S)!(high|medium|low)\b", re.I), None),
    (re.compile(r"(?<!\S)!!!(?!\S)"), "high"),
    (re.compile(r"(?<!\S)!!(?!\S)"), "medium"),
    (re.compile(r"(?<!\S)!(?!\S)"), "low"),
    (re.compile(r"(?<!#)\bnot\s+urgent\b", re.I), "low"),
    (re.compile(r"(?<!#)\b(high\s+priority|urgent|asap|critical)\b", re.I), "high"),
    (re.compile(r"\bmedium\s+priority\b", re.I), "medium"),
    (re.compile(r"\blow\s+priority\b", re.I), "low"),
)

HASHTAG = re.compile(r"(?<!\S)#([\w-]+)")

WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

# Abbreviations only count after on/by/due/next ("sun" alone is just a word)
WEEKDAY_ABBREVIATIONS = {
    "mon": 0,
    "tue": 1, "tues": 1,
    "wed": 2,
    "thu": 3, "thurs": 3,
    "fri": 4,
    "sat": 5,
    "sun": 6,
}

_LEAD = r"(?:\b(?:on|by|due)\s+)?"
_WEEKDAY_NAMES = "|".join(WEEKDAYS)
_ABBREVIATIONS = "|".join(sorted(WEEKDAY_ABBREVIATIONS, key=len, reverse=True))

DATE_PATTERNS = (
    ("iso", re.compile(_LEAD + r"\b(\d{4}-\d{2}-\d{2})\b", re.I)),
    ("relative", re.compile(_LEAD + r"\bin\s+(\d{1,3})\s+(day|days|week|weeks)\b", re.I)),
    ("today", re.compile(_LEAD + r"\b(today|tonight)\b", re.I)),
    ("tomorrow", re.compile(_LEAD + r"\btomorrow\b", re.I)),
    ("end_of_week", re.compile(_LEAD + r"\bend\s+of\s+(?:the\s+)?week\b", re.I)),
    ("end_of_month", re.compile(_LEAD + r"\bend\s+of\s+(?:the\s+)?month\b", re.I)),
    ("weekend", re.compile(_LEAD + r"\b(?:this\s+)?weekend\b", re.I)),
    ("next_week", re.compile(_LEAD + r"\bnext\s+week\b", re.I)),
    ("next_month", re.compile(_LEAD + r"\bnext\s+month\b", re.I)),
    ("weekday", re.compile(_LEAD + r"\b(?:next\s+)?(" + _WEEKDAY_NAMES + r")\b", re.I)),
    ("weekday", re.compile(r"\b(?:on|by|due|next)\s+(" + _ABBREVIATIONS + r")\b", re.I)),
)

# Quick-add due dates are end of day, so "today" is not overdue right away
DUE_TIME = time(23, 59)


@dataclass
class ParsedTask:
    text: str
    priority: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    due_date: Optional[date] = None

    @property
    def due_datetime(self) -> Optional[datetime]:
        if self.due_date is None:
            return None
        return datetime.combine(self.due_date, DUE_TIME)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "priority": self.priority,
            "category": self.category,
            "tags": self.tags,
            "due_date": self.due_datetime.isoformat() if self.due_date else None,
        }


def next_weekday(today: date, weekday: int) -> date:
    """The next `weekday` strictly after today."""
    return today + timedelta(days=(weekday - today.weekday() - 1) % 7 + 1)


def _add_month(today: date) -> date:
    year, month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
    day = min(today.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _resolve(kind: str, match, today: date) -> Optional[date]:
    if kind == "iso":
        try:
            return date.fromisoformat(match.group(1))
        except ValueError:
            return None
    if kind == "relative":
        amount = int(match.group(1))
        unit = match.group(2).lower()
        return today + timedelta(weeks=amount) if unit.startswith("week") else today + timedelta(days=amount)
    if kind == "today":
        return today
    if kind == "tomorrow":
        return today + timedelta(days=1)
    if kind == "end_of_week":
        return next_weekday(today, 4)
    if kind == "end_of_month":
        return date(today.year, today.month, calendar.monthrange(today.year, today.month)[1])
    if kind == "weekend":
        return next_weekday(today, 5)
    if kind == "next_week":
        return today + timedelta(weeks=1)
    if kind == "next_month":
        return _add_month(today)
    name = match.group(1).lower()
    return next_weekday(today, WEEKDAYS.get(name, WEEKDAY_ABBREVIATIONS.get(name)))


def _cut(text: str, match) -> str:
    return text[:match.start()] + " " + text[match.end():]


def parse_quick_add(entry: str, today: date) -> ParsedTask:
    """
    Pull task fields out of a quick-add line.

    The first date phrase found sets the due date. Markers are removed from
    the text; everything else is kept as written.
    """
    text = entry or ""
    parsed = ParsedTask(text="")

    for kind, pattern in DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        due = _resolve(kind, match, today)
        if due is None:
            continue
        parsed.due_date = due
        text = _cut(text, match)
        break

    for pattern, priority in PRIORITY_PATTERNS:
        match = pattern.search(text)
        if match:
            parsed.priority = priority or match.group(1).lower()
            text = _cut(text, match)
            break

    for tag in HASHTAG.findall(text):
        name = tag.lower()
        if parsed.category is None and name in CATEGORY_TAGS:
            parsed.category = CATEGORY_TAGS[name]
        elif name not in parsed.tags:
            parsed.tags.append(name)
    text = HASHTAG.sub(" ", text)

    parsed.text = re.sub(r"\s+", " ", text).strip()
    return parsed
