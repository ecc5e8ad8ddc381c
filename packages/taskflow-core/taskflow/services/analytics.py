"""
Analytics service: daily rollups and the productivity report.
"""

import logging
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta
from typing import List, Optional
from uuid import uuid4

from taskflow.errors import UserInputError
from taskflow.models.analytics import DailyAnalytics, completion_rate
from taskflow.models.pomodoro import PomodoroSession
from taskflow.models.task import Task
from taskflow.services.base import BaseService
from taskflow.timeutil import day_bounds

logger = logging.getLogger(__name__)

CATEGORY_COLORS = {
    "work": "#3B82F6",
    "personal": "#10B981",
    "health": "#EF4444",
    "finance": "#F59E0B",
    "learning": "#8B5CF6",
    "general": "#6B7280",
}

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

MAX_REPORT_DAYS = 366


def category_color(category: str) -> str:
    return CATEGORY_COLORS.get(category, CATEGORY_COLORS["general"])


def _dates(start: date, end: date) -> List[date]:
    return [start + timedelta(days=n) for n in range((end - start).days + 1)]


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def build_insights(productivity: dict, time_tracking: dict) -> List[str]:
    """Short human-readable observations about a report period."""
    insights = []
    if productivity["total_tasks_created"] and productivity["completion_rate"] >= 80:
        insights.append(
            f"High completion rate: you completed {productivity['completion_rate']:.0f}% of your tasks this period."
        )
    if productivity["streak_days"] >= 7:
        insights.append(f"On fire: you've kept a {productivity['streak_days']}-day streak going.")
    if time_tracking["total_focus_time"] > 0:
        hours = time_tracking["total_focus_time"] / 60
        insights.append(f"Focus time: you logged {hours:.1f} hours of focused work.")
    if productivity["most_productive_day"]:
        insights.append(f"Peak performance: {productivity['most_productive_day']}s are your most productive days.")
    if productivity["total_tasks_created"] and productivity["completion_rate"] < 40:
        insights.append("Lots of open work: try breaking big tasks into subtasks.")
    return insights


class AnalyticsService(BaseService):
    """Service for per-day counters and the aggregated report."""

    async def record(
        self,
        user_id: str,
        day: date,
        tasks_created: int = 0,
        tasks_completed: int = 0,
        focus_minutes: int = 0,
    ) -> DailyAnalytics:
        """Add to one day's counters, creating the row if needed. Negative deltas floor at 0."""
        existing = await self.adapter.fetchrow(
            "SELECT * FROM daily_analytics WHERE user_id = $1 AND date = $2",
            *self._encode(user_id, day),
        )
        row = DailyAnalytics.from_dict(existing) if existing else DailyAnalytics(user_id=user_id, date=day)
        row.tasks_created = max(row.tasks_created + tasks_created, 0)
        row.tasks_completed = max(row.tasks_completed + tasks_completed, 0)
        row.focus_time = max(row.focus_time + focus_minutes, 0)
        row.completion_rate = completion_rate(row.tasks_created, row.tasks_completed)

        if existing:
            await self._update_columns(
                "daily_analytics",
                {
                    "tasks_created": row.tasks_created,
                    "tasks_completed": row.tasks_completed,
                    "focus_time": row.focus_time,
                    "completion_rate": row.completion_rate,
                },
                {"id": row.id},
            )
        else:
            await self.adapter.execute(
                """
                INSERT INTO daily_analytics (id, user_id, date, tasks_created, tasks_completed, focus_time, completion_rate)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                ON CONFLICT (user_id, date) DO UPDATE SET
                    tasks_created = daily_analytics.tasks_created + excluded.tasks_created,
                    tasks_completed = daily_analytics.tasks_completed + excluded.tasks_completed,
                    focus_time = daily_analytics.focus_time + excluded.focus_time
                """,
                *self._encode(
                    str(uuid4()), user_id, day, row.tasks_created, row.tasks_completed,
                    row.focus_time, row.completion_rate,
                ),
            )
        logger.debug(f"Recorded analytics for {user_id} on {day}")
        return row

    async def daily(self, user_id: str, start: date, end: date) -> List[DailyAnalytics]:
        if end < start:
            raise UserInputError("end must not be before start")
        rows = await self.adapter.fetch(
            """
            SELECT * FROM daily_analytics
            WHERE user_id = $1 AND date >= $2 AND date <= $3
            ORDER BY date
            """,
            *self._encode(user_id, start, end),
        )
        return [DailyAnalytics.from_dict(r) for r in rows]

    async def report(
        self,
        user_id: str,
        start: date,
        end: date,
        now: Optional[datetime] = None,
    ) -> dict:
        """
        Productivity report for [start, end] (inclusive UTC days).

        Task counts come from tasks created in the period; completions are
        bucketed by the day they happened. Focus time counts completed work
        sessions.
        """
        if end < start:
            raise UserInputError("end must not be before start")
        if (end - start).days + 1 > MAX_REPORT_DAYS:
            raise UserInputError(f"Date range must be at most {MAX_REPORT_DAYS} days")

        range_start, _ = day_bounds(start)
        _, range_end = day_bounds(end)

        task_rows = await self.adapter.fetch(
            """
            SELECT * FROM tasks
            WHERE user_id = $1
              AND ((created_at >= $2 AND created_at < $3) OR (completed_at >= $4 AND completed_at < $5))
            """,
            *self._encode(user_id, range_start, range_end, range_start, range_end),
        )
        tasks = [Task.from_dict(r) for r in task_rows]
        session_rows = await self.adapter.fetch(
            """
            SELECT * FROM pomodoro_sessions
            WHERE user_id = $1 AND start_time >= $2 AND start_time < $3
            """,
            *self._encode(user_id, range_start, range_end),
        )
        sessions = [PomodoroSession.from_dict(r) for r in session_rows]

        created = [t for t in tasks if range_start <= t.created_at < range_end]
        completed_in_range = [
            t for t in tasks
            if t.completed and t.completed_at and range_start <= t.completed_at < range_end
        ]
        created_completed = sum(1 for t in created if t.completed)

        days = _dates(start, end)
        created_by_day = Counter(t.created_at.date() for t in created)
        completed_by_day = Counter(t.completed_at.date() for t in completed_in_range)

        work = [s for s in sessions if s.type == "work" and s.completed]
        focus_by_day = Counter()
        for session in work:
            focus_by_day[session.start_time.date()] += session.duration

        daily_breakdown = [
            {
                "date": day.isoformat(),
                "tasks_created": created_by_day[day],
                "tasks_completed": completed_by_day[day],
                "focus_time": focus_by_day[day],
                "completion_rate": completion_rate(created_by_day[day], completed_by_day[day]),
            }
            for day in days
        ]

        weekday_counts = Counter(t.completed_at.weekday() for t in completed_in_range)
        hour_counts = Counter(t.completed_at.hour for t in completed_in_range)
        most_productive_day = DAY_NAMES[weekday_counts.most_common(1)[0][0]] if weekday_counts else None
        most_productive_hour = hour_counts.most_common(1)[0][0] if hour_counts else None

        streak = 0
        for day in reversed(days):
            if completed_by_day[day] == 0:
                if streak == 0 and now is not None and day == now.date():
                    # Today may still be in progress
                    continue
                break
            streak += 1

        productivity = {
            "total_tasks_created": len(created),
            "total_tasks_completed": len(completed_in_range),
            "completion_rate": _percent(created_completed, len(created)),
            "average_daily": round(len(completed_in_range) / len(days), 2),
            "most_productive_day": most_productive_day,
            "most_productive_hour": most_productive_hour,
            "streak_days": streak,
            "daily_breakdown": daily_breakdown,
        }

        categories_by_task = {t.id: t.category for t in tasks}
        extra_ids = [s.task_id for s in work if s.task_id and s.task_id not in categories_by_task]
        for task_id in set(extra_ids):
            row = await self.adapter.fetchrow(
                "SELECT category FROM tasks WHERE id = $1 AND user_id = $2", task_id, user_id
            )
            if row:
                categories_by_task[task_id] = row["category"]
        focus_by_category = Counter()
        for session in work:
            focus_by_category[categories_by_task.get(session.task_id, "general")] += session.duration

        total_focus = sum(s.duration for s in work)
        time_tracking = {
            "total_focus_time": total_focus,
            "average_session_length": round(total_focus / len(work), 1) if work else 0.0,
            "sessions_completed": len(work),
            "focus_time_by_day": [
                {"date": day.isoformat(), "minutes": focus_by_day[day]} for day in days
            ],
            "focus_time_by_category": [
                {"category": category, "minutes": minutes, "color": category_color(category)}
                for category, minutes in focus_by_category.most_common()
            ],
        }

        category_stats = defaultdict(lambda: [0, 0])
        priority_stats = defaultdict(lambda: [0, 0])
        for task in created:
            category_stats[task.category][0] += 1
            priority_stats[task.priority][0] += 1
            if task.completed:
                category_stats[task.category][1] += 1
                priority_stats[task.priority][1] += 1

        categories = [
            {
                "category": category,
                "count": total,
                "completed": done,
                "pending": total - done,
                "completion_rate": _percent(done, total),
                "color": category_color(category),
            }
            for category, (total, done) in sorted(category_stats.items(), key=lambda kv: -kv[1][0])
        ]
        priorities = [
            {
                "priority": priority,
                "count": priority_stats[priority][0],
                "completed": priority_stats[priority][1],
                "percentage": _percent(priority_stats[priority][1], priority_stats[priority][0]),
            }
            for priority in ("high", "medium", "low")
            if priority in priority_stats
        ]

        return {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "productivity": productivity,
            "time_tracking": time_tracking,
            "categories": categories,
            "priorities": priorities,
            "insights": build_insights(productivity, time_tracking),
        }
