"""
Pomodoro Service for TaskFlow.

One running session per user. Completing a work session credits focus time
and Pomodoro XP; skipping ends a session without rewards.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from taskflow.errors import ConflictError, NotFoundError, UserInputError
from taskflow.models.pomodoro import SESSION_TYPES, PomodoroSession, TimerSettings
from taskflow.progression import POMODORO_XP
from taskflow.services.base import BaseService, now_or
from taskflow.timeutil import day_bounds, parse_json

logger = logging.getLogger(__name__)

SESSION_LIST_LIMIT = 200


class PomodoroService(BaseService):
    """Service for timed work and break sessions."""

    async def _settings(self, user_id: str) -> TimerSettings:
        row = await self.adapter.fetchrow("SELECT timer_settings FROM users WHERE id = $1", user_id)
        if not row:
            raise NotFoundError("User not found")
        return TimerSettings.from_dict(parse_json(row["timer_settings"], {}))

    async def _get(self, user_id: str, session_id: str) -> PomodoroSession:
        row = await self.adapter.fetchrow(
            "SELECT * FROM pomodoro_sessions WHERE id = $1 AND user_id = $2", session_id, user_id
        )
        if not row:
            raise NotFoundError("Session not found")
        return PomodoroSession.from_dict(row)

    async def _get_running(self, user_id: str, session_id: str) -> PomodoroSession:
        session = await self._get(user_id, session_id)
        if not session.is_active:
            raise UserInputError("Session has already ended")
        return session

    async def _save(self, session: PomodoroSession) -> None:
        await self._update_columns(
            "pomodoro_sessions",
            {
                "end_time": session.end_time,
                "completed": session.completed,
                "paused_at": session.paused_at,
                "paused_seconds": session.paused_seconds,
            },
            {"id": session.id},
        )

    async def active(self, user_id: str) -> Optional[PomodoroSession]:
        row = await self.adapter.fetchrow(
            """
            SELECT * FROM pomodoro_sessions
            WHERE user_id = $1 AND end_time IS NULL
            ORDER BY start_time DESC
            """,
            user_id,
        )
        return PomodoroSession.from_dict(row) if row else None

    async def next_phase(self, user_id: str, now: Optional[datetime] = None) -> str:
        """Session type that should follow the user's last finished session today."""
        now = now_or(now)
        settings = await self._settings(user_id)
        start, end = day_bounds(now.date())
        last = await self.adapter.fetchrow(
            """
            SELECT type FROM pomodoro_sessions
            WHERE user_id = $1 AND completed = $2 AND start_time >= $3 AND start_time < $4
            ORDER BY end_time DESC
            """,
            *self._encode(user_id, True, start, end),
        )
        work_done = await self.adapter.fetchval(
            """
            SELECT COUNT(*) FROM pomodoro_sessions
            WHERE user_id = $1 AND type = $2 AND completed = $3 AND start_time >= $4 AND start_time < $5
            """,
            *self._encode(user_id, "work", True, start, end),
        )
        return settings.next_phase(last["type"] if last else None, work_done or 0)

    async def start(
        self,
        user_id: str,
        session_type: Optional[str] = None,
        task_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PomodoroSession:
        """
        Start a session.

        Args:
            session_type: work, short_break or long_break; defaults to the next phase
            task_id: Optional task the focus time is attributed to
        """
        now = now_or(now)
        if session_type is not None and session_type not in SESSION_TYPES:
            raise UserInputError(f"Invalid session type. Must be one of: {', '.join(SESSION_TYPES)}")
        if await self.active(user_id):
            raise ConflictError("A session is already running")
        if task_id:
            owned = await self.adapter.fetchval(
                "SELECT 1 FROM tasks WHERE id = $1 AND user_id = $2", task_id, user_id
            )
            if owned is None:
                raise NotFoundError("Task not found")

        settings = await self._settings(user_id)
        session_type = session_type or await self.next_phase(user_id, now)
        session = PomodoroSession(
            user_id=user_id,
            task_id=task_id,
            type=session_type,
            duration=settings.duration_for(session_type),
            start_time=now,
        )
        await self._insert("pomodoro_sessions", {
            "id": session.id,
            "user_id": session.user_id,
            "task_id": session.task_id,
            "type": session.type,
            "duration": session.duration,
            "start_time": session.start_time,
            "completed": False,
            "paused_seconds": 0,
        })
        logger.info(f"Started {session.type} session {session.id} for {user_id}")
        return session

    async def pause(self, user_id: str, session_id: str, now: Optional[datetime] = None) -> PomodoroSession:
        session = await self._get_running(user_id, session_id)
        if session.is_paused:
            raise UserInputError("Session is already paused")
        session.paused_at = now_or(now)
        await self._save(session)
        return session

    async def resume(self, user_id: str, session_id: str, now: Optional[datetime] = None) -> PomodoroSession:
        session = await self._get_running(user_id, session_id)
        if not session.is_paused:
            raise UserInputError("Session is not paused")
        now = now_or(now)
        session.paused_seconds += max(int((now - session.paused_at).total_seconds()), 0)
        session.paused_at = None
        await self._save(session)
        return session

    def _finish(self, session: PomodoroSession, now: datetime, completed: bool) -> None:
        if session.is_paused:
            session.paused_seconds += max(int((now - session.paused_at).total_seconds()), 0)
            session.paused_at = None
        session.end_time = now
        session.completed = completed

    async def complete(self, user_id: str, session_id: str, now: Optional[datetime] = None) -> dict:
        """
        Finish a session.

        Work sessions credit their planned duration as focus minutes and award
        Pomodoro XP. Reward failures are logged and reported as rewards None.

        Returns:
            {"session": PomodoroSession, "rewards": dict | None, "next_phase": str}
        """
        from taskflow.services.analytics import AnalyticsService
        from taskflow.services.gamification import GamificationService

        now = now_or(now)
        session = await self._get_running(user_id, session_id)
        self._finish(session, now, completed=True)
        await self._save(session)
        logger.info(f"Completed {session.type} session {session.id} for {user_id}")

        rewards = None
        if session.type == "work":
            rewards = await self._side_effect(
                "Focus rewards",
                GamificationService(self.adapter).record_focus_session(
                    user_id, session.duration, POMODORO_XP, now
                ),
            )
            await self._side_effect(
                "Analytics update",
                AnalyticsService(self.adapter).record(
                    user_id, session.start_time.date(), focus_minutes=session.duration
                ),
            )

        return {
            "session": session,
            "rewards": rewards,
            "next_phase": await self.next_phase(user_id, now),
        }

    async def skip(self, user_id: str, session_id: str, now: Optional[datetime] = None) -> PomodoroSession:
        now = now_or(now)
        session = await self._get_running(user_id, session_id)
        self._finish(session, now, completed=False)
        await self._save(session)
        logger.info(f"Skipped {session.type} session {session.id} for {user_id}")
        return session

    async def list(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = SESSION_LIST_LIMIT,
    ) -> List[PomodoroSession]:
        """Sessions started in [start, end), newest first."""
        query = "SELECT * FROM pomodoro_sessions WHERE user_id = $1"
        params = [user_id]
        if start:
            params.append(start)
            query += f" AND start_time >= ${len(params)}"
        if end:
            params.append(end)
            query += f" AND start_time < ${len(params)}"
        params.append(max(1, min(int(limit), SESSION_LIST_LIMIT)))
        query += f" ORDER BY start_time DESC LIMIT ${len(params)}"
        rows = await self.adapter.fetch(query, *self._encode(*params))
        return [PomodoroSession.from_dict(r) for r in rows]

    async def stats(self, user_id: str, now: Optional[datetime] = None) -> dict:
        """Focus totals over completed work sessions."""
        now = now_or(now)
        rows = await self.adapter.fetch(
            """
            SELECT * FROM pomodoro_sessions
            WHERE user_id = $1 AND type = $2 AND completed = $3
            """,
            *self._encode(user_id, "work", True),
        )
        sessions = [PomodoroSession.from_dict(r) for r in rows]
        today = now.date()
        week_start = today - timedelta(days=6)

        minutes_by_day = {}
        for session in sessions:
            day = session.start_time.date()
            minutes_by_day[day] = minutes_by_day.get(day, 0) + session.duration

        total_minutes = sum(minutes_by_day.values())
        return {
            "today_minutes": minutes_by_day.get(today, 0),
            "week_minutes": sum(m for d, m in minutes_by_day.items() if week_start <= d <= today),
            "total_minutes": total_minutes,
            "total_sessions": len(sessions),
            "today_sessions": sum(1 for s in sessions if s.start_time.date() == today),
            "average_session_length": round(total_minutes / len(sessions), 1) if sessions else 0.0,
            "streak_days": _consecutive_days(minutes_by_day, today),
        }


def _consecutive_days(days_with_activity, today: date) -> int:
    """Days in a row with activity, ending today (or yesterday if today is empty)."""
    day = today if today in days_with_activity else today - timedelta(days=1)
    streak = 0
    while day in days_with_activity:
        streak += 1
        day -= timedelta(days=1)
    return streak
