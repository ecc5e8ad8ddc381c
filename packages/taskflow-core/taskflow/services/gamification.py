"""
Gamification service: XP, levels, streaks, achievements, daily challenges
and power-ups.

The arithmetic lives in taskflow.progression; this module loads and stores
the per-user profile and the achievement/challenge rows around it.
"""

import hashlib
import logging
from datetime import date, datetime
from typing import Iterable, List, Optional
from uuid import uuid4

from taskflow.db import affected_rows
from taskflow.errors import ConflictError, NotFoundError, UserInputError
from taskflow.models.gamification import (
    CHALLENGE_METRICS,
    Achievement,
    DailyChallenge,
    GamificationProfile,
)
from taskflow.models.task import Task
from taskflow.progression import (
    POWER_UP_TYPES,
    POWER_UPS,
    activate,
    advance_streak,
    effective_streak,
    has_active,
    level_up_rewards,
    level_from_xp,
    prune_expired,
    streak_badge,
    streak_multiplier,
    task_xp,
    xp_progress,
)
from taskflow.seed import ACHIEVEMENT_THRESHOLDS, EARLY_BIRD_BEFORE_HOUR, NIGHT_OWL_FROM_HOUR
from taskflow.services.base import BaseService, now_or

logger = logging.getLogger(__name__)

CHALLENGES_PER_DAY = 3

CHALLENGE_COLUMNS = """
    uc.id, uc.challenge_id, uc.date, uc.current, uc.completed, uc.completed_at,
    d.title, d.description, d.metric, d.target, d.reward, d.icon
"""


def _challenge_rank(user_id: str, day: date, challenge_id: str) -> str:
    """Stable per-user, per-day ordering of challenge definitions."""
    return hashlib.sha256(f"{user_id}:{day.isoformat()}:{challenge_id}".encode()).hexdigest()


class GamificationService(BaseService):
    """
    Service for a user's progression.

    Methods that change progress take `now` so the day boundary used for
    streaks and challenges is controlled by the caller.
    """

    # ----------------------------------------------------------------- profile

    async def _load_profile(self, user_id: str) -> GamificationProfile:
        row = await self.adapter.fetchrow(
            "SELECT * FROM gamification_profiles WHERE user_id = $1", user_id
        )
        if row:
            return GamificationProfile.from_dict(row)

        profile = GamificationProfile(user_id=user_id)
        await self.adapter.execute(
            """
            INSERT INTO gamification_profiles (id, user_id, power_up_inventory, active_power_ups, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5, $6)
            ON CONFLICT (user_id) DO NOTHING
            """,
            *self._encode(profile.id, user_id, {}, [], profile.created_at, profile.updated_at),
        )
        logger.info(f"Created gamification profile for user: {user_id}")
        row = await self.adapter.fetchrow(
            "SELECT * FROM gamification_profiles WHERE user_id = $1", user_id
        )
        return GamificationProfile.from_dict(row)

    async def _save_profile(self, profile: GamificationProfile, now: datetime) -> None:
        profile.updated_at = now
        await self._update_columns(
            "gamification_profiles",
            {
                "xp": profile.xp,
                "level": profile.level,
                "current_streak": profile.current_streak,
                "max_streak": profile.max_streak,
                "last_streak_date": profile.last_streak_date,
                "last_streak_reward": profile.last_streak_reward,
                "total_tasks_completed": profile.total_tasks_completed,
                "completed_tasks_today": profile.completed_tasks_today,
                "high_priority_completed": profile.high_priority_completed,
                "total_focus_minutes": profile.total_focus_minutes,
                "last_login_date": profile.last_login_date,
                "session_start": profile.session_start,
                "power_up_inventory": profile.power_up_inventory,
                "active_power_ups": [p.to_dict() for p in profile.active_power_ups],
                "updated_at": profile.updated_at,
            },
            {"user_id": profile.user_id},
        )

    @staticmethod
    def _freeze_active(profile: GamificationProfile, now: datetime) -> bool:
        return has_active(profile.active_power_ups, "streak_freeze", now)

    async def get_profile(self, user_id: str, now: Optional[datetime] = None) -> GamificationProfile:
        """
        Get (or create) a user's profile as of `now`.

        Expired power-ups are dropped and the streak reads as 0 once it has
        lapsed; nothing is written back.
        """
        now = now_or(now)
        profile = await self._load_profile(user_id)
        profile.active_power_ups = prune_expired(profile.active_power_ups, now)
        profile.current_streak = effective_streak(
            profile.current_streak,
            profile.last_streak_date,
            now.date(),
            self._freeze_active(profile, now),
        )
        if profile.last_streak_date != now.date():
            profile.completed_tasks_today = 0
        return profile

    async def stats(self, user_id: str, now: Optional[datetime] = None) -> dict:
        now = now_or(now)
        profile = await self.get_profile(user_id, now)
        unlocked = await self.adapter.fetchval(
            "SELECT COUNT(*) FROM user_achievements WHERE user_id = $1", user_id
        )
        total = await self.adapter.fetchval("SELECT COUNT(*) FROM achievement_definitions")
        progress = xp_progress(profile.xp)
        return {
            **progress,
            "current_streak": profile.current_streak,
            "longest_streak": profile.max_streak,
            "streak_multiplier": streak_multiplier(profile.current_streak),
            "streak_badge": streak_badge(profile.current_streak),
            "total_tasks_completed": profile.total_tasks_completed,
            "completed_tasks_today": profile.completed_tasks_today,
            "high_priority_completed": profile.high_priority_completed,
            "total_focus_minutes": profile.total_focus_minutes,
            "achievements_unlocked": unlocked or 0,
            "achievements_total": total or 0,
            "power_up_inventory": profile.power_up_inventory,
            "active_power_ups": [p.to_dict() for p in profile.active_power_ups],
        }

    # ---------------------------------------------------------------------- xp

    @staticmethod
    def _add_inventory(profile: GamificationProfile, power_up_type: str, count: int = 1) -> None:
        inventory = dict(profile.power_up_inventory)
        inventory[power_up_type] = inventory.get(power_up_type, 0) + count
        profile.power_up_inventory = inventory

    def _gain_xp(self, profile: GamificationProfile, amount: int) -> dict:
        old_level = profile.level
        profile.xp += max(int(amount), 0)
        profile.level = level_from_xp(profile.xp)
        earned = level_up_rewards(old_level, profile.level)
        for power_up_type in earned:
            self._add_inventory(profile, power_up_type)
        if profile.level > old_level:
            logger.info(f"User {profile.user_id} reached level {profile.level}")
        return {
            "xp_awarded": max(int(amount), 0),
            "leveled_up": profile.level > old_level,
            "new_level": profile.level,
            "power_ups_earned": earned,
        }

    async def award_xp(
        self,
        user_id: str,
        amount: int,
        reason: str = "",
        now: Optional[datetime] = None,
    ) -> dict:
        """Add XP outside of task completion (e.g. Pomodoro, challenge rewards)."""
        if amount < 0:
            raise UserInputError("XP amount must not be negative")
        now = now_or(now)
        profile = await self._load_profile(user_id)
        result = self._gain_xp(profile, amount)
        await self._save_profile(profile, now)
        logger.debug(f"Awarded {amount} XP to {user_id}: {reason}")
        return {**result, "total_xp": profile.xp}

    # -------------------------------------------------------------- activity

    async def record_task_completion(
        self,
        user_id: str,
        task: Task,
        now: Optional[datetime] = None,
    ) -> dict:
        """
        Apply every reward for completing `task` at `now`.

        Updates the streak (spending an active streak freeze if it bridges a
        missed day), awards XP with streak and power-up multipliers, bumps the
        counters and challenge progress, and unlocks achievements.

        Returns:
            Reward summary for the client
        """
        now = now_or(now)
        today = now.date()
        profile = await self._load_profile(user_id)
        profile.active_power_ups = prune_expired(profile.active_power_ups, now)

        streak = advance_streak(
            profile.current_streak,
            profile.max_streak,
            profile.last_streak_date,
            today,
            freeze_available=self._freeze_active(profile, now),
        )
        if streak.used_freeze:
            profile.active_power_ups = [
                p for p in profile.active_power_ups if p.type != "streak_freeze"
            ]
            logger.info(f"Streak freeze used for user: {user_id}")
        if profile.last_streak_date != today:
            profile.completed_tasks_today = 0
        profile.current_streak = streak.streak
        profile.max_streak = streak.max_streak
        profile.last_streak_date = today

        award = task_xp(task.priority, profile.current_streak, profile.active_power_ups, now, task.id)
        if "priority_task" in award.applied_power_ups:
            profile.active_power_ups = [
                p for p in profile.active_power_ups
                if not (p.type == "priority_task" and p.task_id == task.id)
            ]

        bonus_xp = 0
        if streak.is_milestone:
            bonus_xp = streak.bonus_xp
            profile.last_streak_reward = profile.current_streak
            self._add_inventory(profile, "streak_freeze")

        profile.total_tasks_completed += 1
        profile.completed_tasks_today += 1
        if task.priority == "high":
            profile.high_priority_completed += 1

        xp = self._gain_xp(profile, award.amount + bonus_xp)

        special = []
        if now.hour < EARLY_BIRD_BEFORE_HOUR:
            special.append("early-bird")
        if now.hour >= NIGHT_OWL_FROM_HOUR:
            special.append("night-owl")

        await self._advance_metric(user_id, "tasks_completed", 1, today)
        if task.priority == "high":
            await self._advance_metric(user_id, "high_priority_completed", 1, today)
        achievements = await self._check_achievements(profile, now, special)
        await self._save_profile(profile, now)

        logger.info(f"Task {task.id} completed by {user_id}: +{xp['xp_awarded']} XP")
        return {
            **xp,
            "base_xp": award.base,
            "multiplier": award.multiplier,
            "applied_power_ups": award.applied_power_ups,
            "streak_bonus_xp": bonus_xp,
            "total_xp": profile.xp,
            "streak": {
                "current": profile.current_streak,
                "longest": profile.max_streak,
                "is_new_record": streak.is_new_record,
                "used_freeze": streak.used_freeze,
                "was_reset": streak.was_reset,
                "milestone": bonus_xp > 0,
            },
            "achievements_unlocked": [a.to_dict() for a in achievements],
            "challenges": [c.to_dict() for c in await self.daily_challenges(user_id, now)],
        }

    async def record_focus_session(
        self,
        user_id: str,
        minutes: int,
        xp: int = 0,
        now: Optional[datetime] = None,
    ) -> dict:
        """Credit a finished work session: focus minutes, optional XP, achievements."""
        now = now_or(now)
        profile = await self._load_profile(user_id)
        profile.total_focus_minutes += max(int(minutes), 0)
        result = self._gain_xp(profile, xp)

        await self._advance_metric(user_id, "focus_minutes", minutes, now.date())
        await self._advance_metric(user_id, "pomodoros_completed", 1, now.date())
        achievements = await self._check_achievements(profile, now)
        await self._save_profile(profile, now)
        return {
            **result,
            "total_xp": profile.xp,
            "total_focus_minutes": profile.total_focus_minutes,
            "achievements_unlocked": [a.to_dict() for a in achievements],
        }

    async def record_event(
        self,
        user_id: str,
        metric: str,
        amount: int = 1,
        now: Optional[datetime] = None,
    ) -> List[DailyChallenge]:
        """Advance today's challenges that count `metric`."""
        if metric not in CHALLENGE_METRICS:
            raise UserInputError(f"Invalid metric. Must be one of: {', '.join(CHALLENGE_METRICS)}")
        now = now_or(now)
        await self._advance_metric(user_id, metric, amount, now.date())
        return await self.daily_challenges(user_id, now)

    # ------------------------------------------------------------ achievements

    async def achievements(self, user_id: str) -> List[Achievement]:
        """Every achievement definition with this user's unlock time, if any."""
        rows = await self.adapter.fetch(
            """
            SELECT d.*, ua.unlocked_at
            FROM achievement_definitions d
            LEFT JOIN user_achievements ua
                ON ua.achievement_id = d.id AND ua.user_id = $1
            ORDER BY d.category, d.points, d.id
            """,
            user_id,
        )
        return [Achievement.from_dict(r) for r in rows]

    async def _grant_achievement(self, user_id: str, achievement_id: str, now: datetime) -> Optional[Achievement]:
        row = await self.adapter.fetchrow(
            "SELECT * FROM achievement_definitions WHERE id = $1", achievement_id
        )
        if not row:
            raise NotFoundError(f"Achievement not found: {achievement_id}")
        result = await self.adapter.execute(
            """
            INSERT INTO user_achievements (id, user_id, achievement_id, unlocked_at)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (user_id, achievement_id) DO NOTHING
            """,
            *self._encode(str(uuid4()), user_id, achievement_id, now),
        )
        if affected_rows(result) == 0:
            return None
        achievement = Achievement.from_dict({**row, "unlocked_at": now})
        logger.info(f"Achievement unlocked for {user_id}: {achievement_id}")
        return achievement

    async def _check_achievements(
        self,
        profile: GamificationProfile,
        now: datetime,
        extra: Iterable[str] = (),
    ) -> List[Achievement]:
        """Unlock what the profile's counters now qualify for; points become XP."""
        candidates = [
            achievement_id
            for achievement_id, counter, minimum in ACHIEVEMENT_THRESHOLDS
            if getattr(profile, counter) >= minimum
        ]
        candidates.extend(extra)
        if not candidates:
            return []

        rows = await self.adapter.fetch(
            "SELECT achievement_id FROM user_achievements WHERE user_id = $1", profile.user_id
        )
        already = {r["achievement_id"] for r in rows}

        unlocked = []
        for achievement_id in candidates:
            if achievement_id in already:
                continue
            achievement = await self._grant_achievement(profile.user_id, achievement_id, now)
            if achievement:
                already.add(achievement_id)
                unlocked.append(achievement)
                self._gain_xp(profile, achievement.points)
        return unlocked

    async def unlock_achievement(
        self,
        user_id: str,
        achievement_id: str,
        now: Optional[datetime] = None,
    ) -> Optional[Achievement]:
        """
        Unlock one achievement and award its points.

        Returns None when the user already had it.
        """
        now = now_or(now)
        achievement = await self._grant_achievement(user_id, achievement_id, now)
        if achievement:
            profile = await self._load_profile(user_id)
            self._gain_xp(profile, achievement.points)
            await self._save_profile(profile, now)
        return achievement

    # -------------------------------------------------------------- challenges

    async def _challenge_rows(self, user_id: str, day: date) -> list:
        return await self.adapter.fetch(
            f"""
            SELECT {CHALLENGE_COLUMNS}
            FROM user_daily_challenges uc
            JOIN daily_challenge_definitions d ON d.id = uc.challenge_id
            WHERE uc.user_id = $1 AND uc.date = $2
            ORDER BY d.reward, d.id
            """,
            *self._encode(user_id, day),
        )

    async def _assign_challenges(self, user_id: str, day: date, count: int, exclude: Iterable[str] = ()) -> int:
        rows = await self.adapter.fetch("SELECT id FROM daily_challenge_definitions")
        skip = set(exclude)
        candidates = sorted(
            (r["id"] for r in rows if r["id"] not in skip),
            key=lambda challenge_id: _challenge_rank(user_id, day, challenge_id),
        )
        for challenge_id in candidates[:count]:
            await self.adapter.execute(
                """
                INSERT INTO user_daily_challenges (id, user_id, challenge_id, date, current, completed)
                VALUES ($1, $2, $3, $4, 0, $5)
                ON CONFLICT (user_id, challenge_id, date) DO NOTHING
                """,
                *self._encode(
                    str(uuid4()), user_id, challenge_id, day, False
                ),
            )
        return len(candidates[:count])

    async def daily_challenges(self, user_id: str, now: Optional[datetime] = None) -> List[DailyChallenge]:
        """Today's challenges; the first read of a day assigns them."""
        day = now_or(now).date()
        rows = await self._challenge_rows(user_id, day)
        if not rows:
            await self._assign_challenges(user_id, day, CHALLENGES_PER_DAY)
            rows = await self._challenge_rows(user_id, day)
        return [DailyChallenge.from_dict(r) for r in rows]

    async def _advance_metric(self, user_id: str, metric: str, amount: int, day: date) -> None:
        if amount <= 0:
            return
        challenges = await self.daily_challenges(user_id, datetime(day.year, day.month, day.day))
        for challenge in challenges:
            if challenge.metric != metric or challenge.completed:
                continue
            await self.adapter.execute(
                "UPDATE user_daily_challenges SET current = $1 WHERE id = $2",
                min(challenge.current + amount, challenge.target),
                challenge.id,
            )

    async def complete_challenge(
        self,
        user_id: str,
        challenge_id: str,
        now: Optional[datetime] = None,
    ) -> dict:
        """
        Claim the reward for one of today's challenges.

        `challenge_id` may be the assignment id or the definition id.
        """
        now = now_or(now)
        challenges = await self.daily_challenges(user_id, now)
        challenge = next(
            (c for c in challenges if challenge_id in (c.id, c.challenge_id)), None
        )
        if not challenge:
            raise NotFoundError("Challenge not found")
        if challenge.completed:
            raise UserInputError("Challenge already completed")
        if challenge.current < challenge.target:
            raise UserInputError(
                f"Challenge not finished: {challenge.current}/{challenge.target}"
            )

        await self.adapter.execute(
            "UPDATE user_daily_challenges SET completed = $1, completed_at = $2 WHERE id = $3",
            *self._encode(True, now, challenge.id),
        )
        challenge.completed = True
        challenge.completed_at = now
        reward = await self.award_xp(user_id, challenge.reward, f"challenge {challenge.challenge_id}", now)
        logger.info(f"Challenge {challenge.challenge_id} completed by {user_id}")
        return {"challenge": challenge, "rewards": reward}

    # --------------------------------------------------------------- power-ups

    async def power_ups(self, user_id: str, now: Optional[datetime] = None) -> dict:
        now = now_or(now)
        profile = await self.get_profile(user_id, now)
        return {
            "catalog": [
                {
                    **definition.to_dict(),
                    "available": profile.power_up_inventory.get(definition.id, 0),
                    "unlocked": profile.level >= definition.required_level,
                }
                for definition in POWER_UPS.values()
            ],
            "inventory": profile.power_up_inventory,
            "active": [
                {**p.to_dict(), "remaining_seconds": (
                    max(int((p.expires_at - now).total_seconds()), 0) if p.expires_at else None
                )}
                for p in profile.active_power_ups
            ],
        }

    async def activate_power_up(
        self,
        user_id: str,
        power_up_type: str,
        task_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        """
        Spend one power-up from the inventory.

        extra_challenge takes effect immediately; the others join the active
        list until they expire or are consumed.
        """
        if power_up_type not in POWER_UPS:
            raise UserInputError(f"Invalid power-up. Must be one of: {', '.join(POWER_UP_TYPES)}")
        now = now_or(now)
        definition = POWER_UPS[power_up_type]
        profile = await self._load_profile(user_id)
        profile.active_power_ups = prune_expired(profile.active_power_ups, now)

        if profile.level < definition.required_level:
            raise UserInputError(f"Requires level {definition.required_level} to activate this power-up")
        if profile.power_up_inventory.get(power_up_type, 0) <= 0:
            raise UserInputError("No power-ups of this type available")
        if has_active(profile.active_power_ups, power_up_type, now):
            raise ConflictError("Power-up is already active")

        if definition.applies_to == "task":
            if not task_id:
                raise UserInputError("task_id is required for this power-up")
            row = await self.adapter.fetchrow(
                "SELECT completed FROM tasks WHERE id = $1 AND user_id = $2", task_id, user_id
            )
            if not row:
                raise NotFoundError("Task not found")
            if row["completed"]:
                raise UserInputError("Task is already completed")
        else:
            task_id = None

        self._add_inventory(profile, power_up_type, -1)
        activation = None
        added_challenges = 0
        if definition.applies_to == "instant":
            today = now.date()
            assigned = await self.daily_challenges(user_id, now)
            added_challenges = await self._assign_challenges(
                user_id, today, 1, exclude=[c.challenge_id for c in assigned]
            )
            if not added_challenges:
                raise UserInputError("No more challenges available today")
        else:
            activation = activate(power_up_type, now, task_id)
            profile.active_power_ups.append(activation)

        await self._save_profile(profile, now)
        logger.info(f"Power-up {power_up_type} activated by {user_id}")
        return {
            "type": power_up_type,
            "activation": activation.to_dict() if activation else None,
            "challenges_added": added_challenges,
            "inventory": profile.power_up_inventory,
        }

    async def deactivate_power_up(
        self,
        user_id: str,
        power_up_type: str,
        now: Optional[datetime] = None,
    ) -> dict:
        """End an active power-up early. The spent item is not refunded."""
        now = now_or(now)
        profile = await self._load_profile(user_id)
        active = prune_expired(profile.active_power_ups, now)
        remaining = [p for p in active if p.type != power_up_type]
        if len(remaining) == len(active):
            raise NotFoundError("Power-up not found")
        profile.active_power_ups = remaining
        await self._save_profile(profile, now)
        logger.info(f"Power-up {power_up_type} deactivated by {user_id}")
        return {"type": power_up_type, "active": [p.to_dict() for p in remaining]}
