"""
Tests for GamificationService.
"""

import json
import pytest
from datetime import datetime, timedelta

DAY1 = datetime(2024, 3, 11, 10)


@pytest.fixture
def game(db):
    from taskflow.services.gamification import GamificationService

    return GamificationService(db)


@pytest.fixture
def tasks_service(db):
    from taskflow.services.tasks import TaskService

    return TaskService(db)


async def set_profile(db, user_id, inventory, level=None):
    if level is None:
        await db.execute(
            "UPDATE gamification_profiles SET power_up_inventory = $1 WHERE user_id = $2",
            json.dumps(inventory), user_id,
        )
    else:
        await db.execute(
            "UPDATE gamification_profiles SET power_up_inventory = $1, level = $2 WHERE user_id = $3",
            json.dumps(inventory), level, user_id,
        )


async def finish_task(tasks_service, user, project, when, priority="medium"):
    task = await tasks_service.create(user.id, project.id, f"Task at {when.isoformat()}", priority=priority, now=when)
    return (await tasks_service.complete(user.id, task.id, when))["rewards"]


class TestProfile:
    """Tests for profile, stats and XP."""

    async def test_new_profile(self, game, user, now):
        stats = await game.stats(user.id, now)

        assert stats["level"] == 1
        assert stats["xp"] == 0
        assert stats["xp_to_next_level"] == 100
        assert stats["current_streak"] == 0
        assert stats["achievements_unlocked"] == 0
        assert stats["achievements_total"] == 16

    async def test_award_xp_levels_up_and_grants_power_up(self, game, user, now):
        result = await game.award_xp(user.id, 100, "test", now)

        assert result["leveled_up"] is True
        assert result["new_level"] == 2
        assert result["power_ups_earned"] == ["xp_boost"]
        assert (await game.get_profile(user.id, now)).power_up_inventory == {"xp_boost": 1}

    async def test_award_negative_xp(self, game, user, now):
        from taskflow.errors import UserInputError

        with pytest.raises(UserInputError):
            await game.award_xp(user.id, -5, "nope", now)


class TestStreaks:
    """Streak handling across days."""

    async def test_consecutive_days(self, tasks_service, game, user, project):
        await finish_task(tasks_service, user, project, DAY1)
        rewards = await finish_task(tasks_service, user, project, DAY1 + timedelta(days=1))

        assert rewards["streak"]["current"] == 2
        assert rewards["streak"]["is_new_record"] is True

    async def test_same_day_keeps_streak(self, tasks_service, user, project):
        await finish_task(tasks_service, user, project, DAY1)
        rewards = await finish_task(tasks_service, user, project, DAY1 + timedelta(hours=2))

        assert rewards["streak"]["current"] == 1

    async def test_missed_day_resets(self, tasks_service, game, user, project):
        await finish_task(tasks_service, user, project, DAY1)

        assert (await game.get_profile(user.id, DAY1 + timedelta(days=2))).current_streak == 0

        rewards = await finish_task(tasks_service, user, project, DAY1 + timedelta(days=2))
        assert rewards["streak"]["current"] == 1
        assert rewards["streak"]["was_reset"] is True

    async def test_streak_freeze_bridges_one_day(self, tasks_service, game, db, user, project):
        await finish_task(tasks_service, user, project, DAY1)
        await finish_task(tasks_service, user, project, DAY1 + timedelta(days=1))
        await set_profile(db, user.id, {"streak_freeze": 1})
        await game.activate_power_up(user.id, "streak_freeze", now=DAY1 + timedelta(days=1))

        rewards = await finish_task(tasks_service, user, project, DAY1 + timedelta(days=3))

        assert rewards["streak"]["current"] == 3
        assert rewards["streak"]["used_freeze"] is True
        profile = await game.get_profile(user.id, DAY1 + timedelta(days=3))
        assert profile.active_power_ups == []

    async def test_weekly_milestone_bonus(self, tasks_service, game, user, project):
        rewards = None
        for day in range(7):
            rewards = await finish_task(tasks_service, user, project, DAY1 + timedelta(days=day))

        assert rewards["streak"]["current"] == 7
        assert rewards["streak"]["milestone"] is True
        assert rewards["streak_bonus_xp"] == 100
        assert rewards["multiplier"] == 1.5
        profile = await game.get_profile(user.id, DAY1 + timedelta(days=6))
        assert profile.power_up_inventory.get("streak_freeze") == 1

    async def test_milestone_pays_again_after_reset(self, tasks_service, game, user, project):
        for day in range(7):
            await finish_task(tasks_service, user, project, DAY1 + timedelta(days=day))

        second_start = DAY1 + timedelta(days=10)
        rewards = None
        for day in range(7):
            rewards = await finish_task(tasks_service, user, project, second_start + timedelta(days=day))

        assert rewards["streak"]["current"] == 7
        assert rewards["streak_bonus_xp"] == 100
        profile = await game.get_profile(user.id, second_start + timedelta(days=6))
        assert profile.power_up_inventory.get("streak_freeze") == 2


class TestAchievements:
    """Tests for achievement unlocking."""

    async def test_early_bird(self, tasks_service, user, project):
        rewards = await finish_task(tasks_service, user, project, datetime(2024, 3, 13, 7, 30))

        ids = [a["id"] for a in rewards["achievements_unlocked"]]
        assert ids == ["first-task", "early-bird"]

    async def test_night_owl(self, tasks_service, user, project):
        rewards = await finish_task(tasks_service, user, project, datetime(2024, 3, 13, 23, 15))

        assert "night-owl" in [a["id"] for a in rewards["achievements_unlocked"]]

    async def test_achievements_are_unlocked_once(self, tasks_service, game, user, project, now):
        await finish_task(tasks_service, user, project, now)
        rewards = await finish_task(tasks_service, user, project, now)

        assert rewards["achievements_unlocked"] == []
        unlocked = [a.id for a in await game.achievements(user.id) if a.unlocked]
        assert sorted(unlocked) == ["first-task", "project-creator"]

    async def test_focus_achievement(self, game, user, now):
        result = await game.record_focus_session(user.id, 60, 10, now)

        assert result["total_focus_minutes"] == 60
        assert [a["id"] for a in result["achievements_unlocked"]] == ["focus-1h"]

    async def test_unknown_achievement(self, game, user, now):
        from taskflow.errors import NotFoundError

        with pytest.raises(NotFoundError):
            await game.unlock_achievement(user.id, "moon-landing", now)


class TestDailyChallenges:
    """Tests for daily challenges."""

    async def test_three_per_day_and_stable(self, game, user, now):
        first = await game.daily_challenges(user.id, now)
        again = await game.daily_challenges(user.id, now + timedelta(hours=5))

        assert len(first) == 3
        assert [c.id for c in first] == [c.id for c in again]
        assert len({c.challenge_id for c in first}) == 3

    async def test_new_day_new_assignment(self, game, user, now):
        today = await game.daily_challenges(user.id, now)
        tomorrow = await game.daily_challenges(user.id, now + timedelta(days=1))

        assert {c.id for c in today}.isdisjoint({c.id for c in tomorrow})

    async def test_progress_is_capped_and_claimed(self, game, user, now):
        challenge = (await game.daily_challenges(user.id, now))[0]

        challenges = await game.record_event(user.id, challenge.metric, challenge.target + 5, now)
        progressed = next(c for c in challenges if c.id == challenge.id)
        assert progressed.current == challenge.target

        result = await game.complete_challenge(user.id, challenge.challenge_id, now)

        assert result["challenge"].completed is True
        assert result["rewards"]["total_xp"] == challenge.reward

    async def test_claim_rules(self, game, user, now):
        from taskflow.errors import NotFoundError, UserInputError

        challenge = (await game.daily_challenges(user.id, now))[0]

        with pytest.raises(UserInputError, match="not finished"):
            await game.complete_challenge(user.id, challenge.id, now)

        await game.record_event(user.id, challenge.metric, challenge.target, now)
        await game.complete_challenge(user.id, challenge.id, now)

        with pytest.raises(UserInputError, match="already completed"):
            await game.complete_challenge(user.id, challenge.id, now)
        with pytest.raises(NotFoundError):
            await game.complete_challenge(user.id, "nonexistent", now)

    async def test_invalid_metric(self, game, user, now):
        from taskflow.errors import UserInputError

        with pytest.raises(UserInputError, match="Invalid metric"):
            await game.record_event(user.id, "naps_taken", 1, now)


class TestPowerUps:
    """Tests for power-up inventory and activation."""

    async def test_catalog(self, game, user, now):
        catalog = {p["id"]: p for p in (await game.power_ups(user.id, now))["catalog"]}

        assert set(catalog) == {"xp_boost", "focus_mode", "priority_task", "streak_freeze", "extra_challenge"}
        assert catalog["xp_boost"]["unlocked"] is True
        assert catalog["priority_task"]["unlocked"] is False
        assert catalog["xp_boost"]["available"] == 0

    async def test_activation_requires_inventory(self, game, user, now):
        from taskflow.errors import UserInputError

        with pytest.raises(UserInputError, match="No power-ups"):
            await game.activate_power_up(user.id, "xp_boost", now=now)

    async def test_activation_requires_level(self, game, db, user, now):
        from taskflow.errors import UserInputError

        await set_profile(db, user.id, {"priority_task": 1})

        with pytest.raises(UserInputError, match="Requires level 3"):
            await game.activate_power_up(user.id, "priority_task", task_id="t", now=now)

    async def test_xp_boost_doubles_task_xp(self, game, tasks_service, user, project, now):
        await game.award_xp(user.id, 100, "level up", now)
        activation = await game.activate_power_up(user.id, "xp_boost", now=now)

        boosted = await finish_task(tasks_service, user, project, now + timedelta(minutes=5))
        plain = await finish_task(tasks_service, user, project, now + timedelta(minutes=31))

        assert activation["inventory"] == {"xp_boost": 0}
        assert boosted["applied_power_ups"] == ["xp_boost"]
        assert boosted["xp_awarded"] == 50
        assert plain["applied_power_ups"] == []
        assert plain["xp_awarded"] == 25

    async def test_already_active(self, game, db, user, now):
        from taskflow.errors import ConflictError

        await set_profile(db, user.id, {"xp_boost": 2})
        await game.activate_power_up(user.id, "xp_boost", now=now)

        with pytest.raises(ConflictError):
            await game.activate_power_up(user.id, "xp_boost", now=now)

    async def test_priority_task_applies_to_one_task(self, game, tasks_service, db, user, project, now):
        await set_profile(db, user.id, {"priority_task": 1}, level=3)
        chosen = await tasks_service.create(user.id, project.id, "Chosen", priority="low", now=now)
        other = await tasks_service.create(user.id, project.id, "Other", priority="low", now=now)
        await game.activate_power_up(user.id, "priority_task", task_id=chosen.id, now=now)

        other_rewards = (await tasks_service.complete(user.id, other.id, now))["rewards"]
        chosen_rewards = (await tasks_service.complete(user.id, chosen.id, now))["rewards"]

        assert other_rewards["xp_awarded"] == 10
        assert chosen_rewards["xp_awarded"] == 30
        assert (await game.power_ups(user.id, now))["active"] == []

    async def test_extra_challenge(self, game, db, user, now):
        await set_profile(db, user.id, {"extra_challenge": 1}, level=5)
        await game.daily_challenges(user.id, now)

        result = await game.activate_power_up(user.id, "extra_challenge", now=now)

        assert result["challenges_added"] == 1
        assert result["activation"] is None
        assert len(await game.daily_challenges(user.id, now)) == 4

    async def test_deactivate(self, game, db, user, now):
        from taskflow.errors import NotFoundError

        await set_profile(db, user.id, {"xp_boost": 1})
        await game.activate_power_up(user.id, "xp_boost", now=now)

        result = await game.deactivate_power_up(user.id, "xp_boost", now)

        assert result["active"] == []
        with pytest.raises(NotFoundError):
            await game.deactivate_power_up(user.id, "xp_boost", now)
