"""
Tests for gamification, Pomodoro, templates, insights and filter preset routes.
"""

import pytest


class TestGamificationApi:
    async def test_profile_starts_at_level_one(self, client, headers):
        response = await client.get("/gamification/profile", headers=headers)

        assert response.status_code == 200
        assert response.json()["level"] == 1
        assert response.json()["xp"] == 0

    async def test_achievement_catalog(self, client, headers, project_id):
        response = await client.get("/gamification/achievements", headers=headers)

        achievements = {a["id"]: a for a in response.json()}
        assert len(achievements) == 16
        assert achievements["project-creator"]["unlocked"] is True
        assert achievements["first-task"]["unlocked"] is False

    async def test_daily_challenges(self, client, headers):
        challenges = (await client.get("/gamification/challenges", headers=headers)).json()

        assert len(challenges) == 3
        assert all(c["current"] == 0 for c in challenges)

        claim = await client.post(f"/gamification/challenges/{challenges[0]['id']}/complete", headers=headers)
        assert claim.status_code == 400
        assert claim.json()["message"].startswith("Challenge not finished")

        missing = await client.post("/gamification/challenges/nope/complete", headers=headers)
        assert missing.status_code == 404

    async def test_power_ups(self, client, headers):
        catalog = (await client.get("/gamification/power-ups", headers=headers)).json()

        assert catalog["inventory"] == {}
        assert {p["id"] for p in catalog["catalog"] if not p["unlocked"]} == {
            "priority_task", "extra_challenge", "focus_mode",
        }

        empty = await client.post("/gamification/power-ups/activate", json={"type": "xp_boost"}, headers=headers)
        locked = await client.post("/gamification/power-ups/activate", json={"type": "focus_mode"}, headers=headers)
        unknown = await client.post("/gamification/power-ups/activate", json={"type": "invincible"}, headers=headers)

        assert empty.json()["message"] == "No power-ups of this type available"
        assert locked.json()["message"] == "Requires level 7 to activate this power-up"
        assert unknown.status_code == 400

    async def test_deactivate_inactive(self, client, headers):
        response = await client.post("/gamification/power-ups/xp_boost/deactivate", headers=headers)

        assert response.status_code == 404


class TestPomodoroApi:
    async def test_session_flow(self, client, headers):
        started = await client.post("/pomodoro/start", json={}, headers=headers)
        session_id = started.json()["id"]

        active = await client.get("/pomodoro/active", headers=headers)
        second = await client.post("/pomodoro/start", json={"type": "short_break"}, headers=headers)
        paused = await client.post(f"/pomodoro/{session_id}/pause", headers=headers)
        resumed = await client.post(f"/pomodoro/{session_id}/resume", headers=headers)
        completed = await client.post(f"/pomodoro/{session_id}/complete", headers=headers)

        assert started.status_code == 201
        assert started.json()["type"] == "work"
        assert active.json()["session"]["id"] == session_id
        assert second.status_code == 409
        assert paused.json()["paused"] is True
        assert resumed.json()["paused"] is False
        assert completed.json()["rewards"]["xp_awarded"] == 10
        assert completed.json()["next_phase"] == "short_break"

    async def test_stats_and_sessions(self, client, headers):
        started = await client.post("/pomodoro/start", json={"type": "work"}, headers=headers)
        await client.post(f"/pomodoro/{started.json()['id']}/skip", headers=headers)

        stats = await client.get("/pomodoro/stats", headers=headers)
        sessions = await client.get("/pomodoro/sessions", headers=headers)

        assert stats.json()["total_sessions"] == 0
        assert len(sessions.json()) == 1
        assert sessions.json()[0]["completed"] is False

    async def test_invalid_type(self, client, headers):
        response = await client.post("/pomodoro/start", json={"type": "nap"}, headers=headers)

        assert response.status_code == 400


class TestTemplatesApi:
    async def test_builtins_and_use(self, client, headers, project_id):
        listed = await client.get("/templates", headers=headers)
        used = await client.post(
            "/templates/meeting-prep/use",
            json={"project_id": project_id, "variables": {"meetingName": "Retro"}},
            headers=headers,
        )
        most_used = await client.get("/templates/most-used", headers=headers)

        assert "meeting-prep" in {t["id"] for t in listed.json()}
        assert used.status_code == 201
        assert used.json()["text"] == "Prepare for Retro meeting"
        assert [t["id"] for t in most_used.json()] == ["meeting-prep"]

    async def test_custom_template_crud(self, client, headers):
        created = await client.post(
            "/templates",
            json={"name": "Standup", "template_data": {"text": "Standup notes", "priority": "low"}},
            headers=headers,
        )
        template_id = created.json()["id"]

        renamed = await client.patch(f"/templates/{template_id}", json={"name": "Daily standup"}, headers=headers)
        deleted = await client.delete(f"/templates/{template_id}", headers=headers)

        assert created.status_code == 201
        assert renamed.json()["name"] == "Daily standup"
        assert deleted.json() == {"success": True}

    async def test_missing_variable(self, client, headers, project_id):
        response = await client.post("/templates/meeting-prep/use", json={"project_id": project_id}, headers=headers)

        assert response.status_code == 400


class TestInsightsApi:
    async def test_analytics_defaults_to_thirty_days(self, client, headers, project_id):
        await client.post("/tasks", json={"project_id": project_id, "text": "Count me"}, headers=headers)

        report = await client.get("/analytics", headers=headers)
        daily = await client.get("/analytics/daily", headers=headers)

        assert report.status_code == 200
        assert len(report.json()["productivity"]["daily_breakdown"]) == 30
        assert report.json()["productivity"]["total_tasks_created"] == 1
        assert daily.json()[0]["tasks_created"] == 1

    async def test_analytics_bad_range(self, client, headers):
        response = await client.get("/analytics", params={"start": "2024-03-10", "end": "2024-03-01"}, headers=headers)

        assert response.status_code == 400

    async def test_calendar(self, client, headers, project_id):
        await client.post(
            "/tasks",
            json={"project_id": project_id, "text": "Launch", "due_date": "2030-05-20T12:00:00"},
            headers=headers,
        )

        month = await client.get("/calendar/2030/5", headers=headers)
        bad = await client.get("/calendar/2030/13", headers=headers)

        assert month.json()["days"]["2030-05-20"][0]["text"] == "Launch"
        assert bad.status_code == 400

    async def test_upcoming_notifications(self, client, headers):
        response = await client.get("/notifications/upcoming", headers=headers)
        too_wide = await client.get("/notifications/upcoming", params={"within_minutes": 20000}, headers=headers)

        assert response.json() == []
        assert too_wide.status_code == 400


class TestFilterPresetsApi:
    async def test_preset_flow(self, client, headers, project_id):
        for text, priority in (("urgent", "high"), ("later", "low")):
            await client.post(
                "/tasks", json={"project_id": project_id, "text": text, "priority": priority}, headers=headers
            )

        created = await client.post(
            "/filter-presets", json={"name": "Hot", "filters": {"priority": ["high"]}}, headers=headers
        )
        duplicate = await client.post("/filter-presets", json={"name": "Hot"}, headers=headers)
        tasks = await client.get(f"/filter-presets/{created.json()['id']}/tasks", headers=headers)
        listed = await client.get("/filter-presets", headers=headers)

        assert created.status_code == 201
        assert duplicate.status_code == 409
        assert [t["text"] for t in tasks.json()["items"]] == ["urgent"]
        assert [p["name"] for p in listed.json()] == ["Hot"]

        deleted = await client.delete(f"/filter-presets/{created.json()['id']}", headers=headers)
        assert deleted.json() == {"success": True}
        assert (await client.delete(f"/filter-presets/{created.json()['id']}", headers=headers)).status_code == 404
