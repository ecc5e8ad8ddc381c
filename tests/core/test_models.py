"""
Tests for TaskFlow data models.
"""

import json
import pytest
from datetime import datetime, timedelta


class TestTaskModel:
    """Tests for Task model."""

    def test_task_creation(self):
        """Test creating a task with defaults."""
        from taskflow.models.task import Task

        task = Task(user_id="u-1", project_id="p-1", text="Test task")

        assert task.text == "Test task"
        assert task.status == "pending"
        assert task.priority == "medium"
        assert task.completed is False
        assert task.id is not None
        assert task.created_at is not None
        assert task.updated_at == task.created_at

    def test_is_overdue(self):
        from taskflow.models.task import Task

        now = datetime(2024, 3, 13, 10)
        task = Task(user_id="u-1", project_id="p-1", text="Late", due_date=now - timedelta(minutes=1))

        assert task.is_overdue(now) is True
        task.completed = True
        assert task.is_overdue(now) is False

    def test_series_id(self):
        from taskflow.models.task import Task

        root = Task(user_id="u-1", project_id="p-1", text="Root", is_recurring=True)
        child = Task(user_id="u-1", project_id="p-1", text="Root", parent_recurring_id=root.id)

        assert root.series_id == root.id
        assert child.series_id == root.id

    def test_subtask_progress(self):
        from taskflow.models.task import Subtask, Task

        task = Task(
            user_id="u-1", project_id="p-1", text="Checklist",
            subtasks=[Subtask("a", completed=True), Subtask("b")],
        )

        assert task.subtask_progress == {"completed": 1, "total": 2}

    def test_from_sqlite_row(self):
        """Rows from SQLite carry JSON text and 0/1 flags."""
        from taskflow.models.task import Task

        row = {
            "id": "t-1",
            "user_id": "u-1",
            "project_id": "p-1",
            "text": "Row task",
            "completed": 0,
            "status": "pending",
            "priority": "high",
            "category": None,
            "tags": json.dumps(["a", "b"]),
            "due_date": "2024-03-20T09:00:00",
            "subtasks": json.dumps([{"id": "s-1", "text": "step", "completed": 1}]),
            "is_recurring": 1,
            "recurrence_pattern": json.dumps({"frequency": "weekly", "interval": 2}),
            "occurrence_number": 3,
            "notification_settings": json.dumps({"enabled": True, "remind_before_minutes": [30]}),
            "created_at": "2024-03-13T10:00:00",
            "updated_at": "2024-03-13T10:00:00",
        }

        task = Task.from_dict(row)

        assert task.completed is False
        assert task.category == "general"
        assert task.tags == ["a", "b"]
        assert task.due_date == datetime(2024, 3, 20, 9)
        assert task.subtasks[0].completed is True
        assert task.recurrence_pattern.frequency == "weekly"
        assert task.recurrence_pattern.interval == 2
        assert task.occurrence_number == 3
        assert task.notification_settings["remind_before_minutes"] == [30]

    def test_task_to_dict(self):
        """Test serialization to dict."""
        from taskflow.models.task import Task

        task = Task(
            user_id="u-1",
            project_id="p-1",
            text="Test",
            description="Description",
            tags=["bug", "urgent"],
            due_date=datetime(2024, 3, 20, 9),
        )

        result = task.to_dict()

        assert result["text"] == "Test"
        assert result["description"] == "Description"
        assert result["tags"] == ["bug", "urgent"]
        assert result["due_date"] == "2024-03-20T09:00:00"
        assert result["recurrence_pattern"] is None


class TestUserModel:
    """Tests for User model."""

    def test_to_dict_hides_password_hash(self):
        from taskflow.models.user import User

        user = User(email="a@example.com", password_hash="pbkdf2:sha256:...", github_id="42")

        result = user.to_dict()

        assert "password_hash" not in result
        assert result["has_password"] is True
        assert result["github_linked"] is True
        assert result["google_linked"] is False


class TestPomodoroModels:
    """Tests for TimerSettings and PomodoroSession."""

    def test_next_phase_cycle(self):
        from taskflow.models.pomodoro import TimerSettings

        settings = TimerSettings(sessions_before_long_break=4)

        assert settings.next_phase(None, 0) == "work"
        assert settings.next_phase("work", 1) == "short_break"
        assert settings.next_phase("work", 4) == "long_break"
        assert settings.next_phase("long_break", 4) == "work"

    def test_settings_validation(self):
        from taskflow.models.pomodoro import TimerSettings

        assert TimerSettings().validate() == []
        assert len(TimerSettings(work=0, long_break=121).validate()) == 2

    def test_settings_from_partial_dict(self):
        from taskflow.models.pomodoro import TimerSettings

        settings = TimerSettings.from_dict({"work": 50})

        assert settings.work == 50
        assert settings.short_break == 5

    def test_elapsed_excludes_pauses(self):
        from taskflow.models.pomodoro import PomodoroSession

        start = datetime(2024, 3, 13, 10)
        session = PomodoroSession(user_id="u-1", duration=25, start_time=start, paused_seconds=120)

        assert session.elapsed_seconds(start + timedelta(minutes=10)) == 480
        assert session.remaining_seconds(start + timedelta(minutes=10)) == 25 * 60 - 480

    def test_paused_session_stops_the_clock(self):
        from taskflow.models.pomodoro import PomodoroSession

        start = datetime(2024, 3, 13, 10)
        session = PomodoroSession(
            user_id="u-1", duration=25, start_time=start, paused_at=start + timedelta(minutes=5)
        )

        assert session.is_paused is True
        assert session.elapsed_seconds(start + timedelta(minutes=20)) == 300


class TestTemplateModel:
    """Tests for Template blueprints."""

    def test_interpolate(self):
        from taskflow.models.template import interpolate

        assert interpolate("Fix {{bug}} in {{area}}", {"bug": "crash"}) == "Fix crash in {{area}}"

    def test_blueprint_applies_defaults_and_values(self):
        from taskflow.models.template import Template

        template = Template(
            name="Workout",
            template_data={
                "text": "{{kind}} workout for {{who}}",
                "priority": "low",
                "subtasks": [{"text": "Warm up {{who}}"}],
                "variables": [
                    {"name": "kind", "default": "Full body"},
                    {"name": "who", "required": True},
                ],
            },
        )

        assert template.missing_variables({}) == ["who"]

        data = template.blueprint({"who": "Ada"})

        assert data["text"] == "Full body workout for Ada"
        assert data["priority"] == "low"
        assert data["subtasks"] == [{"text": "Warm up Ada", "completed": False}]
        assert "variables" not in data


class TestAnalyticsModel:
    """Tests for completion_rate()."""

    def test_completion_rate(self):
        from taskflow.models.analytics import completion_rate

        assert completion_rate(4, 1) == 25.0
        assert completion_rate(3, 5) == 100.0
        assert completion_rate(0, 2) == 100.0
        assert completion_rate(0, 0) == 0.0
