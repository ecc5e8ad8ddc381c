"""
Tests for TemplateService.
"""

import pytest
from datetime import datetime


@pytest.fixture
def templates(db):
    from taskflow.services.templates import TemplateService

    return TemplateService(db)


CUSTOM = {
    "text": "Call {{who}}",
    "priority": "high",
    "tags": ["phone"],
    "subtasks": [{"text": "Find number for {{who}}"}],
    "variables": [{"name": "who", "required": True}],
}


class TestTemplateService:
    """Tests for template CRUD and use()."""

    async def test_builtins_are_visible(self, templates, user):
        from taskflow.seed import BUILT_IN_TEMPLATES

        listed = await templates.list(user.id)

        assert len(listed) == len(BUILT_IN_TEMPLATES)
        assert all(t.is_built_in for t in listed)
        assert {t.id for t in await templates.list(user.id, category="health")} == {"workout"}

    async def test_create_unlocks_achievement(self, templates, db, user, now):
        from taskflow.services.gamification import GamificationService

        template = await templates.create(user.id, "Phone call", CUSTOM, category="personal", now=now)

        assert template.icon == "📋"
        assert template.is_built_in is False
        unlocked = {a.id for a in await GamificationService(db).achievements(user.id) if a.unlocked}
        assert "template-user" in unlocked

    async def test_own_templates_come_first(self, templates, user, now):
        await templates.create(user.id, "Phone call", CUSTOM, now=now)

        listed = await templates.list(user.id)

        assert listed[0].name == "Phone call"

    async def test_create_validation(self, templates, user):
        from taskflow.errors import UserInputError

        with pytest.raises(UserInputError, match="name is required"):
            await templates.create(user.id, " ", CUSTOM)
        with pytest.raises(UserInputError, match="needs task text"):
            await templates.create(user.id, "Empty", {"priority": "low"})
        with pytest.raises(UserInputError, match="Unknown template fields"):
            await templates.create(user.id, "Odd", {"text": "x", "owner": "me"})

    async def test_templates_are_private(self, templates, user, other_user, now):
        from taskflow.errors import NotFoundError

        template = await templates.create(user.id, "Mine", CUSTOM, now=now)

        with pytest.raises(NotFoundError):
            await templates.get(other_user.id, template.id)
        assert template.id not in {t.id for t in await templates.list(other_user.id)}

    async def test_builtins_are_read_only(self, templates, user):
        from taskflow.errors import NotFoundError

        with pytest.raises(NotFoundError):
            await templates.update(user.id, "workout", name="My workout")
        with pytest.raises(NotFoundError):
            await templates.delete(user.id, "workout")

    async def test_update_and_delete(self, templates, user, now):
        template = await templates.create(user.id, "Mine", CUSTOM, now=now)

        updated = await templates.update(user.id, template.id, name="Renamed", icon="")

        assert updated.name == "Renamed"
        assert updated.icon == "📋"
        assert await templates.delete(user.id, template.id) is True


class TestUseTemplate:
    """Tests for TemplateService.use()."""

    async def test_use_fills_variables(self, templates, user, project, now):
        template = await templates.create(user.id, "Phone call", CUSTOM, now=now)

        task = await templates.use(
            user.id, template.id, project.id,
            due_date=datetime(2024, 3, 14, 9), variables={"who": "Grace"}, now=now,
        )

        assert task.text == "Call Grace"
        assert task.priority == "high"
        assert task.tags == ["phone"]
        assert [s.text for s in task.subtasks] == ["Find number for Grace"]
        assert task.due_date == datetime(2024, 3, 14, 9)
        assert (await templates.get(user.id, template.id)).usage_count == 1

    async def test_missing_required_variable(self, templates, user, project, now):
        from taskflow.errors import UserInputError

        with pytest.raises(UserInputError, match="Missing template variables: meetingName"):
            await templates.use(user.id, "meeting-prep", project.id, now=now)

    async def test_builtin_use_and_most_used(self, templates, user, project, now):
        task = await templates.use(
            user.id, "meeting-prep", project.id, variables={"meetingName": "Weekly Sync"}, now=now
        )
        await templates.use(user.id, "workout", project.id, now=now)
        await templates.use(user.id, "workout", project.id, now=now)

        most_used = await templates.most_used(user.id)

        assert task.text == "Prepare for Weekly Sync meeting"
        assert len(task.subtasks) == 4
        assert [t.id for t in most_used] == ["workout", "meeting-prep"]

    async def test_use_needs_own_project(self, templates, user, other_user, project, now):
        from taskflow.errors import NotFoundError

        with pytest.raises(NotFoundError, match="Project not found"):
            await templates.use(other_user.id, "workout", project.id, now=now)
