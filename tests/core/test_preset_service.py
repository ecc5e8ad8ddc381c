"""
Tests for FilterPresetService.
"""

import pytest


@pytest.fixture
def presets(db):
    from taskflow.services.presets import FilterPresetService

    return FilterPresetService(db)


class TestFilterPresets:
    """Tests for saved filter presets."""

    async def test_create_normalizes_filters(self, presets, user):
        preset = await presets.create(user.id, "Hot", {"priority": "high", "view": "all"}, "alphabetical")

        assert preset.filters == {"priority": ["high"]}
        assert preset.sort == "alphabetical"
        assert [p.name for p in await presets.list(user.id)] == ["Hot"]

    async def test_validation(self, presets, user):
        from taskflow.errors import ConflictError, UserInputError

        await presets.create(user.id, "Hot", {"priority": "high"})

        with pytest.raises(ConflictError):
            await presets.create(user.id, "Hot", {})
        with pytest.raises(UserInputError, match="Invalid sort"):
            await presets.create(user.id, "Sorted", {}, "random")
        with pytest.raises(UserInputError, match="Invalid view"):
            await presets.create(user.id, "Archive", {"view": "archived"})
        with pytest.raises(UserInputError, match="name is required"):
            await presets.create(user.id, "", {})

    async def test_apply(self, presets, db, user, project, now):
        from taskflow.services.tasks import TaskService

        tasks = TaskService(db)
        await tasks.create(user.id, project.id, "b urgent", priority="high", now=now)
        await tasks.create(user.id, project.id, "a urgent", priority="high", now=now)
        await tasks.create(user.id, project.id, "chill", priority="low", now=now)
        preset = await presets.create(user.id, "Hot", {"priority": ["high"]}, "alphabetical")

        page = await presets.apply(user.id, preset.id, now=now)

        assert [t.text for t in page["items"]] == ["a urgent", "b urgent"]
        assert page["total"] == 2

    async def test_presets_are_private(self, presets, user, other_user):
        from taskflow.errors import NotFoundError

        preset = await presets.create(user.id, "Mine", {})

        with pytest.raises(NotFoundError):
            await presets.apply(other_user.id, preset.id)
        with pytest.raises(NotFoundError):
            await presets.delete(other_user.id, preset.id)
        assert await presets.delete(user.id, preset.id) is True
