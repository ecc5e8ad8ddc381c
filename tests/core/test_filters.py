"""
Tests for in-memory task filtering, sorting and pagination.
"""

import pytest
from datetime import datetime, timedelta

NOW = datetime(2024, 3, 13, 10)


def make_task(text, **kwargs):
    from taskflow.models.task import Task

    kwargs.setdefault("created_at", NOW - timedelta(days=1))
    return Task(user_id="u-1", project_id=kwargs.pop("project_id", "p-1"), text=text, **kwargs)


@pytest.fixture
def tasks():
    return [
        make_task("Alpha", priority="low", created_at=NOW - timedelta(days=3), tags=["home"]),
        make_task(
            "bravo", priority="high", created_at=NOW - timedelta(days=2),
            due_date=NOW - timedelta(hours=1), category="work", tags=["work", "urgent"],
        ),
        make_task(
            "Charlie", priority="medium", created_at=NOW - timedelta(days=1),
            due_date=NOW + timedelta(days=2), project_id="p-2", description="Mentions alpha",
        ),
        make_task(
            "Delta", priority="high", created_at=NOW, completed=True, status="completed",
            due_date=NOW - timedelta(days=1),
        ),
    ]


class TestTaskFilter:
    """Tests for TaskFilter.matches()."""

    def test_empty_filter_matches_all(self, tasks):
        from taskflow.filters import TaskFilter, apply_filters

        assert len(apply_filters(tasks, TaskFilter(), now=NOW)) == 4

    def test_views(self, tasks):
        from taskflow.filters import TaskFilter, apply_filters

        active = apply_filters(tasks, TaskFilter(view="active"), now=NOW)
        completed = apply_filters(tasks, TaskFilter(view="completed"), now=NOW)

        assert {t.text for t in active} == {"Alpha", "bravo", "Charlie"}
        assert [t.text for t in completed] == ["Delta"]

    def test_invalid_view(self):
        from taskflow.errors import UserInputError
        from taskflow.filters import TaskFilter

        with pytest.raises(UserInputError, match="Invalid view"):
            TaskFilter(view="archived")

    def test_priority_accepts_comma_list(self, tasks):
        from taskflow.filters import TaskFilter, apply_filters

        result = apply_filters(tasks, TaskFilter(priority="low,medium"), now=NOW)

        assert {t.text for t in result} == {"Alpha", "Charlie"}

    def test_overdue_excludes_completed(self, tasks):
        from taskflow.filters import TaskFilter, apply_filters

        result = apply_filters(tasks, TaskFilter(overdue=True), now=NOW)

        assert [t.text for t in result] == ["bravo"]

    def test_tags_must_all_match(self, tasks):
        from taskflow.filters import TaskFilter, apply_filters

        assert [t.text for t in apply_filters(tasks, TaskFilter(tags=["work", "urgent"]), now=NOW)] == ["bravo"]
        assert apply_filters(tasks, TaskFilter(tags=["work", "home"]), now=NOW) == []

    def test_search_covers_description(self, tasks):
        from taskflow.filters import TaskFilter, apply_filters

        result = apply_filters(tasks, TaskFilter(search="ALPHA"), sort="alphabetical", now=NOW)

        assert [t.text for t in result] == ["Alpha", "Charlie"]

    def test_date_range_lets_undated_through(self, tasks):
        from taskflow.filters import TaskFilter, apply_filters

        task_filter = TaskFilter(date_from=NOW, date_to=NOW + timedelta(days=7))
        result = apply_filters(tasks, task_filter, now=NOW)

        assert {t.text for t in result} == {"Alpha", "Charlie"}

    def test_due_before_requires_due_date(self, tasks):
        from taskflow.filters import TaskFilter, apply_filters

        result = apply_filters(tasks, TaskFilter(due_before=NOW), now=NOW)

        assert {t.text for t in result} == {"bravo", "Delta"}

    def test_dict_round_trip_drops_defaults(self):
        from taskflow.filters import TaskFilter

        data = TaskFilter(priority=["high"], due_after=NOW).to_dict()

        assert data == {"priority": ["high"], "due_after": NOW.isoformat()}
        assert TaskFilter.from_dict(data).due_after == NOW


class TestSortTasks:
    """Tests for sort_tasks()."""

    def test_priority_desc_then_newest(self, tasks):
        from taskflow.filters import sort_tasks

        assert [t.text for t in sort_tasks(tasks, "priority-desc")] == ["Delta", "bravo", "Charlie", "Alpha"]

    def test_date_asc(self, tasks):
        from taskflow.filters import sort_tasks

        assert [t.text for t in sort_tasks(tasks, "date-asc")] == ["Alpha", "bravo", "Charlie", "Delta"]

    def test_alphabetical_ignores_case(self, tasks):
        from taskflow.filters import sort_tasks

        assert [t.text for t in sort_tasks(tasks, "alphabetical")] == ["Alpha", "bravo", "Charlie", "Delta"]

    def test_due_date_puts_undated_last(self, tasks):
        from taskflow.filters import sort_tasks

        assert [t.text for t in sort_tasks(tasks, "due-date")] == ["Delta", "bravo", "Charlie", "Alpha"]

    def test_invalid_sort(self, tasks):
        from taskflow.errors import UserInputError
        from taskflow.filters import sort_tasks

        with pytest.raises(UserInputError, match="Invalid sort"):
            sort_tasks(tasks, "random")


class TestPaginate:
    """Tests for paginate()."""

    def test_page_metadata(self):
        from taskflow.filters import paginate

        result = paginate(list(range(120)), limit=50, offset=60)

        assert result["items"] == list(range(60, 110))
        assert result["total"] == 120
        assert result["has_more"] is True

    def test_limit_is_clamped(self):
        from taskflow.filters import MAX_LIMIT, paginate

        assert paginate(list(range(500)), limit=1000)["limit"] == MAX_LIMIT
        assert paginate(list(range(5)), limit=0)["limit"] == 1

    def test_last_page(self):
        from taskflow.filters import paginate

        result = paginate(list(range(10)), limit=5, offset=5)

        assert result["has_more"] is False
        assert len(result["items"]) == 5
