"""
Tests for dependency graph analysis.
"""

import pytest


def dep(pred, succ, dep_type="blocks"):
    from taskflow.models.dependency import TaskDependency

    return TaskDependency(predecessor_task_id=pred, successor_task_id=succ, type=dep_type)


def task(task_id, completed=False):
    from taskflow.models.task import Task

    return Task(id=task_id, user_id="u-1", project_id="p-1", text=task_id.upper(), completed=completed)


class TestCycles:
    """Tests for would_create_cycle()."""

    def test_self_edge_is_a_cycle(self):
        from taskflow.dependency_graph import would_create_cycle

        assert would_create_cycle("a", "a", []) is True

    def test_direct_cycle(self):
        from taskflow.dependency_graph import would_create_cycle

        assert would_create_cycle("b", "a", [dep("a", "b")]) is True

    def test_transitive_cycle(self):
        from taskflow.dependency_graph import would_create_cycle

        edges = [dep("a", "b"), dep("b", "c")]

        assert would_create_cycle("c", "a", edges) is True
        assert would_create_cycle("a", "c", edges) is False

    def test_relates_to_never_cycles(self):
        from taskflow.dependency_graph import would_create_cycle

        assert would_create_cycle("b", "a", [dep("a", "b", "relates_to")]) is False


class TestBlocking:
    """Tests for blocker lookups."""

    def test_incomplete_blockers(self):
        from taskflow.dependency_graph import can_start, incomplete_blockers

        edges = [dep("a", "c"), dep("b", "c")]
        tasks = {"a": task("a", completed=True), "b": task("b"), "c": task("c")}

        assert incomplete_blockers("c", edges, tasks) == ["b"]
        assert can_start("c", edges, tasks) is False

        tasks["b"].completed = True
        assert can_start("c", edges, tasks) is True

    def test_dependent_tasks(self):
        from taskflow.dependency_graph import dependent_tasks

        assert sorted(dependent_tasks("a", [dep("a", "b"), dep("a", "c"), dep("x", "a")])) == ["b", "c"]


class TestBuildGraph:
    """Tests for build_graph() and topological_order()."""

    def test_topological_order_keeps_input_order_for_ties(self):
        from taskflow.dependency_graph import topological_order

        order = topological_order(["c", "b", "a"], [dep("a", "c")])

        assert order == ["b", "a", "c"]

    def test_cycle_members_are_appended(self):
        from taskflow.dependency_graph import topological_order

        order = topological_order(["a", "b", "c"], [dep("a", "b"), dep("b", "a")])

        assert order == ["c", "a", "b"]

    def test_levels_and_statuses(self):
        from taskflow.dependency_graph import build_graph

        graph = build_graph(
            [task("a", completed=True), task("b"), task("c"), task("d")],
            [dep("a", "b"), dep("b", "c"), dep("a", "c")],
        )

        assert graph.order == ["a", "d", "b", "c"]
        assert graph.nodes["a"].status == "completed"
        assert graph.nodes["b"].status == "ready"
        assert graph.nodes["c"].status == "blocked"
        assert graph.nodes["c"].level == 2
        assert graph.ready == ["d", "b"]
        assert graph.blocked == ["c"]

    def test_to_dict(self):
        from taskflow.dependency_graph import build_graph

        data = build_graph([task("a"), task("b")], [dep("a", "b")]).to_dict()

        assert [n["task_id"] for n in data["nodes"]] == ["a", "b"]
        assert data["nodes"][1]["blocked_by"] == ["a"]
        assert len(data["edges"]) == 1
