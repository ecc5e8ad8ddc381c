"""
Dependency graph analysis over tasks.

Only blocking edges (blocks, blocked_by) constrain ordering; relates_to edges
are carried along for display but never block.
"""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

from taskflow.models.dependency import TaskDependency
from taskflow.models.task import Task


def _blocking_edges(dependencies: Iterable[TaskDependency]) -> Dict[str, Set[str]]:
    """predecessor -> successors over blocking edges."""
    edges: Dict[str, Set[str]] = defaultdict(set)
    for dep in dependencies:
        if dep.is_blocking:
            edges[dep.predecessor_task_id].add(dep.successor_task_id)
    return edges


def would_create_cycle(
    predecessor_id: str,
    successor_id: str,
    dependencies: Iterable[TaskDependency],
) -> bool:
    """
    True if adding predecessor -> successor closes a loop.

    Walks forward from the successor; reaching the predecessor means the
    successor already (transitively) blocks it.
    """
    if predecessor_id == successor_id:
        return True
    edges = _blocking_edges(dependencies)
    seen = {successor_id}
    queue = deque([successor_id])
    while queue:
        current = queue.popleft()
        for nxt in edges.get(current, ()):
            if nxt == predecessor_id:
                return True
            if nxt not in seen:
                seen.add(nxt)
                queue.append(nxt)
    return False


def blocking_tasks(task_id: str, dependencies: Iterable[TaskDependency]) -> List[str]:
    """Ids of tasks that directly block task_id."""
    return [
        d.predecessor_task_id for d in dependencies
        if d.is_blocking and d.successor_task_id == task_id
    ]


def dependent_tasks(task_id: str, dependencies: Iterable[TaskDependency]) -> List[str]:
    """Ids of tasks that task_id directly blocks."""
    return [
        d.successor_task_id for d in dependencies
        if d.is_blocking and d.predecessor_task_id == task_id
    ]


def incomplete_blockers(
    task_id: str,
    dependencies: Iterable[TaskDependency],
    tasks_by_id: Dict[str, Task],
) -> List[str]:
    return [
        pid for pid in blocking_tasks(task_id, dependencies)
        if pid in tasks_by_id and not tasks_by_id[pid].completed
    ]


def can_start(task_id: str, dependencies: Iterable[TaskDependency], tasks_by_id: Dict[str, Task]) -> bool:
    return not incomplete_blockers(task_id, list(dependencies), tasks_by_id)


@dataclass
class GraphNode:
    task: Task
    level: int = 0
    status: str = "ready"  # completed, ready, blocked
    blocked_by: List[str] = field(default_factory=list)
    blocks: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "task_id": self.task.id,
            "text": self.task.text,
            "level": self.level,
            "status": self.status,
            "blocked_by": self.blocked_by,
            "blocks": self.blocks,
        }


@dataclass
class DependencyGraph:
    nodes: Dict[str, GraphNode]
    edges: List[TaskDependency]
    order: List[str]

    @property
    def ready(self) -> List[str]:
        return [tid for tid in self.order if self.nodes[tid].status == "ready"]

    @property
    def blocked(self) -> List[str]:
        return [tid for tid in self.order if self.nodes[tid].status == "blocked"]

    def to_dict(self) -> dict:
        return {
            "nodes": [self.nodes[tid].to_dict() for tid in self.order],
            "edges": [e.to_dict() for e in self.edges],
            "order": self.order,
            "ready": self.ready,
            "blocked": self.blocked,
        }


def topological_order(task_ids: Iterable[str], dependencies: Iterable[TaskDependency]) -> List[str]:
    """
    Kahn's algorithm over blocking edges, ties broken by input order.

    Edges touching unknown ids are ignored; any tasks left on a cycle are
    appended at the end in input order.
    """
    ids = list(task_ids)
    known = set(ids)
    edges = _blocking_edges(d for d in dependencies if d.predecessor_task_id in known and d.successor_task_id in known)
    indegree = {tid: 0 for tid in ids}
    for successors in edges.values():
        for succ in successors:
            indegree[succ] += 1

    position = {tid: i for i, tid in enumerate(ids)}
    ready = deque(tid for tid in ids if indegree[tid] == 0)
    order = []
    while ready:
        current = ready.popleft()
        order.append(current)
        for succ in sorted(edges.get(current, ()), key=position.get):
            indegree[succ] -= 1
            if indegree[succ] == 0:
                ready.append(succ)

    if len(order) < len(ids):
        placed = set(order)
        order.extend(tid for tid in ids if tid not in placed)
    return order


def build_graph(tasks: Iterable[Task], dependencies: Iterable[TaskDependency]) -> DependencyGraph:
    """
    Nodes with levels and statuses.

    A node's level is the length of the longest blocking chain leading to it.
    """
    tasks = list(tasks)
    by_id = {t.id: t for t in tasks}
    edges = [
        d for d in dependencies
        if d.predecessor_task_id in by_id and d.successor_task_id in by_id
    ]
    order = topological_order([t.id for t in tasks], edges)

    nodes = {tid: GraphNode(task=by_id[tid]) for tid in order}
    for dep in edges:
        if dep.is_blocking:
            nodes[dep.successor_task_id].blocked_by.append(dep.predecessor_task_id)
            nodes[dep.predecessor_task_id].blocks.append(dep.successor_task_id)

    for tid in order:
        node = nodes[tid]
        for pid in node.blocked_by:
            node.level = max(node.level, nodes[pid].level + 1)
        if node.task.completed:
            node.status = "completed"
        elif any(not by_id[pid].completed for pid in node.blocked_by):
            node.status = "blocked"
        else:
            node.status = "ready"

    return DependencyGraph(nodes=nodes, edges=edges, order=order)
