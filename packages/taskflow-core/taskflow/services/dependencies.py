"""
Dependency Service for TaskFlow.

Links between a user's tasks. Blocking links are kept acyclic.
"""

import logging
from typing import List, Optional

from taskflow.db import affected_rows
from taskflow.dependency_graph import DependencyGraph, build_graph, would_create_cycle
from taskflow.errors import ConflictError, NotFoundError, UserInputError
from taskflow.models.dependency import DEPENDENCY_TYPES, TaskDependency
from taskflow.models.task import Task
from taskflow.services.base import BaseService

logger = logging.getLogger(__name__)


class DependencyService(BaseService):
    """Service for task-to-task dependencies."""

    async def _user_dependencies(self, user_id: str) -> List[TaskDependency]:
        rows = await self.adapter.fetch(
            """
            SELECT d.* FROM task_dependencies d
            JOIN tasks t ON t.id = d.successor_task_id
            WHERE t.user_id = $1
            """,
            user_id,
        )
        return [TaskDependency.from_dict(r) for r in rows]

    async def _require_task(self, user_id: str, task_id: str) -> None:
        value = await self.adapter.fetchval(
            "SELECT 1 FROM tasks WHERE id = $1 AND user_id = $2", task_id, user_id
        )
        if value is None:
            raise NotFoundError("Task not found")

    async def add(
        self,
        user_id: str,
        predecessor_task_id: str,
        successor_task_id: str,
        dependency_type: str = "blocks",
    ) -> TaskDependency:
        """
        Record that successor depends on predecessor.

        Raises:
            UserInputError: Self-dependency, unknown type, or a cycle
            ConflictError: The pair is already linked
            NotFoundError: Either task is not the user's
        """
        if dependency_type not in DEPENDENCY_TYPES:
            raise UserInputError(f"Invalid type. Must be one of: {', '.join(DEPENDENCY_TYPES)}")
        if predecessor_task_id == successor_task_id:
            raise UserInputError("A task cannot depend on itself")

        await self._require_task(user_id, predecessor_task_id)
        await self._require_task(user_id, successor_task_id)

        existing = await self._user_dependencies(user_id)
        pairs = {(d.predecessor_task_id, d.successor_task_id) for d in existing}
        if (predecessor_task_id, successor_task_id) in pairs:
            raise ConflictError("Dependency already exists")

        dependency = TaskDependency(
            predecessor_task_id=predecessor_task_id,
            successor_task_id=successor_task_id,
            type=dependency_type,
        )
        if dependency.is_blocking and would_create_cycle(predecessor_task_id, successor_task_id, existing):
            raise UserInputError("This dependency would create a circular dependency")

        await self._insert("task_dependencies", {
            "id": dependency.id,
            "predecessor_task_id": dependency.predecessor_task_id,
            "successor_task_id": dependency.successor_task_id,
            "type": dependency.type,
            "created_at": dependency.created_at,
        })
        logger.info(
            f"Added dependency {dependency.id}: {predecessor_task_id} {dependency_type} {successor_task_id}"
        )
        return dependency

    async def remove(self, user_id: str, dependency_id: str) -> bool:
        result = await self.adapter.execute(
            """
            DELETE FROM task_dependencies
            WHERE id = $1 AND successor_task_id IN (SELECT id FROM tasks WHERE user_id = $2)
            """,
            dependency_id, user_id,
        )
        if affected_rows(result) == 0:
            raise NotFoundError("Dependency not found")
        logger.info(f"Removed dependency: {dependency_id}")
        return True

    async def list_for_task(self, user_id: str, task_id: str) -> dict:
        """
        Both directions of a task's links.

        Returns:
            {"predecessors": [...], "successors": [...]} where each entry is the
            dependency dict plus the linked task's id, text and completed flag.
        """
        await self._require_task(user_id, task_id)
        rows = await self.adapter.fetch(
            """
            SELECT d.*, p.text AS predecessor_text, p.completed AS predecessor_completed,
                   s.text AS successor_text, s.completed AS successor_completed
            FROM task_dependencies d
            JOIN tasks p ON p.id = d.predecessor_task_id
            JOIN tasks s ON s.id = d.successor_task_id
            WHERE d.predecessor_task_id = $1 OR d.successor_task_id = $2
            ORDER BY d.created_at
            """,
            task_id, task_id,
        )
        predecessors = []
        successors = []
        for row in rows:
            dependency = TaskDependency.from_dict(row).to_dict()
            if row["successor_task_id"] == task_id:
                predecessors.append({
                    **dependency,
                    "task": {
                        "id": row["predecessor_task_id"],
                        "text": row["predecessor_text"],
                        "completed": bool(row["predecessor_completed"]),
                    },
                })
            else:
                successors.append({
                    **dependency,
                    "task": {
                        "id": row["successor_task_id"],
                        "text": row["successor_text"],
                        "completed": bool(row["successor_completed"]),
                    },
                })
        return {"predecessors": predecessors, "successors": successors}

    async def graph(self, user_id: str, project_id: Optional[str] = None) -> DependencyGraph:
        """Dependency graph over the user's tasks, optionally one project's."""
        if project_id:
            rows = await self.adapter.fetch(
                "SELECT * FROM tasks WHERE user_id = $1 AND project_id = $2", user_id, project_id
            )
        else:
            rows = await self.adapter.fetch("SELECT * FROM tasks WHERE user_id = $1", user_id)
        tasks = [Task.from_dict(r) for r in rows]
        ids = {t.id for t in tasks}
        dependencies = [
            d for d in await self._user_dependencies(user_id)
            if d.predecessor_task_id in ids and d.successor_task_id in ids
        ]
        return build_graph(tasks, dependencies)
