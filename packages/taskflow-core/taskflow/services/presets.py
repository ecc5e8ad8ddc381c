"""
Filter Preset Service for TaskFlow.

Named, saved task filters.
"""

import logging
from datetime import datetime
from typing import List, Optional

from taskflow.db import affected_rows
from taskflow.errors import ConflictError, NotFoundError, UserInputError
from taskflow.filters import SORT_OPTIONS, TaskFilter
from taskflow.models.filter_preset import FilterPreset
from taskflow.services.base import BaseService

logger = logging.getLogger(__name__)

PRESET_NAME_MAX = 50


class FilterPresetService(BaseService):
    """Service for saved filter presets."""

    async def list(self, user_id: str) -> List[FilterPreset]:
        rows = await self.adapter.fetch(
            "SELECT * FROM filter_presets WHERE user_id = $1 ORDER BY name", user_id
        )
        return [FilterPreset.from_dict(r) for r in rows]

    async def get(self, user_id: str, preset_id: str) -> FilterPreset:
        row = await self.adapter.fetchrow(
            "SELECT * FROM filter_presets WHERE id = $1 AND user_id = $2", preset_id, user_id
        )
        if not row:
            raise NotFoundError("Filter preset not found")
        return FilterPreset.from_dict(row)

    async def create(self, user_id: str, name: str, filters: dict, sort: str = "date-desc") -> FilterPreset:
        name = (name or "").strip()
        if not name:
            raise UserInputError("Preset name is required")
        if len(name) > PRESET_NAME_MAX:
            raise UserInputError(f"Preset name must be at most {PRESET_NAME_MAX} characters")
        if sort not in SORT_OPTIONS:
            raise UserInputError(f"Invalid sort. Must be one of: {', '.join(SORT_OPTIONS)}")

        # Round-trip through TaskFilter to validate and normalize
        normalized = TaskFilter.from_dict(filters).to_dict()

        exists = await self.adapter.fetchval(
            "SELECT 1 FROM filter_presets WHERE user_id = $1 AND name = $2", user_id, name
        )
        if exists:
            raise ConflictError("A preset with this name already exists")

        preset = FilterPreset(user_id=user_id, name=name, filters=normalized, sort=sort)
        await self._insert("filter_presets", {
            "id": preset.id,
            "user_id": user_id,
            "name": preset.name,
            "filters": preset.filters,
            "sort": preset.sort,
            "created_at": preset.created_at,
        })
        logger.info(f"Created filter preset: {preset.id} - {preset.name}")
        return preset

    async def delete(self, user_id: str, preset_id: str) -> bool:
        result = await self.adapter.execute(
            "DELETE FROM filter_presets WHERE id = $1 AND user_id = $2", preset_id, user_id
        )
        if affected_rows(result) == 0:
            raise NotFoundError("Filter preset not found")
        logger.info(f"Deleted filter preset: {preset_id}")
        return True

    async def apply(
        self,
        user_id: str,
        preset_id: str,
        limit: Optional[int] = None,
        offset: int = 0,
        now: Optional[datetime] = None,
    ) -> dict:
        """Run a saved preset through TaskService.list()."""
        from taskflow.services.tasks import TaskService

        preset = await self.get(user_id, preset_id)
        return await TaskService(self.adapter).list(
            user_id, TaskFilter.from_dict(preset.filters), preset.sort, limit, offset, now
        )
