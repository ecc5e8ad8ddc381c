"""
Shared plumbing for the async services.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from taskflow.db import get_adapter

logger = logging.getLogger(__name__)


class BaseService:
    """
    Base for services that talk to the database.

    Every service accepts an optional adapter and falls back to the global one.
    Services that need "now" take it as an argument so callers (and tests)
    control time.
    """

    def __init__(self, adapter=None):
        """
        Args:
            adapter: Optional DatabaseAdapter. If not provided, uses global adapter.
        """
        self._adapter = adapter

    @property
    def adapter(self):
        """Get the database adapter."""
        if self._adapter is None:
            self._adapter = get_adapter()
        return self._adapter

    def _encode(self, *values: Any) -> list:
        return self.adapter.encode_all(*values)

    async def _update_columns(
        self,
        table: str,
        values: dict,
        where: dict,
    ) -> str:
        """
        UPDATE table SET <values> WHERE <where>, with placeholders numbered
        left to right so they also work after qmark conversion.
        """
        columns = list(values)
        params = self._encode(*values.values())
        set_clause = ", ".join(f"{col} = ${i + 1}" for i, col in enumerate(columns))
        conditions = []
        for col, value in where.items():
            params.append(self.adapter.encode(value))
            conditions.append(f"{col} = ${len(params)}")
        query = f"UPDATE {table} SET {set_clause} WHERE {' AND '.join(conditions)}"
        return await self.adapter.execute(query, *params)

    async def _insert(self, table: str, values: dict) -> str:
        columns = list(values)
        placeholders = ", ".join(f"${i + 1}" for i in range(len(columns)))
        query = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
        return await self.adapter.execute(query, *self._encode(*values.values()))

    async def _side_effect(self, label: str, coro):
        """Run a reward/analytics step; failures are logged, never raised."""
        try:
            return await coro
        except Exception:
            logger.exception(f"{label} failed")
            return None


def placeholders(values: Iterable, start: int = 1) -> str:
    """"$start, $start+1, ..." for an IN (...) list."""
    return ", ".join(f"${start + i}" for i, _ in enumerate(values))


def now_or(now: Optional[datetime]) -> datetime:
    return now or datetime.utcnow()
