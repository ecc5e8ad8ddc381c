"""
SQLite database adapter using aiosqlite.

Provides graceful degradation for features not available in SQLite:
- Full-text search: Falls back to LIKE wildcards
- JSONB: JSON stored as TEXT and decoded by the models
- Dates: Stored as ISO-8601 strings
"""

import logging
from pathlib import Path
from typing import Optional, List, Any

import aiosqlite

from taskflow.db.interface import DatabaseAdapter

logger = logging.getLogger(__name__)


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite adapter with graceful feature degradation.

    Uses aiosqlite for async database operations.
    Automatically creates the database file and parent directories.
    """

    name = "sqlite"

    def __init__(self, db_path: str = "~/.taskflow/taskflow.db"):
        """
        Initialize SQLite adapter.

        Args:
            db_path: Path to SQLite database file.
                    Supports ~ expansion for home directory.
        """
        self.db_path = Path(db_path).expanduser()
        self._conn: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Initialize database connection and create file if needed."""
        if self._conn is not None:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(str(self.db_path))

        # Cascading deletes rely on this
        await self._conn.execute("PRAGMA foreign_keys = ON")
        await self._conn.execute("PRAGMA journal_mode = WAL")

        self._conn.row_factory = aiosqlite.Row

        logger.info(f"SQLite database connected: {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite connection closed")

    async def _get_conn(self) -> aiosqlite.Connection:
        """Get or create connection."""
        if self._conn is None:
            await self.connect()
        return self._conn

    async def execute(self, query: str, *args) -> str:
        """Execute query and return status."""
        conn = await self._get_conn()
        query = self.format_query(query)

        cursor = await conn.execute(query, args)
        await conn.commit()

        # Return a status string similar to PostgreSQL
        verb = query.strip().split(None, 1)[0].upper() if query.strip() else ""
        if verb == "INSERT":
            return f"INSERT 0 {cursor.rowcount}"
        elif verb == "UPDATE":
            return f"UPDATE {cursor.rowcount}"
        elif verb == "DELETE":
            return f"DELETE {cursor.rowcount}"
        return "OK"

    async def fetch(self, query: str, *args) -> List[dict]:
        """Fetch rows as list of dicts."""
        conn = await self._get_conn()
        cursor = await conn.execute(self.format_query(query), args)
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def fetchrow(self, query: str, *args) -> Optional[dict]:
        """Fetch single row as dict."""
        conn = await self._get_conn()
        cursor = await conn.execute(self.format_query(query), args)
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def fetchval(self, query: str, *args) -> Any:
        """Fetch single value."""
        conn = await self._get_conn()
        cursor = await conn.execute(self.format_query(query), args)
        row = await cursor.fetchone()
        if row:
            return row[0]
        return None

    @property
    def supports_fts(self) -> bool:
        """SQLite doesn't support PostgreSQL-style FTS."""
        return False

    @property
    def supports_jsonb(self) -> bool:
        """SQLite has limited JSON support via JSON1 extension."""
        return False

    @property
    def placeholder_style(self) -> str:
        """SQLite uses ? style placeholders."""
        return "qmark"

    async def search_text(
        self,
        table: str,
        query: str,
        columns: List[str],
        limit: int = 20,
        where_clause: Optional[str] = None,
        params: tuple = (),
    ) -> List[dict]:
        """
        Text search using LIKE wildcards.

        This is a graceful degradation from PostgreSQL's full-text search.
        Results are ordered by created_at (no relevance ranking). SQLite's
        LIKE is case-insensitive for ASCII.
        """
        like_conditions = " OR ".join([f"{col} LIKE $1" for col in columns])
        where_parts = [f"({like_conditions})"]
        if where_clause:
            where_parts.append(f"({where_clause})")

        sql = f"""
            SELECT *
            FROM {table}
            WHERE {" AND ".join(where_parts)}
            ORDER BY created_at DESC
            LIMIT ${len(params) + 2}
        """
        # "$1" repeats per column, but "?" placeholders are positional
        like_pattern = f"%{query}%"
        args = [like_pattern] * len(columns) + list(params) + [limit]
        return await self.fetch(sql, *args)
