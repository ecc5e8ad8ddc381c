"""
Schema migrations.

SQL files live in taskflow/migrations/<dialect>/NNN_name.sql and are applied
in filename order. Applied versions are recorded in schema_migrations.
"""

import logging
from datetime import datetime
from pathlib import Path

from taskflow.db.interface import DatabaseAdapter

logger = logging.getLogger(__name__)

MIGRATIONS_ROOT = Path(__file__).resolve().parent.parent / "migrations"


def migrations_dir(adapter: DatabaseAdapter) -> Path:
    dialect = "postgres" if adapter.supports_fts else "sqlite"
    return MIGRATIONS_ROOT / dialect


def split_statements(sql: str) -> list[str]:
    """Split a migration file into statements, dropping comment lines."""
    lines = [
        line for line in sql.splitlines()
        if not line.strip().startswith("--")
    ]
    statements = []
    for statement in "\n".join(lines).split(";"):
        statement = statement.strip()
        if statement:
            statements.append(statement)
    return statements


async def applied_versions(adapter: DatabaseAdapter) -> set[str]:
    await adapter.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version TEXT PRIMARY KEY,
            applied_at TEXT NOT NULL
        )
        """
    )
    rows = await adapter.fetch("SELECT version FROM schema_migrations")
    return {row["version"] for row in rows}


async def run_migrations(adapter: DatabaseAdapter) -> list[str]:
    """
    Run pending database migrations.

    Returns:
        Names of the migration files applied in this call
    """
    directory = migrations_dir(adapter)
    if not directory.exists():
        logger.warning(f"Migrations directory not found: {directory}")
        return []

    done = await applied_versions(adapter)
    applied = []

    for sql_file in sorted(directory.glob("*.sql")):
        version = sql_file.name.split("_")[0]
        if version in done:
            continue

        logger.info(f"Running migration: {sql_file.name}")
        for statement in split_statements(sql_file.read_text()):
            try:
                await adapter.execute(statement)
            except Exception as e:
                logger.error(f"Migration error in {sql_file.name}: {e}")
                raise

        await adapter.execute(
            "INSERT INTO schema_migrations (version, applied_at) VALUES ($1, $2)",
            version, datetime.utcnow().isoformat(),
        )
        applied.append(sql_file.name)

    return applied
