"""
Import Service for TaskFlow.

Reads tasks from CSV sheets (Todoist, Trello or a generic layout, detected
from the header row) or from a TaskFlow JSON export, into one project.
Bad rows are skipped and reported; good rows are kept.
"""

import csv
import io
import json
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from taskflow.errors import NotFoundError, UserInputError
from taskflow.services.base import BaseService, now_or

logger = logging.getLogger(__name__)

IMPORT_FORMATS = ("csv", "json")
IMPORT_SOURCES = ("todoist", "trello", "generic")
IMPORT_MAX_ROWS = 1000
PREVIEW_ROWS = 5

# (column header, task field, required); the first non-empty column wins per field
FIELD_MAPPINGS = {
    "todoist": (
        ("Content", "text", True),
        ("Description", "description", False),
        ("Priority", "priority", False),
        ("Due Date", "due_date", False),
        ("Labels", "category", False),
        ("Completed", "completed", False),
    ),
    "trello": (
        ("Card Name", "text", True),
        ("Description", "description", False),
        ("Due Date", "due_date", False),
        ("Labels", "category", False),
        ("Completed", "completed", False),
    ),
    "generic": (
        ("Task", "text", True),
        ("Title", "text", False),
        ("Name", "text", False),
        ("Description", "description", False),
        ("Notes", "description", False),
        ("Priority", "priority", False),
        ("Due Date", "due_date", False),
        ("DueDate", "due_date", False),
        ("Category", "category", False),
        ("Tags", "tags", False),
        ("Completed", "completed", False),
        ("Done", "completed", False),
        ("Status", "status", False),
        ("Created At", "created_at", False),
        ("Completed At", "completed_at", False),
    ),
}

TRUE_VALUES = ("true", "yes", "y", "1", "x", "done", "completed")


def detect_source(headers: List[str]) -> str:
    lowered = {h.strip().lower() for h in headers}
    if "content" in lowered or "task content" in lowered:
        return "todoist"
    if "card name" in lowered or "card title" in lowered:
        return "trello"
    return "generic"


def parse_csv(content: str) -> Tuple[List[str], List[dict]]:
    """Header row and data rows; blank lines are dropped."""
    content = content.lstrip("\ufeff")
    reader = csv.DictReader(io.StringIO(content))
    headers = [h.strip() for h in reader.fieldnames or []]
    reader.fieldnames = headers
    rows = []
    for row in reader:
        values = {k: (v or "").strip() for k, v in row.items() if k is not None}
        if any(values.values()):
            rows.append(values)
    return headers, rows


def import_priority(value: str) -> str:
    """Map priority spellings from other tools to low/medium/high."""
    value = value.strip().lower()
    if "high" in value or value in ("p1", "4", "urgent"):
        return "high"
    if "low" in value or value in ("p3", "p4", "1", "2"):
        return "low"
    return "medium"


def _first_label(value: str) -> str:
    return value.split(",")[0].strip()


def map_row(row: dict, headers: List[str], source: str) -> Optional[dict]:
    """
    Task data for one CSV row, or None when the required column is empty.
    """
    by_lower = {h.lower(): h for h in headers}
    data = {}
    for column, target, required in FIELD_MAPPINGS[source]:
        header = by_lower.get(column.lower())
        if header is None:
            continue
        value = row.get(header, "")
        if not value:
            if required:
                return None
            continue
        if target in data:
            continue
        if target == "priority":
            data[target] = import_priority(value)
        elif target == "completed":
            data[target] = value.lower() in TRUE_VALUES
        elif target == "status":
            status = value.lower().replace(" ", "_")
            data[target] = "completed" if status in ("done", "complete") else status
        elif target == "tags":
            data[target] = [t.strip() for t in value.split(",") if t.strip()]
        elif target == "category" and source != "generic":
            data[target] = _first_label(value)
        else:
            data[target] = value
    if not data.get("text"):
        return None
    return data


class ImportService(BaseService):
    """Service for bringing tasks in from files."""

    def preview(self, content: str, source: Optional[str] = None) -> dict:
        """Check a CSV file before importing it. Nothing is written."""
        headers, rows = parse_csv(content)
        source = self._source(source, headers)

        lowered = {h.lower() for h in headers}
        errors = [
            f"Missing required field: {column}"
            for column, _, required in FIELD_MAPPINGS[source]
            if required and column.lower() not in lowered
        ]
        valid = sum(1 for row in rows if map_row(row, headers, source) is not None)
        return {
            "source": source,
            "total_rows": len(rows),
            "valid_rows": valid,
            "invalid_rows": len(rows) - valid,
            "fields": headers,
            "sample": rows[:PREVIEW_ROWS],
            "errors": errors,
        }

    async def import_tasks(
        self,
        user_id: str,
        project_id: str,
        content: str,
        fmt: str = "csv",
        source: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        """
        Import tasks into one of the user's projects.

        Rows are numbered as in the file (the CSV header is row 1). Rows that
        fail validation are skipped and listed in errors.

        Returns:
            {"imported", "skipped", "errors", "tasks"}
        """
        from taskflow.services.projects import ProjectService
        from taskflow.services.tasks import TaskService

        now = now_or(now)
        if fmt not in IMPORT_FORMATS:
            raise UserInputError(f"Invalid format. Must be one of: {', '.join(IMPORT_FORMATS)}")
        if not await ProjectService(self.adapter).exists(user_id, project_id):
            raise NotFoundError("Project not found")

        if fmt == "json":
            entries = self._json_entries(content)
            first_row = 1
        else:
            headers, rows = parse_csv(content)
            source = self._source(source, headers)
            entries = [map_row(row, headers, source) for row in rows]
            first_row = 2
        if len(entries) > IMPORT_MAX_ROWS:
            raise UserInputError(f"At most {IMPORT_MAX_ROWS} tasks can be imported at once")

        tasks_service = TaskService(self.adapter)
        imported, errors = [], []
        for number, data in enumerate(entries, start=first_row):
            if data is None:
                errors.append(f"Row {number}: Missing required field(s)")
                continue
            try:
                task = await tasks_service.restore(user_id, project_id, data, now)
            except (UserInputError, ValueError, TypeError) as e:
                errors.append(f"Row {number}: {e}")
                continue
            imported.append(task)

        logger.info(
            f"Imported {len(imported)} tasks for {user_id} into {project_id} "
            f"({len(errors)} skipped)"
        )
        return {
            "imported": len(imported),
            "skipped": len(errors),
            "errors": errors,
            "tasks": imported,
        }

    def _source(self, source: Optional[str], headers: List[str]) -> str:
        if not headers:
            raise UserInputError("The file has no header row")
        if source is None:
            return detect_source(headers)
        if source not in IMPORT_SOURCES:
            raise UserInputError(f"Invalid source. Must be one of: {', '.join(IMPORT_SOURCES)}")
        return source

    def _json_entries(self, content: str) -> List[Optional[dict]]:
        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            raise UserInputError(f"Failed to parse JSON: {e.msg}")
        tasks = document.get("tasks") if isinstance(document, dict) else None
        if not isinstance(tasks, list):
            raise UserInputError("Invalid export file: missing tasks array")
        return [t if isinstance(t, dict) and t.get("text") else None for t in tasks]
