"""
Template Service for TaskFlow.

Users see the built-in templates plus their own. Only their own can be
changed or deleted.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from taskflow.db import affected_rows
from taskflow.errors import NotFoundError, UserInputError
from taskflow.models.task import Task
from taskflow.models.template import BLUEPRINT_FIELDS, DEFAULT_TEMPLATE_ICON, Template
from taskflow.services.base import BaseService, now_or

logger = logging.getLogger(__name__)

TEMPLATE_NAME_MAX = 100
VISIBLE = "(t.user_id = $1 OR t.is_built_in = $2)"


def _clean_template_data(data: Optional[dict]) -> dict:
    data = dict(data or {})
    if not (data.get("text") or "").strip():
        raise UserInputError("Template needs task text")
    allowed = set(BLUEPRINT_FIELDS) | {"variables"}
    unknown = set(data) - allowed
    if unknown:
        raise UserInputError(f"Unknown template fields: {', '.join(sorted(unknown))}")
    for variable in data.get("variables") or []:
        if not isinstance(variable, dict) or not variable.get("name"):
            raise UserInputError("Template variables need a name")
    return data


class TemplateService(BaseService):
    """Service for task templates."""

    async def list(self, user_id: str, category: Optional[str] = None) -> List[Template]:
        """Own templates first, then built-ins; each group by usage then recency."""
        query = f"SELECT t.* FROM templates t WHERE {VISIBLE}"
        params = [user_id, True]
        if category:
            query += " AND t.category = $3"
            params.append(category)
        query += " ORDER BY t.is_built_in, t.usage_count DESC, t.updated_at DESC"
        rows = await self.adapter.fetch(query, *params)
        return [Template.from_dict(r) for r in rows]

    async def get(self, user_id: str, template_id: str) -> Template:
        row = await self.adapter.fetchrow(
            f"SELECT t.* FROM templates t WHERE {VISIBLE} AND t.id = $3",
            user_id, True, template_id,
        )
        if not row:
            raise NotFoundError("Template not found")
        return Template.from_dict(row)

    async def most_used(self, user_id: str, limit: int = 10) -> List[Template]:
        rows = await self.adapter.fetch(
            f"""
            SELECT t.* FROM templates t
            WHERE {VISIBLE} AND t.usage_count > 0
            ORDER BY t.usage_count DESC, t.updated_at DESC
            LIMIT $3
            """,
            user_id, True, max(1, min(int(limit), 50)),
        )
        return [Template.from_dict(r) for r in rows]

    async def _own(self, user_id: str, template_id: str) -> Template:
        row = await self.adapter.fetchrow(
            "SELECT * FROM templates WHERE id = $1 AND user_id = $2 AND is_built_in = $3",
            template_id, user_id, False,
        )
        if not row:
            raise NotFoundError("Template not found")
        return Template.from_dict(row)

    async def create(
        self,
        user_id: str,
        name: str,
        template_data: dict,
        description: Optional[str] = None,
        category: Optional[str] = None,
        icon: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Template:
        """
        Save a custom template.

        The first one unlocks the template-user achievement.
        """
        from taskflow.services.gamification import GamificationService

        now = now_or(now)
        name = (name or "").strip()
        if not name:
            raise UserInputError("Template name is required")
        if len(name) > TEMPLATE_NAME_MAX:
            raise UserInputError(f"Template name must be at most {TEMPLATE_NAME_MAX} characters")

        template = Template(
            user_id=user_id,
            name=name,
            description=(description or "").strip(),
            category=(category or "").strip() or "general",
            icon=icon or DEFAULT_TEMPLATE_ICON,
            template_data=_clean_template_data(template_data),
            created_at=now,
        )
        await self._insert("templates", {
            "id": template.id,
            "user_id": user_id,
            "name": template.name,
            "description": template.description,
            "category": template.category,
            "icon": template.icon,
            "is_built_in": False,
            "usage_count": 0,
            "template_data": template.template_data,
            "created_at": template.created_at,
            "updated_at": template.updated_at,
        })
        logger.info(f"Created template: {template.id} - {template.name}")

        await GamificationService(self.adapter).unlock_achievement(user_id, "template-user", now)
        return template

    async def update(
        self,
        user_id: str,
        template_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        icon: Optional[str] = None,
        template_data: Optional[dict] = None,
    ) -> Template:
        template = await self._own(user_id, template_id)
        values = {}
        if name is not None:
            name = name.strip()
            if not name or len(name) > TEMPLATE_NAME_MAX:
                raise UserInputError(f"Template name must be 1 to {TEMPLATE_NAME_MAX} characters")
            values["name"] = name
        if description is not None:
            values["description"] = description.strip()
        if category is not None:
            values["category"] = category.strip() or "general"
        if icon is not None:
            values["icon"] = icon or DEFAULT_TEMPLATE_ICON
        if template_data is not None:
            values["template_data"] = _clean_template_data(template_data)

        if values:
            values["updated_at"] = datetime.utcnow()
            await self._update_columns("templates", values, {"id": template.id})
            logger.info(f"Updated template: {template_id}")
        return await self._own(user_id, template_id)

    async def delete(self, user_id: str, template_id: str) -> bool:
        result = await self.adapter.execute(
            "DELETE FROM templates WHERE id = $1 AND user_id = $2 AND is_built_in = $3",
            template_id, user_id, False,
        )
        if affected_rows(result) == 0:
            raise NotFoundError("Template not found")
        logger.info(f"Deleted template: {template_id}")
        return True

    async def use(
        self,
        user_id: str,
        template_id: str,
        project_id: str,
        due_date: Optional[datetime] = None,
        variables: Optional[Dict[str, str]] = None,
        now: Optional[datetime] = None,
    ) -> Task:
        """
        Create a task from a template and count the use.

        Args:
            variables: Values for the template's {{placeholders}}
        """
        from taskflow.services.tasks import TaskService

        now = now_or(now)
        template = await self.get(user_id, template_id)
        variables = {k: str(v) for k, v in (variables or {}).items()}
        missing = template.missing_variables(variables)
        if missing:
            raise UserInputError(f"Missing template variables: {', '.join(missing)}")

        task = await TaskService(self.adapter).create_from_blueprint(
            user_id, project_id, template.blueprint(variables), due_date=due_date, now=now
        )
        await self.adapter.execute(
            "UPDATE templates SET usage_count = usage_count + 1, updated_at = $1 WHERE id = $2",
            *self._encode(now, template.id),
        )
        logger.info(f"Template {template_id} used for task {task.id}")
        return task
