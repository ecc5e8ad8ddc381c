"""
Task template routes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from taskflow.models.user import User
from taskflow.services import TemplateService
from taskflow_api.deps import current_user, get_db
from taskflow_api.responses import dump
from taskflow_api.schemas import TemplateCreate, TemplateUpdate, TemplateUse

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("")
async def list_templates(
    category: Optional[str] = None,
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    return dump(await TemplateService(db).list(user.id, category))


@router.post("", status_code=201)
async def create_template(body: TemplateCreate, user: User = Depends(current_user), db=Depends(get_db)):
    template = await TemplateService(db).create(
        user.id,
        body.name,
        body.template_data,
        description=body.description,
        category=body.category,
        icon=body.icon,
    )
    return template.to_dict()


@router.get("/most-used")
async def most_used(
    limit: int = Query(10, ge=1, le=50),
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    return dump(await TemplateService(db).most_used(user.id, limit))


@router.get("/{template_id}")
async def get_template(template_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return (await TemplateService(db).get(user.id, template_id)).to_dict()


@router.patch("/{template_id}")
async def update_template(
    template_id: str,
    body: TemplateUpdate,
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    template = await TemplateService(db).update(user.id, template_id, **body.model_dump())
    return template.to_dict()


@router.delete("/{template_id}")
async def delete_template(template_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return {"success": await TemplateService(db).delete(user.id, template_id)}


@router.post("/{template_id}/use", status_code=201)
async def use_template(
    template_id: str,
    body: TemplateUse,
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    task = await TemplateService(db).use(
        user.id, template_id, body.project_id, body.due_date, body.variables
    )
    return task.to_dict()
