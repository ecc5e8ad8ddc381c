"""
Saved filter preset routes.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from taskflow.models.user import User
from taskflow.services import FilterPresetService
from taskflow_api.deps import current_user, get_db
from taskflow_api.responses import dump, page
from taskflow_api.schemas import FilterPresetCreate

router = APIRouter(prefix="/filter-presets", tags=["filter-presets"])


@router.get("")
async def list_presets(user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await FilterPresetService(db).list(user.id))


@router.post("", status_code=201)
async def create_preset(body: FilterPresetCreate, user: User = Depends(current_user), db=Depends(get_db)):
    preset = await FilterPresetService(db).create(user.id, body.name, body.filters, body.sort)
    return preset.to_dict()


@router.delete("/{preset_id}")
async def delete_preset(preset_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return {"success": await FilterPresetService(db).delete(user.id, preset_id)}


@router.get("/{preset_id}/tasks")
async def preset_tasks(
    preset_id: str,
    limit: Optional[int] = None,
    offset: int = 0,
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    return page(await FilterPresetService(db).apply(user.id, preset_id, limit, offset))
