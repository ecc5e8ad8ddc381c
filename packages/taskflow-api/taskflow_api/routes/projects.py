"""
Project routes.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from taskflow.filters import DEFAULT_SORT, TaskFilter
from taskflow.models.user import User
from taskflow.services import ProjectService, TaskService
from taskflow_api.deps import current_user, get_db, task_filter_params
from taskflow_api.responses import dump, page
from taskflow_api.schemas import ProjectCreate, ProjectUpdate

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("")
async def list_projects(search: Optional[str] = None, user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await ProjectService(db).list(user.id, search))


@router.post("", status_code=201)
async def create_project(body: ProjectCreate, user: User = Depends(current_user), db=Depends(get_db)):
    project = await ProjectService(db).create(user.id, body.name, body.description, body.color)
    return project.to_dict()


@router.get("/stats")
async def project_stats(user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await ProjectService(db).stats(user.id))


@router.get("/{project_id}")
async def get_project(project_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return (await ProjectService(db).get(user.id, project_id)).to_dict()


@router.patch("/{project_id}")
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    project = await ProjectService(db).update(
        user.id, project_id, name=body.name, description=body.description, color=body.color
    )
    return project.to_dict()


@router.delete("/{project_id}")
async def delete_project(project_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return {"success": await ProjectService(db).delete(user.id, project_id)}


@router.get("/{project_id}/tasks")
async def project_tasks(
    project_id: str,
    sort: str = DEFAULT_SORT,
    limit: Optional[int] = None,
    offset: int = 0,
    task_filter: TaskFilter = Depends(task_filter_params),
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    result = await TaskService(db).list_by_project(user.id, project_id, task_filter, sort, limit, offset)
    return page(result)
