"""
Task routes, including bulk operations, subtasks and dependencies.

Static paths (/tasks/search, /tasks/stats, ...) are declared before
/tasks/{task_id} so they are not captured as ids.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from taskflow.filters import DEFAULT_SORT, TaskFilter
from taskflow.models.user import User
from taskflow.quick_add import parse_quick_add
from taskflow.services import DependencyService, TaskService
from taskflow_api.deps import current_user, get_db, task_filter_params
from taskflow_api.responses import dump, page
from taskflow_api.schemas import (
    BulkDelete,
    BulkUpdate,
    DependencyCreate,
    QuickAdd,
    QuickAddPreview,
    TaskCreate,
    TaskUpdate,
)

router = APIRouter(tags=["tasks"])


@router.get("/tasks")
async def list_tasks(
    sort: str = DEFAULT_SORT,
    limit: Optional[int] = None,
    offset: int = 0,
    task_filter: TaskFilter = Depends(task_filter_params),
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    return page(await TaskService(db).list(user.id, task_filter, sort, limit, offset))


@router.post("/tasks", status_code=201)
async def create_task(body: TaskCreate, user: User = Depends(current_user), db=Depends(get_db)):
    task = await TaskService(db).create(user.id, **body.model_dump())
    return task.to_dict()


@router.get("/tasks/search")
async def search_tasks(
    q: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    return dump(await TaskService(db).search(user.id, q, limit))


@router.get("/tasks/stats")
async def task_stats(user: User = Depends(current_user), db=Depends(get_db)):
    return await TaskService(db).stats(user.id)


@router.get("/tasks/due-today")
async def tasks_due_today(user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await TaskService(db).due_today(user.id))


@router.get("/tasks/overdue")
async def tasks_overdue(user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await TaskService(db).overdue(user.id))


@router.post("/tasks/bulk-update")
async def bulk_update_tasks(body: BulkUpdate, user: User = Depends(current_user), db=Depends(get_db)):
    changes = body.model_dump(exclude_unset=True, exclude={"task_ids"})
    tasks = await TaskService(db).bulk_update(user.id, body.task_ids, changes)
    return {"updated": len(tasks), "tasks": dump(tasks)}


@router.post("/tasks/bulk-delete")
async def bulk_delete_tasks(body: BulkDelete, user: User = Depends(current_user), db=Depends(get_db)):
    return {"deleted": await TaskService(db).bulk_delete(user.id, body.task_ids)}


@router.post("/tasks/quick", status_code=201)
async def quick_add_task(body: QuickAdd, user: User = Depends(current_user), db=Depends(get_db)):
    result = await TaskService(db).quick_add(user.id, body.project_id, body.text)
    return {"task": result["task"].to_dict(), "parsed": result["parsed"].to_dict()}


@router.post("/tasks/parse")
async def parse_quick_add_text(body: QuickAddPreview, user: User = Depends(current_user)):
    return parse_quick_add(body.text, datetime.utcnow().date()).to_dict()


@router.get("/tasks/{task_id}")
async def get_task(task_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return (await TaskService(db).get(user.id, task_id)).to_dict()


@router.patch("/tasks/{task_id}")
async def update_task(task_id: str, body: TaskUpdate, user: User = Depends(current_user), db=Depends(get_db)):
    task = await TaskService(db).update(user.id, task_id, **body.model_dump(exclude_unset=True))
    return task.to_dict()


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return {"success": await TaskService(db).delete(user.id, task_id)}


@router.post("/tasks/{task_id}/complete")
async def complete_task(task_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await TaskService(db).complete(user.id, task_id))


@router.post("/tasks/{task_id}/uncomplete")
async def uncomplete_task(task_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return (await TaskService(db).uncomplete(user.id, task_id)).to_dict()


@router.post("/tasks/{task_id}/subtasks/{subtask_id}/toggle")
async def toggle_subtask(
    task_id: str,
    subtask_id: str,
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    return (await TaskService(db).toggle_subtask(user.id, task_id, subtask_id)).to_dict()


# Dependencies

@router.get("/tasks/{task_id}/dependencies")
async def task_dependencies(task_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await DependencyService(db).list_for_task(user.id, task_id))


@router.post("/tasks/{task_id}/dependencies", status_code=201)
async def add_dependency(
    task_id: str,
    body: DependencyCreate,
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    dependency = await DependencyService(db).add(user.id, body.predecessor_task_id, task_id, body.type)
    return dependency.to_dict()


@router.get("/dependencies/graph")
async def dependency_graph(
    project_id: Optional[str] = None,
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    return (await DependencyService(db).graph(user.id, project_id)).to_dict()


@router.delete("/dependencies/{dependency_id}")
async def remove_dependency(dependency_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return {"success": await DependencyService(db).remove(user.id, dependency_id)}
