"""
Data export and import routes.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from taskflow.models.user import User
from taskflow.services import ExportService, ImportService
from taskflow_api.deps import current_user, get_db
from taskflow_api.responses import dump
from taskflow_api.schemas import ImportPreviewRequest, ImportRequest

router = APIRouter(tags=["transfer"])


@router.get("/export")
async def export_data(
    format: str = "json",
    project_id: Optional[List[str]] = Query(None),
    include_completed: bool = True,
    include_subtasks: bool = True,
    include_gamification: bool = False,
    start: Optional[date] = None,
    end: Optional[date] = None,
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    result = await ExportService(db).export(
        user.id,
        format,
        project_ids=project_id,
        include_completed=include_completed,
        include_subtasks=include_subtasks,
        include_gamification=include_gamification,
        start=start,
        end=end,
    )
    return Response(
        content=result["content"],
        media_type=result["content_type"],
        headers={"Content-Disposition": f'attachment; filename="{result["filename"]}"'},
    )


@router.post("/import/preview")
async def preview_import(body: ImportPreviewRequest, user: User = Depends(current_user), db=Depends(get_db)):
    return ImportService(db).preview(body.content, body.source)


@router.post("/import")
async def import_data(body: ImportRequest, user: User = Depends(current_user), db=Depends(get_db)):
    result = await ImportService(db).import_tasks(
        user.id, body.project_id, body.content, body.format, body.source
    )
    return dump(result)
