"""
Pomodoro timer routes.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from taskflow.models.user import User
from taskflow.services import PomodoroService
from taskflow.timeutil import parse_datetime
from taskflow_api.deps import current_user, get_db
from taskflow_api.responses import dump
from taskflow_api.schemas import PomodoroStart

router = APIRouter(prefix="/pomodoro", tags=["pomodoro"])


@router.post("/start", status_code=201)
async def start(body: PomodoroStart, user: User = Depends(current_user), db=Depends(get_db)):
    return (await PomodoroService(db).start(user.id, body.type, body.task_id)).to_dict()


@router.get("/active")
async def active(user: User = Depends(current_user), db=Depends(get_db)):
    service = PomodoroService(db)
    session = await service.active(user.id)
    return {
        "session": session.to_dict() if session else None,
        "next_phase": await service.next_phase(user.id),
    }


@router.get("/sessions")
async def sessions(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = Query(50, ge=1, le=500),
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    return dump(
        await PomodoroService(db).list(user.id, parse_datetime(start), parse_datetime(end), limit)
    )


@router.get("/stats")
async def stats(user: User = Depends(current_user), db=Depends(get_db)):
    return await PomodoroService(db).stats(user.id)


@router.post("/{session_id}/pause")
async def pause(session_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return (await PomodoroService(db).pause(user.id, session_id)).to_dict()


@router.post("/{session_id}/resume")
async def resume(session_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return (await PomodoroService(db).resume(user.id, session_id)).to_dict()


@router.post("/{session_id}/complete")
async def complete(session_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await PomodoroService(db).complete(user.id, session_id))


@router.post("/{session_id}/skip")
async def skip(session_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return (await PomodoroService(db).skip(user.id, session_id)).to_dict()
