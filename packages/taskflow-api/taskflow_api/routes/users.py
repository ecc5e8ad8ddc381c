"""
Current user routes: profile, password and Pomodoro timer settings.
"""

from fastapi import APIRouter, Depends, Request, Response

from taskflow.models.user import User
from taskflow_api.deps import ACCESS_COOKIE, REFRESH_COOKIE, current_user, get_auth_service
from taskflow_api.schemas import PasswordChange, ProfileUpdate, TimerSettingsUpdate

router = APIRouter(prefix="/users/me", tags=["users"])


@router.get("")
async def get_me(user: User = Depends(current_user)):
    return user.to_dict()


@router.patch("")
async def update_me(body: ProfileUpdate, request: Request, user: User = Depends(current_user)):
    updated = await get_auth_service(request).update_profile(user.id, name=body.name, avatar=body.avatar)
    return updated.to_dict()


@router.delete("")
async def delete_me(request: Request, response: Response, user: User = Depends(current_user)):
    deleted = await get_auth_service(request).delete_account(user.id)
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return {"success": deleted}


@router.post("/password")
async def change_password(body: PasswordChange, request: Request, user: User = Depends(current_user)):
    await get_auth_service(request).change_password(user.id, body.current_password, body.new_password)
    return {"success": True}


@router.get("/timer-settings")
async def get_timer_settings(request: Request, user: User = Depends(current_user)):
    return (await get_auth_service(request).get_timer_settings(user.id)).to_dict()


@router.put("/timer-settings")
async def update_timer_settings(body: TimerSettingsUpdate, request: Request, user: User = Depends(current_user)):
    settings = await get_auth_service(request).update_timer_settings(user.id, **body.model_dump())
    return settings.to_dict()
