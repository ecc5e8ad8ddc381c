"""
Authentication routes: register, login, token refresh, logout and OAuth.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from taskflow.errors import AuthenticationError
from taskflow_api import oauth
from taskflow_api.deps import ACCESS_COOKIE, REFRESH_COOKIE, get_app_config, get_auth_service
from taskflow_api.schemas import LoginRequest, OAuthRequest, RefreshRequest, RegisterRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookies(response: Response, session: dict, config) -> None:
    secure = config.is_production
    response.set_cookie(
        ACCESS_COOKIE,
        session["token"],
        max_age=config.auth.access_token_minutes * 60,
        httponly=True,
        secure=secure,
        samesite="lax",
    )
    response.set_cookie(
        REFRESH_COOKIE,
        session["refresh_token"],
        max_age=config.auth.refresh_token_days * 24 * 3600,
        httponly=True,
        secure=secure,
        samesite="lax",
    )


def _session_body(session: dict) -> dict:
    return {
        "user": session["user"].to_dict(),
        "token": session["token"],
        "refresh_token": session["refresh_token"],
    }


@router.post("/register", status_code=201)
async def register(body: RegisterRequest, request: Request, response: Response):
    session = await get_auth_service(request).register(body.email, body.password, body.name)
    _set_session_cookies(response, session, get_app_config(request))
    return _session_body(session)


@router.post("/login")
async def login(body: LoginRequest, request: Request, response: Response):
    session = await get_auth_service(request).login(body.email, body.password)
    _set_session_cookies(response, session, get_app_config(request))
    return _session_body(session)


@router.post("/refresh")
async def refresh(request: Request, response: Response, body: Optional[RefreshRequest] = None):
    token = (body.refresh_token if body else None) or request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise AuthenticationError("Refresh token required")
    session = await get_auth_service(request).refresh(token)
    _set_session_cookies(response, session, get_app_config(request))
    return _session_body(session)


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return {"success": True}


@router.post("/oauth/{provider}")
async def oauth_login(
    provider: str,
    body: OAuthRequest,
    request: Request,
    response: Response,
    config=Depends(get_app_config),
):
    profile = await oauth.exchange_code(provider, body.code, config.auth, body.redirect_uri)
    session = await get_auth_service(request).oauth_login(
        provider,
        profile["provider_id"],
        profile["email"],
        name=profile.get("name"),
        avatar=profile.get("avatar"),
    )
    logger.info(f"OAuth login via {provider}: {session['user'].id}")
    _set_session_cookies(response, session, config)
    return _session_body(session)
