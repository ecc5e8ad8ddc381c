"""
FastAPI dependencies: database adapter, config and the current user.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskflow.errors import AuthenticationError
from taskflow.filters import TaskFilter
from taskflow.models.user import User
from taskflow.services.users import AuthService
from taskflow.timeutil import parse_datetime

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "taskflow_access_token"
REFRESH_COOKIE = "taskflow_refresh_token"

bearer_scheme = HTTPBearer(auto_error=False)


def get_db(request: Request):
    """The adapter the app was started with."""
    return request.app.state.adapter


def get_app_config(request: Request):
    return request.app.state.config


def get_auth_service(request: Request) -> AuthService:
    return AuthService(get_db(request), get_app_config(request))


async def current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> User:
    """
    Resolve the caller from a Bearer token, falling back to the access cookie.

    Raises:
        AuthenticationError: No token, or the token is invalid or expired
    """
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_COOKIE)
    if not token:
        raise AuthenticationError("Not authenticated")
    user = await get_auth_service(request).verify_token(token)
    if user is None:
        raise AuthenticationError("Invalid or expired token")
    return user


def task_filter_params(
    view: str = "all",
    project_id: Optional[str] = None,
    status: Optional[str] = Query(None, description="Comma separated statuses"),
    priority: Optional[str] = Query(None, description="Comma separated priorities"),
    category: Optional[str] = Query(None, description="Comma separated categories"),
    completed: Optional[bool] = None,
    overdue: bool = False,
    due_before: Optional[datetime] = None,
    due_after: Optional[datetime] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    search: Optional[str] = None,
    tags: Optional[str] = Query(None, description="Comma separated tags, all required"),
) -> TaskFilter:
    return TaskFilter(
        view=view,
        project_id=project_id,
        status=status,
        priority=priority,
        category=category,
        completed=completed,
        overdue=overdue,
        due_before=parse_datetime(due_before),
        due_after=parse_datetime(due_after),
        date_from=parse_datetime(date_from),
        date_to=parse_datetime(date_to),
        search=search,
        tags=tags,
    )
