"""
Read-only views over a user's tasks: analytics, calendar and upcoming reminders.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query

from taskflow.models.user import User
from taskflow.services import AnalyticsService, CalendarService, NotificationService
from taskflow_api.deps import current_user, get_db
from taskflow_api.responses import dump

router = APIRouter(tags=["insights"])

DEFAULT_REPORT_DAYS = 30


def _date_range(start: Optional[date], end: Optional[date]) -> tuple:
    end = end or datetime.utcnow().date()
    start = start or end - timedelta(days=DEFAULT_REPORT_DAYS - 1)
    return start, end


@router.get("/analytics")
async def analytics_report(
    start: Optional[date] = None,
    end: Optional[date] = None,
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    start, end = _date_range(start, end)
    return await AnalyticsService(db).report(user.id, start, end)


@router.get("/analytics/daily")
async def analytics_daily(
    start: Optional[date] = None,
    end: Optional[date] = None,
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    start, end = _date_range(start, end)
    return dump(await AnalyticsService(db).daily(user.id, start, end))


@router.get("/calendar/{year}/{month}")
async def calendar_month(
    year: int,
    month: int,
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    return dump(await CalendarService(db).month(user.id, year, month))


@router.get("/notifications/upcoming")
async def upcoming_notifications(
    within_minutes: int = Query(60),
    user: User = Depends(current_user),
    db=Depends(get_db),
):
    return await NotificationService(db).upcoming(user.id, within_minutes=within_minutes)
