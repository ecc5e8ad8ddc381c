"""
API routers, in registration order.
"""

from taskflow_api.routes import (
    auth,
    gamification,
    health,
    insights,
    pomodoro,
    presets,
    projects,
    tasks,
    templates,
    transfer,
    users,
)

ROUTERS = (
    health.router,
    auth.router,
    users.router,
    projects.router,
    tasks.router,
    gamification.router,
    pomodoro.router,
    templates.router,
    insights.router,
    presets.router,
    transfer.router,
)

__all__ = ["ROUTERS"]
