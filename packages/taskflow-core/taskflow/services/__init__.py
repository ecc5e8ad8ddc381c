"""
Business logic services for TaskFlow.
"""

from taskflow.services.analytics import AnalyticsService
from taskflow.services.calendar import CalendarService
from taskflow.services.dependencies import DependencyService
from taskflow.services.exports import ExportService
from taskflow.services.gamification import GamificationService
from taskflow.services.imports import ImportService
from taskflow.services.notifications import NotificationService
from taskflow.services.pomodoro import PomodoroService
from taskflow.services.presets import FilterPresetService
from taskflow.services.projects import ProjectService
from taskflow.services.tasks import TaskService
from taskflow.services.templates import TemplateService
from taskflow.services.users import AuthService

__all__ = [
    "AnalyticsService",
    "AuthService",
    "CalendarService",
    "DependencyService",
    "ExportService",
    "FilterPresetService",
    "GamificationService",
    "ImportService",
    "NotificationService",
    "PomodoroService",
    "ProjectService",
    "TaskService",
    "TemplateService",
]
