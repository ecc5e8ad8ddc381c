"""
Core data models for TaskFlow.
"""

from taskflow.models.analytics import DailyAnalytics
from taskflow.models.dependency import TaskDependency
from taskflow.models.filter_preset import FilterPreset
from taskflow.models.gamification import Achievement, DailyChallenge, GamificationProfile
from taskflow.models.pomodoro import PomodoroSession, TimerSettings
from taskflow.models.project import Project
from taskflow.models.task import Subtask, Task
from taskflow.models.template import Template
from taskflow.models.user import User

__all__ = [
    "Achievement",
    "DailyAnalytics",
    "DailyChallenge",
    "FilterPreset",
    "GamificationProfile",
    "PomodoroSession",
    "Project",
    "Subtask",
    "Task",
    "TaskDependency",
    "Template",
    "TimerSettings",
    "User",
]
