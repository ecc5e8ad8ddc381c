"""
Request bodies for the REST API.

Length and range rules that the services also enforce are repeated here so
malformed requests fail with 422 before reaching the database.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)
    name: Optional[str] = Field(None, max_length=100)


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


class OAuthRequest(BaseModel):
    code: str = Field(..., min_length=1)
    redirect_uri: Optional[str] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    avatar: Optional[str] = Field(None, max_length=2000)


class PasswordChange(BaseModel):
    current_password: str = ""
    new_password: str


class TimerSettingsUpdate(BaseModel):
    work: Optional[int] = Field(None, ge=1, le=120)
    short_break: Optional[int] = Field(None, ge=1, le=120)
    long_break: Optional[int] = Field(None, ge=1, le=120)
    sessions_before_long_break: Optional[int] = Field(None, ge=1, le=12)


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[str] = None


class SubtaskInput(BaseModel):
    id: Optional[str] = None
    text: str = Field(..., min_length=1, max_length=200)
    completed: bool = False


class RecurrenceInput(BaseModel):
    frequency: str
    interval: int = Field(1, ge=1, le=365)
    days_of_week: List[int] = Field(default_factory=list)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    month_of_year: Optional[int] = Field(None, ge=1, le=12)
    custom_days: List[int] = Field(default_factory=list)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_occurrences: Optional[int] = Field(None, ge=1)


class NotificationInput(BaseModel):
    enabled: bool = True
    remind_before_minutes: List[int] = Field(default_factory=lambda: [15])


class TaskCreate(BaseModel):
    project_id: str
    text: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)
    priority: str = "medium"
    status: str = "pending"
    category: Optional[str] = Field(None, max_length=50)
    tags: List[str] = Field(default_factory=list)
    estimated_minutes: Optional[int] = Field(None, ge=1, le=1440)
    due_date: Optional[datetime] = None
    subtasks: List[SubtaskInput] = Field(default_factory=list, max_length=20)
    is_recurring: bool = False
    recurrence_pattern: Optional[RecurrenceInput] = None
    notification_settings: Optional[NotificationInput] = None


class TaskUpdate(BaseModel):
    project_id: Optional[str] = None
    text: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)
    priority: Optional[str] = None
    status: Optional[str] = None
    completed: Optional[bool] = None
    category: Optional[str] = Field(None, max_length=50)
    tags: Optional[List[str]] = None
    estimated_minutes: Optional[int] = Field(None, ge=1, le=1440)
    due_date: Optional[datetime] = None
    subtasks: Optional[List[SubtaskInput]] = Field(None, max_length=20)
    is_recurring: Optional[bool] = None
    recurrence_pattern: Optional[RecurrenceInput] = None
    notification_settings: Optional[NotificationInput] = None


class BulkUpdate(BaseModel):
    task_ids: List[str] = Field(..., min_length=1, max_length=100)
    priority: Optional[str] = None
    status: Optional[str] = None
    completed: Optional[bool] = None
    category: Optional[str] = Field(None, max_length=50)
    project_id: Optional[str] = None
    due_date: Optional[datetime] = None


class BulkDelete(BaseModel):
    task_ids: List[str] = Field(..., min_length=1, max_length=100)


class DependencyCreate(BaseModel):
    predecessor_task_id: str
    type: str = "blocks"


class PowerUpActivate(BaseModel):
    type: str
    task_id: Optional[str] = None


class PomodoroStart(BaseModel):
    type: Optional[str] = None
    task_id: Optional[str] = None


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    category: Optional[str] = None
    icon: Optional[str] = None
    template_data: dict


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    category: Optional[str] = None
    icon: Optional[str] = None
    template_data: Optional[dict] = None


class TemplateUse(BaseModel):
    project_id: str
    due_date: Optional[datetime] = None
    variables: Dict[str, str] = Field(default_factory=dict)


class FilterPresetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    filters: dict = Field(default_factory=dict)
    sort: str = "date-desc"


class QuickAdd(BaseModel):
    project_id: str
    text: str = Field(..., min_length=1, max_length=500)


class QuickAddPreview(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)


class ImportPreviewRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=2_000_000)
    source: Optional[str] = None


class ImportRequest(ImportPreviewRequest):
    project_id: str
    format: str = "csv"
