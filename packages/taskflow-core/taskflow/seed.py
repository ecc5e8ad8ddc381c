"""
Reference data: achievement and daily challenge definitions, built-in templates.

seed_definitions() upserts all of it and is safe to run on every start.
"""

import json
import logging
from datetime import datetime

from taskflow.db.interface import DatabaseAdapter

logger = logging.getLogger(__name__)

# (id, title, description, icon, points, category)
ACHIEVEMENTS = (
    ("first-task", "First Steps", "Complete your first task", "🎯", 10, "tasks"),
    ("task-master-10", "Task Master", "Complete 10 tasks", "✅", 25, "tasks"),
    ("task-master-50", "Productivity Pro", "Complete 50 tasks", "🏆", 100, "tasks"),
    ("task-master-100", "Century Club", "Complete 100 tasks", "💎", 250, "tasks"),
    ("streak-3", "Getting Warmed Up", "Maintain a 3-day streak", "🔥", 15, "streak"),
    ("streak-7", "Week Warrior", "Maintain a 7-day streak", "⚡", 50, "streak"),
    ("streak-14", "Fortnight Fighter", "Maintain a 14-day streak", "💫", 100, "streak"),
    ("streak-30", "Monthly Master", "Maintain a 30-day streak", "🌟", 300, "streak"),
    ("focus-1h", "Focus Finder", "Complete 1 hour of focused work", "⏰", 20, "focus"),
    ("focus-10h", "Deep Work", "Complete 10 hours of focused work", "🧠", 100, "focus"),
    ("focus-100h", "Zen Master", "Complete 100 hours of focused work", "🧘", 500, "focus"),
    ("high-priority-10", "Priority Player", "Complete 10 high-priority tasks", "🔴", 75, "tasks"),
    ("early-bird", "Early Bird", "Complete a task before 8 AM", "🌅", 25, "special"),
    ("night-owl", "Night Owl", "Complete a task after 11 PM", "🦉", 25, "special"),
    ("project-creator", "Project Planner", "Create your first project", "📁", 10, "projects"),
    ("template-user", "Template Creator", "Create your first task template", "📋", 15, "special"),
)

# Counter thresholds that unlock achievements: (achievement id, counter, minimum)
ACHIEVEMENT_THRESHOLDS = (
    ("first-task", "total_tasks_completed", 1),
    ("task-master-10", "total_tasks_completed", 10),
    ("task-master-50", "total_tasks_completed", 50),
    ("task-master-100", "total_tasks_completed", 100),
    ("streak-3", "current_streak", 3),
    ("streak-7", "current_streak", 7),
    ("streak-14", "current_streak", 14),
    ("streak-30", "current_streak", 30),
    ("focus-1h", "total_focus_minutes", 60),
    ("focus-10h", "total_focus_minutes", 600),
    ("focus-100h", "total_focus_minutes", 6000),
    ("high-priority-10", "high_priority_completed", 10),
)

EARLY_BIRD_BEFORE_HOUR = 8
NIGHT_OWL_FROM_HOUR = 23

# (id, title, description, metric, target, reward, icon)
DAILY_CHALLENGES = (
    ("complete-3-tasks", "Task Triathlete", "Complete 3 tasks today", "tasks_completed", 3, 30, "🎯"),
    ("complete-5-tasks", "Task Machine", "Complete 5 tasks today", "tasks_completed", 5, 50, "🔥"),
    ("focus-30min", "Focus Starter", "Complete 30 minutes of focused work", "focus_minutes", 30, 20, "⏰"),
    ("focus-60min", "Focus Champion", "Complete 60 minutes of focused work", "focus_minutes", 60, 40, "🧠"),
    ("high-priority-1", "Priority Crusher", "Complete 1 high-priority task", "high_priority_completed", 1, 25, "🔴"),
    ("create-task-3", "Planner", "Create 3 new tasks", "tasks_created", 3, 15, "📝"),
    ("pomodoro-4", "Pomodoro Pro", "Complete 4 pomodoro sessions", "pomodoros_completed", 4, 50, "🍅"),
    ("subtask-5", "Detail Oriented", "Complete 5 subtasks", "subtasks_completed", 5, 30, "✨"),
)

BUILT_IN_TEMPLATES = (
    {
        "id": "meeting-prep",
        "name": "Meeting Preparation",
        "description": "Prepare for an upcoming meeting",
        "category": "work",
        "icon": "📋",
        "template_data": {
            "text": "Prepare for {{meetingName}} meeting",
            "description": "Meeting with {{attendees}} on {{date}}",
            "priority": "medium",
            "category": "work",
            "subtasks": [
                {"text": "Review agenda"},
                {"text": "Prepare talking points"},
                {"text": "Gather necessary documents"},
                {"text": "Send reminder to attendees"},
            ],
            "variables": [
                {"name": "meetingName", "placeholder": "e.g., Weekly Sync", "required": True},
                {"name": "attendees", "placeholder": "e.g., Team leads"},
                {"name": "date", "placeholder": "e.g., Friday 3pm"},
            ],
        },
    },
    {
        "id": "bug-report",
        "name": "Bug Report",
        "description": "Report and track a bug",
        "category": "work",
        "icon": "🐛",
        "template_data": {
            "text": "Fix bug: {{bugDescription}}",
            "description": "Steps to reproduce:\n1. {{step1}}\nExpected: {{expected}}\nActual: {{actual}}",
            "priority": "high",
            "category": "work",
            "subtasks": [
                {"text": "Reproduce the bug"},
                {"text": "Identify root cause"},
                {"text": "Implement fix"},
                {"text": "Write test case"},
                {"text": "Deploy fix"},
            ],
            "variables": [
                {"name": "bugDescription", "placeholder": "Brief bug description", "required": True},
                {"name": "step1", "placeholder": "First step to reproduce"},
                {"name": "expected", "placeholder": "Expected behavior"},
                {"name": "actual", "placeholder": "Actual behavior"},
            ],
        },
    },
    {
        "id": "weekly-review",
        "name": "Weekly Review",
        "description": "Review progress and plan ahead",
        "category": "work",
        "icon": "📊",
        "template_data": {
            "text": "Weekly Review - Week {{weekNumber}}",
            "description": "Review accomplishments, blockers, and goals for the week",
            "priority": "medium",
            "category": "work",
            "subtasks": [
                {"text": "Review completed tasks"},
                {"text": "Update project status"},
                {"text": "Identify blockers"},
                {"text": "Plan next week priorities"},
            ],
            "is_recurring": True,
            "recurrence_pattern": {"frequency": "weekly", "interval": 1, "days_of_week": [5]},
            "variables": [{"name": "weekNumber", "placeholder": "e.g., 42"}],
        },
    },
    {
        "id": "workout",
        "name": "Workout Session",
        "description": "Plan a workout",
        "category": "health",
        "icon": "💪",
        "template_data": {
            "text": "{{workoutType}} workout",
            "priority": "medium",
            "category": "health",
            "estimated_minutes": 45,
            "subtasks": [
                {"text": "Warm up"},
                {"text": "Main set"},
                {"text": "Cool down and stretch"},
            ],
            "variables": [{"name": "workoutType", "placeholder": "e.g., Strength", "default": "Full body"}],
        },
    },
    {
        "id": "monthly-budget",
        "name": "Monthly Budget Review",
        "description": "Check spending against the budget",
        "category": "finance",
        "icon": "💰",
        "template_data": {
            "text": "Budget review for {{month}}",
            "priority": "high",
            "category": "finance",
            "subtasks": [
                {"text": "Export bank statements"},
                {"text": "Categorize expenses"},
                {"text": "Compare with budget"},
                {"text": "Adjust next month's plan"},
            ],
            "is_recurring": True,
            "recurrence_pattern": {"frequency": "monthly", "interval": 1, "day_of_month": 1},
            "variables": [{"name": "month", "placeholder": "e.g., March", "required": True}],
        },
    },
    {
        "id": "study-session",
        "name": "Study Session",
        "description": "Focused learning block",
        "category": "learning",
        "icon": "📚",
        "template_data": {
            "text": "Study {{topic}}",
            "priority": "medium",
            "category": "learning",
            "estimated_minutes": 50,
            "subtasks": [
                {"text": "Read material"},
                {"text": "Take notes"},
                {"text": "Practice problems"},
                {"text": "Review key concepts"},
            ],
            "variables": [{"name": "topic", "placeholder": "e.g., Linear algebra", "required": True}],
        },
    },
)


async def seed_definitions(adapter: DatabaseAdapter) -> dict:
    """Upsert reference data. Returns how many rows of each kind were written."""
    for row in ACHIEVEMENTS:
        await adapter.execute(
            """
            INSERT INTO achievement_definitions (id, title, description, icon, points, category)
            VALUES ($1, $2, $3, $4, $5, $6)
            ON CONFLICT (id) DO UPDATE SET
                title = excluded.title,
                description = excluded.description,
                icon = excluded.icon,
                points = excluded.points,
                category = excluded.category
            """,
            *row,
        )

    for row in DAILY_CHALLENGES:
        await adapter.execute(
            """
            INSERT INTO daily_challenge_definitions (id, title, description, metric, target, reward, icon)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT (id) DO UPDATE SET
                title = excluded.title,
                description = excluded.description,
                metric = excluded.metric,
                target = excluded.target,
                reward = excluded.reward,
                icon = excluded.icon
            """,
            *row,
        )

    now = adapter.encode(datetime.utcnow())
    for template in BUILT_IN_TEMPLATES:
        # usage_count is left alone on conflict
        await adapter.execute(
            """
            INSERT INTO templates
                (id, user_id, name, description, category, icon, is_built_in, usage_count, template_data, created_at, updated_at)
            VALUES ($1, NULL, $2, $3, $4, $5, $6, 0, $7, $8, $9)
            ON CONFLICT (id) DO UPDATE SET
                name = excluded.name,
                description = excluded.description,
                category = excluded.category,
                icon = excluded.icon,
                template_data = excluded.template_data,
                updated_at = excluded.updated_at
            """,
            template["id"], template["name"], template["description"], template["category"],
            template["icon"], True, json.dumps(template["template_data"]), now, now,
        )

    counts = {
        "achievements": len(ACHIEVEMENTS),
        "challenges": len(DAILY_CHALLENGES),
        "templates": len(BUILT_IN_TEMPLATES),
    }
    logger.info(f"Seeded reference data: {counts}")
    return counts
