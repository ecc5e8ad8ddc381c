"""
User model for TaskFlow.

Users sign in with email/password or through a linked OAuth account.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import uuid4

from taskflow.timeutil import parse_datetime, parse_json


@dataclass
class User:
    """
    A TaskFlow account.

    Attributes:
        id: Unique identifier (UUID)
        email: Login email, unique across users
        password_hash: Werkzeug password hash (None for OAuth-only accounts)
        name: Display name
        avatar: Avatar URL
        google_id: Linked Google account id
        github_id: Linked GitHub account id
        timer_settings: Pomodoro preferences (see TimerSettings)
        last_login_at: Last successful login
    """

    email: str
    id: str = field(default_factory=lambda: str(uuid4()))
    password_hash: Optional[str] = None
    name: Optional[str] = None
    avatar: Optional[str] = None
    google_id: Optional[str] = None
    github_id: Optional[str] = None
    timer_settings: Optional[dict] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = datetime.utcnow()
        if self.updated_at is None:
            self.updated_at = self.created_at

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def to_dict(self) -> dict:
        """Public representation; never includes the password hash."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "avatar": self.avatar,
            "has_password": self.has_password,
            "google_linked": self.google_id is not None,
            "github_linked": self.github_id is not None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        """Create User from a database row."""
        return cls(
            id=data.get("id"),
            email=data.get("email", ""),
            password_hash=data.get("password_hash"),
            name=data.get("name"),
            avatar=data.get("avatar"),
            google_id=data.get("google_id"),
            github_id=data.get("github_id"),
            timer_settings=parse_json(data.get("timer_settings")),
            created_at=parse_datetime(data.get("created_at")),
            updated_at=parse_datetime(data.get("updated_at")),
            last_login_at=parse_datetime(data.get("last_login_at")),
        )
