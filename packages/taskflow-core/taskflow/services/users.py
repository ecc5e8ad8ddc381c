"""
Authentication and user account service.
"""

import logging
import re
from datetime import datetime
from typing import Optional

from taskflow.config import get_config
from taskflow.db import affected_rows
from taskflow.errors import AuthenticationError, ConflictError, NotFoundError, UserInputError
from taskflow.models.pomodoro import TimerSettings
from taskflow.models.user import User
from taskflow.security import REFRESH, TokenManager, hash_password, verify_password
from taskflow.services.base import BaseService

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
OAUTH_PROVIDERS = ("github", "google")
NAME_MAX = 100


def normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise UserInputError("Invalid email address")
    return email


class AuthService(BaseService):
    """
    Registration, login, token refresh and profile management.

    Passwords are hashed with Werkzeug; tokens are JWTs issued by TokenManager.
    """

    def __init__(self, adapter=None, config=None):
        super().__init__(adapter)
        self._config = config
        self._tokens: Optional[TokenManager] = None

    @property
    def config(self):
        if self._config is None:
            self._config = get_config()
        return self._config

    @property
    def tokens(self) -> TokenManager:
        if self._tokens is None:
            self._tokens = TokenManager(self.config.auth)
        return self._tokens

    def _session(self, user: User) -> dict:
        return {"user": user, **self.tokens.issue_pair(user.id)}

    def _validate_password(self, password: str) -> None:
        minimum = self.config.auth.password_min_length
        if not password or len(password) < minimum:
            raise UserInputError(f"Password must be at least {minimum} characters")

    # ------------------------------------------------------------------ lookup

    async def get_user(self, user_id: str) -> User:
        row = await self.adapter.fetchrow("SELECT * FROM users WHERE id = $1", user_id)
        if not row:
            raise NotFoundError("User not found")
        return User.from_dict(row)

    async def get_by_email(self, email: str) -> Optional[User]:
        row = await self.adapter.fetchrow(
            "SELECT * FROM users WHERE email = $1", (email or "").strip().lower()
        )
        return User.from_dict(row) if row else None

    async def _create_user(self, user: User) -> User:
        from taskflow.services.gamification import GamificationService

        await self._insert("users", {
            "id": user.id,
            "email": user.email,
            "password_hash": user.password_hash,
            "name": user.name,
            "avatar": user.avatar,
            "google_id": user.google_id,
            "github_id": user.github_id,
            "timer_settings": user.timer_settings,
            "created_at": user.created_at,
            "updated_at": user.updated_at,
            "last_login_at": user.last_login_at,
        })
        await GamificationService(self.adapter).get_profile(user.id)
        logger.info(f"Created user: {user.id} - {user.email}")
        return user

    async def ensure_user(self, email: str, name: Optional[str] = None) -> User:
        """Get a user by email, creating a passwordless account if missing."""
        email = normalize_email(email)
        user = await self.get_by_email(email)
        if user:
            return user
        return await self._create_user(User(email=email, name=name))

    # -------------------------------------------------------------------- auth

    async def register(self, email: str, password: str, name: Optional[str] = None) -> dict:
        """
        Create an account and its gamification profile.

        Returns:
            {"user": User, "token": str, "refresh_token": str}
        """
        email = normalize_email(email)
        self._validate_password(password)
        if name is not None and len(name.strip()) > NAME_MAX:
            raise UserInputError(f"Name must be at most {NAME_MAX} characters")

        if await self.get_by_email(email):
            raise ConflictError("User already exists with this email")

        now = datetime.utcnow()
        user = User(
            email=email,
            password_hash=hash_password(password),
            name=(name or "").strip() or None,
            last_login_at=now,
            created_at=now,
        )
        await self._create_user(user)
        return self._session(user)

    async def login(self, email: str, password: str) -> dict:
        user = await self.get_by_email(email)
        if not user or not verify_password(user.password_hash, password):
            logger.info(f"Failed login for {email!r}")
            raise AuthenticationError("Invalid credentials")

        user.last_login_at = datetime.utcnow()
        await self._update_columns("users", {"last_login_at": user.last_login_at}, {"id": user.id})
        logger.info(f"User logged in: {user.id}")
        return self._session(user)

    async def refresh(self, refresh_token: str) -> dict:
        user_id = self.tokens.verify(refresh_token or "", REFRESH)
        if not user_id:
            raise AuthenticationError("Invalid refresh token")
        try:
            user = await self.get_user(user_id)
        except NotFoundError:
            raise AuthenticationError("Invalid refresh token")
        return self._session(user)

    async def verify_token(self, token: str) -> Optional[User]:
        """Resolve an access token to its user, or None if invalid."""
        user_id = self.tokens.verify(token or "")
        if not user_id:
            return None
        row = await self.adapter.fetchrow("SELECT * FROM users WHERE id = $1", user_id)
        return User.from_dict(row) if row else None

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = await self.get_user(user_id)
        if user.has_password and not verify_password(user.password_hash, current_password):
            raise UserInputError("Invalid current password")
        self._validate_password(new_password)

        await self._update_columns(
            "users",
            {"password_hash": hash_password(new_password), "updated_at": datetime.utcnow()},
            {"id": user_id},
        )
        logger.info(f"Password changed for user: {user_id}")

    async def oauth_login(
        self,
        provider: str,
        provider_id: str,
        email: str,
        name: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> dict:
        """
        Sign in with a verified OAuth identity.

        Finds the user by provider id, else links the provider to an existing
        account with the same email, else creates a new passwordless account.
        """
        if provider not in OAUTH_PROVIDERS:
            raise UserInputError(f"Invalid provider. Must be one of: {', '.join(OAUTH_PROVIDERS)}")
        if not provider_id:
            raise AuthenticationError("OAuth provider did not return an account id")
        column = f"{provider}_id"
        provider_id = str(provider_id)
        now = datetime.utcnow()

        row = await self.adapter.fetchrow(f"SELECT * FROM users WHERE {column} = $1", provider_id)
        if row:
            user = User.from_dict(row)
        else:
            email = normalize_email(email)
            user = await self.get_by_email(email)
            if user:
                setattr(user, column, provider_id)
                await self._update_columns(
                    "users",
                    {column: provider_id, "avatar": user.avatar or avatar, "updated_at": now},
                    {"id": user.id},
                )
                logger.info(f"Linked {provider} account to user: {user.id}")
            else:
                user = User(email=email, name=name, avatar=avatar, created_at=now)
                setattr(user, column, provider_id)
                await self._create_user(user)

        user.last_login_at = now
        await self._update_columns("users", {"last_login_at": now}, {"id": user.id})
        return self._session(user)

    # ----------------------------------------------------------------- profile

    async def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> User:
        values = {}
        if name is not None:
            name = name.strip()
            if len(name) > NAME_MAX:
                raise UserInputError(f"Name must be at most {NAME_MAX} characters")
            values["name"] = name or None
        if avatar is not None:
            values["avatar"] = avatar or None
        if values:
            values["updated_at"] = datetime.utcnow()
            await self._update_columns("users", values, {"id": user_id})
        return await self.get_user(user_id)

    async def delete_account(self, user_id: str) -> bool:
        """Delete a user; projects, tasks and all progress cascade."""
        result = await self.adapter.execute("DELETE FROM users WHERE id = $1", user_id)
        deleted = affected_rows(result) > 0
        if deleted:
            logger.info(f"Deleted user: {user_id}")
        return deleted

    async def get_timer_settings(self, user_id: str) -> TimerSettings:
        user = await self.get_user(user_id)
        return TimerSettings.from_dict(user.timer_settings)

    async def update_timer_settings(self, user_id: str, **changes) -> TimerSettings:
        settings = await self.get_timer_settings(user_id)
        for key, value in changes.items():
            if value is None:
                continue
            if not hasattr(settings, key):
                raise UserInputError(f"Unknown timer setting: {key}")
            setattr(settings, key, int(value))

        errors = settings.validate()
        if errors:
            raise UserInputError("; ".join(errors))

        await self._update_columns(
            "users",
            {"timer_settings": settings.to_dict(), "updated_at": datetime.utcnow()},
            {"id": user_id},
        )
        return settings
