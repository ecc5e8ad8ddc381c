"""
Password hashing and JWT issue/verify.

Access and refresh tokens are signed with different secrets so a leaked
access secret cannot mint refresh tokens.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from taskflow.config import AuthConfig

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: Optional[str], password: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


class TokenManager:
    """Issues and verifies TaskFlow access/refresh tokens."""

    def __init__(self, auth: AuthConfig):
        if not auth.jwt_secret or not auth.jwt_refresh_secret:
            raise ValueError("JWT secrets are not configured")
        self.auth = auth

    def _secret(self, token_type: str) -> str:
        return self.auth.jwt_secret if token_type == ACCESS else self.auth.jwt_refresh_secret

    def issue(self, user_id: str, token_type: str = ACCESS, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        if token_type == ACCESS:
            lifetime = timedelta(minutes=self.auth.access_token_minutes)
        else:
            lifetime = timedelta(days=self.auth.refresh_token_days)
        payload = {
            "sub": user_id,
            "type": token_type,
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(payload, self._secret(token_type), algorithm=ALGORITHM)

    def issue_pair(self, user_id: str) -> dict:
        return {
            "token": self.issue(user_id, ACCESS),
            "refresh_token": self.issue(user_id, REFRESH),
        }

    def verify(self, token: str, token_type: str = ACCESS) -> Optional[str]:
        """Return the user id carried by a valid token, else None."""
        try:
            payload = jwt.decode(token, self._secret(token_type), algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            logger.debug(f"Expired {token_type} token")
            return None
        except jwt.InvalidTokenError as e:
            logger.debug(f"Invalid {token_type} token: {e}")
            return None

        if payload.get("type") != token_type:
            return None
        return payload.get("sub")
