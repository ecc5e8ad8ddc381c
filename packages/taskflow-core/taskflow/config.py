"""
TaskFlow Configuration

Loads settings from ~/.taskflow/config.yaml with environment variable overrides.
Supports both PostgreSQL and SQLite database configurations.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, List
import os
import logging

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".taskflow"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

MIN_SECRET_LENGTH = 32
ENVIRONMENTS = ("development", "test", "production")


@dataclass
class DatabaseConfig:
    """Database configuration settings."""

    type: str = "sqlite"  # "sqlite" or "postgres"
    sqlite_path: str = "~/.taskflow/taskflow.db"
    postgres_url: Optional[str] = None


@dataclass
class AuthConfig:
    """JWT and OAuth settings."""

    jwt_secret: Optional[str] = None
    jwt_refresh_secret: Optional[str] = None
    access_token_minutes: int = 15
    refresh_token_days: int = 7
    password_min_length: int = 8
    github_client_id: Optional[str] = None
    github_client_secret: Optional[str] = None
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    google_redirect_uri: Optional[str] = None


@dataclass
class ServerConfig:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 4000
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    environment: str = "development"
    log_level: str = "INFO"
    log_file: Optional[str] = None


@dataclass
class IdentityConfig:
    """Identity used by the MCP server when acting on a user's behalf."""

    user_email: Optional[str] = None
    user_name: Optional[str] = None


@dataclass
class TaskflowConfig:
    """
    Complete TaskFlow configuration.

    Loaded from ~/.taskflow/config.yaml with environment variable overrides.
    """

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)

    @property
    def is_production(self) -> bool:
        return self.server.environment == "production"

    def validate(self) -> List[str]:
        """Return a list of configuration problems (empty when usable)."""
        problems = []

        for name in ("jwt_secret", "jwt_refresh_secret"):
            value = getattr(self.auth, name)
            if not value:
                problems.append(f"auth.{name} is not set")
            elif len(value) < MIN_SECRET_LENGTH:
                problems.append(f"auth.{name} must be at least {MIN_SECRET_LENGTH} characters")

        if self.database.type in ("postgres", "postgresql") and not self.database.postgres_url:
            problems.append("database.postgres.url is required for postgres")

        if self.server.environment not in ENVIRONMENTS:
            problems.append(
                f"server.environment must be one of: {', '.join(ENVIRONMENTS)}"
            )

        return problems

    def to_dict(self) -> dict:
        """Convert to dictionary for display (masks secrets)."""
        result = asdict(self)

        if result.get("database", {}).get("postgres_url"):
            url = result["database"]["postgres_url"]
            result["database"]["postgres_url"] = url[:30] + "..." if len(url) > 30 else "***"

        for key in ("jwt_secret", "jwt_refresh_secret", "github_client_secret", "google_client_secret"):
            if result["auth"].get(key):
                result["auth"][key] = "***"

        return result


def _parse_database_config(data: dict) -> DatabaseConfig:
    """Parse database configuration from YAML data."""
    db_data = data.get("database", {})

    db_type = db_data.get("type", "sqlite")

    sqlite_config = db_data.get("sqlite", {})
    sqlite_path = sqlite_config.get("path", "~/.taskflow/taskflow.db")

    postgres_config = db_data.get("postgres", {})
    postgres_url = postgres_config.get("url")

    # Check for URL from environment variable reference
    url_env = postgres_config.get("url_env")
    if url_env and not postgres_url:
        postgres_url = os.environ.get(url_env)

    return DatabaseConfig(
        type=db_type,
        sqlite_path=sqlite_path,
        postgres_url=postgres_url,
    )


def _parse_auth_config(data: dict) -> AuthConfig:
    """Parse auth configuration from YAML data."""
    auth_data = data.get("auth", {})
    github = auth_data.get("github", {})
    google = auth_data.get("google", {})

    return AuthConfig(
        jwt_secret=auth_data.get("jwt_secret"),
        jwt_refresh_secret=auth_data.get("jwt_refresh_secret"),
        access_token_minutes=int(auth_data.get("access_token_minutes", 15)),
        refresh_token_days=int(auth_data.get("refresh_token_days", 7)),
        password_min_length=int(auth_data.get("password_min_length", 8)),
        github_client_id=github.get("client_id"),
        github_client_secret=github.get("client_secret"),
        google_client_id=google.get("client_id"),
        google_client_secret=google.get("client_secret"),
        google_redirect_uri=google.get("redirect_uri"),
    )


def _parse_server_config(data: dict) -> ServerConfig:
    """Parse server configuration from YAML data."""
    server_data = data.get("server", {})

    origins = server_data.get("cors_origins", ["http://localhost:3000"])
    if isinstance(origins, str):
        origins = [o.strip() for o in origins.split(",") if o.strip()]

    return ServerConfig(
        host=server_data.get("host", "127.0.0.1"),
        port=int(server_data.get("port", 4000)),
        cors_origins=origins,
        environment=server_data.get("environment", "development"),
        log_level=server_data.get("log_level", "INFO"),
        log_file=server_data.get("log_file"),
    )


def _parse_identity_config(data: dict) -> IdentityConfig:
    """Parse identity configuration from YAML data."""
    identity_data = data.get("identity", {})

    return IdentityConfig(
        user_email=identity_data.get("user_email"),
        user_name=identity_data.get("user_name"),
    )


def _apply_env_overrides(config: TaskflowConfig) -> None:
    env = os.environ

    database_url = env.get("TASKFLOW_DATABASE_URL") or env.get("DATABASE_URL")
    if database_url:
        config.database.type = "postgres"
        config.database.postgres_url = database_url
    if env.get("TASKFLOW_SQLITE_PATH"):
        config.database.type = "sqlite"
        config.database.sqlite_path = env["TASKFLOW_SQLITE_PATH"]

    if env.get("JWT_SECRET"):
        config.auth.jwt_secret = env["JWT_SECRET"]
    if env.get("JWT_REFRESH_SECRET"):
        config.auth.jwt_refresh_secret = env["JWT_REFRESH_SECRET"]
    if env.get("JWT_ACCESS_MINUTES"):
        config.auth.access_token_minutes = int(env["JWT_ACCESS_MINUTES"])
    if env.get("JWT_REFRESH_DAYS"):
        config.auth.refresh_token_days = int(env["JWT_REFRESH_DAYS"])

    for provider in ("github", "google"):
        for part in ("client_id", "client_secret"):
            value = env.get(f"{provider.upper()}_{part.upper()}")
            if value:
                setattr(config.auth, f"{provider}_{part}", value)

    if env.get("CORS_ORIGIN"):
        config.server.cors_origins = [
            o.strip() for o in env["CORS_ORIGIN"].split(",") if o.strip()
        ]
    if env.get("PORT"):
        config.server.port = int(env["PORT"])
    if env.get("TASKFLOW_ENV"):
        config.server.environment = env["TASKFLOW_ENV"]
    if env.get("LOG_LEVEL"):
        config.server.log_level = env["LOG_LEVEL"].upper()

    if env.get("TASKFLOW_USER_EMAIL"):
        config.identity.user_email = env["TASKFLOW_USER_EMAIL"]


def load_config(config_path: Optional[Path] = None) -> TaskflowConfig:
    """
    Load configuration from file with environment variable overrides.

    Args:
        config_path: Optional path to config file. Defaults to ~/.taskflow/config.yaml

    Returns:
        TaskflowConfig instance
    """
    config_file = config_path or CONFIG_FILE
    config = TaskflowConfig()

    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                data = yaml.safe_load(f) or {}

            config.database = _parse_database_config(data)
            config.auth = _parse_auth_config(data)
            config.server = _parse_server_config(data)
            config.identity = _parse_identity_config(data)

        except yaml.YAMLError as e:
            logger.warning(f"Could not parse config file at {config_file}: {e}")
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Unexpected error loading config from {config_file}: {e}")

    _apply_env_overrides(config)
    return config


def save_config(config: TaskflowConfig, config_path: Optional[Path] = None) -> None:
    """
    Save configuration to file.

    Args:
        config: TaskflowConfig instance to save
        config_path: Optional path to config file. Defaults to ~/.taskflow/config.yaml
    """
    config_file = config_path or CONFIG_FILE
    config_file.parent.mkdir(parents=True, exist_ok=True)

    auth = config.auth
    data = {
        "database": {
            "type": config.database.type,
        },
        "auth": {
            "access_token_minutes": auth.access_token_minutes,
            "refresh_token_days": auth.refresh_token_days,
        },
        "server": {
            "host": config.server.host,
            "port": config.server.port,
            "cors_origins": config.server.cors_origins,
            "environment": config.server.environment,
            "log_level": config.server.log_level,
        },
        "identity": {},
    }

    if config.database.type == "sqlite":
        data["database"]["sqlite"] = {"path": config.database.sqlite_path}
    elif config.database.postgres_url:
        data["database"]["postgres"] = {"url": config.database.postgres_url}

    if auth.jwt_secret:
        data["auth"]["jwt_secret"] = auth.jwt_secret
    if auth.jwt_refresh_secret:
        data["auth"]["jwt_refresh_secret"] = auth.jwt_refresh_secret
    for provider in ("github", "google"):
        client_id = getattr(auth, f"{provider}_client_id")
        if client_id:
            data["auth"][provider] = {
                "client_id": client_id,
                "client_secret": getattr(auth, f"{provider}_client_secret"),
            }

    if config.server.log_file:
        data["server"]["log_file"] = config.server.log_file

    if config.identity.user_email:
        data["identity"]["user_email"] = config.identity.user_email
    if config.identity.user_name:
        data["identity"]["user_name"] = config.identity.user_name

    with open(config_file, 'w') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    # Secrets live in this file
    config_file.chmod(0o600)

    logger.info(f"Configuration saved to {config_file}")


def ensure_config_dir() -> Path:
    """Ensure config directory exists and return its path."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR


# Cached config instance
_config: Optional[TaskflowConfig] = None


def get_config() -> TaskflowConfig:
    """Get cached config instance, loading if needed."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> TaskflowConfig:
    """Force reload config from file."""
    global _config
    _config = load_config()
    return _config
