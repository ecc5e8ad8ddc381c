"""
Pytest configuration and fixtures for TaskFlow tests.
"""

import pytest
import sys
import tempfile
from datetime import datetime
from pathlib import Path

# Configure pytest-asyncio
pytest_plugins = ["pytest_asyncio"]

# Add packages to path for testing
packages_dir = Path(__file__).parent.parent / "packages"
sys.path.insert(0, str(packages_dir / "taskflow-core"))
sys.path.insert(0, str(packages_dir / "taskflow-api"))
sys.path.insert(0, str(packages_dir / "taskflow-mcp"))

TEST_JWT_SECRET = "test-access-secret-0123456789abcdef"
TEST_JWT_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"

# A Wednesday, mid-morning UTC
NOW = datetime(2024, 3, 13, 10, 0, 0)


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / ".taskflow"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def test_config(tmp_path):
    """A valid configuration pointing at a throwaway SQLite file."""
    from taskflow.config import AuthConfig, DatabaseConfig, ServerConfig, TaskflowConfig

    return TaskflowConfig(
        database=DatabaseConfig(type="sqlite", sqlite_path=str(tmp_path / "taskflow.db")),
        auth=AuthConfig(jwt_secret=TEST_JWT_SECRET, jwt_refresh_secret=TEST_JWT_REFRESH_SECRET),
        server=ServerConfig(environment="test"),
    )


@pytest.fixture
async def db():
    """A connected, migrated and seeded SQLite adapter."""
    from taskflow.db.migrations import run_migrations
    from taskflow.db.sqlite import SQLiteAdapter
    from taskflow.seed import seed_definitions

    with tempfile.TemporaryDirectory() as tmpdir:
        adapter = SQLiteAdapter(str(Path(tmpdir) / "test.db"))
        await adapter.connect()
        await run_migrations(adapter)
        await seed_definitions(adapter)

        yield adapter

        await adapter.close()


@pytest.fixture
async def user(db, test_config):
    """A registered user."""
    from taskflow.services.users import AuthService

    session = await AuthService(db, test_config).register("ada@example.com", "correct-horse", "Ada")
    return session["user"]


@pytest.fixture
async def other_user(db, test_config):
    from taskflow.services.users import AuthService

    session = await AuthService(db, test_config).register("grace@example.com", "battery-staple", "Grace")
    return session["user"]


@pytest.fixture
async def project(db, user):
    from taskflow.services.projects import ProjectService

    return await ProjectService(db).create(user.id, "Work", "Day job", "#3B82F6")


@pytest.fixture
def sample_task_data():
    """Sample task data for testing."""
    return {
        "text": "Write quarterly report",
        "description": "Numbers for Q1",
        "priority": "high",
        "category": "work",
        "tags": ["report", "finance"],
        "estimated_minutes": 90,
    }
