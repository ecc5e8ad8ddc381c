"""
Fixtures for API tests: an app bound to the test database and an HTTP client.
"""

import pytest


@pytest.fixture
def app(db, test_config):
    from taskflow_api.app import create_app

    return create_app(test_config, db)


@pytest.fixture
async def client(app):
    """
    An httpx client talking to the app in-process.

    ASGITransport skips the lifespan, so the `db` fixture provides an adapter
    that is already connected and migrated.
    """
    from httpx import ASGITransport, AsyncClient

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def register(client, email="ada@example.com", password="correct-horse", name="Ada") -> dict:
    response = await client.post("/auth/register", json={"email": email, "password": password, "name": name})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def session(client):
    """A registered account; the client also holds its cookies."""
    return await register(client)


@pytest.fixture
def headers(session):
    return {"Authorization": f"Bearer {session['token']}"}


@pytest.fixture
async def project_id(client, headers):
    response = await client.post("/projects", json={"name": "Work"}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]
