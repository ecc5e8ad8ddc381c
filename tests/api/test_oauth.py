"""
Tests for the OAuth code exchange.

Uses mocking to avoid actual provider calls.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock


def mock_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    return response


@pytest.fixture
def auth_config():
    from taskflow.config import AuthConfig

    return AuthConfig(
        github_client_id="gh-id",
        github_client_secret="gh-secret",
        google_client_id="g-id",
        google_client_secret="g-secret",
    )


class TestGitHubExchange:
    async def test_success(self, auth_config):
        from taskflow_api.oauth import GITHUB_TOKEN_URL, exchange_github

        client = MagicMock()
        client.post = AsyncMock(return_value=mock_response(payload={"access_token": "t-1"}))
        client.get = AsyncMock(return_value=mock_response(payload={
            "id": 7, "login": "octocat", "email": "octo@example.com", "avatar_url": "https://a/7",
        }))

        profile = await exchange_github("code-1", auth_config, client)

        assert profile == {
            "provider_id": "7",
            "email": "octo@example.com",
            "name": "octocat",
            "avatar": "https://a/7",
        }
        assert client.post.call_args.args[0] == GITHUB_TOKEN_URL
        assert client.post.call_args.kwargs["data"]["code"] == "code-1"

    async def test_private_email_uses_primary(self, auth_config):
        from taskflow_api.oauth import exchange_github

        client = MagicMock()
        client.post = AsyncMock(return_value=mock_response(payload={"access_token": "t-1"}))
        client.get = AsyncMock(side_effect=[
            mock_response(payload={"id": 7, "login": "octocat", "email": None}),
            mock_response(payload=[
                {"email": "old@example.com", "primary": False, "verified": True},
                {"email": "main@example.com", "primary": True, "verified": True},
            ]),
        ])

        profile = await exchange_github("code-1", auth_config, client)

        assert profile["email"] == "main@example.com"

    async def test_rejected_code(self, auth_config):
        from taskflow.errors import AuthenticationError
        from taskflow_api.oauth import exchange_github

        client = MagicMock()
        client.post = AsyncMock(return_value=mock_response(payload={"error": "bad_verification_code"}))

        with pytest.raises(AuthenticationError):
            await exchange_github("stale", auth_config, client)

    async def test_not_configured(self):
        from taskflow.config import AuthConfig
        from taskflow.errors import UserInputError
        from taskflow_api.oauth import exchange_github

        with pytest.raises(UserInputError):
            await exchange_github("code", AuthConfig())


class TestGoogleExchange:
    async def test_success(self, auth_config):
        from taskflow_api.oauth import exchange_google

        client = MagicMock()
        client.post = AsyncMock(return_value=mock_response(payload={"access_token": "t-2"}))
        client.get = AsyncMock(return_value=mock_response(payload={
            "id": "g-99", "email": "ada@example.com", "verified_email": True, "name": "Ada",
        }))

        profile = await exchange_google("code-2", auth_config, client=client)

        assert profile["provider_id"] == "g-99"
        assert profile["name"] == "Ada"
        assert client.post.call_args.kwargs["data"]["redirect_uri"] == "postmessage"

    async def test_unverified_email(self, auth_config):
        from taskflow.errors import AuthenticationError
        from taskflow_api.oauth import exchange_google

        client = MagicMock()
        client.post = AsyncMock(return_value=mock_response(payload={"access_token": "t-2"}))
        client.get = AsyncMock(return_value=mock_response(payload={
            "id": "g-99", "email": "ada@example.com", "verified_email": False,
        }))

        with pytest.raises(AuthenticationError, match="no verified email"):
            await exchange_google("code-2", auth_config, client=client)

    async def test_unknown_provider(self, auth_config):
        from taskflow.errors import UserInputError
        from taskflow_api.oauth import exchange_code

        with pytest.raises(UserInputError, match="Invalid provider"):
            await exchange_code("myspace", "code", auth_config)
