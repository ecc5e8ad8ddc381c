"""
OAuth authorization-code exchange for GitHub and Google.

Each provider function trades a code for an access token, then fetches the
account profile and returns {"provider_id", "email", "name", "avatar"}.
"""

import logging
from typing import Optional

import httpx

from taskflow.config import AuthConfig
from taskflow.errors import AuthenticationError, UserInputError

logger = logging.getLogger(__name__)

GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL = "https://api.github.com/user"
GITHUB_EMAILS_URL = "https://api.github.com/user/emails"

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

TIMEOUT = 10.0


async def exchange_github(code: str, auth: AuthConfig, client: Optional[httpx.AsyncClient] = None) -> dict:
    if not auth.github_client_id or not auth.github_client_secret:
        raise UserInputError("GitHub sign-in is not configured")

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=TIMEOUT)
    try:
        response = await client.post(
            GITHUB_TOKEN_URL,
            data={
                "client_id": auth.github_client_id,
                "client_secret": auth.github_client_secret,
                "code": code,
            },
            headers={"Accept": "application/json"},
        )
        token = response.json().get("access_token") if response.status_code == 200 else None
        if not token:
            logger.info(f"GitHub code exchange failed: HTTP {response.status_code}")
            raise AuthenticationError("GitHub authentication failed")

        headers = {"Authorization": f"Bearer {token}", "Accept": "application/vnd.github+json"}
        profile_response = await client.get(GITHUB_USER_URL, headers=headers)
        if profile_response.status_code != 200:
            raise AuthenticationError("GitHub authentication failed")
        profile = profile_response.json()

        email = profile.get("email")
        if not email:
            # Private emails: pick the verified primary address
            emails_response = await client.get(GITHUB_EMAILS_URL, headers=headers)
            if emails_response.status_code == 200:
                email = next(
                    (e["email"] for e in emails_response.json() if e.get("primary") and e.get("verified")),
                    None,
                )
        if not email:
            raise AuthenticationError("GitHub account has no verified email")
    except httpx.HTTPError as e:
        logger.warning(f"GitHub request failed: {e}")
        raise AuthenticationError("GitHub authentication failed")
    finally:
        if owns_client:
            await client.aclose()

    return {
        "provider_id": str(profile["id"]),
        "email": email,
        "name": profile.get("name") or profile.get("login"),
        "avatar": profile.get("avatar_url"),
    }


async def exchange_google(
    code: str,
    auth: AuthConfig,
    redirect_uri: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> dict:
    if not auth.google_client_id or not auth.google_client_secret:
        raise UserInputError("Google sign-in is not configured")

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=TIMEOUT)
    try:
        response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": auth.google_client_id,
                "client_secret": auth.google_client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": redirect_uri or auth.google_redirect_uri or "postmessage",
            },
        )
        token = response.json().get("access_token") if response.status_code == 200 else None
        if not token:
            logger.info(f"Google code exchange failed: HTTP {response.status_code}")
            raise AuthenticationError("Google authentication failed")

        profile_response = await client.get(
            GOOGLE_USERINFO_URL, headers={"Authorization": f"Bearer {token}"}
        )
        if profile_response.status_code != 200:
            raise AuthenticationError("Google authentication failed")
        profile = profile_response.json()
    except httpx.HTTPError as e:
        logger.warning(f"Google request failed: {e}")
        raise AuthenticationError("Google authentication failed")
    finally:
        if owns_client:
            await client.aclose()

    if not profile.get("email") or profile.get("verified_email") is False:
        raise AuthenticationError("Google account has no verified email")
    return {
        "provider_id": str(profile["id"]),
        "email": profile["email"],
        "name": profile.get("name"),
        "avatar": profile.get("picture"),
    }


async def exchange_code(provider: str, code: str, auth: AuthConfig, redirect_uri: Optional[str] = None) -> dict:
    if provider == "github":
        return await exchange_github(code, auth)
    if provider == "google":
        return await exchange_google(code, auth, redirect_uri)
    raise UserInputError("Invalid provider. Must be one of: github, google")
