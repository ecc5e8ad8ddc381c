"""
Tests for AuthService: accounts, tokens and profile settings.
"""

import pytest


@pytest.fixture
def auth(db, test_config):
    from taskflow.services.users import AuthService

    return AuthService(db, test_config)


class TestRegister:
    """Tests for register()."""

    async def test_register_returns_session(self, auth):
        session = await auth.register("  Ada@Example.com ", "correct-horse", "Ada")

        assert session["user"].email == "ada@example.com"
        assert session["user"].password_hash != "correct-horse"
        assert auth.tokens.verify(session["token"]) == session["user"].id

    async def test_register_creates_gamification_profile(self, auth, db):
        session = await auth.register("new@example.com", "long-enough")

        count = await db.fetchval(
            "SELECT COUNT(*) FROM gamification_profiles WHERE user_id = $1", session["user"].id
        )
        assert count == 1

    async def test_duplicate_email(self, auth, user):
        from taskflow.errors import ConflictError

        with pytest.raises(ConflictError, match="already exists"):
            await auth.register("ADA@example.com", "another-pass")

    async def test_short_password(self, auth):
        from taskflow.errors import UserInputError

        with pytest.raises(UserInputError, match="at least 8"):
            await auth.register("short@example.com", "abc")

    async def test_invalid_email(self, auth):
        from taskflow.errors import UserInputError

        with pytest.raises(UserInputError, match="Invalid email"):
            await auth.register("not-an-email", "long-enough")


class TestLogin:
    """Tests for login(), refresh() and verify_token()."""

    async def test_login(self, auth, user):
        session = await auth.login("ada@example.com", "correct-horse")

        assert session["user"].id == user.id
        assert session["user"].last_login_at is not None

    async def test_wrong_password_and_unknown_email_look_the_same(self, auth, user):
        from taskflow.errors import AuthenticationError

        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await auth.login("ada@example.com", "wrong-horse")
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await auth.login("nobody@example.com", "correct-horse")

    async def test_refresh(self, auth, user):
        from taskflow.errors import AuthenticationError

        session = await auth.login("ada@example.com", "correct-horse")

        refreshed = await auth.refresh(session["refresh_token"])

        assert refreshed["user"].id == user.id
        with pytest.raises(AuthenticationError):
            await auth.refresh(session["token"])

    async def test_refresh_for_deleted_user(self, auth, user):
        from taskflow.errors import AuthenticationError

        session = await auth.login("ada@example.com", "correct-horse")
        await auth.delete_account(user.id)

        with pytest.raises(AuthenticationError):
            await auth.refresh(session["refresh_token"])

    async def test_verify_token(self, auth, user):
        token = auth.tokens.issue(user.id)

        assert (await auth.verify_token(token)).email == "ada@example.com"
        assert await auth.verify_token("garbage") is None


class TestOAuth:
    """Tests for oauth_login()."""

    async def test_new_account(self, auth):
        session = await auth.oauth_login("github", 1234, "octo@example.com", "Octo", "https://avatars/1")

        user = session["user"]
        assert user.github_id == "1234"
        assert user.has_password is False
        assert user.avatar == "https://avatars/1"

    async def test_links_existing_email(self, auth, user):
        session = await auth.oauth_login("google", "g-1", "ada@example.com", "Ada L.")

        assert session["user"].id == user.id
        assert (await auth.get_user(user.id)).google_id == "g-1"

    async def test_finds_by_provider_id(self, auth):
        first = await auth.oauth_login("github", "42", "first@example.com")
        again = await auth.oauth_login("github", "42", "changed@example.com")

        assert again["user"].id == first["user"].id

    async def test_invalid_provider(self, auth):
        from taskflow.errors import UserInputError

        with pytest.raises(UserInputError, match="Invalid provider"):
            await auth.oauth_login("myspace", "1", "a@example.com")


class TestEnsureUser:
    """Tests for ensure_user()."""

    async def test_creates_once(self, auth):
        first = await auth.ensure_user("Agent@Example.com", "Agent")
        second = await auth.ensure_user("agent@example.com")

        assert first.id == second.id
        assert first.has_password is False


class TestProfile:
    """Tests for profile, password and timer settings."""

    async def test_update_profile(self, auth, user):
        updated = await auth.update_profile(user.id, name="  Ada Lovelace ", avatar="")

        assert updated.name == "Ada Lovelace"
        assert updated.avatar is None

    async def test_change_password(self, auth, user):
        from taskflow.errors import UserInputError

        with pytest.raises(UserInputError, match="Invalid current password"):
            await auth.change_password(user.id, "wrong-horse", "new-password")

        await auth.change_password(user.id, "correct-horse", "new-password")

        session = await auth.login("ada@example.com", "new-password")
        assert session["user"].id == user.id

    async def test_oauth_user_sets_first_password(self, auth):
        session = await auth.oauth_login("github", "7", "oauth@example.com")

        await auth.change_password(session["user"].id, "", "brand-new-pass")

        assert (await auth.get_user(session["user"].id)).has_password is True

    async def test_timer_settings(self, auth, user):
        from taskflow.errors import UserInputError

        assert (await auth.get_timer_settings(user.id)).work == 25

        settings = await auth.update_timer_settings(user.id, work=50, short_break=None)

        assert settings.work == 50
        assert settings.short_break == 5
        assert (await auth.get_timer_settings(user.id)).work == 50
        with pytest.raises(UserInputError):
            await auth.update_timer_settings(user.id, long_break=500)

    async def test_delete_account_cascades(self, auth, db, user, project):
        assert await auth.delete_account(user.id) is True

        assert await db.fetchval("SELECT COUNT(*) FROM projects WHERE user_id = $1", user.id) == 0
        assert await auth.delete_account(user.id) is False
