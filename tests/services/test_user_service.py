"""
Tests for UserService and AuthenticationService.
"""

from unittest.mock import Mock

import pytest
from sqlalchemy.exc import IntegrityError

from eventhub.schemas.auth import PasswordChange, UserCreate, UserLogin
from eventhub.services.auth_service import AuthenticationService


class TestUserRegistration:
    """Test registration rules."""

    @pytest.mark.asyncio
    async def test_register_user_success(self, user_service, user_repo, test_user_data):
        user = await user_service.register_user(UserCreate(**test_user_data), user_repo)

        assert user.id is not None
        assert user.username == "testuser"
        assert user.is_online is True
        assert user.hashed_password != test_user_data["password"]

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, user_service, user_repo, test_user_data):
        await user_service.register_user(UserCreate(**test_user_data), user_repo)

        duplicate = dict(test_user_data, username="another")
        assert await user_service.register_user(UserCreate(**duplicate), user_repo) is None

    @pytest.mark.asyncio
    async def test_register_duplicate_username(self, user_service, user_repo, test_user_data):
        await user_service.register_user(UserCreate(**test_user_data), user_repo)

        duplicate = dict(test_user_data, email="other@example.com")
        assert await user_service.register_user(UserCreate(**duplicate), user_repo) is None

    @pytest.mark.asyncio
    async def test_register_integrity_error(self, user_service, user_repo, test_user_data):
        """A concurrent duplicate caught by the unique constraint is reported as a duplicate."""
        user_repo.get_by_email = Mock(return_value=None)
        user_repo.get_by_username = Mock(return_value=None)
        user_repo.create = Mock(side_effect=IntegrityError("INSERT", {}, Exception("unique")))

        assert await user_service.register_user(UserCreate(**test_user_data), user_repo) is None


class TestAuthentication:
    """Test credential checks and presence."""

    @pytest.mark.asyncio
    async def test_authenticate_sets_online(self, user_service, user_repo, test_user_data):
        user = await user_service.register_user(UserCreate(**test_user_data), user_repo)
        await user_service.set_online_status(user.id, False, user_repo)

        authenticated = await user_service.authenticate_user(
            UserLogin(email=test_user_data["email"], password=test_user_data["password"]), user_repo
        )

        assert authenticated.id == user.id
        assert authenticated.is_online is True

    @pytest.mark.asyncio
    async def test_authenticate_wrong_password(self, user_service, user_repo, test_user_data):
        await user_service.register_user(UserCreate(**test_user_data), user_repo)

        result = await user_service.authenticate_user(
            UserLogin(email=test_user_data["email"], password="wrong-password"), user_repo
        )
        assert result is None

    @pytest.mark.asyncio
    async def test_authenticate_unknown_email(self, user_service, user_repo):
        result = await user_service.authenticate_user(
            UserLogin(email="nobody@example.com", password="whatever1"), user_repo
        )
        assert result is None

    @pytest.mark.asyncio
    async def test_auth_service_issues_tokens(self, user_repo, jwt_service, test_user_data):
        auth_service = AuthenticationService(jwt_service)
        await auth_service.initialize()

        user, token = await auth_service.register_user(UserCreate(**test_user_data), user_repo)
        assert jwt_service.verify_token(token)["user_id"] == user.id

        assert await auth_service.logout_user(user.id, user_repo) is True
        assert user_repo.get_by_id(user.id).is_online is False

        user, token = await auth_service.login_user(
            UserLogin(email=test_user_data["email"], password=test_user_data["password"]), user_repo
        )
        assert (await auth_service.get_user_from_token(token, user_repo)).id == user.id


class TestLookups:
    """Test identity lookups."""

    @pytest.mark.asyncio
    async def test_lookup_by_email_and_username(self, user_service, user_repo, test_user_data):
        user = await user_service.register_user(UserCreate(**test_user_data), user_repo)

        assert (await user_service.get_user_by_email("test@example.com", user_repo)).id == user.id
        assert (await user_service.get_user_by_username("testuser", user_repo)).id == user.id
        assert (await user_service.get_user_by_id(user.id, user_repo)).email == "test@example.com"

        assert await user_service.get_user_by_email("nobody@example.com", user_repo) is None
        assert await user_service.get_user_by_username("nobody", user_repo) is None


class TestProfile:
    """Test profile and password changes."""

    @pytest.mark.asyncio
    async def test_update_profile(self, user_service, user_repo, test_user_data):
        user = await user_service.register_user(UserCreate(**test_user_data), user_repo)

        updated = await user_service.update_user_profile(
            user.id, {"bio": "Loves jazz", "hashed_password": "ignored"}, user_repo
        )

        assert updated.bio == "Loves jazz"
        assert updated.hashed_password != "ignored"

    @pytest.mark.asyncio
    async def test_update_profile_taken_email(self, user_service, user_repo, test_user_data):
        user = await user_service.register_user(UserCreate(**test_user_data), user_repo)
        other = dict(test_user_data, username="other", email="other@example.com")
        await user_service.register_user(UserCreate(**other), user_repo)

        result = await user_service.update_user_profile(user.id, {"email": "other@example.com"}, user_repo)
        assert result is None

    @pytest.mark.asyncio
    async def test_update_missing_user(self, user_service, user_repo):
        assert await user_service.update_user_profile(999, {"bio": "x"}, user_repo) is None

    @pytest.mark.asyncio
    async def test_change_password(self, user_service, user_repo, test_user_data):
        user = await user_service.register_user(UserCreate(**test_user_data), user_repo)

        wrong = PasswordChange(current_password="not-it-123", new_password="newpassword456")
        assert await user_service.change_password(user.id, wrong, user_repo) is False

        right = PasswordChange(current_password=test_user_data["password"], new_password="newpassword456")
        assert await user_service.change_password(user.id, right, user_repo) is True

        login = UserLogin(email=test_user_data["email"], password="newpassword456")
        assert await user_service.authenticate_user(login, user_repo) is not None
