"""
User management service.
Handles registration, credential checks, profile updates and presence.
"""

from typing import Optional
import logging
from sqlalchemy.exc import IntegrityError

from ..models.user import User
from ..db.database import UserRepository
from ..schemas.auth import UserCreate, UserLogin, PasswordChange
from .password_manager import PasswordManager

logger = logging.getLogger(__name__)


class UserService:
    """
    Identity store operations.
    Callers outside this service only ever see ``UserProfile`` projections.
    """

    def __init__(self, password_manager: PasswordManager):
        self.password_manager = password_manager

    async def register_user(self, user_data: UserCreate, user_repo: UserRepository) -> Optional[User]:
        """
        Register a new user.

        Args:
            user_data: User creation data
            user_repo: User repository instance

        Returns:
            Created user or None if the email or username is taken
        """
        if await self.get_user_by_email(user_data.email, user_repo):
            logger.warning(f"User registration failed: email {user_data.email} already exists")
            return None

        if await self.get_user_by_username(user_data.username, user_repo):
            logger.warning(f"User registration failed: username {user_data.username} already exists")
            return None

        hashed_password = self.password_manager.hash_password(user_data.password)

        try:
            user = user_repo.create(
                username=user_data.username,
                email=user_data.email,
                hashed_password=hashed_password,
                name=user_data.name,
                bio=user_data.bio,
                location=user_data.location,
                profile_photo=user_data.profile_photo,
                is_online=True
            )
        except IntegrityError:
            # Lost a race against a concurrent registration
            user_repo.session.rollback()
            logger.warning(f"User registration failed: duplicate email or username for {user_data.email}")
            return None

        logger.info(f"User registered successfully: {user.email}")
        return user

    async def authenticate_user(self, login_data: UserLogin, user_repo: UserRepository) -> Optional[User]:
        """
        Authenticate a user with email and password, marking them online.

        Args:
            login_data: Login credentials
            user_repo: User repository instance

        Returns:
            Authenticated user or None if authentication failed
        """
        user = await self.get_user_by_email(login_data.email, user_repo)
        if not user:
            logger.warning(f"Authentication failed: user not found for email {login_data.email}")
            return None

        if not self.password_manager.verify_password(login_data.password, user.hashed_password):
            logger.warning(f"Authentication failed: invalid password for user {user.email}")
            return None

        user = user_repo.update_online_status(user.id, True)
        logger.info(f"User authenticated successfully: {user.email}")
        return user

    async def set_online_status(self, user_id: int, is_online: bool, user_repo: UserRepository) -> bool:
        """
        Toggle a user's presence and refresh last-seen.

        Returns:
            False if the user does not exist
        """
        user = user_repo.update_online_status(user_id, is_online)
        return user is not None

    async def change_password(
        self,
        user_id: int,
        password_data: PasswordChange,
        user_repo: UserRepository
    ) -> bool:
        """
        Change user password after verifying the current one.

        Args:
            user_id: User ID
            password_data: Password change data
            user_repo: User repository instance

        Returns:
            True if password changed successfully, False otherwise
        """
        user = await self.get_user_by_id(user_id, user_repo)
        if not user:
            logger.warning(f"Password change failed: user {user_id} not found")
            return False

        if not self.password_manager.verify_password(password_data.current_password, user.hashed_password):
            logger.warning(f"Password change failed: invalid current password for user {user_id}")
            return False

        new_hashed_password = self.password_manager.hash_password(password_data.new_password)
        user_repo.update(user_id, hashed_password=new_hashed_password)

        logger.info(f"Password changed successfully for user {user_id}")
        return True

    async def update_user_profile(
        self,
        user_id: int,
        update_data: dict,
        user_repo: UserRepository
    ) -> Optional[User]:
        """
        Update user profile information.

        Args:
            user_id: User ID
            update_data: Profile fields to change; credentials are ignored
            user_repo: User repository instance

        Returns:
            Updated user or None if the user is missing or a unique field is taken
        """
        update_data = {
            key: value for key, value in update_data.items()
            if key not in ("hashed_password", "password", "id")
        }

        if "email" in update_data:
            existing_user = await self.get_user_by_email(update_data["email"], user_repo)
            if existing_user and existing_user.id != user_id:
                logger.warning(f"Profile update failed: email {update_data['email']} already exists")
                return None

        if "username" in update_data:
            existing_user = await self.get_user_by_username(update_data["username"], user_repo)
            if existing_user and existing_user.id != user_id:
                logger.warning(f"Profile update failed: username {update_data['username']} already exists")
                return None

        try:
            updated_user = user_repo.update(user_id, **update_data)
        except IntegrityError:
            user_repo.session.rollback()
            logger.warning(f"Profile update failed: duplicate email or username for user {user_id}")
            return None

        if updated_user:
            logger.info(f"User profile updated successfully for user {user_id}")

        return updated_user

    async def get_user_by_id(self, user_id: int, user_repo: UserRepository) -> Optional[User]:
        """Get user by ID."""
        return user_repo.get_by_id(user_id)

    async def get_user_by_email(self, email: str, user_repo: UserRepository) -> Optional[User]:
        """Get user by email."""
        return user_repo.get_by_email(email)

    async def get_user_by_username(self, username: str, user_repo: UserRepository) -> Optional[User]:
        """Get user by username."""
        return user_repo.get_by_username(username)
