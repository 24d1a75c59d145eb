"""
Main authentication service.
Orchestrates registration, login and token handling.
"""

from typing import Optional, Tuple
import logging

from ..models.user import User
from ..db.database import UserRepository
from ..schemas.auth import UserCreate, UserLogin
from .user_service import UserService
from .jwt_service import JWTService
from .password_manager import PasswordManager

logger = logging.getLogger(__name__)


class AuthenticationService:
    """
    Main authentication service.
    Pairs identity store operations with access token issuance.
    """

    def __init__(self, jwt_service: Optional[JWTService] = None):
        self.password_manager = PasswordManager()
        self.jwt_service = jwt_service or JWTService()
        self.user_service = UserService(self.password_manager)
        self._initialized = False

    async def initialize(self):
        """Initialize the authentication service."""
        if not self._initialized:
            if not self.jwt_service._initialized:
                await self.jwt_service.initialize()
            self._initialized = True

    async def register_user(
        self,
        user_data: UserCreate,
        user_repo: UserRepository
    ) -> Optional[Tuple[User, str]]:
        """
        Register a new user and issue an access token.

        Returns:
            (user, token) or None if registration failed
        """
        user = await self.user_service.register_user(user_data, user_repo)
        if not user:
            return None
        return user, self.jwt_service.create_access_token(user.id)

    async def login_user(
        self,
        login_data: UserLogin,
        user_repo: UserRepository
    ) -> Optional[Tuple[User, str]]:
        """
        Authenticate a user and issue an access token.

        Returns:
            (user, token) or None if the credentials are invalid
        """
        user = await self.user_service.authenticate_user(login_data, user_repo)
        if not user:
            return None
        return user, self.jwt_service.create_access_token(user.id)

    async def logout_user(self, user_id: int, user_repo: UserRepository) -> bool:
        """Mark a user offline."""
        logged_out = await self.user_service.set_online_status(user_id, False, user_repo)
        if logged_out:
            logger.info(f"User {user_id} logged out")
        return logged_out

    async def get_user_from_token(self, token: str, user_repo: UserRepository) -> Optional[User]:
        """Get user from access token."""
        payload = self.jwt_service.verify_token(token)
        if payload:
            return await self.user_service.get_user_by_id(int(payload["user_id"]), user_repo)
        return None
