"""
JWT service for EventHub.
Handles access token creation and validation.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
import logging

from ..core.config import config

logger = logging.getLogger(__name__)


class JWTService:
    """
    JWT service for token creation and validation.
    """

    def __init__(self):
        self.secret_key: Optional[str] = None
        self.algorithm: Optional[str] = None
        self.access_token_expire_days: int = 7
        self._initialized = False

    async def initialize(self):
        """Initialize JWT configuration from secrets."""
        self.secret_key = await config.get_jwt_secret()
        self.algorithm = await config.get_jwt_algorithm()
        self.access_token_expire_days = await config.get_jwt_expiry_days()
        self._initialized = True

    def create_access_token(self, user_id: int) -> str:
        """
        Create an access token for a user.

        Args:
            user_id: Subject of the token

        Returns:
            Encoded JWT
        """
        if not self._initialized:
            raise RuntimeError("JWT service not initialized")

        expire = datetime.now(timezone.utc) + timedelta(days=self.access_token_expire_days)
        to_encode = {"user_id": user_id, "type": "access", "exp": expire}
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify and decode a JWT token.

        Args:
            token: JWT token to verify

        Returns:
            Token payload if valid, None otherwise
        """
        if not self._initialized:
            logger.error("JWT service not initialized")
            return None

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            return None

        if payload.get("type") != "access" or payload.get("user_id") is None:
            return None

        return payload

    def get_token_expiry(self) -> int:
        """Get access token validity in seconds."""
        return self.access_token_expire_days * 24 * 60 * 60
