"""
Authentication API routes.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status

from ...db.database import UserRepository
from ...db.redis_client import CacheManager
from ...models.user import User
from ...schemas.auth import AuthResponse, UserCreate, UserLogin, UserProfile
from ...schemas.event import MessageResponse
from ...services.auth_service import AuthenticationService
from ..dependencies import get_auth_service, get_cache_manager, get_current_user, get_user_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    user_repo: UserRepository = Depends(get_user_repository),
    auth_service: AuthenticationService = Depends(get_auth_service)
):
    """
    Register a new user and sign them in.

    Raises:
        HTTPException: 400 if the email or username is taken
    """
    try:
        result = await auth_service.register_user(user_data, user_repo)
        if not result:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Registration failed. Email or username may already exist."
            )

        user, token = result
        return AuthResponse(user=UserProfile.model_validate(user), access_token=token)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Registration failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed"
        )


@router.post("/login", response_model=AuthResponse)
async def login(
    login_data: UserLogin,
    user_repo: UserRepository = Depends(get_user_repository),
    auth_service: AuthenticationService = Depends(get_auth_service),
    cache_manager: CacheManager = Depends(get_cache_manager)
):
    """
    Authenticate with email and password.

    Raises:
        HTTPException: 401 on bad credentials
    """
    try:
        result = await auth_service.login_user(login_data, user_repo)
        if not result:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
                headers={"WWW-Authenticate": "Bearer"}
            )

        user, token = result
        # Presence is embedded in cached event views
        await cache_manager.invalidate_all_events()
        return AuthResponse(user=UserProfile.model_validate(user), access_token=token)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Login failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed"
        )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: User = Depends(get_current_user),
    user_repo: UserRepository = Depends(get_user_repository),
    auth_service: AuthenticationService = Depends(get_auth_service),
    cache_manager: CacheManager = Depends(get_cache_manager)
):
    """Mark the current user offline."""
    await auth_service.logout_user(current_user.id, user_repo)
    await cache_manager.invalidate_all_events()
    return MessageResponse(message="Logged out successfully")
