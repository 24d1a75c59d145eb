"""
Profile endpoints for the signed-in user.
"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from ...db.database import UserRepository
from ...db.redis_client import CacheManager
from ...models.user import User
from ...schemas.auth import PasswordChange, UserProfile, UserUpdate
from ...schemas.event import EventWithDetailsResponse, MessageResponse
from ...services.auth_service import AuthenticationService
from ...services.event_service import EventCatalog
from ..dependencies import (
    get_auth_service,
    get_cache_manager,
    get_current_user,
    get_event_catalog,
    get_user_repository,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

# Columns that may not be cleared
REQUIRED_PROFILE_FIELDS = ("username", "email", "name")


def _profile_changes(update_data: UserUpdate) -> dict:
    """Fields the client sent, dropping nulls for columns that must keep a value."""
    return {
        key: value for key, value in update_data.model_dump(exclude_unset=True).items()
        if value is not None or key not in REQUIRED_PROFILE_FIELDS
    }


@router.get("/me", response_model=UserProfile)
async def get_my_profile(current_user: User = Depends(get_current_user)):
    """Get the current user's profile."""
    return UserProfile.model_validate(current_user)


@router.patch("/me", response_model=UserProfile)
async def update_my_profile(
    update_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    user_repo: UserRepository = Depends(get_user_repository),
    auth_service: AuthenticationService = Depends(get_auth_service),
    cache_manager: CacheManager = Depends(get_cache_manager)
):
    """
    Update the current user's profile.
    Optional fields sent as null are cleared.

    Raises:
        HTTPException: 400 if the new email or username is taken
    """
    try:
        user = await auth_service.user_service.update_user_profile(
            current_user.id, _profile_changes(update_data), user_repo
        )
        if not user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Profile update failed. Email or username may already exist."
            )

        await cache_manager.invalidate_all_events()
        return UserProfile.model_validate(user)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Profile update failed for user {current_user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile"
        )


@router.patch("/me/password", response_model=MessageResponse)
async def change_my_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_user),
    user_repo: UserRepository = Depends(get_user_repository),
    auth_service: AuthenticationService = Depends(get_auth_service)
):
    """
    Change the current user's password.

    Raises:
        HTTPException: 400 if the current password is wrong
    """
    changed = await auth_service.user_service.change_password(current_user.id, password_data, user_repo)
    if not changed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )
    return MessageResponse(message="Password changed successfully")


@router.get("/me/events", response_model=List[EventWithDetailsResponse])
async def list_my_events(
    current_user: User = Depends(get_current_user),
    catalog: EventCatalog = Depends(get_event_catalog)
):
    """Events organized by the current user, newest first, including deleted ones."""
    try:
        events = catalog.list_by_organizer(current_user.id)
        return catalog.annotate_attendance(events, current_user.id)

    except Exception as e:
        logger.error(f"Failed to list events of user {current_user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list events"
        )
