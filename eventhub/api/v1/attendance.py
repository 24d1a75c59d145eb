"""
Attendance endpoints: joining, leaving and listing attendees.
"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from ...db.database import EventRepository
from ...db.redis_client import CacheManager, LockAcquisitionError
from ...models.user import User
from ...schemas.auth import UserProfile
from ...schemas.event import AttendanceStatusResponse, MessageResponse
from ...services.attendance_service import AttendanceLedger
from ..dependencies import (
    get_attendance_ledger,
    get_cache_manager,
    get_current_user,
    get_event_repository,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Attendance"])

LOCK_BUSY_DETAIL = "Event is busy, please retry"


@router.post("/{event_id}/join", response_model=MessageResponse)
async def join_event(
    event_id: int,
    current_user: User = Depends(get_current_user),
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
    cache_manager: CacheManager = Depends(get_cache_manager)
):
    """
    Join an event.

    Raises:
        HTTPException: 400 if the event is full, inactive or already joined
    """
    try:
        if not await ledger.join(event_id, current_user.id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Failed to join event. It may be full, inactive, or already joined."
            )

        await cache_manager.invalidate_event_cache(event_id)
        return MessageResponse(message="Successfully joined event")

    except HTTPException:
        raise
    except LockAcquisitionError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=LOCK_BUSY_DETAIL)
    except Exception as e:
        logger.error(f"Failed to join event {event_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to join event"
        )


@router.post("/{event_id}/leave", response_model=MessageResponse)
async def leave_event(
    event_id: int,
    current_user: User = Depends(get_current_user),
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
    cache_manager: CacheManager = Depends(get_cache_manager)
):
    """
    Leave an event.

    Raises:
        HTTPException: 400 if the user does not attend the event
    """
    try:
        if not await ledger.leave(event_id, current_user.id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Failed to leave event. You may not be attending."
            )

        await cache_manager.invalidate_event_cache(event_id)
        return MessageResponse(message="Successfully left event")

    except HTTPException:
        raise
    except LockAcquisitionError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=LOCK_BUSY_DETAIL)
    except Exception as e:
        logger.error(f"Failed to leave event {event_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to leave event"
        )


@router.get("/{event_id}/attendance", response_model=AttendanceStatusResponse)
async def attendance_status(
    event_id: int,
    current_user: User = Depends(get_current_user),
    ledger: AttendanceLedger = Depends(get_attendance_ledger)
):
    """Whether the current user attends the event."""
    return AttendanceStatusResponse(is_attending=ledger.is_attending(event_id, current_user.id))


@router.get("/{event_id}/attendees", response_model=List[UserProfile])
async def list_attendees(
    event_id: int,
    event_repo: EventRepository = Depends(get_event_repository),
    ledger: AttendanceLedger = Depends(get_attendance_ledger)
):
    """
    Profiles of the event's attendees, in join order.

    Raises:
        HTTPException: 404 for an unknown event
    """
    if event_repo.get_by_id(event_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found"
        )
    return ledger.list_attendees(event_id)
