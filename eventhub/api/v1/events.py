"""
Event catalog endpoints.
Listing and lookup are public; creating, editing and deleting require a
signed-in organizer.
"""

import datetime
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...db.redis_client import CacheManager
from ...models.user import User
from ...schemas.event import (
    EventCreate,
    EventFilters,
    EventResponse,
    EventUpdate,
    EventWithDetailsResponse,
    MessageResponse,
)
from ...services.category_service import CategoryRegistry
from ...services.date_filters import InvalidDateFilterError, describe_date_window
from ...services.event_service import CapacityConflictError, EventCatalog
from ..dependencies import (
    get_cache_manager,
    get_category_registry,
    get_current_user,
    get_event_catalog,
    get_optional_current_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=List[EventWithDetailsResponse])
async def list_events(
    category: Optional[str] = Query(None, description="Category slug"),
    search: Optional[str] = Query(None, description="Text to find in title, description or location"),
    date: Optional[str] = Query(None, description="today, tomorrow, this-weekend, next-week, all-time or YYYY-MM-DD"),
    location: Optional[str] = Query(None, description="Text to find in location"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    catalog: EventCatalog = Depends(get_event_catalog),
    cache_manager: CacheManager = Depends(get_cache_manager)
):
    """
    List active events, soonest first.
    ``is_attending`` is filled when the request is authenticated.

    Raises:
        HTTPException: 400 for an unknown date filter
    """
    filters = EventFilters(category=category, search=search, date=date, location=location)
    today = datetime.date.today()

    try:
        # Relative windows are cached under the dates they cover today
        cache_filters = dict(filters.model_dump(), date=describe_date_window(filters.date, today))

        cached_events = await cache_manager.get_cached_events_list(cache_filters)
        if cached_events is not None:
            events = [EventWithDetailsResponse.model_validate(event) for event in cached_events]
        else:
            events = catalog.list_events(filters, today=today)
            await cache_manager.cache_events_list(
                [event.model_dump(mode="json") for event in events], cache_filters
            )

        if current_user is not None:
            catalog.annotate_attendance(events, current_user.id)

        return events

    except InvalidDateFilterError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to list events: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list events"
        )


@router.get("/{event_id}", response_model=EventWithDetailsResponse)
async def get_event(
    event_id: int,
    include_inactive: bool = Query(True, description="Return soft-deleted events too"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    catalog: EventCatalog = Depends(get_event_catalog),
    cache_manager: CacheManager = Depends(get_cache_manager)
):
    """
    Get an event with its category and organizer.

    Raises:
        HTTPException: 404 if the event does not exist or is hidden
    """
    try:
        cached_event = await cache_manager.get_cached_event_detail(event_id)
        if cached_event is not None:
            event = EventWithDetailsResponse.model_validate(cached_event)
        else:
            event = catalog.get_event(event_id)
            if event is not None:
                await cache_manager.cache_event_detail(event.model_dump(mode="json"), event_id)

        if event is None or (not include_inactive and not event.is_active):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Event not found"
            )

        if current_user is not None:
            catalog.annotate_attendance([event], current_user.id)

        return event

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get event {event_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get event"
        )


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    current_user: User = Depends(get_current_user),
    catalog: EventCatalog = Depends(get_event_catalog),
    registry: CategoryRegistry = Depends(get_category_registry),
    cache_manager: CacheManager = Depends(get_cache_manager)
):
    """
    Create an event organized by the current user.

    Raises:
        HTTPException: 400 for an unknown category
    """
    if registry.get_by_id(event_data.category_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unknown category"
        )

    try:
        event = catalog.create_event(event_data, current_user.id)
        await cache_manager.invalidate_event_cache()
        return event

    except Exception as e:
        logger.error(f"Failed to create event: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create event"
        )


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    event_data: EventUpdate,
    current_user: User = Depends(get_current_user),
    catalog: EventCatalog = Depends(get_event_catalog),
    registry: CategoryRegistry = Depends(get_category_registry),
    cache_manager: CacheManager = Depends(get_cache_manager)
):
    """
    Update an event. Only its organizer may do so.

    Raises:
        HTTPException: 404 if missing or not owned, 400 for invalid changes
    """
    if event_data.category_id is not None and registry.get_by_id(event_data.category_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unknown category"
        )

    try:
        event = catalog.update_event(event_id, event_data, current_user.id)
        if event is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Event not found or not authorized"
            )

        await cache_manager.invalidate_event_cache(event_id)
        return event

    except HTTPException:
        raise
    except CapacityConflictError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update event {event_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update event"
        )


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: int,
    current_user: User = Depends(get_current_user),
    catalog: EventCatalog = Depends(get_event_catalog),
    cache_manager: CacheManager = Depends(get_cache_manager)
):
    """
    Soft-delete an event. Only its organizer may do so.

    Raises:
        HTTPException: 404 if missing or not owned
    """
    try:
        if not catalog.delete_event(event_id, current_user.id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Event not found or not authorized"
            )

        await cache_manager.invalidate_event_cache(event_id)
        return MessageResponse(message="Event deleted successfully")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete event {event_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete event"
        )
