"""
Event catalog service.
Owns event records: creation, lookup, filtered listing, organizer-only
updates and soft deletion.
"""

import logging
from datetime import date
from typing import List, Optional

from ..db.database import AttendeeRepository, CategoryRepository, EventRepository, UserRepository
from ..models.base import utcnow
from ..models.event import Event
from ..schemas.event import EventCreate, EventFilters, EventUpdate, EventWithDetailsResponse
from .date_filters import resolve_date_window
from .event_composer import EventComposer

logger = logging.getLogger(__name__)


class CapacityConflictError(ValueError):
    """Raised when a capacity change would fall below the current attendee count."""
    pass


class EventCatalog:
    """
    Event catalog operations.
    """

    def __init__(
        self,
        event_repo: EventRepository,
        category_repo: CategoryRepository,
        user_repo: UserRepository,
        attendee_repo: AttendeeRepository
    ):
        self.event_repo = event_repo
        self.category_repo = category_repo
        self.attendee_repo = attendee_repo
        self.composer = EventComposer(category_repo, user_repo)

    def create_event(self, event_data: EventCreate, organizer_id: int) -> Event:
        """
        Create a new event owned by ``organizer_id``.

        Args:
            event_data: Event creation data
            organizer_id: ID of the creating user

        Returns:
            Created event
        """
        now = utcnow()
        event = self.event_repo.create(
            **event_data.model_dump(),
            organizer_id=organizer_id,
            current_attendees=0,
            is_active=True,
            created_at=now,
            updated_at=now
        )
        logger.info(f"Event {event.id} created by user {organizer_id}")
        return event

    def get_event(
        self,
        event_id: int,
        viewer_id: Optional[int] = None,
        include_inactive: bool = True
    ) -> Optional[EventWithDetailsResponse]:
        """
        Get the detailed view of an event.

        Args:
            event_id: Event ID
            viewer_id: When given, ``is_attending`` is filled for this user
            include_inactive: Whether soft-deleted events are visible

        Returns:
            Event view or None if not found
        """
        event = self.event_repo.get_by_id(event_id)
        if event is None:
            return None
        if not include_inactive and not event.is_active:
            return None

        is_attending = None
        if viewer_id is not None:
            is_attending = self.attendee_repo.exists(event_id, viewer_id)

        return self.composer.compose(event, is_attending=is_attending)

    def list_events(self, filters: EventFilters, today: Optional[date] = None) -> List[EventWithDetailsResponse]:
        """
        List active events matching the filters, soonest first.

        Raises:
            InvalidDateFilterError: Unknown date filter
        """
        window = resolve_date_window(filters.date, today or date.today())
        date_from, date_to = window if window else (None, None)

        category_id = None
        if filters.category:
            category = self.category_repo.get_by_slug(filters.category)
            if category is not None:
                category_id = category.id

        events = self.event_repo.list_active(
            category_id=category_id,
            search=filters.search,
            location=filters.location,
            date_from=date_from,
            date_to=date_to
        )
        return self.composer.compose_many(events)

    def annotate_attendance(
        self,
        events: List[EventWithDetailsResponse],
        user_id: int
    ) -> List[EventWithDetailsResponse]:
        """Fill ``is_attending`` on each view for ``user_id``."""
        attending = self.attendee_repo.event_ids_for_user(user_id, (e.id for e in events))
        for event in events:
            event.is_attending = event.id in attending
        return events

    def update_event(self, event_id: int, updates: EventUpdate, organizer_id: int) -> Optional[Event]:
        """
        Apply a partial update on behalf of the organizer.

        Args:
            event_id: Event ID
            updates: Fields to change; unset fields are left alone
            organizer_id: ID of the requesting user

        Returns:
            Updated event or None if missing or not owned by the caller

        Raises:
            CapacityConflictError: New capacity below the current attendee count
        """
        event = self.event_repo.get_by_id(event_id)
        if event is None or event.organizer_id != organizer_id:
            logger.warning(f"Event update rejected: event {event_id} not found or not owned by {organizer_id}")
            return None

        changes = updates.model_dump(exclude_unset=True)
        # Columns that cannot be null keep their value when null is sent
        changes = {
            key: value for key, value in changes.items()
            if value is not None or key in ("image_url", "max_attendees")
        }

        new_capacity = changes.get("max_attendees")
        if new_capacity is not None and new_capacity < event.current_attendees:
            raise CapacityConflictError(
                f"max_attendees cannot be lower than the current {event.current_attendees} attendees"
            )

        changes["updated_at"] = utcnow()
        updated = self.event_repo.update(event_id, **changes)
        logger.info(f"Event {event_id} updated by user {organizer_id}")
        return updated

    def delete_event(self, event_id: int, organizer_id: int) -> bool:
        """Soft-delete an event on behalf of the organizer."""
        event = self.event_repo.get_by_id(event_id)
        if event is None or event.organizer_id != organizer_id:
            logger.warning(f"Event delete rejected: event {event_id} not found or not owned by {organizer_id}")
            return False

        self.event_repo.soft_delete(event_id)
        logger.info(f"Event {event_id} deleted by user {organizer_id}")
        return True

    def list_by_organizer(self, organizer_id: int) -> List[EventWithDetailsResponse]:
        """All events of an organizer, newest first."""
        return self.composer.compose_many(self.event_repo.list_by_organizer(organizer_id))
