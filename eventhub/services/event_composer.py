"""
Composition of raw events into detailed views.
"""

import logging
from typing import Dict, List, Optional

from ..db.database import CategoryRepository, UserRepository
from ..models.event import Category, Event
from ..models.user import User
from ..schemas.auth import UserProfile
from ..schemas.event import CategoryResponse, EventResponse, EventWithDetailsResponse

logger = logging.getLogger(__name__)


class EventComposer:
    """
    Joins events with their category and organizer profile.
    """

    def __init__(self, category_repo: CategoryRepository, user_repo: UserRepository):
        self.category_repo = category_repo
        self.user_repo = user_repo

    def _build(
        self,
        event: Event,
        category: Category,
        organizer: User,
        is_attending: Optional[bool] = None
    ) -> EventWithDetailsResponse:
        base = EventResponse.model_validate(event).model_dump()
        return EventWithDetailsResponse(
            **base,
            category=CategoryResponse.model_validate(category),
            organizer=UserProfile.model_validate(organizer),
            spots_left=event.spots_left,
            is_attending=is_attending
        )

    def compose(self, event: Event, is_attending: Optional[bool] = None) -> Optional[EventWithDetailsResponse]:
        """
        Build the detailed view of one event.

        Returns:
            None if the category or organizer cannot be resolved
        """
        category = self.category_repo.get_by_id(event.category_id)
        organizer = self.user_repo.get_by_id(event.organizer_id)
        if category is None or organizer is None:
            logger.warning(f"Event {event.id} references a missing category or organizer")
            return None
        return self._build(event, category, organizer, is_attending)

    def compose_many(self, events: List[Event]) -> List[EventWithDetailsResponse]:
        """
        Build detailed views for a list of events, preserving order.
        Events with unresolved references are skipped.
        """
        categories: Dict[int, Category] = self.category_repo.get_many(e.category_id for e in events)
        organizers: Dict[int, User] = self.user_repo.get_many(e.organizer_id for e in events)

        composed = []
        for event in events:
            category = categories.get(event.category_id)
            organizer = organizers.get(event.organizer_id)
            if category is None or organizer is None:
                logger.warning(f"Skipping event {event.id}: missing category or organizer")
                continue
            composed.append(self._build(event, category, organizer))
        return composed
