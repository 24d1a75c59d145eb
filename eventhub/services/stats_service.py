"""
Community statistics shown on the landing page.
"""

from typing import Dict

from ..db.database import CategoryRepository, EventRepository, UserRepository


def get_community_stats(
    user_repo: UserRepository,
    event_repo: EventRepository,
    category_repo: CategoryRepository
) -> Dict[str, int]:
    """
    Count active events, members, organizers of active events and categories.
    """
    return {
        "active_events": event_repo.count_active(),
        "community_members": user_repo.count(),
        "event_organizers": event_repo.count_active_organizers(),
        "event_categories": category_repo.count(),
    }
