"""
Community statistics endpoint.
"""

from fastapi import APIRouter, Depends

from ...db.database import CategoryRepository, EventRepository, UserRepository
from ...schemas.event import CommunityStatsResponse
from ...services.stats_service import get_community_stats
from ..dependencies import get_category_repository, get_event_repository, get_user_repository

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("", response_model=CommunityStatsResponse)
async def community_stats(
    user_repo: UserRepository = Depends(get_user_repository),
    event_repo: EventRepository = Depends(get_event_repository),
    category_repo: CategoryRepository = Depends(get_category_repository)
):
    """Counts shown on the landing page."""
    return get_community_stats(user_repo, event_repo, category_repo)
