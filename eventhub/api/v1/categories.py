"""
Category endpoints.
"""

from typing import List
from fastapi import APIRouter, Depends

from ...schemas.event import CategoryResponse
from ...services.category_service import CategoryRegistry
from ..dependencies import get_category_registry

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=List[CategoryResponse])
async def list_categories(registry: CategoryRegistry = Depends(get_category_registry)):
    """List all event categories."""
    return registry.list_categories()
