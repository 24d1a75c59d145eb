"""
Category registry service.
"""

import logging
from typing import List, Optional

from ..db.database import CategoryRepository
from ..models.event import Category

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    {"name": "Music", "slug": "music", "color": "purple"},
    {"name": "Sports", "slug": "sports", "color": "orange"},
    {"name": "Food & Drink", "slug": "food-drink", "color": "green"},
    {"name": "Arts", "slug": "arts", "color": "pink"},
    {"name": "Community", "slug": "community", "color": "blue"},
    {"name": "Business", "slug": "business", "color": "gray"},
]


class CategoryRegistry:
    """Fixed catalog of event categories."""

    def __init__(self, category_repo: CategoryRepository):
        self.category_repo = category_repo

    def seed_defaults(self) -> int:
        """
        Insert the default categories that are not present yet.

        Returns:
            Number of categories created
        """
        created = 0
        for category in DEFAULT_CATEGORIES:
            if self.category_repo.get_by_slug(category["slug"]) is None:
                self.category_repo.create(**category)
                created += 1
        if created:
            logger.info(f"Seeded {created} default categories")
        return created

    def list_categories(self) -> List[Category]:
        return self.category_repo.get_all()

    def get_by_slug(self, slug: str) -> Optional[Category]:
        return self.category_repo.get_by_slug(slug)

    def get_by_id(self, category_id: int) -> Optional[Category]:
        return self.category_repo.get_by_id(category_id)

    def create_category(self, name: str, slug: str, color: str) -> Optional[Category]:
        """Add a category; None if the slug is already registered."""
        if self.category_repo.get_by_slug(slug) is not None:
            logger.warning(f"Category creation failed: slug {slug} already exists")
            return None
        category = self.category_repo.create(name=name, slug=slug, color=color)
        logger.info(f"Category created: {slug}")
        return category
