"""
handlers/category_handler.py – CategoryHandler class.
Responsibility: main categories (optionally only those with shops nearby) and
the shops of one category around the user.
"""
import asyncio
import logging
from typing import Optional

from ..core.geo import bounding_box
from ..core.ranking import FilterCriteria, SortKey, rank
from ..core.repository import ShopRepository
from ..models import CategoriesResponse, CategoryShop, CategoryShopsResponse, LatLng

logger = logging.getLogger(__name__)

NEARBY_CATEGORY_RADIUS_KM = 5.0
CATEGORY_SHOPS_RADIUS_KM = 3.0


def distance_text(km: Optional[float]) -> Optional[str]:
    return None if km is None else f"{km:.1f} km"


class CategoryHandler:
    """Handles /api/categories and /api/shops/category/*."""

    def __init__(self, repo: ShopRepository) -> None:
        self._repo = repo

    async def categories(self, lat: Optional[float] = None, lng: Optional[float] = None) -> CategoriesResponse:
        """All active categories, or only those with an active shop in a 5 km box when located."""
        bbox = None
        if lat is not None and lng is not None:
            bbox = bounding_box(lat, lng, NEARBY_CATEGORY_RADIUS_KM)
        categories = await self._repo.categories(bbox)
        logger.info("[Categories] %d categories (located=%s)", len(categories), bbox is not None)
        return CategoriesResponse(categories=categories)

    async def shops_near(
        self,
        category_id: str,
        lat: Optional[float],
        lng: Optional[float],
        user_id: Optional[str] = None,
    ) -> CategoryShopsResponse:
        """Active shops of one category within 3 km, nearest first."""
        if lat is None or lng is None:
            raise ValueError("Latitude and longitude are required")

        shops, saved_ids = await asyncio.gather(
            self._repo.shops_in_category(category_id),
            self._repo.saved_shop_ids(user_id),
        )
        result = rank(
            shops,
            FilterCriteria(user_lat=lat, user_lng=lng, radius_km=CATEGORY_SHOPS_RADIUS_KM, sort_by=SortKey.DISTANCE),
        )
        cards = [
            CategoryShop(
                **card.model_dump(exclude={"is_saved"}),
                is_saved=card.id in saved_ids,
                distance_text=distance_text(card.distance_km),
            )
            for card in result.cards
        ]
        return CategoryShopsResponse(
            category_id=category_id,
            search_radius=result.search_radius,
            total_results=len(cards),
            user_location=LatLng(lat=lat, lng=lng),
            shops=cards,
        )
