"""
handlers/places_handler.py – PlacesHandler class.
Responsibility: a user's saved places, annotated with distance/price/rating and
grouped by category.
"""
import asyncio
import logging
from datetime import datetime
from typing import Literal, Optional

from ..core.formatter import price_range
from ..core.geo import distance_km, format_distance, round_distance
from ..core.repository import ReviewAggregate, ShopRepository
from ..models import CategoryRef, SavedCategoryGroup, SavedPlace, SavedPlacesResponse, ShopRecord

logger = logging.getLogger(__name__)

SavedSort = Literal["distance", "rating", "recent"]

UNCATEGORIZED = CategoryRef(id="uncategorized", name="Uncategorized")


def round_to_half(value: float) -> float:
    """Star display: clamp to [0, 5], nearest 0.5."""
    return round(max(0.0, min(5.0, value or 0.0)) * 2) / 2


class PlacesHandler:
    """Handles /api/places/*."""

    def __init__(self, repo: ShopRepository) -> None:
        self._repo = repo

    async def saved_places(
        self,
        user_id: str,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        radius: float = 7.0,
        limit: int = 100,
        sort_by: SavedSort = "distance",
        filter_by_radius: bool = False,
    ) -> SavedPlacesResponse:
        saved_rows = await self._repo.saved_shops(user_id)
        if not saved_rows:
            return SavedPlacesResponse(total_saved=0, categories=[])

        ids = [r.shop_id for r in saved_rows]
        saved_at = {r.shop_id: r.saved_at for r in saved_rows}
        shops, aggregates = await asyncio.gather(
            self._repo.shops_by_ids(ids),
            self._repo.review_aggregates(ids),
        )

        places = [self._to_place(s, aggregates.get(s.id), lat, lng, saved_at.get(s.id)) for s in shops]
        if filter_by_radius and lat is not None and lng is not None:
            places = [p for p in places if p.distance_km is not None and p.distance_km <= radius]

        places = self._sort(places, sort_by)[:limit]
        logger.info("[Places] %d saved, returning %d", len(saved_rows), len(places))
        return SavedPlacesResponse(
            total_saved=len(saved_rows),
            returned_count=len(places),
            categories=self._group(places),
        )

    # ── Private helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _to_place(
        shop: ShopRecord,
        agg: Optional[ReviewAggregate],
        lat: Optional[float],
        lng: Optional[float],
        saved_at: Optional[datetime],
    ) -> SavedPlace:
        min_price, max_price = price_range(shop.menus)
        avg = agg.average if agg else 0.0
        stars = round_to_half(avg)
        km = distance_km(lat, lng, shop.latitude, shop.longitude)
        return SavedPlace(
            id=shop.id,
            name=shop.name,
            description=shop.description,
            address=shop.address,
            city=shop.city,
            latitude=shop.latitude,
            longitude=shop.longitude,
            image_url=shop.primary_image_url or shop.logo_url,
            open_hours=shop.open_hours,
            phone_number=shop.phone_number,
            created_at=shop.created_at,
            rating_number=stars,
            rating_display=f"{stars:.1f}",
            rating_percent=round(avg / 5 * 100),
            reviews_count=agg.count if agg else 0,
            min_price=min_price,
            max_price=max_price,
            offers=shop.offers,
            category=shop.category or UNCATEGORIZED,
            distance_km=km,
            distance_display=format_distance(km),
            distance_km_rounded=round_distance(km),
            saved_at=saved_at,
        )

    @staticmethod
    def _sort(places: list[SavedPlace], sort_by: SavedSort) -> list[SavedPlace]:
        if sort_by == "rating":
            return sorted(places, key=lambda p: -p.rating_number)
        if sort_by == "recent":
            return sorted(places, key=lambda p: p.saved_at or p.created_at or datetime.min, reverse=True)
        return sorted(places, key=lambda p: (p.distance_km is None, p.distance_km or 0.0))

    @staticmethod
    def _group(places: list[SavedPlace]) -> list[SavedCategoryGroup]:
        groups: dict[str, SavedCategoryGroup] = {}
        for place in places:
            key = place.category.id or UNCATEGORIZED.id
            if key not in groups:
                groups[key] = SavedCategoryGroup(
                    category=CategoryRef(id=key, name=place.category.name or UNCATEGORIZED.name),
                    shops=[],
                )
            groups[key].shops.append(place)
        return list(groups.values())
