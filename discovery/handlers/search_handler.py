"""
handlers/search_handler.py – SearchHandler class.
Responsibility: global shop search, typeahead, shop detail, search history.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..config import Settings
from ..core.geo import distance_km
from ..core.hours import is_open_now
from ..core.ranking import FilterCriteria, HoursMode, SortKey, rank
from ..core.repository import ShopRepository
from ..models import (
    CategoryImage,
    LatLng,
    MenuSection,
    RecentSearch,
    SaveSearchRequest,
    SearchFilters,
    SearchShopsResponse,
    SearchSuggestionsResponse,
    ShopCard,
    ShopDetailResponse,
    ShopRecord,
)

logger = logging.getLogger(__name__)

MIN_TYPEAHEAD_CHARS = 2


@dataclass(frozen=True)
class SearchParams:
    query: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    radius: Optional[float] = None
    sort_by: Optional[str] = None
    category_id: Optional[str] = None
    user_id: Optional[str] = None
    chip: Optional[str] = None
    hours_filter: HoursMode = HoursMode.ANY
    custom_open_from: Optional[str] = None
    custom_open_to: Optional[str] = None
    min_rating: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None


def parse_min_rating(raw: Optional[str]) -> float:
    """'any' / empty → 0. Otherwise a number in [0, 5] or ValueError."""
    if raw is None or raw.strip() in ("", "any"):
        return 0.0
    try:
        value = float(raw)
    except ValueError:
        raise ValueError('minRating must be between 0 and 5 or "any"') from None
    if not 0 <= value <= 5:
        raise ValueError('minRating must be between 0 and 5 or "any"')
    return value


class SearchHandler:
    """Handles /api/search/*."""

    def __init__(self, repo: ShopRepository, settings: Settings) -> None:
        self._repo = repo
        self._settings = settings

    # ── Shops ─────────────────────────────────────────────────────────────────

    async def search_shops(self, p: SearchParams) -> SearchShopsResponse:
        term = (p.query or "").strip()
        if not term:
            raise ValueError("Search query is required")
        min_rating = parse_min_rating(p.min_rating)
        chip = p.chip.strip().lower() if p.chip and p.chip.strip() and p.chip != "All" else None
        sort_key = SortKey.parse(p.sort_by)

        criteria = FilterCriteria(
            user_lat=p.lat,
            user_lng=p.lng,
            radius_km=p.radius if p.radius is not None else self._settings.default_radius_km,
            min_rating=min_rating,
            min_price=p.min_price,
            max_price=p.max_price,
            hours_mode=p.hours_filter,
            open_from=p.custom_open_from,
            open_to=p.custom_open_to,
            chip=chip,
            sort_by=sort_key,
            fallback_radius_km=self._settings.fallback_radius_km,
            fallback_min_results=self._settings.fallback_min_results,
        )

        shops, saved_ids = await asyncio.gather(
            self._repo.search_shops(term, p.category_id),
            self._repo.saved_shop_ids(p.user_id),
        )
        result = rank(shops, criteria)
        for card in result.cards:
            card.is_saved = card.id in saved_ids
        logger.info("[Search] '%s' → %d/%d shops (radius %.1f)", term[:40], len(result.cards), len(shops), result.search_radius)

        return SearchShopsResponse(
            query=term,
            chip=chip or "All",
            all_menu_categories=self._category_images(result.cards, shops),
            total_results=len(result.cards),
            search_radius=result.search_radius,
            sort_by=sort_key.value,
            filters=SearchFilters(
                hours_filter=p.hours_filter.value,
                custom_open_from=p.custom_open_from,
                custom_open_to=p.custom_open_to,
                min_rating=min_rating,
                min_price=p.min_price,
                max_price=p.max_price,
            ),
            user_location=LatLng(lat=p.lat, lng=p.lng) if criteria.has_location else None,
            shops=result.cards,
        )

    # ── Typeahead ─────────────────────────────────────────────────────────────

    async def suggestions(self, query: Optional[str]) -> SearchSuggestionsResponse:
        term = (query or "").strip()
        if len(term) < MIN_TYPEAHEAD_CHARS:
            return SearchSuggestionsResponse(query=query or "", suggestions=[])
        return SearchSuggestionsResponse(query=term, suggestions=await self._repo.typeahead(term))

    # ── Detail ────────────────────────────────────────────────────────────────

    async def shop_detail(self, shop_id: str, lat: Optional[float], lng: Optional[float]) -> ShopDetailResponse:
        shop, reviews = await self._repo.shop_with_reviews(shop_id)
        rating = round(sum(r.rating for r in reviews) / len(reviews), 1) if reviews else 0.0
        is_open = is_open_now(shop.open_hours, datetime.now()) if shop.open_hours else None
        return ShopDetailResponse(
            id=shop.id,
            name=shop.name,
            description=shop.description,
            image_url=shop.logo_url,
            address=shop.address,
            city=shop.city,
            latitude=shop.latitude,
            longitude=shop.longitude,
            distance_km=distance_km(lat, lng, shop.latitude, shop.longitude),
            category=shop.category,
            rating=rating,
            reviews_count=len(reviews),
            reviews=reviews,
            open_hours=shop.open_hours,
            is_open_now=is_open,
            contact_number=shop.phone_number,
            menu_sections=self._menu_sections(shop),
        )

    # ── History ───────────────────────────────────────────────────────────────

    async def recent(self, user_id: str) -> list[RecentSearch]:
        return await self._repo.recent_searches(self._require_user(user_id))

    async def save(self, req: SaveSearchRequest) -> None:
        if not req.query.strip():
            raise ValueError("Search query is required")
        await self._repo.save_search(req)

    async def delete(self, user_id: str, search_id: str) -> None:
        await self._repo.delete_search(self._require_user(user_id), search_id)

    async def clear(self, user_id: str) -> None:
        removed = await self._repo.clear_searches(self._require_user(user_id))
        logger.info("[Search] cleared %d history rows", removed)

    # ── Private helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _require_user(user_id: Optional[str]) -> str:
        if not user_id:
            raise ValueError("userId is required")
        return user_id

    @staticmethod
    def _category_images(cards: list[ShopCard], shops: list[ShopRecord]) -> list[CategoryImage]:
        """Categories present in the results, each with the first image seen across all matches."""
        images: dict[str, str] = {}
        for shop in shops:
            for m in shop.menus:
                if m.category_name and m.image_url and m.category_name not in images:
                    images[m.category_name] = m.image_url
        names: dict[str, None] = {}
        for card in cards:
            for name in card.menu_categories:
                names.setdefault(name, None)
        return [CategoryImage(name=n, image_url=images.get(n)) for n in names]

    @staticmethod
    def _menu_sections(shop: ShopRecord) -> list[MenuSection]:
        groups: dict[str, list] = {}
        for m in sorted(shop.menus, key=lambda m: m.category_name or ""):
            groups.setdefault(m.category_name or "Others", []).append(m)
        return [MenuSection(category_name=k, items=v) for k, v in groups.items()]
