"""
handlers/suggest_handler.py – SuggestHandler class.
Responsibility: home-screen suggestion sections and the shops behind each one.
"""
import logging
from typing import Optional

from ..config import Settings
from ..core.behaviours import Behaviour, BehaviourRegistry, QuickSnackConfig, quick_snack_categories
from ..core.ranking import FilterCriteria, paginate
from ..core.repository import NotFound, ShopRepository
from ..models import (
    QuickSnackCategoriesResponse,
    SectionRef,
    SectionShopsResponse,
    SectionsResponse,
)

logger = logging.getLogger(__name__)

QUICK_SNACK_DEFAULT_RADIUS_KM = 5.0


class SuggestHandler:
    """Handles /api/suggestions/*."""

    def __init__(self, repo: ShopRepository, registry: BehaviourRegistry, settings: Settings) -> None:
        self._repo = repo
        self._registry = registry
        self._settings = settings

    async def sections(self) -> SectionsResponse:
        return SectionsResponse(sections=await self._repo.sections())

    async def section_shops(
        self,
        section_id: str,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        radius: Optional[float] = None,
        user_id: Optional[str] = None,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> SectionShopsResponse:
        section = await self._repo.section(section_id)
        config = self._registry.parse_config(section.type, section.config)
        radius_km = await self._radius(radius, config.max_distance_km, self._settings.default_radius_km)

        result = await self._registry.dispatch(
            section.type,
            FilterCriteria(user_lat=lat, user_lng=lng, radius_km=radius_km),
            section.config,
            self._repo,
            main_category_id=section.main_category_id,
            chip=category,
        )
        logger.info("[Suggest] %s '%s' → %d shops (radius %.1f)", section.type, section.title, len(result.cards), result.search_radius)
        cards = paginate(result.cards, limit, offset)
        if user_id:
            saved_ids = await self._repo.saved_shop_ids(user_id)
            for card in cards:
                card.is_saved = card.id in saved_ids

        return SectionShopsResponse(
            section=SectionRef(id=section.id, title=section.title, type=section.type),
            total_results=len(result.cards),
            search_radius=result.search_radius,
            limit=limit,
            offset=offset,
            shops=cards,
        )

    async def quick_snack_categories(
        self,
        section_id: str,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        radius: Optional[float] = None,
    ) -> QuickSnackCategoriesResponse:
        section = await self._repo.section(section_id)
        if section.type != Behaviour.QUICK_SNACK.value:
            raise NotFound(f"Quick snack section not found: {section_id}")
        config: QuickSnackConfig = self._registry.parse_config(section.type, section.config)
        radius_km = await self._radius(radius, config.max_distance_km, QUICK_SNACK_DEFAULT_RADIUS_KM)

        categories = await quick_snack_categories(
            self._repo,
            FilterCriteria(user_lat=lat, user_lng=lng, radius_km=radius_km),
            config,
        )
        return QuickSnackCategoriesResponse(section_id=section.id, title=section.title, categories=categories)

    async def _radius(self, requested: Optional[float], configured: Optional[float], default: float) -> float:
        """Request param → section config → app_config → default."""
        if requested is not None:
            return requested
        if configured is not None:
            return configured
        return await self._repo.global_radius_km(default)
