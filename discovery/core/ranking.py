"""
core/ranking.py – Ranking pipeline: annotate → filter → radius → sort → truncate.

Input is an already-fetched list of ShopRecord; output is an ordered list of
ShopCard. Bad per-shop data (no coordinates, no hours, no prices) only affects
that shop: it gets null fields or is filtered out. rank() never raises for it.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from ..models import MenuRecord, ShopCard, ShopRecord
from .formatter import format_card
from .geo import distance_km
from .hours import is_open_now, within_custom_hours

logger = logging.getLogger(__name__)


class SortKey(str, Enum):
    DISTANCE  = "distance"
    RATING    = "rating"
    PRICE     = "price"
    RELEVANCE = "relevance"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortKey":
        """Unknown / empty → RELEVANCE (keep fetch order)."""
        try:
            return cls(value)
        except ValueError:
            return cls.RELEVANCE


class HoursMode(str, Enum):
    ANY      = "any"
    OPEN_NOW = "openNow"
    CUSTOM   = "custom"


@dataclass(frozen=True)
class FilterCriteria:
    user_lat: Optional[float] = None
    user_lng: Optional[float] = None
    radius_km: float = 7.0
    min_rating: float = 0.0
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    hours_mode: HoursMode = HoursMode.ANY
    open_from: Optional[str] = None
    open_to: Optional[str] = None
    chip: Optional[str] = None
    sort_by: SortKey = SortKey.RELEVANCE
    limit: Optional[int] = None
    # Widen once to this radius when fewer than fallback_min_results survive.
    fallback_radius_km: Optional[float] = None
    fallback_min_results: int = 5

    @property
    def has_location(self) -> bool:
        return self.user_lat is not None and self.user_lng is not None


@dataclass
class RankingResult:
    cards: list[ShopCard] = field(default_factory=list)
    search_radius: float = 0.0
    widened: bool = False


# ── Filters ───────────────────────────────────────────────────────────────────

def _passes_rating(card: ShopCard, min_rating: float) -> bool:
    return min_rating <= 0 or card.rating >= min_rating


def _passes_price(card: ShopCard, min_price: Optional[float], max_price: Optional[float]) -> bool:
    """[card.min, card.max] must overlap [min_price, max_price]; unset bound = open."""
    if min_price is not None and (card.max_price is None or card.max_price < min_price):
        return False
    if max_price is not None and (card.min_price is None or card.min_price > max_price):
        return False
    return True


def _passes_hours(card: ShopCard, criteria: FilterCriteria, now: datetime) -> bool:
    if criteria.hours_mode == HoursMode.OPEN_NOW:
        return is_open_now(card.open_hours, now)
    if criteria.hours_mode == HoursMode.CUSTOM:
        return within_custom_hours(card.open_hours, criteria.open_from, criteria.open_to, now)
    return True


def chip_menus(menus: Iterable[MenuRecord], chip: str) -> list[MenuRecord]:
    """Items whose category equals the chip, or whose name contains it (case-insensitive)."""
    needle = chip.strip().lower()
    return [
        m for m in menus
        if (m.category_name and m.category_name.lower() == needle)
        or (m.item_name and needle in m.item_name.lower())
    ]


def within_radius(cards: list[ShopCard], radius_km: float) -> list[ShopCard]:
    return [c for c in cards if c.distance_km is not None and c.distance_km <= radius_km]


# ── Sort / page ───────────────────────────────────────────────────────────────

def sort_cards(cards: list[ShopCard], key: SortKey) -> list[ShopCard]:
    """Stable: ties keep input order. Null distance / price go last."""
    if key == SortKey.DISTANCE:
        return sorted(cards, key=lambda c: (c.distance_km is None, c.distance_km or 0.0))
    if key == SortKey.RATING:
        return sorted(cards, key=lambda c: -(c.rating or 0.0))
    if key == SortKey.PRICE:
        return sorted(cards, key=lambda c: (c.min_price is None, c.min_price or 0.0))
    return list(cards)


def paginate(cards: list[ShopCard], limit: Optional[int], offset: int = 0) -> list[ShopCard]:
    offset = max(offset, 0)
    if limit is None:
        return cards[offset:]
    return cards[offset:offset + limit]


# ── Pipeline ──────────────────────────────────────────────────────────────────

def annotate(shop: ShopRecord, criteria: FilterCriteria) -> ShopCard:
    card = format_card(shop)
    if criteria.has_location:
        card.distance_km = distance_km(criteria.user_lat, criteria.user_lng, shop.latitude, shop.longitude)
    return card


def rank(
    shops: Iterable[ShopRecord],
    criteria: FilterCriteria,
    now: Optional[datetime] = None,
) -> RankingResult:
    now = now or datetime.now()
    candidates: list[ShopCard] = []

    for shop in shops:
        card = annotate(shop, criteria)
        if criteria.chip:
            matched = chip_menus(shop.menus, criteria.chip)
            if not matched:
                continue
            card.chip_menus = matched
        if not _passes_rating(card, criteria.min_rating):
            continue
        if not _passes_price(card, criteria.min_price, criteria.max_price):
            continue
        if not _passes_hours(card, criteria, now):
            continue
        candidates.append(card)

    radius = criteria.radius_km
    widened = False
    if criteria.has_location:
        in_radius = within_radius(candidates, radius)
        fallback = criteria.fallback_radius_km
        if fallback is not None and fallback > radius and len(in_radius) < criteria.fallback_min_results:
            logger.info("[Rank] %d results within %.1f km, widening to %.1f km", len(in_radius), radius, fallback)
            radius = fallback
            widened = True
            in_radius = within_radius(candidates, radius)
        candidates = in_radius

    ordered = sort_cards(candidates, criteria.sort_by)
    if criteria.limit is not None:
        ordered = ordered[:criteria.limit]
    return RankingResult(cards=ordered, search_radius=radius, widened=widened)
