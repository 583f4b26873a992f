"""
core/behaviours.py – Behaviour registry for suggestion sections.

Each section row names a Behaviour; the registry maps it to a handler that
fetches candidates from the repository and runs the ranking pipeline. Adding a
behaviour = one enum member + one @registry.register handler; routes do not change.
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..models import QuickSnackCategory, ShopRecord
from .geo import bounding_box, distance_km
from .ranking import FilterCriteria, RankingResult, SortKey, rank
from .repository import ShopRepository

logger = logging.getLogger(__name__)


class Behaviour(str, Enum):
    NEAR_ME        = "NEAR_ME"
    CATEGORY_BASED = "CATEGORY_BASED"
    QUICK_SNACK    = "QUICK_SNACK"
    CUSTOM_QUERY   = "CUSTOM_QUERY"
    STATIC         = "STATIC"


class UnknownBehaviour(LookupError):
    pass


class InvalidBehaviourConfig(ValueError):
    pass


# ── Per-behaviour config (section.config JSON) ────────────────────────────────

class BehaviourConfig(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    max_distance_km: Optional[float] = Field(default=None, gt=0)


class NearMeConfig(BehaviourConfig):
    pass


class CategoryConfig(BehaviourConfig):
    main_category_id: Optional[str] = None


class QuickSnackConfig(BehaviourConfig):
    chips: list[str] = Field(default_factory=list)
    min_rating: float = Field(default=0, ge=0, le=5)


class CustomQueryConfig(BehaviourConfig):
    query: str = Field(..., min_length=1)


class StaticConfig(BehaviourConfig):
    pass


@dataclass(frozen=True)
class BehaviourRequest:
    criteria: FilterCriteria
    config: BehaviourConfig
    main_category_id: Optional[str] = None
    chip: Optional[str] = None


Handler = Callable[[BehaviourRequest, ShopRepository], Awaitable[RankingResult]]


@dataclass(frozen=True)
class _Entry:
    handler: Handler
    config_model: type[BehaviourConfig]


class BehaviourRegistry:
    """Behaviour → (handler, config model)."""

    def __init__(self) -> None:
        self._entries: dict[Behaviour, _Entry] = {}

    def register(self, behaviour: Behaviour, config_model: type[BehaviourConfig] = BehaviourConfig):
        def decorator(fn: Handler) -> Handler:
            self._entries[behaviour] = _Entry(fn, config_model)
            return fn
        return decorator

    def validate(self) -> None:
        """Every Behaviour member must have a handler. Called at startup."""
        missing = [b.value for b in Behaviour if b not in self._entries]
        if missing:
            raise RuntimeError(f"No handler registered for behaviours: {', '.join(missing)}")

    def names(self) -> list[str]:
        return [b.value for b in Behaviour if b in self._entries]

    def resolve(self, name: str) -> Behaviour:
        try:
            behaviour = Behaviour(name)
        except ValueError:
            raise UnknownBehaviour(f"Unknown behaviour: {name}") from None
        if behaviour not in self._entries:
            raise UnknownBehaviour(f"Unknown behaviour: {name}")
        return behaviour

    def parse_config(self, name: str, raw: Optional[dict]) -> BehaviourConfig:
        model = self._entries[self.resolve(name)].config_model
        try:
            return model.model_validate(raw or {})
        except ValidationError as e:
            raise InvalidBehaviourConfig(f"Invalid config for {name}: {e.errors()[0]['msg']}") from e

    async def dispatch(
        self,
        name: str,
        criteria: FilterCriteria,
        raw_config: Optional[dict],
        repo: ShopRepository,
        main_category_id: Optional[str] = None,
        chip: Optional[str] = None,
    ) -> RankingResult:
        behaviour = self.resolve(name)
        config = self.parse_config(name, raw_config)
        logger.info("[Behaviour] %s radius=%.1f chip=%s", behaviour.value, criteria.radius_km, chip)
        req = BehaviourRequest(criteria=criteria, config=config, main_category_id=main_category_id, chip=chip)
        return await self._entries[behaviour].handler(req, repo)


registry = BehaviourRegistry()


# ── Handlers ──────────────────────────────────────────────────────────────────

@registry.register(Behaviour.NEAR_ME, NearMeConfig)
async def near_me(req: BehaviourRequest, repo: ShopRepository) -> RankingResult:
    c = req.criteria
    bbox = bounding_box(c.user_lat, c.user_lng, c.radius_km) if c.has_location else None
    shops = await repo.active_shops(bbox)
    return rank(shops, replace(c, sort_by=SortKey.DISTANCE))


@registry.register(Behaviour.CATEGORY_BASED, CategoryConfig)
async def category_based(req: BehaviourRequest, repo: ShopRepository) -> RankingResult:
    category_id = req.main_category_id or req.config.main_category_id
    if not category_id:
        return RankingResult(search_radius=req.criteria.radius_km)
    shops = await repo.shops_in_category(category_id)
    return rank(shops, req.criteria)


def _narrow_menus(shops: list[ShopRecord], targets: list[str]) -> list[ShopRecord]:
    if not targets:
        return shops
    return [
        s.model_copy(update={"menus": [m for m in s.menus if m.category_name in targets]})
        for s in shops
    ]


@registry.register(Behaviour.QUICK_SNACK, QuickSnackConfig)
async def quick_snack(req: BehaviourRequest, repo: ShopRepository) -> RankingResult:
    config: QuickSnackConfig = req.config
    targets = [req.chip] if req.chip else config.chips
    shops = _narrow_menus(await repo.shops_with_menu_categories(targets), targets)
    criteria = replace(
        req.criteria,
        min_rating=max(req.criteria.min_rating, config.min_rating),
        sort_by=SortKey.DISTANCE,
    )
    return rank(shops, criteria)


@registry.register(Behaviour.CUSTOM_QUERY, CustomQueryConfig)
async def custom_query(req: BehaviourRequest, repo: ShopRepository) -> RankingResult:
    shops = await repo.search_shops(req.config.query.strip())
    return rank(shops, req.criteria)


@registry.register(Behaviour.STATIC, StaticConfig)
async def static(req: BehaviourRequest, repo: ShopRepository) -> RankingResult:
    return RankingResult(search_radius=req.criteria.radius_km)


# ── Quick snack: browse by category ───────────────────────────────────────────

async def quick_snack_categories(
    repo: ShopRepository,
    criteria: FilterCriteria,
    config: QuickSnackConfig,
) -> list[QuickSnackCategory]:
    """Chip name → item count over shops passing rating + radius, sorted by name.
    Shops without coordinates are kept."""
    shops = await repo.shops_with_menu_categories(config.chips)
    counts: dict[str, int] = {}
    for shop in shops:
        if (shop.avg_rating or 0) < config.min_rating:
            continue
        if criteria.has_location:
            d = distance_km(criteria.user_lat, criteria.user_lng, shop.latitude, shop.longitude)
            if d is not None and d > criteria.radius_km:
                continue
        for menu in shop.menus:
            name = (menu.category_name or "").strip()
            if not name or (config.chips and name not in config.chips):
                continue
            counts[name] = counts.get(name, 0) + 1
    return [QuickSnackCategory(name=n, item_count=counts[n]) for n in sorted(counts)]
