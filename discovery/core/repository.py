"""
core/repository.py – ShopRepository class.
Responsibility: every database read the discovery features need (plus the
search-history writes), returned as detached pydantic records.

Blocking ORM calls run in the default executor so the event loop is never blocked.
"""
import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session, selectinload

from ..db.models import (
    AppConfig,
    MainCategory,
    Menu,
    Review,
    SavedShop,
    SearchHistory,
    Shop,
    SuggestionSection,
    utcnow,
)
from ..db.session import db_session
from ..models import (
    CategoryOut,
    CategoryRef,
    MenuRecord,
    OfferOut,
    RecentSearch,
    ReviewOut,
    SaveSearchRequest,
    SectionOut,
    ShopRecord,
    SuggestionItem,
)
from .geo import BoundingBox

logger = logging.getLogger(__name__)

SAVED_SHOPS_CAP = 5000
RECENT_SEARCHES_LIMIT = 10
TYPEAHEAD_LIMIT = 10


class NotFound(LookupError):
    """Requested record does not exist (or is inactive)."""


@dataclass(frozen=True)
class ReviewAggregate:
    count: int
    average: float


@dataclass(frozen=True)
class SavedRow:
    shop_id: str
    saved_at: datetime


class ShopRepository:
    """Read-side access to shops, sections, saved shops and search history."""

    def __init__(self, database_url: str) -> None:
        self._url = database_url

    async def _run(self, fn, *args):
        return await asyncio.get_event_loop().run_in_executor(None, fn, *args)

    # ── Public: shop candidates ────────────────────────────────────────────────

    async def active_shops(self, bbox: Optional[BoundingBox] = None) -> list[ShopRecord]:
        """All active shops; `bbox` narrows by coordinates (pre-filter only)."""
        return await self._run(self._fetch_active, bbox)

    async def shops_in_category(self, category_id: str) -> list[ShopRecord]:
        return await self._run(self._fetch_in_category, category_id)

    async def shops_with_menu_categories(self, names: list[str]) -> list[ShopRecord]:
        """Active shops with ≥1 available item in `names` (any available item if empty)."""
        return await self._run(self._fetch_with_menu_categories, list(names))

    async def search_shops(self, term: str, category_id: Optional[str] = None) -> list[ShopRecord]:
        """Text match on shop fields or on its available menu items; rating from reviews."""
        shop_ids = await self._run(self._fetch_menu_match_ids, term)
        shops = await self._run(self._fetch_text_match, term, shop_ids, category_id)
        aggregates = await self.review_aggregates([s.id for s in shops], approved_only=False, digits=1)
        return [self._with_aggregate(s, aggregates.get(s.id)) for s in shops]

    async def shops_by_ids(self, ids: list[str]) -> list[ShopRecord]:
        return await self._run(self._fetch_by_ids, list(ids))

    async def review_aggregates(
        self,
        shop_ids: list[str],
        approved_only: bool = True,
        digits: int = 2,
    ) -> dict[str, ReviewAggregate]:
        if not shop_ids:
            return {}
        return await self._run(self._fetch_review_aggregates, list(shop_ids), approved_only, digits)

    # ── Public: saved shops ────────────────────────────────────────────────────

    async def saved_shops(self, user_id: str) -> list[SavedRow]:
        return await self._run(self._fetch_saved, user_id)

    async def saved_shop_ids(self, user_id: Optional[str]) -> set[str]:
        if not user_id:
            return set()
        return {row.shop_id for row in await self.saved_shops(user_id)}

    # ── Public: sections / config ──────────────────────────────────────────────

    async def sections(self) -> list[SectionOut]:
        return await self._run(self._fetch_sections)

    async def section(self, section_id: str) -> SectionOut:
        section = await self._run(self._fetch_section, section_id)
        if section is None:
            raise NotFound(f"Suggestion section not found: {section_id}")
        return section

    async def global_radius_km(self, default: float) -> float:
        """`search_radius_km` from app_config; `default` unless it is a finite number > 0."""
        raw = await self._run(self._fetch_config_value, "search_radius_km")
        if not raw:
            return default
        try:
            value = float(raw)
        except ValueError:
            logger.warning("Ignoring non-numeric search_radius_km=%r", raw)
            return default
        if not math.isfinite(value) or value <= 0:
            logger.warning("Ignoring out-of-range search_radius_km=%r", raw)
            return default
        return value

    # ── Public: categories ─────────────────────────────────────────────────────

    async def categories(self, bbox: Optional[BoundingBox] = None) -> list[CategoryOut]:
        """Active main categories; with `bbox`, only those with an active shop inside it."""
        return await self._run(self._fetch_categories, bbox)

    # ── Public: typeahead / detail / reviews ───────────────────────────────────

    async def typeahead(self, term: str) -> list[SuggestionItem]:
        shops, categories, items = await asyncio.gather(
            self._run(self._fetch_shop_names, term),
            self._run(self._fetch_category_names, term),
            self._run(self._fetch_menu_names, term),
        )
        return self._dedupe_by_name([*shops, *categories, *items], TYPEAHEAD_LIMIT)

    async def shop_with_reviews(self, shop_id: str, review_limit: Optional[int] = 10) -> tuple[ShopRecord, list[ReviewOut]]:
        found = await self._run(self._fetch_shop_with_reviews, shop_id, review_limit)
        if found is None:
            raise NotFound(f"Shop not found: {shop_id}")
        return found

    # ── Public: search history ─────────────────────────────────────────────────

    async def recent_searches(self, user_id: str) -> list[RecentSearch]:
        return await self._run(self._fetch_recent, user_id)

    async def save_search(self, req: SaveSearchRequest) -> None:
        await self._run(self._do_save_search, req)

    async def delete_search(self, user_id: str, search_id: str) -> None:
        deleted = await self._run(self._do_delete_search, user_id, search_id)
        if not deleted:
            raise NotFound("Search history not found")

    async def clear_searches(self, user_id: str) -> int:
        return await self._run(self._do_clear_searches, user_id)

    # ── Private: shop queries ──────────────────────────────────────────────────

    @staticmethod
    def _shop_query(session: Session):
        return session.query(Shop).options(
            selectinload(Shop.menus),
            selectinload(Shop.category),
        )

    @staticmethod
    def _bbox_filter(bbox: BoundingBox) -> list:
        """Shop coordinate conditions for `bbox`; two longitude ranges across ±180°."""
        lng_match = [Shop.longitude.between(lo, hi) for lo, hi in bbox.lng_ranges()]
        return [Shop.latitude.between(bbox.min_lat, bbox.max_lat), or_(*lng_match)]

    def _fetch_active(self, bbox: Optional[BoundingBox]) -> list[ShopRecord]:
        with db_session(self._url) as session:
            q = self._shop_query(session).filter(Shop.is_active.is_(True))
            if bbox is not None:
                q = q.filter(*self._bbox_filter(bbox))
            return [self._orm_to_record(s) for s in q.all()]

    def _fetch_in_category(self, category_id: str) -> list[ShopRecord]:
        with db_session(self._url) as session:
            rows = (
                self._shop_query(session)
                .filter(Shop.is_active.is_(True), Shop.category_id == category_id)
                .all()
            )
            return [self._orm_to_record(s) for s in rows]

    def _fetch_with_menu_categories(self, names: list[str]) -> list[ShopRecord]:
        menu_cond = Menu.is_available.is_(True)
        if names:
            menu_cond = menu_cond & Menu.category_name.in_(names)
        with db_session(self._url) as session:
            rows = (
                self._shop_query(session)
                .filter(Shop.is_active.is_(True), Shop.menus.any(menu_cond))
                .all()
            )
            return [self._orm_to_record(s) for s in rows]

    def _fetch_menu_match_ids(self, term: str) -> list[str]:
        like = f"%{term}%"
        with db_session(self._url) as session:
            rows = (
                session.query(Menu.shop_id)
                .filter(
                    Menu.is_available.is_(True),
                    or_(Menu.item_name.ilike(like), Menu.description.ilike(like), Menu.category_name.ilike(like)),
                )
                .distinct()
                .all()
            )
        return [r.shop_id for r in rows]

    def _fetch_text_match(self, term: str, shop_ids: list[str], category_id: Optional[str]) -> list[ShopRecord]:
        like = f"%{term}%"
        text_match = [
            Shop.name.ilike(like),
            Shop.description.ilike(like),
            Shop.address.ilike(like),
            Shop.city.ilike(like),
        ]
        if shop_ids:
            text_match.append(Shop.id.in_(shop_ids))
        with db_session(self._url) as session:
            q = self._shop_query(session).filter(Shop.is_active.is_(True), or_(*text_match))
            if category_id:
                q = q.filter(Shop.category_id == category_id)
            return [self._orm_to_record(s) for s in q.all()]

    def _fetch_by_ids(self, ids: list[str]) -> list[ShopRecord]:
        """Active shops in `ids`, with primary image + active offers, in `ids` order."""
        if not ids:
            return []
        with db_session(self._url) as session:
            rows = (
                self._shop_query(session)
                .options(selectinload(Shop.images), selectinload(Shop.offers))
                .filter(Shop.id.in_(ids), Shop.is_active.is_(True))
                .all()
            )
            row_map = {r.id: self._orm_to_record(r, with_extras=True) for r in rows}
        return [row_map[i] for i in ids if i in row_map]

    def _fetch_review_aggregates(self, shop_ids: list[str], approved_only: bool, digits: int) -> dict[str, ReviewAggregate]:
        with db_session(self._url) as session:
            q = session.query(
                Review.shop_id,
                func.count(Review.id).label("total"),
                func.avg(Review.rating).label("mean"),
            ).filter(Review.shop_id.in_(shop_ids))
            if approved_only:
                q = q.filter(Review.is_approved.is_(True))
            rows = q.group_by(Review.shop_id).all()
        return {
            r.shop_id: ReviewAggregate(
                count=r.total or 0,
                average=round(max(0.0, min(5.0, float(r.mean or 0))), digits),
            )
            for r in rows
        }

    # ── Private: saved / sections / config ─────────────────────────────────────

    def _fetch_saved(self, user_id: str) -> list[SavedRow]:
        with db_session(self._url) as session:
            rows = (
                session.query(SavedShop.shop_id, SavedShop.saved_at)
                .filter(SavedShop.user_id == user_id)
                .order_by(SavedShop.saved_at.desc())
                .limit(SAVED_SHOPS_CAP)
                .all()
            )
        return [SavedRow(shop_id=r.shop_id, saved_at=r.saved_at) for r in rows]

    def _fetch_sections(self) -> list[SectionOut]:
        with db_session(self._url) as session:
            rows = (
                session.query(SuggestionSection)
                .filter(SuggestionSection.is_active.is_(True))
                .order_by(SuggestionSection.sort_order.asc())
                .all()
            )
            return [self._orm_to_section(r) for r in rows]

    def _fetch_section(self, section_id: str) -> Optional[SectionOut]:
        with db_session(self._url) as session:
            row = session.get(SuggestionSection, section_id)
            if row is None or not row.is_active:
                return None
            return self._orm_to_section(row)

    def _fetch_config_value(self, key: str) -> Optional[str]:
        with db_session(self._url) as session:
            row = session.get(AppConfig, key)
            return row.value if row else None

    def _fetch_categories(self, bbox: Optional[BoundingBox]) -> list[CategoryOut]:
        with db_session(self._url) as session:
            q = session.query(MainCategory).filter(MainCategory.is_active.is_(True))
            if bbox is not None:
                q = q.filter(MainCategory.shops.any(and_(Shop.is_active.is_(True), *self._bbox_filter(bbox))))
            return [CategoryOut.model_validate(c) for c in q.order_by(MainCategory.name.asc()).all()]

    # ── Private: typeahead ─────────────────────────────────────────────────────

    def _fetch_shop_names(self, term: str) -> list[SuggestionItem]:
        like = f"%{term}%"
        with db_session(self._url) as session:
            rows = (
                session.query(Shop.id, Shop.name)
                .filter(
                    Shop.is_active.is_(True),
                    or_(Shop.name.ilike(like), Shop.description.ilike(like), Shop.address.ilike(like), Shop.city.ilike(like)),
                )
                .limit(5)
                .all()
            )
        return [SuggestionItem(id=r.id, name=r.name, type="shop") for r in rows]

    def _fetch_category_names(self, term: str) -> list[SuggestionItem]:
        with db_session(self._url) as session:
            rows = (
                session.query(MainCategory.id, MainCategory.name)
                .filter(MainCategory.is_active.is_(True), MainCategory.name.ilike(f"%{term}%"))
                .limit(3)
                .all()
            )
        return [SuggestionItem(id=r.id, name=r.name, type="category") for r in rows]

    def _fetch_menu_names(self, term: str) -> list[SuggestionItem]:
        like = f"%{term}%"
        with db_session(self._url) as session:
            rows = (
                session.query(Menu.id, Menu.item_name, Menu.shop_id)
                .filter(
                    Menu.is_available.is_(True),
                    or_(Menu.item_name.ilike(like), Menu.description.ilike(like), Menu.category_name.ilike(like)),
                )
                .limit(5)
                .all()
            )
        return [SuggestionItem(id=r.id, name=r.item_name, type="menu_item", shop_id=r.shop_id) for r in rows]

    # ── Private: detail ────────────────────────────────────────────────────────

    def _fetch_shop_with_reviews(self, shop_id: str, review_limit: Optional[int]):
        with db_session(self._url) as session:
            shop = self._shop_query(session).filter(Shop.id == shop_id).one_or_none()
            if shop is None or not shop.is_active:
                return None
            q = (
                session.query(Review)
                .filter(Review.shop_id == shop_id)
                .order_by(Review.created_at.desc())
            )
            if review_limit is not None:
                q = q.limit(review_limit)
            reviews = [ReviewOut.model_validate(r) for r in q.all()]
            return self._orm_to_record(shop), reviews

    # ── Private: search history ────────────────────────────────────────────────

    def _fetch_recent(self, user_id: str) -> list[RecentSearch]:
        with db_session(self._url) as session:
            rows = (
                session.query(SearchHistory)
                .filter(SearchHistory.user_id == user_id)
                .order_by(SearchHistory.searched_at.desc())
                .limit(RECENT_SEARCHES_LIMIT)
                .all()
            )
            return [RecentSearch.model_validate(r) for r in rows]

    def _do_save_search(self, req: SaveSearchRequest) -> None:
        """Same user + same query text → refresh the existing row."""
        query = req.query.strip()
        with db_session(self._url) as session:
            existing = (
                session.query(SearchHistory)
                .filter(SearchHistory.user_id == req.user_id, SearchHistory.query == query)
                .first()
            )
            if existing is not None:
                existing.target_id = req.target_id if req.target_id is not None else existing.target_id
                existing.target_name = req.target_name if req.target_name is not None else existing.target_name
                existing.target_type = req.target_type if req.target_type is not None else existing.target_type
                existing.searched_at = utcnow()
            else:
                session.add(SearchHistory(
                    user_id=req.user_id,
                    query=query,
                    target_id=req.target_id or None,
                    target_name=req.target_name or None,
                    target_type=req.target_type or None,
                ))

    def _do_delete_search(self, user_id: str, search_id: str) -> bool:
        with db_session(self._url) as session:
            row = (
                session.query(SearchHistory)
                .filter(SearchHistory.id == search_id, SearchHistory.user_id == user_id)
                .first()
            )
            if row is None:
                return False
            session.delete(row)
            return True

    def _do_clear_searches(self, user_id: str) -> int:
        with db_session(self._url) as session:
            return session.query(SearchHistory).filter(SearchHistory.user_id == user_id).delete()

    # ── Private: converters ────────────────────────────────────────────────────

    @staticmethod
    def _orm_to_record(shop: Shop, with_extras: bool = False) -> ShopRecord:
        record = ShopRecord(
            id=shop.id,
            name=shop.name,
            description=shop.description or "",
            address=shop.address or "",
            city=shop.city or "",
            latitude=shop.latitude,
            longitude=shop.longitude,
            logo_url=shop.logo_url,
            avg_rating=shop.avg_rating,
            review_count=shop.review_count,
            open_hours=shop.open_hours,
            phone_number=shop.phone_number,
            created_at=shop.created_at,
            category=CategoryRef(id=shop.category.id, name=shop.category.name) if shop.category else None,
            menus=[MenuRecord.model_validate(m) for m in shop.menus if m.is_available],
        )
        if with_extras:
            primary = next((img.image_url for img in shop.images if img.is_primary), None)
            record.primary_image_url = primary
            record.offers = [OfferOut.model_validate(o) for o in shop.offers if o.is_active][:5]
        return record

    @staticmethod
    def _orm_to_section(row: SuggestionSection) -> SectionOut:
        return SectionOut(
            id=row.id,
            title=row.title,
            subtitle=row.subtitle,
            image_url=row.image_url,
            type=row.type,
            main_category_id=row.main_category_id,
            config=row.config or {},
        )

    @staticmethod
    def _with_aggregate(shop: ShopRecord, agg: Optional[ReviewAggregate]) -> ShopRecord:
        if agg is None:
            return shop.model_copy(update={"avg_rating": 0.0, "review_count": 0})
        return shop.model_copy(update={"avg_rating": agg.average, "review_count": agg.count})

    @staticmethod
    def _dedupe_by_name(items: Iterable[SuggestionItem], limit: int) -> list[SuggestionItem]:
        seen: set[str] = set()
        unique: list[SuggestionItem] = []
        for item in items:
            key = item.name.lower()
            if key in seen:
                continue
            seen.add(key)
            unique.append(item)
        return unique[:limit]
