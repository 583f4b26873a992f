"""
core/formatter.py – ShopRecord → ShopCard projection.
Pure: never mutates the record, same input → same card.
"""
from typing import Iterable, Optional

from ..models import FeaturedMenuItem, MenuRecord, ShopCard, ShopRecord

MAX_FEATURED_ITEMS = 5


def price_range(menus: Iterable[MenuRecord]) -> tuple[Optional[float], Optional[float]]:
    prices = [m.price for m in menus if m.price is not None]
    if not prices:
        return None, None
    return min(prices), max(prices)


def menu_categories(menus: Iterable[MenuRecord]) -> list[str]:
    """Distinct non-empty category names, first-seen order."""
    seen: dict[str, None] = {}
    for m in menus:
        if m.category_name:
            seen.setdefault(m.category_name, None)
    return list(seen)


def featured_items(menus: list[MenuRecord], categories: list[str]) -> list[FeaturedMenuItem]:
    featured = []
    for name in categories[:MAX_FEATURED_ITEMS]:
        first = next((m for m in menus if m.category_name == name), None)
        featured.append(FeaturedMenuItem(category_name=name, image_url=first.image_url if first else None))
    return featured


def format_card(shop: ShopRecord) -> ShopCard:
    min_price, max_price = price_range(shop.menus)
    categories = menu_categories(shop.menus)
    tags = ([shop.category.name] if shop.category and shop.category.name else []) + categories

    return ShopCard(
        id=shop.id,
        name=shop.name,
        description=shop.description,
        address=shop.address,
        city=shop.city,
        latitude=shop.latitude,
        longitude=shop.longitude,
        image_url=shop.logo_url,
        rating=shop.avg_rating or 0,
        reviews_count=shop.review_count or 0,
        open_hours=shop.open_hours,
        contact_number=shop.phone_number,
        min_price=min_price,
        max_price=max_price,
        menu_categories=categories,
        category=shop.category,
        tags=tags,
        featured_menu_items=featured_items(shop.menus, categories),
    )
