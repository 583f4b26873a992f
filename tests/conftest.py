"""
tests/conftest.py – shared fixtures for all tests.

DATABASE_URL points at a throwaway SQLite file before `discovery` is imported,
so the singletons in discovery.deps bind to it.
"""
import os
import tempfile
from datetime import timedelta
from pathlib import Path

_TMP_DIR = Path(tempfile.mkdtemp(prefix="discovery-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["GEMINI_API_KEY"] = ""

import pytest

from discovery.config import settings
from discovery.db.models import (
    AppConfig,
    Base,
    MainCategory,
    Menu,
    Review,
    SavedShop,
    SearchHistory,
    Shop,
    ShopImage,
    SuggestionSection,
    utcnow,
)
from discovery.db.session import _get_engine, db_session
from discovery.models import MenuRecord, ShopRecord

# Chennai Central
CENTER_LAT = 13.0827
CENTER_LNG = 80.2707
NOW = utcnow().replace(microsecond=0)


# ── Record builders (pure tests) ───────────────────────────────────────────────

def make_menu(**kw) -> MenuRecord:
    defaults = dict(id="m-1", item_name="Masala Dosa", price=120, category_name="Dosa")
    defaults.update(kw)
    return MenuRecord(**defaults)


def make_shop(**kw) -> ShopRecord:
    defaults = dict(
        id="s-1",
        name="Test Shop",
        latitude=CENTER_LAT,
        longitude=CENTER_LNG,
        avg_rating=4.0,
        review_count=3,
        open_hours="9:00 AM - 9:00 PM",
        menus=[make_menu()],
    )
    defaults.update(kw)
    return ShopRecord(**defaults)


def shop_at(shop_id: str, lat_offset: float, **kw) -> ShopRecord:
    """Shop north of the center; 0.01° of latitude ≈ 1.11 km."""
    return make_shop(id=shop_id, name=shop_id, latitude=CENTER_LAT + lat_offset, **kw)


# ── Seeded database ────────────────────────────────────────────────────────────

def _seed(session) -> None:
    restaurants = MainCategory(id="cat-rest", name="Restaurants")
    bakery = MainCategory(id="cat-bakery", name="Bakery", image_url="https://img.test/bakery.png")
    sweets = MainCategory(id="cat-sweets", name="Sweets")
    retired = MainCategory(id="cat-retired", name="Retired", is_active=False)
    session.add_all([restaurants, bakery, sweets, retired])
    session.flush()

    session.add_all([
        Shop(
            id="shop-marina", name="Marina Dosa Corner", address="Beach Road", city="Chennai",
            latitude=CENTER_LAT + 0.01, longitude=CENTER_LNG, avg_rating=4.5, review_count=2,
            open_hours="7:00 AM - 10:00 PM", phone_number="044-1111", category_id="cat-rest",
            logo_url="https://img.test/marina.png",
            menus=[
                Menu(id="m-masala", item_name="Masala Dosa", price=120, category_name="Dosa",
                     image_url="https://img.test/dosa.png"),
                Menu(id="m-coffee", item_name="Filter Coffee", price=40, category_name="Beverages"),
                Menu(id="m-old", item_name="Rava Dosa", price=90, category_name="Dosa", is_available=False),
            ],
            reviews=[
                Review(id="r-m1", rating=5, comment="Crispy", created_at=NOW - timedelta(days=2)),
                Review(id="r-m2", rating=4, comment="Good", created_at=NOW - timedelta(days=1)),
            ],
        ),
        Shop(
            id="shop-egmore", name="Egmore Bakes", city="Chennai",
            latitude=CENTER_LAT + 0.03, longitude=CENTER_LNG, avg_rating=4.0, review_count=1,
            open_hours="9:00-21:00", category_id="cat-bakery",
            menus=[
                Menu(id="m-puff", item_name="Veg Puff", price=30, category_name="Snacks", is_quick_snack=True),
                Menu(id="m-cake", item_name="Chocolate Cake", price=250, category_name="Desserts"),
            ],
            reviews=[Review(id="r-e1", rating=4, created_at=NOW)],
        ),
        Shop(
            id="shop-adyar", name="Adyar Chaat House", city="Chennai",
            latitude=CENTER_LAT - 0.05, longitude=CENTER_LNG, avg_rating=3.0, review_count=1,
            open_hours="4 PM - 11 PM", category_id="cat-rest",
            menus=[
                Menu(id="m-pani", item_name="Pani Puri", price=60, category_name="Snacks"),
                Menu(id="m-samosa", item_name="Samosa", price=25, category_name="Snacks"),
            ],
            reviews=[
                Review(id="r-a1", rating=3, created_at=NOW - timedelta(days=3)),
                Review(id="r-a2", rating=1, is_approved=False, created_at=NOW - timedelta(days=4)),
            ],
        ),
        Shop(
            id="shop-tambaram", name="Tambaram Tiffin", city="Chennai",
            latitude=CENTER_LAT - 0.12, longitude=CENTER_LNG, avg_rating=5.0, review_count=1,
            category_id="cat-rest",
            menus=[Menu(id="m-idli", item_name="Idli", price=50, category_name="Tiffin")],
            reviews=[Review(id="r-t1", rating=5, created_at=NOW)],
        ),
        Shop(
            id="shop-vellore", name="Vellore Dosa Camp", city="Vellore",
            latitude=12.9165, longitude=79.1325,
            menus=[Menu(id="m-ghee", item_name="Ghee Roast", price=110, category_name="Dosa")],
        ),
        Shop(
            id="shop-cloud", name="Cloud Kitchen Dosa", city="Chennai",
            menus=[Menu(id="m-plain", item_name="Plain Dosa", price=70, category_name="Dosa")],
        ),
        Shop(
            id="shop-closed", name="Closed Dosa Place", is_active=False,
            latitude=CENTER_LAT + 0.001, longitude=CENTER_LNG, category_id="cat-rest",
            menus=[Menu(id="m-closed", item_name="Onion Dosa", price=80, category_name="Dosa")],
        ),
    ])
    # shop rows must exist before anything that references them by id
    session.flush()
    session.add(ShopImage(shop_id="shop-marina", image_url="https://img.test/marina-front.jpg", is_primary=True))

    session.add_all([
        SuggestionSection(id="sec-hidden", title="Hidden", type="NEAR_ME", sort_order=0, is_active=False),
        SuggestionSection(id="sec-near", title="Near You", type="NEAR_ME", sort_order=1,
                          config={"maxDistanceKm": 10}),
        SuggestionSection(id="sec-snack", title="Quick Bites", type="QUICK_SNACK", sort_order=2,
                          config={"chips": ["Snacks", "Beverages"], "minRating": 0}),
        SuggestionSection(id="sec-cat", title="Restaurants", type="CATEGORY_BASED", sort_order=3,
                          main_category_id="cat-rest"),
        SuggestionSection(id="sec-query", title="Dosa Spots", type="CUSTOM_QUERY", sort_order=4,
                          config={"query": "dosa"}),
        SuggestionSection(id="sec-static", title="Banner", type="STATIC", sort_order=5),
        SuggestionSection(id="sec-bogus", title="Trending", type="TRENDING", sort_order=6),
        SuggestionSection(id="sec-badcfg", title="Broken", type="CUSTOM_QUERY", sort_order=7, config={}),
    ])

    session.add_all([
        SavedShop(user_id="user-1", shop_id="shop-marina", saved_at=NOW - timedelta(days=2)),
        SavedShop(user_id="user-1", shop_id="shop-adyar", saved_at=NOW - timedelta(days=1)),
        SavedShop(user_id="user-1", shop_id="shop-vellore", saved_at=NOW - timedelta(days=3)),
    ])

    session.add_all([
        SearchHistory(id="h-old", user_id="user-1", query="idli", searched_at=NOW - timedelta(hours=5)),
        SearchHistory(id="h-new", user_id="user-1", query="dosa", searched_at=NOW - timedelta(hours=1)),
    ])


@pytest.fixture
def seeded_db():
    """Fresh schema + sample data for every test. Yields the database URL."""
    url = settings.database_url
    engine = _get_engine(url)
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    with db_session(url) as session:
        _seed(session)
    yield url


@pytest.fixture
def set_app_config(seeded_db):
    def _set(key: str, value: str) -> None:
        with db_session(seeded_db) as session:
            session.merge(AppConfig(key=key, value=value))
    return _set


# Taveuni, Fiji: the 180° meridian runs through the island.
DATELINE_LAT = -16.5
DATELINE_WEST_LNG = 179.99
DATELINE_EAST_LNG = -179.99


@pytest.fixture
def dateline_shop(seeded_db):
    """One shop just east of ±180°; a user at DATELINE_WEST_LNG is ~2.13 km away."""
    with db_session(seeded_db) as session:
        session.add(Shop(
            id="shop-taveuni", name="Taveuni Roti Hut", city="Taveuni",
            latitude=DATELINE_LAT, longitude=DATELINE_EAST_LNG, avg_rating=4.2, category_id="cat-sweets",
            menus=[Menu(id="m-roti", item_name="Roti Parcel", price=6, category_name="Roti")],
        ))
    return "shop-taveuni"
