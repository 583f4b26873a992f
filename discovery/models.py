"""
models.py – Pydantic schemas for request/response and in-memory shop records.
JSON uses camelCase (alias), Python code uses snake_case.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ── Records (read from DB, detached from the session) ─────────────────────────

class CategoryRef(CamelModel):
    id: Optional[str] = None
    name: str


class MenuRecord(CamelModel):
    id: str
    item_name: str
    price: Optional[float] = None
    category_name: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = ""
    is_quick_snack: bool = False


class OfferOut(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None


class ShopRecord(CamelModel):
    """A Shop row plus its available menus."""
    id: str
    name: str
    description: Optional[str] = ""
    address: Optional[str] = ""
    city: Optional[str] = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    logo_url: Optional[str] = None
    primary_image_url: Optional[str] = None
    avg_rating: Optional[float] = None
    review_count: Optional[int] = None
    open_hours: Optional[str] = None
    phone_number: Optional[str] = None
    created_at: Optional[datetime] = None
    category: Optional[CategoryRef] = None
    menus: List[MenuRecord] = Field(default_factory=list)
    offers: List[OfferOut] = Field(default_factory=list)


# ── Shop card (ranked candidate) ──────────────────────────────────────────────

class FeaturedMenuItem(CamelModel):
    category_name: str
    image_url: Optional[str] = None


class ShopCard(CamelModel):
    id: str
    name: str
    description: Optional[str] = ""
    address: Optional[str] = ""
    city: Optional[str] = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image_url: Optional[str] = None
    rating: float = 0
    reviews_count: int = 0
    open_hours: Optional[str] = None
    contact_number: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    menu_categories: List[str] = Field(default_factory=list)
    distance_km: Optional[float] = None
    category: Optional[CategoryRef] = None
    tags: List[str] = Field(default_factory=list)
    featured_menu_items: List[FeaturedMenuItem] = Field(default_factory=list)
    is_saved: bool = False
    chip_menus: Optional[List[MenuRecord]] = None


# ── /api/search ───────────────────────────────────────────────────────────────

class LatLng(CamelModel):
    lat: float
    lng: float


class CategoryImage(CamelModel):
    name: str
    image_url: Optional[str] = None


class SearchFilters(CamelModel):
    hours_filter: str
    custom_open_from: Optional[str] = None
    custom_open_to: Optional[str] = None
    min_rating: float
    min_price: Optional[float] = None
    max_price: Optional[float] = None


class SearchShopsResponse(CamelModel):
    query: str
    chip: str
    all_menu_categories: List[CategoryImage]
    total_results: int
    search_radius: float
    sort_by: str
    filters: SearchFilters
    user_location: Optional[LatLng] = None
    shops: List[ShopCard]


class SuggestionItem(CamelModel):
    id: str
    name: str
    type: Literal["shop", "category", "menu_item"]
    shop_id: Optional[str] = None


class SearchSuggestionsResponse(CamelModel):
    query: str
    suggestions: List[SuggestionItem]


class ReviewOut(CamelModel):
    id: str
    rating: int
    comment: Optional[str] = None
    created_at: datetime


class MenuSection(CamelModel):
    category_name: str
    items: List[MenuRecord]


class ShopDetailResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = ""
    image_url: Optional[str] = None
    address: Optional[str] = ""
    city: Optional[str] = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_km: Optional[float] = None
    category: Optional[CategoryRef] = None
    rating: float
    reviews_count: int
    reviews: List[ReviewOut]
    open_hours: Optional[str] = None
    is_open_now: Optional[bool] = None
    contact_number: Optional[str] = None
    menu_sections: List[MenuSection]


class RecentSearch(CamelModel):
    id: str
    query: str
    target_id: Optional[str] = None
    target_name: Optional[str] = None
    target_type: Optional[str] = None
    searched_at: datetime


class RecentSearchesResponse(CamelModel):
    searches: List[RecentSearch]


class SaveSearchRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    query: str = Field(..., min_length=1)
    target_id: Optional[str] = None
    target_name: Optional[str] = None
    target_type: Optional[str] = None


class MessageResponse(CamelModel):
    message: str


# ── /api/suggestions ──────────────────────────────────────────────────────────

class SectionOut(CamelModel):
    id: str
    title: str
    subtitle: Optional[str] = None
    image_url: Optional[str] = None
    type: str
    main_category_id: Optional[str] = None
    config: dict = Field(default_factory=dict)


class SectionsResponse(CamelModel):
    sections: List[SectionOut]


class SectionRef(CamelModel):
    id: str
    title: str
    type: str


class SectionShopsResponse(CamelModel):
    section: SectionRef
    total_results: int
    search_radius: float
    limit: Optional[int] = None
    offset: int = 0
    shops: List[ShopCard]


class QuickSnackCategory(CamelModel):
    name: str
    item_count: int


class QuickSnackCategoriesResponse(CamelModel):
    section_id: str
    title: str
    categories: List[QuickSnackCategory]


# ── /api/categories, /api/shops/category ──────────────────────────────────────

class CategoryOut(CamelModel):
    id: str
    name: str
    image_url: Optional[str] = None


class CategoriesResponse(CamelModel):
    categories: List[CategoryOut]


class CategoryShop(ShopCard):
    distance_text: Optional[str] = None


class CategoryShopsResponse(CamelModel):
    category_id: str
    search_radius: float
    total_results: int
    user_location: LatLng
    shops: List[CategoryShop]


# ── /api/places ───────────────────────────────────────────────────────────────

class SavedPlace(CamelModel):
    id: str
    name: str
    description: Optional[str] = ""
    address: Optional[str] = ""
    city: Optional[str] = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image_url: Optional[str] = None
    open_hours: Optional[str] = None
    phone_number: Optional[str] = None
    created_at: Optional[datetime] = None
    rating_number: float
    rating_display: str
    rating_percent: int
    reviews_count: int
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    offers: List[OfferOut] = Field(default_factory=list)
    category: CategoryRef
    distance_km: Optional[float] = None
    distance_display: Optional[str] = None
    distance_km_rounded: Optional[float] = None
    is_saved: bool = True
    saved_at: Optional[datetime] = None


class SavedCategoryGroup(CamelModel):
    category: CategoryRef
    shops: List[SavedPlace]


class SavedPlacesResponse(CamelModel):
    total_saved: int
    returned_count: int = 0
    categories: List[SavedCategoryGroup]


# ── /api/shops, /api/reviews ──────────────────────────────────────────────────

class ShopReviewsResponse(CamelModel):
    average_rating: float
    total_reviews: int
    rating_distribution: dict[str, int]
    reviews: List[ReviewOut]


class ReviewSuggestionRequest(CamelModel):
    shop_name: str = Field(..., min_length=1, max_length=200)
    rating: int = Field(..., ge=1, le=5)
    tags: List[str] = Field(default_factory=list, max_length=10)


class ReviewSuggestionResponse(CamelModel):
    suggestions: List[str]
    model_used: str
