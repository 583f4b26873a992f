"""routes/search.py – /api/search: shops, typeahead, shop detail, recent searches"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from ..core.ranking import HoursMode
from ..deps import get_search_handler
from ..handlers.search_handler import SearchParams
from ..models import (
    MessageResponse,
    RecentSearchesResponse,
    SaveSearchRequest,
    SearchShopsResponse,
    SearchSuggestionsResponse,
    ShopDetailResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/search", tags=["Search"])


@router.get("/suggestions", response_model=SearchSuggestionsResponse)
async def suggestions(query: Optional[str] = Query(default=None)):
    """Typeahead over shop names, categories and menu items (≥2 chars)."""
    try:
        return await get_search_handler().suggestions(query)
    except Exception:
        logger.exception("Error getting search suggestions")
        raise HTTPException(status_code=500, detail="Failed to get search suggestions")


@router.get("/shops", response_model=SearchShopsResponse)
async def search_shops(
    query:            Optional[str]   = Query(default=None),
    lat:              Optional[float] = Query(default=None, ge=-90, le=90),
    lng:              Optional[float] = Query(default=None, ge=-180, le=180),
    radius:           Optional[float] = Query(default=None, gt=0),
    sort_by:          Optional[str]   = Query(default=None, alias="sortBy", description="distance | rating | price | relevance"),
    category_id:      Optional[str]   = Query(default=None, alias="categoryId"),
    user_id:          Optional[str]   = Query(default=None, alias="userId"),
    chip:             Optional[str]   = Query(default=None),
    hours_filter:     HoursMode       = Query(default=HoursMode.ANY, alias="hoursFilter"),
    custom_open_from: Optional[str]   = Query(default=None, alias="customOpenFrom"),
    custom_open_to:   Optional[str]   = Query(default=None, alias="customOpenTo"),
    min_rating:       Optional[str]   = Query(default=None, alias="minRating", description='0–5 or "any"'),
    min_price:        Optional[float] = Query(default=None, alias="minPrice", ge=0),
    max_price:        Optional[float] = Query(default=None, alias="maxPrice", ge=0),
):
    params = SearchParams(
        query=query or "",
        lat=lat,
        lng=lng,
        radius=radius,
        sort_by=sort_by,
        category_id=category_id,
        user_id=user_id,
        chip=chip,
        hours_filter=hours_filter,
        custom_open_from=custom_open_from,
        custom_open_to=custom_open_to,
        min_rating=min_rating,
        min_price=min_price,
        max_price=max_price,
    )
    try:
        return await get_search_handler().search_shops(params)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Error searching shops")
        raise HTTPException(status_code=500, detail="Failed to search shops")


@router.get("/shop/{shop_id}", response_model=ShopDetailResponse)
async def shop_detail(
    shop_id: str,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
):
    try:
        return await get_search_handler().shop_detail(shop_id, lat, lng)
    except LookupError:
        raise HTTPException(status_code=404, detail="Shop not found")
    except Exception:
        logger.exception("Error getting shop search detail")
        raise HTTPException(status_code=500, detail="Failed to get shop detail")


# ── Search history ────────────────────────────────────────────────────────────

@router.get("/recent", response_model=RecentSearchesResponse)
async def recent_searches(user_id: Optional[str] = Query(default=None, alias="userId")):
    try:
        return RecentSearchesResponse(searches=await get_search_handler().recent(user_id))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Error getting recent searches")
        raise HTTPException(status_code=500, detail="Failed to get recent searches")


@router.post("/recent", response_model=MessageResponse)
async def save_search(req: SaveSearchRequest):
    try:
        await get_search_handler().save(req)
        return MessageResponse(message="Search saved to history")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Error saving search history")
        raise HTTPException(status_code=500, detail="Failed to save search history")


@router.delete("/recent/{search_id}", response_model=MessageResponse)
async def delete_search(search_id: str, user_id: Optional[str] = Query(default=None, alias="userId")):
    try:
        await get_search_handler().delete(user_id, search_id)
        return MessageResponse(message="Search history deleted")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("Error deleting search history")
        raise HTTPException(status_code=500, detail="Failed to delete search history")


@router.delete("/recent", response_model=MessageResponse)
async def clear_searches(user_id: Optional[str] = Query(default=None, alias="userId")):
    try:
        await get_search_handler().clear(user_id)
        return MessageResponse(message="Search history cleared")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Error clearing search history")
        raise HTTPException(status_code=500, detail="Failed to clear search history")
