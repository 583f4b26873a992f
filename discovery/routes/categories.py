"""routes/categories.py – GET /api/categories, GET /api/shops/category/{category_id}"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from ..deps import get_category_handler
from ..models import CategoriesResponse, CategoryShopsResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Categories"])


@router.get("/categories", response_model=CategoriesResponse)
async def categories(
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
):
    """Active main categories; with lat+lng, only those with a shop within ~5 km."""
    try:
        return await get_category_handler().categories(lat, lng)
    except Exception:
        logger.exception("Error fetching categories")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/shops/category/{category_id}", response_model=CategoryShopsResponse)
async def shops_by_category(
    category_id: str,
    lat:     Optional[float] = Query(default=None, ge=-90, le=90),
    lng:     Optional[float] = Query(default=None, ge=-180, le=180),
    user_id: Optional[str]   = Query(default=None, alias="userId"),
):
    try:
        return await get_category_handler().shops_near(category_id, lat, lng, user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Error fetching shops by category")
        raise HTTPException(status_code=500, detail="Internal server error")
