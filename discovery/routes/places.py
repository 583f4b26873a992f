"""routes/places.py – GET /api/places/saved"""
import logging
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Query

from ..deps import get_places_handler
from ..models import SavedPlacesResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/places", tags=["Places"])


@router.get("/saved", response_model=SavedPlacesResponse)
async def saved_places(
    user_id:          str             = Query(..., alias="userId", min_length=1),
    lat:              Optional[float] = Query(default=None, ge=-90, le=90),
    lng:              Optional[float] = Query(default=None, ge=-180, le=180),
    radius:           float           = Query(default=7, ge=0),
    limit:            int             = Query(default=100, ge=1, le=500),
    sort_by:          Literal["distance", "rating", "recent"] = Query(default="distance", alias="sortBy"),
    filter_by_radius: bool            = Query(default=False, alias="filterByRadius"),
):
    """
    Saved shops grouped by category. Radius only restricts results when
    `filterByRadius=true` and a location is given.
    """
    try:
        return await get_places_handler().saved_places(
            user_id, lat, lng, radius, limit, sort_by, filter_by_radius,
        )
    except Exception:
        logger.exception("getSavedPlaces error")
        raise HTTPException(status_code=500, detail="Failed to fetch saved places")
