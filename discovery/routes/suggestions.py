"""routes/suggestions.py – /api/suggestions: sections, section shops, quick-snack chips"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from ..deps import get_suggest_handler
from ..models import QuickSnackCategoriesResponse, SectionShopsResponse, SectionsResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/suggestions", tags=["Suggestions"])


@router.get("/sections", response_model=SectionsResponse)
async def sections():
    try:
        return await get_suggest_handler().sections()
    except Exception:
        logger.exception("Error fetching suggestions")
        raise HTTPException(status_code=500, detail="Failed to fetch suggestions")


@router.get("/{section_id}/shops", response_model=SectionShopsResponse)
async def section_shops(
    section_id: str,
    lat:      Optional[float] = Query(default=None, ge=-90, le=90),
    lng:      Optional[float] = Query(default=None, ge=-180, le=180),
    radius:   Optional[float] = Query(default=None, gt=0),
    user_id:  Optional[str]   = Query(default=None, alias="userId"),
    category: Optional[str]   = Query(default=None, description="Quick-snack chip"),
    limit:    Optional[int]   = Query(default=None, ge=1, le=200),
    offset:   int             = Query(default=0, ge=0),
):
    """Shops for one section, filled by the section's behaviour."""
    try:
        return await get_suggest_handler().section_shops(
            section_id, lat, lng, radius, user_id, category, limit, offset,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("Error fetching suggestion shops")
        raise HTTPException(status_code=500, detail="Failed to fetch suggestion shops")


@router.get("/{section_id}/quick-snacks", response_model=QuickSnackCategoriesResponse)
async def quick_snack_categories(
    section_id: str,
    lat:    Optional[float] = Query(default=None, ge=-90, le=90),
    lng:    Optional[float] = Query(default=None, ge=-180, le=180),
    radius: Optional[float] = Query(default=None, gt=0),
):
    try:
        return await get_suggest_handler().quick_snack_categories(section_id, lat, lng, radius)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("Error fetching quick snack categories")
        raise HTTPException(status_code=500, detail="Failed to fetch quick snack categories")
