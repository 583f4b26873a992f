"""routes/reviews.py – GET /api/shops/{id}/reviews, POST /api/reviews/ai-suggestions"""
import logging

from fastapi import APIRouter, HTTPException

from ..deps import get_review_handler
from ..models import ReviewSuggestionRequest, ReviewSuggestionResponse, ShopReviewsResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reviews"])


@router.get("/api/shops/{shop_id}/reviews", response_model=ShopReviewsResponse)
async def shop_reviews(shop_id: str):
    try:
        return await get_review_handler().shop_reviews(shop_id)
    except LookupError:
        raise HTTPException(status_code=404, detail="Shop not found")
    except Exception:
        logger.exception("Error fetching shop reviews")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/reviews/ai-suggestions", response_model=ReviewSuggestionResponse)
async def ai_suggestions(req: ReviewSuggestionRequest):
    try:
        return await get_review_handler().ai_suggestions(req)
    except Exception:
        logger.exception("Error generating review suggestions")
        raise HTTPException(status_code=500, detail="Failed to generate review suggestions")
