"""
handlers/review_handler.py – ReviewHandler class.
Responsibility: per-shop review summary + AI review-writing suggestions.
"""
import logging

from ..core.gemini import ReviewSuggestionService
from ..core.repository import ShopRepository
from ..models import ReviewSuggestionRequest, ReviewSuggestionResponse, ShopReviewsResponse

logger = logging.getLogger(__name__)


class ReviewHandler:
    def __init__(self, repo: ShopRepository, ai: ReviewSuggestionService) -> None:
        self._repo = repo
        self._ai = ai

    async def shop_reviews(self, shop_id: str) -> ShopReviewsResponse:
        _, reviews = await self._repo.shop_with_reviews(shop_id, review_limit=None)
        total = len(reviews)
        if not total:
            return ShopReviewsResponse(average_rating=0, total_reviews=0, rating_distribution={}, reviews=[])

        counts = {star: 0 for star in range(5, 0, -1)}
        for r in reviews:
            if r.rating in counts:
                counts[r.rating] += 1
        return ShopReviewsResponse(
            average_rating=round(sum(r.rating for r in reviews) / total, 1),
            total_reviews=total,
            rating_distribution={str(star): round(n / total * 100) for star, n in counts.items()},
            reviews=reviews,
        )

    async def ai_suggestions(self, req: ReviewSuggestionRequest) -> ReviewSuggestionResponse:
        suggestions, model_used = await self._ai.suggest(req.shop_name, req.rating, req.tags)
        logger.info("[Review] %d suggestions via %s", len(suggestions), model_used)
        return ReviewSuggestionResponse(suggestions=suggestions, model_used=model_used)
