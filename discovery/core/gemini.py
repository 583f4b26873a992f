"""
core/gemini.py – ReviewSuggestionService class.
Responsibility: talk to Google Gemini for review-writing suggestions.
A provider failure never fails the request: fixed fallback lines are returned.
"""
import asyncio
import logging

import google.generativeai as genai
from google.generativeai.types import GenerationConfig

from .prompt import ReviewPromptBuilder

logger = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 300
FALLBACK_MODEL = "fallback"


class ReviewSuggestionService:
    """Wrapper around the Gemini REST API."""

    def __init__(self, api_key: str, model_name: str, prompt_builder: ReviewPromptBuilder) -> None:
        self._enabled = bool(api_key)
        if self._enabled:
            genai.configure(api_key=api_key)
        self._model_name = model_name
        self._pb = prompt_builder

    async def suggest(self, shop_name: str, rating: int, tags: list[str]) -> tuple[list[str], str]:
        """Returns (suggestions, model_used)."""
        if not self._enabled:
            return self._pb.fallback(shop_name, rating), FALLBACK_MODEL

        prompt = self._pb.build_prompt(shop_name, rating, tags)

        def _call() -> str:
            model = genai.GenerativeModel(
                model_name=self._model_name,
                system_instruction=self._pb.build_system(),
                generation_config=GenerationConfig(max_output_tokens=MAX_OUTPUT_TOKENS),
            )
            return model.generate_content(prompt).text

        try:
            text = await asyncio.get_event_loop().run_in_executor(None, _call)
        except Exception as e:
            logger.error("Gemini.suggest error: %s", e)
            return self._pb.fallback(shop_name, rating), FALLBACK_MODEL

        suggestions = self._pb.parse_suggestions(text)
        if not suggestions:
            return self._pb.fallback(shop_name, rating), FALLBACK_MODEL
        return suggestions, self._model_name
