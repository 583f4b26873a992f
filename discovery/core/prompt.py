"""
core/prompt.py – ReviewPromptBuilder class.
Responsibility: build the Gemini prompt for review-writing suggestions and
parse the reply back into a clean list.
"""
import re

MAX_SUGGESTIONS = 3
MAX_SUGGESTION_CHARS = 280

_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")

_TONE = {
    1: "disappointed but fair",
    2: "critical and specific",
    3: "balanced",
    4: "positive",
    5: "enthusiastic",
}


class ReviewPromptBuilder:
    """Prompts for the review composer."""

    def build_system(self) -> str:
        return (
            "You help customers write short, honest reviews of local shops. "
            "Never invent facts about prices, staff names or menu items that were not given."
        )

    def build_prompt(self, shop_name: str, rating: int, tags: list[str]) -> str:
        tone = _TONE.get(rating, "balanced")
        liked = f"They mentioned: {', '.join(tags)}. " if tags else ""
        return (
            f"A customer rated **{shop_name}** {rating}/5. {liked}"
            f"Write {MAX_SUGGESTIONS} alternative one-sentence reviews, {tone} in tone, "
            "one per line, no numbering."
        )

    def parse_suggestions(self, text: str) -> list[str]:
        lines = [_BULLET.sub("", line).strip().strip('"') for line in (text or "").splitlines()]
        return [line[:MAX_SUGGESTION_CHARS] for line in lines if line][:MAX_SUGGESTIONS]

    def fallback(self, shop_name: str, rating: int) -> list[str]:
        if rating >= 4:
            return [
                f"Really enjoyed my visit to {shop_name}.",
                f"{shop_name} is worth a stop, would come back.",
            ]
        if rating == 3:
            return [f"{shop_name} was okay, a few things could be better."]
        return [f"My visit to {shop_name} did not meet expectations."]
