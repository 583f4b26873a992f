"""
tests/test_review_ai.py – ReviewPromptBuilder + ReviewSuggestionService.
Gemini is never called: GenerativeModel is patched.
"""
import pytest
from unittest.mock import MagicMock, patch

from discovery.core.gemini import FALLBACK_MODEL, ReviewSuggestionService
from discovery.core.prompt import MAX_SUGGESTION_CHARS, ReviewPromptBuilder


@pytest.fixture
def pb():
    return ReviewPromptBuilder()


class TestPromptBuilder:
    def test_prompt_mentions_shop_rating_and_tags(self, pb):
        prompt = pb.build_prompt("Marina Dosa Corner", 5, ["crispy", "quick service"])
        assert "Marina Dosa Corner" in prompt
        assert "5/5" in prompt
        assert "crispy, quick service" in prompt

    def test_prompt_without_tags(self, pb):
        assert "mentioned" not in pb.build_prompt("Marina", 3, [])

    def test_parse_strips_bullets_and_caps(self, pb):
        text = '1. Great dosa.\n- "Friendly staff."\n\n* Quick service.\n• Will return.'
        assert pb.parse_suggestions(text) == ["Great dosa.", "Friendly staff.", "Quick service."]

    def test_parse_truncates_long_lines(self, pb):
        assert len(pb.parse_suggestions("x" * 1000)[0]) == MAX_SUGGESTION_CHARS

    @pytest.mark.parametrize("rating", [1, 2, 3, 4, 5])
    def test_fallback_never_empty(self, pb, rating):
        lines = pb.fallback("Marina", rating)
        assert lines
        assert all("Marina" in line for line in lines)


class TestSuggestionService:
    @pytest.mark.asyncio
    async def test_no_key_uses_fallback(self, pb):
        svc = ReviewSuggestionService(api_key="", model_name="gemini-2.0-flash", prompt_builder=pb)
        suggestions, model = await svc.suggest("Marina", 4, [])
        assert model == FALLBACK_MODEL
        assert suggestions == pb.fallback("Marina", 4)

    @pytest.mark.asyncio
    async def test_gemini_reply_parsed(self, pb):
        with patch("discovery.core.gemini.genai") as m_genai:
            m_genai.GenerativeModel.return_value.generate_content.return_value = MagicMock(text="- Tasty.\n- Cosy.")
            svc = ReviewSuggestionService(api_key="k", model_name="gemini-2.0-flash", prompt_builder=pb)
            suggestions, model = await svc.suggest("Marina", 5, ["tasty"])
        assert suggestions == ["Tasty.", "Cosy."]
        assert model == "gemini-2.0-flash"
        m_genai.configure.assert_called_once_with(api_key="k")

    @pytest.mark.asyncio
    async def test_provider_error_falls_back(self, pb):
        with patch("discovery.core.gemini.genai") as m_genai:
            m_genai.GenerativeModel.side_effect = RuntimeError("quota exceeded")
            svc = ReviewSuggestionService(api_key="k", model_name="gemini-2.0-flash", prompt_builder=pb)
            suggestions, model = await svc.suggest("Marina", 1, [])
        assert model == FALLBACK_MODEL
        assert suggestions == pb.fallback("Marina", 1)

    @pytest.mark.asyncio
    async def test_empty_reply_falls_back(self, pb):
        with patch("discovery.core.gemini.genai") as m_genai:
            m_genai.GenerativeModel.return_value.generate_content.return_value = MagicMock(text="  \n")
            svc = ReviewSuggestionService(api_key="k", model_name="gemini-2.0-flash", prompt_builder=pb)
            _, model = await svc.suggest("Marina", 3, [])
        assert model == FALLBACK_MODEL
