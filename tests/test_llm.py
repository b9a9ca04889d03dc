"""Tests for the LLM recommendation service."""

import json
from unittest.mock import MagicMock, patch

import pytest
from diskcache import Cache

from reviewpulse.core.exceptions import CompletionError
from reviewpulse.core.models import Review, RiskIndicator, RiskKind, Severity
from reviewpulse.services.llm import (
    EXTRACTED,
    FALLBACK,
    STRUCTURED,
    FallbackLLMService,
    LLMServiceFactory,
    OpenAIService,
    RecommendationService,
    _safe_json_loads,
    extract_recommendations,
)


ANALYSIS = {
    "business": "Cafe Uno",
    "risks": [
        RiskIndicator(
            kind=RiskKind.RATING_DECLINE,
            severity=Severity.CRITICAL,
            probability=90,
            description="Rating has declined by 3.5 stars over recent periods",
            recommendation="Investigate recent service issues",
            timeframe="1-2 months",
        )
    ],
    "alerts": [],
    "themes": {"coffee": 3, "service": 1},
}

STRUCTURED_RESPONSE = json.dumps({
    "urgent_actions": [{"title": "Retrain baristas", "priority": "high", "actions": ["Run a workshop"]}],
    "growth_strategies": [{"title": "Loyalty card"}],
    "pattern_insights": ["Weekend reviews are harsher"],
    "summary": "Quality dipped in March.",
})


def _response(content):
    return MagicMock(choices=[MagicMock(message=MagicMock(content=content))])


class TestJsonParsing:
    """Test tolerant JSON parsing of model output."""

    def test_code_fences(self):
        assert _safe_json_loads('```json\n{"a": 1}\n```') == {"a": 1}

    def test_surrounding_prose(self):
        assert _safe_json_loads('Here you go: {"a": [1, 2,]} Hope it helps') == {"a": [1, 2]}

    def test_garbage(self):
        with pytest.raises(ValueError):
            _safe_json_loads("no json here")


class TestRecommendationService:
    """Test source tagging of recommendations."""

    def test_structured(self):
        llm = MagicMock()
        llm.chat.return_value = STRUCTURED_RESPONSE
        result = RecommendationService(llm).generate(ANALYSIS)

        assert result.source == STRUCTURED
        assert result.recommendations.urgent_actions[0].title == "Retrain baristas"
        assert result.recommendations.growth_strategies[0].priority == "medium"
        assert result.error is None

    def test_extracted_from_text(self):
        llm = MagicMock()
        llm.chat.return_value = (
            "Urgent actions:\n"
            "- Retrain staff: focus on espresso quality\n"
            "Growth opportunities:\n"
            "1. Launch a loyalty card\n"
            "Patterns:\n"
            "* Complaints cluster on weekends\n"
        )
        result = RecommendationService(llm).generate(ANALYSIS)

        assert result.source == EXTRACTED
        recs = result.recommendations
        assert recs.urgent_actions[0].title == "Retrain staff"
        assert recs.urgent_actions[0].description == "focus on espresso quality"
        assert recs.growth_strategies[0].title == "Launch a loyalty card"
        assert recs.pattern_insights == ["Complaints cluster on weekends"]

    def test_fallback_on_completion_error(self):
        llm = MagicMock()
        llm.chat.side_effect = CompletionError("rate limited")
        result = RecommendationService(llm).generate(ANALYSIS)

        assert result.source == FALLBACK
        assert result.is_fallback
        assert "rate limited" in result.error
        urgent = result.recommendations.urgent_actions
        assert urgent[0].title.startswith("Rating has declined")
        assert urgent[0].priority == "critical"

    def test_fallback_on_empty_response(self):
        llm = MagicMock()
        llm.chat.return_value = "   "
        result = RecommendationService(llm).generate(ANALYSIS)

        assert result.source == FALLBACK
        assert result.error == "Empty response from LLM"

    def test_fallback_service_without_api_key(self):
        result = RecommendationService(FallbackLLMService()).generate(ANALYSIS)
        assert result.source == FALLBACK

    def test_prompt_includes_excerpts(self):
        reviews = [Review(id=str(i), stars=3, text="t" * 1000) for i in range(30)]
        prompt = json.loads(RecommendationService(MagicMock()).build_prompt(ANALYSIS, reviews))

        assert len(prompt["excerpts"]) == 20
        assert len(prompt["excerpts"][0]["text"]) == 300
        assert prompt["analytics"]["risks"][0]["kind"] == "rating_decline"


def test_extract_ignores_plain_text():
    assert extract_recommendations("Nothing useful here.").is_empty()


class TestOpenAIService:
    """Test the OpenAI client wrapper."""

    def test_responses_are_cached(self, tmp_path):
        client = MagicMock()
        client.chat.completions.create.return_value = _response("  hello  ")
        with Cache(str(tmp_path)) as cache:
            service = OpenAIService(cache=cache, client=client, model="test-model")

            assert service.chat("system", "user") == "hello"
            assert service.chat("system", "user") == "hello"
        assert client.chat.completions.create.call_count == 1

    def test_without_cache(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _response("hi")
        service = OpenAIService(client=client, model="test-model")

        service.chat("system", "user")
        service.chat("system", "user")
        assert client.chat.completions.create.call_count == 2

    @patch("time.sleep")
    def test_failure_raises_completion_error(self, _sleep):
        client = MagicMock()
        client.chat.completions.create.side_effect = RuntimeError("boom")
        service = OpenAIService(client=client, model="test-model")

        with pytest.raises(CompletionError):
            service.chat("system", "user")


def test_factory_without_key():
    with patch("reviewpulse.services.llm.settings") as mock_settings:
        mock_settings.openai_api_key = ""
        assert isinstance(LLMServiceFactory.create(), FallbackLLMService)


if __name__ == "__main__":
    pytest.main([__file__])
