"""LLM service for AI-generated recommendations."""

import hashlib
import json
import logging
import re
from dataclasses import dataclass, field
from textwrap import dedent
from typing import Any, Dict, List, Optional

import openai
from pydantic import BaseModel, Field, ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from ..core.config import settings
from ..core.constants import CacheConstants, ErrorConstants, PromptConstants
from ..core.exceptions import CompletionError
from ..core.models import Review
from ..utils.data_prep import to_jsonable

logger = logging.getLogger(__name__)

PROMPT_VERSION = PromptConstants.RECOMMENDATION_PROMPT_VERSION

STRUCTURED = "structured"
EXTRACTED = "extracted"
FALLBACK = "fallback"

RECOMMENDATION_PROMPT = dedent("""
You are a customer experience consultant for local businesses.
You receive aggregated review analytics (metrics, trends, risks, alerts,
themes) and a sample of recent review excerpts.

Rules:
- Ground every recommendation in the analytics or the excerpts.
- Address detected risks and alerts first.
- Be concrete: each recommendation needs actions a manager can take this month.

Return ONLY JSON with this schema:
{
  "urgent_actions": [{"title": str, "description": str, "priority": "critical|high|medium|low",
                      "timeframe": str, "actions": [str]}],
  "growth_strategies": [{"title": str, "description": str, "priority": str,
                         "timeframe": str, "actions": [str]}],
  "pattern_insights": [str],
  "summary": str
}
""").strip()


class RecommendationItem(BaseModel):
    title: str
    description: str = ""
    priority: str = "medium"
    timeframe: str = ""
    actions: List[str] = Field(default_factory=list)


class Recommendations(BaseModel):
    """Validated recommendation payload."""
    urgent_actions: List[RecommendationItem] = Field(default_factory=list)
    growth_strategies: List[RecommendationItem] = Field(default_factory=list)
    pattern_insights: List[str] = Field(default_factory=list)
    summary: str = ""

    def is_empty(self) -> bool:
        return not (self.urgent_actions or self.growth_strategies or self.pattern_insights)


@dataclass
class RecommendationResult:
    """Recommendations tagged with where they came from.

    ``source`` is ``structured`` (validated JSON from the model),
    ``extracted`` (bullets recovered from free text) or ``fallback``
    (computed locally because the AI call failed or returned nothing usable).
    """
    source: str
    recommendations: Recommendations
    error: Optional[str] = None
    raw_response: Optional[str] = field(default=None, repr=False)

    @property
    def is_fallback(self) -> bool:
        return self.source == FALLBACK


def _strip_code_fences(s: str) -> str:
    s = s.strip()
    return re.sub(r"^```(?:json)?|```$", "", s, flags=re.IGNORECASE | re.MULTILINE).strip()


def _safe_json_loads(s: str) -> Any:
    """Parse JSON from an LLM response, tolerating code fences and surrounding prose."""
    cleaned = _strip_code_fences(s)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    obj_match = re.search(r"\{.*\}", cleaned, re.S)
    if obj_match:
        candidate = re.sub(r",\s*([}\]])", r"\1", obj_match.group(0))  # trailing commas
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            pass
    raise ValueError(f"Could not parse JSON from: {s[:200]}...")


class LLMServiceFactory:
    """Factory for creating LLM services."""

    @staticmethod
    def create(cache=None):
        """Create appropriate LLM service."""
        if settings.openai_api_key:
            return OpenAIService(cache=cache)
        return FallbackLLMService()


class OpenAIService:
    """OpenAI-based LLM service.

    ``cache`` is any mapping-like object with ``get`` and ``set(key, value,
    expire=...)`` (normally a ``diskcache.Cache``); without one, responses
    are not cached.
    """

    def __init__(self, cache=None, client=None, model: Optional[str] = None):
        self.client = client or openai.OpenAI(api_key=settings.openai_api_key)
        self.model = model or settings.openai_model
        self.cache = cache
        logger.info(f"OpenAI service initialized (model={self.model}, caching={'on' if cache is not None else 'off'})")

    def _cache_key(self, system: str, user: str, temperature: float, max_tokens: int) -> str:
        return hashlib.md5(
            f"{self.model}|{system}|{user}|{temperature}|{max_tokens}|{PROMPT_VERSION}".encode()
        ).hexdigest()

    @retry(
        stop=stop_after_attempt(settings.max_retries),
        wait=wait_exponential(multiplier=settings.retry_delay, max=settings.retry_backoff * 10),
        reraise=True,
    )
    def _complete(self, system: str, user: str, temperature: float, max_tokens: int) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            max_tokens=max_tokens,
            temperature=temperature,
            timeout=ErrorConstants.REQUEST_TIMEOUT,
        )
        return (response.choices[0].message.content or "").strip()

    def chat(self, system: str, user: str, temperature: float = PromptConstants.TEMPERATURE,
             max_tokens: int = PromptConstants.MAX_TOKENS) -> str:
        """Chat completion with caching; raises CompletionError once retries are exhausted."""
        cache_key = self._cache_key(system, user, temperature, max_tokens)
        if self.cache is not None:
            cached_response = self.cache.get(cache_key)
            if cached_response:
                logger.debug(f"Cache hit for LLM request: {cache_key[:CacheConstants.CACHE_KEY_LENGTH]}...")
                return cached_response

        try:
            result = self._complete(system, user, temperature, max_tokens)
        except Exception as e:
            logger.error(f"Chat failed after {settings.max_retries} attempts: {e}")
            raise CompletionError(f"OpenAI completion failed: {e}") from e

        if result and self.cache is not None:
            self.cache.set(cache_key, result, expire=3600 * CacheConstants.LLM_CACHE_TTL_HOURS)
            logger.debug(f"Cached LLM response: {cache_key[:CacheConstants.CACHE_KEY_LENGTH]}...")
        return result


class FallbackLLMService:
    """Stand-in used when no API key is configured; never produces text."""

    def __init__(self):
        logger.info("Using fallback LLM service")

    def chat(self, system: str, user: str, temperature: float = PromptConstants.TEMPERATURE,
             max_tokens: int = PromptConstants.MAX_TOKENS) -> str:
        logger.warning("Fallback LLM service chat called - no actual LLM available")
        return ""


_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+(.+?)\s*$")


def extract_recommendations(text: str) -> Recommendations:
    """Best-effort recovery of bullet points from a free-text answer.

    Bullets are assigned to the section whose heading precedes them
    (urgent / growth / pattern); bullets before any heading count as urgent.
    """
    urgent: List[RecommendationItem] = []
    growth: List[RecommendationItem] = []
    patterns: List[str] = []
    section = "urgent"
    summary_lines = []

    for line in text.splitlines():
        match = _BULLET.match(line)
        if not match:
            heading = line.strip().lower()
            if "urgent" in heading or "immediate" in heading:
                section = "urgent"
            elif "growth" in heading or "opportunit" in heading:
                section = "growth"
            elif "pattern" in heading or "insight" in heading:
                section = "pattern"
            elif heading and not heading.startswith("#"):
                summary_lines.append(line.strip())
            continue

        bullet = match.group(1).strip("*_ ")
        if section == "pattern":
            patterns.append(bullet)
            continue
        title, _, description = bullet.partition(":")
        item = RecommendationItem(title=title.strip(), description=description.strip())
        (growth if section == "growth" else urgent).append(item)

    return Recommendations(
        urgent_actions=urgent,
        growth_strategies=growth,
        pattern_insights=patterns,
        summary=" ".join(summary_lines)[:500],
    )


def fallback_recommendations(analysis: Dict[str, Any]) -> Recommendations:
    """Recommendations computed from detected risks and alerts alone."""
    data = to_jsonable(analysis)
    urgent = []
    for risk in data.get("risks", []):
        urgent.append(RecommendationItem(
            title=risk.get("description", "Detected risk"),
            description=risk.get("recommendation", ""),
            priority=risk.get("severity", "medium"),
            timeframe=risk.get("timeframe", ""),
        ))
    for alert in data.get("alerts", []):
        urgent.append(RecommendationItem(
            title=alert.get("title", "Performance alert"),
            description=alert.get("message", ""),
            priority=alert.get("severity", "medium"),
        ))

    growth = []
    overview = data.get("overview", {})
    if overview.get("count") and overview.get("response_rate", 0) < 0.5:
        growth.append(RecommendationItem(
            title="Respond to more reviews",
            description="Replying to reviews signals attentiveness and tends to lift future ratings",
            priority="medium",
            timeframe="1 month",
        ))
    top_themes = list(data.get("themes", {}))[:3]
    if top_themes:
        growth.append(RecommendationItem(
            title="Highlight what customers mention most",
            description=f"Feature {', '.join(top_themes)} in marketing and staff briefings",
            priority="low",
            timeframe="2-3 months",
        ))

    return Recommendations(
        urgent_actions=urgent,
        growth_strategies=growth,
        pattern_insights=[],
        summary="Recommendations generated locally from detected risks and alerts.",
    )


class RecommendationService:
    """Turns an analysis payload into tagged recommendations."""

    def __init__(self, llm=None):
        self.llm = llm or LLMServiceFactory.create()

    def build_prompt(self, analysis: Dict[str, Any], reviews: Optional[List[Review]] = None) -> str:
        data = to_jsonable(analysis)
        context = {key: data[key] for key in ("business", "overview", "sentiment", "trend",
                                              "risks", "alerts", "themes") if key in data}
        excerpts = []
        dated = sorted(
            (r for r in reviews or [] if r.text),
            key=lambda r: r.published_at.isoformat() if r.published_at else "",
            reverse=True,
        )
        for review in dated[:PromptConstants.MAX_EXCERPTS]:
            excerpts.append({
                "stars": review.stars,
                "sentiment": review.sentiment,
                "text": review.text[:PromptConstants.MAX_EXCERPT_LENGTH],
            })
        return json.dumps({"analytics": context, "excerpts": excerpts}, ensure_ascii=False)

    def generate(self, analysis: Dict[str, Any], reviews: Optional[List[Review]] = None) -> RecommendationResult:
        prompt = self.build_prompt(analysis, reviews)
        try:
            text = self.llm.chat(RECOMMENDATION_PROMPT, prompt)
        except CompletionError as e:
            logger.warning(f"Recommendation call failed, using local fallback: {e}")
            return RecommendationResult(FALLBACK, fallback_recommendations(analysis), error=str(e))

        if not text or not text.strip():
            return RecommendationResult(FALLBACK, fallback_recommendations(analysis),
                                        error="Empty response from LLM")

        try:
            parsed = Recommendations.model_validate(_safe_json_loads(text))
            if not parsed.is_empty():
                return RecommendationResult(STRUCTURED, parsed, raw_response=text)
        except (ValueError, ValidationError) as e:
            logger.info(f"Structured parse failed, extracting from text: {e}")

        extracted = extract_recommendations(text)
        if not extracted.is_empty():
            return RecommendationResult(EXTRACTED, extracted, raw_response=text)

        logger.warning("LLM response contained no usable recommendations, using local fallback")
        return RecommendationResult(FALLBACK, fallback_recommendations(analysis),
                                    error="No usable recommendations in response", raw_response=text)
