"""Data models for ReviewPulse."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import InvalidGranularityError

logger = logging.getLogger(__name__)


class Granularity(Enum):
    HOUR = "hour"
    DAY_OF_WEEK = "dayOfWeek"
    WEEK = "week"
    MONTH = "month"
    SEASON = "season"
    YEAR = "year"

    @classmethod
    def parse(cls, value) -> "Granularity":
        """Accept an enum member, its value, or a snake_case alias."""
        if isinstance(value, cls):
            return value
        key = str(value).strip()
        aliases = {
            "day_of_week": "dayOfWeek",
            "dayofweek": "dayOfWeek",
            "weekday": "dayOfWeek",
        }
        key = aliases.get(key.lower(), key)
        for member in cls:
            if member.value == key or member.value.lower() == key.lower():
                return member
        raise InvalidGranularityError(value)


class TrendDirection(Enum):
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


class RiskKind(Enum):
    RATING_DECLINE = "rating_decline"
    VOLUME_DROP = "volume_drop"
    SENTIMENT_SHIFT = "sentiment_shift"
    SEASONAL_RISK = "seasonal_risk"


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def parse_review_date(value: Any) -> Optional[datetime]:
    """Parse an ISO date/timestamp; returns None when missing or unparsable.

    Offset-aware values are converted to UTC and made naive so that every
    parsed timestamp can be compared with every other one.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Ignoring unparsable review date: {value!r}")
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def split_labels(value: Optional[str]) -> List[str]:
    """Split a comma-separated label string, trimming blanks."""
    if not value:
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _first(data: Dict[str, Any], *keys, default=None):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


@dataclass
class Review:
    """A single customer review as fetched from the review store."""
    id: str
    stars: int
    text: str = ""
    sentiment: Optional[str] = None  # "positive" | "neutral" | "negative"
    published_at: Optional[datetime] = None
    owner_response_text: Optional[str] = None
    main_themes: Optional[str] = None  # comma-separated
    staff_mentioned: Optional[str] = None  # comma-separated
    business_id: Optional[str] = None
    business_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Review":
        """Build a Review from a store row (camelCase or snake_case keys)."""
        try:
            stars = int(float(_first(data, "stars", "star", "rating", default=0)))
        except (TypeError, ValueError):
            stars = 0

        sentiment = _first(data, "sentiment")
        if isinstance(sentiment, str):
            sentiment = sentiment.strip().lower() or None

        business_id = _first(data, "businessId", "business_id")
        return cls(
            id=str(_first(data, "id", "reviewUrl", "review_url", default="")),
            stars=stars,
            text=_first(data, "text", "translatedText", default="") or "",
            sentiment=sentiment,
            published_at=parse_review_date(_first(data, "publishedAtDate", "published_at", "date")),
            owner_response_text=_first(
                data, "ownerResponseText", "responseFromOwnerText", "owner_response_text"
            ),
            main_themes=_first(data, "mainThemes", "main_themes"),
            staff_mentioned=_first(data, "staffMentioned", "staff_mentioned"),
            business_id=str(business_id) if business_id is not None else None,
            business_name=_first(data, "businessName", "business_name", "title"),
        )

    @property
    def has_response(self) -> bool:
        return bool(self.owner_response_text and self.owner_response_text.strip())

    @property
    def themes(self) -> List[str]:
        return split_labels(self.main_themes)

    @property
    def staff(self) -> List[str]:
        return split_labels(self.staff_mentioned)

    @property
    def text_length(self) -> int:
        return len(self.text) if self.text else 0


@dataclass(frozen=True)
class BusinessFilter:
    """Explicit business filter; ``BusinessFilter.all()`` means no filter."""
    business_id: Optional[str] = None
    business_name: Optional[str] = None

    ALL_SENTINELS = ("", "all", "all businesses", "all_businesses")

    @classmethod
    def all(cls) -> "BusinessFilter":
        return cls()

    @classmethod
    def for_business(cls, business_id: Optional[str] = None, business_name: Optional[str] = None) -> "BusinessFilter":
        if not business_id and not business_name:
            return cls.all()
        return cls(business_id=business_id, business_name=business_name)

    @classmethod
    def parse(cls, value: Optional[str]) -> "BusinessFilter":
        """Normalize a user-supplied business name, treating legacy sentinels as no filter."""
        if value is None or value.strip().lower() in cls.ALL_SENTINELS:
            return cls.all()
        return cls(business_name=value.strip())

    @property
    def is_all(self) -> bool:
        return self.business_id is None and self.business_name is None

    def matches(self, review: Review) -> bool:
        if self.is_all:
            return True
        if self.business_id is not None:
            return review.business_id == self.business_id
        return (review.business_name or "").strip().lower() == self.business_name.lower()

    def describe(self) -> str:
        if self.is_all:
            return "all businesses"
        return self.business_name or self.business_id


@dataclass
class PeriodMetrics:
    """Aggregate values for one bucket of reviews."""
    count: int = 0
    avg_rating: float = 0.0
    sentiment_score: float = 0.0
    response_rate: float = 0.0
    positive_ratio: float = 0.0  # share of 4-5 star reviews


@dataclass
class PeriodAggregate:
    """One element of an ordered per-period series."""
    period: str
    metrics: PeriodMetrics

    @property
    def count(self) -> int:
        return self.metrics.count

    @property
    def avg_rating(self) -> float:
        return self.metrics.avg_rating


@dataclass
class TrendResult:
    """Least-squares fit over an ordered series."""
    slope: float
    intercept: float
    direction: TrendDirection


@dataclass
class TrendPoint:
    """Historical or projected value for one period."""
    period: str
    actual_value: Optional[float]
    predicted_value: float
    confidence: float
    is_predicted: bool


@dataclass
class SeasonalForecast:
    """Expected performance for an upcoming calendar month."""
    month: str
    expected_volume: int
    expected_rating: float
    seasonality_factor: float
    recommendations: List[str] = field(default_factory=list)


@dataclass
class RiskIndicator:
    """A risk flagged by one analysis call."""
    kind: RiskKind
    severity: Severity
    probability: float
    description: str
    recommendation: str
    timeframe: str


@dataclass
class PerformanceAlert:
    """An absolute threshold breach for a business."""
    kind: str  # "rating" | "sentiment" | "response_rate"
    severity: Severity
    title: str
    message: str
    value: float
    threshold: float
    comparison: str  # "above" | "below"
    business_name: str


@dataclass
class MetricComparison:
    """One metric compared across two periods."""
    current: float
    previous: float
    change: float
    change_percent: float
    trend: str  # "up" | "down" | "stable"


@dataclass
class SentimentBreakdown:
    """Share of reviews per sentiment, in percent."""
    positive: float = 0.0
    neutral: float = 0.0
    negative: float = 0.0
    mixed: float = 0.0


@dataclass
class SentimentComparison:
    current: SentimentBreakdown
    previous: SentimentBreakdown
    changes: SentimentBreakdown


@dataclass
class ThemeComparison:
    new: List[str] = field(default_factory=list)
    declining: List[str] = field(default_factory=list)
    consistent: List[str] = field(default_factory=list)


@dataclass
class StaffComparison:
    current: Dict[str, int] = field(default_factory=dict)
    previous: Dict[str, int] = field(default_factory=dict)
    changes: Dict[str, int] = field(default_factory=dict)


@dataclass
class ComparisonMetrics:
    """Current-vs-previous comparison across all metrics."""
    review_count: MetricComparison
    average_rating: MetricComparison
    response_rate: MetricComparison
    sentiment_score: MetricComparison
    sentiment: SentimentComparison
    themes: ThemeComparison
    staff_mentions: StaffComparison


@dataclass
class ClusterSummary:
    """Descriptive summary of one cluster bucket."""
    id: str
    dimension: str
    label: str
    size: int
    avg_rating: float
    sentiment: str  # "positive" | "negative" | "neutral" | "mixed"
    common_themes: List[str]
    insights: List[str] = field(default_factory=list)
