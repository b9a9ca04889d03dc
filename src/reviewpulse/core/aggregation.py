"""Statistical aggregation over lists of reviews."""

import logging
from collections import Counter
from typing import Dict, Iterable, Optional

from .constants import SentimentConstants
from .models import PeriodMetrics, Review, SentimentBreakdown

logger = logging.getLogger(__name__)


def safe_divide(numerator: float, denominator: float) -> float:
    """Divide, resolving a zero denominator to the 0 sentinel."""
    if not denominator:
        return 0.0
    return numerator / denominator


def sentiment_value(sentiment: Optional[str]) -> float:
    """Map a sentiment label to [0, 1]; unknown or missing counts as neutral."""
    if not sentiment:
        return SentimentConstants.UNKNOWN_SCORE
    return SentimentConstants.SCORES.get(sentiment.strip().lower(), SentimentConstants.UNKNOWN_SCORE)


def aggregate(reviews: Iterable[Review]) -> PeriodMetrics:
    """Compute count, average rating, sentiment score and response rate.

    Empty input yields all-zero metrics rather than NaN. The input reviews
    are never mutated.
    """
    reviews = list(reviews)
    count = len(reviews)
    if count == 0:
        return PeriodMetrics(
            count=0,
            avg_rating=0.0,
            sentiment_score=SentimentConstants.EMPTY_SCORE,
            response_rate=0.0,
            positive_ratio=0.0,
        )

    star_total = sum(r.stars for r in reviews)
    sentiment_total = sum(sentiment_value(r.sentiment) for r in reviews)
    responded = sum(1 for r in reviews if r.has_response)
    positive = sum(1 for r in reviews if r.stars >= SentimentConstants.POSITIVE_MIN_STARS)

    return PeriodMetrics(
        count=count,
        avg_rating=star_total / count,
        sentiment_score=sentiment_total / count,
        response_rate=responded / count,
        positive_ratio=positive / count,
    )


def sentiment_breakdown(reviews: Iterable[Review]) -> SentimentBreakdown:
    """Percentage of reviews per sentiment label (missing counts as neutral)."""
    counts = Counter()
    total = 0
    for review in reviews:
        total += 1
        label = (review.sentiment or "neutral").lower()
        if "positive" in label:
            counts["positive"] += 1
        elif "negative" in label:
            counts["negative"] += 1
        elif "mixed" in label:
            counts["mixed"] += 1
        else:
            counts["neutral"] += 1

    return SentimentBreakdown(
        positive=safe_divide(counts["positive"], total) * 100,
        neutral=safe_divide(counts["neutral"], total) * 100,
        negative=safe_divide(counts["negative"], total) * 100,
        mixed=safe_divide(counts["mixed"], total) * 100,
    )


def _normalize_staff_name(name: str) -> str:
    return name[:1].upper() + name[1:].lower()


def staff_mentions(reviews: Iterable[Review]) -> Dict[str, int]:
    """Count staff mentions, normalizing capitalization of each name."""
    counts: Dict[str, int] = {}
    for review in reviews:
        for name in review.staff:
            key = _normalize_staff_name(name)
            counts[key] = counts.get(key, 0) + 1
    return counts


def theme_counts(reviews: Iterable[Review]) -> Dict[str, int]:
    """Count theme mentions, most frequent first."""
    counts = Counter()
    for review in reviews:
        counts.update(review.themes)
    return dict(counts.most_common())
