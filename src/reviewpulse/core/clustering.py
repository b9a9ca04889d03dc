"""Rule-based clustering of reviews along independent dimensions."""

import logging
from collections import Counter
from typing import Callable, Dict, Iterable, List

from .aggregation import safe_divide, theme_counts
from .constants import ClusterConstants, SentimentConstants
from .models import ClusterSummary, Review

logger = logging.getLogger(__name__)

SENTIMENT = "sentiment"
THEME = "theme"
STARS = "stars"
LENGTH = "length"
RESPONSE = "response"

DIMENSIONS = (SENTIMENT, THEME, STARS, LENGTH, RESPONSE)


def length_bucket(text_length: int) -> str:
    for upper, label in ClusterConstants.LENGTH_BUCKETS:
        if text_length < upper:
            return label
    return ClusterConstants.LONGEST_BUCKET


def _sentiment_labels(review: Review) -> List[str]:
    return [(review.sentiment or "neutral").lower()]


def _star_labels(review: Review) -> List[str]:
    return [f"{review.stars}-star"]


def _length_labels(review: Review) -> List[str]:
    return [length_bucket(review.text_length)]


def _response_labels(review: Review) -> List[str]:
    return [ClusterConstants.RESPONDED if review.has_response else ClusterConstants.NOT_RESPONDED]


def _theme_labels(review: Review) -> List[str]:
    # a review with several themes belongs to several theme buckets
    return review.themes


_LABELERS: Dict[str, Callable[[Review], List[str]]] = {
    SENTIMENT: _sentiment_labels,
    THEME: _theme_labels,
    STARS: _star_labels,
    LENGTH: _length_labels,
    RESPONSE: _response_labels,
}


def cluster_reviews(reviews: Iterable[Review]) -> Dict[str, Dict[str, List[Review]]]:
    """Partition reviews by sentiment, theme, star value, text length and response status.

    Unlike calendar groupings, buckets without members are left out.
    """
    reviews = list(reviews)
    clusters: Dict[str, Dict[str, List[Review]]] = {}
    for dimension, labeler in _LABELERS.items():
        buckets: Dict[str, List[Review]] = {}
        for review in reviews:
            for label in labeler(review):
                buckets.setdefault(label, []).append(review)
        clusters[dimension] = buckets
    return clusters


def dominant_sentiment(reviews: List[Review]) -> str:
    counts = Counter((r.sentiment or "neutral").lower() for r in reviews)
    total = len(reviews)
    for label in ("positive", "negative", "neutral"):
        if counts[label] > total * ClusterConstants.DOMINANT_SENTIMENT_SHARE:
            return label
    return "mixed"


def _insights(dimension: str, label: str, members: List[Review], avg_rating: float, themes: List[str]) -> List[str]:
    insights = [f"{len(members)} reviews in {label} ({dimension})",
                f"Average rating: {avg_rating:.1f} stars"]
    if themes:
        if avg_rating >= SentimentConstants.POSITIVE_MIN_STARS:
            insights.append(f"Key strengths: {', '.join(themes[:3])}")
        elif avg_rating <= SentimentConstants.NEGATIVE_MAX_STARS:
            insights.append(f"Main issues: {', '.join(themes[:3])}")
        else:
            insights.append(f"Common themes: {', '.join(themes[:3])}")
    return insights


def summarize_clusters(clusters: Dict[str, Dict[str, List[Review]]]) -> List[ClusterSummary]:
    """Describe every non-empty bucket, largest first then furthest from 3 stars."""
    summaries = []
    for dimension, buckets in clusters.items():
        for label, members in buckets.items():
            if not members:
                continue
            avg_rating = safe_divide(sum(r.stars for r in members), len(members))
            themes = list(theme_counts(members))[:ClusterConstants.MAX_COMMON_THEMES]
            summaries.append(ClusterSummary(
                id=f"{dimension}-{label}",
                dimension=dimension,
                label=label,
                size=len(members),
                avg_rating=avg_rating,
                sentiment=dominant_sentiment(members),
                common_themes=themes,
                insights=_insights(dimension, label, members, avg_rating, themes),
            ))
    summaries.sort(key=lambda s: (-s.size, -abs(s.avg_rating - 3)))
    return summaries


def _word_set(text: str) -> set:
    return {word for word in (text or "").lower().split() if word}


def _jaccard(a: set, b: set) -> float:
    return safe_divide(len(a & b), len(a | b))


def similarity(first: Review, second: Review) -> float:
    """Weighted similarity in [0, 1] from rating, sentiment, themes and wording."""
    score = (1 - abs(first.stars - second.stars) / 4) * 0.3
    if (first.sentiment or "neutral") == (second.sentiment or "neutral"):
        score += 0.2
    score += _jaccard(set(first.themes), set(second.themes)) * 0.3
    score += _jaccard(_word_set(first.text), _word_set(second.text)) * 0.2
    return score


def find_similar_reviews(target: Review, reviews: Iterable[Review],
                         limit: int = ClusterConstants.SIMILAR_REVIEWS_LIMIT) -> List[Review]:
    candidates = [r for r in reviews if r.id != target.id]
    candidates.sort(key=lambda r: similarity(target, r), reverse=True)
    return candidates[:limit]
