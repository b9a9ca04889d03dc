"""Tests for statistical aggregation."""

import pytest

from reviewpulse.core.aggregation import (
    aggregate,
    safe_divide,
    sentiment_breakdown,
    sentiment_value,
    staff_mentions,
    theme_counts,
)
from reviewpulse.core.models import Review


def _review(stars, sentiment=None, response=None, themes=None, staff=None):
    return Review(id=f"r{stars}{sentiment}", stars=stars, sentiment=sentiment,
                  owner_response_text=response, main_themes=themes, staff_mentioned=staff)


def test_aggregate_empty():
    """Test that an empty bucket yields zeros, not NaN."""
    metrics = aggregate([])
    assert metrics.count == 0
    assert metrics.avg_rating == 0.0
    assert metrics.sentiment_score == 0.0
    assert metrics.response_rate == 0.0
    assert metrics.positive_ratio == 0.0


def test_aggregate_metrics():
    """Test average rating, sentiment score, response rate and positive share."""
    reviews = [
        _review(5, "positive", response="Thank you"),
        _review(4, "neutral"),
        _review(1, None),
    ]
    metrics = aggregate(reviews)

    assert metrics.count == 3
    assert metrics.avg_rating == pytest.approx(10 / 3)
    assert metrics.sentiment_score == pytest.approx((1.0 + 0.5 + 0.5) / 3)
    assert metrics.response_rate == pytest.approx(1 / 3)
    assert metrics.positive_ratio == pytest.approx(2 / 3)


def test_aggregate_does_not_mutate_input():
    reviews = [_review(5, "positive")]
    aggregate(reviews)
    assert reviews[0].stars == 5
    assert reviews[0].sentiment == "positive"


def test_sentiment_value_mapping():
    assert sentiment_value("positive") == 1.0
    assert sentiment_value("NEGATIVE") == 0.0
    assert sentiment_value("neutral") == 0.5
    assert sentiment_value("confused") == 0.5
    assert sentiment_value(None) == 0.5


def test_safe_divide():
    assert safe_divide(1, 0) == 0.0
    assert safe_divide(3, 4) == 0.75


def test_sentiment_breakdown_percentages():
    """Test that missing sentiment counts as neutral."""
    reviews = [
        _review(5, "positive"),
        _review(5, "positive"),
        _review(1, "negative"),
        _review(3, None),
    ]
    breakdown = sentiment_breakdown(reviews)

    assert breakdown.positive == 50.0
    assert breakdown.negative == 25.0
    assert breakdown.neutral == 25.0
    assert breakdown.mixed == 0.0


def test_sentiment_breakdown_empty():
    breakdown = sentiment_breakdown([])
    assert breakdown.positive == 0.0
    assert breakdown.neutral == 0.0


def test_staff_mentions_normalize_names():
    reviews = [_review(5, staff="anna, JOHN"), _review(4, staff="Anna")]
    assert staff_mentions(reviews) == {"Anna": 2, "John": 1}


def test_theme_counts_most_common_first():
    reviews = [
        _review(5, themes="coffee, service"),
        _review(4, themes="service"),
        _review(2, themes="service, price"),
    ]
    counts = theme_counts(reviews)
    assert list(counts)[0] == "service"
    assert counts["service"] == 3
    assert counts["coffee"] == 1


if __name__ == "__main__":
    pytest.main([__file__])
