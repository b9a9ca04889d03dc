"""Tests for period comparison."""

from datetime import datetime, timedelta

import pytest

from reviewpulse.core.comparison import (
    compare_metric,
    compare_periods,
    filter_by_date_range,
    generate_comparison_periods,
    percent_change,
)
from reviewpulse.core.models import Review


def _review(review_id, stars, published_at=None, sentiment=None, themes=None, staff=None, response=None):
    return Review(id=review_id, stars=stars, published_at=published_at, sentiment=sentiment,
                  main_themes=themes, staff_mentioned=staff, owner_response_text=response)


def test_percent_change():
    assert percent_change(12, 10) == pytest.approx(20.0)
    assert percent_change(5, 0) == 0.0
    assert percent_change(0, 4) == pytest.approx(-100.0)


def test_compare_metric_trend():
    assert compare_metric(4.5, 3.0).trend == "up"
    assert compare_metric(3.0, 4.5).trend == "down"
    assert compare_metric(4.005, 4.0).trend == "stable"


class TestComparePeriods:
    """Test current-vs-previous comparison."""

    def setup_method(self):
        self.current = [
            _review("c1", 5, sentiment="positive", themes="coffee, wifi", staff="anna", response="Thanks"),
            _review("c2", 4, sentiment="positive", themes="coffee", staff="Anna"),
        ]
        self.previous = [
            _review("p1", 3, sentiment="negative", themes="coffee, noise", staff="john"),
        ]

    def test_metrics(self):
        result = compare_periods(self.current, self.previous)

        assert result.review_count.current == 2
        assert result.review_count.change_percent == pytest.approx(100.0)
        assert result.average_rating.current == pytest.approx(4.5)
        assert result.average_rating.change == pytest.approx(1.5)
        assert result.average_rating.change_percent == pytest.approx(50.0)
        assert result.average_rating.trend == "up"
        assert result.response_rate.current == pytest.approx(0.5)

    def test_sentiment_changes(self):
        result = compare_periods(self.current, self.previous)

        assert result.sentiment.current.positive == 100.0
        assert result.sentiment.previous.negative == 100.0
        assert result.sentiment.changes.positive == 100.0
        assert result.sentiment.changes.negative == -100.0

    def test_themes(self):
        themes = compare_periods(self.current, self.previous).themes

        assert themes.new == ["wifi"]
        assert themes.declining == ["noise"]
        assert themes.consistent == ["coffee"]

    def test_staff(self):
        staff = compare_periods(self.current, self.previous).staff_mentions

        assert staff.current == {"Anna": 2}
        assert staff.changes == {"John": -1, "Anna": 2}

    def test_empty_previous_period(self):
        result = compare_periods(self.current, [])

        assert result.average_rating.previous == 0.0
        assert result.average_rating.change_percent == 0.0

    def test_compare_same_period_is_zero(self):
        result = compare_periods(self.current, self.current)

        for metric in (result.review_count, result.average_rating, result.response_rate, result.sentiment_score):
            assert metric.change == 0.0
            assert metric.change_percent == 0.0
            assert metric.trend == "stable"
        assert result.sentiment.changes.positive == 0.0
        assert result.sentiment.changes.negative == 0.0
        assert result.themes.new == []
        assert result.themes.declining == []
        assert all(change == 0 for change in result.staff_mentions.changes.values())


def test_filter_by_date_range_is_inclusive():
    reviews = [
        _review("a", 5, datetime(2024, 1, 1)),
        _review("b", 5, datetime(2024, 1, 31)),
        _review("c", 5, datetime(2024, 2, 1)),
        _review("d", 5, None),
    ]
    selected = filter_by_date_range(reviews, datetime(2024, 1, 1), datetime(2024, 1, 31))
    assert [r.id for r in selected] == ["a", "b"]


def test_generate_comparison_periods():
    now = datetime(2024, 6, 30, 12)
    reviews = [
        _review("recent", 5, now - timedelta(days=5)),
        _review("older", 3, now - timedelta(days=45)),
        _review("last_year", 4, datetime(2023, 3, 1)),
    ]
    periods = generate_comparison_periods(reviews, now)

    assert [p["label"] for p in periods] == [
        "30-Day Comparison", "90-Day Comparison", "Year-over-Year Comparison",
    ]
    thirty = periods[0]["metrics"]
    assert thirty.review_count.current == 1
    assert thirty.review_count.previous == 1

    yoy = periods[2]["metrics"]
    assert yoy.review_count.current == 2
    assert yoy.review_count.previous == 1


if __name__ == "__main__":
    pytest.main([__file__])
