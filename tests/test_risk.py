"""Tests for risk and pattern detection."""

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from reviewpulse.core.models import PeriodAggregate, PeriodMetrics, Review, RiskKind, Severity
from reviewpulse.core.risk import (
    PerformanceThresholds,
    RiskThresholds,
    check_performance_thresholds,
    detect_risks,
    seasonal_deficit,
)
from reviewpulse.core.temporal import time_series

JUNE = date(2024, 6, 1)


def _period(label, avg_rating=4.5, count=10, positive_ratio=0.8):
    return PeriodAggregate(
        period=label,
        metrics=PeriodMetrics(count=count, avg_rating=avg_rating, positive_ratio=positive_ratio),
    )


def _kinds(risks):
    return [r.kind for r in risks]


class TestDeclineRules:
    """Test the rating, volume and sentiment decline rules."""

    def test_needs_two_periods(self):
        assert detect_risks([_period("2024-01")], today=JUNE) == []
        assert detect_risks([], today=JUNE) == []

    def test_rating_drop_boundary_is_inclusive(self):
        risks = detect_risks([_period("2024-01", 4.3), _period("2024-02", 4.0)], today=JUNE)

        assert _kinds(risks) == [RiskKind.RATING_DECLINE]
        assert risks[0].severity is Severity.HIGH
        assert risks[0].probability == pytest.approx(30.0)

    def test_rating_drop_below_threshold(self):
        risks = detect_risks([_period("2024-01", 4.29), _period("2024-02", 4.0)], today=JUNE)
        assert risks == []

    def test_only_recent_window_is_considered(self):
        periods = [_period("2024-01", 1.0), _period("2024-02", 5.0),
                   _period("2024-03", 5.0), _period("2024-04", 5.0)]
        assert RiskKind.RATING_DECLINE not in _kinds(detect_risks(periods, today=JUNE))

    def test_volume_drop_medium_and_high(self):
        medium = detect_risks([_period("2024-01", count=10), _period("2024-02", count=8),
                               _period("2024-03", count=7)], today=JUNE)
        assert _kinds(medium) == [RiskKind.VOLUME_DROP]
        assert medium[0].severity is Severity.MEDIUM
        assert medium[0].probability == pytest.approx(30.0)

        high = detect_risks([_period("2024-01", count=10), _period("2024-02", count=5)], today=JUNE)
        assert high[0].severity is Severity.HIGH

    def test_volume_growth_is_not_a_risk(self):
        risks = detect_risks([_period("2024-01", count=1), _period("2024-02", count=2)], today=JUNE)
        assert risks == []

    def test_sentiment_shift(self):
        risks = detect_risks([_period("2024-01", positive_ratio=0.8),
                              _period("2024-02", positive_ratio=0.6)], today=JUNE)

        assert _kinds(risks) == [RiskKind.SENTIMENT_SHIFT]
        assert risks[0].severity is Severity.MEDIUM
        assert risks[0].probability == pytest.approx(40.0)

    def test_custom_thresholds(self):
        thresholds = RiskThresholds(rating_drop=1.0, rating_drop_critical=2.0)
        periods = [_period("2024-01", 4.5), _period("2024-02", 4.0)]
        assert detect_risks(periods, today=JUNE, thresholds=thresholds) == []


def test_end_to_end_decline_scenario():
    """Ratings 5, 5, 1.5 with counts 1, 1, 2 over three months."""
    reviews = [
        Review(id="a", stars=5, published_at=datetime(2024, 1, 10)),
        Review(id="b", stars=5, published_at=datetime(2024, 2, 10)),
        Review(id="c", stars=1, published_at=datetime(2024, 3, 10)),
        Review(id="d", stars=2, published_at=datetime(2024, 3, 20)),
    ]
    monthly = time_series(reviews, "month")
    risks = detect_risks(monthly, today=JUNE)

    assert _kinds(risks) == [RiskKind.RATING_DECLINE, RiskKind.SENTIMENT_SHIFT]
    assert risks[0].severity is Severity.CRITICAL
    assert risks[0].probability == 90
    assert risks[1].severity is Severity.HIGH
    assert risks[1].probability == 80


class TestSeasonalRisk:
    """Test the seasonal deficit rule."""

    def _year(self):
        periods = [_period(f"2023-{m:02d}", 5.0) for m in range(1, 13)]
        periods[2] = _period("2023-03", 1.0)
        return periods

    def test_seasonal_deficit(self):
        overall = (11 * 5.0 + 1.0) / 12
        assert seasonal_deficit(self._year(), 3) == pytest.approx((overall - 1.0) / overall)
        assert seasonal_deficit(self._year(), 7) == 0.0

    def test_flagged_in_weak_month(self):
        risks = detect_risks(self._year(), today=date(2024, 3, 15))
        seasonal = [r for r in risks if r.kind is RiskKind.SEASONAL_RISK]

        assert len(seasonal) == 1
        assert seasonal[0].severity is Severity.MEDIUM
        assert seasonal[0].probability == pytest.approx(78.57, abs=0.01)

    def test_not_flagged_in_other_months(self):
        risks = detect_risks(self._year(), today=JUNE)
        assert RiskKind.SEASONAL_RISK not in _kinds(risks)


def test_thresholds_from_settings():
    settings = SimpleNamespace(
        risk_rating_drop=0.5, risk_rating_drop_critical=1.0,
        risk_volume_drop_percent=30, risk_volume_drop_high_percent=50,
        risk_sentiment_drop_points=10, risk_sentiment_drop_high_points=20,
        risk_seasonal_deficit=0.5,
    )
    thresholds = RiskThresholds.from_settings(settings)
    assert thresholds.rating_drop == 0.5
    assert thresholds.window == 3


class TestPerformanceThresholds:
    """Test absolute performance alerts."""

    def test_no_reviews_no_alerts(self):
        assert check_performance_thresholds([], "Cafe") == []

    def test_critical_alerts(self):
        reviews = [Review(id=str(i), stars=2, sentiment="negative") for i in range(4)]
        alerts = check_performance_thresholds(reviews, "Cafe")

        assert [a.kind for a in alerts] == ["rating", "sentiment", "response_rate"]
        assert all(a.severity is Severity.CRITICAL for a in alerts)
        assert all(a.business_name == "Cafe" for a in alerts)

    def test_healthy_business(self):
        reviews = [Review(id=str(i), stars=5, sentiment="positive", owner_response_text="Thanks")
                   for i in range(4)]
        assert check_performance_thresholds(reviews, "Cafe") == []

    def test_warning_levels(self):
        reviews = [
            Review(id="1", stars=4, sentiment="positive", owner_response_text="Thanks"),
            Review(id="2", stars=3, sentiment="negative", owner_response_text="Sorry"),
            Review(id="3", stars=4, sentiment="positive"),
            Review(id="4", stars=3, sentiment="neutral", owner_response_text="Thanks"),
        ]
        alerts = check_performance_thresholds(reviews, "Cafe", PerformanceThresholds())

        assert [(a.kind, a.severity) for a in alerts] == [
            ("rating", Severity.HIGH),
            ("sentiment", Severity.MEDIUM),
        ]


if __name__ == "__main__":
    pytest.main([__file__])
