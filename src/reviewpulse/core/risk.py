"""Fixed-threshold risk and pattern detection."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence

from .aggregation import aggregate, safe_divide, sentiment_breakdown
from .constants import AlertConstants, RiskConstants
from .models import (
    PerformanceAlert,
    PeriodAggregate,
    Review,
    RiskIndicator,
    RiskKind,
    Severity,
)
from .temporal import month_of_label

logger = logging.getLogger(__name__)


@dataclass
class RiskThresholds:
    """Risk rule parameters. The defaults are heuristics, not validated constants."""
    window: int = RiskConstants.WINDOW
    rating_drop: float = RiskConstants.RATING_DROP
    rating_drop_critical: float = RiskConstants.RATING_DROP_CRITICAL
    volume_drop_percent: float = RiskConstants.VOLUME_DROP_PERCENT
    volume_drop_high_percent: float = RiskConstants.VOLUME_DROP_HIGH_PERCENT
    sentiment_drop_points: float = RiskConstants.SENTIMENT_DROP_POINTS
    sentiment_drop_high_points: float = RiskConstants.SENTIMENT_DROP_HIGH_POINTS
    seasonal_deficit: float = RiskConstants.SEASONAL_DEFICIT

    @classmethod
    def from_settings(cls, settings) -> "RiskThresholds":
        return cls(
            rating_drop=settings.risk_rating_drop,
            rating_drop_critical=settings.risk_rating_drop_critical,
            volume_drop_percent=settings.risk_volume_drop_percent,
            volume_drop_high_percent=settings.risk_volume_drop_high_percent,
            sentiment_drop_points=settings.risk_sentiment_drop_points,
            sentiment_drop_high_points=settings.risk_sentiment_drop_high_points,
            seasonal_deficit=settings.risk_seasonal_deficit,
        )


def _at_least(value: float, threshold: float) -> bool:
    """Inclusive comparison that ignores float representation error."""
    return value >= threshold - RiskConstants.TOLERANCE


def seasonal_deficit(monthly: Sequence[PeriodAggregate], month: int) -> float:
    """Normalized shortfall of one calendar month against the all-time average.

    Returns 0 when the month has no history or performs at or above average.
    """
    same_month = [a for a in monthly if month_of_label(a.period) == month]
    if not same_month or not monthly:
        return 0.0
    month_avg = sum(a.metrics.avg_rating for a in same_month) / len(same_month)
    overall_avg = sum(a.metrics.avg_rating for a in monthly) / len(monthly)
    return max(0.0, safe_divide(overall_avg - month_avg, overall_avg))


def _rating_decline(first: PeriodAggregate, last: PeriodAggregate, t: RiskThresholds) -> Optional[RiskIndicator]:
    drop = first.metrics.avg_rating - last.metrics.avg_rating
    if not _at_least(drop, t.rating_drop):
        return None
    return RiskIndicator(
        kind=RiskKind.RATING_DECLINE,
        severity=Severity.CRITICAL if _at_least(drop, t.rating_drop_critical) else Severity.HIGH,
        probability=min(RiskConstants.RATING_MAX_PROBABILITY, abs(drop) * 100),
        description=f"Rating has declined by {abs(drop):.1f} stars over recent periods",
        recommendation="Investigate recent service issues and implement immediate improvements",
        timeframe="1-2 months",
    )


def _volume_drop(first: PeriodAggregate, last: PeriodAggregate, t: RiskThresholds) -> Optional[RiskIndicator]:
    drop_percent = safe_divide(first.metrics.count - last.metrics.count, first.metrics.count) * 100
    if not _at_least(drop_percent, t.volume_drop_percent):
        return None
    return RiskIndicator(
        kind=RiskKind.VOLUME_DROP,
        severity=Severity.HIGH if _at_least(drop_percent, t.volume_drop_high_percent) else Severity.MEDIUM,
        probability=min(RiskConstants.VOLUME_MAX_PROBABILITY, abs(drop_percent)),
        description=f"Review volume has decreased by {abs(drop_percent):.0f}%",
        recommendation="Increase customer engagement and implement review solicitation strategies",
        timeframe="2-3 months",
    )


def _sentiment_shift(first: PeriodAggregate, last: PeriodAggregate, t: RiskThresholds) -> Optional[RiskIndicator]:
    drop_points = (first.metrics.positive_ratio - last.metrics.positive_ratio) * 100
    if not _at_least(drop_points, t.sentiment_drop_points):
        return None
    return RiskIndicator(
        kind=RiskKind.SENTIMENT_SHIFT,
        severity=Severity.HIGH if _at_least(drop_points, t.sentiment_drop_high_points) else Severity.MEDIUM,
        probability=min(RiskConstants.SENTIMENT_MAX_PROBABILITY, abs(drop_points) * 2),
        description=f"Share of 4-5 star reviews has declined by {abs(drop_points):.0f} points",
        recommendation="Address negative feedback patterns and improve customer experience",
        timeframe="1-2 months",
    )


def _seasonal_risk(monthly: Sequence[PeriodAggregate], month: int, t: RiskThresholds) -> Optional[RiskIndicator]:
    deficit = seasonal_deficit(monthly, month)
    if deficit <= t.seasonal_deficit:
        return None
    return RiskIndicator(
        kind=RiskKind.SEASONAL_RISK,
        severity=Severity.MEDIUM,
        probability=deficit * 100,
        description="Historical data suggests lower performance during this season",
        recommendation="Prepare seasonal strategies and promotional campaigns",
        timeframe="1-3 months",
    )


def detect_risks(
    periods: Sequence[PeriodAggregate],
    today: Optional[date] = None,
    thresholds: Optional[RiskThresholds] = None,
) -> List[RiskIndicator]:
    """Evaluate the risk rules over an ordered (oldest first) period series.

    The decline rules compare the first and last of the most recent
    ``thresholds.window`` periods; the seasonal rule uses the whole history
    of ``YYYY-MM`` periods against the calendar month of ``today``. Rules are
    independent and results are sorted by probability, highest first.
    """
    thresholds = thresholds or RiskThresholds()
    if len(periods) < RiskConstants.MIN_PERIODS:
        return []

    recent = list(periods)[-thresholds.window:]
    first, last = recent[0], recent[-1]
    today = today or date.today()

    candidates = [
        _rating_decline(first, last, thresholds),
        _volume_drop(first, last, thresholds),
        _sentiment_shift(first, last, thresholds),
        _seasonal_risk(periods, today.month, thresholds),
    ]
    risks = [risk for risk in candidates if risk is not None]
    if risks:
        logger.info(f"Detected {len(risks)} risk indicator(s): {', '.join(r.kind.value for r in risks)}")
    return sorted(risks, key=lambda r: r.probability, reverse=True)


@dataclass
class PerformanceThresholds:
    """Absolute alert thresholds (percent values are 0-100)."""
    rating_critical: float = AlertConstants.RATING_CRITICAL
    rating_warning: float = AlertConstants.RATING_WARNING
    negative_sentiment_critical: float = AlertConstants.NEGATIVE_SENTIMENT_CRITICAL
    negative_sentiment_warning: float = AlertConstants.NEGATIVE_SENTIMENT_WARNING
    response_rate_critical: float = AlertConstants.RESPONSE_RATE_CRITICAL
    response_rate_warning: float = AlertConstants.RESPONSE_RATE_WARNING


def check_performance_thresholds(
    reviews: Iterable[Review],
    business_name: str,
    thresholds: Optional[PerformanceThresholds] = None,
) -> List[PerformanceAlert]:
    """Alerts for average rating, negative sentiment share and response rate."""
    thresholds = thresholds or PerformanceThresholds()
    reviews = list(reviews)
    if not reviews:
        return []

    metrics = aggregate(reviews)
    negative_share = sentiment_breakdown(reviews).negative
    response_percent = metrics.response_rate * 100
    alerts = []

    if metrics.avg_rating <= thresholds.rating_critical:
        alerts.append(PerformanceAlert(
            kind="rating", severity=Severity.CRITICAL, title="Critical Rating Alert",
            message=(f"Average rating has dropped to {metrics.avg_rating:.1f}, "
                     f"below critical threshold of {thresholds.rating_critical}"),
            value=metrics.avg_rating, threshold=thresholds.rating_critical,
            comparison="below", business_name=business_name,
        ))
    elif metrics.avg_rating <= thresholds.rating_warning:
        alerts.append(PerformanceAlert(
            kind="rating", severity=Severity.HIGH, title="Rating Warning",
            message=(f"Average rating is {metrics.avg_rating:.1f}, "
                     f"below warning threshold of {thresholds.rating_warning}"),
            value=metrics.avg_rating, threshold=thresholds.rating_warning,
            comparison="below", business_name=business_name,
        ))

    if negative_share >= thresholds.negative_sentiment_critical:
        alerts.append(PerformanceAlert(
            kind="sentiment", severity=Severity.CRITICAL, title="Critical Negative Sentiment",
            message=(f"{negative_share:.1f}% of reviews are negative, "
                     f"above critical threshold of {thresholds.negative_sentiment_critical}%"),
            value=negative_share, threshold=thresholds.negative_sentiment_critical,
            comparison="above", business_name=business_name,
        ))
    elif negative_share >= thresholds.negative_sentiment_warning:
        alerts.append(PerformanceAlert(
            kind="sentiment", severity=Severity.MEDIUM, title="High Negative Sentiment",
            message=(f"{negative_share:.1f}% of reviews are negative, "
                     f"above warning threshold of {thresholds.negative_sentiment_warning}%"),
            value=negative_share, threshold=thresholds.negative_sentiment_warning,
            comparison="above", business_name=business_name,
        ))

    if response_percent <= thresholds.response_rate_critical:
        alerts.append(PerformanceAlert(
            kind="response_rate", severity=Severity.CRITICAL, title="Critical Low Response Rate",
            message=(f"Response rate is {response_percent:.1f}%, "
                     f"below critical threshold of {thresholds.response_rate_critical}%"),
            value=response_percent, threshold=thresholds.response_rate_critical,
            comparison="below", business_name=business_name,
        ))
    elif response_percent <= thresholds.response_rate_warning:
        alerts.append(PerformanceAlert(
            kind="response_rate", severity=Severity.MEDIUM, title="Low Response Rate",
            message=(f"Response rate is {response_percent:.1f}%, "
                     f"below warning threshold of {thresholds.response_rate_warning}%"),
            value=response_percent, threshold=thresholds.response_rate_warning,
            comparison="below", business_name=business_name,
        ))

    return alerts
