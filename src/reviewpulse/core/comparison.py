"""Period-over-period comparison of review metrics."""

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from .aggregation import aggregate, sentiment_breakdown, staff_mentions
from .constants import ComparisonConstants
from .models import (
    ComparisonMetrics,
    MetricComparison,
    Review,
    SentimentBreakdown,
    SentimentComparison,
    StaffComparison,
    ThemeComparison,
)
from .trend import classify_delta

logger = logging.getLogger(__name__)


def percent_change(current: float, previous: float) -> float:
    """(current - previous) / previous * 100, defined as 0 when previous is 0."""
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def compare_metric(current: float, previous: float,
                   threshold: float = ComparisonConstants.DELTA_THRESHOLD) -> MetricComparison:
    change = current - previous
    return MetricComparison(
        current=current,
        previous=previous,
        change=change,
        change_percent=percent_change(current, previous),
        trend=classify_delta(change, threshold),
    )


def _ordered_themes(reviews: Iterable[Review]) -> List[str]:
    seen = {}
    for review in reviews:
        for theme in review.themes:
            seen.setdefault(theme, None)
    return list(seen)


def compare_themes(current: Iterable[Review], previous: Iterable[Review]) -> ThemeComparison:
    current_themes = _ordered_themes(current)
    previous_themes = _ordered_themes(previous)
    current_set, previous_set = set(current_themes), set(previous_themes)
    return ThemeComparison(
        new=[t for t in current_themes if t not in previous_set],
        declining=[t for t in previous_themes if t not in current_set],
        consistent=[t for t in current_themes if t in previous_set],
    )


def compare_staff(current: Iterable[Review], previous: Iterable[Review]) -> StaffComparison:
    current_counts = staff_mentions(current)
    previous_counts = staff_mentions(previous)
    names = list(dict.fromkeys(list(previous_counts) + list(current_counts)))
    return StaffComparison(
        current=current_counts,
        previous=previous_counts,
        changes={name: current_counts.get(name, 0) - previous_counts.get(name, 0) for name in names},
    )


def compare_periods(current: Iterable[Review], previous: Iterable[Review]) -> ComparisonMetrics:
    """Compare two caller-defined review sets across every metric."""
    current, previous = list(current), list(previous)
    cur, prev = aggregate(current), aggregate(previous)
    cur_sentiment, prev_sentiment = sentiment_breakdown(current), sentiment_breakdown(previous)

    return ComparisonMetrics(
        review_count=compare_metric(cur.count, prev.count),
        average_rating=compare_metric(cur.avg_rating, prev.avg_rating),
        response_rate=compare_metric(cur.response_rate, prev.response_rate),
        sentiment_score=compare_metric(cur.sentiment_score, prev.sentiment_score),
        sentiment=SentimentComparison(
            current=cur_sentiment,
            previous=prev_sentiment,
            changes=SentimentBreakdown(
                positive=cur_sentiment.positive - prev_sentiment.positive,
                neutral=cur_sentiment.neutral - prev_sentiment.neutral,
                negative=cur_sentiment.negative - prev_sentiment.negative,
                mixed=cur_sentiment.mixed - prev_sentiment.mixed,
            ),
        ),
        themes=compare_themes(current, previous),
        staff_mentions=compare_staff(current, previous),
    )


def filter_by_date_range(reviews: Iterable[Review], start: datetime, end: datetime) -> List[Review]:
    """Reviews published within [start, end]; undated reviews are dropped."""
    return [r for r in reviews if r.published_at is not None and start <= r.published_at <= end]


def _same_day_last_year(moment: datetime) -> datetime:
    try:
        return moment.replace(year=moment.year - 1)
    except ValueError:
        # 29 February
        return moment.replace(year=moment.year - 1, day=28)


def generate_comparison_periods(reviews: Iterable[Review], now: Optional[datetime] = None) -> List[Dict[str, object]]:
    """Standard windows: last 30 vs previous 30 days, 90 vs 90, year to date vs last year."""
    reviews = list(reviews)
    now = now or datetime.now()
    periods = []

    for days in (ComparisonConstants.SHORT_WINDOW_DAYS, ComparisonConstants.LONG_WINDOW_DAYS):
        current_start = now - timedelta(days=days)
        previous_start = current_start - timedelta(days=days)
        current = filter_by_date_range(reviews, current_start, now)
        # the previous window stops just before the current one starts
        previous = [r for r in filter_by_date_range(reviews, previous_start, current_start)
                    if r.published_at < current_start]
        periods.append({
            "label": f"{days}-Day Comparison",
            "current_label": f"Last {days} Days",
            "previous_label": f"Previous {days} Days",
            "metrics": compare_periods(current, previous),
        })

    year_start = datetime(now.year, 1, 1)
    last_year_start = datetime(now.year - 1, 1, 1)
    periods.append({
        "label": "Year-over-Year Comparison",
        "current_label": "This Year",
        "previous_label": "Last Year (Same Period)",
        "metrics": compare_periods(
            filter_by_date_range(reviews, year_start, now),
            filter_by_date_range(reviews, last_year_start, _same_day_last_year(now)),
        ),
    })
    return periods
