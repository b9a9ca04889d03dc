"""Temporal grouping of reviews into calendar buckets."""

import logging
from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .aggregation import aggregate
from .constants import GroupingConstants
from .models import Granularity, PeriodAggregate, Review

logger = logging.getLogger(__name__)

# Granularities whose label set is fixed; every label is always emitted.
_FIXED_LABELS = {
    Granularity.HOUR: [GroupingConstants.HOUR_LABEL_FORMAT.format(hour=h) for h in range(24)],
    Granularity.DAY_OF_WEEK: list(GroupingConstants.WEEKDAY_NAMES),
    Granularity.SEASON: list(GroupingConstants.SEASON_NAMES),
}


def weekday_index(moment: datetime) -> int:
    """Sunday-indexed weekday (0=Sunday ... 6=Saturday)."""
    return (moment.weekday() + 1) % 7


def season_for_month(month: int) -> str:
    """Meteorological season for a 1-based calendar month."""
    return GroupingConstants.SEASON_BY_MONTH_INDEX[month - 1]


def period_label(moment: datetime, granularity: Granularity) -> str:
    """Label of the bucket a timestamp falls into."""
    if granularity is Granularity.HOUR:
        return GroupingConstants.HOUR_LABEL_FORMAT.format(hour=moment.hour)
    if granularity is Granularity.DAY_OF_WEEK:
        return GroupingConstants.WEEKDAY_NAMES[weekday_index(moment)]
    if granularity is Granularity.WEEK:
        iso_year, iso_week, _ = moment.isocalendar()
        return GroupingConstants.WEEK_LABEL_FORMAT.format(year=iso_year, week=iso_week)
    if granularity is Granularity.MONTH:
        return GroupingConstants.MONTH_LABEL_FORMAT.format(year=moment.year, month=moment.month)
    if granularity is Granularity.SEASON:
        return season_for_month(moment.month)
    return str(moment.year)


def group_reviews(reviews: Iterable[Review], granularity) -> Dict[str, List[Review]]:
    """Bucket reviews by calendar period.

    Hour, day-of-week and season groupings always contain every label (empty
    lists for quiet buckets). Week, month and year groupings contain only
    populated periods, in chronological order. Reviews without a usable
    date are skipped.
    """
    granularity = Granularity.parse(granularity)

    fixed = _FIXED_LABELS.get(granularity)
    groups: Dict[str, List[Review]] = {label: [] for label in fixed} if fixed else {}

    skipped = 0
    for review in reviews:
        if review.published_at is None:
            skipped += 1
            continue
        label = period_label(review.published_at, granularity)
        groups.setdefault(label, []).append(review)

    if skipped:
        logger.debug(f"Excluded {skipped} reviews without a valid date from {granularity.value} grouping")

    if fixed:
        return groups
    # ISO week, month and year labels sort chronologically as strings
    return {label: groups[label] for label in sorted(groups)}


def time_series(reviews: Iterable[Review], granularity) -> List[PeriodAggregate]:
    """Ordered per-period aggregates (oldest first)."""
    groups = group_reviews(reviews, granularity)
    return [PeriodAggregate(period=label, metrics=aggregate(bucket)) for label, bucket in groups.items()]


def identify_peak_periods(reviews: Iterable[Review], top_n: int = GroupingConstants.PEAK_PERIODS_TOP_N) -> Dict[str, list]:
    """Find the busiest and quietest days and the busiest hours of day."""
    daily = Counter()
    hourly = Counter()
    for review in reviews:
        if review.published_at is None:
            continue
        daily[review.published_at.strftime("%Y-%m-%d")] += 1
        hourly[review.published_at.hour] += 1

    # Volume descending, then date ascending so ties are deterministic
    by_volume = sorted(daily.items(), key=lambda item: (-item[1], item[0]))

    peak_days = [
        {"day": day, "volume": volume, "reason": f"High review volume ({volume} reviews)"}
        for day, volume in by_volume[:top_n]
    ]
    low_days = [
        {"day": day, "volume": volume, "reason": f"Low review volume ({volume} reviews)"}
        for day, volume in by_volume[-top_n:]
    ] if by_volume else []
    peak_hours = [
        {"hour": hour, "volume": volume}
        for hour, volume in sorted(hourly.items(), key=lambda item: (-item[1], item[0]))[:top_n]
    ]

    return {"peak_days": peak_days, "low_days": low_days, "peak_hours": peak_hours}


def _seasonal_insights(season: str, avg_rating: float, count: int) -> List[str]:
    insights = [
        f"{season} season average: {avg_rating:.1f} stars",
        f"Total {season.lower()} reviews: {count}",
    ]
    if season == "Summer" and avg_rating > 4.3:
        insights.append("Strong summer performance - consider summer promotions")
    if season == "Winter" and count < 100:
        insights.append("Lower winter activity - consider winter marketing campaigns")
    return insights


def seasonal_patterns(reviews: Iterable[Review]) -> List[Dict[str, object]]:
    """Per-season metrics with short insights; seasons without reviews are skipped."""
    patterns = []
    for season, bucket in group_reviews(reviews, Granularity.SEASON).items():
        if not bucket:
            continue
        metrics = aggregate(bucket)
        patterns.append({
            "season": season,
            "metrics": metrics,
            "insights": _seasonal_insights(season, metrics.avg_rating, metrics.count),
        })
    return patterns


def month_of_label(label: str) -> Optional[int]:
    """Calendar month (1-12) of a ``YYYY-MM`` label, None if it is not one."""
    try:
        return datetime.strptime(label, "%Y-%m").month
    except ValueError:
        return None
