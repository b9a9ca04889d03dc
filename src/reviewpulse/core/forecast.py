"""Forecast projection on top of the linear trend estimator."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from .aggregation import safe_divide
from .constants import ForecastConstants
from .models import (
    Granularity,
    PeriodAggregate,
    Review,
    SeasonalForecast,
    TrendDirection,
    TrendPoint,
)
from .temporal import month_of_label, time_series
from .trend import estimate_trend, linear_fit

logger = logging.getLogger(__name__)

RATING = "rating"
VOLUME = "volume"


@dataclass
class ForecastParameters:
    """Tunable forecast heuristics; defaults are not empirically validated."""
    increasing_factor: float = ForecastConstants.INCREASING_FACTOR
    decreasing_factor: float = ForecastConstants.DECREASING_FACTOR
    stable_factor: float = ForecastConstants.STABLE_FACTOR
    base_confidence: float = ForecastConstants.FORECAST_BASE_CONFIDENCE
    confidence_step: float = ForecastConstants.FORECAST_CONFIDENCE_STEP
    historical_base_confidence: float = ForecastConstants.HISTORICAL_BASE_CONFIDENCE
    historical_confidence_step: float = ForecastConstants.HISTORICAL_CONFIDENCE_STEP
    min_confidence: float = ForecastConstants.MIN_CONFIDENCE

    def factor_for(self, direction: TrendDirection) -> float:
        if direction is TrendDirection.INCREASING:
            return self.increasing_factor
        if direction is TrendDirection.DECREASING:
            return self.decreasing_factor
        return self.stable_factor


def _clamp(value: float, metric: str) -> float:
    if metric == RATING:
        return max(ForecastConstants.MIN_RATING, min(ForecastConstants.MAX_RATING, value))
    if metric == VOLUME:
        return float(round(max(0.0, value)))
    return value


def _add_months(year: int, month: int, steps: int):
    index = year * 12 + (month - 1) + steps
    return index // 12, index % 12 + 1


def next_period_label(label: str, granularity, steps: int = 1) -> str:
    """Label of the period ``steps`` after ``label`` for month, week or year labels."""
    granularity = Granularity.parse(granularity)
    try:
        if granularity is Granularity.MONTH:
            moment = datetime.strptime(label, "%Y-%m")
            year, month = _add_months(moment.year, moment.month, steps)
            return f"{year}-{month:02d}"
        if granularity is Granularity.WEEK:
            monday = datetime.strptime(f"{label}-1", "%G-W%V-%u") + timedelta(weeks=steps)
            iso_year, iso_week, _ = monday.isocalendar()
            return f"{iso_year}-W{iso_week:02d}"
        if granularity is Granularity.YEAR:
            return str(int(label) + steps)
    except ValueError:
        logger.debug(f"Cannot advance period label {label!r}; using offset label")
    return f"{label}+{steps}"


def build_trend_series(
    values: Sequence[float],
    labels: Sequence[str],
    metric: str = RATING,
    params: Optional[ForecastParameters] = None,
) -> List[TrendPoint]:
    """Historical TrendPoints with the fitted line as ``predicted_value``.

    The most recent period carries the base confidence; each period further
    back loses ``historical_confidence_step``, never below the minimum.
    """
    params = params or ForecastParameters()
    slope, intercept = linear_fit(values)
    n = len(values)

    series = []
    for i, (label, value) in enumerate(zip(labels, values)):
        confidence = max(
            params.min_confidence,
            params.historical_base_confidence - params.historical_confidence_step * (n - 1 - i),
        )
        fitted = intercept + slope * i
        if metric == VOLUME:
            fitted = max(0.0, fitted)
        series.append(TrendPoint(
            period=label,
            actual_value=float(value),
            predicted_value=fitted,
            confidence=confidence,
            is_predicted=False,
        ))
    return series


def project(
    series: Sequence[TrendPoint],
    horizon: int = ForecastConstants.DEFAULT_HORIZON,
    metric: str = RATING,
    granularity=Granularity.MONTH,
    params: Optional[ForecastParameters] = None,
) -> List[TrendPoint]:
    """Extrapolate ``horizon`` periods past the end of a historical series.

    Each step multiplies the previous projected value by the trend factor
    (geometric compounding). Ratings are clamped to [1, 5]; volumes are
    clamped at zero and rounded. Fewer than three historical periods give
    an empty forecast.
    """
    params = params or ForecastParameters()
    history = [p for p in series if not p.is_predicted and p.actual_value is not None]
    if len(history) < ForecastConstants.MIN_HISTORY or horizon <= 0:
        return []

    trend = estimate_trend([p.actual_value for p in history])
    factor = params.factor_for(trend.direction)
    last = history[-1]

    projected = []
    value = last.actual_value
    for step in range(1, horizon + 1):
        # compound on the unclamped value so rounding never stalls the series
        value *= factor
        projected.append(TrendPoint(
            period=next_period_label(last.period, granularity, step),
            actual_value=None,
            predicted_value=_clamp(value, metric),
            confidence=max(params.min_confidence, params.base_confidence - params.confidence_step * (step - 1)),
            is_predicted=True,
        ))
    return projected


def forecast_reviews(
    reviews: Iterable[Review],
    horizon: int = ForecastConstants.DEFAULT_HORIZON,
    params: Optional[ForecastParameters] = None,
) -> Dict[str, object]:
    """Monthly rating and volume series, each followed by its projection."""
    monthly = time_series(reviews, Granularity.MONTH)
    labels = [a.period for a in monthly]
    ratings = [a.metrics.avg_rating for a in monthly]
    volumes = [a.metrics.count for a in monthly]

    rating_history = build_trend_series(ratings, labels, RATING, params)
    volume_history = build_trend_series(volumes, labels, VOLUME, params)

    return {
        "rating": rating_history + project(rating_history, horizon, RATING, Granularity.MONTH, params),
        "volume": volume_history + project(volume_history, horizon, VOLUME, Granularity.MONTH, params),
        "rating_trend": estimate_trend(ratings),
        "volume_trend": estimate_trend(volumes),
    }


def seasonal_forecast(
    monthly: Sequence[PeriodAggregate],
    start: Optional[date] = None,
    months: int = 12,
) -> List[SeasonalForecast]:
    """Expected volume and rating for the coming months from same-month history.

    Needs at least a year of monthly aggregates; returns an empty list
    otherwise.
    """
    if len(monthly) < ForecastConstants.SEASONAL_MIN_MONTHS:
        return []

    start = start or date.today()
    overall_avg_volume = sum(a.metrics.count for a in monthly) / len(monthly)

    forecasts = []
    for offset in range(months):
        year, month = _add_months(start.year, start.month, offset)
        history = [a for a in monthly if month_of_label(a.period) == month]
        if not history:
            continue

        avg_volume = sum(a.metrics.count for a in history) / len(history)
        avg_rating = sum(a.metrics.avg_rating for a in history) / len(history)
        factor = safe_divide(avg_volume, overall_avg_volume)

        recommendations = []
        if factor > ForecastConstants.PEAK_SEASON_FACTOR:
            recommendations.append("Peak season - ensure adequate staffing")
            recommendations.append("Leverage high traffic for upselling opportunities")
        elif factor < ForecastConstants.QUIET_SEASON_FACTOR:
            recommendations.append("Quiet season - focus on customer retention")
            recommendations.append("Consider promotional campaigns to drive traffic")
        if avg_rating < ForecastConstants.QUALITY_ISSUE_RATING:
            recommendations.append("Historical data shows quality issues - implement preventive measures")

        forecasts.append(SeasonalForecast(
            month=date(year, month, 1).strftime("%B %Y"),
            expected_volume=round(avg_volume),
            expected_rating=round(avg_rating, 1),
            seasonality_factor=round(factor, 2),
            recommendations=recommendations,
        ))
    return forecasts
