"""Linear trend estimation over ordered per-period values."""

import logging
from typing import Sequence, Tuple

from .constants import TrendConstants
from .models import TrendDirection, TrendResult

logger = logging.getLogger(__name__)


def linear_fit(values: Sequence[float]) -> Tuple[float, float]:
    """Ordinary least squares with the period index (0, 1, 2, ...) as x.

    Returns ``(slope, intercept)``. An empty series or one with zero
    x-variance (a single point) yields a flat line.
    """
    n = len(values)
    if n == 0:
        return 0.0, 0.0

    sum_x = sum(range(n))
    sum_y = float(sum(values))
    sum_xy = sum(i * v for i, v in enumerate(values))
    sum_x2 = sum(i * i for i in range(n))

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return 0.0, sum_y / n

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def classify_slope(slope: float, threshold: float = TrendConstants.SLOPE_THRESHOLD) -> TrendDirection:
    if slope > threshold:
        return TrendDirection.INCREASING
    if slope < -threshold:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


def estimate_trend(values: Sequence[float], threshold: float = TrendConstants.SLOPE_THRESHOLD) -> TrendResult:
    """Fit a line and label it increasing / stable / decreasing.

    Series shorter than ``TrendConstants.MIN_POINTS`` are always stable with
    a zero slope. The threshold is fixed rather than scaled to the data.
    """
    values = [float(v) for v in values]
    if len(values) < TrendConstants.MIN_POINTS:
        intercept = sum(values) / len(values) if values else 0.0
        return TrendResult(slope=0.0, intercept=intercept, direction=TrendDirection.STABLE)

    slope, intercept = linear_fit(values)
    return TrendResult(slope=slope, intercept=intercept, direction=classify_slope(slope, threshold))


def classify_delta(delta: float, threshold: float = TrendConstants.SLOPE_THRESHOLD) -> str:
    """Direction of a two-point change: "up", "down" or "stable"."""
    if delta > threshold:
        return "up"
    if delta < -threshold:
        return "down"
    return "stable"
