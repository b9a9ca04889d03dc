"""Core modules for ReviewPulse."""

from .models import *
from .config import settings
from .aggregation import aggregate, sentiment_breakdown
from .temporal import group_reviews, time_series
from .trend import estimate_trend, linear_fit
from .forecast import ForecastParameters, build_trend_series, project
from .risk import RiskThresholds, detect_risks
from .comparison import compare_periods
from .clustering import cluster_reviews
from .cache import AnalysisCache

__all__ = [
    "settings",
    "Review",
    "BusinessFilter",
    "Granularity",
    "PeriodMetrics",
    "PeriodAggregate",
    "TrendPoint",
    "TrendResult",
    "RiskIndicator",
    "ComparisonMetrics",
    "aggregate",
    "sentiment_breakdown",
    "group_reviews",
    "time_series",
    "estimate_trend",
    "linear_fit",
    "ForecastParameters",
    "build_trend_series",
    "project",
    "RiskThresholds",
    "detect_risks",
    "compare_periods",
    "cluster_reviews",
    "AnalysisCache",
]
