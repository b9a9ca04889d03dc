"""Analytics pipeline assembling the dashboard payload for a set of reviews."""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from ..core.aggregation import aggregate, sentiment_breakdown, staff_mentions, theme_counts
from ..core.cache import AnalysisCache, analysis_key, review_fingerprint
from ..core.clustering import cluster_reviews, summarize_clusters
from ..core.comparison import generate_comparison_periods
from ..core.config import settings
from ..core.forecast import ForecastParameters, forecast_reviews, seasonal_forecast
from ..core.models import BusinessFilter, Granularity, Review
from ..core.risk import RiskThresholds, check_performance_thresholds, detect_risks
from ..core.temporal import identify_peak_periods, seasonal_patterns, time_series

logger = logging.getLogger(__name__)


class ReviewAnalytics:
    """Runs every analysis over a review list and memoizes the result.

    The cache is owned by the caller; pass the same instance across calls
    to reuse results for an unchanged review set.
    """

    def __init__(
        self,
        cache: Optional[AnalysisCache] = None,
        risk_thresholds: Optional[RiskThresholds] = None,
        forecast_params: Optional[ForecastParameters] = None,
    ):
        self.cache = cache if cache is not None else AnalysisCache(
            max_size=settings.analysis_cache_max_size, ttl=settings.analysis_cache_ttl
        )
        self.risk_thresholds = risk_thresholds or RiskThresholds.from_settings(settings)
        self.forecast_params = forecast_params or ForecastParameters(
            increasing_factor=settings.forecast_increasing_factor,
            decreasing_factor=settings.forecast_decreasing_factor,
            confidence_step=settings.forecast_confidence_step,
        )

    def analyze(
        self,
        reviews: List[Review],
        business: Optional[BusinessFilter] = None,
        today: Optional[date] = None,
        horizon: int = settings.forecast_horizon,
    ) -> Dict[str, Any]:
        """Return the analysis payload for the reviews matching ``business``.

        Each call returns a fresh top-level dict, so adding or replacing keys
        never touches the cached copy. Nested values (lists, dataclasses) are
        shared with the cache and must be treated as read-only.
        """
        business = business or BusinessFilter.all()
        today = today or date.today()
        selected = [r for r in reviews if business.matches(r)]

        fingerprint = f"{review_fingerprint(selected)}_{today.isoformat()}_{horizon}"
        key = analysis_key(business.describe(), fingerprint)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"Using cached analysis for {business.describe()}")
            return dict(cached)

        logger.info(f"Analyzing {len(selected)} reviews for {business.describe()}")
        result = self._compute(selected, business, today, horizon)
        self.cache.set(key, result)
        return dict(result)

    def _compute(self, reviews: List[Review], business: BusinessFilter, today: date, horizon: int) -> Dict[str, Any]:
        monthly = time_series(reviews, Granularity.MONTH)
        forecast = forecast_reviews(reviews, horizon, self.forecast_params)
        clusters = cluster_reviews(reviews)

        return {
            "business": business.describe(),
            "generated_for": today,
            "overview": aggregate(reviews),
            "sentiment": sentiment_breakdown(reviews),
            "themes": theme_counts(reviews),
            "staff": staff_mentions(reviews),
            "groupings": {g.value: time_series(reviews, g) for g in Granularity},
            "trend": {
                "rating": forecast["rating_trend"],
                "volume": forecast["volume_trend"],
            },
            "forecast": {
                "rating": forecast["rating"],
                "volume": forecast["volume"],
            },
            "risks": detect_risks(monthly, today, self.risk_thresholds),
            "alerts": check_performance_thresholds(reviews, business.describe()),
            "seasonal_forecast": seasonal_forecast(monthly, today),
            "seasonal_patterns": seasonal_patterns(reviews),
            "clusters": summarize_clusters(clusters),
            "peak_periods": identify_peak_periods(reviews),
            "comparisons": generate_comparison_periods(
                reviews, datetime(today.year, today.month, today.day, 23, 59, 59)
            ),
        }
