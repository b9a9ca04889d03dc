"""Constants and default parameter values for ReviewPulse."""

# Temporal Grouping Constants
class GroupingConstants:
    """Constants related to calendar bucketing of reviews."""

    # Sunday-indexed (0=Sunday) to match common date-library conventions
    WEEKDAY_NAMES = [
        "Sunday", "Monday", "Tuesday", "Wednesday",
        "Thursday", "Friday", "Saturday",
    ]

    SEASON_NAMES = ["Spring", "Summer", "Fall", "Winter"]

    # 0-indexed month (January=0) -> meteorological season
    SEASON_BY_MONTH_INDEX = {
        0: "Winter", 1: "Winter", 2: "Spring",
        3: "Spring", 4: "Spring", 5: "Summer",
        6: "Summer", 7: "Summer", 8: "Fall",
        9: "Fall", 10: "Fall", 11: "Winter",
    }

    HOUR_LABEL_FORMAT = "{hour:02d}:00"
    WEEK_LABEL_FORMAT = "{year}-W{week:02d}"
    MONTH_LABEL_FORMAT = "{year}-{month:02d}"

    PEAK_PERIODS_TOP_N = 5  # days/hours reported by peak period detection


# Sentiment Constants
class SentimentConstants:
    """Constants for sentiment scoring."""

    SCORES = {
        "positive": 1.0,
        "neutral": 0.5,
        "negative": 0.0,
    }
    UNKNOWN_SCORE = 0.5  # missing sentiment counts as neutral
    EMPTY_SCORE = 0.0  # sentiment score reported for an empty bucket

    POSITIVE_MIN_STARS = 4  # 4-5 star reviews count as positive share
    NEGATIVE_MAX_STARS = 2


# Trend Estimation Constants
class TrendConstants:
    """Constants for the linear trend estimator."""

    SLOPE_THRESHOLD = 0.01  # fixed, not adaptive
    MIN_POINTS = 3  # fewer points are always "stable"


# Forecast Constants
class ForecastConstants:
    """Defaults for forecast projection."""

    DEFAULT_HORIZON = 6  # periods projected forward
    MIN_HISTORY = 3  # historical periods required to project

    INCREASING_FACTOR = 1.05
    DECREASING_FACTOR = 0.95
    STABLE_FACTOR = 1.0

    HISTORICAL_BASE_CONFIDENCE = 95
    HISTORICAL_CONFIDENCE_STEP = 2  # per period back in time
    FORECAST_BASE_CONFIDENCE = 90
    FORECAST_CONFIDENCE_STEP = 8  # per period into the future
    MIN_CONFIDENCE = 50

    MIN_RATING = 1.0
    MAX_RATING = 5.0

    SEASONAL_MIN_MONTHS = 12  # history required for a seasonal forecast
    PEAK_SEASON_FACTOR = 1.2
    QUIET_SEASON_FACTOR = 0.8
    QUALITY_ISSUE_RATING = 4.0


# Risk Detection Constants
class RiskConstants:
    """Defaults for the fixed-threshold risk rules."""

    WINDOW = 3  # most recent periods evaluated
    MIN_PERIODS = 2

    RATING_DROP = 0.3  # stars
    RATING_DROP_CRITICAL = 0.6
    RATING_MAX_PROBABILITY = 90

    VOLUME_DROP_PERCENT = 20.0
    VOLUME_DROP_HIGH_PERCENT = 40.0
    VOLUME_MAX_PROBABILITY = 85

    SENTIMENT_DROP_POINTS = 15.0  # percentage points of 4-5 star share
    SENTIMENT_DROP_HIGH_POINTS = 25.0
    SENTIMENT_MAX_PROBABILITY = 80

    SEASONAL_DEFICIT = 0.6  # normalized deficit vs all-time average

    # Float tolerance applied to the inclusive boundaries above
    TOLERANCE = 1e-9


# Absolute performance alert thresholds
class AlertConstants:
    """Default thresholds for absolute performance alerts."""

    RATING_CRITICAL = 3.0
    RATING_WARNING = 3.5
    NEGATIVE_SENTIMENT_CRITICAL = 40.0  # percent of reviews
    NEGATIVE_SENTIMENT_WARNING = 25.0
    RESPONSE_RATE_CRITICAL = 30.0  # percent of reviews answered
    RESPONSE_RATE_WARNING = 50.0


# Comparison Constants
class ComparisonConstants:
    """Constants for period comparison."""

    DELTA_THRESHOLD = 0.01
    SHORT_WINDOW_DAYS = 30
    LONG_WINDOW_DAYS = 90


# Clustering Constants
class ClusterConstants:
    """Constants for review clustering."""

    # (upper bound exclusive, label); the last label catches everything else
    LENGTH_BUCKETS = [
        (50, "very-short"),
        (150, "short"),
        (300, "medium"),
        (500, "long"),
    ]
    LONGEST_BUCKET = "very-long"

    RESPONDED = "responded"
    NOT_RESPONDED = "not-responded"

    MAX_COMMON_THEMES = 5
    DOMINANT_SENTIMENT_SHARE = 0.6
    SIMILAR_REVIEWS_LIMIT = 5


# Cache Constants
class CacheConstants:
    """Constants for caching behavior."""

    ANALYSIS_CACHE_MAX_SIZE = 100  # entries
    ANALYSIS_CACHE_TTL_SECONDS = 3600
    LLM_CACHE_TTL_HOURS = 24
    CACHE_KEY_LENGTH = 8  # length of cache key for logging


# Prompt Constants
class PromptConstants:
    """Constants for LLM prompts."""

    RECOMMENDATION_PROMPT_VERSION = "v1.2"
    MAX_EXCERPTS = 20  # review excerpts sent with the analysis payload
    MAX_EXCERPT_LENGTH = 300  # chars per excerpt
    MAX_TOKENS = 1500
    TEMPERATURE = 0.4


# Error Handling Constants
class ErrorConstants:
    """Constants for error handling and retries."""

    MAX_RETRY_ATTEMPTS = 3
    REQUEST_TIMEOUT = 60  # timeout for API requests


# File and Path Constants
class FileConstants:
    """Constants for file operations."""

    CACHE_DIR = "cache/llm_cache"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
