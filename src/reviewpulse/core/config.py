"""Configuration management for ReviewPulse."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    CacheConstants,
    ErrorConstants,
    FileConstants,
    ForecastConstants,
    RiskConstants,
)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Review store (PostgREST / Supabase REST endpoint)
    review_store_url: str = Field("", description="Base URL of the review store REST API")
    review_store_key: str = Field("", description="API key for the review store")
    reviews_table: str = Field("reviews", description="Table holding review rows")
    businesses_table: str = Field("businesses", description="Table holding business rows")

    # OpenAI API
    openai_api_key: str = Field("", description="OpenAI API key")
    openai_model: str = Field("gpt-4o-mini", description="Model used for recommendations")

    # Logging
    log_level: str = Field("INFO", description="Logging level")

    # Caching
    cache_dir: str = Field(FileConstants.CACHE_DIR, description="Directory for the LLM response cache")
    analysis_cache_max_size: int = Field(
        CacheConstants.ANALYSIS_CACHE_MAX_SIZE, description="Maximum cached analyses"
    )
    analysis_cache_ttl: float = Field(
        CacheConstants.ANALYSIS_CACHE_TTL_SECONDS, description="Analysis cache TTL in seconds"
    )

    # Retries
    max_retries: int = Field(ErrorConstants.MAX_RETRY_ATTEMPTS, description="Maximum retry attempts")
    retry_delay: float = Field(1.0, description="Base retry delay in seconds")
    retry_backoff: float = Field(2.0, description="Retry backoff multiplier")
    request_timeout: float = Field(ErrorConstants.REQUEST_TIMEOUT, description="HTTP timeout in seconds")

    # Risk heuristics
    risk_rating_drop: float = Field(RiskConstants.RATING_DROP, description="Rating drop (stars) that flags a decline")
    risk_rating_drop_critical: float = Field(RiskConstants.RATING_DROP_CRITICAL)
    risk_volume_drop_percent: float = Field(RiskConstants.VOLUME_DROP_PERCENT)
    risk_volume_drop_high_percent: float = Field(RiskConstants.VOLUME_DROP_HIGH_PERCENT)
    risk_sentiment_drop_points: float = Field(RiskConstants.SENTIMENT_DROP_POINTS)
    risk_sentiment_drop_high_points: float = Field(RiskConstants.SENTIMENT_DROP_HIGH_POINTS)
    risk_seasonal_deficit: float = Field(RiskConstants.SEASONAL_DEFICIT)

    # Forecast heuristics
    forecast_horizon: int = Field(ForecastConstants.DEFAULT_HORIZON, description="Periods projected forward")
    forecast_increasing_factor: float = Field(ForecastConstants.INCREASING_FACTOR)
    forecast_decreasing_factor: float = Field(ForecastConstants.DECREASING_FACTOR)
    forecast_confidence_step: float = Field(ForecastConstants.FORECAST_CONFIDENCE_STEP)


# Global settings instance
settings = Settings()
