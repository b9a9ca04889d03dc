"""ReviewPulse - review analytics aggregation engine."""

__version__ = "1.0.0"
__author__ = "ReviewPulse Team"

from .core.models import *
from .core.config import settings
from .core.cache import AnalysisCache
from .services.analytics import ReviewAnalytics
from .services.llm import LLMServiceFactory, RecommendationService
from .services.review_store import ReviewStore

__all__ = [
    "settings",
    "AnalysisCache",
    "ReviewAnalytics",
    "LLMServiceFactory",
    "RecommendationService",
    "ReviewStore",
]
