"""Services for ReviewPulse."""

from .analytics import ReviewAnalytics
from .llm import LLMServiceFactory, RecommendationService
from .review_store import ReviewStore, load_reviews_file

__all__ = [
    "ReviewAnalytics",
    "LLMServiceFactory",
    "RecommendationService",
    "ReviewStore",
    "load_reviews_file",
]
