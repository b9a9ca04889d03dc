"""Exceptions raised at the collaborator seams of ReviewPulse.

The aggregation functions never raise on empty or malformed review data;
these exceptions cover the things that genuinely fail: remote review
queries, AI completion calls and caller programming errors.
"""

from typing import Dict, Optional


class ReviewPulseError(Exception):
    """Base exception for all ReviewPulse errors"""

    def __init__(self, message: str, error_code: str, details: Optional[Dict] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict:
        """Convert exception to dictionary for JSON output"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class ReviewStoreError(ReviewPulseError):
    """Raised when the review store query fails"""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Dict] = None):
        self.status_code = status_code
        details = dict(details or {})
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, "REVIEW_STORE_ERROR", details)


class CompletionError(ReviewPulseError):
    """Raised when the AI completion call fails or returns nothing"""

    def __init__(self, message: str, provider: str = "openai", details: Optional[Dict] = None):
        self.provider = provider
        details = dict(details or {})
        details["provider"] = provider
        super().__init__(message, "COMPLETION_ERROR", details)


class InvalidGranularityError(ReviewPulseError, ValueError):
    """Raised when a grouping granularity is not recognised"""

    def __init__(self, granularity):
        super().__init__(
            f"Unknown grouping granularity: {granularity!r}",
            "INVALID_GRANULARITY",
            {"granularity": str(granularity)},
        )
