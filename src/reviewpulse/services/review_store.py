"""Review store client (PostgREST / Supabase REST API)."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core.config import settings
from ..core.exceptions import ReviewStoreError
from ..core.models import BusinessFilter, Review

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000


class _TransientStoreError(Exception):
    """Retryable failure (network error or 5xx)."""


class ReviewStore:
    """Fetches reviews and businesses from the review store.

    Failures surface as ``ReviewStoreError``; nothing is substituted for
    data that could not be fetched.
    """

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.base_url = (base_url if base_url is not None else settings.review_store_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.review_store_key
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.session = session or requests.Session()
        self.headers = {"Accept": "application/json"}
        if self.api_key:
            self.headers["apikey"] = self.api_key
            self.headers["Authorization"] = f"Bearer {self.api_key}"

    def _url(self, table: str) -> str:
        if not self.base_url:
            raise ReviewStoreError("Review store URL is not configured (set REVIEW_STORE_URL)")
        return f"{self.base_url}/rest/v1/{table}"

    @retry(
        retry=retry_if_exception_type(_TransientStoreError),
        stop=stop_after_attempt(settings.max_retries),
        wait=wait_exponential(multiplier=settings.retry_delay, max=settings.retry_backoff * 10),
        reraise=True,
    )
    def _get_page(self, url: str, params: List[tuple]) -> List[Dict[str, Any]]:
        try:
            response = self.session.get(url, headers=self.headers, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Review store request failed: {e}")
            raise _TransientStoreError(str(e)) from e

        if response.status_code >= 500:
            logger.warning(f"Review store returned {response.status_code}, retrying")
            raise _TransientStoreError(f"HTTP {response.status_code}")
        if response.status_code != 200:
            raise ReviewStoreError(
                f"Review store query failed: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )
        try:
            rows = response.json()
        except ValueError as e:
            raise ReviewStoreError("Review store returned invalid JSON") from e
        if not isinstance(rows, list):
            raise ReviewStoreError("Review store returned an unexpected payload")
        return rows

    def _get_all(self, table: str, params: List[tuple]) -> List[Dict[str, Any]]:
        url = self._url(table)
        rows: List[Dict[str, Any]] = []
        offset = 0
        while True:
            page_params = params + [("limit", PAGE_SIZE), ("offset", offset)]
            try:
                page = self._get_page(url, page_params)
            except _TransientStoreError as e:
                raise ReviewStoreError(f"Review store unavailable: {e}") from e
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                return rows
            offset += PAGE_SIZE

    def list_businesses(self) -> List[Dict[str, Any]]:
        """Every business row known to the store."""
        rows = self._get_all(settings.businesses_table, [("select", "*"), ("order", "name.asc")])
        logger.info(f"Fetched {len(rows)} businesses")
        return rows

    def list_reviews(self, business: Optional[BusinessFilter] = None,
                     start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Review]:
        """Reviews for one business (or all of them) within an optional date range."""
        business = business or BusinessFilter.all()
        params: List[tuple] = [("select", "*"), ("order", "publishedAtDate.asc")]
        if business.business_id is not None:
            params.append(("businessId", f"eq.{business.business_id}"))
        elif business.business_name is not None:
            params.append(("businessName", f"eq.{business.business_name}"))
        if start is not None:
            params.append(("publishedAtDate", f"gte.{start.isoformat()}"))
        if end is not None:
            params.append(("publishedAtDate", f"lte.{end.isoformat()}"))

        rows = self._get_all(settings.reviews_table, params)
        reviews = [Review.from_dict(row) for row in rows]
        logger.info(f"Fetched {len(reviews)} reviews for {business.describe()}")
        return reviews


def load_reviews_file(path: str, business: Optional[BusinessFilter] = None) -> List[Review]:
    """Load reviews from a JSON export (a list of rows or ``{"reviews": [...]}``)."""
    business = business or BusinessFilter.all()
    try:
        with open(Path(path), "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ReviewStoreError(f"Review file {path} not found") from e
    except json.JSONDecodeError as e:
        raise ReviewStoreError(f"Invalid JSON in review file {path}: {e}") from e

    rows = data.get("reviews", []) if isinstance(data, dict) else data
    if not isinstance(rows, list):
        raise ReviewStoreError(f"Review file {path} does not contain a list of reviews")

    reviews = [Review.from_dict(row) for row in rows if isinstance(row, dict)]
    return [r for r in reviews if business.matches(r)]
