"""Explicit, caller-owned cache for computed analyses."""

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

from .constants import CacheConstants
from .models import Review

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class _Entry:
    value: Any
    created: float
    last_access: float
    hits: int = 0


class AnalysisCache:
    """Bounded in-memory cache with a TTL and least-hit eviction.

    When full, the entry with the fewest hits is evicted; ties go to the
    entry accessed longest ago. Instances are owned by the caller and passed
    where they are needed.
    """

    def __init__(self, max_size: int = CacheConstants.ANALYSIS_CACHE_MAX_SIZE,
                 ttl: float = CacheConstants.ANALYSIS_CACHE_TTL_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not self._expired(entry, self._clock())

    def _expired(self, entry: _Entry, now: float) -> bool:
        return self.ttl is not None and now - entry.created > self.ttl

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        now = self._clock()
        if self._expired(entry, now):
            del self._entries[key]
            return default
        entry.hits += 1
        entry.last_access = now
        logger.debug(f"Analysis cache hit: {key[:CacheConstants.CACHE_KEY_LENGTH]}...")
        return entry.value

    def set(self, key: str, value: Any) -> None:
        now = self._clock()
        if key not in self._entries:
            self.purge_expired()
            if len(self._entries) >= self.max_size:
                self._evict()
        self._entries[key] = _Entry(value=value, created=now, last_access=now)

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            value = compute()
            self.set(key, value)
        return value

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if self._expired(e, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self, pattern: Optional[str] = None) -> None:
        """Drop every entry, or only those whose key contains ``pattern``."""
        if pattern is None:
            self._entries.clear()
            return
        for key in [k for k in self._entries if pattern in k]:
            del self._entries[key]

    def _evict(self) -> None:
        victim = min(self._entries, key=lambda k: (self._entries[k].hits, self._entries[k].last_access))
        logger.debug(f"Evicting analysis cache entry {victim[:CacheConstants.CACHE_KEY_LENGTH]}...")
        del self._entries[victim]

    def stats(self) -> Dict[str, Any]:
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "ttl": self.ttl,
            "hits": sum(e.hits for e in self._entries.values()),
        }


def review_fingerprint(reviews: Iterable[Review]) -> str:
    """Stable hash of a review list, independent of input order.

    Every field the analyses read is hashed, so a new owner response or an
    edited text, theme or staff list changes the fingerprint.
    """
    parts = sorted(
        repr((
            r.id, r.stars, r.published_at.isoformat() if r.published_at else "",
            r.sentiment or "", r.text or "", r.owner_response_text or "",
            r.main_themes or "", r.staff_mentioned or "", r.business_id or "", r.business_name or "",
        ))
        for r in reviews
    )
    return hashlib.md5("|".join(parts).encode()).hexdigest()


def analysis_key(business: str, fingerprint: str, kind: str = "analysis") -> str:
    return f"{kind}_{business}_{fingerprint}"
