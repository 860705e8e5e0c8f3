from __future__ import annotations

"""Keyed TTL Cache
==================

In-memory response cache used by the transport. Entries expire lazily: an
entry older than the TTL is treated as absent the next time it is read. An
optional periodic sweep drops every expired entry on access, which keeps the
dict from growing with keys that are never asked for again.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from loguru import logger

__all__ = ["CacheEntry", "TTLCache", "build_cache_key", "MISSING"]


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


# Sentinel so falsy payloads ({} / [] / 0) still count as cache hits
MISSING: Any = _Missing()


def build_cache_key(path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Deterministic cache key for an (endpoint path, params) pair.

    ``None`` values are dropped and keys are sorted, so the same logical
    request always yields the same key regardless of argument order.

    Example:
        >>> build_cache_key("/networks/base/pools", {"page": 1, "x": None})
        '/networks/base/pools-{"page":1}'
    """
    cleaned = {k: v for k, v in (params or {}).items() if v is not None}
    return f"{path}-{json.dumps(cleaned, sort_keys=True, separators=(',', ':'), default=str)}"


@dataclass
class CacheEntry:
    key: str
    value: Any
    stored_at: float


class TTLCache:
    """Time-based cache with lazy expiry.

    Args:
        ttl_seconds: Maximum age of an entry; strictly older entries are absent
        check_period_seconds: Sweep interval for expired entries (None = lazy only)
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        ttl_seconds: float,
        check_period_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._check_period = check_period_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._last_sweep = clock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at > self._ttl

    def _maybe_sweep(self, now: float) -> None:
        if self._check_period is None or now - self._last_sweep < self._check_period:
            return
        self._last_sweep = now
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")

    def get(self, key: str) -> Any:
        """Return the cached value, or ``MISSING`` when absent or expired."""
        now = self._clock()
        self._maybe_sweep(now)

        entry = self._entries.get(key)
        if entry is None:
            return MISSING
        if self._is_expired(entry, now):
            del self._entries[key]
            return MISSING
        return entry.value

    def set(self, key: str, value: Any) -> CacheEntry:
        entry = CacheEntry(key=key, value=value, stored_at=self._clock())
        self._entries[key] = entry
        return entry

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not MISSING

    def __len__(self) -> int:
        return len(self._entries)
