"""
Utility modules for the defiquery toolkits.

This package contains the reusable pieces behind every upstream call:
- TTLCache: Keyed response cache with lazy expiry
- RateLimiter: FIFO concurrency + spacing limiter
- CachedTransport: httpx GET client combining cache, limiter and error translation
- ResponseBuilder: Consistent ResponseEnvelope construction
"""

from .ttl_cache import TTLCache, CacheEntry, build_cache_key
from .rate_limiter import RateLimiter, RateLimiterState
from .http_client import CachedTransport
from .response_builder import ResponseBuilder, GENERIC_ERROR_MESSAGE

__all__ = [
    'TTLCache',
    'CacheEntry',
    'build_cache_key',
    'RateLimiter',
    'RateLimiterState',
    'CachedTransport',
    'ResponseBuilder',
    'GENERIC_ERROR_MESSAGE',
]
