"""
defiquery toolkits

Upstream access layer for the question pipeline.

Architecture:
- utils/: Cache, rate limiter, cached HTTP transport and envelope builder
- data/: Operation catalogs for specific market-data sources
- tests/: Test suite for the transport and adapter layer

Usage:
    from defiquery.toolkits import CachedTransport, GeckoTerminalToolkit
"""

from .utils import (
    TTLCache,
    CacheEntry,
    build_cache_key,
    RateLimiter,
    RateLimiterState,
    CachedTransport,
    ResponseBuilder,
)

from .data import (
    GeckoTerminalToolkit,
    Timeframe,
    OhlcvCurrency,
)

__all__ = [
    # Utility modules
    "TTLCache",
    "CacheEntry",
    "build_cache_key",
    "RateLimiter",
    "RateLimiterState",
    "CachedTransport",
    "ResponseBuilder",

    # Data toolkits
    "GeckoTerminalToolkit",
    "Timeframe",
    "OhlcvCurrency",
]
