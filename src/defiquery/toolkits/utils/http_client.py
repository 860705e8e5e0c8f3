from __future__ import annotations

"""Cached, Rate-Limited Async HTTP Transport
===========================================

The single gateway between the pipeline and one upstream base URL. Every GET
goes through the same steps:

1. drop parameters whose value is ``None``
2. derive a deterministic cache key from path + sorted parameters
3. return a fresh cached value immediately (no queueing, no network)
4. otherwise join an identical in-flight request, or schedule a new one
   through the FIFO rate limiter
5. store successful JSON bodies under the cache key
6. translate failures into the transport error taxonomy, never caching them

Key Features:
- One cache and one limiter per instance, no module-level singletons
- Explicit, configurable request timeout
- No automatic retries; failures surface to the caller as typed errors
- Injectable ``httpx.AsyncClient``, clock and sleep for deterministic tests
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from loguru import logger

from defiquery.config import TransportConfig
from defiquery.config.defaults import DEFAULT_BASE_URL
from defiquery.exceptions import (
    TransportError,
    RateLimitedError,
    NotFoundError,
    BadRequestError,
    UpstreamError,
    NetworkError,
)
from .rate_limiter import RateLimiter, RateLimiterState
from .ttl_cache import TTLCache, MISSING, build_cache_key

__all__ = ["CachedTransport"]


class CachedTransport:
    """Async GET client with response caching and polite request throttling.

    Example:
        ```python
        async with CachedTransport(base_url="https://api.geckoterminal.com/api/v2") as transport:
            pools = await transport.get("/networks/base/pools", params={"page": 1})
            # Identical call inside the TTL is served from cache
            pools_again = await transport.get("/networks/base/pools", params={"page": 1})
        ```
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        max_concurrent: int = 1,
        min_interval: float = 2.0,
        cache_enabled: bool = True,
        cache_ttl: float = 30.0,
        cache_check_period: Optional[float] = 60.0,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the transport.

        Args:
            base_url: Upstream base URL every path is resolved against
            timeout: Request timeout in seconds
            headers: Headers applied to every request
            max_concurrent: Maximum requests in flight at once
            min_interval: Minimum seconds between two dispatches
            cache_enabled: Whether successful responses are cached
            cache_ttl: Seconds a cached response stays valid
            cache_check_period: Seconds between sweeps of expired entries
            client: Pre-built httpx client (ownership stays with the caller)
            clock: Monotonic time source shared by cache and limiter
            sleep: Awaitable sleep used by the limiter
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = headers or {}

        self._client = client
        self._owns_client = client is None

        self._cache: Optional[TTLCache] = (
            TTLCache(cache_ttl, cache_check_period, clock=clock) if cache_enabled else None
        )
        self._limiter = RateLimiter(
            max_concurrent=max_concurrent,
            min_interval=min_interval,
            clock=clock,
            sleep=sleep,
        )

        # Identical requests already dispatched, keyed by cache key
        self._pending: Dict[str, asyncio.Task] = {}

        self._stats = {"hits": 0, "misses": 0, "network_calls": 0, "deduplicated": 0}

        logger.debug(
            f"Initialized CachedTransport for {self._base_url} "
            f"(timeout={timeout}s, max_concurrent={max_concurrent}, min_interval={min_interval}s, "
            f"cache={'on, ttl=' + str(cache_ttl) + 's' if cache_enabled else 'off'})"
        )

    @classmethod
    def from_config(
        cls,
        config: TransportConfig,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> "CachedTransport":
        """Build a transport from a validated ``TransportConfig``."""
        return cls(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            headers=config.headers,
            max_concurrent=config.rate_limit.max_concurrent,
            min_interval=config.rate_limit.min_interval_seconds,
            cache_enabled=config.cache.enabled,
            cache_ttl=config.cache.ttl_seconds,
            cache_check_period=config.cache.check_period_seconds,
            client=client,
            clock=clock,
            sleep=sleep,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def stats(self) -> Dict[str, int]:
        return dict(self._stats)

    def limiter_state(self) -> RateLimiterState:
        return self._limiter.state()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=self._timeout,
            )
            logger.debug(f"Created HTTP client for {self._base_url}")
        return self._client

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Fetch ``path`` relative to the base URL and return the parsed JSON body.

        Args:
            path: URL path, e.g. ``/networks/base/pools``
            params: Query parameters; ``None`` values are dropped

        Returns:
            The decoded JSON body (possibly served from cache)

        Raises:
            RateLimitedError: Upstream answered 429
            NotFoundError: Upstream answered 404
            BadRequestError: Upstream answered 400
            UpstreamError: Any other non-2xx answer
            NetworkError: No usable response (connection failure, timeout, bad JSON)
        """
        cleaned = {k: v for k, v in (params or {}).items() if v is not None}
        key = build_cache_key(path, cleaned)

        if self._cache is not None:
            cached = self._cache.get(key)
            if cached is not MISSING:
                self._stats["hits"] += 1
                logger.debug(f"Cache hit {key}")
                return cached

        self._stats["misses"] += 1

        task = self._pending.get(key)
        if task is not None:
            self._stats["deduplicated"] += 1
            logger.debug(f"Joining in-flight request {key}")
        else:
            task = asyncio.ensure_future(self._dispatch(key, path, cleaned))
            task.add_done_callback(_consume_exception)
            self._pending[key] = task

        # Abandoning callers must not cancel the shared request or its cache write
        return await asyncio.shield(task)

    async def _dispatch(self, key: str, path: str, params: Dict[str, Any]) -> Any:
        try:
            data = await self._limiter.schedule(self._fetch, path, params)
            if self._cache is not None:
                self._cache.set(key, data)
            return data
        finally:
            self._pending.pop(key, None)

    async def _fetch(self, path: str, params: Dict[str, Any]) -> Any:
        client = self._get_client()
        self._stats["network_calls"] += 1
        logger.debug(f"Fetching {path} params={params}")

        try:
            # Absolute URL and explicit timeout hold for injected clients too
            response = await client.get(f"{self._base_url}{path}", params=params, timeout=self._timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error = self._translate_status_error(e.response, path, e)
            logger.warning(f"Upstream request {path} failed: {error.message}")
            raise error from e
        except httpx.RequestError as e:
            logger.warning(f"Upstream request {path} failed without response: {e!r}")
            raise NetworkError(path=path, cause=e) from e

        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"Upstream request {path} returned invalid JSON: {e}")
            raise NetworkError(path=path, cause=e) from e

    @staticmethod
    def _extract_detail(response: httpx.Response) -> Optional[str]:
        """Pull a short error description out of an upstream error body, if any."""
        try:
            body = response.json()
        except ValueError:
            return None

        if not isinstance(body, dict):
            return None
        if isinstance(body.get("error"), str):
            return body["error"]

        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            first = errors[0]
            detail = first.get("detail") or first.get("title")
            return str(detail) if detail else None
        return None

    def _translate_status_error(
        self, response: httpx.Response, path: str, cause: Exception
    ) -> TransportError:
        status = response.status_code
        if status == 429:
            return RateLimitedError(path=path, cause=cause)
        if status == 404:
            return NotFoundError(path=path, cause=cause)

        detail = self._extract_detail(response)
        if status == 400:
            return BadRequestError(detail=detail, path=path, cause=cause)
        return UpstreamError(status_code=status, detail=detail, path=path, cause=cause)

    def clear_cache(self) -> None:
        """Drop every cached response."""
        if self._cache is not None:
            self._cache.clear()
        logger.info("Transport cache cleared")

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.debug(f"Closed HTTP client for {self._base_url}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


def _consume_exception(task: asyncio.Task) -> None:
    # Mark the exception retrieved even if every awaiting caller went away
    if not task.cancelled():
        task.exception()
