from __future__ import annotations

"""Async FIFO Rate Limiter
==========================

Bounds how many upstream requests run at once and how closely consecutive
dispatches may follow each other. Callers are admitted strictly in arrival
order; a waiting caller never overtakes an earlier one.

Example:
    ```python
    limiter = RateLimiter(max_concurrent=1, min_interval=2.0)
    data = await limiter.schedule(client.get, "/networks/base/pools")
    ```
"""

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Optional, TypeVar

from loguru import logger

__all__ = ["RateLimiter", "RateLimiterState"]

T = TypeVar("T")


@dataclass(frozen=True)
class RateLimiterState:
    """Point-in-time view of a limiter."""
    max_concurrent: int
    min_interval: float
    in_flight: int
    pending: int


class RateLimiter:
    """Concurrency + spacing limiter for async callables.

    Args:
        max_concurrent: Maximum number of scheduled calls running at once
        min_interval: Minimum seconds between the starts of two dispatches
        clock: Monotonic time source, injectable for tests
        sleep: Awaitable sleep, injectable for tests
    """

    def __init__(
        self,
        max_concurrent: int = 1,
        min_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if min_interval < 0:
            raise ValueError("min_interval cannot be negative")

        self._max_concurrent = max_concurrent
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep

        self._waiters: Deque[asyncio.Future] = deque()
        self._in_flight = 0
        self._last_dispatch: Optional[float] = None

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def pending(self) -> int:
        return len(self._waiters)

    def state(self) -> RateLimiterState:
        return RateLimiterState(
            max_concurrent=self._max_concurrent,
            min_interval=self._min_interval,
            in_flight=self._in_flight,
            pending=len(self._waiters),
        )

    async def _acquire(self) -> None:
        # Fast path only when nobody is queued, otherwise FIFO would break
        if self._in_flight < self._max_concurrent and not self._waiters:
            self._in_flight += 1
            return

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Slot was handed over just before cancellation; pass it on
                self._release()
            else:
                self._waiters.remove(waiter)
            raise

    def _release(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                # Slot transfers directly to the next caller; in_flight unchanged
                waiter.set_result(None)
                return
        self._in_flight -= 1

    async def _wait_for_spacing(self) -> None:
        now = self._clock()
        start = now
        if self._last_dispatch is not None:
            start = max(now, self._last_dispatch + self._min_interval)
        # Reserve the dispatch slot before sleeping so parallel holders stay spaced
        self._last_dispatch = start

        wait = start - now
        if wait > 0:
            logger.debug(f"Rate limiting: sleeping {wait:.2f}s before next dispatch")
            await self._sleep(wait)

    async def schedule(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run ``func(*args, **kwargs)`` once a slot is free and spacing allows.

        Raises:
            Whatever ``func`` raises; the slot is always released.
        """
        await self._acquire()
        try:
            await self._wait_for_spacing()
            return await func(*args, **kwargs)
        finally:
            self._release()
