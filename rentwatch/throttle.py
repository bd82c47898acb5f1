"""
Request pacing for the crawler.

Two mechanisms share one object: a minimum interval enforced before every
outgoing request, and fixed pauses the orchestrator takes after each network
interaction whatever its outcome.
"""
import asyncio
import time
from typing import Awaitable, Callable, Dict


class Throttle:
    """Fixed-delay rate limiter consulted before and after network calls."""

    def __init__(
        self,
        detail_delay: float = 2.5,
        page_delay: float = 5.0,
        blocked_delay: float = 5.0,
        delivery_delay: float = 2.5,
        min_interval: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.delays: Dict[str, float] = {
            "detail": detail_delay,
            "page": page_delay,
            "blocked": blocked_delay,
            "delivery": delivery_delay,
        }
        self.min_interval = min_interval
        self._sleep = sleep
        self._clock = clock
        self._last_request: float = float("-inf")

    @classmethod
    def from_settings(cls, settings) -> "Throttle":
        return cls(
            detail_delay=settings.detail_delay,
            page_delay=settings.page_delay,
            blocked_delay=settings.blocked_delay,
            delivery_delay=settings.delivery_delay,
            min_interval=settings.min_request_interval,
        )

    @classmethod
    def disabled(cls) -> "Throttle":
        """Zero-delay throttle for tests and dry runs."""
        return cls(0, 0, 0, 0, 0)

    async def acquire(self) -> None:
        """Wait until the minimum interval since the previous request has passed."""
        if self.min_interval > 0:
            wait = self._last_request + self.min_interval - self._clock()
            if wait > 0:
                await self._sleep(wait)
        self._last_request = self._clock()

    async def pause(self, kind: str) -> None:
        """Sleep for the fixed delay configured for this kind of step."""
        if kind not in self.delays:
            raise ValueError(f"Unknown pause kind: {kind}")
        delay = self.delays[kind]
        if delay > 0:
            await self._sleep(delay)
