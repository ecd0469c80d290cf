"""
Token Bucket Rate Limiter

Provides admission control for gateway commands: bursts up to the bucket
capacity go through immediately, sustained load is throttled to the refill
rate, and callers beyond the wait-queue bound are rejected.
"""

import asyncio
import math
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Optional

from .errors import AS400RateLimitError
from .observability import GatewayLogger, null_logger


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""
    tokens_per_second: float = 5.0  # Refill rate
    capacity: int = 5  # Max burst size
    max_waiting: int = 10  # Max callers queued for a token

    def __post_init__(self) -> None:
        if self.tokens_per_second <= 0:
            raise ValueError(f"tokens_per_second must be positive: {self.tokens_per_second}")
        if self.capacity < 1:
            raise ValueError(f"capacity must be at least 1: {self.capacity}")
        if self.max_waiting < 0:
            raise ValueError(f"max_waiting cannot be negative: {self.max_waiting}")

    @property
    def retry_after_ms(self) -> int:
        """Interval between admission checks for a queued caller."""
        return math.ceil(1000 / self.tokens_per_second)


class TokenBucketRateLimiter:
    """
    Token bucket with a bounded FIFO wait queue.

    Waiters are admitted in arrival order: a queued caller only takes a
    token once everyone ahead of it has been served.
    """

    def __init__(self, config: Optional[RateLimitConfig] = None,
                 clock: Callable[[], float] = time.monotonic,
                 logger: Optional[GatewayLogger] = None):
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._logger = logger or null_logger()
        self._tokens = float(self.config.capacity)
        self._last_refill = clock()
        self._waiters: Deque[object] = deque()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        """Add tokens earned since the last refill, capped at capacity."""
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(
            float(self.config.capacity),
            self._tokens + elapsed * self.config.tokens_per_second,
        )
        self._last_refill = now

    async def acquire(self) -> None:
        """
        Take one token, waiting in line if none is available.

        Raises:
            AS400RateLimitError: If the wait queue is already full
        """
        retry_after_ms = self.config.retry_after_ms

        async with self._lock:
            self._refill()
            if not self._waiters and self._tokens >= 1:
                self._tokens -= 1
                return

            if len(self._waiters) >= self.config.max_waiting:
                self._logger.warning("Rate limit exceeded, wait queue full", extra={
                    "waiting": len(self._waiters),
                    "retry_after_ms": retry_after_ms,
                })
                raise AS400RateLimitError(
                    f"Rate limit exceeded: {len(self._waiters)} callers already waiting",
                    retry_after_ms=retry_after_ms,
                )

            ticket = object()
            self._waiters.append(ticket)
            self._logger.debug("Waiting for rate limit token", extra={
                "position": len(self._waiters),
            })

        try:
            while True:
                await asyncio.sleep(retry_after_ms / 1000)
                async with self._lock:
                    self._refill()
                    if self._waiters[0] is ticket and self._tokens >= 1:
                        self._waiters.popleft()
                        self._tokens -= 1
                        return
        except asyncio.CancelledError:
            if ticket in self._waiters:
                self._waiters.remove(ticket)
            raise

    def get_status(self) -> Dict[str, int]:
        """Current whole tokens and queued callers."""
        self._refill()
        return {
            "tokens": math.floor(self._tokens),
            "waiting": len(self._waiters),
        }

    def get_stats(self) -> Dict[str, Any]:
        """Status plus the configured limits."""
        stats: Dict[str, Any] = dict(self.get_status())
        stats.update({
            "capacity": self.config.capacity,
            "tokens_per_second": self.config.tokens_per_second,
            "max_waiting": self.config.max_waiting,
            "retry_after_ms": self.config.retry_after_ms,
        })
        return stats
