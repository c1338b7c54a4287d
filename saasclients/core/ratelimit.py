"""
Rate limit handling.

Two concerns live here:
- RateLimitInfo: what the server says about our quota (x-ratelimit-* headers)
- RateLimiter: optional client-side token bucket so we stay under the quota
  (e.g. Zoom "Medium" label, Shopify 2 req/s)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


# =============================================================================
# Server-reported limits
# =============================================================================


def _header_int(headers: Mapping[str, str], *names: str) -> int | None:
    for name in names:
        value = headers.get(name)
        if value is None:
            continue
        try:
            return int(float(value))
        except ValueError:
            continue
    return None


@dataclass(frozen=True, slots=True)
class RateLimitInfo:
    """Quota state parsed from response headers."""

    limit: int | None = None
    remaining: int | None = None
    reset: int | None = None  # epoch seconds

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> RateLimitInfo:
        """Parse x-ratelimit-* (GitHub, Zoom) or ratelimit-* (IETF draft) headers."""
        return cls(
            limit=_header_int(headers, "x-ratelimit-limit", "ratelimit-limit"),
            remaining=_header_int(headers, "x-ratelimit-remaining", "ratelimit-remaining"),
            reset=_header_int(headers, "x-ratelimit-reset", "ratelimit-reset"),
        )

    @property
    def exhausted(self) -> bool:
        """True when the server reports no requests left in the window."""
        return self.remaining is not None and self.remaining == 0

    def seconds_until_reset(self, now: float | None = None) -> float | None:
        """Seconds until the window resets, or None if unknown."""
        if self.reset is None:
            return None
        now = time.time() if now is None else now
        return max(self.reset - now, 0.0)


# =============================================================================
# Client-side throttle
# =============================================================================


@dataclass
class TokenBucket:
    """
    Token bucket state for rate limiting.

    The bucket fills at a constant rate and has a maximum capacity.
    Each request consumes tokens from the bucket.
    """

    tokens: float
    last_update: float
    capacity: float
    rate: float  # tokens per second

    def replenish(self) -> None:
        """Replenish tokens based on elapsed time."""
        now = time.monotonic()
        elapsed = now - self.last_update
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.last_update = now

    def consume(self, cost: float = 1.0) -> bool:
        """Attempt to consume tokens. Returns False if insufficient."""
        self.replenish()
        if self.tokens >= cost:
            self.tokens -= cost
            return True
        return False

    def time_until_available(self, cost: float = 1.0) -> float:
        """Calculate time until enough tokens are available."""
        self.replenish()
        if self.tokens >= cost:
            return 0.0
        needed = cost - self.tokens
        return needed / self.rate


@dataclass
class RateLimiter:
    """
    Token bucket rate limiter keyed by provider (or any string).

    Example:
        limiter = RateLimiter(rate=10.0, capacity=20)

        if await limiter.acquire("github"):
            ...

        await limiter.wait("github")  # blocks until allowed
    """

    rate: float  # Tokens per second
    capacity: int  # Maximum tokens (burst)
    buckets: dict[str, TokenBucket] = field(default_factory=dict)

    def _get_or_create_bucket(self, key: str) -> TokenBucket:
        bucket = self.buckets.get(key)
        if bucket is None:
            bucket = TokenBucket(
                tokens=float(self.capacity),
                last_update=time.monotonic(),
                capacity=float(self.capacity),
                rate=self.rate,
            )
            self.buckets[key] = bucket
        return bucket

    async def acquire(self, key: str, cost: float = 1.0) -> bool:
        """Non-blocking: returns True if tokens were acquired."""
        bucket = self._get_or_create_bucket(key)

        if bucket.consume(cost):
            logger.debug(f"Rate limit acquired: key={key}, remaining={bucket.tokens:.1f}")
            return True

        logger.debug(f"Rate limit exceeded: key={key}, tokens={bucket.tokens:.1f}")
        return False

    async def wait(self, key: str, cost: float = 1.0, timeout: float | None = None) -> bool:
        """
        Wait until the limiter allows the request.

        Returns:
            True if tokens acquired, False if timeout exceeded
        """
        start = time.monotonic()

        while True:
            bucket = self._get_or_create_bucket(key)

            if bucket.consume(cost):
                return True

            wait_time = bucket.time_until_available(cost)

            if timeout is not None:
                elapsed = time.monotonic() - start
                if elapsed + wait_time > timeout:
                    return False

            logger.debug(f"Rate limit waiting: key={key}, wait={wait_time:.2f}s")
            await asyncio.sleep(min(wait_time, 1.0))
