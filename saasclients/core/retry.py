"""
Retry and backoff for HTTP calls.

Provides:
- BackoffStrategy: Delay calculation between attempts
- RetryPolicy: Which failures are retried, how often, and how long to wait

Every provider client retries transient failures (timeouts, network errors,
429 and 5xx) up to three times with exponential backoff. A server supplied
Retry-After always wins over the computed backoff.
"""

from __future__ import annotations

import copy
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .errors import ApiError, RateLimitError

# =============================================================================
# Backoff Strategies
# =============================================================================


class BackoffStrategy(ABC):
    """
    Abstract base for backoff delay calculation.

    Backoff strategies determine how long to wait between retry attempts.
    """

    @abstractmethod
    def get_delay(self, attempt: int) -> float:
        """
        Calculate delay before next retry attempt.

        Args:
            attempt: Current attempt number (1-indexed, first retry is attempt 1)

        Returns:
            Delay in seconds before next attempt
        """
        ...

    @abstractmethod
    def reset(self) -> None:
        """Reset any internal state (for reuse)."""
        ...


@dataclass
class NoBackoff(BackoffStrategy):
    """No delay between retries. Useful in tests."""

    def get_delay(self, attempt: int) -> float:
        return 0.0

    def reset(self) -> None:
        pass


@dataclass
class ConstantBackoff(BackoffStrategy):
    """Fixed delay between retries."""

    delay: float = 1.0

    def get_delay(self, attempt: int) -> float:
        return self.delay

    def reset(self) -> None:
        pass


@dataclass
class ExponentialBackoff(BackoffStrategy):
    """
    Exponentially increasing delay between retries.

    delay = base * (multiplier ^ (attempt - 1))

    With optional jitter to prevent thundering herd.

    Example:
        backoff = ExponentialBackoff(base=1.0, multiplier=2.0, max_delay=30.0)
        # Attempt 1: 1s, Attempt 2: 2s, Attempt 3: 4s, Attempt 4: 8s, ...
    """

    base: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 60.0
    jitter: bool = True
    jitter_factor: float = 0.25  # +/- 25%

    def get_delay(self, attempt: int) -> float:
        delay = self.base * (self.multiplier ** (attempt - 1))
        delay = min(delay, self.max_delay)

        if self.jitter:
            jitter_range = delay * self.jitter_factor
            delay += random.uniform(-jitter_range, jitter_range)
            delay = max(0, delay)

        return delay

    def reset(self) -> None:
        pass


@dataclass
class DecorrelatedJitter(BackoffStrategy):
    """
    AWS-style decorrelated jitter backoff.

    delay = random(base, previous_delay * 3)

    Reference: https://aws.amazon.com/blogs/architecture/exponential-backoff-and-jitter/
    """

    base: float = 1.0
    max_delay: float = 60.0
    _previous_delay: float = field(default=0.0, init=False)

    def get_delay(self, attempt: int) -> float:
        if attempt == 1:
            self._previous_delay = self.base
        else:
            upper = min(self._previous_delay * 3, self.max_delay)
            self._previous_delay = random.uniform(self.base, upper)

        return self._previous_delay

    def reset(self) -> None:
        self._previous_delay = 0.0


# =============================================================================
# Retry Policy
# =============================================================================

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


@dataclass
class RetryPolicy:
    """
    Configures retry behavior for HTTP requests.

    Example:
        policy = RetryPolicy(
            max_retries=5,
            backoff=ExponentialBackoff(base=0.5),
        )
    """

    max_retries: int = 3
    backoff: BackoffStrategy = field(default_factory=ExponentialBackoff)
    retry_on_status: frozenset[int] = RETRYABLE_STATUS_CODES
    respect_retry_after: bool = True
    max_retry_after: float = 60.0

    def should_retry(self, error: ApiError, attempt: int) -> bool:
        """
        Determine if the request should be sent again.

        Args:
            error: The error raised by the last attempt
            attempt: Number of retries already performed (0-indexed)
        """
        if attempt >= self.max_retries:
            return False

        if not error.retryable:
            return False

        # Slack reports rate limits in a 200 envelope, GitHub in a 403
        if isinstance(error, RateLimitError):
            return True

        if error.status_code is not None:
            return error.status_code in self.retry_on_status

        # Timeouts and network errors carry no status
        return True

    def new_backoff(self) -> BackoffStrategy:
        """
        Fresh backoff state for one call.

        Stateful strategies (DecorrelatedJitter) must not be shared between
        concurrent requests, so each request_raw call works on its own copy.
        """
        backoff = copy.copy(self.backoff)
        backoff.reset()
        return backoff

    def get_delay(
        self,
        attempt: int,
        error: ApiError | None = None,
        backoff: BackoffStrategy | None = None,
    ) -> float:
        """
        Get delay before retry number ``attempt`` (1-indexed).

        Args:
            attempt: Retry number
            error: Error that caused the retry; its Retry-After wins
            backoff: Per-call state from new_backoff(); defaults to the shared strategy
        """
        if (
            self.respect_retry_after
            and isinstance(error, RateLimitError)
            and error.retry_after is not None
        ):
            return min(max(error.retry_after, 0.0), self.max_retry_after)

        return (backoff or self.backoff).get_delay(attempt)


NO_RETRY = RetryPolicy(max_retries=0, backoff=NoBackoff())

DEFAULT_RETRY = RetryPolicy(
    max_retries=3,
    backoff=ExponentialBackoff(base=1.0, multiplier=2.0, max_delay=60.0),
)
