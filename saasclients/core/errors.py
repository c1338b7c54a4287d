"""
Exceptions raised by saasclients.

Every provider client maps HTTP failures onto this hierarchy so callers can
handle GitHub, Stripe, Zoom, ... failures the same way.

Retry classification:
    - Retryable: timeouts, network errors, 429, 5xx
    - Non-retryable: 4xx (except 429), auth errors, decode errors
"""

from __future__ import annotations

from typing import Any


class ApiError(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        message: str,
        provider: str,
        *,
        status_code: int | None = None,
        response_body: str | None = None,
        headers: dict[str, str] | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.response_body = response_body
        self.headers = headers or {}
        self.retryable = retryable

    def __str__(self) -> str:
        parts = [f"[{self.provider}] {self.args[0]}"]
        if self.status_code:
            parts.append(f"(status={self.status_code})")
        return " ".join(parts)


class AuthenticationError(ApiError):
    """Raised when authentication fails (401/403)."""

    def __init__(self, message: str, provider: str, **kwargs):
        super().__init__(message, provider, retryable=False, **kwargs)


class RateLimitError(ApiError):
    """Raised when a rate limit is exceeded (429, or remaining == 0)."""

    def __init__(
        self,
        message: str,
        provider: str,
        *,
        retry_after: float | None = None,
        reset_at: int | None = None,
        **kwargs,
    ):
        super().__init__(message, provider, retryable=True, **kwargs)
        self.retry_after = retry_after
        self.reset_at = reset_at


class NotFoundError(ApiError):
    """Raised when a resource is not found (404)."""

    def __init__(self, message: str, provider: str, **kwargs):
        super().__init__(message, provider, retryable=False, **kwargs)


class ValidationError(ApiError):
    """Raised when request validation fails (400/422)."""

    def __init__(
        self,
        message: str,
        provider: str,
        *,
        validation_errors: list[dict[str, Any]] | None = None,
        **kwargs,
    ):
        super().__init__(message, provider, retryable=False, **kwargs)
        self.validation_errors = validation_errors or []


class ResponseDecodeError(ApiError):
    """Raised when a successful response cannot be parsed."""

    def __init__(self, message: str, provider: str, **kwargs):
        super().__init__(message, provider, retryable=False, **kwargs)


class TokenRefreshError(ApiError):
    """Raised when an OAuth access token cannot be obtained or refreshed."""

    def __init__(self, message: str, provider: str = "oauth2", **kwargs):
        super().__init__(message, provider, retryable=False, **kwargs)
