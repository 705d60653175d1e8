"""
Custom exceptions and error handling for CoupleSwipe.

Provides:
- Typed exception hierarchy for configuration, Candidate Source, session and store failures
- Error context preservation for debugging
- Mapping of httpx failures onto the hierarchy
"""

from typing import Any

import httpx


class CoupleSwipeError(Exception):
    """Base exception for all CoupleSwipe errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


class ConfigurationError(CoupleSwipeError):
    """Required configuration (e.g. the TMDB credential) is missing. Never retried."""

    pass


# =============================================================================
# Candidate Source Errors
# =============================================================================


class CandidateSourceError(CoupleSwipeError):
    """Base class for failures talking to the movie metadata API."""

    pass


class RateLimitError(CandidateSourceError):
    """The Candidate Source answered 429."""

    pass


class RetryableFetchError(CandidateSourceError):
    """Rate-limit retries were exhausted; the user may retry manually."""

    pass


class TransportError(CandidateSourceError):
    """Non-success status or network failure."""

    @property
    def status_code(self) -> int | None:
        return self.context.get('status_code')


class MalformedResponseError(TransportError):
    """Response body was not valid JSON or did not match the expected schema."""

    pass


# =============================================================================
# Session Errors
# =============================================================================


class SessionError(CoupleSwipeError):
    """Base class for swipe session errors."""

    pass


class InvalidIntentError(SessionError):
    """The intent is not valid in the current phase."""

    pass


class SessionNotFoundError(SessionError):
    """No live session with the given id."""

    pass


class StoreError(CoupleSwipeError):
    """Persisted settings could not be written."""

    pass


# =============================================================================
# Error Handling Utilities
# =============================================================================


def wrap_http_error(
    exc: Exception, context: dict[str, Any] | None = None
) -> CandidateSourceError:
    """
    Wrap an httpx exception in our typed error hierarchy.

    Args:
        exc: The original exception
        context: Additional context for debugging

    Returns:
        Typed CandidateSourceError subclass
    """
    ctx = context or {}
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        ctx['status_code'] = status
        if status == 429:
            return RateLimitError(
                'TMDB is rate limiting. Try again shortly.',
                context=ctx,
            )
        return TransportError(f"TMDB fetch failed: {status}", context=ctx)
    elif isinstance(exc, httpx.TimeoutException):
        return TransportError(f"TMDB request timed out: {exc}", context=ctx)
    elif isinstance(exc, httpx.HTTPError):
        return TransportError(f"TMDB request failed: {exc}", context=ctx)
    elif isinstance(exc, ValueError):
        return MalformedResponseError(f"TMDB returned an unexpected payload: {exc}", context=ctx)
    else:
        return CandidateSourceError(f"TMDB error: {exc}", context=ctx)
