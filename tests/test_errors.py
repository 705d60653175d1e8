"""
Tests for the errors module.
"""

import httpx
import pytest

from coupleswipe.errors import (
    CoupleSwipeError,
    ConfigurationError,
    CandidateSourceError,
    RateLimitError,
    RetryableFetchError,
    TransportError,
    MalformedResponseError,
    SessionError,
    InvalidIntentError,
    SessionNotFoundError,
    StoreError,
    wrap_http_error,
)


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.themoviedb.org/3/discover/movie")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestErrorHierarchy:
    """Test error class hierarchy."""

    def test_base_error_with_context(self):
        """Test that base error captures context."""
        error = CoupleSwipeError("Something went wrong", context={"path": "/x", "count": 2})

        assert error.message == "Something went wrong"
        assert error.context == {"path": "/x", "count": 2}
        assert "path" in str(error)

    def test_base_error_without_context(self):
        error = CoupleSwipeError("Simple error")

        assert error.context == {}
        assert str(error) == "Simple error"

    def test_source_error_inheritance(self):
        assert isinstance(RateLimitError("x"), CandidateSourceError)
        assert isinstance(RetryableFetchError("x"), CandidateSourceError)
        assert isinstance(MalformedResponseError("x"), TransportError)
        assert isinstance(TransportError("x"), CoupleSwipeError)

    def test_session_error_inheritance(self):
        assert isinstance(InvalidIntentError("x"), SessionError)
        assert isinstance(SessionNotFoundError("x"), SessionError)
        assert isinstance(StoreError("x"), CoupleSwipeError)
        assert not isinstance(ConfigurationError("x"), CandidateSourceError)

    def test_transport_status_code(self):
        assert TransportError("x", context={"status_code": 500}).status_code == 500
        assert TransportError("x").status_code is None


class TestErrorWrapping:
    """Test httpx error wrapping."""

    def test_wrap_429_as_rate_limit(self):
        wrapped = wrap_http_error(_status_error(429))

        assert isinstance(wrapped, RateLimitError)
        assert wrapped.context["status_code"] == 429

    def test_wrap_other_status_as_transport(self):
        wrapped = wrap_http_error(_status_error(503), context={"path": "/movie/1"})

        assert type(wrapped) is TransportError
        assert wrapped.status_code == 503
        assert wrapped.message == "TMDB fetch failed: 503"
        assert wrapped.context["path"] == "/movie/1"

    def test_wrap_timeout(self):
        wrapped = wrap_http_error(httpx.ReadTimeout("timed out"))

        assert type(wrapped) is TransportError
        assert wrapped.context["error_type"] == "ReadTimeout"

    def test_wrap_connect_error(self):
        wrapped = wrap_http_error(httpx.ConnectError("refused"))

        assert type(wrapped) is TransportError

    def test_wrap_value_error_as_malformed(self):
        wrapped = wrap_http_error(ValueError("Expecting value"))

        assert isinstance(wrapped, MalformedResponseError)

    def test_wrap_unknown(self):
        wrapped = wrap_http_error(RuntimeError("boom"))

        assert type(wrapped) is CandidateSourceError
        assert wrapped.context["original_error"] == "boom"
