"""Custom exceptions surfaced through a transport's completion signal."""

from __future__ import annotations

from typing import Any


class SimpleRequestError(Exception):
    """Base error for all request failures.

    ``request`` is the underlying handle that produced the failure and
    ``headers`` the raw response header block, when one was captured.
    """

    def __init__(
        self,
        message: str,
        *,
        request: Any | None = None,
        headers: str | None = None,
        context: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.request = request
        self.headers = headers
        self.context = context


class NetworkError(SimpleRequestError):
    """Raised when the underlying transport reports a network error."""


class TimeoutError(SimpleRequestError):
    """Raised when the request exceeds its configured timeout."""


class AbortError(SimpleRequestError):
    """Raised when the request is aborted before it completes."""


class HttpStatusError(SimpleRequestError):
    """Raised when a response arrives with a status outside the success range."""

    def __init__(self, message: str, *, status: int = 0, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.status = status


class ParseError(SimpleRequestError):
    """Raised when a response body cannot be decoded."""


__all__ = [
    "AbortError",
    "HttpStatusError",
    "NetworkError",
    "ParseError",
    "SimpleRequestError",
    "TimeoutError",
]
