"""Public surface for the single-request HTTP transport."""

from .client import RequestTransport, TransportOptions
from .completion import Completion
from .errors import (
    AbortError,
    HttpStatusError,
    NetworkError,
    ParseError,
    SimpleRequestError,
    TimeoutError,
)
from .headers import merge_headers, parse_headers
from .parser import decode_response
from .proxy import rewrite_url
from .transport import HttpxRequestHandle, Notification, ReadyState, RequestHandle
from .types import HeaderEntry, Progress, RequestOptions, RequestResult
from .version import __version__

__all__ = [
    "__version__",
    "AbortError",
    "Completion",
    "HeaderEntry",
    "HttpStatusError",
    "HttpxRequestHandle",
    "NetworkError",
    "Notification",
    "ParseError",
    "Progress",
    "ReadyState",
    "RequestHandle",
    "RequestOptions",
    "RequestResult",
    "RequestTransport",
    "SimpleRequestError",
    "TimeoutError",
    "TransportOptions",
    "decode_response",
    "merge_headers",
    "parse_headers",
    "rewrite_url",
]
