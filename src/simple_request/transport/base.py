"""Capability interface of the native request handle driven by a transport."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Literal, Protocol, runtime_checkable

from ..types import ResponseType

NotificationKind = Literal["progress", "error", "timeout", "abort", "loadend"]


class ReadyState(IntEnum):
    UNSENT = 0
    OPENED = 1
    HEADERS_RECEIVED = 2
    LOADING = 3
    DONE = 4


@dataclass(frozen=True)
class Notification:
    """One event emitted by a handle.

    ``error`` is set for ``error`` and ``timeout`` notifications; the
    progress fields only carry meaning for ``progress``.
    """

    kind: NotificationKind
    error: BaseException | None = None
    length_computable: bool = False
    loaded: int = 0
    total: int = 0


Listener = Callable[[Notification], None]


@runtime_checkable
class RequestHandle(Protocol):
    """A single-use native HTTP request.

    Notifications are delivered to listeners one at a time; ``loadend`` is
    always the last one for a request.
    """

    ready_state: ReadyState
    status: int
    status_text: str
    timeout: int | None
    with_credentials: bool
    response_type: ResponseType | str
    supports_response_type: bool

    @property
    def response(self) -> Any: ...

    @property
    def response_text(self) -> str: ...

    @property
    def response_xml(self) -> Any: ...

    @property
    def response_url(self) -> str: ...

    def add_listener(self, listener: Listener) -> None: ...

    def open(self, method: str, url: str) -> None: ...

    def set_request_header(self, name: str, value: str) -> None: ...

    def send(self, payload: Any = None) -> None: ...

    def abort(self) -> None: ...

    def get_all_response_headers(self) -> str: ...


__all__ = [
    "Listener",
    "Notification",
    "NotificationKind",
    "ReadyState",
    "RequestHandle",
    "ResponseType",
]
