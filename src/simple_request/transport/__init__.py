"""Request handles driven by a RequestTransport."""

from .base import Listener, Notification, NotificationKind, ReadyState, RequestHandle
from .http import HttpxRequestHandle

__all__ = [
    "HttpxRequestHandle",
    "Listener",
    "Notification",
    "NotificationKind",
    "ReadyState",
    "RequestHandle",
]
