"""Response body decoding."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from .logger import BoundLogger, create_logger

if TYPE_CHECKING:
    from .transport.base import RequestHandle

OPAQUE_RESPONSE_TYPES = frozenset({"blob", "document", "arraybuffer"})


def decode_response(handle: RequestHandle, logger: BoundLogger | None = None) -> Any:
    """Return the body of a completed request according to its response type.

    Errors raised by the handle while reading the body propagate to the
    caller, except for malformed JSON which decodes to ``None``.
    """
    response_type = handle.response_type or ""

    if response_type == "json":
        if not handle.supports_response_type or handle.response is None:
            return parse_json_text(handle.response_text, handle.response_url, logger)
        return handle.response
    if response_type == "xml":
        return handle.response_xml
    if response_type in OPAQUE_RESPONSE_TYPES:
        return handle.response
    return handle.response_text


def parse_json_text(text: str | None, source: str = "", logger: BoundLogger | None = None) -> Any:
    try:
        return json.loads(text)  # type: ignore[arg-type]
    except (json.JSONDecodeError, TypeError):
        (logger or create_logger()).warn("Failed to parse JSON sent from %s", source)
        return None


__all__ = ["OPAQUE_RESPONSE_TYPES", "decode_response", "parse_json_text"]
