"""Shared data types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

ResponseType = Literal["", "text", "json", "xml", "blob", "document", "arraybuffer"]


@dataclass(frozen=True)
class HeaderEntry:
    name: str
    value: str


@dataclass(frozen=True)
class Progress:
    length_computable: bool
    loaded: int
    total: int


@dataclass
class RequestResult:
    """Success payload of a completion: decoded body and raw header block."""

    response: Any
    headers: str | None = None


@dataclass(frozen=True)
class RequestOptions:
    """Description of one request.

    ``headers`` is a raw block of ``name: value`` lines. ``timeout`` is in
    milliseconds; ``None`` or ``0`` disables it.
    """

    url: str
    method: str = "GET"
    headers: str | None = None
    payload: Any = None
    with_credentials: bool = False
    timeout: int | None = None
    id: str | None = None
    response_type: ResponseType | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RequestOptions":
        """Build options from the plain dict shape produced by a form layer."""
        if not data.get("url"):
            raise ValueError("Request options require a url")
        with_credentials = data.get("with_credentials", data.get("withCredentials", False))
        return cls(
            url=str(data["url"]),
            method=data.get("method") or "GET",
            headers=data.get("headers"),
            payload=data.get("payload"),
            with_credentials=bool(with_credentials),
            timeout=data.get("timeout"),
            id=data.get("id"),
            response_type=data.get("response_type", data.get("responseType")),
        )


__all__ = ["HeaderEntry", "Progress", "RequestOptions", "RequestResult", "ResponseType"]
