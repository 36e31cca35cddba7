"""Request handle built on top of httpx."""

from __future__ import annotations

import asyncio
import codecs
import json
import re
import xml.etree.ElementTree as ElementTree
from typing import Any, Mapping

import httpx

from ..headers import serialize_headers
from ..logger import BoundLogger, create_logger
from .base import Listener, Notification, NotificationKind, ReadyState

_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

FORBIDDEN_HEADERS = frozenset(
    {
        "accept-charset",
        "accept-encoding",
        "access-control-request-headers",
        "access-control-request-method",
        "connection",
        "content-length",
        "cookie",
        "cookie2",
        "date",
        "dnt",
        "expect",
        "host",
        "keep-alive",
        "origin",
        "referer",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
        "via",
    }
)
FORBIDDEN_PREFIXES = ("proxy-", "sec-")


class HttpxRequestHandle:
    """One HTTP exchange run as an asyncio task on an ``httpx.AsyncClient``.

    ``send()`` must be called from a running event loop. When no client is
    given, one is created for the exchange and closed when it ends.
    """

    supports_response_type = True

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self._client = client
        self._logger = (logger or create_logger()).child("http")
        self._listeners: list[Listener] = []
        self._method = "GET"
        self._url = ""
        self._request_headers: list[tuple[str, str]] = []
        self._task: asyncio.Task[None] | None = None
        self._aborted = False

        self.ready_state = ReadyState.UNSENT
        self.status = 0
        self.status_text = ""
        self.timeout: int | None = None
        self.with_credentials = False
        self.response_type = ""

        self._response_url = ""
        self._response_headers: list[tuple[str, str]] = []
        self._body = b""
        self._encoding = "utf-8"

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def open(self, method: str, url: str) -> None:
        if not _TOKEN.match(method):
            raise ValueError(f"Invalid HTTP method: {method!r}")
        self._method = method.upper()
        self._url = url
        self._request_headers = []
        self.ready_state = ReadyState.OPENED

    def set_request_header(self, name: str, value: str) -> None:
        if self.ready_state != ReadyState.OPENED or self._task is not None:
            raise RuntimeError("Headers can only be set on an opened, unsent request")
        if not _TOKEN.match(name):
            raise ValueError(f"Invalid header name: {name!r}")
        if any(char in value for char in "\r\n\0"):
            raise ValueError(f"Invalid value for header {name}")
        lowered = name.lower()
        if lowered in FORBIDDEN_HEADERS or lowered.startswith(FORBIDDEN_PREFIXES):
            raise ValueError(f"Header {name} is managed by the transport")
        self._request_headers.append((name, value))

    def send(self, payload: Any = None) -> None:
        if self.ready_state != ReadyState.OPENED or self._task is not None:
            raise RuntimeError("Request is not opened or was already sent")

        request = self._build_request(payload)
        loop = asyncio.get_running_loop()
        self._logger.debug("HTTP %s %s", request.method, request.url)
        self._task = loop.create_task(self._run(request))

    def abort(self) -> None:
        if self._task is None or self.ready_state == ReadyState.DONE:
            return
        self._aborted = True
        self._task.cancel()
        self._finish()
        self.status = 0
        self.status_text = ""
        self._logger.debug("HTTP %s %s aborted", self._method, self._url)
        self._emit("abort")
        self._emit("loadend")

    def get_all_response_headers(self) -> str:
        return serialize_headers(self._response_headers)

    @property
    def response_url(self) -> str:
        return self._response_url

    @property
    def response_text(self) -> str:
        return self._body.decode(self._encoding, errors="replace")

    @property
    def response_xml(self) -> ElementTree.Element | None:
        if not self._body:
            return None
        return ElementTree.fromstring(self._body)

    @property
    def response(self) -> Any:
        if self.ready_state != ReadyState.DONE:
            return None
        if self.response_type == "json":
            try:
                return json.loads(self.response_text)
            except json.JSONDecodeError:
                return None
        if self.response_type in {"arraybuffer", "blob"}:
            return self._body
        if self.response_type in {"document", "xml"}:
            return self.response_xml
        return self.response_text

    def _build_request(self, payload: Any) -> httpx.Request:
        kwargs: dict[str, Any] = {}
        if isinstance(payload, Mapping):
            kwargs["data"] = payload
        elif isinstance(payload, (str, bytes, bytearray)):
            kwargs["content"] = bytes(payload) if isinstance(payload, bytearray) else payload
        elif payload is not None:
            raise TypeError(f"Unsupported payload type: {type(payload).__name__}")

        extensions: dict[str, Any] = {}
        if self.timeout:
            extensions["timeout"] = httpx.Timeout(self.timeout / 1000).as_dict()
        elif self._client is not None:
            extensions["timeout"] = self._client.timeout.as_dict()

        request = httpx.Request(
            self._method,
            self._url,
            headers=httpx.Headers(self._request_headers),
            extensions=extensions,
            **kwargs,
        )
        if self.with_credentials and self._client is not None:
            self._client.cookies.set_cookie_header(request)
        return request

    async def _run(self, request: httpx.Request) -> None:
        client = self._client or httpx.AsyncClient()
        try:
            kind, error = await self._perform(client, request)
            self._finish()
            if kind is not None:
                self.status = 0
                self.status_text = ""
                self._response_headers = []
                self._emit(kind, error=error)
            self._emit("loadend")
        finally:
            if self._client is None:
                await client.aclose()

    async def _perform(
        self, client: httpx.AsyncClient, request: httpx.Request
    ) -> tuple[NotificationKind | None, BaseException | None]:
        try:
            if self.timeout:
                await asyncio.wait_for(self._exchange(client, request), self.timeout / 1000)
            else:
                await self._exchange(client, request)
        except asyncio.CancelledError:
            if not self._aborted:
                self._aborted = True
                self._finish()
                self._emit("abort")
                self._emit("loadend")
            raise
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            self._logger.debug("HTTP %s %s timed out", request.method, request.url)
            return "timeout", exc
        except httpx.HTTPError as exc:
            self._logger.debug("HTTP %s %s failed: %s", request.method, request.url, exc)
            return "error", exc
        except Exception as exc:
            self._logger.error("HTTP %s %s failed unexpectedly: %r", request.method, request.url, exc)
            return "error", exc
        return None, None

    async def _exchange(self, client: httpx.AsyncClient, request: httpx.Request) -> None:
        response = await client.send(request, stream=True, follow_redirects=True)
        try:
            self.status = response.status_code
            self.status_text = response.reason_phrase
            self._response_url = str(response.url)
            self._response_headers = list(response.headers.multi_items())
            self._encoding = _known_encoding(response.charset_encoding)
            self.ready_state = ReadyState.HEADERS_RECEIVED

            length = response.headers.get("content-length")
            total = int(length) if length and length.isdigit() else 0
            chunks: list[bytes] = []
            loaded = 0
            self.ready_state = ReadyState.LOADING
            async for chunk in response.aiter_bytes():
                chunks.append(chunk)
                loaded += len(chunk)
                self._emit("progress", length_computable=total > 0, loaded=loaded, total=total)
            self._body = b"".join(chunks)
        finally:
            await response.aclose()
        self._logger.debug(
            "HTTP <- %s status=%s bytes=%d",
            self._response_url,
            self.status,
            len(self._body),
        )

    def _finish(self) -> None:
        self.ready_state = ReadyState.DONE

    def _emit(self, kind: NotificationKind, **fields: Any) -> None:
        notification = Notification(kind=kind, **fields)
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception as exc:
                self._logger.error("Listener failed on %s: %r", kind, exc)


def _known_encoding(charset: str | None) -> str:
    if charset:
        try:
            codecs.lookup(charset)
        except LookupError:
            return "utf-8"
        return charset
    return "utf-8"


__all__ = ["FORBIDDEN_HEADERS", "HttpxRequestHandle"]
