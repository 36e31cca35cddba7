"""Single-request transport: header composition, proxying and the request lifecycle."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import httpx

from .completion import Completion
from .errors import AbortError, HttpStatusError, NetworkError, ParseError, TimeoutError
from .headers import apply_headers, merge_headers, normalize_header_block
from .logger import LogLevel, create_logger
from .parser import decode_response
from .proxy import rewrite_url
from .transport import HttpxRequestHandle, Notification, ReadyState, RequestHandle
from .types import Progress, RequestOptions, RequestResult

ProgressListener = Callable[[Progress], None]

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class TransportOptions:
    append_headers: str | None = None
    proxy: str | None = None
    proxy_encode_url: bool = False
    log_level: LogLevel = "info"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TransportOptions":
        env = os.environ if environ is None else environ
        level = env.get("SIMPLE_REQUEST_LOG_LEVEL", "info").lower()
        return cls(
            append_headers=env.get("SIMPLE_REQUEST_APPEND_HEADERS") or None,
            proxy=env.get("SIMPLE_REQUEST_PROXY") or None,
            proxy_encode_url=env.get("SIMPLE_REQUEST_PROXY_ENCODE_URL", "").lower() in _TRUTHY,
            log_level=level if level in {"trace", "debug", "info", "warn", "error"} else "info",  # type: ignore[arg-type]
        )


class RequestTransport:
    """Performs exactly one HTTP exchange and settles ``completes`` once.

    A transport owns one request handle and is not reusable: create a new
    instance for every request. ``append_headers`` are set on the request
    before the caller's headers and shadow caller headers of the same name.
    Settings come either from the keyword arguments or from ``options``.
    """

    def __init__(
        self,
        *,
        append_headers: str | None = None,
        proxy: str | None = None,
        proxy_encode_url: bool = False,
        handle: RequestHandle | None = None,
        client: httpx.AsyncClient | None = None,
        on_progress: ProgressListener | None = None,
        logger: object | None = None,
        log_level: LogLevel = "info",
        options: TransportOptions | None = None,
    ) -> None:
        if options is not None and (
            append_headers is not None or proxy is not None or proxy_encode_url or log_level != "info"
        ):
            raise TypeError("Pass either options or individual transport settings, not both")
        options = options or TransportOptions(
            append_headers=append_headers,
            proxy=proxy,
            proxy_encode_url=proxy_encode_url,
            log_level=log_level,
        )
        self.append_headers = options.append_headers
        self.proxy = options.proxy
        self.proxy_encode_url = options.proxy_encode_url
        self._logger = create_logger(logger=logger, level=options.log_level).child("transport")
        self.handle: RequestHandle = handle or HttpxRequestHandle(client=client, logger=self._logger)
        self._progress_listeners: list[ProgressListener] = [on_progress] if on_progress else []

        self._response: Any = None
        self._headers: str | None = None
        self._status = 0
        self._status_text = ""
        self._progress: Progress | None = None
        self._aborted = False
        self._errored = False
        self._timed_out = False
        self.completes: Completion[RequestResult] = Completion(logger=self._logger)

    @property
    def response(self) -> Any:
        return self._response

    @property
    def headers(self) -> str | None:
        return self._headers

    @property
    def status(self) -> int:
        return self._status

    @property
    def status_text(self) -> str:
        return self._status_text

    @property
    def progress(self) -> Progress | None:
        return self._progress

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def errored(self) -> bool:
        return self._errored

    @property
    def timed_out(self) -> bool:
        return self._timed_out

    @property
    def succeeded(self) -> bool:
        """True for a completed request with status 0 or 2xx.

        Status 0 counts as success because schemes like ``file://`` never
        report a status code.
        """
        if self._errored or self._aborted or self._timed_out:
            return False
        status = self.handle.status or 0
        return status == 0 or 200 <= status < 300

    def add_progress_listener(self, listener: ProgressListener) -> None:
        self._progress_listeners.append(listener)

    def send(self, options: RequestOptions | Mapping[str, Any]) -> Completion[RequestResult] | None:
        if self.handle.ready_state > ReadyState.UNSENT or self.completes.settled:
            self._logger.debug("Ignoring send() on a transport that was already used")
            return None
        self.handle.add_listener(self._handle_notification)
        try:
            if not isinstance(options, RequestOptions):
                options = RequestOptions.from_mapping(options)
            self._logger = self._logger.bind(options.id)
            url = rewrite_url(options.url, self.proxy, self.proxy_encode_url)
            self._logger.debug("Sending %s %s", options.method, url)
            self.handle.open(options.method, url)
            entries = merge_headers(normalize_header_block(self.append_headers), options.headers)
            apply_headers(self.handle, entries, self._logger)
            self.handle.timeout = options.timeout
            self.handle.with_credentials = bool(options.with_credentials)
            if options.response_type is not None:
                self.handle.response_type = options.response_type
            self.handle.send(options.payload)
        except Exception as exc:
            self._error_handler(exc)
        return self.completes

    def abort(self) -> None:
        """Cancel the request; ``completes`` rejects with an AbortError.

        Settlement normally arrives through the handle's abort notification.
        A transport that was never sent has nothing in flight and settles here.
        """
        self._aborted = True
        if self.completes.settled:
            self._logger.debug("abort() called after the request settled")
            return
        if self.handle.ready_state == ReadyState.UNSENT:
            self._abort_handler()
            return
        self.handle.abort()

    def _handle_notification(self, notification: Notification) -> None:
        if notification.kind == "progress":
            self._progress_handler(notification)
        elif notification.kind == "error":
            self._error_handler(notification.error)
        elif notification.kind == "timeout":
            self._timeout_handler(notification.error)
        elif notification.kind == "abort":
            self._abort_handler()
        elif notification.kind == "loadend":
            self._load_end_handler()
        else:
            self._logger.warn("Unknown notification %s", notification.kind)

    def _progress_handler(self, notification: Notification) -> None:
        if self._aborted:
            return
        self._progress = Progress(
            length_computable=notification.length_computable,
            loaded=notification.loaded,
            total=notification.total,
        )
        for listener in list(self._progress_listeners):
            try:
                listener(self._progress)
            except Exception as exc:
                self._logger.error("Progress listener failed: %s", exc)

    def _error_handler(self, error: BaseException | None) -> None:
        if self._aborted or self.completes.settled:
            return
        self._errored = True
        self._update_status()
        self._headers = self._collect_headers() or None
        message = str(error) if error is not None and str(error) else "Network error"
        failure = NetworkError(message, request=self.handle, headers=self._headers)
        failure.__cause__ = error
        self._logger.debug("Request errored: %s", message)
        self.completes.reject(failure)

    def _timeout_handler(self, error: BaseException | None) -> None:
        if self._aborted or self.completes.settled:
            return
        self._timed_out = True
        self._update_status()
        failure = TimeoutError("Request timed out", request=self.handle)
        failure.__cause__ = error
        self._logger.debug("Request timed out")
        self.completes.reject(failure)

    def _abort_handler(self) -> None:
        if self.completes.settled:
            return
        self._aborted = True
        self._update_status()
        self._logger.debug("Request aborted")
        self.completes.reject(AbortError("Request aborted", request=self.handle))

    def _load_end_handler(self) -> None:
        if self._aborted or self._timed_out:
            return
        self._update_status()
        self._headers = self._collect_headers()
        try:
            self._response = decode_response(self.handle, self._logger)
        except Exception as exc:
            failure = ParseError(
                f"Could not parse response. {exc}",
                request=self.handle,
                headers=self._headers,
            )
            failure.__cause__ = exc
            self.completes.reject(failure)
            return

        if not self.succeeded:
            status = self.handle.status
            self.completes.reject(
                HttpStatusError(
                    f"The request failed with status code: {status}",
                    status=status,
                    request=self.handle,
                    headers=self._headers,
                )
            )
            return
        self._logger.debug("Request succeeded status=%s", self._status)
        self.completes.resolve(RequestResult(response=self._response, headers=self._headers))

    def _update_status(self) -> None:
        self._status = self.handle.status or 0
        self._status_text = self.handle.status_text or ""

    def _collect_headers(self) -> str | None:
        try:
            return self.handle.get_all_response_headers()
        except Exception as exc:
            self._logger.debug("Response headers unavailable: %s", exc)
            return None


__all__ = ["ProgressListener", "RequestTransport", "TransportOptions"]
