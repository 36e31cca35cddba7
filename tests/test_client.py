from typing import Any

import pytest

from simple_request import (
    AbortError,
    HttpStatusError,
    NetworkError,
    ParseError,
    Progress,
    RequestOptions,
    RequestResult,
    RequestTransport,
    TimeoutError,
    TransportOptions,
)
from simple_request.transport.base import Notification, ReadyState


class FakeHandle:
    """Records what the transport does and lets tests emit notifications."""

    supports_response_type = False

    def __init__(self, *, send_error: Exception | None = None, rejected: set[str] | None = None) -> None:
        self.ready_state = ReadyState.UNSENT
        self.status = 0
        self.status_text = ""
        self.timeout: int | None = None
        self.with_credentials = False
        self.response_type = ""
        self.response: Any = None
        self.response_text = ""
        self.response_xml: Any = None
        self.response_url = ""
        self.raw_headers = ""
        self.listeners: list[Any] = []
        self.opened: list[tuple[str, str]] = []
        self.headers: list[tuple[str, str]] = []
        self.payloads: list[Any] = []
        self.abort_calls = 0
        self.header_reads = 0
        self._send_error = send_error
        self._rejected = rejected or set()

    def add_listener(self, listener: Any) -> None:
        self.listeners.append(listener)

    def open(self, method: str, url: str) -> None:
        self.opened.append((method, url))
        self.ready_state = ReadyState.OPENED

    def set_request_header(self, name: str, value: str) -> None:
        if name in self._rejected:
            raise ValueError(f"{name} is forbidden")
        self.headers.append((name, value))

    def send(self, payload: Any = None) -> None:
        if self._send_error is not None:
            raise self._send_error
        self.payloads.append(payload)

    def abort(self) -> None:
        self.abort_calls += 1

    def get_all_response_headers(self) -> str:
        self.header_reads += 1
        return self.raw_headers

    def emit(self, kind: str, **fields: Any) -> None:
        self.ready_state = ReadyState.DONE if kind != "progress" else ReadyState.LOADING
        for listener in self.listeners:
            listener(Notification(kind=kind, **fields))  # type: ignore[arg-type]

    def complete(self, status: int, text: str = "", headers: str = "") -> None:
        self.status = status
        self.status_text = "OK" if status == 200 else ""
        self.response_text = text
        self.raw_headers = headers
        self.emit("loadend")


def make_transport(**kwargs: Any) -> tuple[RequestTransport, FakeHandle]:
    handle = kwargs.pop("handle", None) or FakeHandle()
    return RequestTransport(handle=handle, **kwargs), handle


def test_initial_state() -> None:
    transport, _ = make_transport()
    assert transport.response is None
    assert transport.headers is None
    assert transport.status == 0
    assert transport.status_text == ""
    assert transport.progress is None
    assert transport.aborted is False
    assert transport.errored is False
    assert transport.timed_out is False
    assert transport.completes.settled is False


def test_send_opens_configures_and_sends() -> None:
    transport, handle = make_transport()
    completion = transport.send(
        RequestOptions(
            url="http://success.domain.com/",
            method="POST",
            headers="content-type: text/plain",
            payload="body",
            with_credentials=True,
            timeout=500,
            response_type="json",
        )
    )
    assert completion is transport.completes
    assert handle.opened == [("POST", "http://success.domain.com/")]
    assert handle.headers == [("content-type", "text/plain")]
    assert handle.payloads == ["body"]
    assert handle.timeout == 500
    assert handle.with_credentials is True
    assert handle.response_type == "json"
    assert len(handle.listeners) == 1


def test_send_accepts_plain_mapping() -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://a.com/", "headers": "x-a: 1", "withCredentials": True, "id": "request0"})
    assert handle.opened == [("GET", "http://a.com/")]
    assert handle.headers == [("x-a", "1")]
    assert handle.with_credentials is True


def test_send_on_open_handle_is_a_no_op() -> None:
    transport, handle = make_transport()
    handle.ready_state = ReadyState.OPENED
    assert transport.send({"url": "http://a.com/"}) is None
    assert handle.opened == []
    assert handle.listeners == []
    assert handle.payloads == []


def test_second_send_is_ignored() -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://a.com/"})
    assert transport.send({"url": "http://b.com/"}) is None
    assert handle.opened == [("GET", "http://a.com/")]
    assert handle.payloads == [None]


def test_send_applies_proxy() -> None:
    transport, handle = make_transport(proxy="https://api.domain.com/endpoint?url=", proxy_encode_url=True)
    transport.send({"url": "http://test.com"})
    assert handle.opened == [("GET", "https://api.domain.com/endpoint?url=http%3A%2F%2Ftest.com")]


def test_fixed_headers_take_precedence() -> None:
    transport, handle = make_transport(append_headers="x-a: test1\\nx-b: test2")
    transport.send({"url": "http://a.com/", "headers": "x-a: test3\naccept: application/json"})
    assert handle.headers == [("x-a", "test1"), ("x-b", "test2"), ("accept", "application/json")]


def test_rejected_header_does_not_fail_request() -> None:
    transport, handle = make_transport(handle=FakeHandle(rejected={"cookie"}))
    transport.send({"url": "http://a.com/", "headers": "cookie: a=1\nx-a: 1"})
    assert handle.headers == [("x-a", "1")]
    assert handle.payloads == [None]
    assert transport.errored is False


def test_synchronous_send_failure_rejects() -> None:
    failure = RuntimeError("no event loop")
    transport, _ = make_transport(handle=FakeHandle(send_error=failure))
    completion = transport.send({"url": "http://a.com/"})
    assert completion is transport.completes
    assert transport.errored is True
    error = transport.completes.exception()
    assert isinstance(error, NetworkError)
    assert error.__cause__ is failure


def test_invalid_options_reject_instead_of_raising() -> None:
    transport, _ = make_transport()
    transport.send({"method": "GET"})
    assert isinstance(transport.completes.exception(), NetworkError)


def test_progress_updates_state_and_notifies_listeners() -> None:
    seen: list[Progress] = []
    transport, handle = make_transport(on_progress=seen.append)
    transport.send({"url": "http://a.com/"})
    handle.emit("progress", length_computable=True, loaded=5, total=10)
    assert transport.progress == Progress(length_computable=True, loaded=5, total=10)
    assert seen == [transport.progress]
    assert transport.completes.settled is False


def test_failing_progress_listener_does_not_break_lifecycle() -> None:
    def explode(progress: Progress) -> None:
        raise RuntimeError("listener bug")

    transport, handle = make_transport(on_progress=explode)
    transport.send({"url": "http://a.com/"})
    handle.emit("progress", length_computable=False, loaded=1, total=0)
    handle.complete(200, "ok")
    assert transport.completes.result().response == "ok"


def test_progress_is_ignored_after_abort() -> None:
    seen: list[Progress] = []
    transport, handle = make_transport(on_progress=seen.append)
    transport.send({"url": "http://a.com/"})
    transport.abort()
    handle.emit("progress", length_computable=True, loaded=5, total=10)
    assert transport.progress is None
    assert seen == []


def test_error_notification_rejects_with_headers() -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://a.com/"})
    handle.raw_headers = "test-headers"
    cause = OSError("connection refused")
    handle.emit("error", error=cause)
    assert transport.errored is True
    assert transport.headers == "test-headers"
    error = transport.completes.exception()
    assert isinstance(error, NetworkError)
    assert error.request is handle
    assert error.headers == "test-headers"
    assert error.__cause__ is cause


def test_abort_suppresses_error_notification() -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://a.com/"})
    transport.abort()
    assert handle.abort_calls == 1
    handle.emit("error", error=OSError("late"))
    assert transport.errored is False
    assert transport.headers is None
    assert handle.header_reads == 0
    assert transport.completes.settled is False


def test_abort_notification_rejects() -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://a.com/"})
    transport.abort()
    handle.emit("abort")
    handle.emit("loadend")
    assert transport.aborted is True
    error = transport.completes.exception()
    assert isinstance(error, AbortError)
    assert str(error) == "Request aborted"
    assert error.request is handle
    assert error.headers is None


def test_abort_before_send_settles_immediately() -> None:
    transport, handle = make_transport()
    transport.abort()
    assert handle.abort_calls == 0
    assert isinstance(transport.completes.exception(), AbortError)
    assert transport.send({"url": "http://a.com/"}) is None


def test_abort_after_settlement_only_sets_the_flag() -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://a.com/"})
    handle.complete(200, "done")
    transport.abort()
    assert transport.aborted is True
    assert handle.abort_calls == 0
    assert transport.completes.result().response == "done"


def test_timeout_rejects_without_headers() -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://a.com/", "timeout": 10})
    handle.raw_headers = "ignored"
    handle.emit("timeout")
    handle.emit("loadend")
    assert transport.timed_out is True
    error = transport.completes.exception()
    assert isinstance(error, TimeoutError)
    assert error.headers is None
    assert handle.header_reads == 0


def test_only_first_terminal_flag_is_set() -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://a.com/"})
    handle.emit("timeout")
    handle.emit("error", error=OSError("late"))
    handle.emit("abort")
    assert (transport.timed_out, transport.errored, transport.aborted) == (True, False, False)
    assert isinstance(transport.completes.exception(), TimeoutError)


def test_load_end_resolves_with_response_and_headers() -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://success.domain.com/"})
    handle.complete(200, "test", headers="content-type: text/plain\r\n")
    result = transport.completes.result()
    assert result == RequestResult(response="test", headers="content-type: text/plain\r\n")
    assert transport.status == 200
    assert transport.status_text == "OK"
    assert transport.response == "test"


@pytest.mark.parametrize("status", [0, 200, 250, 299])
def test_success_statuses(status: int) -> None:
    transport, handle = make_transport()
    transport.send({"url": "file:///tmp/data.txt"})
    handle.complete(status, "body")
    assert transport.succeeded is True
    assert transport.completes.result().response == "body"


@pytest.mark.parametrize("status", [199, 300, 404, 500])
def test_failure_statuses(status: int) -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://error.domain.com/"})
    handle.complete(status, "nope", headers="x-a: 1\r\n")
    error = transport.completes.exception()
    assert isinstance(error, HttpStatusError)
    assert str(error) == f"The request failed with status code: {status}"
    assert error.status == status
    assert error.headers == "x-a: 1\r\n"
    assert transport.response == "nope"


def test_decode_failure_rejects_with_parse_error() -> None:
    class BrokenXmlHandle(FakeHandle):
        @property
        def response_xml(self) -> Any:
            raise ValueError("not well-formed")

        @response_xml.setter
        def response_xml(self, value: Any) -> None:
            pass

    transport, handle = make_transport(handle=BrokenXmlHandle())
    transport.send({"url": "http://a.com/", "response_type": "xml"})
    handle.complete(200, "<broken")
    error = transport.completes.exception()
    assert isinstance(error, ParseError)
    assert str(error) == "Could not parse response. not well-formed"


def test_malformed_json_resolves_with_none() -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://a.com/", "responseType": "json"})
    handle.complete(200, "{oops")
    assert transport.completes.result().response is None


def test_late_notifications_do_not_resettle() -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://a.com/"})
    handle.complete(200, "first")
    handle.emit("error", error=OSError("late"))
    handle.emit("timeout")
    handle.complete(500, "second")
    assert transport.completes.result().response == "first"


def test_error_then_load_end_keeps_network_error() -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://a.com/"})
    handle.emit("error", error=OSError("reset"))
    handle.complete(0)
    assert transport.succeeded is False
    assert isinstance(transport.completes.exception(), NetworkError)


def test_options_from_env() -> None:
    options = TransportOptions.from_env(
        {
            "SIMPLE_REQUEST_APPEND_HEADERS": "x-a: 1\\nx-b: 2",
            "SIMPLE_REQUEST_PROXY": "https://proxy.com/?url=",
            "SIMPLE_REQUEST_PROXY_ENCODE_URL": "true",
            "SIMPLE_REQUEST_LOG_LEVEL": "DEBUG",
        }
    )
    assert options == TransportOptions(
        append_headers="x-a: 1\\nx-b: 2",
        proxy="https://proxy.com/?url=",
        proxy_encode_url=True,
        log_level="debug",
    )
    transport, handle = make_transport(options=options)
    transport.send({"url": "http://a.com/"})
    assert handle.opened == [("GET", "https://proxy.com/?url=http%3A%2F%2Fa.com%2F")]
    assert handle.headers == [("x-a", "1"), ("x-b", "2")]


def test_options_from_empty_env_uses_defaults() -> None:
    assert TransportOptions.from_env({}) == TransportOptions()


def test_options_and_individual_settings_are_exclusive() -> None:
    with pytest.raises(TypeError):
        RequestTransport(handle=FakeHandle(), options=TransportOptions(), proxy="https://proxy.com/?url=")
    with pytest.raises(TypeError):
        RequestTransport(handle=FakeHandle(), options=TransportOptions(), log_level="debug")


def test_error_without_response_headers_has_no_header_block() -> None:
    transport, handle = make_transport()
    transport.send({"url": "http://a.com/"})
    handle.emit("error", error=OSError("refused"))
    assert transport.headers is None
    assert transport.completes.exception().headers is None
