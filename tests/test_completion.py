import asyncio

import pytest

from simple_request.completion import Completion


def test_resolves_once() -> None:
    completion: Completion[str] = Completion()
    assert completion.resolve("first") is True
    assert completion.resolve("second") is False
    assert completion.reject(RuntimeError("late")) is False
    assert completion.result() == "first"
    assert completion.exception() is None


def test_rejects_once() -> None:
    completion: Completion[str] = Completion()
    error = RuntimeError("boom")
    assert completion.reject(error) is True
    assert completion.resolve("late") is False
    assert completion.exception() is error
    with pytest.raises(RuntimeError):
        completion.result()


def test_result_before_settlement_is_invalid() -> None:
    completion: Completion[str] = Completion()
    assert completion.settled is False
    with pytest.raises(asyncio.InvalidStateError):
        completion.result()


def test_await_suspends_until_settled() -> None:
    async def scenario() -> str:
        completion: Completion[str] = Completion()
        asyncio.get_running_loop().call_later(0.01, completion.resolve, "done")
        return await completion

    assert asyncio.run(scenario()) == "done"


def test_await_raises_rejection() -> None:
    async def scenario() -> None:
        completion: Completion[str] = Completion()
        completion.reject(ValueError("nope"))
        await completion

    with pytest.raises(ValueError, match="nope"):
        asyncio.run(scenario())
