"""Single-assignment completion signal."""

from __future__ import annotations

import asyncio
from typing import Any, Generator, Generic, TypeVar

from .logger import BoundLogger, create_logger

T = TypeVar("T")


class Completion(Generic[T]):
    """Settles once, with a value or an exception.

    Later ``resolve``/``reject`` calls are ignored and return ``False``.
    Awaiting the completion returns the value or raises the exception.
    """

    def __init__(self, *, logger: BoundLogger | None = None) -> None:
        self._logger = (logger or create_logger()).child("completion")
        self._event = asyncio.Event()
        self._settled = False
        self._value: T | None = None
        self._error: BaseException | None = None

    @property
    def settled(self) -> bool:
        return self._settled

    def resolve(self, value: T) -> bool:
        if self._settled:
            self._logger.trace("Ignoring resolve on a settled completion")
            return False
        self._value = value
        self._settle()
        return True

    def reject(self, error: BaseException) -> bool:
        if self._settled:
            self._logger.trace("Ignoring reject on a settled completion: %s", error)
            return False
        self._error = error
        self._settle()
        return True

    def result(self) -> T:
        if not self._settled:
            raise asyncio.InvalidStateError("Completion is not settled yet")
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def exception(self) -> BaseException | None:
        if not self._settled:
            raise asyncio.InvalidStateError("Completion is not settled yet")
        return self._error

    async def wait(self) -> T:
        await self._event.wait()
        return self.result()

    def __await__(self) -> Generator[Any, None, T]:
        return self.wait().__await__()

    def _settle(self) -> None:
        self._settled = True
        self._event.set()


__all__ = ["Completion"]
