"""Logging wrapper shared by the transport, the header helpers and the handles."""

from __future__ import annotations

import logging
from typing import Any, Literal, Protocol

LogLevel = Literal["trace", "debug", "info", "warn", "error"]

TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

LOG_LEVELS: dict[LogLevel, int] = {
    "trace": TRACE_LEVEL,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class LoggerProtocol(Protocol):
    def log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None: ...


class BoundLogger:
    """Filters records below ``level`` and optionally tags them with a request id.

    Any object exposing ``log(level, msg, *args)`` can back the wrapper; a
    ``logging.Logger`` additionally gets real child loggers.
    """

    def __init__(
        self,
        logger: LoggerProtocol | None = None,
        *,
        level: LogLevel = "info",
        tag: str | None = None,
    ) -> None:
        self._logger = logger or _default_logger()
        self._level = level
        self._tag = tag

    @property
    def level(self) -> LogLevel:
        return self._level

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log("trace", msg, *args, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log("debug", msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log("info", msg, *args, **kwargs)

    def warn(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log("warn", msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log("error", msg, *args, **kwargs)

    def child(self, name: str) -> "BoundLogger":
        """Logger for a sub-component, e.g. ``transport`` or ``http``."""
        base = self._logger.getChild(name) if isinstance(self._logger, logging.Logger) else self._logger
        return BoundLogger(base, level=self._level, tag=self._tag)

    def bind(self, tag: str | None) -> "BoundLogger":
        """Return a copy whose messages are prefixed with ``[tag]``."""
        return BoundLogger(self._logger, level=self._level, tag=tag)

    def _log(self, level: LogLevel, msg: str, *args: Any, **kwargs: Any) -> None:
        if LOG_LEVELS[level] < LOG_LEVELS[self._level]:
            return
        if self._tag:
            msg = f"[{self._tag}] {msg}"
        try:
            self._logger.log(LOG_LEVELS[level], msg, *args, **kwargs)
        except Exception:
            # Logging failures never reach transport code
            pass


def _default_logger() -> logging.Logger:
    logger = logging.getLogger("simple_request")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(TRACE_LEVEL)
    return logger


def create_logger(*, logger: Any | None = None, level: LogLevel = "info") -> BoundLogger:
    if isinstance(logger, BoundLogger):
        return logger
    return BoundLogger(logger, level=level)


__all__ = ["BoundLogger", "LOG_LEVELS", "LogLevel", "LoggerProtocol", "TRACE_LEVEL", "create_logger"]
