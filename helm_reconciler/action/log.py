"""Log collection for Helm actions."""

from collections import deque
from collections.abc import Callable
import logging
from typing import Any

__all__ = ["LogFunc", "LogBuffer", "debug_log"]

LogFunc = Callable[..., None]
"""A printf style log function, called with a format string and arguments."""


def debug_log(logger: logging.Logger) -> LogFunc:
    """Return a LogFunc writing to the logger at debug level."""

    def log(fmt: str, *args: Any) -> None:
        logger.debug(fmt, *args)

    return log


class LogBuffer:
    """A LogFunc wrapper which retains the last lines that were logged.

    Every line is passed on to the wrapped LogFunc. The retained lines are
    used to give context to events about a failed action.
    """

    def __init__(self, log: LogFunc, size: int) -> None:
        """Initialize LogBuffer keeping at most `size` lines."""
        self._log = log
        self._lines: deque[str] = deque(maxlen=max(size, 0))

    def log(self, fmt: str, *args: Any) -> None:
        """Log a line and retain it in the buffer."""
        self._log(fmt, *args)
        self._lines.append(fmt % args if args else fmt)

    def __len__(self) -> int:
        return len(self._lines)

    def __str__(self) -> str:
        """Return the retained lines, oldest first."""
        return "\n".join(self._lines)
