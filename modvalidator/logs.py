from __future__ import annotations

import logging
from collections import deque
from typing import Callable, List, Optional

from modvalidator.config import MAX_LOG_BUFFER

LOGGER_NAME = "modvalidator"


class LogBuffer(logging.Handler):
    """
    Keeps the most recent formatted log lines ("[HH:MM:SS] message"),
    dropping the oldest once max_lines is reached.
    """

    def __init__(self, max_lines: int = MAX_LOG_BUFFER, level: int = logging.INFO):
        super().__init__(level=level)
        self._lines: deque = deque(maxlen=max_lines)
        self.setFormatter(logging.Formatter("[%(asctime)s] %(message)s", datefmt="%H:%M:%S"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._lines.append(self.format(record))
        except Exception:
            self.handleError(record)

    def lines(self) -> List[str]:
        return list(self._lines)

    def messages(self) -> List[str]:
        # Without the timestamp prefix
        return [line.split("] ", 1)[-1] for line in self._lines]

    def clear(self) -> None:
        self._lines.clear()


class CallbackHandler(logging.Handler):
    """Forwards plain messages to a callable (e.g. a UI log box)."""

    def __init__(self, callback: Callable[[str], None], level: int = logging.INFO):
        super().__init__(level=level)
        self._callback = callback

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._callback(record.getMessage())
        except Exception:
            self.handleError(record)


def package_logger() -> logging.Logger:
    # INFO by default so scan facts reach attached handlers
    logger = logging.getLogger(LOGGER_NAME)
    if logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)
    return logger


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def configure_logging(level: str | int = "INFO", buffer: Optional[LogBuffer] = None) -> logging.Logger:
    """
    Sets the package logger level and attaches a console handler once.
    Returns the package logger.
    """
    logger = package_logger()
    logger.setLevel(_parse_level(level))

    if not any(getattr(h, "_modvalidator_console", False) for h in logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter("[%(asctime)s] %(message)s", datefmt="%H:%M:%S"))
        console._modvalidator_console = True  # type: ignore[attr-defined]
        logger.addHandler(console)

    if buffer is not None and buffer not in logger.handlers:
        logger.addHandler(buffer)
    return logger
