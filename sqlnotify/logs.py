"""
logs
====

Logging setup and run-scoped log capture.

:class:`LogBuffer` collects the formatted log lines of a single run so that the
log-digest renderer can mail them. It is created by the caller of
:func:`sqlnotify.runner.run` and attached to the package logger only while that run
is in progress.
"""

from __future__ import annotations

import logging
import sys
from typing import List, Optional

LOG_FORMAT = "[%(asctime)s %(levelname).3s] %(message)s"
DATE_FORMAT = "%H:%M:%S"
PACKAGE_LOGGER = "sqlnotify"


def configure_logging(level: str = "INFO", stream=None) -> None:
    """Install a console handler on the root logger.

    The handler carries *level* itself, so records let through by a lower
    logger level (see :meth:`LogBuffer.attach`) still stay off the console.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(numeric)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logging.basicConfig(level=numeric, handlers=[handler], force=True)


class LogBuffer(logging.Handler):
    """In-memory handler holding formatted records of one run."""

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.lines: List[str] = []
        self.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        self._logger: Optional[logging.Logger] = None
        self._saved_level = logging.NOTSET

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.lines.append(self.format(record))
        except Exception:
            self.handleError(record)

    def getvalue(self) -> str:
        return "\n".join(self.lines)

    def attach(self, name: str = PACKAGE_LOGGER) -> "LogBuffer":
        """Start capturing records of logger *name* and its children."""
        self._logger = logging.getLogger(name)
        self._saved_level = self._logger.level
        if self._logger.getEffectiveLevel() > self.level:
            self._logger.setLevel(self.level)
        self._logger.addHandler(self)
        return self

    def detach(self) -> None:
        if self._logger is not None:
            self._logger.removeHandler(self)
            self._logger.setLevel(self._saved_level)
            self._logger = None

    def __enter__(self) -> "LogBuffer":
        return self.attach()

    def __exit__(self, *exc_info) -> None:
        self.detach()
