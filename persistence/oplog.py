from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable

from .errors import best_effort

logger = logging.getLogger(__name__)

LOG_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class OperationLog:
    """
    Append-only audit trail of read/write outcomes:

      [2025-01-01 12:00:00] [SUCCESS] WRITE - wrote 42 bytes

    Appending is fire-and-forget; I/O problems are logged and ignored.
    """

    def __init__(self, path: Path | None, *, clock: Callable[[], datetime] = datetime.now):
        self._path = path
        self._clock = clock

    @property
    def path(self) -> Path | None:
        return self._path

    def format_entry(self, operation: str, success: bool, message: str = "") -> str:
        status = "SUCCESS" if success else "ERROR"
        line = f"[{self._clock().strftime(LOG_TIMESTAMP_FORMAT)}] [{status}] {operation}"
        if message:
            line += f" - {message}"
        return line + "\n"

    def record(self, operation: str, success: bool, message: str = "") -> None:
        if success:
            logger.info("%s: %s", operation, message)
        else:
            logger.warning("%s FAILED: %s", operation, message)

        if self._path is None:
            return
        entry = self.format_entry(operation, success, message)
        with best_effort(f"append to operation log {self._path}", log=logger):
            with self._path.open("a", encoding="utf-8") as f:
                f.write(entry)
