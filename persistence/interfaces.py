from __future__ import annotations

from pathlib import Path
from typing import Protocol


class DocumentStore(Protocol):
    """
    A single opaque document persisted at a fixed location.
    """

    @property
    def path(self) -> Path:
        ...

    def exists(self) -> bool:
        ...

    def read_raw(self) -> bytes:
        """Return the stored bytes; raise DocumentNotFound if never written."""
        ...

    def write_raw(self, data: bytes) -> int:
        """Replace the stored bytes atomically and return the byte count."""
        ...
