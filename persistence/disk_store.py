from __future__ import annotations

import logging
from pathlib import Path

from json_store import atomic_write_bytes

from .errors import DocumentNotFound, DocumentReadError, DocumentWriteError, best_effort
from .interfaces import DocumentStore

logger = logging.getLogger(__name__)

DOCUMENT_FILE_MODE = 0o644


class DiskDocumentStore(DocumentStore):
    """
    Stores a single document on disk at a fixed path.

    - Reads return the exact on-disk bytes.
    - Writes are atomic (temp file + rename) and normalize permission bits.
    """

    def __init__(self, path: Path, *, file_mode: int = DOCUMENT_FILE_MODE):
        self._path = path
        self._file_mode = file_mode

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def read_raw(self) -> bytes:
        try:
            return self._path.read_bytes()
        except FileNotFoundError as e:
            raise DocumentNotFound(str(self._path)) from e
        except OSError as e:
            raise DocumentReadError(f"failed to read {self._path}: {e}") from e

    def write_raw(self, data: bytes) -> int:
        try:
            written = atomic_write_bytes(self._path, data)
        except OSError as e:
            raise DocumentWriteError(f"failed to write {self._path}: {e}") from e

        with best_effort(f"chmod {oct(self._file_mode)} {self._path}", log=logger):
            self._path.chmod(self._file_mode)
        return written
