from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable

from pydantic import BaseModel

from json_store import canonical_json, parse_json_bytes

from .backups import BackupEntry, BackupRotator
from .disk_store import DiskDocumentStore
from .errors import (
    DocumentNotFound,
    DocumentReadError,
    DocumentWriteError,
    EmptyPayload,
    InvalidJson,
    MalformedStoredData,
    PermissionDenied,
    PersistenceError,
    ReadFailed,
    UnexpectedWriteFailure,
    WriteFailed,
    WriteRejected,
)
from .interfaces import DocumentStore
from .locks import exclusive_access
from .oplog import OperationLog
from .permissions import check_permissions, remediation_hints

if TYPE_CHECKING:
    from settings import Settings

logger = logging.getLogger(__name__)

RESULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
NO_DATA_MESSAGE = "Data file does not exist, default configuration will be used"


class DocumentSnapshot(BaseModel):
    """Outcome of a read: the stored bytes, or a hint that nothing is stored yet."""

    raw: bytes | None = None
    message: str | None = None

    @property
    def found(self) -> bool:
        return self.raw is not None


class WriteResult(BaseModel):
    success: bool = True
    message: str = "Data saved successfully"
    file: str
    size: int
    timestamp: str
    backup_created: bool


def _describe_json_error(e: ValueError) -> str:
    if isinstance(e, UnicodeDecodeError):
        return "Malformed UTF-8 characters, possibly incorrectly encoded"
    return str(e)


class DocumentService:
    """
    Reads and writes the single current document.

    Write order: permission check -> payload validation -> backup rotation
    -> atomic write. Nothing on disk changes unless validation passes.
    """

    def __init__(
        self,
        store: DocumentStore,
        rotator: BackupRotator,
        *,
        oplog: OperationLog | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._store = store
        self._rotator = rotator
        self._oplog = oplog or OperationLog(None)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: "Settings") -> "DocumentService":
        return cls(
            DiskDocumentStore(settings.data_file),
            BackupRotator(
                settings.backup_dir,
                prefix=settings.backup_prefix,
                max_backups=settings.max_backups,
            ),
            oplog=OperationLog(settings.log_file),
        )

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def rotator(self) -> BackupRotator:
        return self._rotator

    # -------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------
    def read(self) -> DocumentSnapshot:
        try:
            return self._read()
        except PersistenceError:
            raise
        except Exception as e:
            logger.exception("READ: unexpected failure")
            self._oplog.record("READ", False, repr(e))
            raise ReadFailed(f"Failed to read data: {e}") from e

    def _read(self) -> DocumentSnapshot:
        try:
            raw = self._store.read_raw() if self._store.exists() else None
        except DocumentNotFound:
            raw = None
        except DocumentReadError as e:
            self._oplog.record("READ", False, str(e))
            raise ReadFailed(f"Failed to read data: {e}") from e

        if raw is None:
            self._oplog.record("READ", True, "data file does not exist, returning defaults hint")
            return DocumentSnapshot(message=NO_DATA_MESSAGE)

        try:
            parse_json_bytes(raw)
        except ValueError as e:
            reason = _describe_json_error(e)
            self._oplog.record("READ", False, f"stored JSON is malformed: {reason}")
            raise MalformedStoredData(f"JSON file format error: {reason}") from e

        self._oplog.record("READ", True, f"read {len(raw)} bytes")
        return DocumentSnapshot(raw=raw)

    # -------------------------------------------------------------------
    # Write
    # -------------------------------------------------------------------
    def write(self, raw: bytes) -> WriteResult:
        try:
            return self._write(raw)
        except WriteRejected:
            raise
        except Exception as e:
            logger.exception("WRITE: unexpected failure")
            self._oplog.record("WRITE", False, repr(e))
            raise UnexpectedWriteFailure(f"Save failed: {e}") from e

    def _write(self, raw: bytes) -> WriteResult:
        target = self._store.path
        directory = target.parent

        problems = check_permissions(target, directory)
        if problems:
            self._oplog.record("WRITE", False, "; ".join(problems))
            raise PermissionDenied(
                "Insufficient permissions, unable to save data",
                details=problems,
                suggestions=remediation_hints(target, directory),
            )

        if not raw.strip():
            self._oplog.record("WRITE", False, "request body is empty")
            raise EmptyPayload("No data received")

        try:
            document = parse_json_bytes(raw)
        except ValueError as e:
            reason = _describe_json_error(e)
            self._oplog.record("WRITE", False, f"invalid JSON: {reason}")
            raise InvalidJson(f"JSON format error: {reason}") from e

        payload = canonical_json(document).encode("utf-8")

        with exclusive_access(target):
            backup = self._rotator.rotate(target) if self._store.exists() else None
            try:
                written = self._store.write_raw(payload)
            except DocumentWriteError as e:
                self._oplog.record("WRITE", False, str(e))
                raise WriteFailed("Failed to write file, please check directory permissions") from e

        message = f"wrote {written} bytes"
        if backup is not None:
            message += f" (backup: {backup.name})"
        self._oplog.record("WRITE", True, message)

        return WriteResult(
            file=target.name,
            size=written,
            timestamp=self._clock().strftime(RESULT_TIMESTAMP_FORMAT),
            backup_created=self._rotator.backup_dir.exists(),
        )

    # -------------------------------------------------------------------
    # Backups
    # -------------------------------------------------------------------
    def list_backups(self) -> list[BackupEntry]:
        return self._rotator.list_backups()

    def describe_backups(self) -> dict[str, Any]:
        return {
            "backups": [
                {"name": e.name, "size": e.size, "modified": e.modified.strftime(RESULT_TIMESTAMP_FORMAT)}
                for e in reversed(self.list_backups())
            ],
            "max_backups": self._rotator.max_backups,
        }
