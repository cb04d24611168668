from __future__ import annotations

from .backups import BackupEntry, BackupRotator
from .disk_store import DiskDocumentStore
from .document_service import DocumentService, DocumentSnapshot, WriteResult
from .errors import PersistenceError, best_effort
from .interfaces import DocumentStore
from .permissions import check_permissions
from .repositories import AsyncDiskDocumentRepository, AsyncDocumentRepository

__all__ = [
    "BackupEntry",
    "BackupRotator",
    "DocumentStore",
    "DiskDocumentStore",
    "DocumentService",
    "DocumentSnapshot",
    "WriteResult",
    "PersistenceError",
    "best_effort",
    "check_permissions",
    "AsyncDocumentRepository",
    "AsyncDiskDocumentRepository",
]
