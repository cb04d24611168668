from __future__ import annotations

import asyncio
from typing import Any, Protocol

from .backups import BackupEntry
from .document_service import DocumentService, DocumentSnapshot, WriteResult


class AsyncDocumentRepository(Protocol):
    async def read(self) -> DocumentSnapshot: ...
    async def write(self, raw: bytes) -> WriteResult: ...

    async def list_backups(self) -> list[BackupEntry]: ...
    async def describe_backups(self) -> dict[str, Any]: ...


class AsyncDiskDocumentRepository(AsyncDocumentRepository):
    """
    Async wrapper around the disk-backed document service.
    Uses asyncio.to_thread to avoid blocking the event loop on file I/O and flock.
    """

    def __init__(self, service: DocumentService) -> None:
        self._service = service

    @property
    def service(self) -> DocumentService:
        return self._service

    async def read(self) -> DocumentSnapshot:
        return await asyncio.to_thread(self._service.read)

    async def write(self, raw: bytes) -> WriteResult:
        return await asyncio.to_thread(self._service.write, raw)

    async def list_backups(self) -> list[BackupEntry]:
        return await asyncio.to_thread(self._service.list_backups)

    async def describe_backups(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._service.describe_backups)
