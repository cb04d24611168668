from __future__ import annotations

import importlib
from datetime import datetime, timedelta
from pathlib import Path
import sys
from typing import Callable


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for imports like `import persistence...` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


class FakeClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)) -> None:
        self.now = start or datetime(2025, 1, 1, 12, 0, 0)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + self.step
        return current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "site" / "site_data.json"


@pytest.fixture
def make_service(data_file: Path, clock: FakeClock) -> Callable[..., "DocumentService"]:
    from persistence.backups import BackupRotator
    from persistence.disk_store import DiskDocumentStore
    from persistence.document_service import DocumentService
    from persistence.oplog import OperationLog

    data_file.parent.mkdir(parents=True, exist_ok=True)

    def _make(*, max_backups: int = 10, log: bool = True) -> DocumentService:
        return DocumentService(
            DiskDocumentStore(data_file),
            BackupRotator(data_file.parent / "backups", prefix="site_data", max_backups=max_backups, clock=clock),
            oplog=OperationLog(data_file.parent / "api_log.txt" if log else None, clock=clock),
            clock=clock,
        )

    return _make


@pytest.fixture
def sandbox_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Redirect the document, backups and op-log to a temp directory so tests never touch real ./data.
    """
    site = tmp_path / "site"
    site.mkdir()
    monkeypatch.setenv("SITE_DATA_FILE", str(site / "site_data.json"))
    monkeypatch.setenv("SITE_DATA_MAX_BACKUPS", "2")
    monkeypatch.delenv("SITE_DATA_BACKUP_DIR", raising=False)
    monkeypatch.delenv("SITE_DATA_BACKUP_PREFIX", raising=False)
    monkeypatch.delenv("SITE_DATA_LOG_FILE", raising=False)
    monkeypatch.delenv("SITE_DATA_API_PATH", raising=False)
    monkeypatch.delenv("CORS_ALLOW_ORIGINS", raising=False)
    return site


@pytest.fixture
def reload_endpoints(sandbox_env: Path) -> Path:
    """
    Endpoints create the repository singleton at import time; reload after sandboxing paths.
    """
    import endpoints.document_endpoints as document_endpoints

    importlib.reload(document_endpoints)
    return sandbox_env
