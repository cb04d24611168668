from __future__ import annotations

import logging
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable

from pydantic import BaseModel

from .errors import best_effort
from .paths import BACKUP_DIR_MODE, ensure_dir

logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
DEFAULT_MAX_BACKUPS = 10


class BackupEntry(BaseModel):
    name: str
    path: Path
    size: int
    modified: datetime

    # sort key parts: mtime first, then the name's timestamp and sequence
    mtime_ns: int
    stamp: str
    sequence: int = 0


class BackupRotator:
    """
    Keeps timestamped copies of a document in `backup_dir`:

      <prefix>_YYYY-MM-DD_HH-MM-SS.json
      <prefix>_YYYY-MM-DD_HH-MM-SS_1.json   (second copy within the same second)

    At most `max_backups` copies are retained; the oldest by mtime go first.
    """

    def __init__(
        self,
        backup_dir: Path,
        *,
        prefix: str,
        max_backups: int = DEFAULT_MAX_BACKUPS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._dir = backup_dir
        self._prefix = prefix
        self._max_backups = max(0, int(max_backups))
        self._clock = clock
        self._name_re = re.compile(
            rf"^{re.escape(prefix)}_(\d{{4}}-\d{{2}}-\d{{2}}_\d{{2}}-\d{{2}}-\d{{2}})(?:_(\d+))?\.json$"
        )

    @property
    def backup_dir(self) -> Path:
        return self._dir

    @property
    def max_backups(self) -> int:
        return self._max_backups

    def _target_for(self, when: datetime) -> Path:
        stamp = when.strftime(BACKUP_TIMESTAMP_FORMAT)
        candidate = self._dir / f"{self._prefix}_{stamp}.json"
        seq = 0
        while candidate.exists():
            seq += 1
            candidate = self._dir / f"{self._prefix}_{stamp}_{seq}.json"
        return candidate

    def rotate(self, source: Path) -> Path | None:
        """
        Copy `source` into the backup directory, then prune.

        Never raises: a failed backup must not block the write it precedes.
        Returns the new backup path, or None when nothing was copied.
        """
        if not source.exists():
            return None

        created: Path | None = None
        with best_effort(f"backup of {source}", log=logger):
            ensure_dir(self._dir, mode=BACKUP_DIR_MODE)
            target = self._target_for(self._clock())
            shutil.copyfile(source, target)
            created = target
            logger.info("BACKUP: copied %s -> %s", source, target)

        self.prune()
        return created

    def list_backups(self) -> list[BackupEntry]:
        if not self._dir.is_dir():
            return []

        entries: list[BackupEntry] = []
        for p in self._dir.iterdir():
            m = self._name_re.match(p.name)
            if m is None or not p.is_file():
                continue
            try:
                st = p.stat()
            except OSError:
                # pruned or replaced concurrently
                continue
            entries.append(
                BackupEntry(
                    name=p.name,
                    path=p,
                    size=st.st_size,
                    modified=datetime.fromtimestamp(st.st_mtime),
                    mtime_ns=st.st_mtime_ns,
                    stamp=m.group(1),
                    sequence=int(m.group(2) or 0),
                )
            )
        entries.sort(key=lambda e: (e.mtime_ns, e.stamp, e.sequence))
        return entries

    def prune(self) -> list[Path]:
        """Delete the oldest backups beyond `max_backups`. Returns what was removed."""
        removed: list[Path] = []
        with best_effort(f"listing backups in {self._dir}", log=logger):
            entries = self.list_backups()
            excess = len(entries) - self._max_backups
            for entry in entries[: max(0, excess)]:
                with best_effort(f"delete old backup {entry.path}", log=logger):
                    entry.path.unlink()
                    removed.append(entry.path)
        if removed:
            logger.info("BACKUP: pruned %d old backup(s) from %s", len(removed), self._dir)
        return removed
