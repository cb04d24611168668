from __future__ import annotations

import contextlib
import fcntl
import threading
from pathlib import Path
from typing import Iterator


class PathLockRegistry:
    """
    Provides a stable lock per normalized file path to avoid global contention.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, path: Path) -> threading.Lock:
        key = str(path.resolve())
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock


GLOBAL_PATH_LOCKS = PathLockRegistry()


def lock_file_for(path: Path) -> Path:
    return path.with_name(path.name + ".lock")


@contextlib.contextmanager
def exclusive_access(path: Path, *, registry: PathLockRegistry = GLOBAL_PATH_LOCKS) -> Iterator[None]:
    """
    Serialize writers of `path` within this process (threading lock) and
    across processes (flock on a sidecar `<name>.lock` file).
    """
    with registry.lock_for(path):
        lock_path = lock_file_for(path)
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        with lock_path.open("a") as handle:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
