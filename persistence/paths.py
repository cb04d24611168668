from __future__ import annotations

from pathlib import Path

BACKUP_DIR_MODE = 0o755


def project_root() -> Path:
    # persistence/paths.py -> persistence -> project root
    return Path(__file__).resolve().parents[1]


def data_dir() -> Path:
    return ensure_dir(project_root() / "data")


def ensure_dir(path: Path, *, mode: int = BACKUP_DIR_MODE) -> Path:
    # `mode` applies to every level created, not only the leaf.
    missing = [p for p in (path, *path.parents) if not p.exists()]
    for p in reversed(missing):
        p.mkdir(mode=mode, exist_ok=True)
    return path


def nearest_existing(path: Path) -> Path:
    """Return `path` or its closest ancestor that exists on disk."""
    for candidate in (path, *path.parents):
        if candidate.exists():
            return candidate
    return path
