from __future__ import annotations

import os
import stat
from pathlib import Path

from .paths import nearest_existing


def _is_writable(path: Path) -> bool:
    return os.access(path, os.W_OK)


def _mode(path: Path) -> str:
    try:
        return f"{stat.S_IMODE(path.stat().st_mode):04o}"
    except OSError:
        return "????"


def check_permissions(target_file: Path, directory: Path) -> list[str]:
    """
    Inspect (never modify) whether `target_file` can be written inside `directory`.

    Returns human-readable diagnostics; an empty list means OK.
    """
    errors: list[str] = []

    existing = nearest_existing(directory)
    if existing == directory:
        if not _is_writable(directory):
            errors.append(f"Directory not writable: {directory} (current permissions: {_mode(directory)})")
    elif not _is_writable(existing):
        errors.append(
            f"Directory not writable: {directory} does not exist and cannot be created in "
            f"{existing} (current permissions: {_mode(existing)})"
        )

    if target_file.exists() and not _is_writable(target_file):
        errors.append(f"File not writable: {target_file} (current permissions: {_mode(target_file)})")

    return errors


def remediation_hints(target_file: Path, directory: Path) -> list[str]:
    return [
        "1. Make sure the directory permissions are 755 or 777",
        f"2. Run: chmod 755 {directory}",
        f"3. If the file already exists: chmod 644 {target_file}",
        "4. Make sure the web server user (www-data/apache) has write access",
    ]
