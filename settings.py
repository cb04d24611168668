from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_path(name: str) -> Path | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return Path(raw.strip()).expanduser()


@dataclass(frozen=True)
class Settings:
    # Storage
    data_file: Path
    backup_dir: Path
    backup_prefix: str
    max_backups: int

    # Operation log (None disables the file log)
    log_file: Path | None

    # Transport
    api_path: str
    cors_allow_origins: list[str] = field(default_factory=lambda: ["*"])

    # Debug
    debug_log_requests: bool = False


def get_settings() -> Settings:
    data_file = _env_path("SITE_DATA_FILE")
    if data_file is None:
        # Imported lazily: the default creates ./data on first use.
        from persistence.paths import data_dir

        data_file = data_dir() / "site_data.json"

    backup_dir = _env_path("SITE_DATA_BACKUP_DIR") or data_file.parent / "backups"
    backup_prefix = (os.getenv("SITE_DATA_BACKUP_PREFIX") or "").strip() or data_file.stem
    max_backups = max(0, _env_int("SITE_DATA_MAX_BACKUPS", 10))

    raw_log = os.getenv("SITE_DATA_LOG_FILE")
    if raw_log is None:
        log_file: Path | None = data_file.parent / "api_log.txt"
    else:
        log_file = Path(raw_log.strip()).expanduser() if raw_log.strip() else None

    api_path = "/" + (os.getenv("SITE_DATA_API_PATH", "/api/data")).strip().strip("/")

    origins = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]

    return Settings(
        data_file=data_file,
        backup_dir=backup_dir,
        backup_prefix=backup_prefix,
        max_backups=max_backups,
        log_file=log_file,
        api_path=api_path,
        cors_allow_origins=origins or ["*"],
        debug_log_requests=_env_bool("DEBUG_LOG_REQUESTS", False),
    )
