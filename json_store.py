from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON literal: {name}")


def parse_json_bytes(raw: bytes) -> Any:
    """
    Strictly parse a UTF-8 JSON payload.

    Raises ValueError (json.JSONDecodeError or UnicodeDecodeError are both
    subclasses) for anything that is not a standard JSON document, including
    the NaN/Infinity extensions the stdlib decoder accepts by default.
    """
    text = raw.decode("utf-8")
    return json.loads(text, parse_constant=_reject_constant)


def canonical_json(payload: Any, *, indent: int = 4) -> str:
    """
    Pretty-printed, Unicode-preserving JSON text. Slashes are never escaped.
    """
    return json.dumps(payload, indent=indent, ensure_ascii=False, allow_nan=False)


def atomic_write_bytes(path: Path, data: bytes) -> int:
    """
    Atomically write bytes to disk by writing to a temp file then replacing.

    Returns the number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            written = f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return written
