from __future__ import annotations

import os
from pathlib import Path


def ensure_dir(path: Path) -> None:
    """Create directory and parents if they don't exist."""
    path.mkdir(parents=True, exist_ok=True)


def write_bytes(path: str | Path, data: bytes) -> Path:
    """Write bytes to ``path`` atomically, creating parent directories."""
    path = Path(path)
    ensure_dir(path.parent)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with tmp_path.open("wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    return path
