"""Utility functions for thinkly."""

import os
import random
import time
import uuid
from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """Get the thinkly home directory.

    Respects THINKLY_HOME environment variable; falls back to ~/.thinkly.
    """
    thinkly_home = os.environ.get("THINKLY_HOME", "").strip()
    if thinkly_home:
        return ensure_dir(Path(thinkly_home))
    return ensure_dir(Path.home() / ".thinkly")


def get_storage_path(data_dir: str | None = None) -> Path:
    """Get the directory holding persisted memories and vectors.

    Args:
        data_dir: Optional directory. Relative paths resolve under the thinkly home.

    Returns:
        Expanded and ensured storage path.
    """
    base = get_data_path()
    if data_dir:
        candidate = Path(data_dir).expanduser()
        path = candidate if candidate.is_absolute() else base / candidate
    else:
        path = base / "data"
    return ensure_dir(path)


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def new_memory_id() -> str:
    """Return a fresh opaque identifier for a decision memory."""
    try:
        return uuid.uuid4().hex
    except NotImplementedError:
        # os.urandom is unavailable on this platform.
        return f"{now_ms():x}-{random.getrandbits(64):016x}"
