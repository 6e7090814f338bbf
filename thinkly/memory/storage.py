"""Key/value persistence backends for serialized memory collections."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Protocol

from thinkly.utils.helpers import ensure_dir


class KeyValueStorage(Protocol):
    """Persistence port: opaque strings stored under independent keys."""

    def load(self, key: str) -> str | None:
        """Return the stored payload, or None when the key was never written."""

    def save(self, key: str, payload: str) -> None:
        """Replace the payload stored under ``key``."""


class InMemoryStorage:
    """Dict-backed storage for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.writes = 0

    def load(self, key: str) -> str | None:
        return self.data.get(key)

    def save(self, key: str, payload: str) -> None:
        self.data[key] = payload
        self.writes += 1


class JsonFileStorage:
    """One ``<key>.json`` file per key, written atomically."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = ensure_dir(base_dir.expanduser())

    def _path_for_key(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_.-]+", "_", key).strip("._") or "default"
        return self.base_dir / f"{safe_key}.json"

    def load(self, key: str) -> str | None:
        path = self._path_for_key(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def save(self, key: str, payload: str) -> None:
        path = self._path_for_key(key)
        tmp_path = path.with_name(f".{path.name}.tmp-{os.getpid()}")
        try:
            tmp_path.write_text(payload, encoding="utf-8")
            try:
                tmp_path.chmod(0o600)
            except OSError:
                pass
            os.replace(tmp_path, path)
        finally:
            tmp_path.unlink(missing_ok=True)
