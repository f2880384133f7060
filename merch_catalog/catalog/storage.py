"""
Key/value persistence for client state such as the wishlist.

The catalogue page originally kept its state in browser
``localStorage``: a flat mapping of string keys to string values. The
same contract is kept here so the wishlist code does not care whether
it runs against a JSON file on disk or an in-memory dict.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional

from .errors import StorageError


class KeyValueStorage:
    """Interface of a string key/value slot store."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(KeyValueStorage):
    """In-process storage. ``fail_writes`` simulates an unavailable store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})
        self.fail_writes = False

    def get_item(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageError(f"storage unavailable for {key!r}")
        self.data[key] = value

    def remove_item(self, key: str) -> None:
        if self.fail_writes:
            raise StorageError(f"storage unavailable for {key!r}")
        self.data.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """Storage backed by a JSON object file.

    The whole file is rewritten on each change via a temporary file and
    ``os.replace`` so a crash never leaves it half-written. Reads and
    writes are serialised with a lock since FastAPI runs sync handlers
    in a thread pool.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise StorageError(f"cannot read {self.path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise StorageError(f"corrupt storage file {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"corrupt storage file {self.path}: not a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def _write_all(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except OSError as exc:
            raise StorageError(f"cannot write {self.path}: {exc}") from exc

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if data.pop(key, None) is not None:
                self._write_all(data)
