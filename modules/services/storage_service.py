"""Key-value storage backends for the local stores."""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage(Protocol):
    """String slots addressed by key, replaced as a whole on every write."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemoryStorage:
    """Process-local storage, mainly for tests."""

    def __init__(self) -> None:
        self._slots: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._slots.get(key)

    def set(self, key: str, value: str) -> None:
        self._slots[key] = value

    def remove(self, key: str) -> None:
        self._slots.pop(key, None)


class JsonFileStorage:
    """Persist each slot as ``<key>.json`` under a data directory."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        """Replace the slot atomically so readers never see a half-written file."""
        path = self._path(key)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                fp.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def read_records(storage: KeyValueStorage, key: str) -> List[Dict[str, Any]]:
    """Decode a JSON array slot; anything unreadable counts as an empty list."""
    try:
        raw = storage.get(key)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read storage slot '%s': %s", key, exc)
        return []
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Storage slot '%s' holds malformed JSON; treating it as empty", key)
        return []
    if not isinstance(data, list):
        logger.warning("Storage slot '%s' does not hold a list; treating it as empty", key)
        return []
    return [item for item in data if isinstance(item, dict)]


def write_records(storage: KeyValueStorage, key: str, records: List[Dict[str, Any]]) -> None:
    """Encode and replace the whole slot."""
    storage.set(key, json.dumps(records, ensure_ascii=False))
