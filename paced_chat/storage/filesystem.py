"""FilesystemStore: one JSON document holding every key of the session."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ..core.store import KeyValueStore

logger = logging.getLogger(__name__)


class FilesystemStore(KeyValueStore):
    """Keep session entries in ``<root>/session.json``.

    The file outlives the process, so a restarted client pointed at the same
    root picks the session back up. ``clear()`` deletes the file, which ends
    the session.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self._path = self.root / "session.json"
        self._data: dict[str, str] = {}
        self._ensure_root()
        self._load()

    def _ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def _load(self) -> None:
        if not self._path.is_file():
            self._data = {}
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Discarding unreadable session file %s: %s", self._path, e)
            self._data = {}
            return
        if not isinstance(data, dict):
            logger.warning("Discarding session file %s: expected an object", self._path)
            self._data = {}
            return
        self._data = {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _save(self) -> None:
        self._ensure_root()
        tmp = self._path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(self._data, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self._path)

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._save()

    def delete(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        self._save()
        return True

    def clear(self) -> None:
        self._data = {}
        if self._path.is_file():
            self._path.unlink()

    def keys(self) -> list[str]:
        return list(self._data)
