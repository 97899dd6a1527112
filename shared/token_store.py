"""
Client-side key-value store for the auth token.
Mirrors browser local storage: a flat string map persisted as JSON.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Optional

from shared.constants import TOKEN_STORE_FILENAME

logger = logging.getLogger(__name__)


class MemoryTokenStore:
    """Non-persistent store, used by tests and one-shot scripts."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self._save()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._save()

    def _save(self) -> None:
        pass


class FileTokenStore(MemoryTokenStore):
    """
    Token store persisted to ``<config_dir>/session.json``.
    A missing or corrupted file starts an empty store.
    """

    def __init__(self, config_dir: Path):
        super().__init__()
        self._path = Path(config_dir).expanduser() / TOKEN_STORE_FILENAME
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not read %s, starting fresh: %s", self._path, e)
            return
        if not isinstance(data, dict):
            logger.warning("Invalid token store format in %s, starting fresh", self._path)
            return
        self._data = {str(k): str(v) for k, v in data.items()}

    def _save(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error("Could not write %s: %s", self._path, e)
