# storefront/storage.py
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)


class MemoryStorage:
    """String key/value store with the local-storage interface, kept in memory."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def keys(self):
        return list(self._data.keys())


class LocalStorage(MemoryStorage):
    """Local storage persisted as a single JSON object on disk.

    The file is re-read on every access so that several processes sharing a
    storage path see each other's writes; a missing or corrupt file reads as
    empty. Writes go to a temp file in the same directory and are then moved
    into place.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path).expanduser()

    def _load(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.error("Failed to read storage file %s: %s", self.path, e)
            return {}
        try:
            data = json.loads(raw) if raw.strip() else {}
        except ValueError as e:
            logger.error("Storage file %s is not valid JSON: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=".storage-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = str(value)
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def clear(self) -> None:
        self._save({})

    def keys(self):
        return list(self._load().keys())
