"""
On-device key-value storage.

Values are strings, the way browser local storage holds them; callers
serialize JSON themselves. Access is single-threaded.
"""

import json
import os
from abc import ABC, abstractmethod
from typing import Dict, Optional

from daily_review.client.errors import DataServiceError

ITEMS_KEY = "review-items"
USER_KEY = "review-user"
GUEST_MODE_KEY = "review-guest-mode"
SESSION_KEY = "review-session"


class KeyValueStorage(ABC):
    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class MemoryStorage(KeyValueStorage):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """Keeps every key in one JSON object on disk, rewritten on each change."""

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except ValueError as e:
                raise DataServiceError(f"Storage file {self.path} is corrupt: {e}") from e
        if not isinstance(data, dict):
            raise DataServiceError(f"Storage file {self.path} is corrupt")
        return data

    def _save(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def read(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def write(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
