"""
Key-value persistence for the cached track reference.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

from models.constants import Constants

logger = logging.getLogger(Constants.LOGGER_NAME)


class CacheStore(ABC):
    """Key-value store for string values."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value under key, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove key; removing an absent key is a no-op."""

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class MemoryCacheStore(CacheStore):
    """In-process store; contents are lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileCacheStore(CacheStore):
    """
    Store backed by a JSON object on disk, surviving process restarts.

    Every write replaces the file atomically so a crash never leaves a
    half-written cache behind.
    """

    def __init__(self, path: str):
        """
        Initialize the store.

        Args:
            path: JSON file location (created on first write)
        """
        self.path = os.path.expanduser(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Cache file {self.path} is unreadable, treating it as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Cache file {self.path} does not hold an object, treating it as empty")
            return {}
        return data

    def _write(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(data, f, indent=2)
            os.replace(temp_path, self.path)
        except OSError:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._write(data)
        logger.debug(f"Cached {key} in {self.path}")

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key not in data:
                return
            del data[key]
            self._write(data)
        logger.debug(f"Removed {key} from {self.path}")
