"""Storage layer for todolist.

This module provides an abstract key-value string store and concrete
implementations used to persist the task collection. The repository only
ever reads and writes one key; the stores know nothing about tasks.
The JsonFileStore implementation keeps every key in a single JSON file and
uses fcntl-based file locking around reads and writes.
"""

import fcntl
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "todo.json"


class KeyValueStore(ABC):
    """Abstract base class for string key-value stores."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Missing keys are ignored."""


class MemoryStore(KeyValueStore):
    """In-process store backed by a dict."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """JSON file-backed store with file locking.

    The file holds a single JSON object mapping keys to string values.

    Attributes:
        file_path: Path to the JSON storage file
    """

    def __init__(self, file_path: Optional[str] = None):
        """Initialize JsonFileStore with a file path.

        Args:
            file_path: Path to the JSON file. If None, uses the TODO_DB_PATH
                      environment variable or defaults to todo.json
        """
        if file_path is None:
            file_path = os.environ.get("TODO_DB_PATH", DEFAULT_DB_PATH)
        self.file_path = Path(file_path)

    def _read_all(self) -> Dict[str, str]:
        if not self.file_path.exists():
            return {}

        with open(self.file_path, "r") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
            try:
                content = f.read().strip()
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

        if not content:
            return {}
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError(f"{self.file_path} does not contain a JSON object")
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.file_path, "w") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                json.dump(data, f, indent=2)
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def get(self, key: str) -> Optional[str]:
        """Return the value for key.

        Raises:
            ValueError: If the file is not a JSON object (json.JSONDecodeError
                       included)
        """
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except ValueError:
            logger.warning("Overwriting unreadable store %s", self.file_path)
            data = {}
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)
