"""Key-value persistence backends for project metadata and content."""

import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Persistence collaborator contract.

    ``load`` returns None for a missing key. ``store`` and ``delete``
    report success as a boolean instead of raising.
    """

    @abstractmethod
    def load(self, key: str) -> Optional[bytes]:
        pass

    @abstractmethod
    def store(self, key: str, value: bytes) -> bool:
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        pass


class MemoryKeyValueStore(KeyValueStore):
    """In-process store. ``fail_writes`` simulates an unavailable backend."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self.data: Dict[str, bytes] = dict(initial or {})
        self.fail_writes = False
        self.writes = 0

    def load(self, key: str) -> Optional[bytes]:
        return self.data.get(key)

    def store(self, key: str, value: bytes) -> bool:
        if self.fail_writes:
            return False
        self.data[key] = value
        self.writes += 1
        return True

    def delete(self, key: str) -> bool:
        if self.fail_writes:
            return False
        self.data.pop(key, None)
        return True


class FileKeyValueStore(KeyValueStore):
    """Stores each key as a JSON file inside a directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe_key}.json"

    def load(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            return None

    def store(self, key: str, value: bytes) -> bool:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(value)
            os.replace(tmp_path, path)
            return True
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            return False

    def delete(self, key: str) -> bool:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to delete key {key}: {e}")
            return False
        return True
