"""Key-value persistence for the content-addressed caches."""
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Flat mapping from fingerprint to JSON-serializable value."""

    @abstractmethod
    def load(self) -> None:
        """Read the backing storage into memory."""

    @abstractmethod
    def flush(self) -> None:
        """Write the in-memory contents to the backing storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def __contains__(self, key: str) -> bool:
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...


class MemoryStore(KeyValueStore):
    """Non-persistent store; load and flush do nothing."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = dict(data or {})

    def load(self) -> None:
        pass

    def flush(self) -> None:
        pass

    def get(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self.data

    def __len__(self) -> int:
        return len(self.data)


class JsonFileStore(MemoryStore):
    """
    Store persisted as one JSON document.

    The file is read wholesale by load() and rewritten wholesale by flush();
    nothing is written in between. A missing file loads as an empty store.
    """

    def __init__(self, file_path: str):
        super().__init__()
        self.file_path = Path(file_path)
        self._dirty = False

    def load(self) -> None:
        if not self.file_path.exists():
            logger.debug(f"No cache file at {self.file_path}, starting empty")
            self.data = {}
            return

        with open(self.file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Cache file {self.file_path} does not contain a JSON object")
        self.data = data
        self._dirty = False
        logger.debug(f"Loaded {len(self.data)} entries from {self.file_path}")

    def set(self, key: str, value: Any) -> None:
        super().set(key, value)
        self._dirty = True

    def flush(self) -> None:
        if not self._dirty:
            return
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.file_path, "w", encoding="utf-8") as f:
            json.dump(self.data, f)
        self._dirty = False
        logger.debug(f"Flushed {len(self.data)} entries to {self.file_path}")
