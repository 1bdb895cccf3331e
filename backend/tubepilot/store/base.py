"""Key-value backend interface behind the record store and operation tracker.

The pipeline, poller and scheduler only ever see RecordStore and
OperationTracker; a durable backend can be swapped in by implementing
this interface without touching them.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterator, Optional


class KeyValueStore(ABC):
    """Minimal keyed map: get, put, delete and a full scan."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the value for key, or None if absent."""
        ...

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        """Insert or replace the value for key."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""
        ...

    @abstractmethod
    def scan(self) -> Iterator[tuple[str, Any]]:
        """Yield (key, value) pairs in insertion order."""
        ...

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local dict backend. Contents are lost on restart."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def put(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def scan(self) -> Iterator[tuple[str, Any]]:
        # Snapshot so callers may write while iterating
        return iter(list(self._data.items()))

    def __len__(self) -> int:
        return len(self._data)
