"""Key-value storage behind the user and conversation-state stores."""

import threading
from abc import ABC, abstractmethod
from typing import Dict, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class KeyValueStore(ABC, Generic[K, V]):
    """Minimal storage interface so a persistent backend can replace memory."""

    @abstractmethod
    def get(self, key: K) -> Optional[V]:
        """Return the value for key, or None when absent."""

    @abstractmethod
    def set(self, key: K, value: V) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: K) -> bool:
        """Remove key. Returns True if it was present."""

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored keys."""


class InMemoryKeyValueStore(KeyValueStore[K, V]):
    """Thread-safe dict-backed store; contents live for the process lifetime."""

    def __init__(self):
        self._data: Dict[K, V] = {}
        self._lock = threading.Lock()

    def get(self, key: K) -> Optional[V]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: K, value: V) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: K) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def count(self) -> int:
        with self._lock:
            return len(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
