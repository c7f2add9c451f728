"""
Persistence contract.

The host application owns storage; the till only needs ``get`` and
``save``. Keys are scoped per operating mode so training tickets never
mix with live ones.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class Store(ABC):
    """Key/value persistence provided by the host application."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Get a stored value, or None."""
        ...

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """Store a value under a key."""
        ...


class MemoryStore(Store):
    """In-process store (tests, demo runs)."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def save(self, key: str, value: Any) -> None:
        self._data[key] = value

    def keys(self) -> list[str]:
        return list(self._data)


class ScopedStore(Store):
    """Prefixes every key with an operating mode, e.g. ``live:seq``."""

    def __init__(self, store: Store, scope: str) -> None:
        self._store = store
        self.scope = scope

    def _key(self, key: str) -> str:
        return f"{self.scope}:{key}"

    def get(self, key: str) -> Optional[Any]:
        return self._store.get(self._key(key))

    def save(self, key: str, value: Any) -> None:
        self._store.save(self._key(key), value)
