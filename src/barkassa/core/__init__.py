"""Core framework components for barkassa."""

from .events import Event, EventBus, EventType
from .store import MemoryStore, ScopedStore, Store
from .till import Till

__all__ = [
    "Event",
    "EventBus",
    "EventType",
    "MemoryStore",
    "ScopedStore",
    "Store",
    "Till",
]
