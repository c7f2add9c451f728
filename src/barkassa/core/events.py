"""
Till and printer notifications.

The till and the print manager announce what happened (a ticket was
committed, a print job failed) so a UI or a log sink can react without
either of them knowing who listens.
"""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Optional
import logging
import time

logger = logging.getLogger(__name__)

# Recent events kept for inspection
HISTORY_SIZE = 100


class EventType(Enum):
    """What the till and print manager report."""
    # Ledger
    SESSION_OPENED = auto()
    SESSION_CLOSED = auto()
    TRANSACTION_COMMITTED = auto()
    CASH_RECORDED = auto()

    # Printer
    PRINTER_CONNECTED = auto()
    PRINTER_DISCONNECTED = auto()
    PRINT_START = auto()
    PRINT_COMPLETE = auto()
    PRINT_ERROR = auto()


@dataclass
class Event:
    """One notification with a small string-keyed payload."""
    type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    source: str = "till"
    timestamp: float = field(default_factory=time.time)


Listener = Callable[[Event], None]


class EventBus:
    """Delivers events to listeners of their type.

    Listeners run synchronously in subscription order. A listener that
    raises is logged and skipped; it never fails the sale or print job
    that emitted the event.
    """

    def __init__(self, history_size: int = HISTORY_SIZE) -> None:
        self._listeners: dict[EventType, list[Listener]] = defaultdict(list)
        self._history: deque[Event] = deque(maxlen=history_size)

    def subscribe(self, event_type: EventType, listener: Listener) -> Callable[[], None]:
        """Listen for one event type. Returns a function that stops listening."""
        self._listeners[event_type].append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners[event_type]
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def emit(self, event: Event) -> None:
        self._history.append(event)
        logger.debug(f"{event.source}: {event.type.name} {event.data}")

        for listener in list(self._listeners.get(event.type, ())):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Listener for {event.type.name} failed: {e}")

    def get_history(self, event_type: Optional[EventType] = None, limit: int = 10) -> list[Event]:
        """Most recent events, oldest first, optionally of one type."""
        events = [e for e in self._history if event_type is None or e.type is event_type]
        return events[-limit:]
