"""
Event bus module for ninaseq.

The sequence editor publishes document, selection, clipboard and history
changes here so that a UI layer can re-render without polling.
"""

import threading
from typing import Any, Callable, Dict, List, Optional, Type, Union
from dataclasses import dataclass
from datetime import datetime
import logging


# Event type names published by the sequence editor
SEQUENCE_CHANGED = 'sequence_changed'
SEQUENCE_LOADED = 'sequence_loaded'
SELECTION_CHANGED = 'selection_changed'
CLIPBOARD_CHANGED = 'clipboard_changed'
HISTORY_CHANGED = 'history_changed'


@dataclass
class Event:
    """
    Base event class for the event bus system.
    """
    type: str
    data: Any = None
    timestamp: datetime = None
    source: str = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()


class SequenceEvent(Event):
    """The document changed structurally or in a field."""
    pass


class SelectionEvent(Event):
    """Primary or multi selection changed."""
    pass


class ClipboardEvent(Event):
    """Clipboard contents changed."""
    pass


class HistoryEvent(Event):
    """An undo or redo moved the history cursor."""
    pass


class EventBus:
    """
    Centralized event bus for editor notifications.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {}
        self._type_handlers: Dict[Type, List[Callable]] = {}
        self._lock = threading.RLock()
        self.logger = logging.getLogger(__name__)

    def subscribe(self, event_type: str, handler: Callable):
        """
        Subscribe to an event type.

        Args:
            event_type: Type of event to subscribe to
            handler: Function to call when event is published
        """
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
            self.logger.debug(f"Subscribed to event type: {event_type}")

    def subscribe_to_type(self, event_class: Type, handler: Callable):
        """
        Subscribe to every event that is an instance of ``event_class``.
        """
        with self._lock:
            self._type_handlers.setdefault(event_class, []).append(handler)
            self.logger.debug(f"Subscribed to event class: {event_class.__name__}")

    def unsubscribe(self, event_type: str, handler: Callable):
        with self._lock:
            handlers = self._handlers.get(event_type)
            if handlers and handler in handlers:
                handlers.remove(handler)
                self.logger.debug(f"Unsubscribed from event type: {event_type}")

    def publish(self, event: Union[Event, str], data: Any = None, source: str = None):
        """
        Publish an event to all subscribed handlers.

        Args:
            event: Event object or event type string
            data: Data to include with the event (if event is a string)
            source: Source identifier for the event
        """
        if isinstance(event, str):
            event = Event(type=event, data=data, source=source)

        self.logger.debug(f"Publishing event: {event.type} from {event.source or 'unknown'}")

        with self._lock:
            handlers = list(self._handlers.get(event.type, []))
            for event_class, class_handlers in self._type_handlers.items():
                if isinstance(event, event_class):
                    handlers.extend(class_handlers)

        # Handlers run outside the lock so they may publish in turn
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self.logger.error(f"Error in event handler for {event.type}: {str(e)}")

    def clear_subscribers(self, event_type: str = None):
        """
        Clear subscribers for a specific event type or all types.
        """
        with self._lock:
            if event_type:
                self._handlers.pop(event_type, None)
                self.logger.debug(f"Cleared subscribers for event type: {event_type}")
            else:
                self._handlers.clear()
                self._type_handlers.clear()
                self.logger.debug("Cleared all subscribers")


_global_event_bus: Optional[EventBus] = None
_bus_lock = threading.Lock()


def get_event_bus() -> EventBus:
    """
    Get the global event bus instance.
    """
    global _global_event_bus

    with _bus_lock:
        if _global_event_bus is None:
            _global_event_bus = EventBus()

    return _global_event_bus
