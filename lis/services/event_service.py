"""
Event service: in-process publish/subscribe for domain events.
"""

import logging
from typing import Any, Dict, List

from ..core.entities import Event
from ..core.enums import EventType
from ..core.interfaces import EventHandler

logger = logging.getLogger(__name__)


class EventService:
    """Dispatches domain events to registered handlers, synchronously."""

    def __init__(self):
        self._event_handlers: List[EventHandler] = []
        self._published: Dict[str, int] = {}
        self._handler_failures = 0

    def add_event_handler(self, handler: EventHandler) -> None:
        """Add an event handler."""
        self._event_handlers.append(handler)

    def remove_event_handler(self, handler: EventHandler) -> None:
        """Remove an event handler."""
        if handler in self._event_handlers:
            self._event_handlers.remove(handler)

    def publish_event(self, event_type: EventType, stream_id: str, event_data: Dict[str, Any]) -> Event:
        """Publish an event to all handlers that accept its type.

        A failing handler is logged and skipped; it never undoes the
        mutation that raised the event.
        """
        event = Event(event_type=event_type, stream_id=stream_id, event_data=event_data)
        self._published[event_type.value] = self._published.get(event_type.value, 0) + 1

        for handler in self._event_handlers:
            if handler.can_handle(event_type.value):
                try:
                    handler.handle_event(event)
                except Exception:
                    self._handler_failures += 1
                    logger.exception("Error in event handler %s", handler.__class__.__name__)
        return event

    def get_processing_statistics(self) -> Dict[str, Any]:
        """Get event statistics."""
        return {
            'published': dict(self._published),
            'handlers': len(self._event_handlers),
            'handler_failures': self._handler_failures,
        }
