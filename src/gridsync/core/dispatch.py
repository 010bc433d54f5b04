"""EventDispatcher — explicit type -> handler table for stream events."""

from __future__ import annotations

import logging
from typing import Callable

from gridsync.core.events import StreamEvent, parse_event

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Routes each event to the handler registered for its ``type``."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[StreamEvent], None]] = {}

    def register(self, event_type: str, handler: Callable[[StreamEvent], None]) -> None:
        self._handlers[event_type] = handler

    @property
    def event_types(self) -> list[str]:
        return list(self._handlers)

    def dispatch(self, event: StreamEvent) -> bool:
        """Invoke the handler for event.type. Returns False if none is registered."""
        handler = self._handlers.get(event.type)
        if handler is None:
            logger.debug("No handler for %s", event.type)
            return False
        handler(event)
        return True

    def feed(self, line: str) -> bool:
        """Parse a raw stream line and dispatch it if it decodes to an event."""
        event = parse_event(line)
        if event is None:
            return False
        return self.dispatch(event)
