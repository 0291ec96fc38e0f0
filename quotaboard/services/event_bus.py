"""In-process publish/subscribe event bus.

Decouples independently loaded components: the quota stores announce
changes here, renderers subscribe without knowing who writes.
"""

import logging
from typing import Any, Callable, Dict, List

from ..utils.log import log_with_timestamp

EventHandler = Callable[[Any], None]

# Event names published by the quota layer
QUOTA_UPDATED = "quota:updated"
QUOTA_CLEARED = "quota:cleared"
NOTIFICATION_SHOWN = "notification:shown"
NOTIFICATION_REMOVED = "notification:removed"


class EventBus:
    """Maps event names to ordered handler lists."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = {}

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        """Register a handler; it runs on every emit until unsubscribed."""
        self._handlers.setdefault(event_name, []).append(handler)

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None:
        """Remove one registration of handler. Unknown handlers are ignored."""
        handlers = self._handlers.get(event_name)
        if not handlers or handler not in handlers:
            return
        handlers.remove(handler)
        if not handlers:
            del self._handlers[event_name]

    def emit(self, event_name: str, payload: Any = None) -> None:
        """Invoke every handler registered for event_name, in order.

        A failing handler is logged and does not stop the others.
        """
        # Snapshot so handlers may (un)subscribe while being called
        for handler in list(self._handlers.get(event_name, ())):
            try:
                handler(payload)
            except Exception as e:
                name = getattr(handler, "__name__", repr(handler))
                log_with_timestamp(
                    f"Handler {name} failed for {event_name!r}: {e!r}",
                    "[EventBus]",
                    level=logging.ERROR,
                )

    def handler_count(self, event_name: str) -> int:
        return len(self._handlers.get(event_name, ()))
