"""Notification channel for short-lived user-facing messages.

Messages auto-dismiss after their duration (0 keeps them until closed).
Timers run on the asyncio event loop unless a scheduler is injected;
without either, messages are kept until closed.
Removing a message that is already gone is a no-op, which also makes a
timer firing after an early close harmless.
"""

import asyncio
import itertools
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

from ..models.config import DEFAULT_NOTIFICATION_DURATION_MS
from ..models.notification import Notification, NotificationKind
from ..utils.log import log_with_timestamp
from .event_bus import EventBus, NOTIFICATION_SHOWN, NOTIFICATION_REMOVED

# (delay_seconds, callback) -> handle with cancel()
Scheduler = Callable[[float, Callable[[], None]], Any]


class NotificationChannel:
    """Ordered list of active notifications with timed removal."""

    def __init__(
        self,
        default_duration_ms: int = DEFAULT_NOTIFICATION_DURATION_MS,
        scheduler: Optional[Scheduler] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.default_duration_ms = default_duration_ms
        self._scheduler = scheduler
        self._event_bus = event_bus
        self._notifications: List[Notification] = []
        self._timers: Dict[str, Any] = {}
        self._counter = itertools.count(1)

    @property
    def notifications(self) -> List[Notification]:
        return list(self._notifications)

    def _new_id(self) -> str:
        return f"{next(self._counter)}-{uuid.uuid4().hex[:8]}"

    def _schedule(self, delay_seconds: float, callback: Callable[[], None]) -> Any:
        """Start a removal timer. Returns None when no event loop is running."""
        if self._scheduler is not None:
            return self._scheduler(delay_seconds, callback)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log_with_timestamp(
                "No running event loop, notification will not auto-dismiss",
                "[NotificationChannel]",
                level=logging.WARNING,
            )
            return None
        return loop.call_later(delay_seconds, callback)

    def show(
        self,
        message: str,
        kind: NotificationKind = NotificationKind.INFO,
        duration_ms: Optional[int] = None,
    ) -> Notification:
        """Append a notification and schedule its removal."""
        duration = self.default_duration_ms if duration_ms is None else max(0, int(duration_ms))
        notification_id = self._new_id()
        timer = None
        if duration > 0:
            timer = self._schedule(duration / 1000, lambda: self._expire(notification_id))
            if timer is None:
                duration = 0

        notification = Notification(
            id=notification_id,
            message=message,
            kind=NotificationKind(kind),
            duration_ms=duration,
        )
        self._notifications.append(notification)
        if timer is not None:
            self._timers[notification_id] = timer
        if self._event_bus is not None:
            self._event_bus.emit(NOTIFICATION_SHOWN, notification)
        return notification

    def _expire(self, notification_id: str) -> None:
        self._timers.pop(notification_id, None)
        if self.remove(notification_id):
            log_with_timestamp(f"Auto-dismissed {notification_id}", "[NotificationChannel]")

    def remove(self, notification_id: str) -> bool:
        """Remove a notification. Returns False if it was not present."""
        timer = self._timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()
        for index, notification in enumerate(self._notifications):
            if notification.id == notification_id:
                del self._notifications[index]
                if self._event_bus is not None:
                    self._event_bus.emit(NOTIFICATION_REMOVED, [notification_id])
                return True
        return False

    def clear_all(self) -> None:
        """Drop every notification and cancel pending timers."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        removed = [n.id for n in self._notifications]
        self._notifications.clear()
        if removed and self._event_bus is not None:
            self._event_bus.emit(NOTIFICATION_REMOVED, removed)
