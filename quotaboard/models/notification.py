"""Notification models."""

from dataclasses import dataclass
from enum import Enum


class NotificationKind(str, Enum):
    """Notification kinds."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """
    An ephemeral user-facing message.

    Fields:
        id: Unique identifier
        message: Text shown to the user
        kind: Severity/style of the message
        duration_ms: Auto-dismiss delay; 0 keeps the message until closed
    """
    id: str
    message: str
    kind: NotificationKind = NotificationKind.INFO
    duration_ms: int = 0
