"""Services layer for QuotaBoard."""

from .api_client import ManagementAPIClient, APIError, ApiCallResult
from .errors import QuotaFetchError, QuotaValidationError
from .event_bus import EventBus
from .ttl_cache import TTLCache, ProjectIdCache
from .quota_store import QuotaStore, ClaudeCodeQuotaStore, QuotaTable, Replace, Transform, apply_update
from .quota_loader import QuotaLoader, ClaudeCodeQuotaLoader
from .notification_manager import NotificationChannel

__all__ = [
    "ManagementAPIClient",
    "APIError",
    "ApiCallResult",
    "QuotaFetchError",
    "QuotaValidationError",
    "EventBus",
    "TTLCache",
    "ProjectIdCache",
    "QuotaStore",
    "ClaudeCodeQuotaStore",
    "QuotaTable",
    "Replace",
    "Transform",
    "apply_update",
    "QuotaLoader",
    "ClaudeCodeQuotaLoader",
    "NotificationChannel",
]
