"""Quota layer configuration."""

from typing import Optional
from pydantic import BaseModel, Field

from ..utils.settings import SettingsManager

PROJECT_ID_TTL_SECONDS = 24 * 60 * 60
DEFAULT_NOTIFICATION_DURATION_MS = 3000


class QuotaBoardConfig(BaseModel):
    """Configuration for the quota cache layer and its API client."""
    api_base: str = ""
    management_key: str = ""
    proxy_url: Optional[str] = None
    request_timeout_seconds: float = Field(15.0, gt=0)
    project_id_ttl_seconds: float = Field(PROJECT_ID_TTL_SECONDS, gt=0)
    notification_duration_ms: int = Field(DEFAULT_NOTIFICATION_DURATION_MS, ge=0)

    @classmethod
    def from_settings(
        cls,
        settings: SettingsManager,
        management_key: str = "",
    ) -> "QuotaBoardConfig":
        """Build the config from persisted settings.

        The management key is a secret and is supplied by the caller.
        """
        values = {
            "api_base": settings.get("apiBase"),
            "proxy_url": settings.get("proxyUrl"),
            "request_timeout_seconds": settings.get("requestTimeoutSeconds"),
            "project_id_ttl_seconds": settings.get("projectIdTtlSeconds"),
            "notification_duration_ms": settings.get("notificationDurationMs"),
        }
        values = {key: value for key, value in values.items() if value is not None}
        return cls(management_key=management_key, **values)
