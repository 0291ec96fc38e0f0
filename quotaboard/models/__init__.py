"""Data models for QuotaBoard."""

from .providers import QuotaProvider, CLAUDE_CODE_PROVIDER
from .quota import (
    QuotaStatus,
    QuotaState,
    AntigravityQuotaGroup,
    CodexQuotaWindow,
    CodexQuotaData,
    GeminiCliQuotaBucket,
    CopilotQuotaCategory,
    CopilotQuotaData,
)
from .claude_code import (
    ClaudeCodeQuotaWindow,
    ClaudeCodeQuotaInfo,
    ClaudeCodeQuotaResponse,
    ClaudeCodeQuotasResponse,
)
from .auth import AuthFile, AuthFilesResponse
from .notification import Notification, NotificationKind
from .config import QuotaBoardConfig

__all__ = [
    "QuotaProvider",
    "CLAUDE_CODE_PROVIDER",
    "QuotaStatus",
    "QuotaState",
    "AntigravityQuotaGroup",
    "CodexQuotaWindow",
    "CodexQuotaData",
    "GeminiCliQuotaBucket",
    "CopilotQuotaCategory",
    "CopilotQuotaData",
    "ClaudeCodeQuotaWindow",
    "ClaudeCodeQuotaInfo",
    "ClaudeCodeQuotaResponse",
    "ClaudeCodeQuotasResponse",
    "AuthFile",
    "AuthFilesResponse",
    "Notification",
    "NotificationKind",
    "QuotaBoardConfig",
]
