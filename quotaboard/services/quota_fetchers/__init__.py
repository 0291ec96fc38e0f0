"""Quota fetchers for the supported providers."""

from .base import BaseQuotaFetcher, QuotaFetchError, QuotaValidationError
from .antigravity import AntigravityQuotaFetcher
from .codex import CodexQuotaFetcher
from .gemini_cli import GeminiCliQuotaFetcher
from .copilot import CopilotQuotaFetcher
from .claude_code import ClaudeCodeQuotaFetcher

__all__ = [
    "BaseQuotaFetcher",
    "QuotaFetchError",
    "QuotaValidationError",
    "AntigravityQuotaFetcher",
    "CodexQuotaFetcher",
    "GeminiCliQuotaFetcher",
    "CopilotQuotaFetcher",
    "ClaudeCodeQuotaFetcher",
]
