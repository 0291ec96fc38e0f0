"""Claude Code quota fetcher.

Unlike the other families, Claude Code quota is served by the management
API itself, keyed by auth id, and supports a forced refresh that bypasses
the server's own cache.
"""

from typing import Any

from pydantic import ValidationError

from ...models.claude_code import (
    ClaudeCodeQuotaInfo,
    ClaudeCodeQuotaResponse,
    ClaudeCodeQuotasResponse,
)
from ..api_client import ManagementAPIClient
from ..errors import QuotaValidationError


class ClaudeCodeQuotaFetcher:
    """Reads Claude Code quota windows from the management API."""

    def __init__(self, api_client: ManagementAPIClient):
        self.api_client = api_client

    @staticmethod
    def _parse_one(data: Any) -> ClaudeCodeQuotaInfo:
        try:
            return ClaudeCodeQuotaResponse.model_validate(data).quota
        except ValidationError as e:
            raise QuotaValidationError(f"Malformed Claude Code quota: {e.error_count()} error(s)") from e

    async def fetch_quota(self, auth_id: str) -> ClaudeCodeQuotaInfo:
        return self._parse_one(await self.api_client.get_claude_code_quota(auth_id))

    async def refresh_quota(self, auth_id: str) -> ClaudeCodeQuotaInfo:
        """Force the server to re-query the provider for this account."""
        return self._parse_one(await self.api_client.refresh_claude_code_quota(auth_id))

    async def fetch_all_quotas(self) -> dict[str, ClaudeCodeQuotaInfo]:
        """auth_id -> quota info for every Claude Code account."""
        data = await self.api_client.get_claude_code_quotas()
        try:
            response = ClaudeCodeQuotasResponse.model_validate(data)
        except ValidationError as e:
            raise QuotaValidationError(f"Malformed Claude Code quota list: {e.error_count()} error(s)") from e
        return {item.auth_id: item.quota for item in response.quotas}
