"""GitHub Copilot quota fetcher."""

from datetime import datetime, timezone
from typing import Optional

from .base import BaseQuotaFetcher, QuotaFetchError
from ...models.auth import AuthFile
from ...models.providers import QuotaProvider
from ...models.quota import CopilotQuotaCategory, CopilotQuotaData
from ...utils.log import log_with_timestamp
from ...utils.normalize import normalize_number_value, normalize_string_value

SNAPSHOT_IDS = ("chat", "completions", "premium_interactions")


def parse_snapshots(snapshots: Optional[dict]) -> list[CopilotQuotaCategory]:
    """Normalize the quota_snapshots object of the Copilot user endpoint."""
    if not isinstance(snapshots, dict):
        return []
    categories = []
    for snapshot_id in SNAPSHOT_IDS:
        detail = snapshots.get(snapshot_id)
        if not isinstance(detail, dict):
            continue
        remaining = normalize_number_value(detail.get("quota_remaining", detail.get("remaining")))
        overage = normalize_number_value(detail.get("overage_count"))
        categories.append(CopilotQuotaCategory(
            id=snapshot_id,
            percent_remaining=normalize_number_value(detail.get("percent_remaining")),
            remaining=remaining,
            entitlement=normalize_number_value(detail.get("entitlement")),
            unlimited=bool(detail.get("unlimited")),
            overage_permitted=bool(detail.get("overage_permitted")),
            overage_count=int(overage) if overage is not None else 0,
        ))
    return categories


class CopilotQuotaFetcher(BaseQuotaFetcher[CopilotQuotaData]):
    """Fetches Copilot entitlement and quota snapshots."""

    provider = QuotaProvider.COPILOT

    TOKEN_URL = "https://api.github.com/copilot_internal/v2/token"
    USER_URL = "https://api.github.com/copilot_internal/user"
    REQUEST_HEADERS = {
        "Authorization": "token $TOKEN$",
        "Accept": "application/json",
        "Editor-Version": "vscode/1.99.0",
        "User-Agent": "GitHubCopilotChat/0.26.7",
    }

    async def _fetch_snapshots(self, auth_index: str) -> Optional[dict]:
        """Quota snapshots are optional; failures only lose detail."""
        try:
            result = await self.api_client.api_call(
                auth_index, "GET", self.USER_URL, header=dict(self.REQUEST_HEADERS)
            )
        except QuotaFetchError as e:
            log_with_timestamp(f"User endpoint failed: {e}", "[CopilotQuotaFetcher]")
            return None
        if result.status_code != 200 or not isinstance(result.body, dict):
            return None
        return result.body

    async def fetch_quota(self, auth_file: AuthFile) -> CopilotQuotaData:
        """Fetch the Copilot token (required) and user quota (optional)."""
        auth_index = self.resolve_auth_index(auth_file)
        token_result = await self._request(auth_index, "GET", self.TOKEN_URL, header=dict(self.REQUEST_HEADERS))
        token_data = self._require_object(token_result.body, "Copilot token")

        expires_at = None
        expires = normalize_number_value(token_data.get("expires_at"))
        if expires:
            expires_at = datetime.fromtimestamp(expires, tz=timezone.utc).isoformat()

        user_data = await self._fetch_snapshots(auth_index) or {}
        return CopilotQuotaData(
            categories=parse_snapshots(user_data.get("quota_snapshots")),
            user=normalize_string_value(token_data.get("user") or user_data.get("login")),
            sku=normalize_string_value(token_data.get("sku") or user_data.get("access_type_sku")),
            plan_type=normalize_string_value(user_data.get("copilot_plan")),
            expires_at=expires_at,
            reset_date=normalize_string_value(user_data.get("quota_reset_date")),
        )
