"""Gemini CLI quota fetcher."""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional

from .base import BaseQuotaFetcher, QuotaValidationError
from ...models.auth import AuthFile
from ...models.providers import QuotaProvider
from ...models.quota import GeminiCliQuotaBucket
from ...utils.normalize import (
    normalize_number_value,
    normalize_quota_fraction,
    normalize_string_value,
)

# "user@example.com (my-project-123)"
_LABEL_PROJECT = re.compile(r"\(([^()]+)\)\s*$")


@dataclass(frozen=True)
class GeminiCliQuotaGroup:
    id: str
    label: str
    model_ids: tuple[str, ...]


GEMINI_CLI_QUOTA_GROUPS = (
    GeminiCliQuotaGroup("gemini-pro", "Gemini Pro", ("gemini-3-pro-preview", "gemini-2.5-pro")),
    GeminiCliQuotaGroup("gemini-flash", "Gemini Flash", ("gemini-3-flash-preview", "gemini-2.5-flash", "gemini-2.0-flash")),
    GeminiCliQuotaGroup("gemini-flash-lite", "Gemini Flash Lite", ("gemini-2.5-flash-lite",)),
)


@dataclass
class _ParsedBucket:
    model_id: str
    token_type: Optional[str]
    remaining_fraction: Optional[float]
    remaining_amount: Optional[float]
    reset_time: Optional[str]


def _group_for(model_id: str) -> GeminiCliQuotaGroup:
    for group in GEMINI_CLI_QUOTA_GROUPS:
        if model_id in group.model_ids:
            return group
    return GeminiCliQuotaGroup(model_id, model_id, (model_id,))


def _min_optional(values: list[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    return min(present) if present else None


class GeminiCliQuotaFetcher(BaseQuotaFetcher[list[GeminiCliQuotaBucket]]):
    """Fetches per-model quota buckets from the Cloud Code private API."""

    provider = QuotaProvider.GEMINI_CLI

    QUOTA_URL = "https://cloudcode-pa.googleapis.com/v1internal:retrieveUserQuota"
    REQUEST_HEADERS = {
        "Authorization": "Bearer $TOKEN$",
        "Content-Type": "application/json",
    }

    def resolve_project_id(self, auth_file: AuthFile) -> Optional[str]:
        """Project id from auth file metadata, or from the "email (project)" label."""
        metadata = auth_file.metadata or {}
        project_id = normalize_string_value(metadata.get("project_id") or metadata.get("projectId"))
        if project_id:
            return project_id
        for text in (auth_file.account, auth_file.label):
            if isinstance(text, str):
                match = _LABEL_PROJECT.search(text)
                if match:
                    return normalize_string_value(match.group(1))
        return None

    @staticmethod
    def parse_buckets(payload: dict) -> list[_ParsedBucket]:
        raw_buckets = payload.get("buckets")
        if raw_buckets is None:
            return []
        if not isinstance(raw_buckets, list):
            raise QuotaValidationError("Gemini CLI buckets must be a list")

        parsed = []
        for bucket in raw_buckets:
            if not isinstance(bucket, dict):
                continue
            model_id = normalize_string_value(bucket.get("modelId", bucket.get("model_id")))
            if not model_id:
                continue
            token_type = normalize_string_value(bucket.get("tokenType", bucket.get("token_type")))
            fraction = normalize_quota_fraction(bucket.get("remainingFraction", bucket.get("remaining_fraction")))
            amount = normalize_number_value(bucket.get("remainingAmount", bucket.get("remaining_amount")))
            reset_time = normalize_string_value(bucket.get("resetTime", bucket.get("reset_time")))

            # An exhausted bucket may omit the fraction entirely
            if fraction is None:
                if amount is not None:
                    fraction = 0.0 if amount <= 0 else None
                elif reset_time:
                    fraction = 0.0
            parsed.append(_ParsedBucket(model_id, token_type, fraction, amount, reset_time))
        return parsed

    @staticmethod
    def build_buckets(parsed: list[_ParsedBucket]) -> list[GeminiCliQuotaBucket]:
        """Merge model buckets into quota groups, keeping first-seen order."""
        grouped: dict[tuple[str, Optional[str]], list[_ParsedBucket]] = {}
        groups: dict[str, GeminiCliQuotaGroup] = {}
        for bucket in parsed:
            group = _group_for(bucket.model_id)
            groups[group.id] = group
            grouped.setdefault((group.id, bucket.token_type), []).append(bucket)

        result = []
        for (group_id, token_type), members in grouped.items():
            group = groups[group_id]
            reset_times = sorted(b.reset_time for b in members if b.reset_time)
            result.append(GeminiCliQuotaBucket(
                id=group_id if token_type is None else f"{group_id}:{token_type.lower()}",
                label=group.label,
                remaining_fraction=_min_optional([b.remaining_fraction for b in members]),
                remaining_amount=_min_optional([b.remaining_amount for b in members]),
                reset_time=reset_times[0] if reset_times else None,
                token_type=token_type,
                model_ids=[b.model_id for b in members],
            ))
        return result

    async def fetch_quota(self, auth_file: AuthFile) -> list[GeminiCliQuotaBucket]:
        """Fetch Gemini CLI quota buckets for one account."""
        auth_index = self.resolve_auth_index(auth_file)
        project_id = self.resolve_project_id(auth_file)
        if not project_id:
            raise QuotaValidationError(f"{auth_file.name}: missing project id")

        result = await self._request(
            auth_index,
            "POST",
            self.QUOTA_URL,
            header=dict(self.REQUEST_HEADERS),
            data=json.dumps({"project": project_id}),
        )
        payload: Any = result.body if result.body is not None else {}
        payload = self._require_object(payload, "Gemini CLI quota")
        return self.build_buckets(self.parse_buckets(payload))
