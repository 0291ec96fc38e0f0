"""Antigravity quota fetcher.

Antigravity needs a Google Cloud project id before it can ask for quota.
The id is read from the account's auth file, which means downloading it,
so resolved ids are kept in the ProjectIdCache for 24 hours.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from .base import BaseQuotaFetcher, QuotaFetchError, QuotaValidationError
from ...models.auth import AuthFile
from ...models.providers import QuotaProvider
from ...models.quota import AntigravityQuotaGroup
from ...utils.log import log_with_timestamp
from ...utils.normalize import normalize_quota_fraction, normalize_string_value, parse_json_object
from ..ttl_cache import ProjectIdCache

DEFAULT_PROJECT_ID = "bamboo-precept-lgxtn"


@dataclass(frozen=True)
class AntigravityGroupDefinition:
    id: str
    label: str
    identifiers: tuple[str, ...]
    label_from_model: bool = False


ANTIGRAVITY_GROUPS = (
    AntigravityGroupDefinition(
        "claude-gpt", "Claude/GPT",
        ("claude-sonnet-4-5-thinking", "claude-opus-4-5-thinking", "claude-sonnet-4-5", "gpt-oss-120b-medium"),
    ),
    AntigravityGroupDefinition("gemini-3-pro", "Gemini 3 Pro", ("gemini-3-pro-high", "gemini-3-pro-low")),
    AntigravityGroupDefinition("gemini-2-5-flash", "Gemini 2.5 Flash", ("gemini-2.5-flash", "gemini-2.5-flash-thinking")),
    AntigravityGroupDefinition("gemini-2-5-flash-lite", "Gemini 2.5 Flash Lite", ("gemini-2.5-flash-lite",)),
    AntigravityGroupDefinition("gemini-3-pro-image", "Gemini 3 Pro Image", ("gemini-3-pro-image",), label_from_model=True),
)


def _is_unknown_field_error(message: str) -> bool:
    normalized = message.lower()
    return "unknown name" in normalized and "cannot find field" in normalized


def build_quota_groups(models: dict) -> list[AntigravityQuotaGroup]:
    """Collapse per-model quota info into the known groups."""
    groups = []
    for definition in ANTIGRAVITY_GROUPS:
        fractions = []
        reset_times = []
        members = []
        display_name = None
        for identifier in definition.identifiers:
            entry = models.get(identifier)
            if not isinstance(entry, dict):
                continue
            info = entry.get("quotaInfo") or entry.get("quota_info")
            if not isinstance(info, dict):
                continue
            fraction = normalize_quota_fraction(
                info.get("remainingFraction", info.get("remaining_fraction", info.get("remaining")))
            )
            reset_time = normalize_string_value(info.get("resetTime", info.get("reset_time")))
            if fraction is None:
                if not reset_time:
                    continue
                fraction = 0.0
            fractions.append(fraction)
            if reset_time:
                reset_times.append(reset_time)
            members.append(identifier)
            display_name = display_name or normalize_string_value(entry.get("displayName"))

        if not members:
            continue
        reset_times.sort()
        label = display_name if definition.label_from_model and display_name else definition.label
        groups.append(AntigravityQuotaGroup(
            id=definition.id,
            label=label,
            models=members,
            remaining_fraction=min(fractions),
            reset_time=reset_times[0] if reset_times else None,
        ))
    return groups


def extract_project_id(text: str) -> Optional[str]:
    """project_id from the top level, "installed" or "web" section of an auth file."""
    data = parse_json_object(text)
    if not data:
        return None
    for section in (data, data.get("installed"), data.get("web")):
        if isinstance(section, dict):
            project_id = normalize_string_value(section.get("project_id") or section.get("projectId"))
            if project_id:
                return project_id
    return None


class AntigravityQuotaFetcher(BaseQuotaFetcher[list[AntigravityQuotaGroup]]):
    """Fetches model quotas from the Antigravity (Cloud Code) endpoints."""

    provider = QuotaProvider.ANTIGRAVITY

    QUOTA_URLS = (
        "https://daily-cloudcode-pa.googleapis.com/v1internal:fetchAvailableModels",
        "https://daily-cloudcode-pa.sandbox.googleapis.com/v1internal:fetchAvailableModels",
        "https://cloudcode-pa.googleapis.com/v1internal:fetchAvailableModels",
    )
    REQUEST_HEADERS = {
        "Authorization": "Bearer $TOKEN$",
        "Content-Type": "application/json",
        "User-Agent": "antigravity/1.11.5 windows/amd64",
    }

    def __init__(self, api_client, project_id_cache: ProjectIdCache):
        super().__init__(api_client)
        self.project_id_cache = project_id_cache

    async def resolve_project_id(self, auth_file: AuthFile, auth_index: str) -> str:
        """Cached project id, else read from the auth file, else the default."""
        cached = self.project_id_cache.get_project_id(auth_index)
        if cached:
            return cached

        try:
            text = await self.api_client.download_auth_file_text(auth_file.name)
        except QuotaFetchError as e:
            log_with_timestamp(
                f"Could not download {auth_file.name}: {e}", "[AntigravityQuotaFetcher]", level=logging.INFO
            )
            return DEFAULT_PROJECT_ID

        project_id = extract_project_id(text)
        if not project_id:
            return DEFAULT_PROJECT_ID
        self.project_id_cache.set_project_id(auth_index, project_id)
        return project_id

    async def fetch_quota(self, auth_file: AuthFile) -> list[AntigravityQuotaGroup]:
        """Try each endpoint and body variant until one yields quota groups."""
        auth_index = self.resolve_auth_index(auth_file)
        project_id = await self.resolve_project_id(auth_file, auth_index)
        request_bodies = (json.dumps({"projectId": project_id}), json.dumps({"project": project_id}))

        last_error = ""
        last_status: Optional[int] = None
        priority_status: Optional[int] = None
        had_success = False

        for url in self.QUOTA_URLS:
            for attempt, body in enumerate(request_bodies):
                try:
                    result = await self.api_client.api_call(
                        auth_index, "POST", url, header=dict(self.REQUEST_HEADERS), data=body
                    )
                except QuotaFetchError as e:
                    last_error = str(e)
                    if e.status_code:
                        last_status = e.status_code
                        if e.status_code in (403, 404) and priority_status is None:
                            priority_status = e.status_code
                    continue

                if not result.ok:
                    last_error = result.error_message
                    last_status = result.status_code
                    if result.status_code in (403, 404) and priority_status is None:
                        priority_status = result.status_code
                    if (
                        result.status_code == 400
                        and _is_unknown_field_error(last_error)
                        and attempt < len(request_bodies) - 1
                    ):
                        continue
                    break

                had_success = True
                models = result.body.get("models") if isinstance(result.body, dict) else None
                if not isinstance(models, dict):
                    last_error = "No model quota returned"
                    continue
                groups = build_quota_groups(models)
                if not groups:
                    last_error = "No model quota returned"
                    continue
                return groups

        if had_success:
            return []
        if not last_error:
            raise QuotaValidationError("No Antigravity quota endpoint answered")
        raise QuotaFetchError(last_error, priority_status or last_status)
