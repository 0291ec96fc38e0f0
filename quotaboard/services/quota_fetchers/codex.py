"""Codex quota fetcher."""

import time
from datetime import datetime
from typing import Any, Callable, Optional

from .base import BaseQuotaFetcher, QuotaValidationError
from ...models.auth import AuthFile
from ...models.providers import QuotaProvider
from ...models.quota import CodexQuotaData, CodexQuotaWindow
from ...utils.normalize import (
    decode_jwt,
    normalize_number_value,
    normalize_plan_type,
    normalize_string_value,
)

_OPENAI_AUTH_CLAIM = "https://api.openai.com/auth"


def _pick(data: Optional[dict], *names: str) -> Any:
    """First present value among camelCase/snake_case spellings."""
    if not isinstance(data, dict):
        return None
    for name in names:
        value = data.get(name)
        if value is not None:
            return value
    return None


def format_reset_label(window: dict, now: Optional[float] = None) -> str:
    """Local "MM/DD HH:MM" reset time of a usage window, or "-"."""
    reset_at = normalize_number_value(_pick(window, "reset_at", "resetAt"))
    if reset_at is None or reset_at <= 0:
        reset_after = normalize_number_value(_pick(window, "reset_after_seconds", "resetAfterSeconds"))
        if reset_after is None or reset_after <= 0:
            return "-"
        reset_at = (now if now is not None else time.time()) + reset_after
    try:
        return datetime.fromtimestamp(reset_at).strftime("%m/%d %H:%M")
    except (OverflowError, OSError, ValueError):
        return "-"


class CodexQuotaFetcher(BaseQuotaFetcher[CodexQuotaData]):
    """Fetches Codex rate-limit windows from the ChatGPT usage API."""

    provider = QuotaProvider.CODEX

    USAGE_URL = "https://chatgpt.com/backend-api/wham/usage"
    REQUEST_HEADERS = {
        "Authorization": "Bearer $TOKEN$",
        "Content-Type": "application/json",
        "User-Agent": "codex_cli_rs/0.76.0 (Debian 13.0.0; x86_64) WindowsTerminal",
    }

    WINDOW_LABELS = {
        "primary": "Primary window",
        "secondary": "Secondary window",
        "code-review": "Code review window",
    }

    def __init__(self, api_client, clock: Callable[[], float] = time.time):
        super().__init__(api_client)
        self._clock = clock

    @staticmethod
    def _id_token_claims(auth_file: AuthFile) -> dict:
        id_token = auth_file.id_token
        if isinstance(id_token, dict):
            return id_token
        if isinstance(id_token, str):
            claims = decode_jwt(id_token) or {}
            nested = claims.get(_OPENAI_AUTH_CLAIM)
            return nested if isinstance(nested, dict) else claims
        return {}

    def resolve_account_id(self, auth_file: AuthFile) -> Optional[str]:
        claims = self._id_token_claims(auth_file)
        account_id = _pick(claims, "chatgpt_account_id", "chatgptAccountId")
        if account_id is None:
            account_id = _pick(auth_file.metadata, "chatgpt_account_id", "account_id")
        return normalize_string_value(account_id)

    def resolve_plan_type(self, auth_file: AuthFile) -> Optional[str]:
        claims = self._id_token_claims(auth_file)
        plan = _pick(claims, "plan_type", "chatgpt_plan_type", "planType")
        if plan is None:
            plan = _pick(auth_file.metadata, "plan_type", "planType")
        return normalize_plan_type(plan)

    def build_windows(self, payload: dict) -> list[CodexQuotaWindow]:
        """Normalize rate_limit and code_review_rate_limit into windows."""
        rate_limit = _pick(payload, "rate_limit", "rateLimit") or {}
        code_review = _pick(payload, "code_review_rate_limit", "codeReviewRateLimit") or {}
        now = self._clock()
        windows = []

        def add_window(window_id: str, limit: dict, *window_names: str):
            window = _pick(limit, *window_names)
            if not isinstance(window, dict):
                return
            reset_label = format_reset_label(window, now)
            used = normalize_number_value(_pick(window, "used_percent", "usedPercent"))
            limit_reached = bool(_pick(limit, "limit_reached", "limitReached")) or limit.get("allowed") is False
            if used is None and limit_reached and reset_label != "-":
                used = 100.0
            windows.append(CodexQuotaWindow(
                id=window_id,
                label=self.WINDOW_LABELS[window_id],
                used_percent=used,
                reset_label=reset_label,
            ))

        if isinstance(rate_limit, dict):
            add_window("primary", rate_limit, "primary_window", "primaryWindow")
            add_window("secondary", rate_limit, "secondary_window", "secondaryWindow")
        if isinstance(code_review, dict):
            add_window("code-review", code_review, "primary_window", "primaryWindow")
        return windows

    async def fetch_quota(self, auth_file: AuthFile) -> CodexQuotaData:
        """Fetch Codex usage windows for one account."""
        auth_index = self.resolve_auth_index(auth_file)
        account_id = self.resolve_account_id(auth_file)
        if not account_id:
            raise QuotaValidationError(f"{auth_file.name}: missing ChatGPT account id")

        headers = {**self.REQUEST_HEADERS, "Chatgpt-Account-Id": account_id}
        result = await self._request(auth_index, "GET", self.USAGE_URL, header=headers)
        payload = self._require_object(result.body, "Codex usage")

        plan_type = normalize_plan_type(_pick(payload, "plan_type", "planType"))
        return CodexQuotaData(
            windows=self.build_windows(payload),
            plan_type=plan_type or self.resolve_plan_type(auth_file),
        )
