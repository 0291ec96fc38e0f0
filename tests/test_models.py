"""Model and normalizer tests."""

import base64
import json

from quotaboard.models.auth import AuthFile
from quotaboard.models.claude_code import ClaudeCodeQuotaInfo
from quotaboard.models.providers import QuotaProvider
from quotaboard.models.quota import QuotaState, QuotaStatus
from quotaboard.utils.normalize import (
    decode_jwt,
    normalize_auth_index_value,
    normalize_number_value,
    normalize_quota_fraction,
    normalize_string_value,
    parse_json_object,
)


def test_provider_aliases() -> None:
    assert QuotaProvider.from_auth_provider("copilot") is QuotaProvider.COPILOT
    assert QuotaProvider.from_auth_provider(" Gemini ") is QuotaProvider.GEMINI_CLI
    assert QuotaProvider.from_auth_provider("codex") is QuotaProvider.CODEX
    assert QuotaProvider.from_auth_provider("claude") is None
    assert QuotaProvider.from_auth_provider(None) is None


def test_auth_file_accepts_camel_case_and_extra_fields() -> None:
    auth_file = AuthFile.model_validate({
        "name": "codex.json",
        "provider": "codex",
        "authIndex": 12,
        "account": "someone",
        "modtime": "2026-01-01",
    })
    assert auth_file.normalized_auth_index == "12"
    assert auth_file.quota_lookup_key == "codex.json"
    assert auth_file.display_account == "someone"
    assert auth_file.provider_type is QuotaProvider.CODEX


def test_loading_state_keeps_previous_data() -> None:
    previous = QuotaState.success({"windows": []})
    loading = QuotaState.loading(previous)
    assert loading.status == QuotaStatus.LOADING
    assert loading.data == {"windows": []}
    assert QuotaState.loading().data is None
    assert QuotaState.failure("x", 500).error_status == 500


def test_claude_code_info_windows() -> None:
    info = ClaudeCodeQuotaInfo.model_validate({
        "unifiedStatus": "allowed",
        "fiveHour": {"utilization": 10, "resetsAt": 1_760_000_000},
        "seven_day_opus": {"utilization": 80},
    })
    assert [name for name, _ in info.windows] == ["five_hour", "seven_day_opus"]
    assert info.max_utilization == 80
    assert info.five_hour.resets_at == 1_760_000_000
    assert ClaudeCodeQuotaInfo().max_utilization is None


def test_normalizers() -> None:
    assert normalize_string_value("  x ") == "x"
    assert normalize_string_value("   ") is None
    assert normalize_string_value(True) is None
    assert normalize_number_value("1.5") == 1.5
    assert normalize_number_value("nan") is None
    assert normalize_number_value(False) is None
    assert normalize_quota_fraction("75%") == 0.75
    assert normalize_quota_fraction(0.3) == 0.3
    assert normalize_auth_index_value(7) == "7"
    assert normalize_auth_index_value(" 8 ") == "8"


def test_parse_json_object() -> None:
    assert parse_json_object('{"a": 1}') == {"a": 1}
    assert parse_json_object(b'{"a": 1}') == {"a": 1}
    assert parse_json_object("[1, 2]") is None
    assert parse_json_object("") is None


def test_decode_jwt() -> None:
    payload = base64.urlsafe_b64encode(json.dumps({"sub": "me"}).encode()).decode().rstrip("=")
    assert decode_jwt(f"h.{payload}.s") == {"sub": "me"}
    assert decode_jwt("not-a-jwt") is None
    assert decode_jwt("h.!!!.s") is None
