"""Provider-wide aggregation tests."""

from quotaboard.models.quota import (
    AntigravityQuotaGroup,
    CodexQuotaData,
    CodexQuotaWindow,
    GeminiCliQuotaBucket,
    QuotaState,
)
from quotaboard.services.quota_aggregation import (
    aggregate_antigravity_quota,
    aggregate_codex_quota,
    aggregate_gemini_cli_quota,
)


def _group(fraction: float, reset: str) -> AntigravityQuotaGroup:
    return AntigravityQuotaGroup(id="gemini-3-pro", label="Gemini 3 Pro", models=["gemini-3-pro-high"],
                                 remaining_fraction=fraction, reset_time=reset)


def test_antigravity_averages_successful_states_only() -> None:
    quota_map = {
        "a": QuotaState.success([_group(0.2, "2026-01-02T00:00:00Z")]),
        "b": QuotaState.success([_group(0.6, "2026-01-01T00:00:00Z")]),
        "c": QuotaState.failure("boom"),
        "d": QuotaState.loading(),
    }
    [summary] = aggregate_antigravity_quota(quota_map)
    assert summary.credential_count == 2
    assert abs(summary.average_remaining_fraction - 0.4) < 1e-9
    assert summary.reset_time_range.earliest == "2026-01-01T00:00:00Z"
    assert summary.reset_time_range.latest == "2026-01-02T00:00:00Z"


def test_codex_reports_remaining_percent() -> None:
    def data(primary_used, secondary_used):
        return CodexQuotaData(windows=[
            CodexQuotaWindow("primary", "Primary window", primary_used, "-"),
            CodexQuotaWindow("secondary", "Secondary window", secondary_used, "01/02 10:00"),
        ])

    quota_map = {"a": QuotaState.success(data(20.0, None)), "b": QuotaState.success(data(60.0, 50.0))}
    primary, secondary = aggregate_codex_quota(quota_map)
    assert primary.average_remaining_percent == 60.0
    assert primary.reset_label_range is None
    assert secondary.average_remaining_percent == 50.0
    assert secondary.reset_label_range.earliest == "01/02 10:00"


def test_gemini_keeps_first_seen_order() -> None:
    def bucket(bucket_id, fraction):
        return GeminiCliQuotaBucket(bucket_id, bucket_id, fraction, None, None, "REQUESTS", [bucket_id])

    quota_map = {
        "a": QuotaState.success([bucket("flash", 1.0), bucket("pro", None)]),
        "b": QuotaState.success([bucket("pro", 0.5)]),
    }
    result = aggregate_gemini_cli_quota(quota_map)
    assert [b.id for b in result] == ["flash", "pro"]
    assert result[1].average_remaining_fraction == 0.5
    assert result[1].credential_count == 2


def test_empty_map_gives_empty_summary() -> None:
    assert aggregate_antigravity_quota({}) == []
    assert aggregate_codex_quota({}) == []
    assert aggregate_gemini_cli_quota({"x": QuotaState.success([])}) == []
