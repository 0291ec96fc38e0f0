"""Provider-wide quota aggregation.

Combines the successful states of one family into per-group averages for
the summary card. Items are matched by id across accounts; the output
keeps the order in which ids are first seen.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Optional, TypeVar

from ..models.quota import (
    AntigravityQuotaGroup,
    CodexQuotaWindow,
    GeminiCliQuotaBucket,
    QuotaState,
    QuotaStatus,
)

I = TypeVar("I")


@dataclass
class ValueRange:
    earliest: str
    latest: str


@dataclass
class AggregatedAntigravityGroup:
    id: str
    label: str
    models: list[str]
    average_remaining_fraction: float
    credential_count: int
    reset_time_range: Optional[ValueRange] = None


@dataclass
class AggregatedCodexWindow:
    id: str
    label: str
    average_remaining_percent: Optional[float]
    credential_count: int
    reset_label_range: Optional[ValueRange] = None


@dataclass
class AggregatedGeminiCliBucket:
    id: str
    label: str
    average_remaining_fraction: Optional[float]
    credential_count: int
    reset_time_range: Optional[ValueRange] = None
    token_type: Optional[str] = None
    model_ids: list[str] = field(default_factory=list)


def _group_by_id(item_lists: Iterable[list[I]], get_id: Callable[[I], str]) -> dict[str, list[I]]:
    grouped: dict[str, list[I]] = {}
    for items in item_lists:
        for item in items:
            grouped.setdefault(get_id(item), []).append(item)
    return grouped


def _range(values: Iterable[Optional[str]], ignore: tuple = ("", "-")) -> Optional[ValueRange]:
    present = sorted(v for v in values if v and v not in ignore)
    if not present:
        return None
    return ValueRange(earliest=present[0], latest=present[-1])


def _average(values: Iterable[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    return sum(present) / len(present) if present else None


def _successful(quota_map: Mapping[str, QuotaState]) -> list:
    return [
        state.data for state in quota_map.values()
        if state.status == QuotaStatus.SUCCESS and state.data
    ]


def aggregate_antigravity_quota(quota_map: Mapping[str, QuotaState]) -> list[AggregatedAntigravityGroup]:
    grouped = _group_by_id(_successful(quota_map), lambda g: g.id)
    result = []
    for group_id, groups in grouped.items():
        first: AntigravityQuotaGroup = groups[0]
        result.append(AggregatedAntigravityGroup(
            id=group_id,
            label=first.label,
            models=list(first.models),
            average_remaining_fraction=sum(g.remaining_fraction for g in groups) / len(groups),
            credential_count=len(groups),
            reset_time_range=_range(g.reset_time for g in groups),
        ))
    return result


def aggregate_codex_quota(quota_map: Mapping[str, QuotaState]) -> list[AggregatedCodexWindow]:
    """Codex reports used percent; the aggregate shows remaining percent."""
    window_lists = [data.windows for data in _successful(quota_map) if data.windows]
    grouped = _group_by_id(window_lists, lambda w: w.id)
    result = []
    for window_id, windows in grouped.items():
        first: CodexQuotaWindow = windows[0]
        result.append(AggregatedCodexWindow(
            id=window_id,
            label=first.label,
            average_remaining_percent=_average(
                100 - w.used_percent if w.used_percent is not None else None for w in windows
            ),
            credential_count=len(windows),
            reset_label_range=_range(w.reset_label for w in windows),
        ))
    return result


def aggregate_gemini_cli_quota(quota_map: Mapping[str, QuotaState]) -> list[AggregatedGeminiCliBucket]:
    grouped = _group_by_id(_successful(quota_map), lambda b: b.id)
    result = []
    for bucket_id, buckets in grouped.items():
        first: GeminiCliQuotaBucket = buckets[0]
        result.append(AggregatedGeminiCliBucket(
            id=bucket_id,
            label=first.label,
            average_remaining_fraction=_average(b.remaining_fraction for b in buckets),
            credential_count=len(buckets),
            reset_time_range=_range(b.reset_time for b in buckets),
            token_type=first.token_type,
            model_ids=list(first.model_ids),
        ))
    return result
