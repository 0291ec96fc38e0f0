"""
Quota status records.

Every account key in the quota store maps to one QuotaState. The state tag
(idle, loading, success, error) is authoritative; ``data`` carries the
provider-specific normalized payload. A loading state may keep the last
known payload so renderers can keep showing it while a refresh runs.

Normalized payloads per family:
- antigravity: list[AntigravityQuotaGroup]
- codex: CodexQuotaData
- gemini-cli: list[GeminiCliQuotaBucket]
- github-copilot: CopilotQuotaData
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class QuotaStatus(str, Enum):
    """Status tag of a quota record."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class QuotaState(Generic[T]):
    """
    Quota status for one account.

    Fields:
        status: Authoritative state tag
        data: Normalized payload (success, or retained while loading)
        error: Error message (error only)
        error_status: HTTP-like status code of the failure, if known
    """
    status: QuotaStatus = QuotaStatus.IDLE
    data: Optional[T] = None
    error: Optional[str] = None
    error_status: Optional[int] = None

    @classmethod
    def idle(cls) -> "QuotaState[T]":
        return cls()

    @classmethod
    def loading(cls, previous: Optional["QuotaState[T]"] = None) -> "QuotaState[T]":
        """Loading state, keeping the payload of ``previous`` if it had one."""
        data = previous.data if previous is not None else None
        return cls(status=QuotaStatus.LOADING, data=data)

    @classmethod
    def success(cls, data: T) -> "QuotaState[T]":
        return cls(status=QuotaStatus.SUCCESS, data=data)

    @classmethod
    def failure(cls, message: str, error_status: Optional[int] = None) -> "QuotaState[T]":
        return cls(status=QuotaStatus.ERROR, error=message, error_status=error_status)

    @property
    def is_loading(self) -> bool:
        return self.status == QuotaStatus.LOADING


IDLE_STATE: QuotaState = QuotaState()


@dataclass
class AntigravityQuotaGroup:
    """A group of Antigravity models sharing one quota."""
    id: str
    label: str
    models: list[str]
    remaining_fraction: float
    reset_time: Optional[str] = None


@dataclass
class CodexQuotaWindow:
    """One Codex rate-limit window (primary, secondary or code-review)."""
    id: str
    label: str
    used_percent: Optional[float]
    reset_label: str


@dataclass
class CodexQuotaData:
    windows: list[CodexQuotaWindow] = field(default_factory=list)
    plan_type: Optional[str] = None


@dataclass
class GeminiCliQuotaBucket:
    """Quota bucket for one Gemini model group."""
    id: str
    label: str
    remaining_fraction: Optional[float]
    remaining_amount: Optional[float]
    reset_time: Optional[str]
    token_type: Optional[str]
    model_ids: list[str] = field(default_factory=list)


@dataclass
class CopilotQuotaCategory:
    """One Copilot quota snapshot (chat, completions, premium_interactions)."""
    id: str
    percent_remaining: Optional[float]
    remaining: Optional[float]
    entitlement: Optional[float]
    unlimited: bool = False
    overage_permitted: bool = False
    overage_count: int = 0


@dataclass
class CopilotQuotaData:
    categories: list[CopilotQuotaCategory] = field(default_factory=list)
    user: Optional[str] = None
    sku: Optional[str] = None
    plan_type: Optional[str] = None
    expires_at: Optional[str] = None
    reset_date: Optional[str] = None
