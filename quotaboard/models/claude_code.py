"""Claude Code quota models.

Claude Code accounts report several named utilization windows, each with
its own reset epoch, plus a unified status for the account as a whole.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

WINDOW_NAMES = ("five_hour", "seven_day", "seven_day_opus", "seven_day_sonnet")


class ClaudeCodeQuotaWindow(BaseModel):
    """One utilization window."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    utilization: Optional[float] = None  # percent used, 0-100
    resets_at: Optional[int] = Field(None, alias="resetsAt")  # unix epoch seconds
    status: Optional[str] = None


class ClaudeCodeQuotaInfo(BaseModel):
    """Quota information for one Claude Code account."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    unified_status: Optional[str] = Field(None, alias="unifiedStatus")
    five_hour: Optional[ClaudeCodeQuotaWindow] = Field(None, alias="fiveHour")
    seven_day: Optional[ClaudeCodeQuotaWindow] = Field(None, alias="sevenDay")
    seven_day_opus: Optional[ClaudeCodeQuotaWindow] = Field(None, alias="sevenDayOpus")
    seven_day_sonnet: Optional[ClaudeCodeQuotaWindow] = Field(None, alias="sevenDaySonnet")
    updated_at: Optional[str] = Field(None, alias="updatedAt")

    @property
    def windows(self) -> list[tuple[str, ClaudeCodeQuotaWindow]]:
        """Present windows in display order."""
        result = []
        for name in WINDOW_NAMES:
            window = getattr(self, name)
            if window is not None:
                result.append((name, window))
        return result

    @property
    def max_utilization(self) -> Optional[float]:
        values = [w.utilization for _, w in self.windows if w.utilization is not None]
        return max(values) if values else None


class ClaudeCodeQuotaResponse(BaseModel):
    """Quota response for one auth file from the management API."""
    model_config = ConfigDict(extra="ignore")

    auth_id: str
    email: Optional[str] = None
    label: Optional[str] = None
    quota: ClaudeCodeQuotaInfo = Field(default_factory=ClaudeCodeQuotaInfo)


class ClaudeCodeQuotasResponse(BaseModel):
    """Quota responses for every Claude Code auth file."""
    model_config = ConfigDict(extra="ignore")

    count: int = 0
    quotas: list[ClaudeCodeQuotaResponse] = Field(default_factory=list)
