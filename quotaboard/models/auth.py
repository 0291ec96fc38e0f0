"""Authentication models."""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

from .providers import QuotaProvider
from ..utils.normalize import normalize_auth_index_value, normalize_string_value


class AuthFile(BaseModel):
    """Auth file (one linked account) from the Management API."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    provider: str = ""
    id: Optional[str] = None
    type: Optional[str] = None
    label: Optional[str] = None
    email: Optional[str] = None
    account: Optional[str] = None
    status: str = "unknown"
    disabled: bool = False
    unavailable: bool = False
    runtime_only: Optional[bool] = None
    auth_index: Optional[Any] = Field(None, alias="authIndex")
    id_token: Optional[Any] = None
    metadata: Optional[dict] = None

    @property
    def provider_type(self) -> Optional[QuotaProvider]:
        """Get the quota family from the provider (or type) string."""
        return QuotaProvider.from_auth_provider(self.provider or self.type)

    @property
    def normalized_auth_index(self) -> Optional[str]:
        return normalize_auth_index_value(self.auth_index)

    @property
    def quota_lookup_key(self) -> str:
        """Key used for quota lookup in the store."""
        return self.name

    @property
    def is_runtime_only(self) -> bool:
        return bool(self.runtime_only)

    @property
    def display_account(self) -> str:
        for value in (self.email, self.account, self.label):
            text = normalize_string_value(value)
            if text:
                return text
        return self.name


class AuthFilesResponse(BaseModel):
    """Response containing auth files."""
    files: list[AuthFile] = Field(default_factory=list)
