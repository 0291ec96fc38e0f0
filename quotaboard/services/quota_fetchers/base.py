"""
Base quota fetcher class.

WORKFLOW OVERVIEW:
==================
Each provider family (Antigravity, Codex, Gemini CLI, GitHub Copilot) has
a fetcher that inherits from BaseQuotaFetcher. Fetchers are the external
edge of the quota layer: they perform the network call through the
management API relay and return a normalized payload.

WORKFLOW:
1. QuotaLoader sets the account's state to loading
2. QuotaLoader awaits fetcher.fetch_quota(auth_file)
3. The fetcher:
   - Resolves the auth index (and any derived identifier, e.g. project id)
   - Relays the provider request via ManagementAPIClient.api_call()
   - Raises QuotaFetchError for non-2xx responses or transport failures
   - Raises QuotaValidationError when the payload has the wrong shape
   - Returns the normalized payload otherwise
4. QuotaLoader writes success or error into the QuotaStore

Fetchers never touch the store.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from ...models.auth import AuthFile
from ...models.providers import QuotaProvider
from ..api_client import ApiCallResult, ManagementAPIClient
from ..errors import QuotaFetchError, QuotaValidationError

T = TypeVar("T")


class BaseQuotaFetcher(ABC, Generic[T]):
    """
    Base class for quota fetchers.

    Subclasses set ``provider`` and implement fetch_quota(). The shared
    ``_request`` helper relays a call and turns a non-2xx answer into a
    QuotaFetchError carrying the provider's status code.
    """

    provider: QuotaProvider

    def __init__(self, api_client: ManagementAPIClient):
        """
        Args:
            api_client: ManagementAPIClient used to relay provider requests
        """
        self.api_client = api_client

    def resolve_auth_index(self, auth_file: AuthFile) -> str:
        auth_index = auth_file.normalized_auth_index
        if not auth_index:
            raise QuotaValidationError(f"{auth_file.name}: missing auth index")
        return auth_index

    async def _request(
        self,
        auth_index: str,
        method: str,
        url: str,
        header: Optional[dict] = None,
        data: Optional[str] = None,
    ) -> ApiCallResult:
        result = await self.api_client.api_call(auth_index, method, url, header=header, data=data)
        if not result.ok:
            raise QuotaFetchError(result.error_message, result.status_code)
        return result

    @staticmethod
    def _require_object(body: Any, what: str) -> dict:
        if not isinstance(body, dict):
            raise QuotaValidationError(f"Unexpected {what} payload")
        return body

    @abstractmethod
    async def fetch_quota(self, auth_file: AuthFile) -> T:
        """
        Fetch and normalize quota for one account.

        Args:
            auth_file: The account's auth file descriptor

        Returns:
            The provider's normalized payload

        Raises:
            QuotaFetchError: transport failure or non-2xx provider answer
            QuotaValidationError: malformed payload or missing identifiers
        """


__all__ = [
    "BaseQuotaFetcher",
    "QuotaFetchError",
    "QuotaValidationError",
]
