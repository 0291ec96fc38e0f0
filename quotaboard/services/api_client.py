"""
Management API client.

All provider calls are relayed through the proxy's management API
(``POST /v0/management/api-call``), which injects the credential selected
by ``auth_index``. The client also lists and downloads auth files and
exposes the Claude Code quota endpoints.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import quote

import aiohttp

from ..models.auth import AuthFile, AuthFilesResponse
from ..utils.log import log_with_timestamp
from ..utils.normalize import parse_json_object
from .errors import QuotaFetchError

_MANAGEMENT_SUFFIX = re.compile(r"/?v0/management/?$", re.IGNORECASE)


class APIError(QuotaFetchError):
    """Management API request failed."""


def extract_error_message(data: Any) -> Optional[str]:
    """Message from an {"error": ...} or {"message": ...} body, if any."""
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    if data.get("message"):
        return str(data["message"])
    return None


@dataclass
class ApiCallResult:
    """Response of a relayed provider request."""
    status_code: int
    header: dict = field(default_factory=dict)
    body: Any = None
    body_text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def error_message(self) -> str:
        """Best-effort error text from a failed provider response."""
        message = extract_error_message(self.body)
        if message:
            return message
        if self.body_text and self.body_text.strip():
            return self.body_text.strip()[:300]
        return f"HTTP {self.status_code}"


def normalize_base(url: str) -> str:
    """Strip a trailing /v0/management and default the scheme to http."""
    base = (url or "").strip()
    if not base:
        return ""
    base = _MANAGEMENT_SUFFIX.sub("", base).rstrip("/")
    if not re.match(r"^https?://", base, re.IGNORECASE):
        base = "http://" + base
    return base


class ManagementAPIClient:
    """aiohttp client for the proxy management API."""

    MANAGEMENT_PATH = "/v0/management"

    def __init__(
        self,
        base_url: str,
        management_key: str = "",
        timeout: float = 15.0,
        session: Optional[aiohttp.ClientSession] = None,
        proxy: Optional[str] = None,
    ):
        self.base_url = normalize_base(base_url)
        self.api_url = self.base_url + self.MANAGEMENT_PATH if self.base_url else ""
        self.management_key = management_key
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None
        # HTTP(S) proxy for management requests; None connects directly
        self.proxy = proxy or None

    async def __aenter__(self) -> "ManagementAPIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self.session

    async def close(self) -> None:
        if self.session is not None and self._owns_session and not self.session.closed:
            await self.session.close()

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.management_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, endpoint: str, json: Any = None) -> Any:
        """Send a management request and return the decoded JSON body."""
        if not self.api_url:
            raise APIError("Management API base URL is not configured")

        url = f"{self.api_url}{endpoint}"
        try:
            async with self._get_session().request(
                method, url, headers=self._headers(), json=json, timeout=self.timeout, proxy=self.proxy
            ) as response:
                text = await response.text()
                if response.status < 200 or response.status >= 300:
                    message = extract_error_message(parse_json_object(text)) or f"HTTP {response.status}"
                    raise APIError(message, response.status)
                if not text.strip():
                    return {}
                data = parse_json_object(text)
                if data is None:
                    raise APIError(f"Invalid JSON from {endpoint}", response.status)
                return data
        except aiohttp.ClientError as e:
            log_with_timestamp(f"{method} {endpoint} failed: {e}", "[ManagementAPIClient]", level=logging.WARNING)
            raise APIError(f"Network error: {e}") from e
        except asyncio.TimeoutError as e:
            raise APIError(f"Request to {endpoint} timed out") from e

    async def api_call(
        self,
        auth_index: str,
        method: str,
        url: str,
        header: Optional[dict] = None,
        data: Optional[str] = None,
    ) -> ApiCallResult:
        """Relay a provider request using the credential at auth_index."""
        payload: dict[str, Any] = {
            "auth_index": auth_index,
            "method": method,
            "url": url,
            "header": header or {},
        }
        if data is not None:
            payload["data"] = data

        response = await self._request("POST", "/api-call", json=payload)
        raw_body = response.get("body")
        if isinstance(raw_body, str):
            body_text = raw_body
            body = parse_json_object(raw_body)
        else:
            body = raw_body
            body_text = ""
        status_code = response.get("status_code", response.get("statusCode", 0))
        return ApiCallResult(
            status_code=int(status_code or 0),
            header=response.get("header") or {},
            body=body,
            body_text=body_text,
        )

    async def fetch_auth_files(self) -> list[AuthFile]:
        data = await self._request("GET", "/auth-files")
        return AuthFilesResponse.model_validate(data).files

    async def download_auth_file_text(self, name: str) -> str:
        if not self.api_url:
            raise APIError("Management API base URL is not configured")
        url = f"{self.api_url}/auth-files/download"
        try:
            async with self._get_session().get(
                url, headers=self._headers(), params={"name": name}, timeout=self.timeout, proxy=self.proxy
            ) as response:
                if response.status < 200 or response.status >= 300:
                    raise APIError(f"HTTP {response.status}", response.status)
                return await response.text()
        except aiohttp.ClientError as e:
            raise APIError(f"Network error: {e}") from e
        except asyncio.TimeoutError as e:
            raise APIError(f"Download of {name} timed out") from e

    async def get_claude_code_quotas(self) -> dict:
        return await self._request("GET", "/claude-api-key/quotas")

    async def get_claude_code_quota(self, auth_id: str) -> dict:
        return await self._request("GET", f"/claude-api-key/quota/{quote(auth_id, safe='')}")

    async def refresh_claude_code_quota(self, auth_id: str) -> dict:
        return await self._request("POST", f"/claude-api-key/quota/{quote(auth_id, safe='')}/refresh")
