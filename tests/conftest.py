"""Shared fixtures: a fake clock, a manual scheduler and a fake management client."""

import asyncio
from typing import Any, Optional

import pytest

from quotaboard.models.auth import AuthFile
from quotaboard.services.api_client import ApiCallResult
from quotaboard.services.errors import QuotaFetchError


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualTimer:
    def __init__(self, delay: float, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Records timers; tests fire them explicitly."""

    def __init__(self):
        self.timers: list[ManualTimer] = []

    def __call__(self, delay: float, callback) -> ManualTimer:
        timer = ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def fire_all(self) -> None:
        for timer in list(self.timers):
            timer.callback()


class FakeManagementClient:
    """Stands in for ManagementAPIClient; answers api_call from a route table."""

    def __init__(self):
        self.routes: dict[str, list[Any]] = {}
        self.calls: list[dict] = []
        self.auth_file_texts: dict[str, str] = {}
        self.downloads: list[str] = []
        self.claude_quotas: dict[str, dict] = {}
        self.claude_refreshes: list[str] = []

    def add_route(self, url: str, *responses: Any) -> None:
        """Queue responses (ApiCallResult or exception) for a URL; the last one repeats."""
        self.routes.setdefault(url, []).extend(responses)

    async def api_call(self, auth_index, method, url, header=None, data=None) -> ApiCallResult:
        self.calls.append({"auth_index": auth_index, "method": method, "url": url, "header": header, "data": data})
        queue = self.routes.get(url)
        if not queue:
            return ApiCallResult(status_code=404, body={"error": "not found"})
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        return response

    async def download_auth_file_text(self, name: str) -> str:
        self.downloads.append(name)
        if name not in self.auth_file_texts:
            raise QuotaFetchError("HTTP 404", 404)
        return self.auth_file_texts[name]

    async def get_claude_code_quota(self, auth_id: str) -> dict:
        return self.claude_quotas[auth_id]

    async def refresh_claude_code_quota(self, auth_id: str) -> dict:
        self.claude_refreshes.append(auth_id)
        return self.claude_quotas[auth_id]

    async def get_claude_code_quotas(self) -> dict:
        quotas = list(self.claude_quotas.values())
        return {"count": len(quotas), "quotas": quotas}

    async def fetch_auth_files(self) -> list[AuthFile]:
        return []

    async def close(self) -> None:
        pass


def ok(body: Any, status: int = 200) -> ApiCallResult:
    return ApiCallResult(status_code=status, body=body)


class ControlledFetcher:
    """Fetcher whose results are released by the test, one future per call."""

    def __init__(self, provider):
        self.provider = provider
        self.calls: list[str] = []
        self.futures: list[asyncio.Future] = []

    async def fetch_quota(self, auth_file: AuthFile):
        self.calls.append(auth_file.name)
        future = asyncio.get_running_loop().create_future()
        self.futures.append(future)
        return await future


def make_auth_file(name: str, provider: str = "codex", auth_index: Optional[str] = "1", **extra) -> AuthFile:
    return AuthFile(name=name, provider=provider, auth_index=auth_index, **extra)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def api_client() -> FakeManagementClient:
    return FakeManagementClient()
