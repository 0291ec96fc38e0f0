"""QuotaViewModel wiring tests."""

import asyncio

from conftest import make_auth_file, ok

from quotaboard.models.config import QuotaBoardConfig
from quotaboard.models.providers import QuotaProvider
from quotaboard.models.quota import QuotaState, QuotaStatus
from quotaboard.services.quota_fetchers import CodexQuotaFetcher, CopilotQuotaFetcher
from quotaboard.viewmodels import QuotaViewModel


def _viewmodel(api_client, clock, scheduler) -> QuotaViewModel:
    return QuotaViewModel(config=QuotaBoardConfig(), api_client=api_client, clock=clock, scheduler=scheduler)


def test_accounts_for_filters_disabled_and_runtime_only(api_client, clock, scheduler) -> None:
    vm = _viewmodel(api_client, clock, scheduler)
    vm.set_auth_files([
        make_auth_file("a", provider="codex"),
        make_auth_file("b", provider="codex", disabled=True),
        make_auth_file("c", provider="codex", runtime_only=True),
        make_auth_file("d", provider="copilot"),
    ])
    assert [f.name for f in vm.accounts_for("codex")] == ["a"]
    assert [f.name for f in vm.accounts_for(QuotaProvider.COPILOT)] == ["d"]


async def test_refresh_all_quotas_fills_store_and_notifies(api_client, clock, scheduler) -> None:
    api_client.add_route(CodexQuotaFetcher.USAGE_URL, ok({"rate_limit": {"primary_window": {"used_percent": 10}}}))
    api_client.add_route(CopilotQuotaFetcher.TOKEN_URL, ok({"message": "Bad credentials"}, status=401))
    vm = _viewmodel(api_client, clock, scheduler)
    vm.set_auth_files([
        make_auth_file("codex.json", provider="codex", metadata={"account_id": "acct"}),
        make_auth_file("gh.json", provider="github-copilot"),
    ])
    updates = []
    vm.register_quota_update_callback(updates.append)

    results = await vm.refresh_all_quotas()

    assert not vm.isLoadingQuotas
    assert results[QuotaProvider.CODEX]["codex.json"].status == QuotaStatus.SUCCESS
    copilot = vm.quota_for("github-copilot")["gh.json"]
    assert copilot.status == QuotaStatus.ERROR
    assert copilot.error_status == 401
    assert vm.quota_for("antigravity") == {}
    assert [n.message for n in vm.notifications.notifications] == ["Quota refreshed for 1 account(s)"]
    assert {event["provider"] for event in updates} == {"codex", "github-copilot"}


async def test_aggregate_codex(api_client, clock, scheduler) -> None:
    api_client.add_route(CodexQuotaFetcher.USAGE_URL, ok({"rate_limit": {"primary_window": {"used_percent": 30}}}))
    vm = _viewmodel(api_client, clock, scheduler)
    vm.set_auth_files([
        make_auth_file("one", metadata={"account_id": "1"}),
        make_auth_file("two", metadata={"account_id": "2"}),
    ])
    await vm.load_quotas("codex")
    summary = vm.aggregate("codex")
    assert summary[0].credential_count == 2
    assert summary[0].average_remaining_percent == 70.0
    assert vm.aggregate("github-copilot") == []


async def test_reset_session_discards_in_flight_results(api_client, clock, scheduler) -> None:
    release = asyncio.get_running_loop().create_future()
    original = api_client.api_call

    async def slow_api_call(*args, **kwargs):
        await release
        return await original(*args, **kwargs)

    api_client.api_call = slow_api_call
    api_client.add_route(CodexQuotaFetcher.USAGE_URL, ok({}))
    vm = _viewmodel(api_client, clock, scheduler)
    vm.project_id_cache.set_project_id("9", "proj")
    vm.set_auth_files([make_auth_file("codex.json", metadata={"account_id": "acct"})])

    task = asyncio.ensure_future(vm.load_quotas("codex"))
    for _ in range(5):
        await asyncio.sleep(0)
    assert vm.quota_for("codex")["codex.json"].is_loading

    vm.reset_session()
    release.set_result(None)
    await task

    assert vm.quota_for("codex") == {}
    assert vm.project_id_cache.get_project_id("9") is None


def test_remove_account_drops_key_and_project_id(api_client, clock, scheduler) -> None:
    vm = _viewmodel(api_client, clock, scheduler)
    gone = make_auth_file("ag.json", provider="antigravity", auth_index="4")
    kept = make_auth_file("other.json", provider="antigravity", auth_index="5")
    vm.set_auth_files([gone, kept])
    vm.quota_store.write("antigravity", {"ag.json": QuotaState.success([]), "other.json": QuotaState.success([])})
    vm.project_id_cache.set_project_id("4", "proj")

    vm.remove_account(gone)

    assert list(vm.quota_for("antigravity")) == ["other.json"]
    assert vm.project_id_cache.get_project_id("4") is None
    assert vm.auth_files == [kept]


async def test_claude_code_refresh_through_viewmodel(api_client, clock, scheduler) -> None:
    api_client.claude_quotas = {
        "a": {"auth_id": "a", "quota": {"five_hour": {"utilization": 12.5}}},
        "b": {"auth_id": "b", "quota": {"seven_day": {"utilization": 40}}},
    }
    vm = _viewmodel(api_client, clock, scheduler)
    await vm.load_claude_code_quotas()
    b_state = vm.claude_code_store.get("b")

    state = await vm.refresh_claude_code_quota("a")

    assert state.data.max_utilization == 12.5
    assert vm.claude_code_store.get("b") is b_state
    assert vm.quota_for("codex") == {}


async def test_callback_unregister(api_client, clock, scheduler) -> None:
    vm = _viewmodel(api_client, clock, scheduler)
    updates = []
    vm.register_quota_update_callback(updates.append)
    vm.register_quota_update_callback(updates.append)
    vm.quota_store.set_state("codex", "k", QuotaState.loading())
    vm.unregister_quota_update_callback(updates.append)
    vm.quota_store.set_state("codex", "k", QuotaState.idle())
    assert len(updates) == 1


def test_reset_session_notifies_registered_callbacks(api_client, clock, scheduler) -> None:
    vm = _viewmodel(api_client, clock, scheduler)
    updates = []
    vm.register_quota_update_callback(updates.append)
    vm.quota_store.set_state("codex", "acc-1", QuotaState.success("data"))
    vm.claude_code_store.set_state("auth-1", QuotaState.success("data"))
    updates.clear()

    vm.reset_session()

    assert {"provider": "codex", "keys": ["acc-1"]} in updates
    assert {"provider": "claude-code", "keys": ["auth-1"]} in updates
    assert vm.quota_for("codex") == {}


def test_proxy_url_reaches_the_api_client() -> None:
    config = QuotaBoardConfig(api_base="http://127.0.0.1:8317", proxy_url="http://corp-proxy:3128")
    vm = QuotaViewModel(config=config)
    assert vm.api_client.proxy == "http://corp-proxy:3128"
    assert QuotaViewModel().api_client.proxy is None
