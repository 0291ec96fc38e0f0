"""
QuotaViewModel - the state container for quota screens.

WORKFLOW OVERVIEW:
==================
The application creates one QuotaViewModel and hands it to every screen.
It owns the shared pieces (event bus, quota stores, project-id cache,
notification channel) and wires one loader per provider family, so no
module-level singletons are needed and tests can build isolated
instances.

KEY WORKFLOWS:
1. Account list:
   - set_auth_files() replaces the known accounts
   - A wholesale account change (re-login, credential reload) calls
     reset_session(), which clears every store and cache and makes any
     in-flight result stale
2. Quota refresh:
   - load_quotas(provider) loads the accounts of one family
   - refresh_all_quotas() loads every family concurrently
   - Claude Code accounts go through load_claude_code_quotas() and the
     key-scoped refresh_claude_code_quota()
3. UI integration:
   - register_quota_update_callback() subscribes to store changes
   - aggregate() builds the provider-wide summary from the store
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Union

from ..models.auth import AuthFile
from ..models.config import QuotaBoardConfig
from ..models.notification import NotificationKind
from ..models.providers import QuotaProvider
from ..models.quota import QuotaState, QuotaStatus
from ..services.api_client import ManagementAPIClient
from ..services.event_bus import EventBus, QUOTA_UPDATED
from ..services.notification_manager import NotificationChannel, Scheduler
from ..services.quota_aggregation import (
    aggregate_antigravity_quota,
    aggregate_codex_quota,
    aggregate_gemini_cli_quota,
)
from ..services.quota_fetchers import (
    AntigravityQuotaFetcher,
    ClaudeCodeQuotaFetcher,
    CodexQuotaFetcher,
    CopilotQuotaFetcher,
    GeminiCliQuotaFetcher,
)
from ..services.quota_loader import ClaudeCodeQuotaLoader, QuotaLoader
from ..services.quota_store import ClaudeCodeQuotaStore, QuotaStore, Transform
from ..services.ttl_cache import ProjectIdCache
from ..utils.log import log_with_timestamp

_AGGREGATORS = {
    QuotaProvider.ANTIGRAVITY: aggregate_antigravity_quota,
    QuotaProvider.CODEX: aggregate_codex_quota,
    QuotaProvider.GEMINI_CLI: aggregate_gemini_cli_quota,
}


@dataclass
class QuotaViewModel:
    """
    Holds all quota state and the loaders that fill it.

    STATE:
    - quota_store: provider -> account key -> QuotaState
    - claude_code_store: auth id -> QuotaState[ClaudeCodeQuotaInfo]
    - project_id_cache: Antigravity project ids (24h, memory only)
    - notifications: toast-style messages
    - auth_files: accounts known to the management API
    """

    config: QuotaBoardConfig = field(default_factory=QuotaBoardConfig)
    api_client: Optional[ManagementAPIClient] = None
    event_bus: EventBus = field(default_factory=EventBus)
    clock: Callable[[], float] = time.time
    scheduler: Optional[Scheduler] = None

    auth_files: List[AuthFile] = field(default_factory=list)
    isLoadingQuotas: bool = False

    def __post_init__(self):
        if self.api_client is None:
            self.api_client = ManagementAPIClient(
                self.config.api_base,
                self.config.management_key,
                timeout=self.config.request_timeout_seconds,
                proxy=self.config.proxy_url,
            )

        self.quota_store = QuotaStore(self.event_bus)
        self.claude_code_store = ClaudeCodeQuotaStore(self.event_bus)
        self.project_id_cache = ProjectIdCache(
            ttl_seconds=self.config.project_id_ttl_seconds, clock=self.clock
        )
        self.notifications = NotificationChannel(
            default_duration_ms=self.config.notification_duration_ms,
            scheduler=self.scheduler,
            event_bus=self.event_bus,
        )

        fetchers = [
            AntigravityQuotaFetcher(self.api_client, self.project_id_cache),
            CodexQuotaFetcher(self.api_client, clock=self.clock),
            GeminiCliQuotaFetcher(self.api_client),
            CopilotQuotaFetcher(self.api_client),
        ]
        self.loaders: Dict[QuotaProvider, QuotaLoader] = {
            fetcher.provider: QuotaLoader(fetcher, self.quota_store) for fetcher in fetchers
        }
        self.claude_code_loader = ClaudeCodeQuotaLoader(
            ClaudeCodeQuotaFetcher(self.api_client), self.claude_code_store
        )

    # UI callbacks

    def register_quota_update_callback(self, callback: Callable) -> None:
        """Call ``callback(event)`` whenever quota states change."""
        self.event_bus.unsubscribe(QUOTA_UPDATED, callback)
        self.event_bus.subscribe(QUOTA_UPDATED, callback)

    def unregister_quota_update_callback(self, callback: Callable) -> None:
        self.event_bus.unsubscribe(QUOTA_UPDATED, callback)

    # Accounts

    def set_auth_files(self, auth_files: List[AuthFile]) -> None:
        self.auth_files = list(auth_files)

    async def refresh_auth_files(self) -> List[AuthFile]:
        """Reload the account list from the management API."""
        self.set_auth_files(await self.api_client.fetch_auth_files())
        return self.auth_files

    def accounts_for(self, provider: Union[QuotaProvider, str]) -> List[AuthFile]:
        """Enabled, persisted accounts of one family."""
        provider = QuotaProvider(provider)
        return [
            f for f in self.auth_files
            if f.provider_type == provider and not f.disabled and not f.is_runtime_only
        ]

    def remove_account(self, auth_file: AuthFile) -> None:
        """Forget one account's quota and cached project id."""
        provider = auth_file.provider_type
        key = auth_file.quota_lookup_key
        if provider is not None:
            self.loaders[provider].invalidate(key)
            self.quota_store.write(
                provider, Transform(lambda prev: {k: v for k, v in prev.items() if k != key})
            )
        if auth_file.normalized_auth_index:
            self.project_id_cache.clear_project_id(auth_file.normalized_auth_index)
        self.auth_files = [f for f in self.auth_files if f.name != auth_file.name]

    def reset_session(self) -> None:
        """Drop every cached quota after a wholesale account change."""
        log_with_timestamp("Resetting quota session", "[QuotaViewModel]")
        for loader in self.loaders.values():
            loader.invalidate()
        self.claude_code_loader.invalidate()
        self.quota_store.clear_all()
        self.claude_code_store.clear_all()
        self.project_id_cache.clear()

    # Quota

    def quota_for(self, provider: Union[QuotaProvider, str]) -> Dict[str, QuotaState]:
        return self.quota_store.read(provider)

    async def load_quotas(
        self,
        provider: Union[QuotaProvider, str],
        auth_files: Optional[List[AuthFile]] = None,
        force: bool = False,
    ) -> Dict[str, QuotaState]:
        """Load one family; defaults to every account of that family."""
        provider = QuotaProvider(provider)
        targets = auth_files if auth_files is not None else self.accounts_for(provider)
        return await self.loaders[provider].load_many(targets, force=force)

    async def refresh_all_quotas(self, force: bool = True) -> Dict[QuotaProvider, Dict[str, QuotaState]]:
        """Load every family concurrently."""
        self.isLoadingQuotas = True
        try:
            providers = list(self.loaders)
            results = await asyncio.gather(
                *(self.load_quotas(provider, force=force) for provider in providers)
            )
        finally:
            self.isLoadingQuotas = False

        by_provider = dict(zip(providers, results))
        loaded = sum(
            1 for states in results for state in states.values()
            if state.status == QuotaStatus.SUCCESS
        )
        if loaded:
            self.notifications.show(f"Quota refreshed for {loaded} account(s)", NotificationKind.SUCCESS)
        return by_provider

    async def load_claude_code_quotas(self) -> Dict[str, QuotaState]:
        return await self.claude_code_loader.load_all()

    async def refresh_claude_code_quota(self, auth_id: str) -> QuotaState:
        return await self.claude_code_loader.refresh(auth_id)

    def aggregate(self, provider: Union[QuotaProvider, str]) -> list:
        """Provider-wide summary; empty for families without one."""
        aggregator = _AGGREGATORS.get(QuotaProvider(provider))
        return aggregator(self.quota_for(provider)) if aggregator else []

    async def close(self) -> None:
        if self.api_client is not None:
            await self.api_client.close()
