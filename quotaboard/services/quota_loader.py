"""
Quota loaders - coordinate fetches and write their outcome to the store.

WORKFLOW OVERVIEW:
==================
For every (provider, account key) a loader guarantees:
1. The key's state is set to loading before the fetch is issued
   (keeping the last known payload for renderers).
2. At most one fetch is in flight. A second non-forced load joins the
   running fetch instead of starting a new one; a key already loading
   through someone else's loader is left alone.
3. Every fetch is tagged with a per-key sequence number. A forced load
   (refresh) issues a newer fetch while the old one keeps running; when the
   old one finishes its sequence is stale and its result is discarded.
4. Fetch failures become error states. Nothing is raised to the caller,
   so one failing account never affects the others.

``invalidate`` bumps sequence numbers without fetching, so results of
fetches started before a wholesale account change are dropped. Keys the
loader had marked as loading get their earlier state back.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from ..models.auth import AuthFile
from ..models.providers import QuotaProvider
from ..models.quota import QuotaState, QuotaStatus
from ..utils.log import log_with_timestamp
from .errors import QuotaFetchError, QuotaValidationError
from .quota_fetchers.base import BaseQuotaFetcher
from .quota_fetchers.claude_code import ClaudeCodeQuotaFetcher
from .quota_store import ClaudeCodeQuotaStore, QuotaStore, QuotaTable, Transform


def to_error_state(error: Exception) -> QuotaState:
    """Summarize a fetch failure as an error state."""
    if isinstance(error, QuotaFetchError):
        return QuotaState.failure(error.message, error.status_code)
    message = str(error) or type(error).__name__
    return QuotaState.failure(message)


class KeyedFetchCoordinator:
    """Loading/sequence/in-flight bookkeeping for one quota table."""

    def __init__(self, table: QuotaTable, log_prefix: str):
        self.table = table
        self._log_prefix = log_prefix
        self._sequences: Dict[str, int] = {}
        self._pending: Dict[str, "asyncio.Future[QuotaState]"] = {}
        # State each in-flight key had before its loading state was written
        self._before_loading: Dict[str, QuotaState] = {}

    def latest_sequence(self, key: str) -> int:
        return self._sequences.get(key, 0)

    def is_in_flight(self, key: str) -> bool:
        pending = self._pending.get(key)
        return pending is not None and not pending.done()

    def _next_sequence(self, key: str) -> int:
        sequence = self._sequences.get(key, 0) + 1
        self._sequences[key] = sequence
        return sequence

    def invalidate(self, key: Optional[str] = None) -> None:
        """Make results of fetches already in flight stale.

        A key this coordinator marked as loading goes back to the state it
        had before, so the next load fetches again.
        """
        keys = [key] if key is not None else list(self._sequences)
        for k in keys:
            self._next_sequence(k)
            pending = self._pending.pop(k, None)
            previous = self._before_loading.pop(k, None)
            if pending is None or pending.done() or previous is None:
                continue
            if self.table.get(k).is_loading:
                self._restore(k, previous)

    def _restore(self, key: str, previous: QuotaState) -> None:
        if previous.status == QuotaStatus.IDLE:
            self.table.write(Transform(lambda prev: {k: v for k, v in prev.items() if k != key}))
        else:
            self.table.set_state(key, previous)

    async def run(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        force: bool = False,
    ) -> QuotaState:
        """Load one key, honoring the in-flight and sequence rules."""
        pending = self._pending.get(key)
        if pending is not None and not pending.done() and not force:
            log_with_timestamp(f"Joining in-flight fetch for {key}", self._log_prefix)
            return await asyncio.shield(pending)

        current = self.table.get(key)
        if current.is_loading and not force and pending is None:
            log_with_timestamp(f"{key} is already loading elsewhere, not fetching", self._log_prefix)
            return current

        before_loading = current
        if pending is not None and not pending.done():
            before_loading = self._before_loading.get(key, current)

        sequence = self._next_sequence(key)
        self.table.set_state(key, QuotaState.loading(current))
        log_with_timestamp(f"Fetching {key} (#{sequence})", self._log_prefix)

        task = asyncio.ensure_future(self._fetch(key, sequence, fetch, current))
        self._pending[key] = task
        self._before_loading[key] = before_loading
        task.add_done_callback(lambda done: self._forget(key, done))
        return await asyncio.shield(task)

    def _forget(self, key: str, task: "asyncio.Future[QuotaState]") -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
            self._before_loading.pop(key, None)

    async def _fetch(
        self,
        key: str,
        sequence: int,
        fetch: Callable[[], Awaitable[Any]],
        previous: QuotaState,
    ) -> QuotaState:
        try:
            data = await fetch()
            state = QuotaState.success(data)
        except (QuotaFetchError, QuotaValidationError) as e:
            log_with_timestamp(f"Fetch for {key} failed: {e}", self._log_prefix, level=logging.WARNING)
            state = to_error_state(e)
        except asyncio.CancelledError:
            if self.latest_sequence(key) == sequence:
                self.table.set_state(key, previous)
            raise
        except Exception as e:
            log_with_timestamp(
                f"Unexpected error fetching {key}: {e!r}", self._log_prefix, level=logging.ERROR
            )
            state = to_error_state(e)

        if self.latest_sequence(key) != sequence:
            log_with_timestamp(
                f"Discarding stale result for {key} (#{sequence}, latest #{self.latest_sequence(key)})",
                self._log_prefix,
            )
            return self.table.get(key)

        self.table.set_state(key, state)
        return state


class QuotaLoader:
    """Loads quota for one provider family into the shared QuotaStore."""

    def __init__(self, fetcher: BaseQuotaFetcher, store: QuotaStore):
        self.provider: QuotaProvider = fetcher.provider
        self.fetcher = fetcher
        self.store = store
        self._coordinator = KeyedFetchCoordinator(
            store.table(self.provider), f"[QuotaLoader:{self.provider.value}]"
        )

    @property
    def coordinator(self) -> KeyedFetchCoordinator:
        return self._coordinator

    async def load(self, auth_file: AuthFile, force: bool = False) -> QuotaState:
        """Load quota for one account. ``force`` issues a new fetch even if one is running."""
        return await self._coordinator.run(
            auth_file.quota_lookup_key,
            lambda: self.fetcher.fetch_quota(auth_file),
            force=force,
        )

    async def load_many(self, auth_files: Iterable[AuthFile], force: bool = False) -> Dict[str, QuotaState]:
        """Load several accounts concurrently. Returns key -> resulting state."""
        targets = list(auth_files)
        if not targets:
            return {}
        states = await asyncio.gather(*(self.load(f, force=force) for f in targets))
        return {f.quota_lookup_key: state for f, state in zip(targets, states)}

    def invalidate(self, key: Optional[str] = None) -> None:
        self._coordinator.invalidate(key)


class ClaudeCodeQuotaLoader:
    """Loads Claude Code quota into its own store; supports key-scoped refresh."""

    LOG_PREFIX = "[ClaudeCodeQuotaLoader]"

    def __init__(self, fetcher: ClaudeCodeQuotaFetcher, store: ClaudeCodeQuotaStore):
        self.fetcher = fetcher
        self.store = store
        self._coordinator = KeyedFetchCoordinator(store.table, self.LOG_PREFIX)

    @property
    def coordinator(self) -> KeyedFetchCoordinator:
        return self._coordinator

    async def load(self, auth_id: str, force: bool = False) -> QuotaState:
        return await self._coordinator.run(
            auth_id, lambda: self.fetcher.fetch_quota(auth_id), force=force
        )

    async def refresh(self, auth_id: str) -> QuotaState:
        """Bypass every cache for this one account; other keys are untouched."""
        return await self._coordinator.run(
            auth_id, lambda: self.fetcher.refresh_quota(auth_id), force=True
        )

    async def load_all(self) -> Dict[str, QuotaState]:
        """Fetch every account in one request.

        Keys that were loaded or refreshed individually while the bulk
        request was running keep their newer state.
        """
        started = {key: self._coordinator.latest_sequence(key) for key in self.store.read()}
        try:
            quotas = await self.fetcher.fetch_all_quotas()
        except (QuotaFetchError, QuotaValidationError) as e:
            log_with_timestamp(f"Bulk fetch failed: {e}", self.LOG_PREFIX, level=logging.WARNING)
            error_state = to_error_state(e)
            stale = {
                key: error_state for key in started
                if self._coordinator.latest_sequence(key) == started[key]
                and not self._coordinator.is_in_flight(key)
            }
            self.store.table.set_states(stale)
            return stale

        fresh = {
            auth_id: QuotaState.success(info)
            for auth_id, info in quotas.items()
            if self._coordinator.latest_sequence(auth_id) == started.get(auth_id, 0)
            and not self._coordinator.is_in_flight(auth_id)
        }
        self.store.table.set_states(fresh)
        return fresh

    def invalidate(self, key: Optional[str] = None) -> None:
        self._coordinator.invalidate(key)
