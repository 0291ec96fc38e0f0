"""
Quota store - shared source of truth for quota status per (provider, account).

WORKFLOW OVERVIEW:
==================
One QuotaStore holds a QuotaTable per provider family. A table maps account
keys to QuotaState records; a key missing from the table reads as idle.
Views read snapshots; loaders write through ``write`` only.

UPDATES:
An update is either Replace(mapping) or Transform(fn). ``apply_update``
resolves both forms in one place. Plain mappings and callables are
accepted too and wrapped by ``as_updater``. Each write runs under the
table lock, so two writers can never both build on the same previous
mapping. After a write the table publishes ``quota:updated`` with the
changed keys on the event bus (if one is attached).

The store never raises for normal input and never deduplicates fetches;
that is the loader's job (see quota_loader.py).
"""

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..models.providers import QuotaProvider, CLAUDE_CODE_PROVIDER
from ..models.quota import QuotaState, IDLE_STATE
from .event_bus import EventBus, QUOTA_UPDATED, QUOTA_CLEARED

QuotaMapping = Dict[str, QuotaState]


@dataclass(frozen=True)
class Replace:
    """Replace the whole mapping."""
    value: Mapping[str, QuotaState]


@dataclass(frozen=True)
class Transform:
    """Compute the next mapping from the previous one."""
    fn: Callable[[QuotaMapping], Mapping[str, QuotaState]]


QuotaUpdater = Union[Replace, Transform]


def as_updater(updater: Any) -> QuotaUpdater:
    """Wrap a raw mapping or callable into Replace/Transform."""
    if isinstance(updater, (Replace, Transform)):
        return updater
    if callable(updater):
        return Transform(updater)
    return Replace(updater if updater is not None else {})


def apply_update(updater: Any, previous: Mapping[str, QuotaState]) -> QuotaMapping:
    """Resolve an updater against the previous mapping.

    The transform receives a copy, so mutating its argument cannot leak
    into the stored mapping.
    """
    resolved = as_updater(updater)
    if isinstance(resolved, Replace):
        return dict(resolved.value)
    result = resolved.fn(dict(previous))
    return dict(result) if result is not None else {}


class QuotaTable:
    """Account key -> QuotaState mapping for one provider family."""

    def __init__(self, name: str, event_bus: Optional[EventBus] = None):
        self.name = name
        self._event_bus = event_bus
        self._states: QuotaMapping = {}
        self._lock = threading.RLock()

    def read(self) -> QuotaMapping:
        """Snapshot of the current mapping (a copy)."""
        with self._lock:
            return dict(self._states)

    def get(self, key: str) -> QuotaState:
        with self._lock:
            return self._states.get(key, IDLE_STATE)

    def write(self, updater: Any) -> List[str]:
        """Apply an update atomically. Returns the keys whose state changed."""
        with self._lock:
            previous = self._states
            next_states = apply_update(updater, previous)
            changed = [
                key for key in set(previous) | set(next_states)
                if previous.get(key) is not next_states.get(key)
            ]
            self._states = next_states
        if changed and self._event_bus is not None:
            self._event_bus.emit(QUOTA_UPDATED, {"provider": self.name, "keys": sorted(changed)})
        return changed

    def set_state(self, key: str, state: QuotaState) -> None:
        """Set one key, leaving the others untouched."""
        self.write(Transform(lambda prev: {**prev, key: state}))

    def set_states(self, states: Mapping[str, QuotaState]) -> None:
        if states:
            self.write(Transform(lambda prev: {**prev, **states}))

    def clear(self) -> List[str]:
        """Empty the table; the removed keys are published like any write."""
        return self.write(Replace({}))


class QuotaStore:
    """
    Quota tables for every provider family.

    One instance is created by the application container and handed to
    every loader and view that needs it.
    """

    def __init__(self, event_bus: Optional[EventBus] = None):
        self._event_bus = event_bus
        self._tables: Dict[QuotaProvider, QuotaTable] = {
            provider: QuotaTable(provider.value, event_bus) for provider in QuotaProvider
        }

    def table(self, provider: Union[QuotaProvider, str]) -> QuotaTable:
        return self._tables[QuotaProvider(provider)]

    def read(self, provider: Union[QuotaProvider, str]) -> QuotaMapping:
        return self.table(provider).read()

    def get(self, provider: Union[QuotaProvider, str], key: str) -> QuotaState:
        return self.table(provider).get(key)

    def write(self, provider: Union[QuotaProvider, str], updater: Any) -> List[str]:
        return self.table(provider).write(updater)

    def set_state(self, provider: Union[QuotaProvider, str], key: str, state: QuotaState) -> None:
        self.table(provider).set_state(key, state)

    def clear_all(self) -> None:
        """Reset every family to an empty mapping."""
        for table in self._tables.values():
            table.clear()
        if self._event_bus is not None:
            self._event_bus.emit(QUOTA_CLEARED, {"providers": [p.value for p in self._tables]})


class ClaudeCodeQuotaStore:
    """Auth id -> QuotaState[ClaudeCodeQuotaInfo] for Claude Code accounts."""

    def __init__(self, event_bus: Optional[EventBus] = None):
        self._event_bus = event_bus
        self._table = QuotaTable(CLAUDE_CODE_PROVIDER, event_bus)

    @property
    def table(self) -> QuotaTable:
        return self._table

    def read(self) -> QuotaMapping:
        return self._table.read()

    def get(self, key: str) -> QuotaState:
        return self._table.get(key)

    def write(self, updater: Any) -> List[str]:
        return self._table.write(updater)

    def set_state(self, key: str, state: QuotaState) -> None:
        self._table.set_state(key, state)

    def clear_all(self) -> None:
        self._table.clear()
        if self._event_bus is not None:
            self._event_bus.emit(QUOTA_CLEARED, {"providers": [CLAUDE_CODE_PROVIDER]})
