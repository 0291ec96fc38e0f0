"""Memory-only TTL cache.

Entries expire lazily: a read past the TTL behaves as a miss and evicts
the stale entry. Nothing runs in the background; ``sweep`` is available
for callers that want to bound memory explicitly. The cache is never
persisted, so a fresh process starts empty.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..models.config import PROJECT_ID_TTL_SECONDS


@dataclass(frozen=True)
class CacheEntry:
    value: str
    captured_at: float
    owner_key: str


class TTLCache:
    """String-keyed cache whose entries are valid for ``ttl_seconds``."""

    def __init__(
        self,
        ttl_seconds: float = PROJECT_ID_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        key_prefix: str = "",
    ) -> None:
        """
        Args:
            ttl_seconds: Maximum age of an entry
            clock: Returns the current time in seconds
            key_prefix: Namespace prepended to every stored key
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._key_prefix = key_prefix
        self._entries: Dict[str, CacheEntry] = {}

    def _storage_key(self, key: str) -> str:
        return f"{self._key_prefix}_{key}" if self._key_prefix else key

    def _is_stale(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.captured_at > self.ttl_seconds

    def get(self, key: str) -> Optional[str]:
        """Return the cached value, or None when missing or stale."""
        if not key:
            return None
        storage_key = self._storage_key(key)
        entry = self._entries.get(storage_key)
        if entry is None:
            return None
        if self._is_stale(entry):
            del self._entries[storage_key]
            return None
        return entry.value

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any entry and stamping now."""
        if not key:
            return
        self._entries[self._storage_key(key)] = CacheEntry(
            value=value,
            captured_at=self._clock(),
            owner_key=key,
        )

    def delete(self, key: str) -> None:
        self._entries.pop(self._storage_key(key), None)

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """Evict every stale entry. Returns the number evicted."""
        stale = [k for k, entry in self._entries.items() if self._is_stale(entry)]
        for storage_key in stale:
            del self._entries[storage_key]
        return len(stale)

    def contains_raw(self, key: str) -> bool:
        """Whether an entry (stale or not) is stored, without expiring it."""
        return self._storage_key(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class ProjectIdCache(TTLCache):
    """Antigravity project ids per auth index, valid for 24 hours."""

    KEY_PREFIX = "antigravity_project_id"

    def __init__(
        self,
        ttl_seconds: float = PROJECT_ID_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(ttl_seconds=ttl_seconds, clock=clock, key_prefix=self.KEY_PREFIX)

    def get_project_id(self, auth_index: str) -> Optional[str]:
        return self.get(auth_index)

    def set_project_id(self, auth_index: str, project_id: str) -> None:
        self.set(auth_index, project_id)

    def clear_project_id(self, auth_index: str) -> None:
        self.delete(auth_index)
