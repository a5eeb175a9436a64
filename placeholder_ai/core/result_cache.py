"""Time-to-live store for terminal generation records.

Purpose of this abstraction:
    Keep completed and failed records addressable by fingerprint for a bounded
    time so repeat placeholder requests can redirect to the generated image and
    pollers can see failures.

Expiry model:
    - Lazy: `get` past an entry's expiry deletes it and reports not-found. An entry
      is still valid at exactly its expiry instant.
    - Periodic: `sweep` removes every expired entry whether or not it is read. The
      application lifespan runs it on a `PeriodicTask`.

Sizing:
    No LRU or size bound; memory is bounded only by TTLs.

Concurrency:
    Map access is guarded by `_lock` so the cache can be read from worker threads
    as well as the event loop.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from placeholder_ai.core.records import GenerationRecord


logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cached record plus its absolute expiry time (epoch seconds)."""

    record: GenerationRecord
    expires_at: float


class ResultCache:
    """In-memory TTL map of fingerprint -> `GenerationRecord`."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def set(self, key: str, record: GenerationRecord, ttl: float) -> None:
        """Store `record` under `key` for `ttl` seconds, replacing any entry."""
        expires_at = self._clock() + ttl
        with self._lock:
            self._entries[key] = CacheEntry(record=record, expires_at=expires_at)

    def get(self, key: str) -> GenerationRecord | None:
        """Return the live record for `key`, evicting it if it has expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                return None
            return entry.record

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self) -> int:
        """Remove all expired entries and return how many were dropped."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    def stats(self) -> dict:
        """Return total entry count and how many of them are already expired."""
        now = self._clock()
        with self._lock:
            expired = sum(1 for entry in self._entries.values() if now > entry.expires_at)
            return {"size": len(self._entries), "expired": expired}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
