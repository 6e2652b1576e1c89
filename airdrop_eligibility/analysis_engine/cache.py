"""
Per-source result cache with lazy expiry.

Single-process, in-memory, keyed by (source, identity). Freshness is checked at
read time against the source's TTL; expired entries read as absent and are
overwritten by the next write. There is no eviction thread, so the map grows
with the number of distinct identities seen.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from airdrop_eligibility.eligibility_logging import get_logger

logger = get_logger(__name__)

DEFAULT_TTL_SEC = 300.0


@dataclass(frozen=True)
class CacheEntry:
    key: tuple[str, str]
    payload: Any
    written_at: float


class ResultCache:
    """
    Mutex-guarded map of (source, identity) -> CacheEntry.

    Safe for concurrent readers and writers across threads and tasks. Two
    concurrent misses for the same key both fetch; the later write wins.
    """

    def __init__(
        self,
        ttls: dict[str, float] | None = None,
        *,
        default_ttl_sec: float = DEFAULT_TTL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            ttls: Per-source TTL in seconds (e.g. {"farcaster": 300, "hop": 600}).
            default_ttl_sec: TTL for sources not listed in ttls.
            clock: Monotonic seconds source; injectable for tests.
        """
        self._ttls = {str(k): float(v) for k, v in (ttls or {}).items()}
        self._default_ttl = float(default_ttl_sec)
        self._clock = clock
        self._entries: dict[tuple[str, str], CacheEntry] = {}
        self._lock = threading.Lock()

    def ttl_for(self, source: str) -> float:
        return self._ttls.get(source, self._default_ttl)

    def get(self, source: str, identity: str) -> Any | None:
        """Return the cached payload, or None when absent or expired."""
        key = (source, identity)
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        age = self._clock() - entry.written_at
        if age > self.ttl_for(source):
            logger.debug("cache_expired", source=source, identity=identity, age_sec=round(age, 3))
            return None
        return entry.payload

    def set(self, source: str, identity: str, payload: Any) -> None:
        key = (source, identity)
        entry = CacheEntry(key=key, payload=payload, written_at=self._clock())
        with self._lock:
            self._entries[key] = entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
