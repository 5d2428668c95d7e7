"""TTL cache for assembled dashboards, keyed by (address, chain set)."""
from __future__ import annotations

import dataclasses
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from ..models import AssetDashboard

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    data: AssetDashboard
    timestamp: float


class BalanceCache:
    """Dashboards stay fresh for ``ttl_seconds`` after being written.

    A stale entry reads as a miss. Every ``set`` sweeps stale entries out, so
    the cache holds at most the dashboards written within one TTL window.
    """

    def __init__(
        self, ttl_seconds: float = 30.0, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(address: str, chain_ids: Iterable[int]) -> str:
        return f"{address.lower()}-{','.join(str(c) for c in sorted(set(chain_ids)))}"

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp < self.ttl_seconds

    def get(self, key: str) -> AssetDashboard | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or not self._is_fresh(entry, self._clock()):
                return None
        return dataclasses.replace(entry.data)

    def set(self, key: str, dashboard: AssetDashboard) -> None:
        with self._lock:
            now = self._clock()
            self._evict_stale(now)
            self._entries[key] = CacheEntry(data=dashboard, timestamp=now)

    def invalidate(self, address: str) -> int:
        """Drop every entry for ``address``; returns how many were removed."""
        prefix = f"{address.lower()}-"
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug("Invalidated %d cached dashboards for %s", len(doomed), address)
        return len(doomed)

    def invalidate_all(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict_stale(self, now: float) -> int:
        # caller holds the lock
        stale = [k for k, e in self._entries.items() if not self._is_fresh(e, now)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def purge_expired(self) -> int:
        with self._lock:
            return self._evict_stale(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
