# chathistory/services/cache.py
from __future__ import annotations

import copy
import hashlib
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from chathistory.core import config
from chathistory.models.feed import HistoryQuery


def history_cache_key(query: HistoryQuery, prefix: str = config.CACHE_PREFIX) -> str:
    """Built from the normalized query so equivalent requests share an entry."""
    raw = (
        f"room_{query.room_id}_page_{query.per_page}"
        f"_time_{query.cursor.last_time}_id_{query.cursor.last_id}"
    )
    return prefix + hashlib.md5(raw.encode("utf-8")).hexdigest()


class TTLCache:
    """Process-local get/set cache with per-entry expiry."""

    def __init__(
        self,
        default_ttl: int = config.CACHE_TTL_SECS,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = config.CACHE_MAX_ENTRIES,
    ) -> None:
        self.default_ttl = default_ttl
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (expires_at, value), oldest write first
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                self._misses += 1
                return None
            expires_at, value = item
            if expires_at <= now:
                # expired, clean up
                self._entries.pop(key, None)
                self._misses += 1
                return None
            self._hits += 1
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        with self._lock:
            self._purge_expired(now)
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_entries:
                # dicts keep insertion order: drop the oldest write
                self._entries.pop(next(iter(self._entries)))
            self._entries[key] = (now + ttl, copy.deepcopy(value))

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, (exp, _) in self._entries.items() if exp <= now]
        for k in expired:
            del self._entries[k]

    def __len__(self) -> int:
        """Stored entries, expired or not."""
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict:
        now = self._clock()
        with self._lock:
            live = sum(1 for exp, _ in self._entries.values() if exp > now)
            return {"entries": live, "hits": self._hits, "misses": self._misses}


_default_cache = TTLCache()


def get_cache() -> TTLCache:
    """FastAPI dependency."""
    return _default_cache
