# magpie/assets/cache.py
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import replace
from typing import Callable, Optional

from magpie.assets.errors import CacheUnavailable
from magpie.assets.settings import CacheSettings
from magpie.assets.types import CacheEntry, CacheStats, Marker

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class CacheStore:
    """
    Byte-bounded, TTL-invalidated store for fetched dependency files.

    Keys combine an absolute path with the gateway's modification marker,
    so a changed file produces a new key and the old entry simply expires.
    Eviction is least-recently-read first. Safe to share between threads.
    """

    def __init__(
        self,
        settings: Optional[CacheSettings] = None,
        clock: Clock = time.time,
    ) -> None:
        self.settings = settings or CacheSettings()
        self._clock = clock
        self._lock = threading.RLock()

        # Ordered from least to most recently read
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._total_bytes = 0
        self._enabled = self.settings.enabled

    @staticmethod
    def make_key(path: str, marker: Marker) -> str:
        return f"{path}@{marker}"

    @property
    def enabled(self) -> bool:
        return self._enabled

    def disable(self) -> None:
        """Turn every later operation into a CacheUnavailable error."""
        with self._lock:
            self._enabled = False
            self._entries.clear()
            self._total_bytes = 0
        logger.warning("Dependency cache disabled")

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            self._check_enabled()
            entry = self._entries.get(key)
            if entry is None:
                return None

            now = self._clock()
            if entry.is_expired(now):
                logger.info("Cache entry expired: %s", key)
                self._drop(key)
                return None

            entry = replace(entry, last_read=now)
            self._entries[key] = entry
            self._entries.move_to_end(key)
            return entry

    def put(
        self, key: str, data: bytes, marker: Optional[Marker] = None
    ) -> Optional[CacheEntry]:
        """
        Store `data` under `key` (or under make_key(key, marker) when a
        marker is given). Returns None when the file is too large to cache.
        """
        if marker is not None:
            key = self.make_key(key, marker)

        size = len(data)
        limit = min(self.settings.max_entry_bytes, self.settings.max_bytes)

        with self._lock:
            self._check_enabled()
            if size > limit:
                logger.info(
                    "Not caching %s: %d bytes exceeds limit of %d",
                    key,
                    size,
                    limit,
                )
                return None

            if key in self._entries:
                self._drop(key)

            self._evict_for(size)

            now = self._clock()
            entry = CacheEntry(
                key=key,
                data=bytes(data),
                size_bytes=size,
                stored_at=now,
                expires_at=now + self.settings.ttl_seconds,
                last_read=now,
            )
            self._entries[key] = entry
            self._total_bytes += size
            logger.debug(
                "Cached %s (%d bytes, total %d)", key, size, self._total_bytes
            )
            return entry

    def remove(self, key: str) -> bool:
        with self._lock:
            self._check_enabled()
            if key not in self._entries:
                return False
            self._drop(key)
            return True

    def clear(self) -> None:
        with self._lock:
            self._check_enabled()
            self._entries.clear()
            self._total_bytes = 0

    def clear_expired(self) -> int:
        """Remove every expired entry. Returns how many were removed."""
        with self._lock:
            self._check_enabled()
            now = self._clock()
            expired = [
                key
                for key, entry in self._entries.items()
                if entry.is_expired(now)
            ]
            for key in expired:
                self._drop(key)

        if expired:
            logger.info("Cleared %d expired cache entries", len(expired))
        return len(expired)

    def stats(self) -> CacheStats:
        with self._lock:
            now = self._clock()
            expired = sum(
                1 for entry in self._entries.values() if entry.is_expired(now)
            )
            return CacheStats(
                total_bytes=self._total_bytes,
                entry_count=len(self._entries),
                expired_count=expired,
            )

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def _check_enabled(self) -> None:
        if not self._enabled:
            raise CacheUnavailable("Dependency cache is disabled")

    def _drop(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._total_bytes -= entry.size_bytes

    def _evict_for(self, incoming: int) -> None:
        budget = self.settings.max_bytes
        while self._entries and self._total_bytes + incoming > budget:
            key, entry = next(iter(self._entries.items()))
            self._drop(key)
            logger.debug("Evicted %s (%d bytes)", key, entry.size_bytes)
