"""In-process response cache with stale-while-revalidate.

Entries are fresh for ``max_age`` seconds.  Once stale, an entry is
still returned immediately when ``swr`` is on, and a single background
task per key recomputes it.  A failed refresh leaves the stale value in
place.

The cache is bounded: entries past their serving window are pruned on
every store, and the least recently used entries are evicted once
``max_entries`` is exceeded.  Concurrent misses on one key share a
single computation.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached value and the clock reading at which it was stored."""

    value: Any
    stored_at: float


class ResponseCache:
    """Keyed cache of computed responses.

    Attributes:
        max_age: Seconds an entry counts as fresh.
        swr: Whether stale entries are served while refreshing.
        stale_ttl: Seconds past ``max_age`` a stale entry may still be
            served under ``swr``.  Older entries are dropped.
        max_entries: Upper bound on stored entries.
        name: Label used in log lines.
    """

    def __init__(
        self,
        max_age: float = 3600,
        swr: bool = True,
        name: str = "responses",
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = 1024,
        stale_ttl: float = 86400,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_age = max_age
        self.swr = swr
        self.stale_ttl = stale_ttl
        self.max_entries = max_entries
        self.name = name
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._refreshing: dict[str, asyncio.Task] = {}
        self._loading: dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def _age(self, entry: CacheEntry) -> float:
        return self._clock() - entry.stored_at

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self._age(entry) < self.max_age

    def _is_servable(self, entry: CacheEntry) -> bool:
        if self._is_fresh(entry):
            return True
        return self.swr and self._age(entry) < self.max_age + self.stale_ttl

    def _prune(self) -> None:
        for key in [k for k, e in self._entries.items() if not self._is_servable(e)]:
            del self._entries[key]
        while len(self._entries) > self.max_entries:
            key, _ = self._entries.popitem(last=False)
            logger.debug("[%s] evicted %s", self.name, key)

    def _store(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock())
        self._entries.move_to_end(key)
        self._prune()

    async def _refresh(self, key: str, compute: Callable[[], Awaitable[Any]]) -> None:
        try:
            self._store(key, await compute())
            logger.debug("[%s] refreshed %s", self.name, key)
        except Exception as e:
            logger.warning("[%s] background refresh of %s failed: %s", self.name, key, e)
        finally:
            self._refreshing.pop(key, None)

    async def _load(self, key: str, compute: Callable[[], Awaitable[Any]]) -> Any:
        try:
            value = await compute()
            self._store(key, value)
            return value
        finally:
            self._loading.pop(key, None)

    async def get_or_compute(self, key: str, compute: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for ``key``, computing it when needed.

        Args:
            key: Cache key.
            compute: Zero-argument coroutine factory producing the value.

        Returns:
            Fresh or stale cached value, or the newly computed one.
        """
        entry = self._entries.get(key)
        if entry is not None and self._is_servable(entry):
            self._entries.move_to_end(key)
            if self._is_fresh(entry):
                return entry.value
            if key not in self._refreshing:
                self._refreshing[key] = asyncio.create_task(self._refresh(key, compute))
            return entry.value

        task = self._loading.get(key)
        if task is None:
            task = asyncio.create_task(self._load(key, compute))
            self._loading[key] = task
        return await asyncio.shield(task)

    def invalidate(self, key: str) -> None:
        """Drop a single entry."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    async def drain(self) -> None:
        """Wait for all in-flight background refreshes to finish."""
        while self._refreshing:
            await asyncio.gather(*list(self._refreshing.values()), return_exceptions=True)
