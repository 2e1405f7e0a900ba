# client/cache.py
# Time-boxed cache of request pages keyed by the server query they came from.
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .filters import RequestFilter, RequestView, api_filter, api_page

__all__ = ["CACHE_TTL_MS", "CacheEntry", "RequestsCache", "cache_key"]

CACHE_TTL_MS = 30000


def _now_ms() -> float:
    return time.time() * 1000.0


def cache_key(filter: RequestFilter | str, page: int) -> str:
    """coming-soon shares the unfiltered first slot of "all"; everything else is filter:page."""
    f = RequestFilter.parse(filter)
    return f"{api_filter(f)}:{api_page(f, page)}"


@dataclass
class CacheEntry:
    requests: List[RequestView] = field(default_factory=list)
    total_pages: int = 1
    fetched_at_ms: float = 0.0


class RequestsCache:
    def __init__(self, ttl_ms: int = CACHE_TTL_MS, clock: Optional[Callable[[], float]] = None):
        self.ttl_ms = int(ttl_ms)
        self.clock = clock or _now_ms
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def is_valid(self, entry: Optional[CacheEntry]) -> bool:
        if entry is None:
            return False
        return (self.clock() - entry.fetched_at_ms) < self.ttl_ms

    def get(self, filter: RequestFilter | str, page: int) -> Optional[CacheEntry]:
        entry = self._entries.get(cache_key(filter, page))
        return entry if self.is_valid(entry) else None

    def put(self, filter: RequestFilter | str, page: int, entry: CacheEntry) -> CacheEntry:
        if not entry.fetched_at_ms:
            entry.fetched_at_ms = self.clock()
        self._entries[cache_key(filter, page)] = entry
        return entry

    def invalidate_all(self) -> None:
        self._entries.clear()
