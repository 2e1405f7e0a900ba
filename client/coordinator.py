# client/coordinator.py
# Fetches request pages and the download queue; merges with the cache and applies client filters.
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import httpx

from _logging import Logger, log as _base_log
from rs_platform.config_base import RequestsPageConfig
from rs_platform.id_map import safe_int

from .cache import CacheEntry, RequestsCache
from .filters import RequestFilter, RequestView, api_filter, apply_request_filters

__all__ = ["RequestsPage", "RequestsCoordinator"]

QUEUE_PATH = "/arr/queue"
REQUESTS_PATH = "/arr/requests"


@dataclass
class RequestsPage:
    requests: List[RequestView] = field(default_factory=list)
    total_pages: int = 1
    ok: bool = True

    @classmethod
    def failed(cls) -> "RequestsPage":
        return cls([], 1, ok=False)


class RequestsCoordinator:
    def __init__(
        self,
        config: RequestsPageConfig,
        cache: Optional[RequestsCache] = None,
        *,
        http: Optional[httpx.AsyncClient] = None,
        logger: Optional[Logger] = None,
    ):
        self.config = config
        self.cache = cache if cache is not None else RequestsCache(ttl_ms=config.cache_ttl_ms)
        self._http = http
        self._owns_http = http is None
        self.log = (logger or _base_log).child("REQUESTS-PAGE")

    # ---------- plumbing ----------

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.config.timeout)
        return self._http

    def _headers(self) -> Dict[str, str]:
        return {
            "X-MediaBrowser-Token": self.config.access_token,
            "Content-Type": "application/json",
        }

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        r = await self._client().get(self.config.url(path), params=params, headers=self._headers())
        r.raise_for_status()
        return r.json()

    async def aclose(self) -> None:
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    # ---------- requests ----------

    def _page_from(self, entry: CacheEntry, f: RequestFilter) -> RequestsPage:
        total = 1 if f is RequestFilter.COMING_SOON else max(1, entry.total_pages or 1)
        return RequestsPage(apply_request_filters(entry.requests, f), total, ok=True)

    def cached_page(self, filter: RequestFilter | str, page: int) -> Optional[RequestsPage]:
        f = RequestFilter.parse(filter)
        entry = self.cache.get(f, page)
        return None if entry is None else self._page_from(entry, f)

    def _query(self, f: RequestFilter, page: int) -> Dict[str, Any]:
        if f is RequestFilter.COMING_SOON:
            return {"take": self.config.coming_soon_take, "skip": 0, "filter": ""}
        size = self.config.page_size
        return {"take": size, "skip": (max(1, int(page)) - 1) * size, "filter": api_filter(f)}

    async def fetch_requests(
        self,
        filter: RequestFilter | str,
        page: int = 1,
        force_refresh: bool = False,
    ) -> RequestsPage:
        """Filtered page for (filter, page). Never raises; failures come back as ok=False."""
        f = RequestFilter.parse(filter)
        if not force_refresh:
            hit = self.cached_page(f, page)
            if hit is not None:
                return hit

        try:
            body = await self._get_json(REQUESTS_PATH, self._query(f, page))
        except (httpx.HTTPError, ValueError) as e:
            self.log.warn(f"Failed to fetch requests ({f.value}, page {page}): {e}")
            return RequestsPage.failed()

        rows = body.get("requests") if isinstance(body, Mapping) else None
        if rows is None and isinstance(body, Mapping):
            rows = []
        if not isinstance(rows, list):
            self.log.warn(f"Requests response for {f.value} was malformed")
            return RequestsPage.failed()

        entry = CacheEntry(
            requests=[RequestView.from_api(r) for r in rows if isinstance(r, Mapping)],
            total_pages=safe_int(body.get("totalPages")) or 1,
        )
        self.cache.put(f, page, entry)
        return self._page_from(entry, f)

    # ---------- downloads ----------

    async def fetch_downloads(self) -> List[Dict[str, Any]]:
        try:
            body = await self._get_json(QUEUE_PATH)
        except (httpx.HTTPError, ValueError) as e:
            self.log.warn(f"Failed to fetch downloads: {e}")
            return []
        items = body.get("items") if isinstance(body, Mapping) else None
        if not isinstance(items, list):
            return []
        return [dict(i) for i in items if isinstance(i, Mapping)]

    def invalidate(self) -> None:
        self.cache.invalidate_all()
