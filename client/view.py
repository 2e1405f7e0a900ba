# client/view.py
# Requests page: wires coordinator, tabs, render scheduler, poll driver and visibility together.
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx

from _logging import Logger, log as _base_log
from rs_platform.config_base import RequestsPageConfig

from .cache import RequestsCache
from .coordinator import RequestsCoordinator
from .filters import RequestFilter
from .poll import PollDriver, VisibilityStateMachine
from .presenters import group_downloads, present_download, present_request
from .render import FrameSource, RenderScheduler
from .tabs import RequestsTabController

__all__ = ["RequestsView"]


class RequestsView:
    def __init__(
        self,
        config: RequestsPageConfig,
        *,
        http: Optional[httpx.AsyncClient] = None,
        frames: Optional[FrameSource] = None,
        paint: Optional[Callable[[Dict[str, Any]], None]] = None,
        clock: Optional[Callable[[], float]] = None,
        now: Optional[Callable[[], datetime]] = None,
        logger: Optional[Logger] = None,
    ):
        self.config = config
        self.log = (logger or _base_log).child("REQUESTS-PAGE")
        self.cache = RequestsCache(ttl_ms=config.cache_ttl_ms, clock=clock)
        self.coordinator = RequestsCoordinator(config, self.cache, http=http, logger=logger)
        self.renderer = RenderScheduler(self._paint, frames, logger=logger)
        self.tabs = RequestsTabController(self.coordinator, self.renderer.schedule_render, logger=logger)
        self.visibility = VisibilityStateMachine(on_enter=self._on_enter, on_exit=self._on_exit)
        self.poller = PollDriver(
            self.load_all_data,
            config.poll_interval_seconds,
            is_visible=lambda: self.visibility.visible,
            is_busy=lambda: self.is_loading,
            logger=logger,
        )
        self.downloads: List[Dict[str, Any]] = []
        self.on_paint = paint
        self.now = now or (lambda: datetime.now(timezone.utc))
        self.last_snapshot: Optional[Dict[str, Any]] = None

    @property
    def is_loading(self) -> bool:
        return self.tabs.state.is_loading

    # ---------- lifecycle ----------

    def _on_enter(self) -> None:
        self.poller.start()

    def _on_exit(self) -> None:
        self.poller.stop()

    async def show(self) -> bool:
        if not self.visibility.show():
            return False
        if not self.is_loading:
            await self.load_all_data()
        return True

    def hide(self) -> bool:
        return self.visibility.hide()

    async def aclose(self) -> None:
        self.hide()
        self.poller.stop()
        await self.coordinator.aclose()

    # ---------- data ----------

    async def load_all_data(self, clear_cache: bool = False) -> None:
        if clear_cache:
            self.coordinator.invalidate()
        self.tabs.state.is_loading = True
        self.renderer.schedule_render()
        try:
            downloads, _ = await asyncio.gather(
                self.coordinator.fetch_downloads(),
                self.tabs.refresh(force=clear_cache),
            )
            self.downloads = downloads
        finally:
            self.tabs.state.is_loading = False
            self.renderer.schedule_render()

    async def select_filter(self, filter: RequestFilter | str) -> bool:
        return await self.tabs.select_filter(filter)

    async def next_page(self) -> bool:
        return await self.tabs.next_page()

    async def prev_page(self) -> bool:
        return await self.tabs.prev_page()

    # ---------- render ----------

    def snapshot(self) -> Dict[str, Any]:
        st = self.tabs.state
        now = self.now()
        badges = st.active_filter is RequestFilter.COMING_SOON
        return {
            "visible": self.visibility.visible,
            "is_loading": st.is_loading,
            "filter": st.active_filter.value,
            "page": st.page,
            "total_pages": st.total_pages,
            "requests": [present_request(r, release_badge=badges, now=now) for r in st.requests],
            "downloads": [present_download(g) for g in group_downloads(self.downloads)],
        }

    def _paint(self) -> None:
        self.last_snapshot = self.snapshot()
        if self.on_paint:
            self.on_paint(self.last_snapshot)
