# client/tabs.py
# Filter tab + pagination state; every fetch is tagged with the switch token active when it was issued.
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

from _logging import Logger, log as _base_log

from .coordinator import RequestsPage
from .filters import RequestFilter, RequestView

__all__ = ["TabState", "RequestsTabController"]


class PageSource(Protocol):
    def cached_page(self, filter: RequestFilter, page: int) -> Optional[RequestsPage]: ...
    async def fetch_requests(self, filter: RequestFilter, page: int = 1, force_refresh: bool = False) -> RequestsPage: ...


@dataclass
class TabState:
    active_filter: RequestFilter = RequestFilter.ALL
    page: int = 1
    switch_token: int = 0
    total_pages: int = 1
    is_loading: bool = False
    requests: List[RequestView] = field(default_factory=list)


def _noop() -> None:
    return None


class RequestsTabController:
    """Last issued intent wins: results carrying an older token are dropped untouched."""

    def __init__(
        self,
        coordinator: PageSource,
        render: Optional[Callable[[], None]] = None,
        *,
        logger: Optional[Logger] = None,
    ):
        self.coordinator = coordinator
        self.render = render or _noop
        self.state = TabState()
        self.log = (logger or _base_log).child("REQUESTS-TABS")

    def _next_token(self) -> int:
        self.state.switch_token += 1
        return self.state.switch_token

    def _apply(self, token: int, result: RequestsPage) -> bool:
        if token != self.state.switch_token:
            self.log.debug(f"Discarding stale page (token {token}, current {self.state.switch_token})")
            return False
        self.state.requests = list(result.requests)
        # The newest intent owns the loading flag; superseded fetches never reach here.
        self.state.is_loading = False
        if result.ok:
            self.state.total_pages = max(1, int(result.total_pages or 1))
        return True

    async def select_filter(self, filter: RequestFilter | str) -> bool:
        f = RequestFilter.parse(filter)
        if f is self.state.active_filter:
            return False

        token = self._next_token()
        self.state.active_filter = f
        self.state.page = 1

        cached = self.coordinator.cached_page(f, 1)
        if cached is not None:
            self._apply(token, cached)
            self.render()
            fresh = await self.coordinator.fetch_requests(f, 1, force_refresh=True)
            if self._apply(token, fresh):
                self.render()
            return True

        self.state.is_loading = True
        self.render()
        fresh = await self.coordinator.fetch_requests(f, 1)
        if self._apply(token, fresh):
            self.render()
        return True

    async def _go_to(self, page: int) -> bool:
        token = self._next_token()
        self.state.page = page
        result = await self.coordinator.fetch_requests(self.state.active_filter, page)
        if self._apply(token, result):
            self.render()
        return True

    async def next_page(self) -> bool:
        if self.state.page >= self.state.total_pages:
            return False
        return await self._go_to(self.state.page + 1)

    async def prev_page(self) -> bool:
        if self.state.page <= 1:
            return False
        return await self._go_to(self.state.page - 1)

    async def refresh(self, force: bool = False) -> bool:
        """Re-fetch the current tab under the current token; False when superseded meanwhile."""
        token = self.state.switch_token
        result = await self.coordinator.fetch_requests(
            self.state.active_filter, self.state.page, force_refresh=force
        )
        applied = self._apply(token, result)
        if applied:
            self.render()
        return applied
