from __future__ import annotations

from .cache import CACHE_TTL_MS, CacheEntry, RequestsCache, cache_key
from .filters import RequestFilter, RequestView, apply_request_filters
from .coordinator import RequestsCoordinator, RequestsPage
from .tabs import RequestsTabController, TabState
from .render import LoopFrameSource, ManualFrameSource, RenderScheduler
from .poll import PollDriver, Visibility, VisibilityStateMachine
from .view import RequestsView

__all__ = [
    "CACHE_TTL_MS",
    "CacheEntry",
    "RequestsCache",
    "cache_key",
    "RequestFilter",
    "RequestView",
    "apply_request_filters",
    "RequestsCoordinator",
    "RequestsPage",
    "RequestsTabController",
    "TabState",
    "LoopFrameSource",
    "ManualFrameSource",
    "RenderScheduler",
    "PollDriver",
    "Visibility",
    "VisibilityStateMachine",
    "RequestsView",
]
