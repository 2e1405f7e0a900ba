from __future__ import annotations

from ._types import (
    ExternalRequest,
    LibraryEntry,
    LibraryUser,
    MediaType,
    PendingWatchlistItem,
    ReconciliationOutcome,
    WatchState,
)
from .matcher import IdentityMatcher
from .pending_store import PendingQueueStore
from .reconciler import WatchlistReconciler
from .orchestrator import CancellationToken, RequestsSyncOrchestrator, SyncSummary

__all__ = [
    "ExternalRequest",
    "LibraryEntry",
    "LibraryUser",
    "MediaType",
    "PendingWatchlistItem",
    "ReconciliationOutcome",
    "WatchState",
    "IdentityMatcher",
    "PendingQueueStore",
    "WatchlistReconciler",
    "CancellationToken",
    "RequestsSyncOrchestrator",
    "SyncSummary",
]
