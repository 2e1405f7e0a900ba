# rs_platform/reconciler.py
# Per (user, request) reconciliation: like the matching library item, or park the request as pending.
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from _logging import Logger, log as _base_log

from ._types import (
    ExternalRequest,
    LibraryUser,
    PendingWatchlistItem,
    ReconciliationOutcome,
    WatchState,
    WatchStateStore,
)
from .matcher import IdentityMatcher
from .pending_store import PendingQueueStore


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WatchlistReconciler:
    def __init__(
        self,
        matcher: IdentityMatcher,
        pending: PendingQueueStore,
        watch_states: WatchStateStore,
        *,
        logger: Optional[Logger] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.matcher = matcher
        self.pending = pending
        self.watch_states = watch_states
        self.log = (logger or _base_log).child("RECONCILE")
        self.clock = clock

    def reconcile(self, user: LibraryUser, request: ExternalRequest) -> ReconciliationOutcome:
        try:
            return self._reconcile(user, request)
        except Exception as e:
            self.log.error(f"Error processing request {request.title!r} (TMDB: {request.external_media_id}) for {user.username}: {e}")
            return ReconciliationOutcome.SKIPPED

    def _reconcile(self, user: LibraryUser, request: ExternalRequest) -> ReconciliationOutcome:
        entry = self.matcher.match(request.external_media_id, request.media_type)
        if entry is None:
            self.log.debug(f"Not in library: {request.title} (TMDB: {request.external_media_id}), adding to pending")
            item = PendingWatchlistItem(request.external_media_id, request.media_type, self.clock())
            if self.pending.add(user.id, item):
                self.log.info(f"Added to pending: {request.title} (TMDB: {request.external_media_id}) for {user.username}")
                return ReconciliationOutcome.ADDED_TO_PENDING
            return ReconciliationOutcome.SKIPPED

        state = self.watch_states.get_user_watch_state(user, entry)
        if state is None:
            self.log.warn(f"User data missing for {entry.name}; skipping")
            return ReconciliationOutcome.SKIPPED
        if state.liked is True:
            return ReconciliationOutcome.ALREADY_IN_WATCHLIST

        self.watch_states.set_user_watch_state(user, entry, WatchState(liked=True))
        self.log.success(f"Added to watchlist: {entry.name} for {user.username}")
        return ReconciliationOutcome.ADDED

    def promote_pending(self, user: LibraryUser) -> int:
        """Like pending titles that have since arrived in the library and drop them from the queue."""
        promoted = 0
        for item in sorted(self.pending.load(user.id), key=lambda it: it.requested_at_utc):
            try:
                entry = self.matcher.match(item.external_media_id, item.media_type)
                if entry is None:
                    continue
                state = self.watch_states.get_user_watch_state(user, entry)
                if state is None:
                    self.log.warn(f"User data missing for {entry.name}; keeping pending entry")
                    continue
                if state.liked is not True:
                    self.watch_states.set_user_watch_state(user, entry, WatchState(liked=True))
                self.pending.remove(user.id, item.external_media_id, item.media_type)
                promoted += 1
                self.log.info(f"Pending item now in library: {entry.name} for {user.username}")
            except Exception as e:
                self.log.error(f"Error promoting pending TMDB {item.external_media_id} for {user.username}: {e}")
        return promoted


__all__ = ["WatchlistReconciler"]
