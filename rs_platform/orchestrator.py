# rs_platform/orchestrator.py
# Walk every library user, pull their Seerr requests and reconcile each one.
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from collections.abc import Callable
from typing import Any, Optional, Protocol

from _logging import Logger, log as _base_log

from ._types import ExternalRequest, LibraryUser, ReconciliationOutcome, UserDirectory
from .config_base import SeerrSyncConfig
from .reconciler import WatchlistReconciler

ProgressSink = Callable[[float], None]

__all__ = ["CancellationToken", "SyncSummary", "RequestSource", "RequestsSyncOrchestrator"]


class CancellationToken:
    """Cooperative stop flag; checked between users and between requests."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class RequestSource(Protocol):
    def list_users(self) -> list[dict[str, Any]]: ...
    def resolve_user_id(self, library_user_id: str, users: Optional[list[dict[str, Any]]] = None) -> Optional[str]: ...
    def user_requests(self, seerr_user_id: str) -> Optional[list[ExternalRequest]]: ...


@dataclass
class SyncSummary:
    users_total: int = 0
    users_processed: int = 0
    added: int = 0
    pending: int = 0
    already: int = 0
    skipped: int = 0
    promoted: int = 0
    cancelled: bool = False
    aborted_reason: Optional[str] = None
    outcomes: dict[str, list[ReconciliationOutcome]] = field(default_factory=dict)

    def count(self, outcome: ReconciliationOutcome) -> None:
        if outcome is ReconciliationOutcome.ADDED:
            self.added += 1
        elif outcome is ReconciliationOutcome.ADDED_TO_PENDING:
            self.pending += 1
        elif outcome is ReconciliationOutcome.ALREADY_IN_WATCHLIST:
            self.already += 1
        else:
            self.skipped += 1

    def as_dict(self) -> dict[str, Any]:
        return {
            "users_total": self.users_total,
            "users_processed": self.users_processed,
            "added": self.added,
            "pending": self.pending,
            "already": self.already,
            "skipped": self.skipped,
            "promoted": self.promoted,
            "cancelled": self.cancelled,
            "aborted_reason": self.aborted_reason,
        }


def seerr_source_factory(cfg: SeerrSyncConfig, logger: Logger) -> RequestSource:
    from providers.seerr import SeerrClient
    return SeerrClient.from_config(cfg, logger=logger)


class RequestsSyncOrchestrator:
    def __init__(
        self,
        config: SeerrSyncConfig,
        users: UserDirectory,
        reconciler: WatchlistReconciler,
        *,
        source_factory: Callable[[SeerrSyncConfig, Logger], RequestSource] = seerr_source_factory,
        logger: Optional[Logger] = None,
    ):
        self.config = config
        self.users = users
        self.reconciler = reconciler
        self.source_factory = source_factory
        self._base_log = logger or _base_log
        self.log = self._base_log.child("REQUESTS-SYNC")

    def _report(self, progress: Optional[ProgressSink], pct: float) -> None:
        if progress is None:
            return
        try:
            progress(float(pct))
        except Exception as e:
            self.log.debug(f"Progress sink failed at {pct:.0f}%: {e}")

    def run(self, cancel: Optional[CancellationToken] = None, progress: Optional[ProgressSink] = None) -> SyncSummary:
        cancel = cancel or CancellationToken()
        summary = SyncSummary()

        ok, reason = self.config.check()
        if not ok:
            self.log.warn(reason)
            summary.aborted_reason = reason
            self._report(progress, 100)
            return summary

        self.log.info("Starting sync...")
        source = self.source_factory(self.config, self._base_log)
        users = self.users.list_users()
        summary.users_total = len(users)
        seerr_users = source.list_users()

        for user in users:
            if cancel.cancelled:
                summary.cancelled = True
                break
            try:
                self._sync_user(user, source, seerr_users, cancel, summary)
            except Exception as e:
                self.log.error(f"Error processing user {user.username}: {e}")
            finally:
                summary.users_processed += 1
                if summary.users_total:
                    self._report(progress, summary.users_processed / summary.users_total * 100)
            if summary.cancelled:
                break

        if summary.cancelled:
            self.log.warn(f"Cancelled after {summary.users_processed}/{summary.users_total} users")
            return summary

        self.log.success(f"Completed. Added {summary.added} items across {summary.users_total} users")
        self._report(progress, 100)
        return summary

    def _sync_user(
        self,
        user: LibraryUser,
        source: RequestSource,
        seerr_users: list[dict[str, Any]],
        cancel: CancellationToken,
        summary: SyncSummary,
    ) -> None:
        self.log.info(f"Processing user: {user.username}")
        seerr_id = source.resolve_user_id(user.id, seerr_users)
        if not seerr_id:
            self.log.warn(f"No linked Jellyseerr user for {user.username}")
            return

        requests = source.user_requests(seerr_id)
        if not requests:
            self.log.info(f"No requests found for {user.username}")
        else:
            outcomes = summary.outcomes.setdefault(user.id, [])
            for req in requests:
                if cancel.cancelled:
                    summary.cancelled = True
                    return
                outcome = self.reconciler.reconcile(user, req)
                outcomes.append(outcome)
                summary.count(outcome)
            added = outcomes.count(ReconciliationOutcome.ADDED)
            pending = outcomes.count(ReconciliationOutcome.ADDED_TO_PENDING)
            self.log.info(f"User {user.username}: added {added}, pending {pending}")

        if self.config.promote_pending and not cancel.cancelled:
            summary.promoted += self.reconciler.promote_pending(user)
