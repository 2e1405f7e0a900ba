# services/sync_runner.py
# Background runner for the requests-to-watchlist sync: one run per process, status and cancel.
from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from _logging import Logger, log as _base_log
from rs_platform.config_base import JellyfinConfig, SeerrSyncConfig, load_config, state_dir
from rs_platform.library import InMemoryLibrary
from rs_platform.matcher import IdentityMatcher
from rs_platform.orchestrator import (
    CancellationToken,
    RequestSource,
    RequestsSyncOrchestrator,
    SyncSummary,
    seerr_source_factory,
)
from rs_platform.pending_store import PendingQueueStore
from rs_platform.reconciler import WatchlistReconciler

__all__ = ["SyncRunner", "RUNNER", "jellyfin_library_factory"]


def _iso_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def jellyfin_library_factory(cfg: dict[str, Any], logger: Logger):
    from providers.jellyfin import JellyfinError, JellyfinLibrary

    jf = JellyfinConfig.from_config(cfg)
    if not jf.configured:
        raise JellyfinError("Jellyfin server or access token not configured")
    return JellyfinLibrary.from_config(jf, logger=logger)


def _status_reset() -> dict[str, Any]:
    return {
        "running": False,
        "run_id": None,
        "started_at": None,
        "finished_at": None,
        "duration_sec": None,
        "progress": 0.0,
        "result": "",
        "error": None,
        "summary": None,
    }


class SyncRunner:
    def __init__(
        self,
        *,
        config_loader: Callable[[], dict[str, Any]] = load_config,
        library_factory: Callable[[dict[str, Any], Logger], Any] = jellyfin_library_factory,
        source_factory: Callable[[SeerrSyncConfig, Logger], RequestSource] = seerr_source_factory,
        logger: Optional[Logger] = None,
    ):
        self.config_loader = config_loader
        self.library_factory = library_factory
        self.source_factory = source_factory
        self._base_log = logger or _base_log
        self.log = self._base_log.child("SYNC-RUNNER")
        self._lock = threading.Lock()
        self._status_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._cancel: Optional[CancellationToken] = None
        self._status = _status_reset()

    # ---------- status ----------

    def _set(self, **kv: Any) -> None:
        with self._status_lock:
            self._status.update(kv)

    def _set_progress(self, pct: float) -> None:
        self._set(progress=round(float(pct), 2))

    def status(self) -> dict[str, Any]:
        with self._status_lock:
            snap = dict(self._status)
        snap["running"] = self.is_running()
        return snap

    def is_running(self) -> bool:
        t = self._thread
        return bool(t and t.is_alive())

    # ---------- run ----------

    def build(self, cfg: dict[str, Any]) -> RequestsSyncOrchestrator:
        seerr_cfg = SeerrSyncConfig.from_config(cfg)
        ok, _ = seerr_cfg.check()
        # An aborted run never reaches the library.
        library = self.library_factory(cfg, self._base_log) if ok else InMemoryLibrary()
        reconciler = WatchlistReconciler(
            IdentityMatcher(library),
            PendingQueueStore(state_dir(cfg)),
            library,
            logger=self._base_log,
        )
        return RequestsSyncOrchestrator(
            seerr_cfg, library, reconciler,
            source_factory=self.source_factory,
            logger=self._base_log,
        )

    def run_once(self, cfg: Optional[dict[str, Any]] = None, cancel: Optional[CancellationToken] = None) -> SyncSummary:
        cfg = cfg if cfg is not None else self.config_loader()
        return self.build(cfg).run(cancel, progress=self._set_progress)

    def _thread_main(self, run_id: str, cfg: dict[str, Any], cancel: CancellationToken) -> None:
        t0 = time.time()
        try:
            summary = self.run_once(cfg, cancel)
            if summary.aborted_reason:
                result = "aborted"
            elif summary.cancelled:
                result = "cancelled"
            else:
                result = "ok"
            self._set(result=result, summary=summary.as_dict())
        except Exception as e:
            self.log.error(f"Sync run {run_id} failed: {e}")
            self._set(result="error", error=str(e))
        finally:
            self._set(finished_at=_iso_now(), duration_sec=round(time.time() - t0, 3))

    def start(self) -> dict[str, Any]:
        with self._lock:
            if self.is_running():
                return {"ok": False, "error": "Sync already running"}
            cfg = self.config_loader()
            run_id = str(int(time.time() * 1000))
            cancel = CancellationToken()
            with self._status_lock:
                self._status = _status_reset()
                self._status.update(run_id=run_id, started_at=_iso_now())
            th = threading.Thread(
                target=self._thread_main,
                args=(run_id, cfg, cancel),
                name=f"requests-sync-{run_id}",
                daemon=True,
            )
            self._cancel = cancel
            self._thread = th
            th.start()
            self.log.info(f"Triggered sync run {run_id}")
            return {"ok": True, "run_id": run_id}

    def cancel(self) -> bool:
        if not self.is_running() or self._cancel is None:
            return False
        self._cancel.cancel()
        self.log.info("Cancellation requested")
        return True

    def join(self, timeout: Optional[float] = None) -> bool:
        t = self._thread
        if t is not None:
            t.join(timeout)
        return not self.is_running()

    # ---------- pending ----------

    def pending(self, user_id: str, cfg: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        cfg = cfg if cfg is not None else self.config_loader()
        items = PendingQueueStore(state_dir(cfg)).load(user_id)
        return [it.to_doc() for it in sorted(items, key=lambda it: it.requested_at_utc)]


RUNNER = SyncRunner()
