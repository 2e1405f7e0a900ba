# RequestSync test scripts
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import responses

from _logging import Logger
from rs_platform._types import ExternalRequest, MediaType, ReconciliationOutcome as O
from rs_platform.config_base import SeerrSyncConfig
from rs_platform.library import InMemoryLibrary
from rs_platform.matcher import IdentityMatcher
from rs_platform.orchestrator import CancellationToken, RequestsSyncOrchestrator
from rs_platform.pending_store import PendingQueueStore
from rs_platform.reconciler import WatchlistReconciler

SEERR = "http://seerr.local"


@dataclass
class FakeSource:
    links: dict[str, str]
    requests: dict[str, list[ExternalRequest]]
    on_requests: Optional[Callable[[str], None]] = None
    list_calls: int = 0
    request_calls: list[str] = field(default_factory=list)

    def list_users(self) -> list[dict[str, Any]]:
        self.list_calls += 1
        return [{"id": sid, "jellyfinUserId": jf} for jf, sid in self.links.items()]

    def resolve_user_id(self, library_user_id: str, users: Optional[list[dict[str, Any]]] = None) -> Optional[str]:
        return self.links.get(library_user_id)

    def user_requests(self, seerr_user_id: str) -> Optional[list[ExternalRequest]]:
        self.request_calls.append(seerr_user_id)
        if self.on_requests:
            self.on_requests(seerr_user_id)
        return self.requests.get(seerr_user_id)


def _orchestrator(
    cfg: dict,
    library: InMemoryLibrary,
    tmp_path: Path,
    logger: Logger,
    source: Optional[FakeSource] = None,
) -> RequestsSyncOrchestrator:
    reconciler = WatchlistReconciler(IdentityMatcher(library), PendingQueueStore(tmp_path), library, logger=logger)
    kw: dict[str, Any] = {"logger": logger}
    if source is not None:
        kw["source_factory"] = lambda _cfg, _log: source
    return RequestsSyncOrchestrator(SeerrSyncConfig.from_config(cfg), library, reconciler, **kw)


def test_end_to_end_added_and_pending(seerr_cfg: dict, library: InMemoryLibrary, tmp_path: Path, logger: Logger) -> None:
    user = library.add_user("aaaa-bbbb-cccc", "U")
    movie = library.add_entry("m10", "Ten", "Movie", Tmdb="10")
    progress: list[float] = []

    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{SEERR}/api/v1/user", json={"results": [{"id": 5, "jellyfinUserId": "AAAABBBBCCCC"}]})
        rsps.add(
            responses.GET,
            f"{SEERR}/api/v1/user/5/requests",
            json={"results": [
                {"media": {"tmdbId": 10, "mediaType": "movie", "title": "Ten"}},
                {"media": {"tmdbId": 20, "mediaType": "tv", "title": "Twenty"}},
            ]},
        )
        summary = _orchestrator(seerr_cfg, library, tmp_path, logger).run(progress=progress.append)

    assert summary.outcomes[user.id] == [O.ADDED, O.ADDED_TO_PENDING]
    assert library.is_liked(user, movie)
    pending = PendingQueueStore(tmp_path).load(user.id)
    assert [(p.external_media_id, p.media_type) for p in pending] == [(20, MediaType.SERIES)]
    assert (summary.added, summary.pending, summary.users_processed) == (1, 1, 1)
    assert progress[-1] == 100


def test_second_run_is_idempotent(seerr_cfg: dict, library: InMemoryLibrary, tmp_path: Path, logger: Logger) -> None:
    user = library.add_user("u1", "alice")
    library.add_entry("m10", "Ten", "Movie", Tmdb="10")
    source = FakeSource(
        links={"u1": "5"},
        requests={"5": [ExternalRequest(10, MediaType.MOVIE, "Ten"), ExternalRequest(20, MediaType.SERIES, "Twenty")]},
    )
    seerr_cfg["jellyseerr"]["promote_pending"] = False
    orch = _orchestrator(seerr_cfg, library, tmp_path, logger, source)

    orch.run()
    again = orch.run()
    assert again.outcomes[user.id] == [O.ALREADY_IN_WATCHLIST, O.SKIPPED]
    assert len(library.writes) == 1
    assert len(PendingQueueStore(tmp_path).load(user.id)) == 1


def test_preconditions_short_circuit_with_full_progress(library: InMemoryLibrary, tmp_path: Path, logger: Logger) -> None:
    library.add_user("u1", "alice")
    source = FakeSource(links={"u1": "5"}, requests={})
    progress: list[float] = []
    cfgs = [
        {"jellyseerr": {"enabled": False, "sync_requests": True, "urls": SEERR, "api_key": "k"}},
        {"jellyseerr": {"enabled": True, "sync_requests": False, "urls": SEERR, "api_key": "k"}},
        {"jellyseerr": {"enabled": True, "sync_requests": True, "urls": "  ", "api_key": "k"}},
        {"jellyseerr": {"enabled": True, "sync_requests": True, "urls": SEERR, "api_key": ""}},
    ]
    for cfg in cfgs:
        summary = _orchestrator(cfg, library, tmp_path, logger, source).run(progress=progress.append)
        assert summary.aborted_reason
        assert summary.users_processed == 0
    assert progress == [100, 100, 100, 100]
    assert source.list_calls == 0


def test_seerr_users_fetched_once_per_run(seerr_cfg: dict, library: InMemoryLibrary, tmp_path: Path, logger: Logger) -> None:
    for i in range(3):
        library.add_user(f"u{i}", f"user{i}")
    source = FakeSource(links={"u0": "1", "u1": "2", "u2": "3"}, requests={})
    _orchestrator(seerr_cfg, library, tmp_path, logger, source).run()
    assert source.list_calls == 1
    assert source.request_calls == ["1", "2", "3"]


def test_unresolved_user_is_skipped(seerr_cfg: dict, library: InMemoryLibrary, tmp_path: Path, logger: Logger, log_stream) -> None:
    library.add_user("ghost", "ghost")
    library.add_user("u1", "alice")
    source = FakeSource(links={"u1": "5"}, requests={"5": [ExternalRequest(1, MediaType.MOVIE)]})
    progress: list[float] = []
    summary = _orchestrator(seerr_cfg, library, tmp_path, logger, source).run(progress=progress.append)

    assert "ghost" not in summary.outcomes
    assert summary.outcomes["u1"] == [O.ADDED_TO_PENDING]
    assert summary.users_processed == 2
    assert progress == [50, 100, 100]
    assert "No linked Jellyseerr user for ghost" in log_stream.getvalue()


def test_user_failure_does_not_stop_the_run(seerr_cfg: dict, library: InMemoryLibrary, tmp_path: Path, logger: Logger, log_stream) -> None:
    library.add_user("u1", "broken")
    library.add_user("u2", "fine")

    def boom(sid: str) -> None:
        if sid == "1":
            raise RuntimeError("seerr exploded")

    source = FakeSource(
        links={"u1": "1", "u2": "2"},
        requests={"2": [ExternalRequest(7, MediaType.MOVIE)]},
        on_requests=boom,
    )
    summary = _orchestrator(seerr_cfg, library, tmp_path, logger, source).run()
    assert summary.outcomes["u2"] == [O.ADDED_TO_PENDING]
    assert summary.users_processed == 2
    assert "seerr exploded" in log_stream.getvalue()


def test_cancel_before_start(seerr_cfg: dict, library: InMemoryLibrary, tmp_path: Path, logger: Logger) -> None:
    library.add_user("u1", "alice")
    source = FakeSource(links={"u1": "5"}, requests={"5": [ExternalRequest(1, MediaType.MOVIE)]})
    token = CancellationToken()
    token.cancel()
    progress: list[float] = []
    summary = _orchestrator(seerr_cfg, library, tmp_path, logger, source).run(token, progress.append)
    assert summary.cancelled is True
    assert summary.users_processed == 0
    assert source.request_calls == []
    assert progress == []


def test_cancel_between_requests_stops_promptly(seerr_cfg: dict, library: InMemoryLibrary, tmp_path: Path, logger: Logger) -> None:
    library.add_user("u1", "alice")
    library.add_user("u2", "bob")
    token = CancellationToken()
    source = FakeSource(
        links={"u1": "1", "u2": "2"},
        requests={
            "1": [ExternalRequest(1, MediaType.MOVIE), ExternalRequest(2, MediaType.MOVIE)],
            "2": [ExternalRequest(3, MediaType.MOVIE)],
        },
        on_requests=lambda sid: token.cancel(),
    )
    progress: list[float] = []
    summary = _orchestrator(seerr_cfg, library, tmp_path, logger, source).run(token, progress.append)

    assert summary.cancelled is True
    assert source.request_calls == ["1"]
    assert summary.outcomes.get("u1", []) == []
    assert PendingQueueStore(tmp_path).load("u1") == set()
    assert 100 not in progress


def test_promote_pending_runs_after_requests(seerr_cfg: dict, library: InMemoryLibrary, tmp_path: Path, logger: Logger) -> None:
    user = library.add_user("u1", "alice")
    source = FakeSource(links={"u1": "5"}, requests={"5": [ExternalRequest(20, MediaType.SERIES, "Later")]})
    orch = _orchestrator(seerr_cfg, library, tmp_path, logger, source)
    assert orch.run().promoted == 0

    show = library.add_entry("s20", "Later", "Series", Tmdb="20")
    source.requests = {"5": []}
    summary = orch.run()
    assert summary.promoted == 1
    assert library.is_liked(user, show)
    assert PendingQueueStore(tmp_path).load(user.id) == set()


def test_broken_progress_sink_is_logged_and_run_completes(
    monkeypatch, seerr_cfg: dict, library: InMemoryLibrary, tmp_path: Path, logger: Logger, log_stream
) -> None:
    monkeypatch.setenv("RS_DEBUG", "1")
    library.add_user("u1", "alice")
    library.add_entry("m10", "Ten", "Movie", Tmdb="10")
    source = FakeSource(links={"u1": "5"}, requests={"5": [ExternalRequest(10, MediaType.MOVIE)]})

    def sink(pct: float) -> None:
        raise RuntimeError("sink closed")

    summary = _orchestrator(seerr_cfg, library, tmp_path, logger, source).run(progress=sink)
    assert summary.added == 1
    out = log_stream.getvalue()
    assert "Progress sink failed at 100%: sink closed" in out
    assert "[REQUESTS-SYNC] DEBUG" in out
