# RequestSync test scripts
from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from rs_platform._types import MediaType, PendingWatchlistItem
from rs_platform.library import InMemoryLibrary
from rs_platform.matcher import IdentityMatcher
from rs_platform.pending_store import PendingQueueStore


def test_matcher_exact_string_match_only(library: InMemoryLibrary) -> None:
    library.add_entry("m1", "The Matrix", "Movie", Tmdb="603")
    library.add_entry("m2", "The Matrix Reloaded", "Movie", Tmdb="604")
    library.add_entry("s1", "Some Show", "Series", Tmdb="603")

    m = IdentityMatcher(library)
    hit = m.match(603, MediaType.MOVIE)
    assert hit is not None and hit.item_id == "m1"

    assert m.match(6030, MediaType.MOVIE) is None
    assert m.match(60, MediaType.MOVIE) is None


def test_matcher_respects_item_kind(library: InMemoryLibrary) -> None:
    library.add_entry("s1", "Some Show", "Series", Tmdb="603")
    m = IdentityMatcher(library)
    assert m.match(603, MediaType.MOVIE) is None
    assert m.match(603, MediaType.SERIES).item_id == "s1"


def test_matcher_ignores_entries_without_provider_id(library: InMemoryLibrary) -> None:
    library.add_entry("m1", "No Ids", "Movie")
    library.add_entry("m2", "Imdb Only", "Movie", Imdb="tt0133093")
    assert IdentityMatcher(library).match(603, MediaType.MOVIE) is None


def test_pending_add_is_deduplicated(tmp_path: Path) -> None:
    store = PendingQueueStore(tmp_path)
    first = PendingWatchlistItem(20, MediaType.SERIES, datetime(2026, 1, 1, tzinfo=timezone.utc))
    again = PendingWatchlistItem(20, MediaType.SERIES, datetime(2026, 2, 1, tzinfo=timezone.utc))

    assert store.add("user-1", first) is True
    assert store.add("user-1", again) is False

    doc = json.loads(store.path_for("user-1").read_text("utf-8"))
    assert len(doc["items"]) == 1
    assert doc["items"][0]["tmdb_id"] == 20
    assert doc["items"][0]["media_type"] == "tv"
    assert doc["items"][0]["requested_at"].startswith("2026-01-01")


def test_pending_same_id_different_type_are_distinct(tmp_path: Path) -> None:
    store = PendingQueueStore(tmp_path)
    assert store.add("u", PendingWatchlistItem(20, MediaType.SERIES))
    assert store.add("u", PendingWatchlistItem(20, MediaType.MOVIE))
    assert {it.key for it in store.load("u")} == {(20, MediaType.SERIES), (20, MediaType.MOVIE)}


def test_pending_is_per_user(tmp_path: Path) -> None:
    store = PendingQueueStore(tmp_path)
    store.add("alice", PendingWatchlistItem(1, MediaType.MOVIE))
    assert store.load("bob") == set()
    assert store.path_for("alice") != store.path_for("bob")
    assert store.path_for("alice").parent.parent == tmp_path / "users"


def test_pending_remove(tmp_path: Path) -> None:
    store = PendingQueueStore(tmp_path)
    store.add("u", PendingWatchlistItem(1, MediaType.MOVIE))
    assert store.remove("u", 1, MediaType.MOVIE) is True
    assert store.remove("u", 1, MediaType.MOVIE) is False
    assert store.load("u") == set()


def test_pending_unreadable_document_loads_empty(tmp_path: Path) -> None:
    store = PendingQueueStore(tmp_path)
    p = store.path_for("u")
    p.parent.mkdir(parents=True)
    p.write_text("{not json", encoding="utf-8")
    assert store.load("u") == set()
    assert store.add("u", PendingWatchlistItem(5, MediaType.MOVIE)) is True
    assert len(store.load("u")) == 1


def test_pending_duplicate_rows_on_disk_collapse(tmp_path: Path) -> None:
    store = PendingQueueStore(tmp_path)
    p = store.path_for("u")
    p.parent.mkdir(parents=True)
    row = {"tmdb_id": 7, "media_type": "movie", "requested_at": "2026-01-01T00:00:00Z"}
    p.write_text(json.dumps({"items": [row, row, {"tmdb_id": "x"}]}), encoding="utf-8")
    assert len(store.load("u")) == 1
