# rs_platform/_types.py
# Shared value types and the host capabilities the sync core is built against.
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Protocol


class MediaType(str, Enum):
    MOVIE = "movie"
    SERIES = "tv"

    @classmethod
    def parse(cls, value: Any) -> Optional["MediaType"]:
        s = str(value or "").strip().lower()
        if not s:
            return None
        if s == "movie":
            return cls.MOVIE
        return cls.SERIES


class ReconciliationOutcome(str, Enum):
    ADDED = "added"
    ADDED_TO_PENDING = "added_to_pending"
    ALREADY_IN_WATCHLIST = "already_in_watchlist"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ExternalRequest:
    external_media_id: int
    media_type: MediaType
    title: str = ""


@dataclass(frozen=True)
class LibraryUser:
    id: str
    username: str = ""


@dataclass(frozen=True)
class LibraryEntry:
    item_id: str
    name: str
    kind: str
    provider_ids: Mapping[str, str] = field(default_factory=dict, compare=False, hash=False)


@dataclass
class WatchState:
    liked: Optional[bool] = None


@dataclass(frozen=True)
class PendingWatchlistItem:
    external_media_id: int
    media_type: MediaType
    requested_at_utc: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    @property
    def key(self) -> tuple[int, MediaType]:
        return (self.external_media_id, self.media_type)

    def to_doc(self) -> dict[str, Any]:
        return {
            "tmdb_id": self.external_media_id,
            "media_type": self.media_type.value,
            "requested_at": self.requested_at_utc.isoformat(),
        }

    @classmethod
    def from_doc(cls, doc: Mapping[str, Any]) -> Optional["PendingWatchlistItem"]:
        try:
            tmdb = int(doc.get("tmdb_id"))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        mt = MediaType.parse(doc.get("media_type"))
        if mt is None:
            return None
        raw = str(doc.get("requested_at") or "")
        try:
            when = datetime.fromisoformat(raw.replace("Z", "+00:00")) if raw else datetime.now(timezone.utc)
        except ValueError:
            when = datetime.now(timezone.utc)
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        return cls(tmdb, mt, when)


class LibraryIndex(Protocol):
    def items_with_provider_id(self, kind: str, provider: str) -> Iterable[LibraryEntry]: ...


class WatchStateStore(Protocol):
    def get_user_watch_state(self, user: LibraryUser, entry: LibraryEntry) -> Optional[WatchState]: ...
    def set_user_watch_state(self, user: LibraryUser, entry: LibraryEntry, state: WatchState) -> None: ...


class UserDirectory(Protocol):
    def list_users(self) -> list[LibraryUser]: ...


__all__ = [
    "MediaType",
    "ReconciliationOutcome",
    "ExternalRequest",
    "LibraryUser",
    "LibraryEntry",
    "WatchState",
    "PendingWatchlistItem",
    "LibraryIndex",
    "WatchStateStore",
    "UserDirectory",
]
