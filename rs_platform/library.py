# rs_platform/library.py
# In-process library: satisfies LibraryIndex, WatchStateStore and UserDirectory.
# Stands in for the media server in aborted runs and as the test double for the sync core.
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Optional

from ._types import LibraryEntry, LibraryUser, WatchState
from .id_map import provider_id


@dataclass
class InMemoryLibrary:
    entries: list[LibraryEntry] = field(default_factory=list)
    users: list[LibraryUser] = field(default_factory=list)
    states: dict[tuple[str, str], WatchState] = field(default_factory=dict)
    writes: list[tuple[str, str, WatchState]] = field(default_factory=list)

    def add_entry(self, item_id: str, name: str, kind: str, **provider_ids: Any) -> LibraryEntry:
        entry = LibraryEntry(item_id, name, kind, {k: str(v) for k, v in provider_ids.items()})
        self.entries.append(entry)
        return entry

    def add_user(self, user_id: str, username: str = "") -> LibraryUser:
        user = LibraryUser(user_id, username or user_id)
        self.users.append(user)
        return user

    # LibraryIndex
    def items_with_provider_id(self, kind: str, provider: str) -> Iterable[LibraryEntry]:
        return [e for e in self.entries if e.kind == kind and provider_id(e.provider_ids, provider)]

    # WatchStateStore
    def get_user_watch_state(self, user: LibraryUser, entry: LibraryEntry) -> Optional[WatchState]:
        if not any(e.item_id == entry.item_id for e in self.entries):
            return None
        return self.states.setdefault((user.id, entry.item_id), WatchState(liked=None))

    def set_user_watch_state(self, user: LibraryUser, entry: LibraryEntry, state: WatchState) -> None:
        self.states[(user.id, entry.item_id)] = WatchState(liked=state.liked)
        self.writes.append((user.id, entry.item_id, WatchState(liked=state.liked)))

    def is_liked(self, user: LibraryUser, entry: LibraryEntry) -> bool:
        st = self.states.get((user.id, entry.item_id))
        return bool(st and st.liked)

    # UserDirectory
    def list_users(self) -> list[LibraryUser]:
        return list(self.users)


__all__ = ["InMemoryLibrary"]
