# rs_platform/pending_store.py
# Per-user queue of requested titles that are not in the library yet.
# Read-modify-write per user document; one sync run touches a user from a single
# thread only. Overlapping runs for the same user are not guarded.
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Set

from ._types import MediaType, PendingWatchlistItem
from .id_map import safe_user_dirname

DOC_NAME = "pending-watchlist.json"


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        if not path.exists():
            return {}
        data = json.loads(path.read_text("utf-8"))
        return data if isinstance(data, dict) else {}
    except Exception:
        return {}


def _atomic_write(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)


class PendingQueueStore:
    def __init__(self, base_dir: Path | str):
        self.base_dir = Path(base_dir)

    def path_for(self, user_id: str) -> Path:
        return self.base_dir / "users" / safe_user_dirname(user_id) / DOC_NAME

    def _items(self, user_id: str) -> List[PendingWatchlistItem]:
        doc = _read_json(self.path_for(user_id))
        out: List[PendingWatchlistItem] = []
        seen: Set[tuple[int, MediaType]] = set()
        for raw in doc.get("items") or []:
            if not isinstance(raw, dict):
                continue
            item = PendingWatchlistItem.from_doc(raw)
            if item is None or item.key in seen:
                continue
            seen.add(item.key)
            out.append(item)
        return out

    def _save(self, user_id: str, items: List[PendingWatchlistItem]) -> None:
        _atomic_write(self.path_for(user_id), {"items": [it.to_doc() for it in items]})

    def load(self, user_id: str) -> Set[PendingWatchlistItem]:
        return set(self._items(user_id))

    def add(self, user_id: str, item: PendingWatchlistItem) -> bool:
        items = self._items(user_id)
        if any(it.key == item.key for it in items):
            return False
        items.append(item)
        self._save(user_id, items)
        return True

    def remove(self, user_id: str, external_media_id: int, media_type: MediaType) -> bool:
        items = self._items(user_id)
        keep = [it for it in items if it.key != (external_media_id, media_type)]
        if len(keep) == len(items):
            return False
        self._save(user_id, keep)
        return True


__all__ = ["PendingQueueStore", "DOC_NAME"]
