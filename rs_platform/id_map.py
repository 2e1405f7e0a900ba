# rs_platform/id_map.py
# Identifier handling shared by the matcher, the Seerr client and the pending store.
# - Map request media types to library item kinds.
# - Normalize library user ids for comparison against Seerr's jellyfinUserId.
# - Read provider ids off library rows.

from __future__ import annotations
import re
from typing import Any, Dict, Mapping, Optional

from ._types import MediaType

TMDB_PROVIDER = "Tmdb"

ITEM_KIND_MOVIE = "Movie"
ITEM_KIND_SERIES = "Series"

_KIND_FOR_TYPE: Dict[MediaType, str] = {
    MediaType.MOVIE: ITEM_KIND_MOVIE,
    MediaType.SERIES: ITEM_KIND_SERIES,
}

_SAFE_NAME = re.compile(r"[^a-z0-9_.-]+")


def item_kind_for(media_type: MediaType) -> str:
    return _KIND_FOR_TYPE[media_type]


def normalize_user_id(uid: Any) -> str:
    """Hyphen-stripped, lower-cased form used to compare GUID strings from both sides."""
    return str(uid or "").replace("-", "").strip().lower()


def user_ids_match(a: Any, b: Any) -> bool:
    na, nb = normalize_user_id(a), normalize_user_id(b)
    return bool(na) and na == nb


def safe_user_dirname(uid: Any) -> str:
    s = _SAFE_NAME.sub("_", normalize_user_id(uid)).strip(".")
    return s or "_anonymous"


def provider_id(provider_ids: Optional[Mapping[str, Any]], provider: str = TMDB_PROVIDER) -> Optional[str]:
    """Return the raw provider id string; the key lookup is case-insensitive, the value is untouched."""
    if not isinstance(provider_ids, Mapping):
        return None
    if provider in provider_ids:
        v = provider_ids.get(provider)
        return None if v is None else str(v)
    want = provider.lower()
    for k, v in provider_ids.items():
        if str(k).lower() == want:
            return None if v is None else str(v)
    return None


def safe_int(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    try:
        return int(str(v).strip())
    except (TypeError, ValueError):
        return None


__all__ = [
    "TMDB_PROVIDER",
    "ITEM_KIND_MOVIE",
    "ITEM_KIND_SERIES",
    "item_kind_for",
    "normalize_user_id",
    "user_ids_match",
    "safe_user_dirname",
    "provider_id",
    "safe_int",
]
