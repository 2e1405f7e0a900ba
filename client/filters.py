# client/filters.py
# Request rows as the client sees them, plus the filters the server query cannot express.
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from rs_platform.id_map import safe_int

__all__ = [
    "RequestFilter",
    "RequestView",
    "api_filter",
    "api_page",
    "parse_date",
    "apply_request_filters",
    "is_coming_soon",
]

_EPOCH = date(1970, 1, 1)
_COMING_SOON_STATUSES = {"processing", "approved", "pending"}
_COMING_SOON_CODES = {2, 3}


class RequestFilter(str, Enum):
    ALL = "all"
    PENDING = "pending"
    PROCESSING = "processing"
    COMING_SOON = "coming-soon"
    AVAILABLE = "available"

    @classmethod
    def parse(cls, value: "RequestFilter | str | None") -> "RequestFilter":
        if isinstance(value, RequestFilter):
            return value
        s = str(value or "").strip().lower()
        for f in cls:
            if f.value == s:
                return f
        raise ValueError(f"unknown request filter: {value!r}")


def api_filter(f: RequestFilter) -> str:
    return "" if f in (RequestFilter.ALL, RequestFilter.COMING_SOON) else f.value


def api_page(f: RequestFilter, page: int) -> int:
    return 0 if f is RequestFilter.COMING_SOON else int(page)


def parse_date(value: Any) -> Optional[date]:
    """Date part of an ISO date/datetime string; None when absent or unparsable."""
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _s(v: Any) -> str:
    return v if isinstance(v, str) else ""


@dataclass(frozen=True)
class RequestView:
    title: str = ""
    year: Optional[int] = None
    poster_url: str = ""
    media_status: str = ""
    status: Optional[int] = None
    media_type: str = ""
    requested_by: str = ""
    requested_by_avatar: str = ""
    created_at: str = ""
    release_date: str = ""
    first_air_date: str = ""
    jellyfin_media_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False, repr=False)

    @classmethod
    def from_api(cls, row: Mapping[str, Any]) -> "RequestView":
        jf = row.get("jellyfinMediaId")
        return cls(
            title=_s(row.get("title")),
            year=safe_int(row.get("year")),
            poster_url=_s(row.get("posterUrl")),
            media_status=_s(row.get("mediaStatus")),
            status=safe_int(row.get("status")),
            media_type=_s(row.get("mediaType") or row.get("type")),
            requested_by=_s(row.get("requestedBy")),
            requested_by_avatar=_s(row.get("requestedByAvatar")),
            created_at=_s(row.get("createdAt")),
            release_date=_s(row.get("releaseDate")),
            first_air_date=_s(row.get("firstAirDate")),
            jellyfin_media_id=str(jf) if jf else None,
            raw=dict(row),
        )

    @property
    def release_or_air_date(self) -> str:
        return self.release_date or self.first_air_date

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "year": self.year,
            "posterUrl": self.poster_url,
            "mediaStatus": self.media_status,
            "status": self.status,
            "mediaType": self.media_type,
            "requestedBy": self.requested_by,
            "requestedByAvatar": self.requested_by_avatar,
            "createdAt": self.created_at,
            "releaseDate": self.release_date,
            "firstAirDate": self.first_air_date,
            "jellyfinMediaId": self.jellyfin_media_id,
        }


def is_coming_soon(req: RequestView, today: date) -> bool:
    raw_date = req.release_or_air_date
    if raw_date:
        d = parse_date(raw_date)
        future = d is not None and d > today
    else:
        future = req.year is not None and req.year >= today.year
    if not future:
        return False
    return req.media_status.lower() in _COMING_SOON_STATUSES or req.status in _COMING_SOON_CODES


def _coming_soon_sort_key(req: RequestView) -> date:
    if req.release_or_air_date:
        return parse_date(req.release_or_air_date) or _EPOCH
    if req.year:
        try:
            return date(req.year, 1, 1)
        except ValueError:
            return _EPOCH
    return _EPOCH


def apply_request_filters(
    rows: Iterable[RequestView],
    filter: RequestFilter | str,
    *,
    today: Optional[date] = None,
) -> List[RequestView]:
    f = RequestFilter.parse(filter)
    out = list(rows or [])
    if f is RequestFilter.COMING_SOON:
        today = today or date.today()
        out = [r for r in out if is_coming_soon(r, today)]
        out.sort(key=_coming_soon_sort_key)
    elif f is RequestFilter.PROCESSING:
        out = [r for r in out if r.media_status.lower() != "partially available"]
    return out
