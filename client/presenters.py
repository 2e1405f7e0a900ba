# client/presenters.py
# Display helpers for the requests page: download grouping, sizes, durations, dates, status chips.
from __future__ import annotations

import calendar
import math
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

from rs_platform.id_map import safe_int

from .filters import RequestView, parse_date

__all__ = [
    "StatusChip",
    "group_downloads",
    "format_bytes",
    "format_time_remaining",
    "format_download_stats",
    "format_relative_date",
    "format_relative_release_date",
    "resolve_request_status",
    "present_request",
    "present_download",
]

SEASON_PACK_MIN = 3
_SIZES = ["B", "KB", "MB", "GB", "TB"]
_HMS = re.compile(r"^(\d+):(\d+):(\d+)$")
_DHMS = re.compile(r"^(\d+)\.(\d+):(\d+):(\d+)$")


class StatusChip(NamedTuple):
    label: str
    class_name: str


# --- downloads ---------------------------------------------------------------

def _num(v: Any) -> float:
    try:
        return float(v or 0)
    except (TypeError, ValueError):
        return 0.0


def _pack_sizes(episodes: List[Mapping[str, Any]]) -> tuple[float, float]:
    first_total = _num(episodes[0].get("totalSize"))
    first_left = _num(episodes[0].get("sizeRemaining"))
    same = all(
        _num(ep.get("totalSize")) == first_total and _num(ep.get("sizeRemaining")) == first_left
        for ep in episodes
    )
    if same:
        return first_total, first_left
    return (
        sum(_num(ep.get("totalSize")) for ep in episodes),
        sum(_num(ep.get("sizeRemaining")) for ep in episodes),
    )


def group_downloads(downloads: List[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Collapse 3+ Sonarr episodes sharing title, season and progress into one season pack.

    Non-Sonarr items (and Sonarr items without a season) come first in queue order,
    followed by the season groups in first-seen order; small groups stay as singles.
    """
    grouped: List[Dict[str, Any]] = []
    seasons: Dict[str, List[Mapping[str, Any]]] = {}

    for item in downloads or []:
        if item.get("source") == "sonarr" and item.get("seasonNumber") is not None:
            key = f"{item.get('title')}|{item.get('seasonNumber')}|{item.get('progress')}"
            seasons.setdefault(key, []).append(item)
        else:
            grouped.append({"type": "single", "item": item})

    for episodes in seasons.values():
        if len(episodes) < SEASON_PACK_MIN:
            grouped.extend({"type": "single", "item": ep} for ep in episodes)
            continue
        nums = sorted(safe_int(ep.get("episodeNumber")) or 0 for ep in episodes)
        total, left = _pack_sizes(episodes)
        grouped.append({
            "type": "season_pack",
            "item": episodes[0],
            "episodes": episodes,
            "episode_range": f"E{nums[0]:02d}-E{nums[-1]:02d}",
            "episode_count": len(episodes),
            "total_size": total,
            "size_remaining": left,
        })
    return grouped


def format_bytes(num: Any) -> str:
    n = _num(num)
    if n <= 0:
        return "0 B"
    i = min(int(math.floor(math.log(n, 1024))), len(_SIZES) - 1)
    value = f"{n / (1024 ** i):.1f}".rstrip("0").rstrip(".")
    return f"{value} {_SIZES[i]}"


def format_time_remaining(text: Optional[str]) -> str:
    if not text:
        return ""
    m = _HMS.match(text)
    if m:
        hours, minutes = int(m.group(1)), int(m.group(2))
        return f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"
    m = _DHMS.match(text)
    if m:
        days, hours = int(m.group(1)), int(m.group(2))
        return f"{days}d {hours}h" if days > 0 else f"{hours}h"
    return text


def format_download_stats(total_size: Any, size_remaining: Any) -> str:
    total = _num(total_size)
    if total <= 0:
        return ""
    remaining = max(0.0, min(total, _num(size_remaining)))
    downloaded = max(0.0, min(total, total - remaining))
    return f"{format_bytes(downloaded)} / {format_bytes(total)}"


# --- dates ---------------------------------------------------------------------

def _parse_datetime(value: str) -> Optional[datetime]:
    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def format_relative_date(value: Optional[str], *, now: Optional[datetime] = None) -> str:
    if not value:
        return ""
    dt = _parse_datetime(value)
    if dt is None:
        return ""
    now = now or datetime.now(timezone.utc)
    seconds = (now - dt).total_seconds()
    if seconds < 0:
        return ""
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 30:
        return f"{days}d ago"
    return f"{dt.month}/{dt.day}/{dt.year}"


def _ordinal(day: int) -> str:
    suffix = "th"
    if not 11 <= day <= 13:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_relative_release_date(value: Optional[str], *, today: Optional[date] = None) -> Optional[str]:
    """Human phrasing for an upcoming date; None for past or unparsable dates."""
    target = parse_date(value)
    if target is None:
        return None
    days = (target - (today or date.today())).days
    if days < 0:
        return None
    if days == 0:
        return "today"
    if days == 1:
        return "tomorrow"
    if days <= 7:
        return f"in {days} days"
    if days <= 14:
        return "in 2 weeks"
    if days <= 30:
        weeks = days // 7
        return f"in {weeks} week{'s' if weeks > 1 else ''}"
    return f"on {_ordinal(target.day)} {calendar.month_name[target.month]}"


# --- status --------------------------------------------------------------------

_CHIPS = {
    "available": StatusChip("Available", "je-chip-available"),
    "partially available": StatusChip("Partially Available", "je-chip-partial"),
    "processing": StatusChip("Processing", "je-chip-processing"),
    "approved": StatusChip("Requested", "je-chip-requested"),
    "pending": StatusChip("Pending Approval", "je-chip-requested"),
    "declined": StatusChip("Rejected", "je-chip-rejected"),
}


def resolve_request_status(status: Optional[str]) -> StatusChip:
    chip = _CHIPS.get((status or "").lower())
    if chip:
        return chip
    return StatusChip(status or "Requested", "je-chip-requested")


# --- cards ---------------------------------------------------------------------

def present_request(
    req: RequestView,
    *,
    release_badge: bool = False,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Row for one request card: the raw fields plus chip, age and, on coming-soon, the release badge."""
    now = now or datetime.now(timezone.utc)
    chip = resolve_request_status(req.media_status)
    row = req.to_dict()
    row["statusChip"] = {"label": chip.label, "className": chip.class_name}
    row["createdRelative"] = format_relative_date(req.created_at, now=now)
    badge = None
    if release_badge:
        badge = format_relative_release_date(req.release_or_air_date, today=now.date())
        if not badge and req.year and req.year >= now.year:
            badge = str(req.year)
    row["releaseBadge"] = badge
    return row


def present_download(group: Mapping[str, Any]) -> Dict[str, Any]:
    """Adds the ETA and downloaded/total text to a grouped download card."""
    card = dict(group)
    item = group.get("item") or {}
    if group.get("type") == "season_pack":
        total, left = group.get("total_size"), group.get("size_remaining")
    else:
        total, left = item.get("totalSize"), item.get("sizeRemaining")
    card["eta"] = format_time_remaining(item.get("timeRemaining"))
    card["stats"] = format_download_stats(total, left)
    return card
