# RequestSync test scripts
from __future__ import annotations

from datetime import date

from client.filters import RequestFilter, RequestView, apply_request_filters

TODAY = date(2026, 10, 18)


def _row(title: str, status: str = "processing", **kw) -> RequestView:
    return RequestView.from_api({"title": title, "mediaStatus": status, **kw})


def test_coming_soon_keeps_only_future_actionable_items() -> None:
    rows = [
        _row("past", releaseDate="2026-10-08"),
        _row("today", releaseDate="2026-10-18T20:00:00.000Z"),
        _row("future-processing", releaseDate="2026-10-28"),
        _row("future-pending", status="Pending", releaseDate="2026-10-30"),
        _row("future-available", status="available", releaseDate="2026-10-28"),
    ]
    out = apply_request_filters(rows, "coming-soon", today=TODAY)
    assert [r.title for r in out] == ["future-processing", "future-pending"]


def test_coming_soon_status_code_counts() -> None:
    raw = {"title": "code-3", "mediaStatus": "", "status": 3, "firstAirDate": "2026-11-01"}
    rows = [RequestView.from_api(raw), RequestView.from_api({**raw, "title": "code-5", "status": 5})]
    out = apply_request_filters(rows, RequestFilter.COMING_SOON, today=TODAY)
    assert [r.title for r in out] == ["code-3"]


def test_coming_soon_year_only_and_sorting() -> None:
    rows = [
        _row("late", releaseDate="2027-03-01"),
        _row("year-next", year=2027),
        _row("year-this", year="2026"),
        _row("year-last", year=2025),
        _row("soon", firstAirDate="2026-10-20"),
        _row("unparsable", releaseDate="soon-ish"),
    ]
    out = apply_request_filters(rows, "coming-soon", today=TODAY)
    assert [r.title for r in out] == ["year-this", "soon", "year-next", "late"]


def test_processing_drops_partially_available() -> None:
    rows = [_row("a", "Processing"), _row("b", "Partially Available"), _row("c", "processing")]
    out = apply_request_filters(rows, "processing", today=TODAY)
    assert [r.title for r in out] == ["a", "c"]


def test_other_filters_pass_through_unchanged() -> None:
    rows = [_row("b", "available"), _row("a", "Partially Available", releaseDate="2020-01-01")]
    for f in ("all", "pending", "available"):
        assert apply_request_filters(rows, f, today=TODAY) == rows


def test_request_view_from_api_tolerates_odd_rows() -> None:
    v = RequestView.from_api({"title": None, "year": "n/a", "status": "2", "jellyfinMediaId": 0})
    assert v.title == ""
    assert v.year is None
    assert v.status == 2
    assert v.jellyfin_media_id is None
    assert v.to_dict()["mediaStatus"] == ""
