# api/syncAPI.py
# RequestSync - HTTP surface for the requests-to-watchlist sync runner
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

__all__ = ["router", "_runner", "_is_sync_running"]

router = APIRouter(prefix="/api/requests-sync", tags=["requests-sync"])


def _runner():
    from services import sync_runner
    return sync_runner.RUNNER


def _is_sync_running() -> bool:
    return _runner().is_running()


class RunSummaryOut(BaseModel):
    users_total: int = 0
    users_processed: int = 0
    added: int = 0
    pending: int = 0
    already: int = 0
    skipped: int = 0
    promoted: int = 0
    cancelled: bool = False
    aborted_reason: Optional[str] = None


class RunStatusOut(BaseModel):
    running: bool = False
    run_id: Optional[str] = None
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    duration_sec: Optional[float] = None
    progress: float = 0.0
    result: str = ""
    error: Optional[str] = None
    summary: Optional[RunSummaryOut] = None


class RunStartOut(BaseModel):
    ok: bool
    run_id: Optional[str] = None
    error: Optional[str] = None


class CancelOut(BaseModel):
    ok: bool
    cancelled: bool


class PendingItemOut(BaseModel):
    tmdb_id: int
    media_type: str
    requested_at: str


class PendingListOut(BaseModel):
    user_id: str
    count: int
    items: list[PendingItemOut]


@router.post("/run", response_model=RunStartOut)
def api_run_sync() -> Any:
    res = _runner().start()
    if not res.get("ok"):
        return JSONResponse(res, status_code=409)
    return res


@router.post("/cancel", response_model=CancelOut)
def api_cancel_sync() -> dict[str, Any]:
    cancelled = _runner().cancel()
    return {"ok": True, "cancelled": cancelled}


@router.get("/status", response_model=RunStatusOut)
def api_sync_status(response: Response) -> dict[str, Any]:
    response.headers["Cache-Control"] = "no-store"
    return _runner().status()


@router.get("/pending/{user_id}", response_model=PendingListOut)
def api_pending(user_id: str) -> dict[str, Any]:
    items = _runner().pending(user_id)
    return {"user_id": user_id, "count": len(items), "items": items}
