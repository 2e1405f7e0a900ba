from __future__ import annotations

from fastapi import FastAPI

from .syncAPI import router as sync_router, _is_sync_running, api_run_sync

__all__ = [
    "sync_router",
    "_is_sync_running",
    "api_run_sync",
    "register",
]


def register(app: FastAPI) -> None:
    app.include_router(sync_router)
