from __future__ import annotations

from .sync_runner import RUNNER, SyncRunner

__all__ = ["RUNNER", "SyncRunner"]
