# client/render.py
# Collapse bursts of state changes into one paint per frame.
from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Protocol

from _logging import Logger, log as _base_log

__all__ = ["FrameSource", "LoopFrameSource", "ManualFrameSource", "RenderScheduler"]

REFRESH_HZ = 60.0


class FrameSource(Protocol):
    def request_frame(self, callback: Callable[[], None]) -> None: ...


class LoopFrameSource:
    """Frame callbacks on the running asyncio loop at a fixed refresh rate."""

    def __init__(self, hz: float = REFRESH_HZ, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.interval = 1.0 / max(1.0, float(hz))
        self._loop = loop

    def request_frame(self, callback: Callable[[], None]) -> None:
        loop = self._loop or asyncio.get_running_loop()
        loop.call_later(self.interval, callback)


class ManualFrameSource:
    def __init__(self) -> None:
        self.pending: List[Callable[[], None]] = []

    def request_frame(self, callback: Callable[[], None]) -> None:
        self.pending.append(callback)

    def tick(self) -> int:
        due, self.pending = self.pending, []
        for cb in due:
            cb()
        return len(due)


class RenderScheduler:
    def __init__(
        self,
        paint: Callable[[], None],
        frames: Optional[FrameSource] = None,
        *,
        logger: Optional[Logger] = None,
    ):
        self.paint = paint
        self.frames = frames or LoopFrameSource()
        self.log = (logger or _base_log).child("RENDER")
        self._queued = False
        self.paints = 0

    @property
    def queued(self) -> bool:
        return self._queued

    def schedule_render(self) -> None:
        if self._queued:
            return
        self._queued = True
        self.frames.request_frame(self._on_frame)

    def _on_frame(self) -> None:
        # Clear first so a paint that schedules again gets its own frame.
        self._queued = False
        self.paints += 1
        try:
            self.paint()
        except Exception as e:
            self.log.error(f"paint failed: {e}")
