# client/poll.py
# Visibility state machine and the background reload loop it starts and stops.
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from _logging import Logger, log as _base_log

__all__ = ["Visibility", "VisibilityStateMachine", "PollDriver"]

DEFAULT_POLL_INTERVAL_S = 30.0


class Visibility(str, Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"


class VisibilityStateMachine:
    def __init__(
        self,
        on_enter: Optional[Callable[[], None]] = None,
        on_exit: Optional[Callable[[], None]] = None,
    ):
        self.state = Visibility.HIDDEN
        self.on_enter = on_enter
        self.on_exit = on_exit

    @property
    def visible(self) -> bool:
        return self.state is Visibility.VISIBLE

    def show(self) -> bool:
        if self.visible:
            return False
        self.state = Visibility.VISIBLE
        if self.on_enter:
            self.on_enter()
        return True

    def hide(self) -> bool:
        if not self.visible:
            return False
        self.state = Visibility.HIDDEN
        if self.on_exit:
            self.on_exit()
        return True


def _always() -> bool:
    return True


def _never() -> bool:
    return False


class PollDriver:
    def __init__(
        self,
        reload: Callable[[], Awaitable[Any]],
        interval_s: float = DEFAULT_POLL_INTERVAL_S,
        *,
        is_visible: Callable[[], bool] = _always,
        is_busy: Callable[[], bool] = _never,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        logger: Optional[Logger] = None,
    ):
        self.reload = reload
        self.interval_s = float(interval_s)
        self.is_visible = is_visible
        self.is_busy = is_busy
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0
        self.log = (logger or _base_log).child("POLL")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self.stop()
        self._task = asyncio.get_running_loop().create_task(self._run())
        self.log.debug(f"Polling every {self.interval_s:g}s")

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def tick(self) -> bool:
        if not self.is_visible() or self.is_busy():
            return False
        self.ticks += 1
        try:
            await self.reload()
        except Exception as e:
            self.log.warn(f"Background reload failed: {e}")
        return True

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval_s)
            await self.tick()
