"""Frame schedulers that drive the rotation engine's ticks."""

from __future__ import annotations

import asyncio
from typing import Callable, Hashable, Protocol

from orbitbeat.config import settings

FrameCallback = Callable[[float], None]


class FrameScheduler(Protocol):
    """One-shot frame requests, in the style of ``requestAnimationFrame``.

    The callback receives the seconds elapsed since it was requested.
    """

    def request_frame(self, callback: FrameCallback) -> Hashable: ...

    def cancel_frame(self, handle: Hashable) -> None: ...


class AsyncioFrameScheduler:
    """Schedules frames on an asyncio loop at a fixed nominal rate."""

    def __init__(self, frame_rate: float | None = None, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self.frame_rate = frame_rate if frame_rate is not None else settings.frame_rate
        if self.frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {self.frame_rate}")
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def request_frame(self, callback: FrameCallback) -> asyncio.TimerHandle:
        loop = self.loop
        requested_at = loop.time()
        return loop.call_later(1.0 / self.frame_rate, self._fire, callback, requested_at)

    def cancel_frame(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()

    def _fire(self, callback: FrameCallback, requested_at: float) -> None:
        callback(self.loop.time() - requested_at)
