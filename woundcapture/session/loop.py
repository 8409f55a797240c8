"""Fixed-cadence detection timer for the asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

LOGGER = logging.getLogger("woundcapture.session.loop")

Tick = Callable[[], Awaitable[object]]


class DetectionLoop:
    """Spawns one tick task per interval without waiting for the previous one.

    Ticks are never queued behind each other: a slow tick keeps running while
    the timer fires again. Stopping the loop cancels the timer only; ticks
    already in flight finish and their owners discard stale results.
    """

    def __init__(self, tick: Tick, interval_s: float = 0.5, name: str = "detection") -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self._tick = tick
        self.interval_s = interval_s
        self.name = name
        self.ticks_started = 0
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def start(self) -> None:
        if self.running:
            return
        self._timer = asyncio.get_running_loop().create_task(self._run())
        LOGGER.debug("Started %s loop interval=%.3fs", self.name, self.interval_s)

    def stop(self) -> None:
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None
        LOGGER.debug("Stopped %s loop after %d ticks", self.name, self.ticks_started)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            self.ticks_started += 1
            task = asyncio.ensure_future(self._guarded_tick())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def _guarded_tick(self) -> None:
        try:
            await self._tick()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            LOGGER.warning("%s tick failed: %s", self.name, exc)
            LOGGER.debug("%s tick stack trace", self.name, exc_info=True)
