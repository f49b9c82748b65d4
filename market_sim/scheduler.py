"""Heartbeat timer for the simulation.

The simulator itself owns no timer.  Whoever composes the app creates a
``Heartbeat`` around ``MarketSimulator.tick`` and is responsible for
stopping it when the owner goes away, otherwise a second heartbeat
started later would drive the same state twice as fast.

Usage::

    beat = Heartbeat(sim.tick, interval=1.0)
    task = beat.start()
    ...
    await beat.cancel()
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import suppress
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)


class Heartbeat:
    """Calls ``callback(now)`` every ``interval`` seconds on the event loop.

    Parameters
    ----------
    callback:
        Invoked with the wall-clock timestamp of the beat.  Exceptions are
        logged and the heartbeat keeps running.
    interval:
        Seconds between beats.  0 yields to the loop between beats
        without sleeping (useful for fast headless runs).
    clock:
        Timestamp source passed to the callback.
    """

    def __init__(
        self,
        callback: Callable[[float], object],
        interval: float = 1.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._callback = callback
        self._interval = max(0.0, interval)
        self._clock = clock
        self._running = False
        self._beats = 0
        self._errors = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def beats(self) -> int:
        return self._beats

    @property
    def errors(self) -> int:
        return self._errors

    @property
    def running(self) -> bool:
        return self._running

    def beat(self) -> None:
        """Fire one beat immediately."""
        self._beats += 1
        try:
            self._callback(self._clock())
        except Exception as exc:
            self._errors += 1
            LOGGER.warning("Heartbeat: callback failed on beat %d: %s", self._beats, exc, exc_info=True)

    async def run(self, max_beats: int = 0, duration_seconds: float = 0) -> int:
        """Beat until stopped, cancelled, or a limit is reached.

        Parameters
        ----------
        max_beats:
            Stop after this many beats (0 = unlimited).
        duration_seconds:
            Stop after this much wall time (0 = unlimited).

        Returns the number of beats fired by this run.
        """
        self._running = True
        start = time.monotonic()
        fired = 0
        try:
            while self._running:
                if max_beats > 0 and fired >= max_beats:
                    break
                if duration_seconds > 0 and time.monotonic() - start >= duration_seconds:
                    LOGGER.info("Heartbeat: duration limit reached (%.1fs)", duration_seconds)
                    break
                self.beat()
                fired += 1
                await asyncio.sleep(self._interval)
        except asyncio.CancelledError:
            LOGGER.info("Heartbeat: cancelled after %d beats", fired)
            raise
        finally:
            self._running = False
        return fired

    def start(self, max_beats: int = 0, duration_seconds: float = 0) -> asyncio.Task:
        """Schedule ``run`` as a task on the running loop.

        Raises RuntimeError if this heartbeat is already running.
        """
        if self._task is not None and not self._task.done():
            raise RuntimeError("Heartbeat already started")
        self._task = asyncio.get_running_loop().create_task(
            self.run(max_beats=max_beats, duration_seconds=duration_seconds)
        )
        return self._task

    def stop(self) -> None:
        """Signal the loop to stop after the current beat."""
        self._running = False

    async def cancel(self) -> None:
        """Cancel the started task and wait for it to unwind."""
        self._running = False
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
