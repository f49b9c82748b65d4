"""JSON snapshot store for the simulator state.

Usage::

    store = SnapshotStore(path="market_sim_state.json")
    store.save(sim.snapshot())
    # After restart:
    raw = store.load()
    sim = MarketSimulator.from_snapshot(raw)

Writes go to a temp file and are renamed into place, so a crash mid-write
leaves the previous snapshot intact.  ``save_in_background`` hands the
write to a worker thread and skips (rather than queues) a save while the
previous one is still running, so it never delays the next heartbeat.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional

LOGGER = logging.getLogger(__name__)


class SnapshotStore:
    """Reads and writes simulator snapshots on disk.

    Parameters
    ----------
    path:
        Snapshot file location.
    auto_save_interval:
        Seconds between automatic saves.  0 = manual only.
    """

    def __init__(self, path: str | Path, auto_save_interval: float = 5.0) -> None:
        self._path = Path(path)
        self._auto_save_interval = auto_save_interval
        self._last_save_time = 0.0
        self._pending: Optional[asyncio.Task] = None
        self._skipped_saves = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def skipped_saves(self) -> int:
        return self._skipped_saves

    def should_auto_save(self, now: float | None = None) -> bool:
        """Check if an auto-save is due."""
        if self._auto_save_interval <= 0:
            return False
        if now is None:
            now = time.time()
        return (now - self._last_save_time) >= self._auto_save_interval

    # ── Synchronous IO ───────────────────────────────────────────

    def save(self, snapshot: Dict[str, Any], now: float | None = None) -> bool:
        """Write ``snapshot`` to disk.  Returns False (and logs) on failure."""
        if now is None:
            now = time.time()
        payload = dict(snapshot)
        payload["savedAt"] = now
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f)
            os.replace(tmp_path, self._path)
        except (OSError, TypeError, ValueError) as exc:
            LOGGER.error("SnapshotStore: failed to save %s: %s", self._path, exc)
            return False
        self._last_save_time = now
        return True

    def load(self) -> Dict[str, Any] | None:
        """Read the snapshot, or None if absent or unreadable."""
        if not self._path.exists():
            return None
        try:
            with open(self._path, encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            LOGGER.warning("SnapshotStore: ignoring unreadable snapshot %s: %s", self._path, exc)
            return None
        if not isinstance(raw, dict):
            LOGGER.warning("SnapshotStore: ignoring malformed snapshot %s", self._path)
            return None
        return raw

    def clear(self) -> None:
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass

    # ── Background writes ────────────────────────────────────────

    def save_in_background(self, snapshot: Dict[str, Any], now: float | None = None) -> bool:
        """Fire-and-forget save.

        With a running event loop the write runs via ``asyncio.to_thread``;
        without one it happens inline.  Returns False when skipped because a
        previous write is still in flight.
        """
        if now is None:
            now = time.time()
        if self._pending is not None and not self._pending.done():
            self._skipped_saves += 1
            return False
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return self.save(snapshot, now)
        # Claim the slot now so auto-save does not re-fire before the thread runs.
        self._last_save_time = now
        self._pending = loop.create_task(asyncio.to_thread(self.save, snapshot, now))
        return True

    async def flush(self) -> None:
        """Wait for an in-flight background save to finish."""
        if self._pending is not None:
            await self._pending
            self._pending = None
