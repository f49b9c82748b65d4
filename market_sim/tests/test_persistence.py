"""Tests for the JSON snapshot store."""

from __future__ import annotations

import asyncio
import json

from market_sim.persistence import SnapshotStore


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _store(tmp_path, **kw) -> SnapshotStore:
    return SnapshotStore(tmp_path / "state.json", **kw)


# ---------------------------------------------------------------------------
# Save / load
# ---------------------------------------------------------------------------


class TestSaveLoad:
    def test_round_trip(self, tmp_path) -> None:
        s = _store(tmp_path)
        assert s.save({"tickCount": 4, "stock": {"sentimentIndex": 61.0}}, now=50.0)
        raw = s.load()
        assert raw["tickCount"] == 4
        assert raw["stock"] == {"sentimentIndex": 61.0}
        assert raw["savedAt"] == 50.0

    def test_no_temp_file_left(self, tmp_path) -> None:
        s = _store(tmp_path)
        s.save({"tickCount": 1})
        assert sorted(p.name for p in tmp_path.iterdir()) == ["state.json"]

    def test_creates_parent_dirs(self, tmp_path) -> None:
        s = SnapshotStore(tmp_path / "nested" / "dir" / "state.json")
        assert s.save({"tickCount": 1})
        assert s.load()["tickCount"] == 1

    def test_missing_file(self, tmp_path) -> None:
        assert _store(tmp_path).load() is None

    def test_corrupt_file(self, tmp_path) -> None:
        s = _store(tmp_path)
        s.path.write_text("{not json")
        assert s.load() is None

    def test_non_object_json(self, tmp_path) -> None:
        s = _store(tmp_path)
        s.path.write_text(json.dumps([1, 2, 3]))
        assert s.load() is None

    def test_unserializable_snapshot(self, tmp_path) -> None:
        s = _store(tmp_path)
        assert s.save({"bad": object()}) is False
        assert not s.path.exists()

    def test_clear(self, tmp_path) -> None:
        s = _store(tmp_path)
        s.clear()
        s.save({"tickCount": 1})
        s.clear()
        assert s.load() is None


# ---------------------------------------------------------------------------
# Auto-save timing
# ---------------------------------------------------------------------------


class TestAutoSave:
    def test_due_after_interval(self, tmp_path) -> None:
        s = _store(tmp_path, auto_save_interval=5.0)
        assert s.should_auto_save(now=100.0)
        s.save({}, now=100.0)
        assert not s.should_auto_save(now=104.0)
        assert s.should_auto_save(now=105.0)

    def test_manual_only(self, tmp_path) -> None:
        s = _store(tmp_path, auto_save_interval=0)
        assert not s.should_auto_save(now=1e9)


# ---------------------------------------------------------------------------
# Background writes
# ---------------------------------------------------------------------------


class TestBackground:
    def test_inline_without_loop(self, tmp_path) -> None:
        s = _store(tmp_path)
        assert s.save_in_background({"tickCount": 2}, now=10.0)
        assert s.load()["tickCount"] == 2

    def test_background_save_and_skip(self, tmp_path) -> None:
        s = _store(tmp_path)

        async def go() -> tuple[bool, bool]:
            first = s.save_in_background({"tickCount": 1}, now=10.0)
            second = s.save_in_background({"tickCount": 2}, now=11.0)
            await s.flush()
            return first, second

        first, second = asyncio.run(go())
        assert (first, second) == (True, False)
        assert s.skipped_saves == 1
        assert s.load()["tickCount"] == 1

    def test_flush_without_pending(self, tmp_path) -> None:
        asyncio.run(_store(tmp_path).flush())
