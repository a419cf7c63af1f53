"""Tests for the stop index store."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest

from mta_realtime.services.stops.loader import ReferenceLoadError, StopReferenceLoader
from mta_realtime.services.stops.store import StopIndexStore

from .fixtures.pipeline_fixture import STOPS_TXT


@pytest.fixture
def stops_file(tmp_path: Path) -> Path:
    path = tmp_path / "stops.txt"
    path.write_text(STOPS_TXT, encoding="utf-8")
    return path


class TestStopIndexStore:
    def test_initially_empty(self) -> None:
        store = StopIndexStore("stops.txt")
        assert store.current is None
        assert store.get_status()["loaded"] is False

    @pytest.mark.asyncio
    async def test_reload_publishes_index(self, stops_file: Path) -> None:
        store = StopIndexStore(str(stops_file))

        index = await store.reload()

        assert store.current is index
        assert len(index) == 3
        status = store.get_status()
        assert status["loaded"] is True
        assert status["stop_count"] == 3
        assert status["last_error"] is None

    @pytest.mark.asyncio
    async def test_reload_replaces_whole_index(self, stops_file: Path) -> None:
        store = StopIndexStore(str(stops_file))
        old = await store.reload()

        stops_file.write_text("h1,h2,h3,h4\n101N,Renamed,40.7557,-73.9862\n", encoding="utf-8")
        new = await store.reload()

        assert new is not old
        assert store.current is new
        assert set(new) == {"101N"}
        # Readers holding the previous index keep a complete, unchanged view
        assert set(old) == {"101N", "L01N", "L02N"}
        assert old["101N"].name == "Times Sq"

    @pytest.mark.asyncio
    async def test_failed_reload_keeps_previous_index(self, stops_file: Path) -> None:
        store = StopIndexStore(str(stops_file))
        old = await store.reload()
        stops_file.unlink()

        with pytest.raises(ReferenceLoadError):
            await store.reload()

        assert store.current is old
        assert store.last_error is not None

    @pytest.mark.asyncio
    async def test_try_reload_does_not_raise(self, tmp_path: Path) -> None:
        store = StopIndexStore(str(tmp_path / "missing.txt"))

        assert await store.try_reload() is None
        assert store.current is None
        assert store.get_status()["last_error"]

    @pytest.mark.asyncio
    async def test_undecodable_table_degrades(self, stops_file: Path) -> None:
        store = StopIndexStore(str(stops_file))
        old = await store.reload()
        stops_file.write_bytes(b"h1,h2,h3,h4\n101N,Caf\xe9,40.7557,-73.9862\n")

        assert await store.try_reload() is None

        assert store.current is old
        assert "Cannot read stop table" in (store.last_error or "")

    @pytest.mark.asyncio
    async def test_close_cancels_reload_in_flight(self, stops_file: Path) -> None:
        store = StopIndexStore(str(stops_file))
        started = asyncio.Event()

        async def hanging_load(source: str, timeout_sec: float = 10.0):
            started.set()
            await asyncio.sleep(60)

        with patch.object(StopReferenceLoader, "load_source", side_effect=hanging_load):
            waiter = asyncio.create_task(store.reload())
            await started.wait()
            inner = store._reload_task

            waiter.cancel()
            await store.close()
            with pytest.raises(asyncio.CancelledError):
                await waiter

        assert inner is not None
        assert inner.cancelled()
        assert store.current is None

    @pytest.mark.asyncio
    async def test_close_without_reload_is_noop(self) -> None:
        store = StopIndexStore("stops.txt")
        await store.close()
        assert store.current is None

    @pytest.mark.asyncio
    async def test_concurrent_reloads_share_one_load(self, stops_file: Path) -> None:
        store = StopIndexStore(str(stops_file))
        calls = 0

        async def slow_load(source: str, timeout_sec: float = 10.0):
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return StopReferenceLoader.load(STOPS_TXT, source=source)

        with patch.object(StopReferenceLoader, "load_source", side_effect=slow_load):
            first, second = await asyncio.gather(store.reload(), store.reload())

        assert calls == 1
        assert first is second is store.current
