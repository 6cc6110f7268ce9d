"""Tests for the trailing-edge debouncer."""

import asyncio
import pytest

from propertysearch.services.debounce import Debouncer


class Recorder:
    def __init__(self):
        self.delivered = []

    def __call__(self, key, value):
        self.delivered.append((key, value))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_debouncer_delivers_last_value_once():
    """Test a burst of triggers delivers only the final value."""
    recorder = Recorder()
    debouncer = Debouncer(recorder, window_seconds=0.2)

    for text in ("k", "ko", "koc", "koch", "kochi"):
        debouncer.trigger("search", text)
        await asyncio.sleep(0.01)

    assert recorder.delivered == []
    await debouncer.wait()

    assert recorder.delivered == [("search", "kochi")]
    assert not debouncer.is_pending("search")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_debouncer_keys_are_independent():
    recorder = Recorder()
    debouncer = Debouncer(recorder, window_seconds=0.02)

    debouncer.trigger("search", "villa")
    debouncer.trigger("city", "Kochi")
    await debouncer.wait()

    assert sorted(recorder.delivered) == [("city", "Kochi"), ("search", "villa")]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_debouncer_cancel_drops_pending():
    recorder = Recorder()
    debouncer = Debouncer(recorder, window_seconds=0.02)

    debouncer.trigger("search", "villa")
    debouncer.cancel("search")
    await asyncio.sleep(0.05)

    assert recorder.delivered == []
    assert not debouncer.is_pending("search")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_debouncer_flush_delivers_immediately():
    recorder = Recorder()
    debouncer = Debouncer(recorder, window_seconds=10)

    debouncer.trigger("search", "plots")
    await debouncer.flush("search")

    assert recorder.delivered == [("search", "plots")]
    assert not debouncer.is_pending("search")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_debouncer_async_callback():
    delivered = []

    async def callback(key, value):
        await asyncio.sleep(0)
        delivered.append(value)

    debouncer = Debouncer(callback, window_seconds=0.01)
    debouncer.trigger("search", "flat")
    await debouncer.wait()

    assert delivered == ["flat"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_debouncer_callback_error_is_logged_not_raised():
    def callback(key, value):
        raise RuntimeError("boom")

    debouncer = Debouncer(callback, window_seconds=0.01)
    debouncer.trigger("search", "x")

    await debouncer.wait()

    assert not debouncer.is_pending("search")
