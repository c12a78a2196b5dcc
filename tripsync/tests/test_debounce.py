"""
Debounce and stale-response dropping.
"""

import asyncio

import pytest

from tripsync.client.services.debounce import Debouncer


@pytest.mark.asyncio
async def test_only_last_keystroke_fetches():
    debouncer = Debouncer(delay_ms=20)
    fetched, applied = [], []

    def fetcher(text):
        async def fetch():
            fetched.append(text)
            return text.upper()
        return fetch

    for text in ["L", "Lo", "Lon", "Lona"]:
        debouncer.schedule("destination", fetcher(text), applied.append)
        await asyncio.sleep(0)

    await debouncer.drain()
    assert fetched == ["Lona"]
    assert applied == ["LONA"]


@pytest.mark.asyncio
async def test_stale_response_dropped():
    debouncer = Debouncer(delay_ms=0)
    slow_release = asyncio.Event()
    applied = []

    async def slow():
        await slow_release.wait()
        return "slow"

    async def fast():
        return "fast"

    debouncer.schedule("stay", slow, applied.append)
    await asyncio.sleep(0.01)  # slow fetch is now in flight
    debouncer.schedule("stay", fast, applied.append)
    await asyncio.sleep(0.01)
    slow_release.set()
    await debouncer.drain()

    assert applied == ["fast"]


@pytest.mark.asyncio
async def test_fields_are_independent():
    debouncer = Debouncer(delay_ms=0)
    applied = []

    async def value(v):
        return v

    debouncer.schedule("destination", lambda: value("d"), applied.append)
    debouncer.schedule("stay", lambda: value("s"), applied.append)
    await debouncer.drain()

    assert sorted(applied) == ["d", "s"]


@pytest.mark.asyncio
async def test_invalidate_drops_pending_result():
    debouncer = Debouncer(delay_ms=0)
    applied = []

    async def value():
        return "late"

    debouncer.schedule("destination", value, applied.append)
    debouncer.invalidate("destination")
    await debouncer.drain()

    assert applied == []
