"""Tests for the tick sources."""

import asyncio

import pytest

from hn_duel.duel.ticker import AsyncioTicker, ManualTicker


@pytest.mark.asyncio
async def test_manual_ticker_delivers_on_demand():
    ticker = ManualTicker()
    calls = []

    async def callback():
        calls.append(len(calls))

    handle = ticker.start(callback, 1.0)
    await ticker.tick(3)
    assert len(calls) == 3

    handle.cancel()
    handle.cancel()
    await ticker.tick(3)
    assert len(calls) == 3
    assert ticker.active == []


@pytest.mark.asyncio
async def test_manual_ticker_callback_can_cancel_itself():
    ticker = ManualTicker()
    calls = []

    async def callback():
        calls.append(1)
        handle.cancel()

    handle = ticker.start(callback, 1.0)
    await ticker.tick(5)

    assert calls == [1]


@pytest.mark.asyncio
async def test_asyncio_ticker_ticks_until_cancelled():
    ticker = AsyncioTicker()
    ticked = asyncio.Event()
    calls = []

    async def callback():
        calls.append(1)
        if len(calls) == 3:
            ticked.set()

    handle = ticker.start(callback, 0.001)
    await asyncio.wait_for(ticked.wait(), timeout=2)
    handle.cancel()
    await asyncio.sleep(0.01)
    count = len(calls)
    await asyncio.sleep(0.01)

    assert count >= 3
    assert len(calls) == count
    assert handle.task.done()


@pytest.mark.asyncio
async def test_asyncio_ticker_self_cancel_from_callback():
    ticker = AsyncioTicker()
    calls = []

    async def callback():
        calls.append(1)
        handle.cancel()

    handle = ticker.start(callback, 0.001)
    await asyncio.wait_for(handle.task, timeout=2)

    assert calls == [1]
    assert not handle.task.cancelled()


@pytest.mark.asyncio
async def test_asyncio_ticker_stops_on_callback_error():
    ticker = AsyncioTicker()
    calls = []

    async def callback():
        calls.append(1)
        raise RuntimeError("boom")

    handle = ticker.start(callback, 0.001)
    await asyncio.wait_for(handle.task, timeout=2)

    assert calls == [1]
    assert handle.cancelled
