"""Tests for the single-slot debouncer."""

import asyncio
from contextlib import asynccontextmanager

import pytest

from treewatch.watchdog.debounce import Debouncer, QUIET_PERIOD
from treewatch.watchdog.events import RawEvent, EventType
from treewatch.watchdog.exceptions import AdapterError


@asynccontextmanager
async def running_debouncer(quiet_period=0.05):
    """Run a debouncer with a consumer draining its mailbox into a list."""
    debouncer = Debouncer(quiet_period)
    events, errors = asyncio.Queue(), asyncio.Queue()
    mailbox = asyncio.Queue(maxsize=1)
    delivered = []

    async def consume():
        while True:
            delivered.append(await mailbox.get())

    background = asyncio.ensure_future(debouncer.run(events, errors, mailbox))
    consumer = asyncio.ensure_future(consume())
    try:
        yield debouncer, events, delivered
    finally:
        background.cancel()
        consumer.cancel()
        await asyncio.gather(background, consumer, return_exceptions=True)


def test_default_quiet_period():
    assert QUIET_PERIOD == 0.5
    assert Debouncer().quiet_period == 0.5


def test_offer_overwrites_slot_and_resets_deadline():
    debouncer = Debouncer(0.5)
    first = RawEvent("/p/a.txt", EventType.CREATE)
    second = RawEvent("/p/b.txt", EventType.WRITE)

    assert debouncer.offer(first, now=10.0)
    assert debouncer.timeout(10.2) == pytest.approx(0.3)

    assert debouncer.offer(second, now=10.4)
    assert debouncer.pending.event is second
    assert debouncer.pending.count == 2
    assert debouncer.timeout(10.4) == pytest.approx(0.5)
    assert debouncer.timeout(11.0) == 0.0


def test_offer_ignores_other_events():
    debouncer = Debouncer(0.5)

    assert not debouncer.offer(RawEvent("/p/a.txt", EventType.OTHER), now=1.0)
    assert debouncer.pending is None
    assert debouncer.timeout(1.0) is None
    assert debouncer.get_stats()["events_ignored"] == 1


def test_take_clears_slot():
    debouncer = Debouncer(0.5)
    event = RawEvent("/p/a.txt", EventType.WRITE)
    debouncer.offer(event, now=0.0)

    assert debouncer.take() is event
    assert debouncer.pending is None
    assert debouncer.take() is None
    assert debouncer.get_stats()["events_coalesced"] == 1


@pytest.mark.asyncio
async def test_burst_on_one_path_delivers_last_event_once():
    async with running_debouncer() as (_, events, delivered):
        burst = [RawEvent("/p/a.txt", EventType.WRITE) for _ in range(10)]
        for event in burst:
            events.put_nowait(event)

        await asyncio.sleep(0.3)

    assert len(delivered) == 1
    assert delivered[0] is burst[-1]


@pytest.mark.asyncio
async def test_separated_events_are_delivered_in_order():
    first = RawEvent("/p/a.txt", EventType.CREATE)
    second = RawEvent("/p/b.txt", EventType.WRITE)

    async with running_debouncer() as (_, events, delivered):
        events.put_nowait(first)
        await asyncio.sleep(0.25)
        events.put_nowait(second)
        await asyncio.sleep(0.25)

    assert delivered == [first, second]


@pytest.mark.asyncio
async def test_latest_event_wins_across_paths():
    first = RawEvent("/p/a.txt", EventType.WRITE)
    second = RawEvent("/p/b.txt", EventType.WRITE)

    async with running_debouncer() as (_, events, delivered):
        events.put_nowait(first)
        events.put_nowait(second)
        await asyncio.sleep(0.3)

    assert delivered == [second]


@pytest.mark.asyncio
async def test_create_then_remove_delivers_removal():
    async with running_debouncer() as (_, events, delivered):
        events.put_nowait(RawEvent("/p/tmp.txt", EventType.CREATE))
        events.put_nowait(RawEvent("/p/tmp.txt", EventType.REMOVE))
        await asyncio.sleep(0.3)

    assert len(delivered) == 1
    assert delivered[0].path == "/p/tmp.txt"
    assert delivered[0].event_type is EventType.REMOVE


@pytest.mark.asyncio
async def test_new_event_rearms_timer():
    async with running_debouncer(quiet_period=0.3) as (_, events, delivered):
        events.put_nowait(RawEvent("/p/a.txt", EventType.WRITE))
        await asyncio.sleep(0.15)
        last = RawEvent("/p/a.txt", EventType.WRITE)
        events.put_nowait(last)
        await asyncio.sleep(0.2)

        # first deadline has passed but was re-armed
        assert delivered == []

        await asyncio.sleep(0.4)

    assert delivered == [last]


@pytest.mark.asyncio
async def test_other_events_neither_deliver_nor_overwrite():
    write = RawEvent("/p/a.txt", EventType.WRITE)

    async with running_debouncer() as (debouncer, events, delivered):
        events.put_nowait(write)
        events.put_nowait(RawEvent("/p", EventType.OTHER))
        await asyncio.sleep(0.3)
        events.put_nowait(RawEvent("/p/b.txt", EventType.OTHER))
        await asyncio.sleep(0.3)

    assert delivered == [write]
    assert debouncer.get_stats()["events_received"] == 3


@pytest.mark.asyncio
async def test_adapter_error_stops_loop():
    debouncer = Debouncer(0.05)
    events, errors, mailbox = asyncio.Queue(), asyncio.Queue(), asyncio.Queue(maxsize=1)
    errors.put_nowait(AdapterError("inotify overflow"))

    with pytest.raises(AdapterError, match="inotify overflow"):
        await asyncio.wait_for(debouncer.run(events, errors, mailbox), timeout=2)


@pytest.mark.asyncio
async def test_foreign_error_is_wrapped():
    debouncer = Debouncer(0.05)
    events, errors, mailbox = asyncio.Queue(), asyncio.Queue(), asyncio.Queue(maxsize=1)
    errors.put_nowait(OSError("too many open files"))

    with pytest.raises(AdapterError, match="too many open files"):
        await asyncio.wait_for(debouncer.run(events, errors, mailbox), timeout=2)
