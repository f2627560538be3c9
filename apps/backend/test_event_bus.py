"""
Tests for event publication to sync and async subscribers.
"""

import asyncio

from agents.application.event_bus import EventBus, Events


def test_sync_and_async_handlers_receive_events():
    bus = EventBus()
    seen = []

    def on_state(data):
        seen.append(('sync', data['state']))

    async def on_state_async(data):
        await asyncio.sleep(0)
        seen.append(('async', data['state']))

    bus.subscribe(Events.SLIDE_IMAGE_STATE, on_state)
    bus.subscribe(Events.SLIDE_IMAGE_STATE, on_state_async)
    asyncio.run(bus.emit(Events.SLIDE_IMAGE_STATE, {'slide_id': 's1', 'state': 'loading'}))

    assert seen == [('sync', 'loading'), ('async', 'loading')]
    assert bus.has_subscribers(Events.SLIDE_IMAGE_STATE)
    assert not bus.has_subscribers(Events.CREDITS_EXHAUSTED)


def test_failing_handlers_do_not_reach_emitter():
    bus = EventBus()
    seen = []

    def broken(data):
        raise RuntimeError("sync boom")

    async def broken_async(data):
        raise RuntimeError("async boom")

    bus.subscribe(Events.CREDITS_EXHAUSTED, broken)
    bus.subscribe(Events.CREDITS_EXHAUSTED, broken_async)
    bus.subscribe(Events.CREDITS_EXHAUSTED, seen.append)

    asyncio.run(bus.emit(Events.CREDITS_EXHAUSTED, {'max': 20}))

    assert seen == [{'max': 20}]


def test_unsubscribe():
    bus = EventBus()
    seen = []
    bus.subscribe(Events.GENERATION_COMPLETE, seen.append)
    bus.unsubscribe(Events.GENERATION_COMPLETE, seen.append)

    asyncio.run(bus.emit(Events.GENERATION_COMPLETE, {'successes': 1}))

    assert seen == []
