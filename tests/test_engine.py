"""
Image Engine Tests
==================

Composition root wiring, shared services and shutdown.
"""

import asyncio

from crossfade_image.config import FadeConfig, HttpConfig, Settings
from crossfade_image.engine import ImageEngine
from crossfade_image.models.view import Phase
from crossfade_image.phase.clock import AsyncioFadeClock, ManualFadeClock

from conftest import MISSING_URL, OK_URL, FakeCodec, FakeTransport, settle


def make_engine(**settings_overrides):
    transport = FakeTransport({MISSING_URL: (404, b"")})
    engine = ImageEngine(
        settings=Settings(**settings_overrides),
        transport=transport,
        codec=FakeCodec(),
    )
    return engine, transport


def test_request_uses_configured_fade_defaults():
    engine, _ = make_engine(
        fade=FadeConfig(fade_in_duration=1.2, fade_in_curve="linear"),
        http=HttpConfig(default_headers={"X-Client": "gallery"}),
    )
    request = engine.request(OK_URL, has_placeholder_view=True)
    assert request.fade_in_duration == 1.2
    assert request.fade_in_curve == "linear"
    assert request.fade_out_duration == 0.3
    assert request.headers == {"X-Client": "gallery"}
    assert request.has_placeholder_view


def test_images_share_pool_and_registry():
    engine, transport = make_engine()

    async def scenario():
        first = engine.create(engine.request(OK_URL), clock=ManualFadeClock())
        second = engine.create(engine.request(OK_URL), clock=ManualFadeClock())
        await settle()
        return first, second

    first, second = asyncio.run(scenario())
    assert first.pool is second.pool is engine.pool
    assert first.failures is engine.failures
    assert transport.calls_for(OK_URL) == 1


def test_default_clock_uses_configured_tick_interval():
    engine, _ = make_engine()

    async def scenario():
        image = engine.create(engine.request(OK_URL))
        clock = image.controller.clock
        image.dispose()
        return clock

    clock = asyncio.run(scenario())
    assert isinstance(clock, AsyncioFadeClock)
    assert clock.tick_interval == engine.settings.clock.tick_interval_seconds


def test_fade_completes_on_asyncio_clock():
    engine, _ = make_engine(fade=FadeConfig(fade_in_duration=0.05))

    async def scenario():
        done = asyncio.Event()
        holder = {}

        def on_change():
            image = holder.get("image")
            if image is not None and image.phase is Phase.COMPLETED:
                done.set()

        holder["image"] = engine.create(engine.request(OK_URL), on_change=on_change)
        await asyncio.wait_for(done.wait(), timeout=2.0)
        return holder["image"]

    image = asyncio.run(scenario())
    assert image.controller.history[-1] is Phase.COMPLETED
    assert image.current_view().fade_coefficient == 1.0


def test_metrics():
    engine, _ = make_engine()

    async def scenario():
        ok = engine.create(engine.request(OK_URL), clock=ManualFadeClock())
        engine.create(engine.request(MISSING_URL), clock=ManualFadeClock())
        await settle()
        ok.dispose()
        engine.create(engine.request(MISSING_URL), clock=ManualFadeClock())

    asyncio.run(scenario())
    metrics = engine.metrics()
    assert metrics["fetches_started"] == 2
    assert metrics["fetches_failed"] == 1
    assert metrics["frames_delivered"] == 1
    assert metrics["short_circuits"] == 0
    assert metrics["live_subscriptions"] == 1
    assert metrics["failed_keys"] == 1


def test_aclose_closes_live_subscriptions():
    engine, transport = make_engine()

    async def scenario():
        transport.gate = asyncio.Event()
        async with engine:
            image = engine.create(engine.request(OK_URL), clock=ManualFadeClock())
            await settle()
            subscription = image.subscription
        return subscription

    subscription = asyncio.run(scenario())
    assert not subscription.active
    assert len(engine.pool) == 0
