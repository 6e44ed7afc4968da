"""
Test Configuration
==================

Pytest fixtures and fakes for crossfade_image.

Async behavior is exercised by running coroutines with ``asyncio.run``
inside plain tests; fixtures here never need a running loop.
"""

import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from crossfade_image.cache.failures import FailureRegistry
from crossfade_image.cache.subscription import SubscriptionPool
from crossfade_image.errors import DecodeError, TransportError
from crossfade_image.models.request import ImageRequest
from crossfade_image.phase.clock import ManualFadeClock
from crossfade_image.source.frame import Frame
from crossfade_image.source.frame_source import FrameSource


OK_URL = "https://x/ok.png"
MISSING_URL = "https://x/404.png"


class FakeTransport:
    """
    Transport returning scripted responses and recording every call.

    Responses map url -> (status, body) or an exception instance to raise.
    Unknown urls return (200, b"image-bytes"). Setting ``gate`` to an
    asyncio.Event (inside a running loop) stalls every fetch until it is set.
    """

    def __init__(self, responses: Optional[Dict[str, object]] = None) -> None:
        self.responses = responses or {}
        self.calls: List[Tuple[str, dict]] = []
        self.gate: Optional[asyncio.Event] = None

    async def fetch(self, url, headers=None):
        self.calls.append((url, dict(headers or {})))
        if self.gate is not None:
            await self.gate.wait()
        response = self.responses.get(url, (200, b"image-bytes"))
        if isinstance(response, BaseException):
            raise response
        return response

    def calls_for(self, url: str) -> int:
        return sum(1 for called, _ in self.calls if called == url)


class FakeCodec:
    """
    Codec yielding ``frame_count`` frames whose image is a string label.

    ``error`` makes decode raise after ``fail_after`` frames.
    """

    def __init__(self, frame_count: int = 1, error: Optional[Exception] = None, fail_after: int = 0) -> None:
        self.frame_count = frame_count
        self.error = error
        self.fail_after = fail_after
        self.decoded: List[bytes] = []

    async def decode(self, data, scale=1.0):
        self.decoded.append(data)
        for index in range(self.frame_count):
            if self.error is not None and index >= self.fail_after:
                raise self.error
            yield Frame(image=f"frame-{index}", scale=scale, index=index)
            await asyncio.sleep(0)
        if self.error is not None and self.fail_after >= self.frame_count:
            raise self.error


async def settle(rounds: int = 10) -> None:
    """Let pending tasks on the running loop make progress."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def transport():
    return FakeTransport(
        {
            MISSING_URL: (404, b""),
            "https://x/empty.png": (200, b""),
            "https://x/refused.png": TransportError("Connection refused", url="https://x/refused.png"),
        }
    )


@pytest.fixture
def codec():
    return FakeCodec()


@pytest.fixture
def failures():
    return FailureRegistry()


@pytest.fixture
def source(transport, codec):
    return FrameSource(transport, codec)


@pytest.fixture
def pool(source, failures):
    return SubscriptionPool(source, failures)


@pytest.fixture
def clock():
    return ManualFadeClock()


@pytest.fixture
def make_request():
    """Factory for ImageRequest with test-friendly defaults."""

    def _make(url: str = OK_URL, **overrides) -> ImageRequest:
        return ImageRequest(url=url, **overrides)

    return _make


@pytest.fixture
def corrupt_codec():
    return FakeCodec(error=DecodeError("not an image"))
