"""
Codec and Transport Tests
=========================

PillowCodec against real encoded payloads; HttpxTransport against
httpx.MockTransport.
"""

import asyncio
from io import BytesIO

import httpx
import numpy as np
import pytest
from PIL import Image

from crossfade_image.errors import DecodeError, TransportError
from crossfade_image.source.codec import PillowCodec
from crossfade_image.source.transport import HttpxTransport


def png_bytes(size=(4, 3), color=(255, 0, 0)):
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def gif_bytes(colors, duration_ms=20):
    pages = [Image.new("RGB", (2, 2), color) for color in colors]
    buffer = BytesIO()
    pages[0].save(
        buffer,
        format="GIF",
        save_all=True,
        append_images=pages[1:],
        duration=duration_ms,
        loop=0,
    )
    return buffer.getvalue()


async def decode_all(codec, data, scale=1.0):
    return [frame async for frame in codec.decode(data, scale)]


class TestPillowCodec:

    def test_still_image(self):
        frames = asyncio.run(decode_all(PillowCodec(), png_bytes(), scale=2.0))
        assert len(frames) == 1
        frame = frames[0]
        assert frame.image.shape == (3, 4, 4)
        assert frame.image.dtype == np.uint8
        assert tuple(frame.image[0, 0]) == (255, 0, 0, 255)
        assert frame.scale == 2.0
        assert frame.index == 0

    def test_animated_gif(self):
        data = gif_bytes([(255, 0, 0), (0, 255, 0), (0, 0, 255)], duration_ms=40)
        frames = asyncio.run(decode_all(PillowCodec(pace_animation=False), data))
        assert [frame.index for frame in frames] == [0, 1, 2]
        assert frames[0].duration == pytest.approx(0.04)
        assert tuple(frames[1].image[0, 0])[:3] == (0, 255, 0)

    def test_paced_animation_still_delivers_all_frames(self):
        data = gif_bytes([(255, 0, 0), (0, 255, 0)], duration_ms=20)
        frames = asyncio.run(decode_all(PillowCodec(pace_animation=True), data))
        assert len(frames) == 2

    def test_max_frames_truncates(self):
        data = gif_bytes([(255, 0, 0), (0, 255, 0), (0, 0, 255)])
        frames = asyncio.run(decode_all(PillowCodec(pace_animation=False, max_frames=2), data))
        assert len(frames) == 2

    @pytest.mark.parametrize("data", [b"not an image", b"\x00" * 32])
    def test_corrupt_payload(self, data):
        with pytest.raises(DecodeError):
            asyncio.run(decode_all(PillowCodec(), data))

    def test_invalid_max_frames(self):
        with pytest.raises(ValueError):
            PillowCodec(max_frames=0)


class TestHttpxTransport:

    def test_returns_status_and_body(self):
        seen = {}

        def handler(request):
            seen[request.url.path] = request.headers.get("Authorization")
            if request.url.path == "/missing.png":
                return httpx.Response(404)
            return httpx.Response(200, content=b"payload")

        async def scenario():
            client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
            transport = HttpxTransport(client=client)
            ok = await transport.fetch("https://x/a.png", {"Authorization": "Bearer t"})
            missing = await transport.fetch("https://x/missing.png")
            await transport.aclose()
            assert not client.is_closed
            await client.aclose()
            return ok, missing

        ok, missing = asyncio.run(scenario())
        assert ok == (200, b"payload")
        assert missing[0] == 404
        assert seen == {"/a.png": "Bearer t", "/missing.png": None}

    def test_connection_error_becomes_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        async def scenario():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                transport = HttpxTransport(client=client)
                with pytest.raises(TransportError) as exc_info:
                    await transport.fetch("https://x/a.png")
            return exc_info.value

        error = asyncio.run(scenario())
        assert error.url == "https://x/a.png"
        assert isinstance(error.__cause__, httpx.ConnectError)

    def test_lazily_created_client_is_closed(self):
        async def scenario():
            transport = HttpxTransport(timeout=1.0, user_agent="gallery/1.0")
            client = transport._get_client()
            assert client.headers["User-Agent"] == "gallery/1.0"
            await transport.aclose()
            return client

        client = asyncio.run(scenario())
        assert client.is_closed
