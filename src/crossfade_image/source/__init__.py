"""
Source Module
=============

Fetching and decoding of image payloads.

    - Frame: Decoded frame data model
    - Transport / HttpxTransport: Byte transport (httpx)
    - Codec / PillowCodec: Bytes to frames (Pillow + numpy)
    - FrameSource: Fetch-and-decode pipeline for a RequestKey
"""

from crossfade_image.source.frame import Frame
from crossfade_image.source.transport import HttpxTransport, Transport
from crossfade_image.source.codec import Codec, PillowCodec
from crossfade_image.source.frame_source import FrameSource


__all__ = [
    "Frame",
    "Transport",
    "HttpxTransport",
    "Codec",
    "PillowCodec",
    "FrameSource",
]
