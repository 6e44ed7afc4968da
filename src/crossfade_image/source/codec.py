"""
Image Codec
===========

Decodes fetched bytes into a sequence of Frames.

This is the only place in the codebase that decodes images. The default
PillowCodec handles still and animated payloads uniformly: a still image
yields one frame, an animated GIF/WebP/APNG yields one frame per image in
the sequence.

Design Rules:
    - Decoding runs in a worker thread, never on the event loop
    - The whole payload is decoded before the first frame is yielded, so a
      corrupt payload produces no partial frame
    - Frames are RGBA numpy arrays (H, W, 4), dtype=uint8
    - Any Pillow/OS failure becomes DecodeError
    - Animated frames are paced by their own durations (single pass)
"""

import asyncio
import logging
from io import BytesIO
from typing import AsyncIterator, List, Protocol

import numpy as np
from PIL import Image, ImageSequence

from crossfade_image.errors import DecodeError
from crossfade_image.source.frame import Frame


logger = logging.getLogger(__name__)


class Codec(Protocol):
    """
    Protocol for image codecs.

    ``decode`` is an async generator producing at least one Frame for a
    valid payload, or raising DecodeError.
    """

    def decode(self, data: bytes, scale: float = 1.0) -> AsyncIterator[Frame]:
        """
        Decode ``data`` into frames.

        Args:
            data: Encoded image bytes
            scale: Scale to record on every frame

        Yields:
            Frame objects in presentation order
        """
        ...


class PillowCodec:
    """
    Pillow-backed codec producing RGBA numpy frames.

    Attributes:
        pace_animation: Sleep each frame's duration before yielding the next
        max_frames: Upper bound on frames decoded from one payload
    """

    def __init__(self, pace_animation: bool = True, max_frames: int = 500) -> None:
        if max_frames < 1:
            raise ValueError("max_frames must be >= 1")
        self.pace_animation = pace_animation
        self.max_frames = max_frames

    async def decode(self, data: bytes, scale: float = 1.0) -> AsyncIterator[Frame]:
        frames = await asyncio.to_thread(self._decode_all, data, scale)

        last = len(frames) - 1
        for frame in frames:
            yield frame
            if self.pace_animation and frame.index < last and frame.duration > 0:
                await asyncio.sleep(frame.duration)

    def _decode_all(self, data: bytes, scale: float) -> List[Frame]:
        """
        Decode every frame in ``data``.

        Raises:
            DecodeError: If Pillow cannot read the payload
        """
        try:
            with Image.open(BytesIO(data)) as img:
                frames: List[Frame] = []
                for index, page in enumerate(ImageSequence.Iterator(img)):
                    if index >= self.max_frames:
                        logger.warning(
                            f"Payload has more than {self.max_frames} frames, truncating"
                        )
                        break
                    rgba = np.array(page.convert("RGBA"), dtype=np.uint8)
                    duration_ms = page.info.get("duration", 0) or 0
                    frames.append(
                        Frame(
                            image=rgba,
                            scale=scale,
                            index=index,
                            duration=float(duration_ms) / 1000.0,
                        )
                    )
        except Image.DecompressionBombError as e:
            raise DecodeError(f"Image too large to decode: {e}") from e
        except (OSError, ValueError, SyntaxError, EOFError) as e:
            raise DecodeError(f"Failed to decode image ({len(data)} bytes): {e}") from e

        if not frames:
            raise DecodeError("Image payload contained no frames")

        # Validate shape
        for frame in frames:
            if frame.image.ndim != 3 or frame.image.shape[2] != 4:
                raise DecodeError(f"Invalid decoded shape: {frame.image.shape}")

        if len(frames) > 1:
            logger.debug(f"Decoded animated payload: {len(frames)} frames")
        return frames
