"""
Frame Data Model
=================

Decoded frame representation passed from FrameSource to observers.

Design Rules:
    - Immutable once produced
    - The image handle is opaque to the engine (a numpy array from the
      default codec, anything else from a custom one)
    - Superseded frames are simply dropped
    - Compared by identity; pixel arrays are never compared
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, eq=False)
class Frame:
    """
    One decoded image frame.

    Attributes:
        image: Opaque decoded-image handle
        scale: Scale from the RequestKey that produced the frame
        index: Position of the frame within its payload (0 for still images)
        duration: Seconds this frame is shown before the next (0.0 for stills)
    """

    image: Any
    scale: float = 1.0
    index: int = 0
    duration: float = 0.0

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixel data."""
        shape = getattr(self.image, "shape", None)
        return (
            f"Frame(index={self.index}, "
            f"scale={self.scale}, "
            f"duration={self.duration:.3f}, "
            f"shape={shape})"
        )
