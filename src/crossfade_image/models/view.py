"""
View State Models
=================

Phase enum and the read-only snapshot handed to the presentation layer.

Phases:
    START → WAITING → FADE_OUT → FADE_IN → COMPLETED

    START:     Initial; we do not yet know if the target is ready
    WAITING:   Waiting for the target image to load
    FADE_OUT:  Fading the placeholder out
    FADE_IN:   Fading the target (or error view) in
    COMPLETED: Absorbing; further frames do not re-trigger fades

Example:
    view = image.current_view()
    if view.content is ViewContent.PLACEHOLDER:
        draw(placeholder, opacity=view.fade_coefficient)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from crossfade_image.source.frame import Frame


class Phase(str, Enum):
    """Visual phase of a CrossfadeImage."""

    START = "start"
    WAITING = "waiting"
    FADE_OUT = "fadeOut"
    FADE_IN = "fadeIn"
    COMPLETED = "completed"


class FadeDirection(str, Enum):
    """Direction of a running fade: OUT runs progress 1→0, IN runs 0→1."""

    OUT = "out"
    IN = "in"


class ViewContent(str, Enum):
    """
    Which renderable the presentation layer should draw.

    Attributes:
        PLACEHOLDER: The host's placeholder view
        ERROR: The host's error view
        IMAGE: The current frame
        BLANK: Nothing (no frame and no applicable substitute view)
    """

    PLACEHOLDER = "placeholder"
    ERROR = "error"
    IMAGE = "image"
    BLANK = "blank"


@dataclass(frozen=True)
class ImageView:
    """
    Snapshot returned by ``CrossfadeImage.current_view()``.

    Attributes:
        phase: Current visual phase
        frame: Latest frame, if any
        has_error: Whether the request is errored
        fade_coefficient: Opacity in [0, 1]; 1.0 whenever no fade is in flight
        content: Which renderable to draw with ``fade_coefficient``
    """

    phase: Phase
    frame: Optional[Frame]
    has_error: bool
    fade_coefficient: float
    content: ViewContent
