"""
crossfade-image
===============

Asynchronous resolution engine for remotely addressed images.

A CrossfadeImage fetches and decodes an image, multiplexes its frames to
every interested view through a single-flight subscription, remembers
failures process-wide, and drives a deterministic phase machine that
cross-fades from a placeholder to the loaded content (or an error view).

Components:
    - models: ImageRequest, RequestKey, Phase, ImageView
    - source: Transport, Codec, FrameSource, Frame
    - cache: FailureRegistry, Subscription, SubscriptionPool
    - phase: curves, fade clocks, PhaseController
    - facade: CrossfadeImage
    - engine: ImageEngine composition root

Example:
    from crossfade_image import ImageEngine, ImageRequest

    async with ImageEngine() as engine:
        image = engine.create(ImageRequest(url="https://example.com/a.png"))
        view = image.current_view()
"""

__version__ = "0.1.0"

from crossfade_image.errors import (
    ConfigurationError,
    CrossfadeImageError,
    DecodeError,
    FetchError,
    FetchFailed,
    InvalidRequestError,
    TransportError,
)
from crossfade_image.models import FadeDirection, ImageRequest, ImageView, Phase, RequestKey, ViewContent
from crossfade_image.source import Frame, FrameSource, HttpxTransport, PillowCodec
from crossfade_image.cache import FailureRegistry, Subscription, SubscriptionPool
from crossfade_image.phase import AsyncioFadeClock, ManualFadeClock, PhaseController
from crossfade_image.facade import CrossfadeImage
from crossfade_image.engine import ImageEngine

__all__ = [
    "__version__",
    # Errors
    "CrossfadeImageError",
    "ConfigurationError",
    "InvalidRequestError",
    "TransportError",
    "FetchError",
    "DecodeError",
    "FetchFailed",
    # Models
    "ImageRequest",
    "RequestKey",
    "Phase",
    "FadeDirection",
    "ViewContent",
    "ImageView",
    # Source
    "Frame",
    "FrameSource",
    "HttpxTransport",
    "PillowCodec",
    # Cache
    "FailureRegistry",
    "Subscription",
    "SubscriptionPool",
    # Phase
    "AsyncioFadeClock",
    "ManualFadeClock",
    "PhaseController",
    # Facade
    "CrossfadeImage",
    "ImageEngine",
]
