"""
Image Engine
============

Process-level composition root.

Builds exactly one FailureRegistry, FrameSource and SubscriptionPool from
Settings and hands them by reference to every CrossfadeImage it creates.

Example:
    async with ImageEngine() as engine:
        image = engine.create(
            ImageRequest(url="https://example.com/a.png", has_placeholder_view=True),
            on_change=redraw,
        )
        ...
        image.dispose()
"""

import logging
from typing import Callable, Optional

from crossfade_image.cache.failures import FailureRegistry
from crossfade_image.cache.subscription import SubscriptionPool
from crossfade_image.config import Settings
from crossfade_image.facade import CrossfadeImage
from crossfade_image.models.request import ImageRequest
from crossfade_image.phase.clock import AsyncioFadeClock, FadeClock
from crossfade_image.source.codec import Codec, PillowCodec
from crossfade_image.source.frame_source import FrameSource
from crossfade_image.source.transport import HttpxTransport, Transport


logger = logging.getLogger(__name__)


class ImageEngine:
    """
    Owns the shared services behind every CrossfadeImage.

    Attributes:
        settings: Engine settings
        failures: Process-wide FailureRegistry
        source: FrameSource built from the transport and codec
        pool: SubscriptionPool shared by every image
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[Transport] = None,
        codec: Optional[Codec] = None,
        failures: Optional[FailureRegistry] = None,
    ) -> None:
        if settings is None:
            from crossfade_image.config import settings as default_settings

            settings = default_settings
        self.settings = settings

        if transport is None:
            transport = HttpxTransport(
                timeout=settings.http.timeout_seconds,
                follow_redirects=settings.http.follow_redirects,
                user_agent=settings.http.user_agent,
            )
        if codec is None:
            codec = PillowCodec(
                pace_animation=settings.decode.pace_animation,
                max_frames=settings.decode.max_frames,
            )

        self.transport = transport
        self.failures = failures if failures is not None else FailureRegistry()
        self.source = FrameSource(transport, codec, base_url=settings.http.base_url)
        self.pool = SubscriptionPool(self.source, self.failures)

        logger.info(
            f"ImageEngine initialized: transport={type(transport).__name__}, "
            f"codec={type(codec).__name__}"
        )

    def request(self, url: str, **overrides) -> ImageRequest:
        """Build an ImageRequest using this engine's fade defaults."""
        return ImageRequest.from_settings(url, self.settings, **overrides)

    def create(
        self,
        request: ImageRequest,
        on_change: Optional[Callable[[], None]] = None,
        clock: Optional[FadeClock] = None,
    ) -> CrossfadeImage:
        """
        Create a CrossfadeImage bound to this engine's shared services.

        Must be called from a running event loop.

        Args:
            request: Request to resolve
            on_change: Called after every phase, frame or fade tick change
            clock: Fade clock; defaults to an AsyncioFadeClock

        Returns:
            The new CrossfadeImage

        Raises:
            ConfigurationError: If the request url is empty
        """
        if clock is None:
            clock = AsyncioFadeClock(tick_interval=self.settings.clock.tick_interval_seconds)
        return CrossfadeImage(
            request,
            pool=self.pool,
            failures=self.failures,
            clock=clock,
            on_change=on_change,
        )

    def metrics(self) -> dict:
        """Pool metrics plus registry and live-subscription counts."""
        data = self.pool.metrics.to_dict()
        data["live_subscriptions"] = len(self.pool)
        data["failed_keys"] = len(self.failures)
        return data

    async def aclose(self) -> None:
        """Close every live subscription and the transport."""
        closed = self.pool.close_all()
        aclose = getattr(self.transport, "aclose", None)
        if aclose is not None:
            await aclose()
        logger.info(f"ImageEngine closed ({closed} live subscriptions cancelled)")

    async def __aenter__(self) -> "ImageEngine":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
