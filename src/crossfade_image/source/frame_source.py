"""
Frame Source
============

Fetch-and-decode pipeline producing Frames for a RequestKey.

Pipeline:
    1. Precondition: a key without a usable url fails with
       InvalidRequestError before any network I/O
    2. GET the resolved url with the key's headers via the Transport
    3. Any transport failure, non-200 status or empty body -> FetchError
    4. Hand the bytes to the Codec and forward each frame as it is produced
    5. Any exception while decoding -> DecodeError

On every failure path the ``on_failure`` callback is invoked with the key
and the error before the error propagates. Nothing is retried.

Design Rules:
    - Suspends only on transport and codec awaits
    - Cancellation (CancelledError) passes straight through, no callback
    - Does NOT touch the FailureRegistry; the Subscription does that
"""

import logging
from typing import AsyncIterator, Callable, Optional
from urllib.parse import urljoin

from crossfade_image.errors import (
    CrossfadeImageError,
    DecodeError,
    FetchError,
    InvalidRequestError,
    TransportError,
)
from crossfade_image.models.request import RequestKey
from crossfade_image.source.codec import Codec
from crossfade_image.source.frame import Frame
from crossfade_image.source.transport import Transport


logger = logging.getLogger(__name__)


FailureCallback = Callable[[RequestKey, CrossfadeImageError], None]


class FrameSource:
    """
    Produces the frames for a key from a Transport and a Codec.

    Attributes:
        transport: Byte transport used for the GET
        codec: Decoder turning bytes into frames
        base_url: Base against which relative urls are resolved

    Example:
        source = FrameSource(HttpxTransport(), PillowCodec())

        async for frame in source.load(key):
            show(frame)
    """

    def __init__(
        self,
        transport: Transport,
        codec: Codec,
        base_url: Optional[str] = None,
    ) -> None:
        self.transport = transport
        self.codec = codec
        self.base_url = base_url

    def resolve_url(self, url: str) -> str:
        """Resolve ``url`` against ``base_url`` when one is configured."""
        if self.base_url:
            return urljoin(self.base_url, url)
        return url

    async def load(
        self,
        key: RequestKey,
        on_failure: Optional[FailureCallback] = None,
    ) -> AsyncIterator[Frame]:
        """
        Fetch and decode the image for ``key``.

        Args:
            key: Identity of the image to load
            on_failure: Called with (key, error) before an error propagates

        Yields:
            Frames in presentation order (one for stills, more for animations)

        Raises:
            InvalidRequestError: Key has no usable url
            FetchError: Transport failure, non-200 status or empty body
            DecodeError: Payload could not be decoded
        """
        if not key.url or not key.url.strip():
            error = InvalidRequestError(
                "Null or empty image url provided",
                url=key.url,
                scale=key.scale,
            )
            self._notify(on_failure, key, error)
            raise error

        resolved = self.resolve_url(key.url)
        logger.info(f"Fetching {resolved} (scale={key.scale})")

        try:
            status, body = await self.transport.fetch(resolved, key.headers)
        except TransportError as e:
            error = FetchError(f"HTTP request failed: {e}", key=key, url=resolved, status=e.status)
            self._notify(on_failure, key, error)
            raise error from e
        except Exception as e:
            error = FetchError(f"Unexpected transport failure: {e!r}", key=key, url=resolved)
            self._notify(on_failure, key, error)
            raise error from e

        if status != 200:
            error = FetchError(
                f"HTTP request failed, statusCode: {status}, {resolved}",
                key=key,
                url=resolved,
                status=status,
            )
            self._notify(on_failure, key, error)
            raise error

        if not body:
            error = FetchError(
                f"Image is an empty file: {resolved}",
                key=key,
                url=resolved,
                status=status,
            )
            self._notify(on_failure, key, error)
            raise error

        try:
            async for frame in self.codec.decode(body, key.scale):
                yield frame
        except DecodeError as e:
            if e.key is None:
                e.key = key
            self._notify(on_failure, key, e)
            raise
        except Exception as e:
            error = DecodeError(f"Unexpected error decoding {resolved}: {e}", key=key)
            self._notify(on_failure, key, error)
            raise error from e

    @staticmethod
    def _notify(
        on_failure: Optional[FailureCallback],
        key: RequestKey,
        error: CrossfadeImageError,
    ) -> None:
        logger.warning(f"Failed to load {key!r}: {error}")
        if on_failure is not None:
            on_failure(key, error)
