"""
Error Taxonomy
==============

Exceptions raised by the image resolution engine.

Hierarchy:
    CrossfadeImageError
        ConfigurationError       - malformed request (empty url) at key construction
            InvalidRequestError  - FrameSource precondition failure
        TransportError           - network-level failure reported by a Transport
            FetchError           - fetch failed for a key (transport, status, empty body)
        DecodeError              - payload fetched but not a valid image

Every failure that reaches a Subscription is converged into a single
FetchFailed value, which is what observers receive.

Design Rules:
    - Errors carry enough context (key, status, url) for diagnostics
    - Causes are chained with ``raise ... from`` and kept on FetchFailed.cause
    - FetchFailed is a value delivered to observers, never raised
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from crossfade_image.models.request import RequestKey


class CrossfadeImageError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(CrossfadeImageError):
    """
    Raised when a request cannot be turned into a RequestKey.

    Attributes:
        url: The offending url (may be empty or None)
        scale: The requested scale
    """

    def __init__(self, message: str, url: Optional[str] = None, scale: float = 1.0) -> None:
        super().__init__(message)
        self.url = url
        self.scale = scale


class InvalidRequestError(ConfigurationError):
    """Raised by FrameSource when asked to load a key without a usable url."""


class TransportError(CrossfadeImageError):
    """
    Network-level failure.

    Attributes:
        url: Resolved URL of the request
        status: HTTP status code, if a response was received
    """

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class FetchError(TransportError):
    """
    Fetching bytes for a key failed.

    Covers transport errors, non-200 responses and zero-length bodies.
    """

    def __init__(
        self,
        message: str,
        key: "RequestKey",
        url: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message, url=url, status=status)
        self.key = key

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base} (key={self.key!r}, status={self.status}, url={self.url})"


class DecodeError(CrossfadeImageError):
    """Raised when fetched bytes cannot be decoded into frames."""

    def __init__(self, message: str, key: Optional["RequestKey"] = None) -> None:
        super().__init__(message)
        self.key = key


@dataclass(frozen=True)
class FetchFailed:
    """
    Converged failure signal delivered to subscription observers.

    Attributes:
        key: The RequestKey that failed
        cause: Underlying exception, or None when served from the FailureRegistry
        memoized: True if no fetch was attempted because the key already failed
    """

    key: "RequestKey"
    cause: Optional[BaseException] = None
    memoized: bool = False

    def __str__(self) -> str:
        if self.memoized:
            return f"FetchFailed({self.key}, previously failed)"
        return f"FetchFailed({self.key}, {self.cause!r})"
