"""
Request Models
==============

Request configuration and the identity key derived from it.

Core Concepts:
    - ImageRequest: Everything a host supplies for one image (url, scale,
      headers, fade timings, which substitute views are configured)
    - RequestKey: Immutable identity of the remote resource

Identity Contract:
    Two keys are equal when url and scale are equal. Headers are carried
    along for the fetch but do not participate in equality or hashing, so
    requests that differ only by headers share one cache entry, one
    subscription and one failure record.

Example:
    from crossfade_image.models.request import ImageRequest, RequestKey

    request = ImageRequest(url="https://example.com/a.png", has_placeholder_view=True)
    key = RequestKey.from_request(request)
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from crossfade_image.errors import ConfigurationError

if TYPE_CHECKING:
    from crossfade_image.config import Settings


class ImageRequest(BaseModel):
    """
    Configuration surface accepted by a CrossfadeImage.

    All fields are required to be present except ``headers``. An empty url
    is accepted here and rejected when the RequestKey is built, so the
    failure surfaces as a ConfigurationError rather than a pydantic error.

    Attributes:
        url: Address of the remote image
        scale: Scale recorded on every produced frame
        headers: Extra HTTP headers for the fetch (not part of identity)
        fade_out_duration: Seconds to fade the placeholder out
        fade_out_curve: Curve name applied during fade-out
        fade_in_duration: Seconds to fade the target in
        fade_in_curve: Curve name applied during fade-in
        has_placeholder_view: Whether the host shows a placeholder while loading
        has_error_view: Whether the host shows an error view on failure
    """

    url: str = Field(..., description="Address of the remote image")
    scale: float = Field(default=1.0, gt=0, description="Scale of produced frames")
    headers: Optional[Dict[str, str]] = Field(
        default=None,
        description="HTTP headers sent with the fetch",
    )
    fade_out_duration: float = Field(
        default=0.3,
        ge=0,
        description="Placeholder fade-out duration in seconds",
    )
    fade_out_curve: str = Field(default="ease_out", description="Fade-out curve name")
    fade_in_duration: float = Field(
        default=0.7,
        ge=0,
        description="Target fade-in duration in seconds",
    )
    fade_in_curve: str = Field(default="ease_in", description="Fade-in curve name")
    has_placeholder_view: bool = Field(default=False, description="Placeholder configured")
    has_error_view: bool = Field(default=False, description="Error view configured")

    model_config = {"frozen": True}

    @field_validator("fade_out_curve", "fade_in_curve")
    @classmethod
    def _known_curve(cls, value: str) -> str:
        from crossfade_image.phase.curves import CURVES

        if value not in CURVES:
            raise ValueError(f"Unknown curve '{value}', expected one of {sorted(CURVES)}")
        return value

    @classmethod
    def from_settings(cls, url: str, settings: "Settings", **overrides) -> "ImageRequest":
        """
        Build a request using the configured fade defaults.

        Args:
            url: Address of the remote image
            settings: Loaded engine settings
            **overrides: Any ImageRequest field to override

        Returns:
            ImageRequest with defaults taken from ``settings.fade``
        """
        values = {
            "url": url,
            "fade_out_duration": settings.fade.fade_out_duration,
            "fade_out_curve": settings.fade.fade_out_curve,
            "fade_in_duration": settings.fade.fade_in_duration,
            "fade_in_curve": settings.fade.fade_in_curve,
        }
        if settings.http.default_headers:
            values["headers"] = dict(settings.http.default_headers)
        values.update(overrides)
        return cls.model_validate(values)


@dataclass(frozen=True)
class RequestKey:
    """
    Immutable cache and identity key for a remote image.

    Equality and hash use ``(url, scale)`` only.

    Attributes:
        url: Non-empty address of the remote image
        scale: Scale recorded on produced frames
        headers: Read-only mapping of HTTP headers, in insertion order

    Raises:
        ConfigurationError: If url is empty or missing
    """

    url: str
    scale: float = 1.0
    headers: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}),
        compare=False,
        hash=False,
    )

    def __post_init__(self) -> None:
        if not isinstance(self.url, str) or not self.url.strip():
            raise ConfigurationError(
                "Null or empty image url provided",
                url=self.url,
                scale=self.scale,
            )
        object.__setattr__(self, "scale", float(self.scale))
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers or {})))

    @classmethod
    def from_request(cls, request: ImageRequest) -> "RequestKey":
        """Derive the key for a request."""
        return cls(url=request.url, scale=request.scale, headers=request.headers or {})

    @property
    def identity(self) -> tuple:
        """The ``(url, scale)`` pair that defines equality."""
        return (self.url, self.scale)

    def __repr__(self) -> str:
        return f'RequestKey("{self.url}", scale={self.scale})'
