"""
Data Models
===========

Request, identity and view-state models.

Models:
    Request:
        - ImageRequest: Configuration surface of a CrossfadeImage
        - RequestKey: Immutable (url, scale) identity

    View:
        - Phase: Visual phase enum
        - FadeDirection: Direction of a running fade
        - ViewContent: Which renderable to draw
        - ImageView: Snapshot for the presentation layer
"""

from crossfade_image.models.request import ImageRequest, RequestKey
from crossfade_image.models.view import FadeDirection, ImageView, Phase, ViewContent

__all__ = [
    # Request
    "ImageRequest",
    "RequestKey",
    # View
    "Phase",
    "FadeDirection",
    "ViewContent",
    "ImageView",
]
