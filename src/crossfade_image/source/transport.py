"""
Transport
=========

Byte transport used by FrameSource to fetch an image payload.

This module provides the Transport protocol and HttpxTransport, the
default implementation on top of ``httpx.AsyncClient``.

Design Rules:
    - One GET per call, no retry built in
    - Returns (status_code, body) for any HTTP response, including non-200
    - Connection-level failures raise TransportError
    - Status interpretation is left to FrameSource
"""

import logging
from typing import Mapping, Optional, Protocol, Tuple

import httpx

from crossfade_image.errors import TransportError


logger = logging.getLogger(__name__)


class Transport(Protocol):
    """
    Protocol for byte transports.

    Implementations must provide an async ``fetch`` method returning the
    HTTP status code and body bytes, or raise TransportError.
    """

    async def fetch(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Tuple[int, bytes]:
        """
        Fetch ``url``.

        Args:
            url: Fully resolved URL
            headers: HTTP headers to send

        Returns:
            Tuple of (status_code, body bytes)

        Raises:
            TransportError: On connection failure or timeout
        """
        ...


class HttpxTransport:
    """
    Transport backed by a shared ``httpx.AsyncClient``.

    The client is created lazily on first fetch and reused for every
    request until ``aclose`` is called.

    Attributes:
        timeout: Request timeout in seconds
        follow_redirects: Whether redirects are followed
        user_agent: Value of the User-Agent header, if set

    Example:
        transport = HttpxTransport(timeout=10.0)
        status, body = await transport.fetch("https://example.com/a.png")
        await transport.aclose()
    """

    def __init__(
        self,
        timeout: float = 10.0,
        follow_redirects: bool = True,
        user_agent: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self.user_agent = user_agent
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"User-Agent": self.user_agent} if self.user_agent else None
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=self.follow_redirects,
                headers=headers,
            )
            logger.info(
                f"HttpxTransport client created: timeout={self.timeout}s, "
                f"follow_redirects={self.follow_redirects}"
            )
        return self._client

    async def fetch(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Tuple[int, bytes]:
        client = self._get_client()
        try:
            response = await client.get(url, headers=dict(headers) if headers else None)
        except httpx.TimeoutException as e:
            raise TransportError(f"Timeout fetching {url}: {e}", url=url) from e
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP error fetching {url}: {e}", url=url) from e

        return response.status_code, response.content

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            logger.info("HttpxTransport client closed")
        self._client = None
