#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/assets.py
"""Asynchronous asset loading for images, SVGs and source documents.

The layout engine awaits every asset in document order, one at a time,
because page breaks and image fitting depend on the fetched dimensions.
:class:`AssetLoader` resolves three kinds of references:

- ``http``/``https`` URLs, fetched with an ``httpx.AsyncClient`` under a
  per-asset timeout and size limit
- ``file:`` URLs and plain paths, resolved against ``base_path``
- ``data:`` URIs, decoded in memory

Results and failures are cached per reference, so a dry-run layout pass and
the drawing pass see identical dimensions and a broken URL is only fetched
once. Setting ``MARKPAGE_DISABLE_NETWORK=1`` turns every remote fetch into an
:class:`~markpage.exceptions.AssetLoadError`.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import urljoin, urlsplit
from urllib.request import url2pathname

import httpx

from markpage.constants import (
    DEFAULT_ASSET_TIMEOUT,
    DEFAULT_MAX_ASSET_SIZE_BYTES,
    DEFAULT_USER_AGENT,
    DISABLE_NETWORK_ENV,
)
from markpage.exceptions import AssetLoadError
from markpage.utils.images import decode_data_uri, detect_image_format_from_bytes, is_data_uri, read_raster_info
from markpage.utils.svg import parse_svg_dimensions

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5


@dataclass(frozen=True)
class LoadedImage:
    """Decoded raster image.

    Parameters
    ----------
    width : int
        Natural width in pixels (laid out as points)
    height : int
        Natural height in pixels
    data : bytes
        Encoded image bytes
    format : str
        Image format such as "png" or "jpg"

    """

    width: int
    height: int
    data: bytes
    format: str


@dataclass(frozen=True)
class SvgDocument:
    """SVG source with its intrinsic size in CSS pixels."""

    width: float
    height: float
    data: bytes


def is_network_disabled() -> bool:
    """Check if network access is globally disabled via environment variable."""
    return os.getenv(DISABLE_NETWORK_ENV, "").lower() in ("true", "1", "yes", "on")


def is_remote_url(url: str) -> bool:
    """Return True for http(s) URLs."""
    return urlsplit(url).scheme.lower() in ("http", "https")


def create_http_client(
    timeout: float = DEFAULT_ASSET_TIMEOUT,
    max_redirects: int = MAX_REDIRECTS,
    user_agent: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the async HTTP client used for remote assets.

    Parameters
    ----------
    timeout : float
        Per-request timeout in seconds
    max_redirects : int
        Maximum number of redirects to follow
    user_agent : str, optional
        User-Agent header; defaults to ``MARKPAGE_USER_AGENT`` or the built-in agent
    transport : httpx.AsyncBaseTransport, optional
        Custom transport (tests pass ``httpx.MockTransport``)

    Returns
    -------
    httpx.AsyncClient
        Configured client

    """

    async def check_redirects(response: httpx.Response) -> None:
        if len(response.history) > max_redirects:
            raise AssetLoadError(str(response.url), message=f"Too many redirects: {len(response.history)}")

    effective_user_agent = user_agent or os.getenv("MARKPAGE_USER_AGENT") or DEFAULT_USER_AGENT
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        max_redirects=max_redirects,
        event_hooks={"response": [check_redirects]},
        headers={"User-Agent": effective_user_agent},
        transport=transport,
    )


class AssetLoader:
    """Fetch assets referenced by a Markdown document.

    Parameters
    ----------
    base_url : str, optional
        Base URL for relative references when no ``base_path`` is given
    base_path : str or Path, optional
        Directory for relative local paths
    timeout : float, default 30.0
        Timeout in seconds for each asset
    max_size_bytes : int
        Maximum size of a single asset
    client : httpx.AsyncClient, optional
        Client to use for remote fetches; the loader does not close it
    transport : httpx.AsyncBaseTransport, optional
        Transport for the loader's own client when ``client`` is not given

    Examples
    --------
        >>> async with AssetLoader(base_path="docs") as loader:
        ...     image = await loader.fetch_image("images/diagram.png")

    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        base_path: Union[str, Path, None] = None,
        timeout: float = DEFAULT_ASSET_TIMEOUT,
        max_size_bytes: int = DEFAULT_MAX_ASSET_SIZE_BYTES,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the loader with an empty cache."""
        self.base_url = base_url
        self.base_path = Path(base_path) if base_path is not None else None
        self.timeout = timeout
        self.max_size_bytes = max_size_bytes
        self._client = client
        self._owns_client = client is None
        self._transport = transport
        self._cache: dict[tuple[str, str], Any] = {}

    async def __aenter__(self) -> "AssetLoader":
        """Enter the async context."""
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        """Close the owned HTTP client."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if the loader created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = create_http_client(timeout=self.timeout, transport=self._transport)
            self._owns_client = True
        return self._client

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, reference: str) -> str:
        """Return the absolute URL or path a reference points at."""
        reference = reference.strip()
        if is_data_uri(reference) or is_remote_url(reference):
            return reference
        parts = urlsplit(reference)
        if parts.scheme.lower() == "file":
            return url2pathname(parts.path)
        if self.base_path is None and self.base_url:
            return urljoin(self.base_url, reference)
        path = Path(url2pathname(parts.path) if parts.path else reference)
        if not path.is_absolute() and self.base_path is not None:
            path = self.base_path / path
        return str(path)

    # ------------------------------------------------------------------
    # Raw fetching
    # ------------------------------------------------------------------

    async def _fetch_remote(self, url: str) -> bytes:
        if is_network_disabled():
            raise AssetLoadError(url, message=f"Network access is disabled via {DISABLE_NETWORK_ENV}")

        client = self._get_client()
        try:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                declared = response.headers.get("content-length")
                if declared and declared.isdigit() and int(declared) > self.max_size_bytes:
                    raise AssetLoadError(url, message=f"Asset too large: {declared} bytes (max {self.max_size_bytes})")

                chunks = []
                total = 0
                async for chunk in response.aiter_bytes():
                    total += len(chunk)
                    if total > self.max_size_bytes:
                        raise AssetLoadError(url, message=f"Asset exceeded {self.max_size_bytes} bytes while streaming")
                    chunks.append(chunk)
        except httpx.HTTPError as e:
            raise AssetLoadError(url, message=f"HTTP request failed for {url}: {e}", original_error=e) from e

        if total == 0:
            raise AssetLoadError(url, message=f"Empty response from {url}")
        logger.debug(f"Fetched {total} bytes from {url}")
        return b"".join(chunks)

    async def _read_local(self, path_str: str, reference: str) -> bytes:
        path = Path(path_str)
        try:
            size = path.stat().st_size
            if size > self.max_size_bytes:
                raise AssetLoadError(reference, message=f"File too large: {size} bytes (max {self.max_size_bytes})")
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise AssetLoadError(reference, message=f"Cannot read {path}: {e}", original_error=e) from e

    async def fetch_bytes(self, reference: str) -> bytes:
        """Fetch the raw bytes of any supported reference.

        Raises
        ------
        AssetLoadError
            On timeout, HTTP error, size limit or unreadable file

        """
        location = self.resolve(reference)
        if is_data_uri(location):
            try:
                data, _mime = decode_data_uri(location)
            except ValueError as e:
                raise AssetLoadError(reference[:64], message=f"Malformed data URI: {e}", original_error=e) from e
            if len(data) > self.max_size_bytes:
                raise AssetLoadError(reference[:64], message="Data URI payload too large")
            return data

        if is_remote_url(location):
            try:
                return await asyncio.wait_for(self._fetch_remote(location), timeout=self.timeout)
            except asyncio.TimeoutError as e:
                raise AssetLoadError(location, message=f"Timed out after {self.timeout}s: {location}") from e

        return await self._read_local(location, reference)

    async def _cached(self, kind: str, reference: str, loader: Any) -> Any:
        key = (kind, reference)
        if key in self._cache:
            cached = self._cache[key]
            if isinstance(cached, AssetLoadError):
                raise cached
            return cached
        try:
            result = await loader()
        except AssetLoadError as e:
            self._cache[key] = e
            raise
        self._cache[key] = result
        return result

    # ------------------------------------------------------------------
    # Typed fetching
    # ------------------------------------------------------------------

    async def fetch_text(self, reference: str) -> str:
        """Fetch a text document (such as Markdown source)."""

        async def load() -> str:
            data = await self.fetch_bytes(reference)
            return data.decode("utf-8-sig", errors="replace")

        return await self._cached("text", reference, load)

    async def fetch_image(self, reference: str) -> LoadedImage:
        """Fetch and decode a raster image.

        Raises
        ------
        AssetLoadError
            If the image cannot be fetched or decoded

        """

        async def load() -> LoadedImage:
            data = await self.fetch_bytes(reference)
            if detect_image_format_from_bytes(data) == "svg":
                raise AssetLoadError(reference, message=f"SVG content at a raster image reference: {reference}")
            try:
                width, height, image_format = read_raster_info(data)
            except ValueError as e:
                raise AssetLoadError(
                    reference, message=f"Cannot decode image {reference}: {e}", original_error=e
                ) from e
            return LoadedImage(width=width, height=height, data=data, format=image_format)

        return await self._cached("image", reference, load)

    async def fetch_svg(self, reference: str) -> SvgDocument:
        """Fetch an SVG document and read its intrinsic size.

        Raises
        ------
        AssetLoadError
            If the SVG cannot be fetched or is not well-formed

        """

        async def load() -> SvgDocument:
            data = await self.fetch_bytes(reference)
            try:
                width, height = parse_svg_dimensions(data)
            except ValueError as e:
                raise AssetLoadError(reference, message=f"Invalid SVG {reference}: {e}", original_error=e) from e
            return SvgDocument(width=width, height=height, data=data)

        return await self._cached("svg", reference, load)
