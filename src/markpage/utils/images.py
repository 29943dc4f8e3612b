#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/utils/images.py
"""Image handling utilities.

This module decodes ``data:`` URIs, sniffs image formats from magic bytes and
reads raster dimensions through PyMuPDF pixmaps.

"""

from __future__ import annotations

import base64
import binascii
import logging
from urllib.parse import unquote_to_bytes

import fitz

logger = logging.getLogger(__name__)

# Raster formats PyMuPDF can decode into a pixmap
RASTER_FORMATS = frozenset({"png", "jpg", "gif", "bmp", "tiff", "webp", "pnm", "jxr", "psd"})


def is_data_uri(uri: str) -> bool:
    """Check if a string is a data URI.

    Examples
    --------
        >>> is_data_uri("data:image/png;base64,...")
        True
        >>> is_data_uri("https://example.com/image.png")
        False

    """
    return bool(uri) and uri.startswith("data:")


def decode_data_uri(data_uri: str) -> tuple[bytes, str]:
    """Decode a data URI into its payload bytes and MIME type.

    Both base64 and URL-encoded payloads are supported.

    Parameters
    ----------
    data_uri : str
        URI of the form ``data:[<mime>][;base64],<data>``

    Returns
    -------
    tuple[bytes, str]
        Payload and lowercase MIME type (``text/plain`` when omitted)

    Raises
    ------
    ValueError
        If the URI is malformed or the base64 payload is invalid

    """
    if not is_data_uri(data_uri):
        raise ValueError("Not a data URI")

    comma_idx = data_uri.find(",", 5)
    if comma_idx == -1:
        raise ValueError("Data URI has no payload separator")

    header = data_uri[5:comma_idx]
    payload = data_uri[comma_idx + 1 :]
    parts = [part.strip() for part in header.split(";")]
    mime_type = (parts[0] or "text/plain").lower()

    if "base64" in parts[1:]:
        try:
            return base64.b64decode(payload, validate=True), mime_type
        except (ValueError, binascii.Error) as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e
    return unquote_to_bytes(payload), mime_type


def detect_image_format_from_bytes(data: bytes) -> str | None:
    r"""Detect image format from file content using magic bytes.

    Parameters
    ----------
    data : bytes
        Image file content (the first 32 bytes are enough)

    Returns
    -------
    str or None
        Image format (lowercase extension without dot) or None if unrecognized

    Notes
    -----
    Recognized signatures: PNG ``\x89PNG``, JPEG ``\xff\xd8\xff``, GIF
    ``GIF8``, WebP ``RIFF....WEBP``, BMP ``BM``, TIFF ``II*\x00``/``MM\x00*``
    and SVG (``<svg`` or ``<?xml`` after whitespace).

    """
    if not data or len(data) < 4:
        return None
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if data.startswith(b"\xff\xd8\xff"):
        return "jpg"
    if data.startswith(b"GIF87a") or data.startswith(b"GIF89a"):
        return "gif"
    if len(data) >= 12 and data.startswith(b"RIFF") and data[8:12] == b"WEBP":
        return "webp"
    if data.startswith(b"BM"):
        return "bmp"
    if data.startswith(b"II*\x00") or data.startswith(b"MM\x00*"):
        return "tiff"
    stripped = data[:512].lstrip()
    if stripped.startswith(b"<svg") or (stripped.startswith(b"<?xml") and b"<svg" in data[:4096]):
        return "svg"
    return None


def read_raster_info(data: bytes) -> tuple[int, int, str]:
    """Return ``(width, height, format)`` of raster image bytes.

    Raises
    ------
    ValueError
        If the bytes are not a decodable raster image

    """
    image_format = detect_image_format_from_bytes(data)
    if image_format == "svg":
        raise ValueError("SVG data is not a raster image")
    try:
        pixmap = fitz.Pixmap(data)
    except Exception as e:
        raise ValueError(f"Undecodable image data: {e}") from e
    width, height = pixmap.width, pixmap.height
    if width <= 0 or height <= 0:
        raise ValueError(f"Image has invalid dimensions {width}x{height}")
    return width, height, image_format or "png"
