#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/utils/svg.py
"""SVG inspection and conversion helpers.

Dimensions are read with ``defusedxml`` so untrusted SVG files cannot expand
entities or reach external resources. Conversion to PDF vector content and
to PNG rasters goes through PyMuPDF's SVG importer.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

import defusedxml.ElementTree as ET
import fitz

from markpage.constants import SVG_DEFAULT_SIZE

logger = logging.getLogger(__name__)

_LENGTH = re.compile(r"^\s*([0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?)\s*([a-z%]*)\s*$", re.IGNORECASE)

# CSS units expressed in CSS pixels
_UNIT_TO_PX = {
    "": 1.0,
    "px": 1.0,
    "pt": 96.0 / 72.0,
    "pc": 16.0,
    "in": 96.0,
    "cm": 96.0 / 2.54,
    "mm": 96.0 / 25.4,
    "em": 16.0,
    "ex": 8.0,
}


def parse_svg_length(value: Optional[str]) -> Optional[float]:
    """Convert an SVG length attribute to CSS pixels.

    Percentages and unknown units return None.

    Examples
    --------
        >>> parse_svg_length("120")
        120.0
        >>> parse_svg_length("1in")
        96.0
        >>> parse_svg_length("50%") is None
        True

    """
    if not value:
        return None
    match = _LENGTH.match(value)
    if not match:
        return None
    unit = match.group(2).lower()
    if unit not in _UNIT_TO_PX:
        return None
    length = float(match.group(1)) * _UNIT_TO_PX[unit]
    return length if length > 0 else None


def parse_svg_dimensions(data: bytes) -> tuple[float, float]:
    """Read the intrinsic size of an SVG document.

    Explicit ``width``/``height`` attributes win; otherwise the ``viewBox``
    supplies them; a missing dimension is derived from the other through the
    viewBox aspect ratio, else defaults to 100.

    Parameters
    ----------
    data : bytes
        SVG document

    Returns
    -------
    tuple[float, float]
        Width and height in CSS pixels

    Raises
    ------
    ValueError
        If the data is not well-formed XML or its root is not ``<svg>``

    """
    try:
        root = ET.fromstring(data)
    except Exception as e:
        raise ValueError(f"Malformed SVG: {e}") from e

    if root.tag.rsplit("}", 1)[-1].lower() != "svg":
        raise ValueError(f"Root element is <{root.tag}>, not <svg>")

    width = parse_svg_length(root.get("width"))
    height = parse_svg_length(root.get("height"))

    view_w = view_h = None
    view_box = root.get("viewBox") or root.get("viewbox")
    if view_box:
        parts = view_box.replace(",", " ").split()
        if len(parts) == 4:
            try:
                view_w, view_h = float(parts[2]), float(parts[3])
            except ValueError:
                logger.debug("Ignoring unreadable viewBox %r", view_box)
            if view_w is not None and (view_w <= 0 or view_h <= 0):
                view_w = view_h = None

    if width is None and height is None and view_w is not None:
        width, height = view_w, view_h
    elif width is None and height is not None and view_w is not None:
        width = height * view_w / view_h
    elif height is None and width is not None and view_w is not None:
        height = width * view_h / view_w

    return width or SVG_DEFAULT_SIZE, height or SVG_DEFAULT_SIZE


def svg_to_pdf(data: bytes) -> bytes:
    """Convert an SVG document to a one-page PDF holding its vector content.

    Raises
    ------
    ValueError
        If PyMuPDF cannot import the SVG

    """
    try:
        with fitz.open(stream=data, filetype="svg") as svg_doc:
            return svg_doc.convert_to_pdf()
    except Exception as e:
        raise ValueError(f"SVG could not be converted to PDF: {e}") from e


def rasterize_svg(data: bytes, scale: float) -> bytes:
    """Render an SVG document to PNG bytes.

    Parameters
    ----------
    data : bytes
        SVG document
    scale : float
        Zoom factor applied to the intrinsic size

    Raises
    ------
    ValueError
        If PyMuPDF cannot import or render the SVG

    """
    try:
        with fitz.open(stream=data, filetype="svg") as svg_doc:
            pixmap = svg_doc[0].get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
            return pixmap.tobytes("png")
    except Exception as e:
        raise ValueError(f"SVG could not be rasterised: {e}") from e
