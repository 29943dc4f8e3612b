#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/backends/base.py
"""Abstract PDF backend interface.

The layout engine never talks to a PDF library directly. It issues drawing,
measuring, outline and link calls against a :class:`PdfBackend`, which keeps
the placement logic testable against a recording backend and lets the same
layout drive PyMuPDF or ReportLab.

Coordinate conventions
----------------------
All lengths are PDF points. The origin is the top-left corner of the page and
``y`` grows downwards. For ``draw_text`` the ``y`` coordinate is the text
baseline. Pages are numbered from 1.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from markpage.constants import (
    FOOTER_FONT_SIZE,
    FOOTER_OFFSET,
    MUTED_TEXT_COLOR,
    SVG_RASTER_SCALE,
    TEXT_COLOR,
    RGB,
    Alignment,
    FontStyle,
    ImageQuality,
    SvgHandling,
)
from markpage.exceptions import AssetLoadError
from markpage.utils.svg import rasterize_svg
from markpage.utils.text import wrap_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkTarget:
    """Destination of a clickable region: an internal page or an external URL."""

    page: Optional[int] = None
    url: Optional[str] = None

    def __post_init__(self) -> None:
        """Ensure exactly one destination is set."""
        if (self.page is None) == (self.url is None):
            raise ValueError("LinkTarget needs exactly one of page or url")
        if self.page is not None and self.page < 1:
            raise ValueError(f"LinkTarget page must be >= 1, got {self.page}")


class PdfBackend(ABC):
    """Abstract base class for PDF writers used by the layout engine.

    Parameters
    ----------
    page_width : float
        Page width in points
    page_height : float
        Page height in points

    """

    def __init__(self, page_width: float, page_height: float):
        """Initialize page geometry."""
        self.page_width = page_width
        self.page_height = page_height

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    @abstractmethod
    def add_page(self) -> int:
        """Append a page, make it current and return its number."""

    @abstractmethod
    def set_page(self, page: int) -> None:
        """Make an existing page current."""

    @abstractmethod
    def current_page(self) -> int:
        """Return the current page number (0 before the first page)."""

    @abstractmethod
    def page_count(self) -> int:
        """Return the number of pages created so far."""

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    @abstractmethod
    def measure_text(self, text: str, font: FontStyle = "normal", size: float = 11.0) -> float:
        """Return the rendered width of ``text`` in points."""

    @abstractmethod
    def _draw_text(self, text: str, x: float, y: float, font: FontStyle, size: float, color: RGB) -> None:
        """Draw left-aligned text with its baseline at ``y``."""

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        font: FontStyle = "normal",
        size: float = 11.0,
        color: RGB = TEXT_COLOR,
        align: Alignment = "left",
    ) -> None:
        """Draw one line of text.

        ``x`` is the left edge for left (and justify) alignment, the centre
        for centre alignment and the right edge for right alignment.
        """
        if not text:
            return
        if align == "center":
            x -= self.measure_text(text, font, size) / 2
        elif align == "right":
            x -= self.measure_text(text, font, size)
        self._draw_text(text, x, y, font, size, color)

    def wrap_text(self, text: str, max_width: float, font: FontStyle = "normal", size: float = 11.0) -> list[str]:
        """Wrap text to lines no wider than ``max_width``."""
        return wrap_text(text, max_width, lambda s: self.measure_text(s, font, size))

    # ------------------------------------------------------------------
    # Shapes and images
    # ------------------------------------------------------------------

    @abstractmethod
    def draw_rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        fill: Optional[RGB] = None,
        stroke: Optional[RGB] = None,
        line_width: float = 0.5,
    ) -> None:
        """Draw a rectangle with its top-left corner at ``(x, y)``."""

    @abstractmethod
    def draw_line(
        self, x1: float, y1: float, x2: float, y2: float, color: RGB = TEXT_COLOR, width: float = 0.5
    ) -> None:
        """Draw a straight line."""

    @abstractmethod
    def draw_image(self, data: bytes, x: float, y: float, w: float, h: float) -> None:
        """Draw raster image bytes into the given box.

        Raises
        ------
        AssetLoadError
            If the image bytes cannot be decoded

        """

    def draw_svg(
        self,
        data: bytes,
        x: float,
        y: float,
        w: float,
        h: float,
        mode: SvgHandling = "vector",
        quality: ImageQuality = "high",
    ) -> None:
        """Draw an SVG document into the given box.

        The base implementation always rasterises; backends that can embed
        vector content override it and fall back to this path.

        Raises
        ------
        AssetLoadError
            If the SVG can be neither embedded nor rasterised

        """
        try:
            png = rasterize_svg(data, SVG_RASTER_SCALE[quality])
        except ValueError as e:
            raise AssetLoadError("svg", message=f"SVG rasterisation failed: {e}", original_error=e) from e
        self.draw_image(png, x, y, w, h)

    # ------------------------------------------------------------------
    # Navigation and metadata
    # ------------------------------------------------------------------

    @abstractmethod
    def add_outline_entry(self, parent: Any, title: str, page: int) -> Any:
        """Add a bookmark under ``parent`` (None for top level) and return its handle."""

    @abstractmethod
    def add_link_region(self, x: float, y: float, w: float, h: float, target: LinkTarget) -> None:
        """Make a rectangle of the current page clickable."""

    @abstractmethod
    def set_metadata(self, fields: Mapping[str, Optional[str]]) -> None:
        """Set document metadata (title, author, subject, keywords, creator)."""

    def stamp_page_numbers(self, template: str) -> None:
        """Draw a centred footer such as "Page 1 of 3" on every page."""
        total = self.page_count()
        current = self.current_page()
        for page in range(1, total + 1):
            self.set_page(page)
            label = template.format(page=page, total=total)
            self.draw_text(
                label,
                self.page_width / 2,
                self.page_height - FOOTER_OFFSET,
                size=FOOTER_FONT_SIZE,
                color=MUTED_TEXT_COLOR,
                align="center",
            )
        if current:
            self.set_page(current)

    @abstractmethod
    def save(self) -> bytes:
        """Finish the document and return the PDF bytes.

        Raises
        ------
        BackendWriteError
            If the document cannot be serialized

        """
