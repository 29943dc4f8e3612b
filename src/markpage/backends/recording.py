#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/backends/recording.py
"""Backend that records operations instead of writing a PDF.

Used for the first (dry-run) layout pass, where only page numbers of
headings matter, and by tests that assert on draw calls. Text is measured
through another backend when one is given, so a dry run paginates exactly
like the real pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from markpage.backends.base import LinkTarget, PdfBackend
from markpage.constants import SVG_RASTER_SCALE, RGB, FontStyle, ImageQuality, SvgHandling
from markpage.exceptions import AssetLoadError
from markpage.utils.svg import rasterize_svg, svg_to_pdf

# Average Helvetica glyph width as a fraction of the font size
_FALLBACK_CHAR_WIDTH = 0.5


def _check_svg(data: bytes, quality: ImageQuality) -> None:
    """Raise AssetLoadError when an SVG can be neither embedded nor rasterised."""
    try:
        svg_to_pdf(data)
        return
    except ValueError:
        pass
    try:
        rasterize_svg(data, SVG_RASTER_SCALE[quality])
    except ValueError as e:
        raise AssetLoadError("svg", message=f"SVG rasterisation failed: {e}", original_error=e) from e


@dataclass(frozen=True)
class DrawCall:
    """One recorded backend operation."""

    name: str
    page: int
    args: dict[str, Any] = field(default_factory=dict)


class RecordingBackend(PdfBackend):
    """In-memory backend that records every operation.

    Parameters
    ----------
    page_width : float
        Page width in points
    page_height : float
        Page height in points
    measure_with : PdfBackend, optional
        Backend used for text measurement. Without one, widths are estimated
        from the character count.
    record : bool, default True
        Keep a list of operations; disable for dry runs that only paginate

    """

    def __init__(
        self,
        page_width: float,
        page_height: float,
        measure_with: Optional[PdfBackend] = None,
        record: bool = True,
    ):
        """Initialize an empty recording."""
        super().__init__(page_width, page_height)
        self.measure_with = measure_with
        self.record = record
        self.calls: list[DrawCall] = []
        self.outline: list[tuple[Any, str, int]] = []
        self.metadata: dict[str, Optional[str]] = {}
        self._pages = 0
        self._current = 0

    def _log(self, name: str, **args: Any) -> None:
        if self.record:
            self.calls.append(DrawCall(name, self._current, args))

    def calls_named(self, name: str) -> list[DrawCall]:
        """Return recorded calls with the given operation name."""
        return [call for call in self.calls if call.name == name]

    def add_page(self) -> int:
        """Append a page."""
        self._pages += 1
        self._current = self._pages
        self._log("add_page")
        return self._current

    def set_page(self, page: int) -> None:
        """Switch to an existing page."""
        if not 1 <= page <= self._pages:
            raise ValueError(f"Page {page} does not exist")
        self._current = page

    def current_page(self) -> int:
        """Return the current page number."""
        return self._current

    def page_count(self) -> int:
        """Return the number of pages."""
        return self._pages

    def measure_text(self, text: str, font: FontStyle = "normal", size: float = 11.0) -> float:
        """Measure through the delegate backend, or estimate."""
        if self.measure_with is not None:
            return self.measure_with.measure_text(text, font, size)
        return len(text) * size * _FALLBACK_CHAR_WIDTH

    def _draw_text(self, text: str, x: float, y: float, font: FontStyle, size: float, color: RGB) -> None:
        self._log("draw_text", text=text, x=x, y=y, font=font, size=size, color=color)

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
        """Record a rectangle."""
        self._log("draw_rect", x=x, y=y, w=w, h=h, fill=fill, stroke=stroke)

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, color: RGB = (0, 0, 0), width: float = 0.5) -> None:
        """Record a line."""
        self._log("draw_line", x1=x1, y1=y1, x2=x2, y2=y2)

    def draw_image(self, data: bytes, x: float, y: float, w: float, h: float) -> None:
        """Record an image placement."""
        self._log("draw_image", x=x, y=y, w=w, h=h, size=len(data))

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
        """Record an SVG placement.

        When measuring through a real backend, the SVG is converted the way
        that backend would convert it, so a document that cannot be drawn
        fails in the dry run too and both passes reserve the same space.
        """
        if self.measure_with is not None:
            _check_svg(data, quality)
        self._log("draw_svg", x=x, y=y, w=w, h=h, mode=mode, quality=quality)

    def add_outline_entry(self, parent: Any, title: str, page: int) -> Any:
        """Record a bookmark; the handle is its index."""
        self.outline.append((parent, title, page))
        return len(self.outline) - 1

    def add_link_region(self, x: float, y: float, w: float, h: float, target: LinkTarget) -> None:
        """Record a link rectangle."""
        self._log("add_link_region", x=x, y=y, w=w, h=h, target=target)

    def set_metadata(self, fields: Mapping[str, Optional[str]]) -> None:
        """Record metadata."""
        self.metadata.update(fields)

    def save(self) -> bytes:
        """Return no bytes; nothing is written."""
        return b""
