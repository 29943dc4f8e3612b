#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/backends/reportlab.py
"""ReportLab canvas implementation of the PDF backend.

A ReportLab canvas can only draw on the page it is currently building, while
the layout engine may revisit earlier pages (page number footers, title
pages). Drawing calls are therefore buffered per page and replayed onto a
canvas in :meth:`ReportLabBackend.save`. Coordinates are flipped from the
engine's top-left origin to ReportLab's bottom-left origin during replay.

SVG images are always rasterised through PyMuPDF, since the canvas has no
native SVG import.
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

from markpage.backends.base import LinkTarget, PdfBackend
from markpage.constants import DEPS_REPORTLAB, RGB, FontStyle
from markpage.exceptions import AssetLoadError, BackendWriteError
from markpage.utils.decorators import requires_dependencies

if TYPE_CHECKING:
    from reportlab.pdfgen.canvas import Canvas

logger = logging.getLogger(__name__)

FONT_NAMES: dict[str, str] = {
    "normal": "Helvetica",
    "bold": "Helvetica-Bold",
    "italic": "Helvetica-Oblique",
    "bolditalic": "Helvetica-BoldOblique",
    "mono": "Courier",
}

PageOp = Callable[["Canvas"], None]


def _destination(page: int) -> str:
    return f"page-{page}"


def _outline_key(index: int) -> str:
    return f"outline-{index}"


class ReportLabBackend(PdfBackend):
    """PDF backend writing through a ReportLab canvas.

    Parameters
    ----------
    page_width : float
        Page width in points
    page_height : float
        Page height in points

    Raises
    ------
    DependencyError
        If reportlab is not installed

    """

    @requires_dependencies("reportlab backend", DEPS_REPORTLAB)
    def __init__(self, page_width: float, page_height: float):
        """Initialize an empty buffered document."""
        super().__init__(page_width, page_height)
        self._pages: list[list[PageOp]] = []
        self._current = 0
        self._outline: list[tuple[str, int, int]] = []
        self._metadata: dict[str, str] = {}

    def _flip(self, y: float) -> float:
        return self.page_height - y

    def _queue(self, op: PageOp) -> None:
        if self._current == 0:
            raise BackendWriteError("No page has been added yet", operation="draw")
        self._pages[self._current - 1].append(op)

    # Pages

    def add_page(self) -> int:
        """Append a page."""
        self._pages.append([])
        self._current = len(self._pages)
        return self._current

    def set_page(self, page: int) -> None:
        """Make an existing page current."""
        if not 1 <= page <= len(self._pages):
            raise BackendWriteError(f"Page {page} does not exist", operation="set_page")
        self._current = page

    def current_page(self) -> int:
        """Return the current page number."""
        return self._current

    def page_count(self) -> int:
        """Return the number of pages."""
        return len(self._pages)

    # Text

    def measure_text(self, text: str, font: FontStyle = "normal", size: float = 11.0) -> float:
        """Return the width of ``text`` using the base-14 font metrics."""
        from reportlab.pdfbase.pdfmetrics import stringWidth

        return stringWidth(text, FONT_NAMES[font], size)

    def _draw_text(self, text: str, x: float, y: float, font: FontStyle, size: float, color: RGB) -> None:
        baseline = self._flip(y)

        def op(canvas: "Canvas") -> None:
            canvas.setFillColorRGB(*color)
            canvas.setFont(FONT_NAMES[font], size)
            canvas.drawString(x, baseline, text)

        self._queue(op)

    # Shapes and images

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
        """Queue a rectangle."""
        if w <= 0 or h <= 0 or (fill is None and stroke is None):
            return
        bottom = self._flip(y + h)

        def op(canvas: "Canvas") -> None:
            if fill is not None:
                canvas.setFillColorRGB(*fill)
            if stroke is not None:
                canvas.setStrokeColorRGB(*stroke)
                canvas.setLineWidth(line_width)
            canvas.rect(x, bottom, w, h, stroke=int(stroke is not None), fill=int(fill is not None))

        self._queue(op)

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, color: RGB = (0, 0, 0), width: float = 0.5) -> None:
        """Queue a line segment."""
        fy1, fy2 = self._flip(y1), self._flip(y2)

        def op(canvas: "Canvas") -> None:
            canvas.setStrokeColorRGB(*color)
            canvas.setLineWidth(width)
            canvas.line(x1, fy1, x2, fy2)

        self._queue(op)

    def draw_image(self, data: bytes, x: float, y: float, w: float, h: float) -> None:
        """Decode image bytes now and queue their placement."""
        from reportlab.lib.utils import ImageReader

        try:
            reader = ImageReader(io.BytesIO(data))
            reader.getSize()
        except Exception as e:
            raise AssetLoadError("image", message=f"Image could not be decoded: {e}", original_error=e) from e
        bottom = self._flip(y + h)

        def op(canvas: "Canvas") -> None:
            canvas.drawImage(reader, x, bottom, width=w, height=h, mask="auto")

        self._queue(op)

    # Navigation and metadata

    def add_outline_entry(self, parent: Any, title: str, page: int) -> Any:
        """Queue a bookmark; the handle is its zero-based nesting level."""
        level = 0 if parent is None else int(parent) + 1
        self._outline.append((title, page, level))
        return level

    def add_link_region(self, x: float, y: float, w: float, h: float, target: LinkTarget) -> None:
        """Queue a clickable rectangle."""
        rect = (x, self._flip(y + h), x + w, self._flip(y))

        def op(canvas: "Canvas") -> None:
            if target.page is not None:
                if target.page > len(self._pages):
                    logger.warning(f"Dropping link to missing page {target.page}")
                    return
                canvas.linkAbsolute("", _destination(target.page), Rect=rect)
            else:
                canvas.linkURL(target.url, rect, relative=0)

        self._queue(op)

    def set_metadata(self, fields: Mapping[str, Optional[str]]) -> None:
        """Record document metadata."""
        for key in ("title", "author", "subject", "keywords", "creator"):
            value = fields.get(key)
            if value:
                self._metadata[key] = value

    def _apply_metadata(self, canvas: "Canvas") -> None:
        setters = {
            "title": canvas.setTitle,
            "author": canvas.setAuthor,
            "subject": canvas.setSubject,
            "keywords": canvas.setKeywords,
            "creator": canvas.setCreator,
        }
        for key, value in self._metadata.items():
            setters[key](value)

    def save(self) -> bytes:
        """Replay every page onto a canvas and return the PDF bytes."""
        from reportlab.pdfgen.canvas import Canvas

        if not self._pages:
            self.add_page()

        buffer = io.BytesIO()
        try:
            canvas = Canvas(buffer, pagesize=(self.page_width, self.page_height))
            self._apply_metadata(canvas)
            entries_by_page: dict[int, list[int]] = {}
            for entry, (_title, page, _level) in enumerate(self._outline):
                entries_by_page.setdefault(page, []).append(entry)

            for index, ops in enumerate(self._pages, start=1):
                canvas.bookmarkPage(_destination(index))
                # ReportLab identifies outline entries by their destination key
                for entry in entries_by_page.get(index, []):
                    canvas.bookmarkPage(_outline_key(entry))
                for op in ops:
                    op(canvas)
                canvas.showPage()

            # Outline entries must be registered in document order after all
            # destinations exist
            for entry, (title, _page, level) in enumerate(self._outline):
                canvas.addOutlineEntry(title, _outline_key(entry), level=level, closed=False)
            if self._outline:
                canvas.showOutline()

            canvas.save()
        except Exception as e:
            raise BackendWriteError(
                f"ReportLab failed to write the document: {e}", operation="save", original_error=e
            ) from e

        logger.debug(f"ReportLab document saved: {len(self._pages)} pages, {len(self._outline)} outline entries")
        return buffer.getvalue()
