#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/backends/pymupdf.py
"""PyMuPDF (fitz) implementation of the PDF backend.

Text uses the PDF base-14 Helvetica and Courier families, so no fonts are
embedded. Link regions and the outline are buffered and written in
:meth:`PyMuPdfBackend.save`, because an internal link may point at a page
that does not exist yet when the link is placed.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Generator, Mapping, Optional

import fitz

from markpage.backends.base import LinkTarget, PdfBackend
from markpage.constants import RGB, FontStyle, ImageQuality, SvgHandling
from markpage.exceptions import AssetLoadError, BackendWriteError, MarkpageError
from markpage.utils.svg import svg_to_pdf

logger = logging.getLogger(__name__)

FONT_NAMES: dict[str, str] = {
    "normal": "helv",
    "bold": "hebo",
    "italic": "heit",
    "bolditalic": "hebi",
    "mono": "cour",
}

METADATA_KEYS = ("title", "author", "subject", "keywords", "creator", "producer")


@contextmanager
def _guard(operation: str) -> Generator[None, None, None]:
    """Convert unexpected PyMuPDF failures into BackendWriteError."""
    try:
        yield
    except MarkpageError:
        raise
    except Exception as e:
        raise BackendWriteError(f"PyMuPDF rejected {operation}: {e}", operation=operation, original_error=e) from e


class PyMuPdfBackend(PdfBackend):
    """PDF backend writing through PyMuPDF.

    Parameters
    ----------
    page_width : float
        Page width in points
    page_height : float
        Page height in points

    """

    def __init__(self, page_width: float, page_height: float):
        """Create an empty document."""
        super().__init__(page_width, page_height)
        self.doc = fitz.open()
        self._page: Optional[fitz.Page] = None
        self._page_number = 0
        self._toc: list[list[Any]] = []
        self._links: list[tuple[int, fitz.Rect, LinkTarget]] = []
        self._metadata: dict[str, str] = {}

    # Pages

    def add_page(self) -> int:
        """Append a page and make it current."""
        with _guard("add_page"):
            self._page = self.doc.new_page(width=self.page_width, height=self.page_height)
        self._page_number = self.doc.page_count
        return self._page_number

    def set_page(self, page: int) -> None:
        """Make an existing page current."""
        if not 1 <= page <= self.doc.page_count:
            raise BackendWriteError(f"Page {page} does not exist", operation="set_page")
        self._page = self.doc[page - 1]
        self._page_number = page

    def current_page(self) -> int:
        """Return the current page number."""
        return self._page_number

    def page_count(self) -> int:
        """Return the number of pages."""
        return self.doc.page_count

    def _require_page(self) -> fitz.Page:
        if self._page is None:
            raise BackendWriteError("No page has been added yet", operation="draw")
        return self._page

    # Text

    def measure_text(self, text: str, font: FontStyle = "normal", size: float = 11.0) -> float:
        """Return the width of ``text`` in points."""
        return fitz.get_text_length(text, fontname=FONT_NAMES[font], fontsize=size)

    def _draw_text(self, text: str, x: float, y: float, font: FontStyle, size: float, color: RGB) -> None:
        page = self._require_page()
        with _guard("draw_text"):
            page.insert_text(fitz.Point(x, y), text, fontname=FONT_NAMES[font], fontsize=size, color=color)

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
        """Draw a filled and/or stroked rectangle."""
        if w <= 0 or h <= 0:
            return
        page = self._require_page()
        with _guard("draw_rect"):
            page.draw_rect(
                fitz.Rect(x, y, x + w, y + h),
                color=stroke,
                fill=fill,
                width=line_width if stroke is not None else 0,
            )

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, color: RGB = (0, 0, 0), width: float = 0.5) -> None:
        """Draw a line segment."""
        page = self._require_page()
        with _guard("draw_line"):
            page.draw_line(fitz.Point(x1, y1), fitz.Point(x2, y2), color=color, width=width)

    def draw_image(self, data: bytes, x: float, y: float, w: float, h: float) -> None:
        """Embed raster image bytes."""
        page = self._require_page()
        try:
            page.insert_image(fitz.Rect(x, y, x + w, y + h), stream=data, keep_proportion=False)
        except Exception as e:
            raise AssetLoadError("image", message=f"Image could not be embedded: {e}", original_error=e) from e

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
        """Embed an SVG as vector content, rasterising when that fails or is requested."""
        if mode == "vector":
            page = self._require_page()
            try:
                with fitz.open(stream=svg_to_pdf(data), filetype="pdf") as src:
                    page.show_pdf_page(fitz.Rect(x, y, x + w, y + h), src, 0, keep_proportion=False)
                return
            except Exception as e:
                logger.warning(f"Vector SVG embedding failed, falling back to raster: {e}")
        super().draw_svg(data, x, y, w, h, mode="raster", quality=quality)

    # Navigation and metadata

    def add_outline_entry(self, parent: Any, title: str, page: int) -> Any:
        """Queue a bookmark; the handle is its nesting level."""
        level = 1 if parent is None else int(parent) + 1
        self._toc.append([level, title, page])
        return level

    def add_link_region(self, x: float, y: float, w: float, h: float, target: LinkTarget) -> None:
        """Queue a link rectangle on the current page."""
        self._require_page()
        self._links.append((self._page_number, fitz.Rect(x, y, x + w, y + h), target))

    def set_metadata(self, fields: Mapping[str, Optional[str]]) -> None:
        """Record document metadata."""
        for key in METADATA_KEYS:
            value = fields.get(key)
            if value:
                self._metadata[key] = value

    def _write_links(self) -> None:
        count = self.doc.page_count
        for page_number, rect, target in self._links:
            page = self.doc[page_number - 1]
            if target.page is not None:
                if target.page > count:
                    logger.warning(f"Dropping link to missing page {target.page} (document has {count})")
                    continue
                link = {"kind": fitz.LINK_GOTO, "from": rect, "page": target.page - 1, "to": fitz.Point(0, 0)}
            else:
                link = {"kind": fitz.LINK_URI, "from": rect, "uri": target.url}
            page.insert_link(link)

    def save(self) -> bytes:
        """Write links, outline and metadata, then serialize the document."""
        if self.doc.page_count == 0:
            self.add_page()
        with _guard("save"):
            self._write_links()
            if self._toc:
                self.doc.set_toc(self._toc)
            if self._metadata:
                self.doc.set_metadata(dict(self._metadata))
            data = self.doc.tobytes(garbage=3, deflate=True)
        logger.debug(
            "PyMuPDF document saved: %d pages, %d links, %d outline entries",
            self.doc.page_count,
            len(self._links),
            len(self._toc),
        )
        return data
