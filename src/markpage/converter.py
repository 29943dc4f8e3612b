#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/converter.py
"""Markdown to PDF orchestration.

:class:`MarkdownPdfConverter` sequences the stages of a conversion:

1. ``parse`` turns Markdown into a list of elements.
2. ``layout`` runs the element fold twice. The first pass draws onto a
   recording backend that measures text like the real backend, so every
   heading lands on its final page and the link index is complete. After
   ``LinkIndex.normalize`` the second pass draws onto the real backend and
   places link regions, so links that appear before their target heading
   (a table of contents, for example) still resolve.
3. ``finalize`` writes the outline, page number footers and metadata, then
   serializes the document.

Progress is reported through a callback ``(percent, status, detail)`` after
each stage and after every element of both layout passes.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from markpage.assets import AssetLoader
from markpage.backends import BackendFactory, PdfBackend, RecordingBackend, create_backend
from markpage.constants import (
    PROGRESS_DONE,
    PROGRESS_FINALIZE,
    PROGRESS_PARSED,
    PROGRESS_PASS_ONE,
    PROGRESS_PASS_TWO,
)
from markpage.exceptions import ValidationError
from markpage.layout import LayoutEngine, describe_element
from markpage.layout.engine import ElementCallback
from markpage.links import LinkIndex
from markpage.model import Element, Header
from markpage.options import PdfLayoutOptions
from markpage.outline import OutlineBuilder
from markpage.parser import parse_markdown
from markpage.progress import ProgressCallback, ProgressReporter
from markpage.utils.decorators import debug_timer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayoutSummary:
    """Result of a completed layout.

    Parameters
    ----------
    page_count : int
        Pages in the laid-out document (at least 1)
    link_index_size : int
        Number of anchor keys known to the link index

    """

    page_count: int
    link_index_size: int


class MarkdownPdfConverter:
    """Convert Markdown text into PDF bytes.

    Parameters
    ----------
    options : PdfLayoutOptions, optional
        Layout configuration; defaults to A4 portrait with 15 mm margins
    progress_callback : ProgressCallback, optional
        Called as ``callback(percent, status, detail)``; exceptions raised by
        the callback are logged and ignored
    asset_loader : AssetLoader, optional
        Loader for images and SVGs. One is created from the options when
        omitted and closed when ``convert_async`` finishes.
    backend_factory : callable, optional
        ``factory(page_width, page_height) -> PdfBackend``; defaults to the
        backend named by ``options.backend``

    Examples
    --------
        >>> converter = MarkdownPdfConverter(PdfLayoutOptions(paper_size="letter"))
        >>> pdf_bytes = converter.convert("# Title\\n\\nHello.")

    Step by step, for an embedder that reports its own progress:

        >>> elements = converter.parse(text)
        >>> summary = await converter.layout(elements)
        >>> pdf_bytes = converter.finalize()

    """

    def __init__(
        self,
        options: Optional[PdfLayoutOptions] = None,
        progress_callback: Optional[ProgressCallback] = None,
        asset_loader: Optional[AssetLoader] = None,
        backend_factory: Optional[BackendFactory] = None,
    ):
        """Initialize the converter; no backend is created until layout."""
        self.options = options or PdfLayoutOptions()
        self.progress = ProgressReporter(progress_callback)
        self._owns_loader = asset_loader is None
        self.assets = asset_loader or AssetLoader(
            base_url=self.options.base_url,
            base_path=self.options.base_path,
            timeout=self.options.asset_timeout,
            max_size_bytes=self.options.max_asset_size_bytes,
        )
        self.backend_factory = backend_factory or self._default_backend
        self.link_index = LinkIndex()
        self.outline = OutlineBuilder()
        self._backend: Optional[PdfBackend] = None
        self._summary: Optional[LayoutSummary] = None
        self._document_title: Optional[str] = None

    def _default_backend(self, page_width: float, page_height: float) -> PdfBackend:
        return create_backend(self.options.backend, page_width, page_height)

    @property
    def summary(self) -> Optional[LayoutSummary]:
        """Summary of the last layout, or None before layout."""
        return self._summary

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def parse(self, text: str) -> list[Element]:
        """Parse Markdown text into elements.

        Parsing never fails on malformed Markdown; unrecognised syntax becomes
        paragraph text.
        """
        elements = parse_markdown(text, base_url=self.options.base_url)
        self.progress.emit(PROGRESS_PARSED, "Markdown parsed", f"{len(elements)} elements")
        return elements

    def _element_progress(self, span: tuple[float, float], status: str) -> ElementCallback:
        def report(index: int, total: int, element: Element) -> None:
            self.progress.emit_step(
                span, index, total, f"{status} element {index + 1} of {total}", describe_element(element)
            )

        return report

    async def layout(self, elements: Sequence[Element]) -> LayoutSummary:
        """Lay out elements in a dry-run pass and a drawing pass.

        Parameters
        ----------
        elements : sequence of Element
            Parsed document

        Returns
        -------
        LayoutSummary
            Page count and link index size

        Raises
        ------
        BackendWriteError
            If the backend rejects an operation
        DependencyError
            If the configured backend's library is not installed

        """
        width, height = self.options.page_size_points
        backend = self.backend_factory(width, height)
        self.link_index.clear()
        self.outline = OutlineBuilder()
        self._summary = None

        dry_run = RecordingBackend(width, height, measure_with=backend, record=False)
        first_pass = LayoutEngine(
            dry_run, self.options, self.link_index, OutlineBuilder(), self.assets, draw_links=False
        )
        self.progress.emit(PROGRESS_PASS_ONE[0], "Locating headings")
        with debug_timer(logger, "Layout pass 1"):
            await first_pass.layout(elements, on_element=self._element_progress(PROGRESS_PASS_ONE, "Indexing"))
        self.link_index.normalize()
        self.link_index.freeze()
        logger.debug(f"Link index holds {len(self.link_index)} keys after normalization")

        second_pass = LayoutEngine(backend, self.options, self.link_index, self.outline, self.assets, draw_links=True)
        self.progress.emit(PROGRESS_PASS_TWO[0], "Rendering pages")
        with debug_timer(logger, "Layout pass 2"):
            final = await second_pass.layout(
                elements, on_element=self._element_progress(PROGRESS_PASS_TWO, "Rendering")
            )

        if dry_run.page_count() != backend.page_count():
            logger.warning(
                f"Dry run produced {dry_run.page_count()} pages but rendering produced {backend.page_count()}; "
                "internal links may point at the wrong page"
            )
        if second_pass.placeholders:
            logger.info(f"{second_pass.placeholders} element(s) replaced by placeholders")

        self._backend = backend
        self._document_title = next(
            (element.text for element in elements if isinstance(element, Header) and element.level == 1), None
        )
        self._summary = LayoutSummary(page_count=backend.page_count(), link_index_size=len(self.link_index))
        logger.debug(f"Layout finished on page {final.page_number}: {self._summary}")
        return self._summary

    def finalize(self) -> bytes:
        """Write outline, page numbers and metadata, and return the PDF bytes.

        Raises
        ------
        ValidationError
            If called before ``layout``
        BackendWriteError
            If the backend cannot serialize the document

        """
        if self._backend is None or self._summary is None:
            raise ValidationError("finalize() called before layout()", parameter_name="layout")
        backend = self._backend

        self.progress.emit(PROGRESS_FINALIZE, "Finalizing document", f"{self._summary.page_count} pages")
        entries = self.outline.emit(backend)
        logger.debug(f"Wrote {entries} outline entries")

        if self.options.include_page_numbers:
            backend.stamp_page_numbers(self.options.page_number_template)

        backend.set_metadata(
            {
                "title": self.options.title or self._document_title,
                "author": self.options.author,
                "subject": self.options.subject,
                "keywords": self.options.keywords,
                "creator": self.options.creator,
            }
        )
        data = backend.save()
        self._backend = None
        self.progress.emit(PROGRESS_DONE, "PDF generated", f"{len(data)} bytes")
        return data

    # ------------------------------------------------------------------
    # One-shot conversion
    # ------------------------------------------------------------------

    async def convert_async(self, text: str) -> bytes:
        """Parse, lay out and finalize ``text`` in one call."""
        try:
            elements = self.parse(text)
            await self.layout(elements)
            return self.finalize()
        finally:
            if self._owns_loader:
                await self.assets.aclose()

    def convert(self, text: str) -> bytes:
        """Run :meth:`convert_async` on a new event loop."""
        return asyncio.run(self.convert_async(text))
