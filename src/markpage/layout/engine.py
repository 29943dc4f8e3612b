#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/layout/engine.py
"""Layout engine: a left fold of document elements onto pages.

:class:`LayoutEngine` visits every element in document order. Each visit
receives the current :class:`~markpage.layout.context.LayoutContext`, issues
drawing calls against the backend and returns the context for the next
element. The element-specific placement lives in the sibling strategy
modules; this module owns the fold itself, page creation, link regions and
the per-element error boundary.

Failures inside a single element (an unreachable image, a malformed SVG, an
oversized table row) are logged and replaced by a short placeholder line so
that one bad asset never aborts the document. Only
:class:`~markpage.exceptions.BackendWriteError` propagates.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional, Sequence

from markpage.assets import AssetLoader
from markpage.backends.base import LinkTarget, PdfBackend
from markpage.constants import MM_TO_PT, PLACEHOLDER_COLOR, PLACEHOLDER_FONT_SIZE, PLACEHOLDER_HEIGHT
from markpage.exceptions import BackendWriteError, MarkpageError
from markpage.layout.blocks import place_blockquote, place_code_block, place_header, place_rule, place_title_page
from markpage.layout.context import LayoutContext
from markpage.layout.images import place_image
from markpage.layout.lists import place_list
from markpage.layout.tables import place_table
from markpage.layout.text import place_paragraph, place_styled_text
from markpage.links import LinkIndex, is_internal_reference
from markpage.model import (
    DIRECTIVE_TYPES,
    AlignmentChange,
    Blockquote,
    CodeBlock,
    Element,
    ElementVisitor,
    Header,
    Image,
    ListBlock,
    PageBreak,
    Paragraph,
    Rule,
    StyledText,
    Table,
    VerticalSpace,
)
from markpage.options import PdfLayoutOptions
from markpage.outline import OutlineBuilder

logger = logging.getLogger(__name__)

ElementCallback = Callable[[int, int, Element], None]


def describe_element(element: Element) -> str:
    """Return a short human-readable label for progress and placeholders."""
    if isinstance(element, Header):
        return f"Header - {element.text}"
    if isinstance(element, Image):
        return f"Image - {element.alt_text or element.url}"
    if isinstance(element, CodeBlock) and element.language:
        return f"Code block - {element.language}"
    name = type(element).__name__
    return {"ListBlock": "List", "CodeBlock": "Code block"}.get(name, name)


class LayoutEngine(ElementVisitor):
    """Place elements on pages through a PDF backend.

    Parameters
    ----------
    backend : PdfBackend
        Backend receiving drawing calls
    options : PdfLayoutOptions
        Page geometry and content switches
    link_index : LinkIndex, optional
        Index that header pages are registered in and links resolve against
    outline : OutlineBuilder, optional
        Outline tree receiving one node per header
    assets : AssetLoader, optional
        Loader for images and SVGs
    draw_links : bool, default True
        Place link regions. The dry-run pass disables this, because the link
        index is not complete until the whole document has been laid out.

    Examples
    --------
        >>> engine = LayoutEngine(RecordingBackend(595, 842), PdfLayoutOptions())
        >>> final = asyncio.run(engine.layout(parse_markdown("# Title")))
        >>> final.page_number
        1

    """

    def __init__(
        self,
        backend: PdfBackend,
        options: Optional[PdfLayoutOptions] = None,
        link_index: Optional[LinkIndex] = None,
        outline: Optional[OutlineBuilder] = None,
        assets: Optional[AssetLoader] = None,
        draw_links: bool = True,
    ):
        """Initialize the engine with its collaborators."""
        self.backend = backend
        self.options = options or PdfLayoutOptions()
        self.link_index = link_index if link_index is not None else LinkIndex()
        self.outline = outline if outline is not None else OutlineBuilder()
        self.assets = assets or AssetLoader(
            base_url=self.options.base_url,
            base_path=self.options.base_path,
            timeout=self.options.asset_timeout,
            max_size_bytes=self.options.max_asset_size_bytes,
        )
        self.draw_links = draw_links
        self.placeholders = 0
        self._context: Optional[LayoutContext] = None

    # ------------------------------------------------------------------
    # Fold
    # ------------------------------------------------------------------

    def initial_context(self) -> LayoutContext:
        """Return the context for the top of the first page."""
        return LayoutContext.from_options(self.options)

    @property
    def context(self) -> LayoutContext:
        """Latest context of the running fold."""
        if self._context is None:
            raise RuntimeError("Layout has not started")
        return self._context

    async def layout(
        self,
        elements: Sequence[Element],
        context: Optional[LayoutContext] = None,
        on_element: Optional[ElementCallback] = None,
    ) -> LayoutContext:
        """Fold all elements onto pages and return the final context.

        Parameters
        ----------
        elements : sequence of Element
            Parsed document
        context : LayoutContext, optional
            Starting context; defaults to the top of page 1
        on_element : callable, optional
            Called as ``on_element(index, total, element)`` after each element

        Returns
        -------
        LayoutContext
            Context after the last element

        Raises
        ------
        BackendWriteError
            If the backend rejects an operation

        """
        ctx = context or self.initial_context()
        if self.backend.page_count() == 0:
            self.backend.add_page()
        self._context = ctx

        if (
            self.options.include_title_page
            and elements
            and isinstance(elements[0], Header)
            and elements[0].level == 1
        ):
            ctx = place_title_page(self, ctx, elements[0])

        total = len(elements)
        for index, element in enumerate(elements):
            ctx = await self.place(element, ctx)
            if on_element is not None:
                on_element(index, total, element)
        return ctx

    async def place(self, element: Element, ctx: LayoutContext) -> LayoutContext:
        """Place one element, recovering from per-element failures."""
        if not isinstance(element, DIRECTIVE_TYPES) and ctx.needs_break():
            ctx = self.new_page(ctx)
        self._context = ctx

        try:
            ctx = await element.accept(self)
        except BackendWriteError:
            raise
        except MarkpageError as e:
            logger.warning(f"Could not place {describe_element(element)}: {e}")
            ctx = self.placeholder(self.context, element)
        except Exception as e:
            logger.warning(f"Unexpected error placing {describe_element(element)}: {e!r}", exc_info=True)
            ctx = self.placeholder(self.context, element)

        self._context = ctx
        return ctx

    # ------------------------------------------------------------------
    # Helpers shared by the strategies
    # ------------------------------------------------------------------

    def new_page(self, ctx: LayoutContext) -> LayoutContext:
        """Start the next page and return the context at its top margin."""
        page = self.backend.add_page()
        new = ctx.next_page()
        if page != new.page_number:
            logger.debug(f"Backend page {page} differs from layout page {new.page_number}")
            new = replace(new, page_number=page)
        self._context = new
        return new

    def ensure_space(self, ctx: LayoutContext, height: float) -> LayoutContext:
        """Break the page unless ``height`` fits below the cursor.

        A block taller than a whole page is started at the top of a page
        rather than triggering an endless series of breaks.
        """
        if ctx.fits(height) or ctx.at_page_top:
            return ctx
        return self.new_page(ctx)

    def add_link(self, url: str, x: float, y: float, w: float, h: float) -> bool:
        """Place a clickable region for ``url`` on the current page.

        Internal references are resolved through the link index; unresolved
        references get no region.
        """
        if not self.draw_links or not url:
            return False
        if is_internal_reference(url):
            page = self.link_index.resolve(url)
            if page is None:
                logger.debug(f"Unresolved internal link {url!r}; no link region placed")
                return False
            target = LinkTarget(page=page)
        else:
            target = LinkTarget(url=url)
        self.backend.add_link_region(x, y, w, h, target)
        return True

    def placeholder(self, ctx: LayoutContext, element: Element) -> LayoutContext:
        """Draw a one-line error marker in place of a failed element."""
        self.placeholders += 1
        ctx = self.ensure_space(ctx, PLACEHOLDER_HEIGHT)
        label = f"[{describe_element(element)} could not be rendered]"
        self.backend.draw_text(
            label,
            ctx.margin,
            ctx.cursor_y + PLACEHOLDER_FONT_SIZE + 2,
            font="italic",
            size=PLACEHOLDER_FONT_SIZE,
            color=PLACEHOLDER_COLOR,
        )
        return ctx.advance(PLACEHOLDER_HEIGHT)

    # ------------------------------------------------------------------
    # Visitor
    # ------------------------------------------------------------------

    async def visit_header(self, element: Header) -> LayoutContext:
        """Place a heading and register it for links and the outline."""
        return place_header(self, self.context, element)

    async def visit_paragraph(self, element: Paragraph) -> LayoutContext:
        """Place a paragraph."""
        return place_paragraph(self, self.context, element)

    async def visit_list(self, element: ListBlock) -> LayoutContext:
        """Place a list."""
        return place_list(self, self.context, element)

    async def visit_table(self, element: Table) -> LayoutContext:
        """Place a table unless tables are disabled."""
        if not self.options.include_tables:
            return self.context
        return await place_table(self, self.context, element)

    async def visit_code_block(self, element: CodeBlock) -> LayoutContext:
        """Place a code block unless code is disabled."""
        if not self.options.include_code:
            return self.context
        return place_code_block(self, self.context, element)

    async def visit_blockquote(self, element: Blockquote) -> LayoutContext:
        """Place a blockquote."""
        return place_blockquote(self, self.context, element)

    async def visit_image(self, element: Image) -> LayoutContext:
        """Place an image unless images are disabled."""
        if not self.options.include_images:
            return self.context
        return await place_image(self, self.context, element)

    async def visit_rule(self, element: Rule) -> LayoutContext:
        """Place a horizontal rule."""
        return place_rule(self, self.context, element)

    async def visit_page_break(self, element: PageBreak) -> LayoutContext:
        """Start a new page when page break commands are honoured."""
        if not self.options.respect_page_breaks:
            return self.context
        return self.new_page(self.context)

    async def visit_vertical_space(self, element: VerticalSpace) -> LayoutContext:
        """Move the cursor down, continuing on the next page past the bottom margin."""
        ctx = self.context.advance(element.size_mm * MM_TO_PT)
        if ctx.cursor_y > ctx.bottom:
            return self.new_page(ctx)
        return ctx

    async def visit_alignment(self, element: AlignmentChange) -> LayoutContext:
        """Switch the alignment of subsequent text."""
        return self.context.with_alignment(element.alignment)

    async def visit_styled_text(self, element: StyledText) -> LayoutContext:
        """Place a styled line from a command directive."""
        return place_styled_text(self, self.context, element)
