#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/layout/lists.py
"""List placement with nested numbering and clickable item links."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from markpage.constants import (
    BODY_FONT_SIZE,
    LINE_HEIGHT,
    LIST_GLYPH_GAP,
    LIST_INDENT,
    LIST_ITEM_SPACING,
    LIST_SPACING,
)
from markpage.layout.text import layout_inline
from markpage.links import looks_like_toc
from markpage.model import InlineSpan, ListBlock, ListItem

if TYPE_CHECKING:
    from markpage.layout.context import LayoutContext
    from markpage.layout.engine import LayoutEngine

logger = logging.getLogger(__name__)

BULLET = "•"


class ListNumbering:
    """Per-level counters for ordered lists.

    Going deeper starts a counter from the item's source number; returning to
    a shallower level drops the deeper counters and continues the count of
    the level returned to.
    """

    def __init__(self) -> None:
        """Start with no counters."""
        self._counters: dict[int, int] = {}
        self._previous_level: Optional[int] = None

    def next(self, item: ListItem) -> int:
        """Return the number to draw for ``item``."""
        level = item.indent_level
        seed = item.number if item.number is not None else 1

        if self._previous_level is None or level > self._previous_level:
            self._counters[level] = seed
        elif level == self._previous_level:
            self._counters[level] += 1
        else:
            for deeper in [key for key in self._counters if key > level]:
                del self._counters[deeper]
            if level in self._counters:
                self._counters[level] += 1
            else:
                self._counters[level] = seed

        self._previous_level = level
        return self._counters[level]


def item_spans(item: ListItem) -> tuple[InlineSpan, ...]:
    """Return the spans of an item with its link attached to the display text."""
    spans = item.spans()
    if item.link is None or any(span.link for span in spans):
        return spans

    before, found, after = item.text.partition(item.link.display_text)
    if not found:
        return (InlineSpan(item.text, link=item.link.target_url),)
    linked = [InlineSpan(before), InlineSpan(found, link=item.link.target_url), InlineSpan(after)]
    return tuple(span for span in linked if span.text)


def place_list(engine: "LayoutEngine", ctx: "LayoutContext", block: ListBlock) -> "LayoutContext":
    """Draw list items in order, each with its own page-break check."""
    backend = engine.backend
    if looks_like_toc(block.items):
        logger.debug(f"List of {len(block.items)} items looks like a table of contents")

    numbering = ListNumbering()
    for item in block.items:
        if ctx.needs_break() or not ctx.fits(LINE_HEIGHT):
            ctx = engine.new_page(ctx)

        glyph_x = ctx.margin + item.indent_level * LIST_INDENT
        glyph = f"{numbering.next(item)}." if block.kind == "ordered" else BULLET
        glyph_width = backend.measure_text(glyph, "normal", BODY_FONT_SIZE)
        backend.draw_text(glyph, glyph_x, ctx.cursor_y + BODY_FONT_SIZE, size=BODY_FONT_SIZE)

        text_x = glyph_x + max(LIST_GLYPH_GAP, glyph_width + 4)
        width = max(ctx.margin + ctx.content_width - text_x, LIST_GLYPH_GAP * 3)
        after = layout_inline(engine, ctx, item_spans(item), x=text_x, width=width, alignment="left")
        ctx = after if after != ctx else ctx.advance(LINE_HEIGHT)
        ctx = ctx.advance(LIST_ITEM_SPACING)

    return ctx.advance(LIST_SPACING)
