#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/layout/blocks.py
"""Placement of headings, code blocks, blockquotes, rules and the title page."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Callable

from markpage.constants import (
    BLOCK_SPACING,
    BLOCKQUOTE_BAR_WIDTH,
    BLOCKQUOTE_FONT_SIZE,
    BLOCKQUOTE_INDENT,
    BLOCKQUOTE_LINE_HEIGHT,
    CODE_BACKGROUND,
    CODE_BORDER,
    CODE_FONT_SIZE,
    CODE_LINE_HEIGHT,
    CODE_PADDING,
    FOOTER_FONT_SIZE,
    HEADER_BASE_SIZE,
    HEADER_SIZE_STEP,
    HEADER_SPACING,
    MUTED_TEXT_COLOR,
    QUOTE_BACKGROUND,
    QUOTE_BAR,
    QUOTE_TEXT,
    RULE_ADVANCE,
    RULE_COLOR,
    RULE_WIDTH,
    TEXT_COLOR,
    TITLE_FONT_SIZE,
    RGB,
    FontStyle,
)
from markpage.layout.text import aligned_x

if TYPE_CHECKING:
    from markpage.layout.context import LayoutContext
    from markpage.layout.engine import LayoutEngine
    from markpage.model import Blockquote, CodeBlock, Header, Rule

logger = logging.getLogger(__name__)

# Called with (top, height) of each box segment before its text is drawn
BoxPainter = Callable[[float, float], None]


def header_font_size(level: int) -> float:
    """Font size of a heading level: 22pt for H1 down to 12pt for H6."""
    return HEADER_BASE_SIZE - HEADER_SIZE_STEP * level


def place_header(engine: "LayoutEngine", ctx: "LayoutContext", header: "Header") -> "LayoutContext":
    """Draw a heading, add its outline node and register its page.

    The heading is kept on one page with its wrapped lines; the page it
    starts on is the page recorded in the link index and the outline.
    """
    backend = engine.backend
    size = header_font_size(header.level)
    advance = size + HEADER_SPACING
    lines = backend.wrap_text(header.text, ctx.content_width, "bold", size)

    ctx = engine.ensure_space(ctx, advance * len(lines))
    page = ctx.page_number
    engine.link_index.register_header(header, page)
    engine.outline.add(header.level, header.text, page)
    logger.debug(f"Header {header.id!r} placed on page {page}")

    x = aligned_x(ctx, ctx.alignment)
    align = "left" if ctx.alignment == "justify" else ctx.alignment
    for line in lines:
        backend.draw_text(line, x, ctx.cursor_y + size, font="bold", size=size, color=TEXT_COLOR, align=align)
        ctx = ctx.advance(advance)
    return ctx


def _char_wrap(line: str, columns: int) -> list[str]:
    if not line:
        return [""]
    return [line[start : start + columns] for start in range(0, len(line), columns)]


def _boxed_lines(
    engine: "LayoutEngine",
    ctx: "LayoutContext",
    lines: list[str],
    x: float,
    font: FontStyle,
    size: float,
    line_height: float,
    color: RGB,
    paint: BoxPainter,
) -> "LayoutContext":
    """Draw lines inside a padded box, continuing the box on following pages."""
    backend = engine.backend
    remaining = list(lines)
    ctx = engine.ensure_space(ctx, len(remaining) * line_height + 2 * CODE_PADDING)

    while remaining:
        capacity = int((ctx.remaining() - 2 * CODE_PADDING) // line_height)
        if capacity < 1:
            if not ctx.at_page_top:
                ctx = engine.new_page(ctx)
                continue
            capacity = 1
        chunk, remaining = remaining[:capacity], remaining[capacity:]

        height = len(chunk) * line_height + 2 * CODE_PADDING
        paint(ctx.cursor_y, height)
        baseline = ctx.cursor_y + CODE_PADDING + size
        for text in chunk:
            backend.draw_text(text, x, baseline, font=font, size=size, color=color)
            baseline += line_height
        ctx = ctx.advance(height)

        if remaining:
            logger.debug(f"Block continues on the next page with {len(remaining)} lines")
            ctx = engine.new_page(ctx)

    return ctx.advance(BLOCK_SPACING)


def place_code_block(engine: "LayoutEngine", ctx: "LayoutContext", block: "CodeBlock") -> "LayoutContext":
    """Draw a code block in a monospace font on a grey box.

    Leading whitespace is kept; long lines are cut at the column limit of the
    box since a monospace font has a fixed advance.
    """
    backend = engine.backend
    inner_width = ctx.content_width - 2 * CODE_PADDING
    columns = max(1, int(inner_width // max(backend.measure_text("M", "mono", CODE_FONT_SIZE), 0.1)))

    lines: list[str] = []
    for raw in block.content.expandtabs(4).split("\n"):
        lines.extend(_char_wrap(raw.rstrip(), columns))

    def paint(top: float, height: float) -> None:
        backend.draw_rect(ctx.margin, top, ctx.content_width, height, fill=CODE_BACKGROUND, stroke=CODE_BORDER)

    return _boxed_lines(
        engine,
        ctx,
        lines,
        ctx.margin + CODE_PADDING,
        "mono",
        CODE_FONT_SIZE,
        CODE_LINE_HEIGHT,
        TEXT_COLOR,
        paint,
    )


def place_blockquote(engine: "LayoutEngine", ctx: "LayoutContext", quote: "Blockquote") -> "LayoutContext":
    """Draw a blockquote as indented grey italic text with a side bar."""
    backend = engine.backend
    text_x = ctx.margin + BLOCKQUOTE_INDENT
    lines = backend.wrap_text(
        quote.text, ctx.content_width - BLOCKQUOTE_INDENT - CODE_PADDING, "italic", BLOCKQUOTE_FONT_SIZE
    )

    def paint(top: float, height: float) -> None:
        backend.draw_rect(ctx.margin, top, ctx.content_width, height, fill=QUOTE_BACKGROUND)
        backend.draw_rect(ctx.margin, top, BLOCKQUOTE_BAR_WIDTH, height, fill=QUOTE_BAR)

    return _boxed_lines(
        engine,
        ctx,
        lines,
        text_x,
        "italic",
        BLOCKQUOTE_FONT_SIZE,
        BLOCKQUOTE_LINE_HEIGHT,
        QUOTE_TEXT,
        paint,
    )


def place_rule(engine: "LayoutEngine", ctx: "LayoutContext", rule: "Rule") -> "LayoutContext":
    """Draw a horizontal line across the content width."""
    y = ctx.cursor_y + RULE_ADVANCE / 2
    engine.backend.draw_line(ctx.margin, y, ctx.margin + ctx.content_width, y, color=RULE_COLOR, width=RULE_WIDTH)
    return ctx.advance(RULE_ADVANCE)


def place_title_page(engine: "LayoutEngine", ctx: "LayoutContext", header: "Header") -> "LayoutContext":
    """Draw a title page from the leading H1 and continue on a fresh page.

    The heading itself is still laid out on the following page, so it keeps
    its outline entry and link target.
    """
    backend = engine.backend
    lines = backend.wrap_text(header.text, ctx.content_width, "bold", TITLE_FONT_SIZE)
    line_height = TITLE_FONT_SIZE * 1.3
    y = ctx.page_height / 2 - (len(lines) - 1) * line_height / 2
    for line in lines:
        backend.draw_text(line, ctx.page_width / 2, y, font="bold", size=TITLE_FONT_SIZE, align="center")
        y += line_height

    generated = f"Generated on {date.today().isoformat()}"
    backend.draw_text(
        generated,
        ctx.page_width / 2,
        ctx.page_height - ctx.margin - FOOTER_FONT_SIZE,
        size=FOOTER_FONT_SIZE + 1,
        color=MUTED_TEXT_COLOR,
        align="center",
    )
    return engine.new_page(ctx)
