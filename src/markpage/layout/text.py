#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/layout/text.py
"""Inline text placement.

Formatted spans are broken into measured pieces, packed greedily into lines
no wider than the available width, and drawn one line at a time. Each line is
positioned from its own measured width, so centred and right-aligned text
stays aligned line by line. Justified lines spread their slack over the word
gaps; the last line of a block is left ragged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from markpage.constants import (
    BODY_FONT_SIZE,
    CODE_BACKGROUND,
    INLINE_CODE_FONT_SIZE,
    INLINE_CODE_PADDING,
    LINE_HEIGHT,
    LINK_COLOR,
    LINK_RECT_PADDING,
    PARAGRAPH_SPACING,
    STYLED_TEXT_ADVANCE,
    TEXT_COLOR,
    RGB,
    Alignment,
    FontStyle,
    InlineFormat,
)
from markpage.model import InlineSpan, Paragraph, StyledText

if TYPE_CHECKING:
    from markpage.backends.base import PdfBackend
    from markpage.layout.context import LayoutContext
    from markpage.layout.engine import LayoutEngine

_WHITESPACE = re.compile(r"(\s+)")

_STYLE_FORMATS: dict[str, InlineFormat] = {"bold": "bold", "italic": "italic", "color": "normal"}


@dataclass(frozen=True)
class Piece:
    """A measured run of text that is never split across lines."""

    text: str
    format: InlineFormat
    link: Optional[str]
    width: float
    space: bool = False
    break_before: bool = False


def font_for(fmt: InlineFormat, base: FontStyle = "normal") -> FontStyle:
    """Return the font for an inline format drawn on top of a base font."""
    if fmt == "inlinecode":
        return "mono"
    if fmt in ("bold", "italic", "bolditalic"):
        if base in ("normal", fmt):
            return fmt
        return "bolditalic"
    return base


def _piece_size(fmt: InlineFormat, size: float) -> float:
    return INLINE_CODE_FONT_SIZE * size / BODY_FONT_SIZE if fmt == "inlinecode" else size


def split_pieces(
    backend: "PdfBackend",
    spans: Sequence[InlineSpan],
    max_width: float,
    size: float = BODY_FONT_SIZE,
    base_font: FontStyle = "normal",
) -> list[Piece]:
    """Split spans into words and spaces, measuring each through the backend.

    Words wider than ``max_width`` are cut into chunks that each start a new
    line.
    """
    pieces: list[Piece] = []
    for span in spans:
        font = font_for(span.format, base_font)
        piece_size = _piece_size(span.format, size)
        padding = 2 * INLINE_CODE_PADDING if span.format == "inlinecode" else 0.0
        for token in _WHITESPACE.split(span.text):
            if not token:
                continue
            if token.isspace():
                width = backend.measure_text(" ", font, piece_size)
                pieces.append(Piece(" ", span.format, span.link, width, space=True))
                continue

            width = backend.measure_text(token, font, piece_size) + padding
            if width <= max_width:
                pieces.append(Piece(token, span.format, span.link, width))
                continue
            for chunk in backend.wrap_text(token, max(max_width - padding, 1.0), font, piece_size):
                chunk_width = backend.measure_text(chunk, font, piece_size) + padding
                pieces.append(Piece(chunk, span.format, span.link, chunk_width, break_before=True))
    return pieces


def break_lines(pieces: Sequence[Piece], max_width: float) -> list[list[Piece]]:
    """Pack pieces into lines greedily.

    Adjacent non-space pieces form one word and move to the next line
    together. Spaces at line edges are dropped.
    """
    words: list[list[Piece]] = []
    for piece in pieces:
        if piece.space:
            words.append([piece])
        elif words and not words[-1][0].space and not piece.break_before:
            words[-1].append(piece)
        else:
            words.append([piece])

    lines: list[list[Piece]] = []
    line: list[Piece] = []
    line_width = 0.0
    pending_space: Optional[Piece] = None
    for word in words:
        if word[0].space:
            if line:
                pending_space = word[0]
            continue

        word_width = sum(piece.width for piece in word)
        gap = pending_space.width if pending_space is not None else 0.0
        if line and (line_width + gap + word_width > max_width or word[0].break_before):
            lines.append(line)
            line, line_width, pending_space, gap = [], 0.0, None, 0.0
        if pending_space is not None:
            line.append(pending_space)
            pending_space = None
        line.extend(word)
        line_width += gap + word_width

    if line:
        lines.append(line)
    return lines


def aligned_x(
    ctx: "LayoutContext", alignment: Alignment, x: Optional[float] = None, width: Optional[float] = None
) -> float:
    """Return the anchor x for ``PdfBackend.draw_text`` at the given alignment."""
    left = ctx.margin if x is None else x
    span = ctx.content_width if width is None else width
    if alignment == "center":
        return left + span / 2
    if alignment == "right":
        return left + span
    return left


def _draw_line(
    engine: "LayoutEngine",
    ctx: "LayoutContext",
    line: Sequence[Piece],
    x: float,
    width: float,
    size: float,
    line_height: float,
    color: RGB,
    base_font: FontStyle,
    alignment: Alignment,
    last: bool,
) -> None:
    backend = engine.backend
    line_width = sum(piece.width for piece in line)
    slack = width - line_width
    gaps = sum(1 for piece in line if piece.space)

    start = x
    extra = 0.0
    if alignment == "center":
        start += slack / 2
    elif alignment == "right":
        start += slack
    elif alignment == "justify" and not last and gaps and slack > 0:
        extra = slack / gaps

    baseline = ctx.cursor_y + size
    cursor_x = start
    link_url: Optional[str] = None
    link_start = start

    def flush_link(end: float) -> None:
        if link_url is not None:
            engine.add_link(
                link_url,
                link_start - 1,
                ctx.cursor_y - LINK_RECT_PADDING / 2,
                end - link_start + 2,
                line_height + LINK_RECT_PADDING,
            )

    for piece in line:
        if piece.link != link_url:
            flush_link(cursor_x)
            link_url = piece.link
            link_start = cursor_x

        if not piece.space:
            font = font_for(piece.format, base_font)
            piece_size = _piece_size(piece.format, size)
            text_x = cursor_x
            if piece.format == "inlinecode":
                backend.draw_rect(
                    cursor_x,
                    baseline - piece_size - INLINE_CODE_PADDING / 2,
                    piece.width,
                    piece_size + 2 * INLINE_CODE_PADDING,
                    fill=CODE_BACKGROUND,
                )
                text_x += INLINE_CODE_PADDING
            piece_color = LINK_COLOR if piece.link else color
            backend.draw_text(piece.text, text_x, baseline, font, piece_size, piece_color)
            if piece.format == "strikethrough":
                strike_y = baseline - size * 0.3
                backend.draw_line(cursor_x, strike_y, cursor_x + piece.width, strike_y, color=piece_color, width=0.7)

        cursor_x += piece.width + (extra if piece.space else 0.0)

    if link_url is not None:
        # Trailing link ends at the last drawn glyph
        flush_link(cursor_x)


def layout_inline(
    engine: "LayoutEngine",
    ctx: "LayoutContext",
    spans: Sequence[InlineSpan],
    *,
    x: Optional[float] = None,
    width: Optional[float] = None,
    size: float = BODY_FONT_SIZE,
    line_height: float = LINE_HEIGHT,
    color: RGB = TEXT_COLOR,
    base_font: FontStyle = "normal",
    alignment: Optional[Alignment] = None,
) -> "LayoutContext":
    """Wrap and draw formatted spans, breaking pages between lines.

    Parameters
    ----------
    engine : LayoutEngine
        Engine owning the backend and link index
    ctx : LayoutContext
        Context before the text
    spans : sequence of InlineSpan
        Formatted runs to draw
    x : float, optional
        Left edge of the text box; defaults to the left margin
    width : float, optional
        Width of the text box; defaults to the rest of the content width
    size : float
        Body font size
    line_height : float
        Advance per wrapped line
    color : RGB
        Colour of non-link text
    base_font : FontStyle
        Font of ``normal`` spans
    alignment : Alignment, optional
        Overrides the context alignment

    Returns
    -------
    LayoutContext
        Context below the last line

    """
    left = ctx.margin if x is None else x
    box_width = ctx.content_width - (left - ctx.margin) if width is None else width
    align = alignment or ctx.alignment

    lines = break_lines(split_pieces(engine.backend, spans, box_width, size, base_font), box_width)
    for index, line in enumerate(lines):
        if not ctx.fits(line_height) and not ctx.at_page_top:
            ctx = engine.new_page(ctx)
        last = index == len(lines) - 1
        _draw_line(engine, ctx, line, left, box_width, size, line_height, color, base_font, align, last)
        ctx = ctx.advance(line_height)
    return ctx


def place_paragraph(engine: "LayoutEngine", ctx: "LayoutContext", paragraph: Paragraph) -> "LayoutContext":
    """Draw a paragraph at the current alignment."""
    ctx = layout_inline(engine, ctx, paragraph.segments)
    return ctx.advance(PARAGRAPH_SPACING)


def place_styled_text(engine: "LayoutEngine", ctx: "LayoutContext", element: StyledText) -> "LayoutContext":
    """Draw a bold, italic or coloured line from a command directive."""
    span = InlineSpan(element.text, _STYLE_FORMATS[element.style])
    color = element.color if element.color is not None else TEXT_COLOR
    if ctx.needs_break():
        ctx = engine.new_page(ctx)
    return layout_inline(engine, ctx, (span,), color=color, line_height=STYLED_TEXT_ADVANCE)
