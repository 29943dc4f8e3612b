#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/layout/tables.py
"""Table placement.

Every row, the header row included, is handled in two steps: its height is
measured from the wrapped text and estimated image height of all cells, then
the cell backgrounds are drawn and the cell content is centred vertically in
the measured height. A row that does not fit below the cursor moves to a new
page as a whole. A row taller than an empty page is clipped to the page.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from markpage.constants import (
    MUTED_TEXT_COLOR,
    TABLE_BORDER,
    TABLE_BORDER_WIDTH,
    TABLE_CELL_PADDING,
    TABLE_FONT_SIZE,
    TABLE_HEADER_BACKGROUND,
    TABLE_HEADER_BORDER,
    TABLE_IMAGE_ROW_ESTIMATE,
    TABLE_LINE_HEIGHT,
    TABLE_MIN_ROW_HEIGHT,
    TABLE_ROW_BACKGROUNDS,
    TABLE_SPACING,
    TEXT_COLOR,
    RGB,
    FontStyle,
)
from markpage.exceptions import AssetLoadError, RenderOverflowError
from markpage.inline import strip_emphasis
from markpage.layout.images import fit_image, prepare_asset
from markpage.model import Cell, ImageCell, Table, TextCell

if TYPE_CHECKING:
    from markpage.layout.context import LayoutContext
    from markpage.layout.engine import LayoutEngine

logger = logging.getLogger(__name__)


def _cell_lines(engine: "LayoutEngine", cell: Cell, width: float, font: FontStyle) -> list[str]:
    text = strip_emphasis(cell.content) if isinstance(cell, TextCell) else cell.alt_text
    return engine.backend.wrap_text(text, max(width - 2 * TABLE_CELL_PADDING, 1.0), font, TABLE_FONT_SIZE)


def measure_row(engine: "LayoutEngine", cells: Sequence[Cell], column_width: float, header: bool = False) -> float:
    """Return the height a row needs: the tallest of its cells.

    Image cells are estimated at a fixed height so that measuring never
    fetches an asset.
    """
    font: FontStyle = "bold" if header else "normal"
    height = TABLE_MIN_ROW_HEIGHT
    for cell in cells:
        if isinstance(cell, ImageCell) and engine.options.include_images:
            cell_height = TABLE_IMAGE_ROW_ESTIMATE
        else:
            lines = _cell_lines(engine, cell, column_width, font)
            cell_height = len(lines) * TABLE_LINE_HEIGHT + 2 * TABLE_CELL_PADDING
        height = max(height, cell_height)
    return height


def _draw_text_cell(
    engine: "LayoutEngine",
    cell: Cell,
    x: float,
    top: float,
    width: float,
    height: float,
    font: FontStyle,
    color: RGB = TEXT_COLOR,
) -> None:
    lines = _cell_lines(engine, cell, width, font)
    visible = max(1, int((height - 2 * TABLE_CELL_PADDING) // TABLE_LINE_HEIGHT))
    if len(lines) > visible:
        lines = lines[:visible]
    block_height = len(lines) * TABLE_LINE_HEIGHT
    baseline = top + (height - block_height) / 2 + TABLE_FONT_SIZE
    for line in lines:
        engine.backend.draw_text(line, x + TABLE_CELL_PADDING, baseline, font=font, size=TABLE_FONT_SIZE, color=color)
        baseline += TABLE_LINE_HEIGHT


def check_row_fits(ctx: "LayoutContext", height: float) -> None:
    """Raise RenderOverflowError when a row is taller than the space left on the page."""
    if height > ctx.remaining():
        raise RenderOverflowError("table row", required=height, available=ctx.remaining())


async def _draw_image_cell(
    engine: "LayoutEngine", cell: ImageCell, x: float, top: float, width: float, height: float
) -> None:
    try:
        asset = await prepare_asset(engine, cell.url)
        box_width = width - 2 * TABLE_CELL_PADDING
        box_height = height - 2 * TABLE_CELL_PADDING
        image_width, image_height = fit_image(asset.width, asset.height, box_width, box_height)
        asset.draw(
            x + (width - image_width) / 2,
            top + (height - image_height) / 2,
            image_width,
            image_height,
        )
    except (AssetLoadError, ValueError) as e:
        logger.warning(f"Table image {cell.url[:80]} could not be drawn: {e}")
        _draw_text_cell(engine, cell, x, top, width, height, "italic", MUTED_TEXT_COLOR)


async def place_table(engine: "LayoutEngine", ctx: "LayoutContext", table: Table) -> "LayoutContext":
    """Draw a table with equal column widths and alternating row backgrounds."""
    columns = table.column_count
    if columns == 0:
        return ctx
    backend = engine.backend
    column_width = ctx.content_width / columns

    rows: list[tuple[Sequence[Cell], bool]] = [(table.header_cells, True)]
    rows.extend((row, False) for row in table.rows)

    for index, (cells, header) in enumerate(rows):
        height = measure_row(engine, cells, column_width, header)
        ctx = engine.ensure_space(ctx, height)
        try:
            check_row_fits(ctx, height)
        except RenderOverflowError as e:
            logger.warning(f"{e}; clipping row {index} to the page")
            height = ctx.remaining()

        if header:
            fill, stroke = TABLE_HEADER_BACKGROUND, TABLE_HEADER_BORDER
        else:
            fill, stroke = TABLE_ROW_BACKGROUNDS[(index - 1) % 2], TABLE_BORDER
        font: FontStyle = "bold" if header else "normal"

        for column in range(columns):
            x = ctx.margin + column * column_width
            backend.draw_rect(
                x, ctx.cursor_y, column_width, height, fill=fill, stroke=stroke, line_width=TABLE_BORDER_WIDTH
            )

        for column, cell in enumerate(cells[:columns]):
            x = ctx.margin + column * column_width
            if isinstance(cell, ImageCell) and engine.options.include_images:
                await _draw_image_cell(engine, cell, x, ctx.cursor_y, column_width, height)
            else:
                _draw_text_cell(engine, cell, x, ctx.cursor_y, column_width, height, font)

        ctx = ctx.advance(height)

    return ctx.advance(TABLE_SPACING)
