#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for the markpage library.

This module centralizes hardcoded values, magic numbers and default
configuration constants used across markpage. All lengths are PDF points
(1/72 inch) unless the name says otherwise.

Constants are organized by category:
1. Type Definitions - Literal types and type aliases
2. Page Geometry - paper sizes and unit conversion
3. Typography and Spacing - font sizes, line heights, paddings
4. Colors - RGB triples in the 0..1 range used by the backends
5. Assets and Network - fetch limits and defaults
6. Dependencies - optional package requirements
7. Progress - percentage ranges reported to callbacks
"""

from __future__ import annotations

from typing import Literal

# =============================================================================
# Type Definitions
# =============================================================================

PaperSize = Literal["a3", "a4", "a5", "letter", "legal"]
Orientation = Literal["portrait", "landscape"]
ImageQuality = Literal["low", "medium", "high"]
SvgHandling = Literal["vector", "raster"]
BackendName = Literal["pymupdf", "reportlab"]
Alignment = Literal["left", "center", "right", "justify"]
InlineFormat = Literal["normal", "bold", "italic", "bolditalic", "strikethrough", "inlinecode"]
FontStyle = Literal["normal", "bold", "italic", "bolditalic", "mono"]
ListKind = Literal["ordered", "unordered"]
TextStyle = Literal["bold", "italic", "color"]
RGB = tuple[float, float, float]

# =============================================================================
# Page Geometry
# =============================================================================

PAGE_SIZES: dict[str, tuple[float, float]] = {
    "a3": (842.0, 1190.0),
    "a4": (595.0, 842.0),
    "a5": (420.0, 595.0),
    "letter": (612.0, 792.0),
    "legal": (612.0, 1008.0),
}

MM_TO_PT = 72.0 / 25.4

DEFAULT_PAPER_SIZE: PaperSize = "a4"
DEFAULT_ORIENTATION: Orientation = "portrait"
DEFAULT_MARGINS_MM = 15.0
MIN_MARGINS_MM = 5.0
MAX_MARGINS_MM = 50.0
DEFAULT_VSPACE_MM = 10

# =============================================================================
# Typography and Spacing
# =============================================================================

BODY_FONT_SIZE = 11.0
LINE_HEIGHT = 15.0
PARAGRAPH_SPACING = 6.0

# Header font size is HEADER_BASE_SIZE - HEADER_SIZE_STEP * level
HEADER_BASE_SIZE = 24.0
HEADER_SIZE_STEP = 2.0
HEADER_SPACING = 5.0

STYLED_TEXT_ADVANCE = 18.0

# One nesting level is 5 mm
LIST_INDENT = 5.0 * MM_TO_PT
LIST_GLYPH_GAP = 14.0
LIST_ITEM_SPACING = 3.0
LIST_SPACING = 8.0
LINK_RECT_PADDING = 3.0

INLINE_CODE_FONT_SIZE = 9.5
INLINE_CODE_PADDING = 2.0

CODE_FONT_SIZE = 9.0
CODE_LINE_HEIGHT = 12.0
CODE_PADDING = 8.0
BLOCK_SPACING = 10.0

BLOCKQUOTE_FONT_SIZE = 11.0
BLOCKQUOTE_LINE_HEIGHT = 14.0
BLOCKQUOTE_INDENT = 20.0
BLOCKQUOTE_BAR_WIDTH = 3.0

RULE_ADVANCE = 20.0
RULE_WIDTH = 0.5

TABLE_FONT_SIZE = 10.0
TABLE_CELL_PADDING = 5.0
TABLE_LINE_HEIGHT = 13.0
TABLE_MIN_ROW_HEIGHT = 24.0
TABLE_IMAGE_ROW_ESTIMATE = 60.0
TABLE_SPACING = 14.0
TABLE_BORDER_WIDTH = 0.4

IMAGE_SPACING = 14.0
CAPTION_FONT_SIZE = 9.0
CAPTION_LINE_HEIGHT = 12.0
CAPTION_GAP = 6.0
CAPTION_INSET = 20.0

PLACEHOLDER_HEIGHT = 20.0
PLACEHOLDER_FONT_SIZE = 9.0

TITLE_FONT_SIZE = 28.0
FOOTER_FONT_SIZE = 9.0
FOOTER_OFFSET = 14.0

IMAGE_QUALITY_SCALE: dict[str, float] = {"low": 0.5, "medium": 0.75, "high": 1.0}
SVG_RASTER_SCALE: dict[str, float] = {"low": 3.0, "medium": 4.0, "high": 6.0}
SVG_DEFAULT_SIZE = 100.0

# =============================================================================
# Colors
# =============================================================================

TEXT_COLOR: RGB = (0.0, 0.0, 0.0)
MUTED_TEXT_COLOR: RGB = (0.39, 0.39, 0.39)
LINK_COLOR: RGB = (0.0, 0.2, 0.8)
PLACEHOLDER_COLOR: RGB = (0.59, 0.59, 0.59)
CODE_BACKGROUND: RGB = (0.94, 0.94, 0.94)
CODE_BORDER: RGB = (0.78, 0.78, 0.78)
QUOTE_BACKGROUND: RGB = (0.96, 0.96, 0.96)
QUOTE_BAR: RGB = (0.71, 0.71, 0.71)
QUOTE_TEXT: RGB = (0.31, 0.31, 0.31)
RULE_COLOR: RGB = (0.78, 0.78, 0.78)
TABLE_HEADER_BACKGROUND: RGB = (0.94, 0.94, 0.94)
TABLE_HEADER_BORDER: RGB = (0.59, 0.59, 0.59)
TABLE_ROW_BACKGROUNDS: tuple[RGB, RGB] = ((0.99, 0.99, 0.99), (0.96, 0.96, 0.96))
TABLE_BORDER: RGB = (0.78, 0.78, 0.78)

NAMED_COLORS: dict[str, RGB] = {
    "black": (0.0, 0.0, 0.0),
    "white": (1.0, 1.0, 1.0),
    "red": (1.0, 0.0, 0.0),
    "green": (0.0, 0.5, 0.0),
    "blue": (0.0, 0.0, 1.0),
    "yellow": (1.0, 1.0, 0.0),
    "cyan": (0.0, 1.0, 1.0),
    "magenta": (1.0, 0.0, 1.0),
    "gray": (0.5, 0.5, 0.5),
    "grey": (0.5, 0.5, 0.5),
    "darkgray": (0.25, 0.25, 0.25),
    "lightgray": (0.83, 0.83, 0.83),
}

# =============================================================================
# Assets and Network
# =============================================================================

DEFAULT_ASSET_TIMEOUT = 30.0
DEFAULT_MAX_ASSET_SIZE_BYTES = 20 * 1024 * 1024
DEFAULT_USER_AGENT = "markpage-fetcher/1.0"
DEFAULT_CREATOR = "markpage"
DEFAULT_PAGE_NUMBER_TEMPLATE = "Page {page} of {total}"
DISABLE_NETWORK_ENV = "MARKPAGE_DISABLE_NETWORK"

# =============================================================================
# Dependencies
# =============================================================================

DEPS_REPORTLAB = [("reportlab", "reportlab", ">=4.0.0")]

# =============================================================================
# Progress
# =============================================================================

PROGRESS_PARSED = 10.0
PROGRESS_PASS_ONE = (15.0, 50.0)
PROGRESS_PASS_TWO = (50.0, 90.0)
PROGRESS_FINALIZE = 95.0
PROGRESS_DONE = 100.0
