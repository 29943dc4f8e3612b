#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/layout/context.py
"""Layout context threaded through the element fold.

A :class:`LayoutContext` is an immutable snapshot of page geometry, cursor
position, page number and alignment. Placement strategies never mutate it;
they return an updated copy and the fold keeps the latest value.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from markpage.constants import Alignment

if TYPE_CHECKING:
    from markpage.options import PdfLayoutOptions


@dataclass(frozen=True)
class LayoutContext:
    """Cursor and page state of a layout pass.

    Parameters
    ----------
    page_width : float
        Page width in points
    page_height : float
        Page height in points
    margin : float
        Margin on all four sides in points
    content_width : float
        Usable width between the side margins
    cursor_y : float
        Top of the next content, measured from the top edge
    page_number : int
        Page the cursor is on (1-based)
    alignment : {"left", "center", "right", "justify"}
        Current text alignment

    """

    page_width: float
    page_height: float
    margin: float
    content_width: float
    cursor_y: float
    page_number: int = 1
    alignment: Alignment = "left"

    @classmethod
    def from_options(cls, options: "PdfLayoutOptions", page_number: int = 1) -> "LayoutContext":
        """Build the context for the top of a page from layout options."""
        width, height = options.page_size_points
        margin = options.margin_points
        return cls(
            page_width=width,
            page_height=height,
            margin=margin,
            content_width=width - 2 * margin,
            cursor_y=margin,
            page_number=page_number,
        )

    @property
    def bottom(self) -> float:
        """Lowest y coordinate content may reach."""
        return self.page_height - self.margin

    @property
    def usable_height(self) -> float:
        """Height available on an empty page."""
        return self.page_height - 2 * self.margin

    def advance(self, dy: float) -> "LayoutContext":
        """Move the cursor down by ``dy`` points."""
        return replace(self, cursor_y=self.cursor_y + dy)

    def at(self, cursor_y: float) -> "LayoutContext":
        """Place the cursor at an absolute y position."""
        return replace(self, cursor_y=cursor_y)

    def with_alignment(self, alignment: Alignment) -> "LayoutContext":
        """Return a copy with a different text alignment."""
        return replace(self, alignment=alignment)

    def next_page(self) -> "LayoutContext":
        """Return the context for the top of the following page."""
        return replace(self, cursor_y=self.margin, page_number=self.page_number + 1)

    def needs_break(self) -> bool:
        """Return True when the cursor is too low to start new content."""
        return self.cursor_y > self.page_height - 2 * self.margin

    def remaining(self) -> float:
        """Vertical space left above the bottom margin."""
        return max(0.0, self.bottom - self.cursor_y)

    def fits(self, height: float) -> bool:
        """Return True if a block of ``height`` fits below the cursor."""
        return self.cursor_y + height <= self.bottom

    @property
    def at_page_top(self) -> bool:
        """True when nothing has been placed on the current page yet."""
        return self.cursor_y <= self.margin
