#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/model.py
"""Document model produced by the Markdown parser.

A parsed document is a flat, ordered ``list[Element]``. Elements are frozen
dataclasses and never change after the parser produces them; the order of the
list is the order in which the layout engine places them.

Element Kinds
-------------
Content elements:
    - Header, Paragraph, ListBlock, Table, CodeBlock, Blockquote, Image, Rule

Layout directives (decoded from ``<!-- \\command{param} -->`` comments):
    - PageBreak, VerticalSpace, AlignmentChange, StyledText

Every element implements ``accept(visitor)``, which dispatches to the matching
``visit_*`` method of an :class:`ElementVisitor`. The visitor declares one
abstract method per kind, so a visitor that forgets a kind cannot be
instantiated.

"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Union

from markpage.constants import DEFAULT_VSPACE_MM, RGB, Alignment, InlineFormat, ListKind, TextStyle


@dataclass(frozen=True)
class InlineSpan:
    """Run of paragraph text sharing one format.

    Parameters
    ----------
    text : str
        Span text with markup removed
    format : InlineFormat, default "normal"
        Mutually exclusive inline format
    link : str or None, default None
        Link target when the span is (part of) a hyperlink

    """

    text: str
    format: InlineFormat = "normal"
    link: Optional[str] = None


@dataclass(frozen=True)
class ListLink:
    """First hyperlink of a list item."""

    display_text: str
    target_url: str


@dataclass(frozen=True)
class ListItem:
    """Single list entry.

    Parameters
    ----------
    text : str
        Plain item text, link syntax replaced by its display text
    indent_level : int
        Nesting depth (leading whitespace width divided by two)
    link : ListLink or None
        First link of the item, if any
    number : int or None
        Source number of an ordered item
    segments : tuple of InlineSpan
        Formatted runs of ``text``; empty means one normal run

    """

    text: str
    indent_level: int = 0
    link: Optional[ListLink] = None
    number: Optional[int] = None
    segments: tuple[InlineSpan, ...] = ()

    def spans(self) -> tuple[InlineSpan, ...]:
        """Return the formatted runs, falling back to a single normal span."""
        return self.segments or (InlineSpan(self.text),)


@dataclass(frozen=True)
class TextCell:
    """Table cell holding text."""

    content: str


@dataclass(frozen=True)
class ImageCell:
    """Table cell holding a single image."""

    alt_text: str
    url: str


Cell = Union[TextCell, ImageCell]


class Element(ABC):
    """Base class for every element of a parsed document."""

    @abstractmethod
    def accept(self, visitor: "ElementVisitor") -> Any:
        """Dispatch to the visitor method for this element kind."""


@dataclass(frozen=True)
class Header(Element):
    """Heading (levels 1-6) with a stable anchor id."""

    level: int
    text: str
    id: str

    def __post_init__(self) -> None:
        """Validate heading level is between 1 and 6."""
        if not 1 <= self.level <= 6:
            raise ValueError(f"Heading level must be 1-6, got {self.level}")

    def accept(self, visitor: "ElementVisitor") -> Any:
        """Accept a visitor for processing this heading."""
        return visitor.visit_header(self)


@dataclass(frozen=True)
class Paragraph(Element):
    """Paragraph made of formatted inline spans."""

    segments: tuple[InlineSpan, ...]

    @property
    def text(self) -> str:
        """Return the paragraph's plain text."""
        return "".join(span.text for span in self.segments)

    def accept(self, visitor: "ElementVisitor") -> Any:
        """Accept a visitor for processing this paragraph."""
        return visitor.visit_paragraph(self)


@dataclass(frozen=True)
class ListBlock(Element):
    """Run of list items of the same kind."""

    kind: ListKind
    items: tuple[ListItem, ...]

    def accept(self, visitor: "ElementVisitor") -> Any:
        """Accept a visitor for processing this list."""
        return visitor.visit_list(self)


@dataclass(frozen=True)
class Table(Element):
    """Table with one header row and zero or more body rows.

    Body rows always have exactly ``len(header_cells)`` cells.
    """

    header_cells: tuple[Cell, ...]
    rows: tuple[tuple[Cell, ...], ...] = ()

    @property
    def column_count(self) -> int:
        """Return the number of columns."""
        return len(self.header_cells)

    def accept(self, visitor: "ElementVisitor") -> Any:
        """Accept a visitor for processing this table."""
        return visitor.visit_table(self)


@dataclass(frozen=True)
class CodeBlock(Element):
    """Fenced code block captured verbatim."""

    language: str
    content: str

    def accept(self, visitor: "ElementVisitor") -> Any:
        """Accept a visitor for processing this code block."""
        return visitor.visit_code_block(self)


@dataclass(frozen=True)
class Blockquote(Element):
    """Single-line block quote."""

    text: str

    def accept(self, visitor: "ElementVisitor") -> Any:
        """Accept a visitor for processing this block quote."""
        return visitor.visit_blockquote(self)


@dataclass(frozen=True)
class Image(Element):
    """Block image; ``alt_text`` doubles as the caption."""

    url: str
    alt_text: str = ""

    @property
    def is_svg(self) -> bool:
        """Return True when the URL names an SVG resource."""
        return is_svg_url(self.url)

    def accept(self, visitor: "ElementVisitor") -> Any:
        """Accept a visitor for processing this image."""
        return visitor.visit_image(self)


@dataclass(frozen=True)
class Rule(Element):
    """Horizontal rule."""

    def accept(self, visitor: "ElementVisitor") -> Any:
        """Accept a visitor for processing this rule."""
        return visitor.visit_rule(self)


@dataclass(frozen=True)
class PageBreak(Element):
    """Explicit ``\\newpage`` directive."""

    def accept(self, visitor: "ElementVisitor") -> Any:
        """Accept a visitor for processing this page break."""
        return visitor.visit_page_break(self)


@dataclass(frozen=True)
class VerticalSpace(Element):
    """Explicit ``\\vspace{N}`` directive; size in millimetres."""

    size_mm: float = DEFAULT_VSPACE_MM

    def accept(self, visitor: "ElementVisitor") -> Any:
        """Accept a visitor for processing this vertical space."""
        return visitor.visit_vertical_space(self)


@dataclass(frozen=True)
class AlignmentChange(Element):
    """Alignment directive applying to everything that follows."""

    alignment: Alignment

    def accept(self, visitor: "ElementVisitor") -> Any:
        """Accept a visitor for processing this alignment change."""
        return visitor.visit_alignment(self)


@dataclass(frozen=True)
class StyledText(Element):
    """One line of bold, italic or coloured text from a directive or HTML block."""

    text: str
    style: TextStyle
    color: Optional[RGB] = None

    def accept(self, visitor: "ElementVisitor") -> Any:
        """Accept a visitor for processing this styled text."""
        return visitor.visit_styled_text(self)


def is_svg_url(url: str) -> bool:
    """Return True when ``url`` points at an SVG resource.

    The query string and fragment are ignored, and ``data:image/svg+xml``
    URIs count as SVG.
    """
    lowered = url.strip().lower()
    if lowered.startswith("data:"):
        return lowered.startswith("data:image/svg+xml")
    path = lowered.split("#", 1)[0].split("?", 1)[0]
    return path.endswith(".svg")


class ElementVisitor(ABC):
    """Abstract base class for element visitors.

    Subclasses must implement every ``visit_*`` method; the abstract methods
    make a missing handler an instantiation error rather than a silent no-op.
    Return values are up to the visitor (the layout engine returns
    awaitables yielding a new layout context).
    """

    @abstractmethod
    def visit_header(self, element: Header) -> Any:
        """Visit a Header element."""

    @abstractmethod
    def visit_paragraph(self, element: Paragraph) -> Any:
        """Visit a Paragraph element."""

    @abstractmethod
    def visit_list(self, element: ListBlock) -> Any:
        """Visit a ListBlock element."""

    @abstractmethod
    def visit_table(self, element: Table) -> Any:
        """Visit a Table element."""

    @abstractmethod
    def visit_code_block(self, element: CodeBlock) -> Any:
        """Visit a CodeBlock element."""

    @abstractmethod
    def visit_blockquote(self, element: Blockquote) -> Any:
        """Visit a Blockquote element."""

    @abstractmethod
    def visit_image(self, element: Image) -> Any:
        """Visit an Image element."""

    @abstractmethod
    def visit_rule(self, element: Rule) -> Any:
        """Visit a Rule element."""

    @abstractmethod
    def visit_page_break(self, element: PageBreak) -> Any:
        """Visit a PageBreak directive."""

    @abstractmethod
    def visit_vertical_space(self, element: VerticalSpace) -> Any:
        """Visit a VerticalSpace directive."""

    @abstractmethod
    def visit_alignment(self, element: AlignmentChange) -> Any:
        """Visit an AlignmentChange directive."""

    @abstractmethod
    def visit_styled_text(self, element: StyledText) -> Any:
        """Visit a StyledText directive."""


DIRECTIVE_TYPES = (PageBreak, VerticalSpace, AlignmentChange, StyledText)

__all__ = [
    "AlignmentChange",
    "Blockquote",
    "Cell",
    "CodeBlock",
    "DIRECTIVE_TYPES",
    "Element",
    "ElementVisitor",
    "Header",
    "Image",
    "ImageCell",
    "InlineSpan",
    "ListBlock",
    "ListItem",
    "ListLink",
    "PageBreak",
    "Paragraph",
    "Rule",
    "StyledText",
    "Table",
    "TextCell",
    "VerticalSpace",
    "is_svg_url",
]
