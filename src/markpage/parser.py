#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/parser.py
"""Markdown to document model parser.

This module turns Markdown text into the flat element list consumed by the
layout engine. It handles the subset of Markdown the PDF layout understands
(headings, paragraphs with inline emphasis and links, lists, pipe tables,
fenced code, block quotes, rules, images), LaTeX-style directives written
inside HTML comments, and simple single-element HTML blocks.

The parser is a single left-to-right scan over lines. Its only state is the
code-fence flag, a pending list and a pending table. It never raises on
malformed input: anything that matches no rule becomes a paragraph.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from bs4 import BeautifulSoup

from markpage.constants import ListKind
from markpage.directives import is_comment_line, parse_color, parse_directive
from markpage.inline import LINK_PATTERN, parse_inline, resolve_link_url, strip_emphasis
from markpage.model import (
    Blockquote,
    Cell,
    CodeBlock,
    Element,
    Header,
    Image,
    ImageCell,
    InlineSpan,
    ListBlock,
    ListItem,
    ListLink,
    Paragraph,
    Rule,
    StyledText,
    Table,
    TextCell,
)
from markpage.slugs import header_id

logger = logging.getLogger(__name__)

HEADER_PATTERN = re.compile(r"^(#{1,6})\s+(.*)$")
IMAGE_PATTERN = re.compile(r"!\[(.*?)\]\((.*?)\)")
UNORDERED_PATTERN = re.compile(r"^(\s*)-\s+(.*)$")
ORDERED_PATTERN = re.compile(r"^(\s*)(\d+)\.\s+(.*)$")
BLOCKQUOTE_PATTERN = re.compile(r"^>\s?(.*)$")
SEPARATOR_CELL = re.compile(r"^[-:]+$")
HTML_OPEN_TAG = re.compile(r"<(\w+)([^>]*)>")
RULE_LINES = frozenset({"---", "***", "___"})
FENCE = "```"

# Elements recognized as standalone HTML blocks
HTML_BLOCK_TAGS = frozenset({"div", "span", "p", "b", "i", "strong", "em", "code", "pre"})


@dataclass
class _PendingTable:
    before_separator: list[list[str]] = field(default_factory=list)
    body: list[list[str]] = field(default_factory=list)
    separator_seen: bool = False
    lines: list[str] = field(default_factory=list)


def _split_row(line: str) -> list[str]:
    return [cell.strip() for cell in line.strip()[1:-1].split("|")]


def _is_separator(cells: list[str]) -> bool:
    return bool(cells) and all(SEPARATOR_CELL.match(cell) for cell in cells)


def _make_cell(content: str) -> Cell:
    match = IMAGE_PATTERN.search(content)
    if match:
        return ImageCell(alt_text=match.group(1), url=_image_url(match.group(2)))
    return TextCell(content)


def _image_url(raw: str) -> str:
    # Drop an optional title: ![alt](url "title")
    raw = raw.strip()
    return raw.split()[0] if raw else raw


def _parse_style(style: str) -> dict[str, str]:
    result: dict[str, str] = {}
    for declaration in style.split(";"):
        prop, sep, value = declaration.partition(":")
        if sep and prop.strip() and value.strip():
            result[prop.strip().lower()] = value.strip().lower()
    return result


def parse_html_block(html: str) -> Optional[Element]:
    """Convert a single HTML element into a styled line or paragraph.

    Nested markup is flattened to text. ``<script>`` and ``<style>`` content
    is discarded.

    Parameters
    ----------
    html : str
        Markup of one element, possibly spanning several lines

    Returns
    -------
    Element or None
        StyledText for bold, italic or coloured elements, Paragraph otherwise;
        None when the element is not a recognized block or has no text

    """
    soup = BeautifulSoup(html, "html.parser")
    for unwanted in soup(["script", "style"]):
        unwanted.decompose()

    element = soup.find(True)
    if element is None or element.name.lower() not in HTML_BLOCK_TAGS:
        return None

    tag = element.name.lower()
    content = " ".join(element.get_text().split())
    if not content:
        return None

    style_attr = element.get("style") or ""
    styles = _parse_style(style_attr if isinstance(style_attr, str) else " ".join(style_attr))
    bold = tag in ("b", "strong") or styles.get("font-weight") == "bold"
    italic = tag in ("i", "em") or styles.get("font-style") == "italic"

    color = parse_color(styles.get("color"))
    if color is not None:
        return StyledText(content, "color", color)
    if bold and italic:
        return Paragraph((InlineSpan(content, "bolditalic"),))
    if bold:
        return StyledText(content, "bold")
    if italic:
        return StyledText(content, "italic")
    if tag in ("code", "pre"):
        return Paragraph((InlineSpan(content, "inlinecode"),))
    return Paragraph((InlineSpan(content),))


class MarkdownParser:
    """Line-oriented Markdown parser producing the flat element list.

    Parameters
    ----------
    base_url : str, optional
        Base URL against which relative link targets are resolved

    Examples
    --------
        >>> elements = MarkdownParser().parse("# Title\\n\\nSome *italic* text.")
        >>> [type(e).__name__ for e in elements]
        ['Header', 'Paragraph']

    """

    def __init__(self, base_url: Optional[str] = None):
        """Initialize the parser."""
        self.base_url = base_url
        self._reset()

    def _reset(self) -> None:
        self._elements: list[Element] = []
        self._list_kind: Optional[ListKind] = None
        self._list_items: list[ListItem] = []
        self._table: Optional[_PendingTable] = None

    def parse(self, text: str) -> list[Element]:
        """Parse Markdown text into an ordered list of elements.

        Parameters
        ----------
        text : str
            Markdown source

        Returns
        -------
        list of Element
            Elements in source order

        """
        self._reset()
        lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")

        in_code = False
        in_comment = False
        code_language = ""
        code_lines: list[str] = []

        i = 0
        while i < len(lines):
            line = lines[i]
            stripped = line.strip()
            i += 1

            # Fences take precedence over every other rule
            if in_code:
                if stripped.startswith(FENCE):
                    self._elements.append(CodeBlock(code_language, "\n".join(code_lines)))
                    in_code = False
                else:
                    code_lines.append(line)
                continue

            if stripped.startswith(FENCE):
                self._flush_all()
                in_code = True
                code_language = stripped[len(FENCE) :].strip()
                code_lines = []
                continue

            if in_comment:
                if "-->" in line:
                    in_comment = False
                continue

            if stripped.startswith("|") and stripped.endswith("|") and len(stripped) > 1:
                self._flush_list()
                self._add_table_row(stripped)
                continue
            self._flush_table()

            if is_comment_line(stripped):
                self._flush_list()
                directive = parse_directive(stripped)
                if directive is not None:
                    self._elements.append(directive)
                continue

            if stripped.startswith("<!--"):
                # Multi-line comments are dropped
                self._flush_list()
                in_comment = True
                continue

            header_match = HEADER_PATTERN.match(line)
            if header_match:
                self._flush_list()
                header_text = header_match.group(2).strip()
                self._elements.append(Header(len(header_match.group(1)), header_text, header_id(header_text)))
                continue

            if IMAGE_PATTERN.search(line):
                self._flush_list()
                self._add_image_line(stripped)
                continue

            unordered = UNORDERED_PATTERN.match(line)
            if unordered:
                self._add_list_item("unordered", unordered.group(1), unordered.group(2), None)
                continue

            ordered = ORDERED_PATTERN.match(line)
            if ordered:
                self._add_list_item("ordered", ordered.group(1), ordered.group(3), int(ordered.group(2)))
                continue

            self._flush_list()

            if not stripped:
                continue

            quote = BLOCKQUOTE_PATTERN.match(stripped)
            if quote:
                quote_text = quote.group(1).strip()
                if quote_text:
                    self._elements.append(Blockquote(quote_text))
                continue

            if stripped in RULE_LINES:
                self._elements.append(Rule())
                continue

            if stripped.startswith("<"):
                consumed = self._try_html_block(lines, i - 1)
                if consumed:
                    i += consumed - 1
                    continue

            self._elements.append(Paragraph(parse_inline(stripped, self.base_url)))

        if in_code:
            logger.debug("Unterminated code fence at end of input; flushing as code block")
            self._elements.append(CodeBlock(code_language, "\n".join(code_lines)))

        self._flush_all()
        logger.debug(f"Parsed {len(self._elements)} elements from {len(lines)} lines")
        return self._elements

    # ------------------------------------------------------------------
    # Pending list
    # ------------------------------------------------------------------

    def _add_list_item(self, kind: ListKind, indent: str, raw_text: str, number: Optional[int]) -> None:
        if self._list_kind is not None and self._list_kind != kind:
            self._flush_list()
        self._list_kind = kind

        segments = parse_inline(raw_text.strip(), self.base_url)
        link = None
        first_link = LINK_PATTERN.search(raw_text)
        if first_link:
            link = ListLink(
                display_text=strip_emphasis(first_link.group(1)),
                target_url=resolve_link_url(first_link.group(2), self.base_url),
            )

        self._list_items.append(
            ListItem(
                text="".join(span.text for span in segments),
                indent_level=len(indent.expandtabs(4)) // 2,
                link=link,
                number=number,
                segments=segments,
            )
        )

    def _flush_list(self) -> None:
        if self._list_items and self._list_kind is not None:
            self._elements.append(ListBlock(self._list_kind, tuple(self._list_items)))
        self._list_items = []
        self._list_kind = None

    # ------------------------------------------------------------------
    # Pending table
    # ------------------------------------------------------------------

    def _add_table_row(self, line: str) -> None:
        if self._table is None:
            self._table = _PendingTable()
        table = self._table
        table.lines.append(line)
        cells = _split_row(line)
        if _is_separator(cells):
            if table.separator_seen:
                logger.debug("Ignoring repeated table separator row")
            table.separator_seen = True
        elif table.separator_seen:
            table.body.append(cells)
        else:
            table.before_separator.append(cells)

    def _flush_table(self) -> None:
        table, self._table = self._table, None
        if table is None:
            return

        if table.separator_seen:
            if table.before_separator:
                if len(table.before_separator) > 1:
                    logger.debug(f"Table has {len(table.before_separator)} header rows; keeping the last")
                header = table.before_separator[-1]
                body = table.body
            else:
                header, body = (table.body[0], table.body[1:]) if table.body else ([], [])
        else:
            rows = table.before_separator
            header, body = rows[0], rows[1:]

        if not header:
            # Separator rows alone are not a table
            logger.debug("Table without header or body rows; keeping it as text")
            for line in table.lines:
                self._elements.append(Paragraph(parse_inline(line, self.base_url)))
            return

        width = len(header)
        rows_out = []
        for row in body:
            if len(row) != width:
                logger.debug(f"Table row has {len(row)} cells, expected {width}; padding/truncating")
                row = (row + [""] * width)[:width]
            rows_out.append(tuple(_make_cell(cell) for cell in row))

        self._elements.append(Table(tuple(_make_cell(cell) for cell in header), tuple(rows_out)))

    def _flush_all(self) -> None:
        self._flush_table()
        self._flush_list()

    # ------------------------------------------------------------------
    # Images and HTML
    # ------------------------------------------------------------------

    def _add_image_line(self, line: str) -> None:
        last = 0
        for match in IMAGE_PATTERN.finditer(line):
            before = line[last : match.start()].strip()
            if before:
                self._elements.append(Paragraph(parse_inline(before, self.base_url)))
            self._elements.append(Image(url=_image_url(match.group(2)), alt_text=match.group(1)))
            last = match.end()
        after = line[last:].strip()
        if after:
            self._elements.append(Paragraph(parse_inline(after, self.base_url)))

    def _try_html_block(self, lines: list[str], start: int) -> int:
        """Parse an HTML element starting at ``lines[start]``; return lines consumed (0 if none)."""
        tag_match = HTML_OPEN_TAG.match(lines[start].strip())
        if not tag_match:
            return 0

        closing = f"</{tag_match.group(1).lower()}>"
        end = start
        while closing not in lines[end].lower():
            if lines[end].rstrip().endswith("/>"):
                break
            end += 1
            if end >= len(lines):
                logger.debug(f"HTML block <{tag_match.group(1)}> is never closed; treating as text")
                return 0

        element = parse_html_block("\n".join(lines[start : end + 1]))
        if element is None:
            return 0
        self._elements.append(element)
        return end - start + 1


def parse_markdown(text: str, base_url: Optional[str] = None) -> list[Element]:
    """Parse Markdown text into an ordered list of elements.

    Parameters
    ----------
    text : str
        Markdown source
    base_url : str, optional
        Base URL against which relative link targets are resolved

    Returns
    -------
    list of Element
        Elements in source order

    """
    return MarkdownParser(base_url=base_url).parse(text)
