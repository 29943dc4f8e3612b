#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/inline.py
"""Inline Markdown parsing: links and emphasis.

Paragraph text is split into :class:`~markpage.model.InlineSpan` runs with
mutually exclusive formats. Links are swapped for placeholders first so that
emphasis markers inside link text or URLs cannot split a link. Five emphasis
passes then run in precedence order (bold-italic, bold, italic,
strikethrough, inline code), each splitting only the ``normal`` spans left by
the previous pass. Finally the placeholders become link spans that inherit
the format of the span they sit in.
"""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urljoin, urlsplit

from markpage.constants import InlineFormat
from markpage.model import InlineSpan

logger = logging.getLogger(__name__)

LINK_PATTERN = re.compile(r"(?<!!)\[(.*?)\]\((.*?)\)")

EMPHASIS_PASSES: tuple[tuple[re.Pattern[str], InlineFormat], ...] = (
    (re.compile(r"\*\*\*(.+?)\*\*\*"), "bolditalic"),
    (re.compile(r"\*\*(.+?)\*\*"), "bold"),
    (re.compile(r"\*(.+?)\*"), "italic"),
    (re.compile(r"~~(.+?)~~"), "strikethrough"),
    (re.compile(r"`([^`]+)`"), "inlinecode"),
)

# Private-use code points never appear in Markdown emphasis syntax
_PLACEHOLDER_OPEN = "\ue000"
_PLACEHOLDER_CLOSE = "\ue001"
_PLACEHOLDER_PATTERN = re.compile(f"{_PLACEHOLDER_OPEN}(\\d+){_PLACEHOLDER_CLOSE}")


def resolve_link_url(url: str, base_url: Optional[str] = None) -> str:
    """Rewrite a link target for a single flattened PDF.

    In-document anchors are kept. Links to other Markdown files become ``#``
    (the start of the document). Relative URLs are resolved against
    ``base_url`` when one is given.

    Parameters
    ----------
    url : str
        Link target as written
    base_url : str, optional
        Base URL for relative targets

    Returns
    -------
    str
        Rewritten target

    """
    url = url.strip()
    if url.startswith("#"):
        return url
    path = urlsplit(url).path
    if path.lower().endswith(".md"):
        logger.debug(f"Markdown file link converted: {url} -> #")
        return "#"
    if base_url and not urlsplit(url).scheme:
        resolved = urljoin(base_url, url)
        logger.debug(f"Relative link resolved: {url} -> {resolved}")
        return resolved
    return url


def _split_pass(spans: list[InlineSpan], pattern: re.Pattern[str], fmt: InlineFormat) -> list[InlineSpan]:
    result: list[InlineSpan] = []
    for span in spans:
        if span.format != "normal":
            result.append(span)
            continue
        last = 0
        for match in pattern.finditer(span.text):
            if match.start() > last:
                result.append(InlineSpan(span.text[last : match.start()]))
            result.append(InlineSpan(match.group(1), fmt))
            last = match.end()
        if last == 0:
            result.append(span)
        elif last < len(span.text):
            result.append(InlineSpan(span.text[last:]))
    return result


def _restore_links(spans: list[InlineSpan], links: list[tuple[str, str]]) -> list[InlineSpan]:
    result: list[InlineSpan] = []
    for span in spans:
        last = 0
        for match in _PLACEHOLDER_PATTERN.finditer(span.text):
            if match.start() > last:
                result.append(InlineSpan(span.text[last : match.start()], span.format))
            text, url = links[int(match.group(1))]
            result.append(InlineSpan(text, span.format, url))
            last = match.end()
        if last == 0:
            result.append(span)
        elif last < len(span.text):
            result.append(InlineSpan(span.text[last:], span.format))
    return result


def parse_inline(text: str, base_url: Optional[str] = None) -> tuple[InlineSpan, ...]:
    """Split a line of Markdown into formatted inline spans.

    Parameters
    ----------
    text : str
        One line of paragraph text
    base_url : str, optional
        Base URL for relative link targets

    Returns
    -------
    tuple of InlineSpan
        Spans in source order; never empty for non-empty input

    Examples
    --------
        >>> [(s.text, s.format) for s in parse_inline("Some *italic* and **bold** text.")]
        [('Some ', 'normal'), ('italic', 'italic'), (' and ', 'normal'), ('bold', 'bold'), (' text.', 'normal')]

    """
    links: list[tuple[str, str]] = []

    def _stash(match: re.Match[str]) -> str:
        links.append((strip_emphasis(match.group(1)), resolve_link_url(match.group(2), base_url)))
        return f"{_PLACEHOLDER_OPEN}{len(links) - 1}{_PLACEHOLDER_CLOSE}"

    masked = LINK_PATTERN.sub(_stash, text)

    spans = [InlineSpan(masked)]
    for pattern, fmt in EMPHASIS_PASSES:
        spans = _split_pass(spans, pattern, fmt)

    if links:
        spans = _restore_links(spans, links)

    return tuple(span for span in spans if span.text)


def strip_emphasis(text: str) -> str:
    """Remove emphasis markup, keeping the enclosed text."""
    for pattern, _fmt in EMPHASIS_PASSES:
        text = pattern.sub(r"\1", text)
    return text
