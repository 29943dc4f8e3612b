#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/directives.py
"""LaTeX-style layout commands embedded in HTML comments.

A line such as ``<!-- \\vspace{20} -->`` carries a layout directive. The
recognized commands are::

    \\newpage                 page break
    \\vspace{N}               vertical space of N millimetres (default 10)
    \\hline                   horizontal rule
    \\textbf{text}            bold line
    \\textit{text}            italic line
    \\textcolor{color}{text}  coloured line
    \\centering               centre alignment
    \\raggedright \\flushleft  left alignment
    \\raggedleft \\flushright  right alignment
    \\justify                 justified alignment

Unknown commands and plain comments yield no element.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from markpage.constants import DEFAULT_VSPACE_MM, NAMED_COLORS, RGB
from markpage.model import AlignmentChange, Element, PageBreak, Rule, StyledText, VerticalSpace

logger = logging.getLogger(__name__)

COMMAND_PATTERN = re.compile(r"<!--\s*\\(\w+)(?:\{(.*?)\})?\s*-->", re.IGNORECASE)
_TEXTCOLOR_PARAM = re.compile(r"^(#?\w+)\}\{(.*)$", re.DOTALL)
_LEADING_NUMBER = re.compile(r"^\s*(\d+(?:\.\d+)?)")
_HEX_COLOR = re.compile(r"^#?([0-9a-f]{3}|[0-9a-f]{6})$", re.IGNORECASE)
_RGB_COLOR = re.compile(r"rgb\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)", re.IGNORECASE)

_ALIGNMENTS = {
    "centering": "center",
    "raggedright": "left",
    "flushleft": "left",
    "raggedleft": "right",
    "flushright": "right",
    "justify": "justify",
}


def parse_color(value: Optional[str]) -> Optional[RGB]:
    """Convert a colour name, hex code or ``rgb()`` value to an RGB triple.

    Parameters
    ----------
    value : str or None
        Colour specification such as ``"red"``, ``"#ff8800"`` or ``"rgb(0, 128, 0)"``

    Returns
    -------
    RGB or None
        Components in the range [0, 1], or None when unrecognized

    """
    if not value:
        return None
    value = value.strip().lower()
    if value in NAMED_COLORS:
        return NAMED_COLORS[value]

    hex_match = _HEX_COLOR.match(value)
    if hex_match:
        digits = hex_match.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return tuple(int(digits[i : i + 2], 16) / 255.0 for i in (0, 2, 4))  # type: ignore[return-value]

    rgb_match = _RGB_COLOR.search(value)
    if rgb_match:
        return tuple(min(int(part), 255) / 255.0 for part in rgb_match.groups())  # type: ignore[return-value]

    return None


def is_comment_line(line: str) -> bool:
    """Return True when the trimmed line is a complete single-line HTML comment."""
    stripped = line.strip()
    return stripped.startswith("<!--") and stripped.endswith("-->")


def parse_directive(line: str) -> Optional[Element]:
    """Decode a directive comment into a layout element.

    Parameters
    ----------
    line : str
        Source line

    Returns
    -------
    Element or None
        The decoded element, or None for unknown commands and lines that are
        not directive comments

    """
    match = COMMAND_PATTERN.search(line.strip())
    if not match:
        return None

    command = match.group(1).lower()
    parameter = match.group(2)

    if command == "newpage":
        return PageBreak()

    if command == "vspace":
        size = DEFAULT_VSPACE_MM
        if parameter:
            number = _LEADING_NUMBER.match(parameter)
            if number:
                size = float(number.group(1))
            else:
                logger.debug(f"Ignoring unreadable vspace size {parameter!r}")
        return VerticalSpace(size)

    if command == "hline":
        return Rule()

    if command == "textbf":
        return StyledText(parameter or "", "bold")

    if command == "textit":
        return StyledText(parameter or "", "italic")

    if command == "textcolor":
        color_match = _TEXTCOLOR_PARAM.match(parameter or "")
        if not color_match:
            logger.debug(f"Malformed textcolor command: {line.strip()}")
            return None
        color = parse_color(color_match.group(1))
        if color is None:
            logger.debug(f"Unknown colour {color_match.group(1)!r}, using black")
            color = NAMED_COLORS["black"]
        return StyledText(color_match.group(2), "color", color)

    if command in _ALIGNMENTS:
        return AlignmentChange(_ALIGNMENTS[command])  # type: ignore[arg-type]

    logger.debug("Dropping unknown command \\%s", command)
    return None
