#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/utils/text.py
"""Width-aware text wrapping shared by the PDF backends."""

from __future__ import annotations

from typing import Callable

Measure = Callable[[str], float]


def _split_long_word(word: str, max_width: float, measure: Measure) -> list[str]:
    pieces: list[str] = []
    current = ""
    for ch in word:
        if current and measure(current + ch) > max_width:
            pieces.append(current)
            current = ch
        else:
            current += ch
    if current:
        pieces.append(current)
    return pieces


def wrap_text(text: str, max_width: float, measure: Measure) -> list[str]:
    """Greedily wrap text so that every line measures at most ``max_width``.

    Existing newlines are kept as hard breaks. A word wider than the line is
    split between characters.

    Parameters
    ----------
    text : str
        Text to wrap
    max_width : float
        Available width in points
    measure : callable
        Returns the rendered width of a string in points

    Returns
    -------
    list of str
        Wrapped lines; at least one (possibly empty) line

    Examples
    --------
        >>> wrap_text("aaa bbb ccc", 7, len)
        ['aaa bbb', 'ccc']

    """
    lines: list[str] = []
    for paragraph in text.split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if measure(candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            if measure(word) > max_width:
                pieces = _split_long_word(word, max_width, measure)
                lines.extend(pieces[:-1])
                current = pieces[-1]
            else:
                current = word
        lines.append(current)
    return lines or [""]
