#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/slugs.py
"""Anchor id derivation and anchor folding helpers.

``header_id`` is the one function every consumer must agree on: the parser
uses it to stamp ``Header.id`` and link authors use the same rules to write
``[Section](#section)`` references. The remaining helpers produce the looser
variants the link index stores and compares against.
"""

from __future__ import annotations

import re

_NON_WORD = re.compile(r"[^\w\s-]", re.UNICODE)
_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^0-9a-z]")
_NON_ALNUM_RUN = re.compile(r"[^0-9a-z]+")
_HASH_OR_HYPHEN = re.compile(r"[#-]")


def header_id(text: str) -> str:
    """Derive the anchor id of a heading.

    Lowercase, drop every character other than word characters, whitespace
    and hyphens, collapse whitespace runs to a single hyphen, then trim
    leading and trailing hyphens. The function is idempotent.

    Parameters
    ----------
    text : str
        Heading display text

    Returns
    -------
    str
        Anchor id, possibly empty when the heading has no word characters

    Examples
    --------
        >>> header_id("Getting Started!")
        'getting-started'
        >>> header_id(header_id("Getting Started!"))
        'getting-started'

    """
    slug = _NON_WORD.sub("", text.strip().lower())
    slug = _WHITESPACE.sub("-", slug)
    return slug.strip("-")


def text_slug(text: str) -> str:
    """Slug of display text without trimming hyphens (the TOC-style variant)."""
    return _WHITESPACE.sub("-", _NON_WORD.sub("", text.lower()))


def reference_slug(reference: str) -> str:
    """Drop the first ``#``, lowercase, and turn whitespace runs into hyphens."""
    return _WHITESPACE.sub("-", reference.replace("#", "", 1).strip().lower())


def kebab(text: str) -> str:
    """Lowercase ASCII kebab-case: every non-alphanumeric run becomes one hyphen."""
    return _NON_ALNUM_RUN.sub("-", text.lower()).strip("-")


def alnum_fold(text: str) -> str:
    """Keep only lowercase ASCII letters and digits."""
    return _NON_ALNUM.sub("", text.lower())


def loose_fold(text: str) -> str:
    """Remove hashes and hyphens and lowercase."""
    return _HASH_OR_HYPHEN.sub("", text).lower()
