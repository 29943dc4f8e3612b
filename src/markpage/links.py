#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/links.py
"""Link index mapping anchors to page numbers.

Heading pages are only known once layout reaches each heading, so the index
is filled during a first layout pass, widened by :meth:`LinkIndex.normalize`,
and queried while the second pass draws link rectangles. This ordering lets
a table of contents link to headings that appear after it.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional

from markpage.model import Header, ListItem
from markpage.slugs import alnum_fold, kebab, loose_fold, reference_slug, text_slug

logger = logging.getLogger(__name__)

# Share of internal links above which a list is treated as a table of contents
TOC_LINK_RATIO = 0.8


class LinkIndex:
    """Mapping from anchor strings to 1-based page numbers.

    Registering an existing key overwrites it, so two headings with the same
    normalized text resolve to the page of the last one laid out.
    """

    def __init__(self) -> None:
        """Initialize an empty index."""
        self._entries: dict[str, int] = {}
        self._frozen = False

    def __len__(self) -> int:
        """Return the number of stored keys, variants included."""
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        """Return True when ``key`` is stored verbatim."""
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        """Iterate over stored keys in insertion order."""
        return iter(self._entries)

    def items(self) -> Iterable[tuple[str, int]]:
        """Return ``(key, page)`` pairs."""
        return self._entries.items()

    @property
    def frozen(self) -> bool:
        """True once the index no longer accepts registrations."""
        return self._frozen

    def freeze(self) -> None:
        """Stop accepting registrations.

        The drawing pass lays headings out again; freezing keeps the pages
        found by the dry run, so duplicate headings keep resolving to the
        last one in the document.
        """
        self._frozen = True

    def clear(self) -> None:
        """Remove every entry and accept registrations again."""
        self._entries.clear()
        self._frozen = False

    def register(self, key: str, page: int) -> None:
        """Map ``key`` to ``page`` (last write wins)."""
        if not key or self._frozen:
            return
        self._entries[key] = page

    def register_header(self, header: Header, page: int) -> None:
        """Register a heading's id, ``#id``, display-text slug and lowercase text.

        Parameters
        ----------
        header : Header
            Heading being placed
        page : int
            Page the heading landed on

        """
        if header.id:
            self.register(header.id, page)
            self.register("#" + header.id, page)
        self.register(text_slug(header.text), page)
        self.register(header.text.lower(), page)
        logger.debug(f"Mapped header {header.text!r} (id={header.id!r}) to page {page}")

    def normalize(self) -> None:
        """Add slug, kebab, lowercase and hash variants for every stored key.

        Existing entries are never overridden, and every variant maps to the
        page of the key it was derived from.
        """
        added = 0
        for key, page in list(self._entries.items()):
            stripped = key[1:] if key.startswith("#") else key
            variants = (
                reference_slug(key),
                kebab(stripped),
                key.lower(),
                stripped,
                "#" + stripped,
            )
            for variant in variants:
                if variant and variant not in self._entries:
                    self._entries[variant] = page
                    added += 1
        logger.debug(f"Link index normalized: {added} variants added, {len(self._entries)} keys total")

    def resolve(self, reference: str) -> Optional[int]:
        """Resolve a link reference to a page number.

        Resolution tries, in order: exact match; the reference with its
        leading ``#`` toggled; ``"#"`` alone (page 1); a lowercase
        whitespace-to-hyphen slug; an alphanumeric-only fold compared with
        every key; a hash/hyphen-stripped fold compared with every key.

        Parameters
        ----------
        reference : str
            Link target such as ``"#getting-started"``

        Returns
        -------
        int or None
            Page number, or None when the reference cannot be resolved

        """
        if not reference:
            return None

        if reference in self._entries:
            return self._entries[reference]

        toggled = reference[1:] if reference.startswith("#") else "#" + reference
        if toggled in self._entries:
            return self._entries[toggled]

        if reference == "#":
            return 1

        slug = reference_slug(reference)
        if slug in self._entries:
            return self._entries[slug]

        folded = alnum_fold(reference)
        if folded:
            for key, page in self._entries.items():
                if alnum_fold(key) == folded:
                    return page

        loose = loose_fold(reference)
        for key, page in self._entries.items():
            if loose_fold(key) == loose:
                return page

        logger.debug(f"No page found for link reference {reference!r}")
        return None


def is_internal_reference(url: str) -> bool:
    """Return True for in-document references (``#anchor``)."""
    return url.startswith("#")


def looks_like_toc(items: Iterable[ListItem]) -> bool:
    """Return True when more than 80% of the items link inside the document."""
    items = list(items)
    if not items:
        return False
    internal = sum(1 for item in items if item.link is not None and is_internal_reference(item.link.target_url))
    return internal / len(items) > TOC_LINK_RATIO
