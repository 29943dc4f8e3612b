#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/outline.py
"""Outline (bookmark) tree builder.

Nodes live in an arena list addressed by index; index 0 is a synthetic root.
Children hold indices rather than references, so the tree has no cycles and
can be walked or emitted repeatedly. A seven-slot stack remembers the last
node created at each heading level (slot 0 is the root).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator, Optional

if TYPE_CHECKING:
    from markpage.backends.base import PdfBackend

logger = logging.getLogger(__name__)

ROOT = 0
MAX_LEVEL = 6


@dataclass
class OutlineNode:
    """Single outline entry.

    Parameters
    ----------
    title : str
        Bookmark label
    target_page : int
        1-based page the bookmark jumps to (0 for the root)
    parent : int or None
        Arena index of the parent (None for the root)
    children : list of int
        Arena indices of the children, in document order
    level : int
        Heading level (0 for the root)

    """

    title: str
    target_page: int
    parent: Optional[int] = None
    children: list[int] = field(default_factory=list)
    level: int = 0


class OutlineBuilder:
    """Build a bookmark tree from headings in document order."""

    def __init__(self) -> None:
        """Initialize with only the synthetic root."""
        self.nodes: list[OutlineNode] = [OutlineNode(title="", target_page=0)]
        self._stack: list[Optional[int]] = [ROOT] + [None] * MAX_LEVEL

    def __len__(self) -> int:
        """Return the number of real (non-root) nodes."""
        return len(self.nodes) - 1

    @property
    def stack(self) -> tuple[Optional[int], ...]:
        """Return a snapshot of the last node index per level (slot 0 is the root)."""
        return tuple(self._stack)

    def add(self, level: int, title: str, page: int) -> int:
        """Add a heading and return its arena index.

        The parent is the nearest non-empty slot from ``level - 1`` down to 1,
        else the root. Slots deeper than ``level`` are cleared since their
        subtree has ended.

        Parameters
        ----------
        level : int
            Heading level, 1-6
        title : str
            Heading display text
        page : int
            Page the heading was placed on

        Returns
        -------
        int
            Arena index of the new node

        """
        if not 1 <= level <= MAX_LEVEL:
            raise ValueError(f"Heading level must be 1-{MAX_LEVEL}, got {level}")

        parent = ROOT
        for slot in range(level - 1, 0, -1):
            candidate = self._stack[slot]
            if candidate is not None:
                parent = candidate
                break

        index = len(self.nodes)
        self.nodes.append(OutlineNode(title=title, target_page=page, parent=parent, level=level))
        self.nodes[parent].children.append(index)

        self._stack[level] = index
        for slot in range(level + 1, MAX_LEVEL + 1):
            self._stack[slot] = None
        return index

    def walk(self) -> Iterator[tuple[OutlineNode, int]]:
        """Yield ``(node, depth)`` pairs in document order, root excluded.

        Depth 1 marks children of the root.
        """
        pending: list[tuple[int, int]] = [(child, 1) for child in reversed(self.nodes[ROOT].children)]
        while pending:
            index, depth = pending.pop()
            node = self.nodes[index]
            yield node, depth
            pending.extend((child, depth + 1) for child in reversed(node.children))

    def emit(self, backend: "PdfBackend") -> int:
        """Hand the tree to the backend, parents before children.

        Returns
        -------
        int
            Number of entries emitted

        """
        handles: dict[int, Any] = {ROOT: None}
        count = 0
        pending = list(reversed(self.nodes[ROOT].children))
        while pending:
            index = pending.pop()
            node = self.nodes[index]
            handles[index] = backend.add_outline_entry(handles[node.parent], node.title, node.target_page)
            count += 1
            pending.extend(reversed(node.children))
        logger.debug(f"Emitted {count} outline entries")
        return count
