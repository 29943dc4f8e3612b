#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/layout/__init__.py
"""Pagination and placement of parsed elements."""

from markpage.layout.context import LayoutContext
from markpage.layout.engine import LayoutEngine, describe_element
from markpage.layout.images import fit_image
from markpage.layout.tables import measure_row

__all__ = ["LayoutContext", "LayoutEngine", "describe_element", "fit_image", "measure_row"]
