#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/utils/__init__.py
"""Utility modules for the markpage package.

This package contains dependency checking, image and SVG helpers and text
wrapping shared by the backends and the layout engine.
"""

from markpage.utils.images import decode_data_uri, detect_image_format_from_bytes, is_data_uri
from markpage.utils.text import wrap_text

__all__ = [
    "decode_data_uri",
    "detect_image_format_from_bytes",
    "is_data_uri",
    "wrap_text",
]
