#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/backends/__init__.py
"""PDF backends for markpage.

The default backend writes through PyMuPDF. The ReportLab backend is
available when ``reportlab`` is installed (``pip install markpage[reportlab]``).
"""

from __future__ import annotations

from typing import Callable

from markpage.backends.base import LinkTarget, PdfBackend
from markpage.backends.recording import DrawCall, RecordingBackend

BackendFactory = Callable[[float, float], PdfBackend]


def create_backend(name: str, page_width: float, page_height: float) -> PdfBackend:
    """Instantiate a backend by name.

    Parameters
    ----------
    name : {"pymupdf", "reportlab"}
        Backend name
    page_width : float
        Page width in points
    page_height : float
        Page height in points

    Returns
    -------
    PdfBackend
        A fresh backend with no pages

    Raises
    ------
    ValueError
        If the backend name is unknown
    DependencyError
        If the backend's library is not installed

    """
    if name == "pymupdf":
        from markpage.backends.pymupdf import PyMuPdfBackend

        return PyMuPdfBackend(page_width, page_height)
    if name == "reportlab":
        from markpage.backends.reportlab import ReportLabBackend

        return ReportLabBackend(page_width, page_height)
    raise ValueError(f"Unknown backend: {name!r}")


__all__ = [
    "BackendFactory",
    "DrawCall",
    "LinkTarget",
    "PdfBackend",
    "RecordingBackend",
    "create_backend",
]
