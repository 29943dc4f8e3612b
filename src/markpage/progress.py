#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/progress.py
"""Progress callback system for Markdown-to-PDF conversion.

This module provides a standardized way to report layout progress to embedders,
enabling UI updates while long documents are paginated. Callbacks receive a
percentage in the 0-100 range, a short status line and a detail line.

Examples
--------
Basic progress tracking:

    >>> from markpage import markdown_to_pdf
    >>>
    >>> def on_progress(percent: float, status: str, detail: str) -> None:
    ...     print(f"{percent:5.1f}% {status} {detail}")
    >>>
    >>> pdf_bytes = markdown_to_pdf("# Title", progress_callback=on_progress)

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Type alias for progress callback functions
ProgressCallback = Callable[[float, str, str], None]
"""Type alias for progress callback functions.

A progress callback is any callable accepting ``(percent, status, detail)``.
Exceptions raised by a callback are logged and ignored so that a faulty UI
hook never interrupts layout.
"""


@dataclass(frozen=True)
class ProgressEvent:
    """Single progress notification.

    Parameters
    ----------
    percent : float
        Overall completion in the range [0, 100]
    status : str
        Short human-readable status (e.g. "Laying out")
    detail : str
        Longer detail text (e.g. "Element 12 of 40")

    """

    percent: float
    status: str
    detail: str = ""

    def __str__(self) -> str:
        """Return human-readable string representation."""
        detail = f" - {self.detail}" if self.detail else ""
        return f"[{self.percent:5.1f}%] {self.status}{detail}"


class ProgressReporter:
    """Clamp, record and forward progress events to an optional callback.

    Parameters
    ----------
    callback : ProgressCallback, optional
        Embedder callback. When None, events are only logged at DEBUG level.

    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        """Initialize the reporter."""
        self.callback = callback
        self.last_event: ProgressEvent | None = None

    def emit(self, percent: float, status: str, detail: str = "") -> None:
        """Report progress, swallowing callback failures after logging them."""
        event = ProgressEvent(max(0.0, min(100.0, float(percent))), status, detail)
        self.last_event = event
        logger.debug("Progress: %s", event)
        if self.callback is None:
            return
        try:
            self.callback(event.percent, event.status, event.detail)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")

    def emit_step(self, span: tuple[float, float], index: int, total: int, status: str, detail: str = "") -> None:
        """Report progress for step ``index`` of ``total`` inside a percentage span.

        Parameters
        ----------
        span : tuple[float, float]
            Start and end percentage of the stage
        index : int
            Zero-based index of the step just finished
        total : int
            Number of steps in the stage
        status : str
            Status text
        detail : str, default ""
            Detail text

        """
        start, end = span
        fraction = (index + 1) / total if total > 0 else 1.0
        self.emit(start + (end - start) * fraction, status, detail)
