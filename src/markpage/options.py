#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/options.py
"""Configuration options for Markdown-to-PDF layout.

This module defines the frozen dataclass that configures page geometry,
content filtering, asset handling and document metadata. Options affect
layout decisions only; the Markdown parser reads nothing from them except
``base_url``, which resolves relative link targets.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, replace
from typing import Any, get_args

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from markpage.constants import (
    DEFAULT_ASSET_TIMEOUT,
    DEFAULT_CREATOR,
    DEFAULT_MARGINS_MM,
    DEFAULT_MAX_ASSET_SIZE_BYTES,
    DEFAULT_ORIENTATION,
    DEFAULT_PAGE_NUMBER_TEMPLATE,
    DEFAULT_PAPER_SIZE,
    MAX_MARGINS_MM,
    MIN_MARGINS_MM,
    MM_TO_PT,
    PAGE_SIZES,
    BackendName,
    ImageQuality,
    Orientation,
    PaperSize,
    SvgHandling,
)


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities.

    This mixin adds the ability to create modified copies of frozen dataclass
    instances, which is useful for immutable configuration objects.
    """

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)


def _check_choice(name: str, value: Any, literal: Any) -> None:
    choices = get_args(literal)
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got {value!r}")


@dataclass(frozen=True)
class PdfLayoutOptions(CloneFrozenMixin):
    """Configuration options for Markdown-to-PDF conversion.

    Parameters
    ----------
    paper_size : {"a3", "a4", "a5", "letter", "legal"}, default "a4"
        Page size.
    orientation : {"portrait", "landscape"}, default "portrait"
        Page orientation. Landscape swaps width and height.
    margins : float, default 15.0
        Page margin in millimetres, applied on all four sides.
    image_quality : {"low", "medium", "high"}, default "high"
        Scales the natural width of raster images (0.5, 0.75, 1.0) and the
        rasterisation density of SVGs.
    include_images : bool, default True
        Place images; when False image elements are skipped.
    include_code : bool, default True
        Place fenced code blocks.
    include_tables : bool, default True
        Place tables.
    respect_page_breaks : bool, default True
        Honour ``\\newpage`` directives.
    svg_handling : {"vector", "raster"}, default "vector"
        Embed SVGs as vector content where the backend can, or always rasterise.
    backend : {"pymupdf", "reportlab"}, default "pymupdf"
        PDF backend used to write the document.
    include_title_page : bool, default False
        When the document starts with a level 1 heading, emit a title page.
    include_page_numbers : bool, default True
        Stamp a page number footer on every page at finalization.
    page_number_template : str, default "Page {page} of {total}"
        Footer template; ``{page}`` and ``{total}`` are substituted.
    asset_timeout : float, default 30.0
        Timeout in seconds for each asset fetch.
    max_asset_size_bytes : int
        Maximum allowed size in bytes for any single asset.
    base_url : str or None, default None
        Base URL against which relative links and assets are resolved.
    base_path : str or None, default None
        Directory against which relative local asset paths are resolved.
    title, author, subject, keywords : str or None
        Document metadata. The title defaults to the first level 1 heading.
    creator : str or None, default "markpage"
        Creator application name for document metadata.

    """

    paper_size: PaperSize = field(
        default=DEFAULT_PAPER_SIZE,
        metadata={"help": "Paper size", "choices": ["a3", "a4", "a5", "letter", "legal"], "importance": "core"},
    )
    orientation: Orientation = field(
        default=DEFAULT_ORIENTATION,
        metadata={"help": "Page orientation", "choices": ["portrait", "landscape"], "importance": "core"},
    )
    margins: float = field(
        default=DEFAULT_MARGINS_MM,
        metadata={"help": "Page margin in millimetres", "type": float, "importance": "core"},
    )
    image_quality: ImageQuality = field(
        default="high",
        metadata={"help": "Image quality scale", "choices": ["low", "medium", "high"], "importance": "advanced"},
    )
    include_images: bool = field(
        default=True,
        metadata={"help": "Place images", "cli_name": "no-images", "importance": "core"},
    )
    include_code: bool = field(
        default=True,
        metadata={"help": "Place fenced code blocks", "cli_name": "no-code", "importance": "core"},
    )
    include_tables: bool = field(
        default=True,
        metadata={"help": "Place tables", "cli_name": "no-tables", "importance": "core"},
    )
    respect_page_breaks: bool = field(
        default=True,
        metadata={"help": "Honour \\newpage directives", "cli_name": "ignore-page-breaks", "importance": "core"},
    )
    svg_handling: SvgHandling = field(
        default="vector",
        metadata={"help": "How SVG images are embedded", "choices": ["vector", "raster"], "importance": "advanced"},
    )
    backend: BackendName = field(
        default="pymupdf",
        metadata={"help": "PDF backend", "choices": ["pymupdf", "reportlab"], "importance": "advanced"},
    )
    include_title_page: bool = field(
        default=False,
        metadata={"help": "Emit a title page from a leading level 1 heading", "importance": "core"},
    )
    include_page_numbers: bool = field(
        default=True,
        metadata={"help": "Stamp page numbers in the footer", "cli_name": "no-page-numbers", "importance": "core"},
    )
    page_number_template: str = field(
        default=DEFAULT_PAGE_NUMBER_TEMPLATE,
        metadata={"help": "Footer template with {page} and {total} placeholders", "importance": "advanced"},
    )
    asset_timeout: float = field(
        default=DEFAULT_ASSET_TIMEOUT,
        metadata={"help": "Timeout in seconds for each asset fetch", "type": float, "importance": "security"},
    )
    max_asset_size_bytes: int = field(
        default=DEFAULT_MAX_ASSET_SIZE_BYTES,
        metadata={"help": "Maximum allowed size in bytes for any single asset", "type": int, "importance": "security"},
    )
    base_url: str | None = field(
        default=None,
        metadata={"help": "Base URL for relative links and assets", "importance": "advanced"},
    )
    base_path: str | None = field(
        default=None,
        metadata={"help": "Base directory for relative local asset paths", "importance": "advanced"},
    )
    title: str | None = field(default=None, metadata={"help": "Document title metadata", "importance": "core"})
    author: str | None = field(default=None, metadata={"help": "Document author metadata", "importance": "core"})
    subject: str | None = field(default=None, metadata={"help": "Document subject metadata", "importance": "advanced"})
    keywords: str | None = field(
        default=None, metadata={"help": "Comma-separated document keywords", "importance": "advanced"}
    )
    creator: str | None = field(
        default=DEFAULT_CREATOR,
        metadata={
            "help": "Creator application name for document metadata. Set to None to disable creator metadata.",
            "importance": "advanced",
        },
    )

    def __post_init__(self) -> None:
        """Validate choices and numeric ranges.

        Raises
        ------
        ValueError
            If any field value is outside its valid range.

        """
        _check_choice("paper_size", self.paper_size, PaperSize)
        _check_choice("orientation", self.orientation, Orientation)
        _check_choice("image_quality", self.image_quality, ImageQuality)
        _check_choice("svg_handling", self.svg_handling, SvgHandling)
        _check_choice("backend", self.backend, BackendName)

        if not MIN_MARGINS_MM <= self.margins <= MAX_MARGINS_MM:
            raise ValueError(f"margins must be in range [{MIN_MARGINS_MM}, {MAX_MARGINS_MM}] mm, got {self.margins}")
        if self.asset_timeout <= 0:
            raise ValueError(f"asset_timeout must be positive, got {self.asset_timeout}")
        if self.max_asset_size_bytes <= 0:
            raise ValueError(f"max_asset_size_bytes must be positive, got {self.max_asset_size_bytes}")

        try:
            self.page_number_template.format(page=1, total=1)
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"page_number_template is not a valid template: {self.page_number_template!r}") from e

    @property
    def page_size_points(self) -> tuple[float, float]:
        """Return ``(width, height)`` of a page in points, orientation applied."""
        width, height = PAGE_SIZES[self.paper_size]
        if self.orientation == "landscape":
            return height, width
        return width, height

    @property
    def margin_points(self) -> float:
        """Return the page margin in points."""
        return self.margins * MM_TO_PT
