"""markpage - Markdown to paginated, hyperlinked PDF.

markpage parses a pragmatic Markdown dialect (headings, paragraphs with inline
emphasis and links, lists, pipe tables, fenced code, blockquotes, images, SVG,
rules and a handful of HTML comment and ``<div>`` directives) and lays it out
onto fixed-size pages. Headings become bookmarks, internal ``#anchor`` links
jump to the page of the matching heading and every page can carry a footer
with its number.

Layout runs twice: a dry run that records which page every heading lands on,
then the drawing pass that can resolve links pointing forward in the document.

Requirements
------------
- Python 3.10+
- PyMuPDF for the default backend; ReportLab optionally

Examples
--------
Basic usage:

    >>> from markpage import markdown_to_pdf
    >>> pdf_bytes = markdown_to_pdf("# Report\\n\\nSee [the summary](#summary).")

Writing a file with options:

    >>> from markpage import PdfLayoutOptions, markdown_to_pdf
    >>> options = PdfLayoutOptions(paper_size="letter", include_title_page=True)
    >>> markdown_to_pdf("README.md", "README.pdf", options=options)

"""

import sys

# Check Python version before any imports
if sys.version_info < (3, 10):
    raise RuntimeError(
        "markpage requires Python 3.10 or later. "
        f"You are using Python {sys.version_info.major}.{sys.version_info.minor}."
    )

__version__ = "1.0.0"

from markpage.api import markdown_to_pdf, markdown_to_pdf_async  # noqa: E402
from markpage.converter import LayoutSummary, MarkdownPdfConverter  # noqa: E402
from markpage.exceptions import (  # noqa: E402
    AssetLoadError,
    BackendWriteError,
    DependencyError,
    MarkpageError,
    RenderOverflowError,
    ValidationError,
)
from markpage.model import Element  # noqa: E402
from markpage.options import PdfLayoutOptions  # noqa: E402
from markpage.parser import parse_markdown  # noqa: E402
from markpage.progress import ProgressCallback, ProgressEvent  # noqa: E402

__all__ = [
    "__version__",
    "markdown_to_pdf",
    "markdown_to_pdf_async",
    "parse_markdown",
    "MarkdownPdfConverter",
    "LayoutSummary",
    "PdfLayoutOptions",
    "Element",
    "ProgressCallback",
    "ProgressEvent",
    "MarkpageError",
    "ValidationError",
    "AssetLoadError",
    "RenderOverflowError",
    "BackendWriteError",
    "DependencyError",
]
