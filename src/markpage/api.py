#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/api.py
"""Module-level conversion API.

``markdown_to_pdf`` accepts Markdown text, a path to a Markdown file or an
http(s) URL, and returns the PDF bytes (optionally writing them to a path or
binary stream as well).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import fields
from pathlib import Path
from typing import IO, Any, Optional, Union

from markpage.assets import AssetLoader, is_remote_url
from markpage.converter import MarkdownPdfConverter
from markpage.exceptions import ValidationError
from markpage.options import PdfLayoutOptions
from markpage.progress import ProgressCallback

logger = logging.getLogger(__name__)

Source = Union[str, Path]
Output = Union[str, Path, IO[bytes], None]

# Strings longer than this are never treated as file paths
_MAX_PATH_LENGTH = 4096


def _build_options(options: Optional[PdfLayoutOptions], **kwargs: Any) -> PdfLayoutOptions:
    """Merge keyword overrides into options, raising ValidationError on bad values."""
    base = options or PdfLayoutOptions()
    option_names = {field.name for field in fields(PdfLayoutOptions)}
    valid = {key: value for key, value in kwargs.items() if key in option_names}
    unknown = [key for key in kwargs if key not in option_names]
    if unknown:
        raise ValidationError(f"Unknown options: {', '.join(sorted(unknown))}", parameter_name=unknown[0])
    if not valid:
        return base
    try:
        return base.create_updated(**valid)
    except ValueError as e:
        raise ValidationError(str(e), original_error=e) from e


def _looks_like_path(source: str) -> bool:
    if "\n" in source or len(source) > _MAX_PATH_LENGTH:
        return False
    try:
        return Path(source).is_file()
    except OSError:
        return False


async def _load_source(source: Source, options: PdfLayoutOptions) -> tuple[str, PdfLayoutOptions]:
    """Return Markdown text and options with a base for relative references."""
    if isinstance(source, str) and is_remote_url(source.strip()):
        url = source.strip()
        async with AssetLoader(timeout=options.asset_timeout, max_size_bytes=options.max_asset_size_bytes) as loader:
            text = await loader.fetch_text(url)
        if options.base_url is None and options.base_path is None:
            options = options.create_updated(base_url=url)
        logger.info(f"Fetched Markdown source from {url}")
        return text, options

    if isinstance(source, Path) or _looks_like_path(source):
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise ValidationError(f"Cannot read Markdown file {path}: {e}", "source", str(path), e) from e
        if options.base_path is None and options.base_url is None:
            options = options.create_updated(base_path=str(path.resolve().parent))
        return text, options

    return source, options


def _write_output(data: bytes, output: Output) -> None:
    if output is None:
        return
    if isinstance(output, (str, Path)):
        Path(output).write_bytes(data)
        logger.info(f"Wrote {len(data)} bytes to {output}")
    else:
        output.write(data)


async def markdown_to_pdf_async(
    source: Source,
    output: Output = None,
    options: Optional[PdfLayoutOptions] = None,
    progress_callback: Optional[ProgressCallback] = None,
    **kwargs: Any,
) -> bytes:
    """Asynchronous variant of :func:`markdown_to_pdf`."""
    layout_options = _build_options(options, **kwargs)
    text, layout_options = await _load_source(source, layout_options)
    converter = MarkdownPdfConverter(layout_options, progress_callback=progress_callback)
    data = await converter.convert_async(text)
    _write_output(data, output)
    return data


def markdown_to_pdf(
    source: Source,
    output: Output = None,
    options: Optional[PdfLayoutOptions] = None,
    progress_callback: Optional[ProgressCallback] = None,
    **kwargs: Any,
) -> bytes:
    """Convert Markdown to PDF.

    Parameters
    ----------
    source : str or Path
        Markdown text, a path to a Markdown file, or an http(s) URL. Relative
        image references resolve against the file's directory or the URL
        unless ``base_path``/``base_url`` is set.
    output : str, Path or binary stream, optional
        Where to write the PDF in addition to returning it
    options : PdfLayoutOptions, optional
        Layout configuration
    progress_callback : ProgressCallback, optional
        ``callback(percent, status, detail)`` receiving progress updates
    kwargs : Any
        Individual option overrides, e.g. ``paper_size="letter"``

    Returns
    -------
    bytes
        The PDF document

    Raises
    ------
    ValidationError
        If an option is unknown or invalid, or the source file cannot be read
    AssetLoadError
        If a remote source cannot be fetched
    BackendWriteError
        If the PDF cannot be written
    DependencyError
        If the selected backend is not installed

    Examples
    --------
        >>> pdf = markdown_to_pdf("# Report\\n\\nBody text.")
        >>> markdown_to_pdf("README.md", "README.pdf", paper_size="letter", include_title_page=True)

    """
    return asyncio.run(markdown_to_pdf_async(source, output, options, progress_callback, **kwargs))
