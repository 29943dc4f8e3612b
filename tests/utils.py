"""Test utilities for the markpage test suite.

Small in-memory assets and helpers for driving the async layout engine from
synchronous tests.
"""

import asyncio
import base64
import shutil
import tempfile
from pathlib import Path

import fitz

from markpage.assets import AssetLoader
from markpage.backends import RecordingBackend
from markpage.layout import LayoutEngine
from markpage.options import PdfLayoutOptions
from markpage.parser import parse_markdown


def _make_png(width: int = 1, height: int = 1) -> bytes:
    """Render a solid grey RGB pixmap to PNG bytes."""
    pixmap = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, width, height), False)
    pixmap.clear_with(200)
    return pixmap.tobytes("png")


# 1x1 pixel PNG for testing
MINIMAL_PNG_BYTES = _make_png()
MINIMAL_PNG_B64 = base64.b64encode(MINIMAL_PNG_BYTES).decode("ascii")
MINIMAL_PNG_DATA_URI = f"data:image/png;base64,{MINIMAL_PNG_B64}"

SIMPLE_SVG = (
    b'<svg xmlns="http://www.w3.org/2000/svg" width="200" height="100">'
    b'<rect width="200" height="100" fill="#336699"/></svg>'
)

SAMPLE_DOCUMENT = "# Title\n\nSome *italic* and **bold** text.\n\n- [Link](#title)\n"


def create_test_temp_dir() -> Path:
    """Create a temporary directory for test files."""
    return Path(tempfile.mkdtemp(prefix="markpage_test_"))


def cleanup_test_dir(path: Path) -> None:
    """Remove a temporary test directory."""
    shutil.rmtree(path, ignore_errors=True)


def run_layout(
    markdown: str,
    options: PdfLayoutOptions | None = None,
    backend: RecordingBackend | None = None,
    assets: AssetLoader | None = None,
    **engine_kwargs,
) -> tuple[LayoutEngine, RecordingBackend]:
    """Parse ``markdown`` and lay it out on a recording backend in one pass."""
    options = options or PdfLayoutOptions()
    width, height = options.page_size_points
    backend = backend or RecordingBackend(width, height)
    engine = LayoutEngine(backend, options, assets=assets, **engine_kwargs)
    asyncio.run(engine.layout(parse_markdown(markdown)))
    return engine, backend


def drawn_text(backend: RecordingBackend) -> list[str]:
    """Return the text of every recorded draw_text call."""
    return [call.args["text"] for call in backend.calls_named("draw_text")]
