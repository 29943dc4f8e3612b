#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/layout/images.py
"""Image and SVG placement.

References ending in ``.svg`` (or ``data:image/svg+xml`` URIs) always take
the SVG path, whatever the ``svg_handling`` setting; every other reference is
decoded as a raster image. Images are scaled by the image quality factor,
capped to the content width with their aspect ratio kept, and capped again to
the vertical space left on the page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from markpage.constants import (
    CAPTION_FONT_SIZE,
    CAPTION_GAP,
    CAPTION_INSET,
    CAPTION_LINE_HEIGHT,
    IMAGE_QUALITY_SCALE,
    IMAGE_SPACING,
    MUTED_TEXT_COLOR,
)
from markpage.exceptions import AssetLoadError
from markpage.model import Image, is_svg_url

if TYPE_CHECKING:
    from markpage.layout.context import LayoutContext
    from markpage.layout.engine import LayoutEngine

logger = logging.getLogger(__name__)

DrawFunction = Callable[[float, float, float, float], None]


@dataclass(frozen=True)
class PreparedAsset:
    """A fetched image with its natural size and a function drawing it into a box."""

    width: float
    height: float
    draw: DrawFunction
    kind: str


def fit_image(width: float, height: float, max_width: float, max_height: float) -> tuple[float, float]:
    """Scale ``width`` x ``height`` down to fit a box, keeping the aspect ratio.

    Examples
    --------
        >>> fit_image(1000, 500, 400, 1000)
        (400.0, 200.0)
        >>> fit_image(100, 400, 400, 200)
        (50.0, 200.0)

    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image has no size: {width}x{height}")
    fitted_width = float(min(width, max_width))
    fitted_height = fitted_width * height / width
    if fitted_height > max_height > 0:
        fitted_height = float(max_height)
        fitted_width = fitted_height * width / height
    return fitted_width, fitted_height


async def prepare_asset(engine: "LayoutEngine", url: str) -> PreparedAsset:
    """Fetch an image or SVG and bind the backend call that draws it.

    Raises
    ------
    AssetLoadError
        If the asset cannot be fetched or decoded

    """
    backend = engine.backend
    options = engine.options

    if is_svg_url(url):
        svg = await engine.assets.fetch_svg(url)

        def draw_svg(x: float, y: float, w: float, h: float) -> None:
            backend.draw_svg(svg.data, x, y, w, h, mode=options.svg_handling, quality=options.image_quality)

        return PreparedAsset(svg.width, svg.height, draw_svg, "svg")

    image = await engine.assets.fetch_image(url)

    def draw_raster(x: float, y: float, w: float, h: float) -> None:
        backend.draw_image(image.data, x, y, w, h)

    return PreparedAsset(float(image.width), float(image.height), draw_raster, image.format)


async def place_image(engine: "LayoutEngine", ctx: "LayoutContext", image: Image) -> "LayoutContext":
    """Draw an image centred in the content area with its alt text as caption."""
    backend = engine.backend
    asset = await prepare_asset(engine, image.url)
    logger.debug(f"Placing {asset.kind} image {image.url[:80]} ({asset.width:.0f}x{asset.height:.0f})")

    caption_lines: list[str] = []
    if image.alt_text:
        caption_lines = backend.wrap_text(
            image.alt_text, ctx.content_width - 2 * CAPTION_INSET, "italic", CAPTION_FONT_SIZE
        )
    caption_height = len(caption_lines) * CAPTION_LINE_HEIGHT + CAPTION_GAP if caption_lines else 0.0

    scale = IMAGE_QUALITY_SCALE[engine.options.image_quality]
    try:
        width, height = fit_image(
            asset.width * scale,
            asset.height * scale,
            ctx.content_width,
            ctx.usable_height - caption_height,
        )
    except ValueError as e:
        raise AssetLoadError(image.url, message=str(e), original_error=e) from e

    ctx = engine.ensure_space(ctx, height + caption_height)
    budget = ctx.remaining() - caption_height
    if height > budget and budget > 0:
        width, height = fit_image(width, height, width, budget)

    x = ctx.margin + (ctx.content_width - width) / 2
    asset.draw(x, ctx.cursor_y, width, height)
    ctx = ctx.advance(height)

    if caption_lines:
        ctx = ctx.advance(CAPTION_GAP)
        center = ctx.margin + ctx.content_width / 2
        for line in caption_lines:
            ctx = engine.ensure_space(ctx, CAPTION_LINE_HEIGHT)
            backend.draw_text(
                line,
                center,
                ctx.cursor_y + CAPTION_FONT_SIZE,
                font="italic",
                size=CAPTION_FONT_SIZE,
                color=MUTED_TEXT_COLOR,
                align="center",
            )
            ctx = ctx.advance(CAPTION_LINE_HEIGHT)

    return ctx.advance(IMAGE_SPACING)
