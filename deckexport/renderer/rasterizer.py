"""Rasterize slides to PNG bitmaps.

A ``RenderSurface`` is the one off-screen canvas an export paints on. It is
acquired once per export, cleared before every slide and released when the
export ends, whether it succeeded or not::

    with RenderSurface(slide_size, scale=2) as surface:
        for index, slide in enumerate(slides):
            png = rasterizer.rasterize(slide, surface, index)

All image assets a slide needs are loaded before anything is painted, so a
capture never contains a half-loaded picture: either every asset resolved or
the slide fails with ``RasterizationError``.
"""

import asyncio
import logging
from io import BytesIO
from typing import Dict, Optional

from PIL import Image

from deckexport.dsl.schema import Slide, SlideSize
from deckexport.renderer.assets import AssetLoader
from deckexport.renderer.colors import TRANSPARENT
from deckexport.renderer.element_painter import (
    BACKGROUND_IMAGE_KEY,
    ElementPainter,
    background_image_source,
    image_sources,
)
from deckexport.renderer.errors import AssetLoadError, RasterizationError
from deckexport.renderer.units import DEFAULT_SUPERSAMPLE, scaled_px

logger = logging.getLogger("deckexport.rasterizer")


class RenderSurface:
    """Off-screen RGBA canvas sized ``slide_size * scale``."""

    def __init__(self, slide_size: SlideSize, scale: float = DEFAULT_SUPERSAMPLE):
        self.slide_size = slide_size
        self.scale = scale
        self.width = scaled_px(slide_size.width, scale)
        self.height = scaled_px(slide_size.height, scale)
        self._image: Optional[Image.Image] = None

    def __enter__(self) -> "RenderSurface":
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()

    @property
    def acquired(self) -> bool:
        return self._image is not None

    @property
    def image(self) -> Image.Image:
        if self._image is None:
            raise RuntimeError("Render surface used outside of its 'with' block")
        return self._image

    def acquire(self) -> None:
        """Allocate the canvas.

        Raises:
            RasterizationError: if the scaled size is empty or cannot be allocated.
        """
        if self.width <= 0 or self.height <= 0:
            raise RasterizationError(
                f"render surface must have a positive size, got {self.width}x{self.height}"
            )
        try:
            self._image = Image.new("RGBA", (self.width, self.height), TRANSPARENT)
        except (MemoryError, ValueError) as exc:
            raise RasterizationError(
                f"cannot allocate a {self.width}x{self.height} render surface: {exc}"
            ) from exc
        logger.debug(f"Acquired render surface {self.width}x{self.height}")

    def clear(self) -> None:
        """Reset every pixel to transparent."""
        self.image.paste(TRANSPARENT, (0, 0, self.width, self.height))

    def capture(self) -> bytes:
        """Encode the current canvas as PNG."""
        buffer = BytesIO()
        self.image.save(buffer, format="PNG")
        return buffer.getvalue()

    def release(self) -> None:
        """Free the canvas. Safe to call more than once."""
        if self._image is not None:
            self._image.close()
            self._image = None
            logger.debug("Released render surface")


class SlideRasterizer:
    """Paints one slide at a time onto a shared ``RenderSurface``."""

    def __init__(
        self,
        painter: Optional[ElementPainter] = None,
        assets: Optional[AssetLoader] = None,
        font_dir: Optional[str] = None,
    ):
        self.painter = painter
        self.assets = assets or AssetLoader()
        self.font_dir = font_dir

    def _painter_for(self, surface: RenderSurface) -> ElementPainter:
        if self.painter is None or self.painter.scale != surface.scale:
            self.painter = ElementPainter(scale=surface.scale, font_dir=self.font_dir)
        return self.painter

    def _resolve_images(self, slide: Slide, index: int) -> Dict[str, Image.Image]:
        """Load every bitmap the slide paints, keyed by element id."""
        sources = {}
        background_source = background_image_source(slide.background)
        if background_source:
            sources[BACKGROUND_IMAGE_KEY] = background_source
        sources.update(image_sources(slide.elements))

        images: Dict[str, Image.Image] = {}
        for key, source in sources.items():
            try:
                images[key] = self.assets.load(source)
            except AssetLoadError as exc:
                owner = "background" if key == BACKGROUND_IMAGE_KEY else f"element {key}"
                raise RasterizationError(f"{owner}: {exc}", slide_index=index) from exc
        return images

    def rasterize(self, slide: Slide, surface: RenderSurface, index: int = 0) -> bytes:
        """Render ``slide`` and return PNG bytes.

        Args:
            slide: Slide to render.
            surface: Acquired surface; it is cleared first.
            index: 0-based slide position, for error messages.

        Raises:
            RasterizationError: if an asset cannot be loaded or the capture fails.
        """
        images = self._resolve_images(slide, index)

        painter = self._painter_for(surface)
        try:
            surface.clear()
            painter.paint_background(surface.image, slide.background, images)
            for element in slide.elements:
                painter.paint(surface.image, element, images)
            data = surface.capture()
        except (OSError, ValueError, MemoryError) as exc:
            raise RasterizationError(f"capture failed: {exc}", slide_index=index) from exc

        logger.debug(
            f"Rasterized slide {index + 1} ({len(slide.elements)} elements, {len(data)} bytes)"
        )
        return data

    async def rasterize_async(self, slide: Slide, surface: RenderSurface, index: int = 0) -> bytes:
        """``rasterize`` in a worker thread, so the export task can suspend."""
        return await asyncio.to_thread(self.rasterize, slide, surface, index)

    def close(self) -> None:
        """Release the asset loader."""
        self.assets.close()
