"""Tests for slide rasterization."""

import asyncio
import logging
from io import BytesIO

import pytest
from PIL import Image

from deckexport.dsl.schema import (
    Background,
    ElementType,
    ImageElement,
    ShapeElement,
    Slide,
    SlideSize,
    TableElement,
    TextElement,
)
from deckexport.renderer.element_painter import ElementPainter
from deckexport.renderer.errors import RasterizationError
from deckexport.renderer.rasterizer import RenderSurface, SlideRasterizer

SMALL = SlideSize(width=100, height=50)


def decode(png: bytes) -> Image.Image:
    image = Image.open(BytesIO(png))
    image.load()
    return image.convert("RGBA")


def render(slide: Slide, slide_size: SlideSize = SMALL, scale: float = 2) -> Image.Image:
    rasterizer = SlideRasterizer()
    with RenderSurface(slide_size, scale=scale) as surface:
        return decode(rasterizer.rasterize(slide, surface))


class TestRenderSurface:
    """Tests for the render surface lifecycle."""

    def test_scaled_size(self):
        surface = RenderSurface(SlideSize(width=960, height=540), scale=2)
        assert (surface.width, surface.height) == (1920, 1080)

    def test_acquired_only_inside_block(self):
        surface = RenderSurface(SMALL)
        assert not surface.acquired
        with surface:
            assert surface.acquired
            assert surface.image.size == (200, 100)
        assert not surface.acquired
        with pytest.raises(RuntimeError):
            surface.image

    def test_empty_scaled_size_refused(self):
        """A slide that scales below one pixel cannot be rendered."""
        surface = RenderSurface(SlideSize(width=0.2, height=540), scale=2)
        with pytest.raises(RasterizationError, match="positive size"):
            surface.acquire()
        assert not surface.acquired

    def test_released_on_exception(self):
        """The surface is freed even when the export aborts."""
        surface = RenderSurface(SMALL)
        with pytest.raises(RasterizationError):
            with surface:
                raise RasterizationError("boom", slide_index=0)
        assert not surface.acquired

    def test_release_twice(self):
        surface = RenderSurface(SMALL)
        surface.acquire()
        surface.release()
        surface.release()
        assert not surface.acquired

    def test_clear(self):
        with RenderSurface(SMALL) as surface:
            surface.image.paste((255, 0, 0, 255), (0, 0, 10, 10))
            surface.clear()
            assert surface.image.getpixel((5, 5)) == (0, 0, 0, 0)


class TestSlideRasterizer:
    """Tests for SlideRasterizer."""

    def test_png_at_supersampled_size(self):
        image = render(Slide(id="s1"))
        assert image.size == (200, 100)

    def test_background_color(self):
        image = render(Slide(id="s1", background=Background(type="color", value="#ff0000")))
        assert image.getpixel((0, 0)) == (255, 0, 0, 255)
        assert image.getpixel((199, 99)) == (255, 0, 0, 255)

    def test_surface_cleared_between_slides(self):
        """Nothing from a previous slide shows through."""
        rasterizer = SlideRasterizer()
        red = Slide(id="red", background=Background(value="#ff0000"))
        clear = Slide(id="clear", background=Background(value="transparent"))
        with RenderSurface(SMALL) as surface:
            rasterizer.rasterize(red, surface, 0)
            second = decode(rasterizer.rasterize(clear, surface, 1))
        assert second.getpixel((10, 10))[3] == 0

    def test_gradient_background(self):
        slide = Slide(
            id="s1",
            background=Background(type="gradient", value="linear-gradient(to right, #000000, #ffffff)"),
        )
        image = render(slide)
        assert image.getpixel((1, 50))[0] < 30
        assert image.getpixel((198, 50))[0] > 225

    def test_shape(self):
        slide = Slide(
            id="s1",
            elements=[
                ShapeElement(
                    id="box",
                    position={"x": 10, "y": 10},
                    size={"width": 20, "height": 20},
                    style={"fill": "#00ff00", "strokeWidth": 0},
                )
            ],
        )
        image = render(slide)
        assert image.getpixel((40, 40)) == (0, 255, 0, 255)
        assert image.getpixel((5, 5)) == (255, 255, 255, 255)

    def test_shape_opacity(self):
        slide = Slide(
            id="s1",
            background=Background(value="#ffffff"),
            elements=[
                ShapeElement(
                    id="box",
                    size={"width": 100, "height": 50},
                    style={"fill": "#000000", "strokeWidth": 0, "opacity": 0.5},
                )
            ],
        )
        red = render(slide).getpixel((100, 50))[0]
        assert 120 <= red <= 135

    def test_text_paints_pixels(self):
        slide = Slide(
            id="s1",
            elements=[
                TextElement(
                    id="t",
                    content="Hello world",
                    size={"width": 100, "height": 50},
                    style={"fontSize": 20, "color": "#000000"},
                )
            ],
        )
        image = render(slide)
        darkest = min(image.getpixel((x, y))[0] for x in range(200) for y in range(100))
        assert darkest < 128

    def test_image_element(self, png_data_uri):
        """A data URI image fills its box (cover)."""
        slide = Slide(
            id="s1",
            elements=[
                ImageElement(
                    id="img",
                    content=png_data_uri,
                    position={"x": 0, "y": 0},
                    size={"width": 50, "height": 50},
                )
            ],
        )
        image = render(slide)
        pixel = image.getpixel((50, 50))
        assert all(abs(a - b) <= 2 for a, b in zip(pixel, (0, 128, 255, 255)))
        assert image.getpixel((150, 50)) == (255, 255, 255, 255)

    def test_missing_image_fails_slide(self):
        """An unresolvable image aborts the slide with its position."""
        slide = Slide(
            id="s1",
            elements=[ImageElement(id="img", content="images/nowhere.png", size={"width": 10, "height": 10})],
        )
        rasterizer = SlideRasterizer()
        with RenderSurface(SMALL) as surface:
            with pytest.raises(RasterizationError, match="Slide 3") as exc_info:
                rasterizer.rasterize(slide, surface, index=2)
        assert exc_info.value.slide_index == 2
        assert "element img" in str(exc_info.value)

    def test_bad_table_degrades_to_placeholder(self, caplog):
        """Unreadable table data paints a placeholder and logs, it does not fail."""
        slide = Slide(
            id="s1",
            elements=[
                TableElement(id="tbl", content="{broken", size={"width": 80, "height": 40}),
                ShapeElement(
                    id="after",
                    position={"x": 90, "y": 40},
                    size={"width": 10, "height": 10},
                    style={"fill": "#0000ff", "strokeWidth": 0},
                ),
            ],
        )
        with caplog.at_level(logging.WARNING, logger="deckexport.painter"):
            image = render(slide)
        assert "tbl" in caplog.text
        # Placeholder fill inside the table box, later element still painted
        assert image.getpixel((80, 20)) != (255, 255, 255, 255)
        assert image.getpixel((190, 90)) == (0, 0, 255, 255)

    def test_rasterize_async(self):
        rasterizer = SlideRasterizer()
        slide = Slide(id="s1", background=Background(value="#00ff00"))

        async def run():
            with RenderSurface(SMALL) as surface:
                return await rasterizer.rasterize_async(slide, surface)

        image = decode(asyncio.run(run()))
        assert image.getpixel((0, 0)) == (0, 255, 0, 255)


class TestElementPainter:
    """Tests for ElementPainter."""

    def test_every_element_type_has_a_painter(self):
        painter = ElementPainter()
        assert set(painter._painters) == set(ElementType)

    def test_zero_size_element_skipped(self):
        canvas = Image.new("RGBA", (20, 20), (0, 0, 0, 0))
        ElementPainter(scale=1).paint(canvas, ShapeElement(id="s", size={"width": 0, "height": 5}), {})
        assert canvas.getbbox() is None

    def test_offcanvas_element_clipped(self):
        canvas = Image.new("RGBA", (20, 20), (0, 0, 0, 0))
        element = ShapeElement(
            id="s",
            position={"x": -5, "y": -5},
            size={"width": 10, "height": 10},
            style={"fill": "#ff0000", "strokeWidth": 0},
        )
        ElementPainter(scale=1).paint(canvas, element, {})
        assert canvas.getpixel((0, 0)) == (255, 0, 0, 255)
        assert canvas.getpixel((6, 6)) == (0, 0, 0, 0)

    def test_rotated_element(self):
        """A 90 degree rotation turns a wide bar into a tall one."""
        canvas = Image.new("RGBA", (40, 40), (0, 0, 0, 0))
        element = ShapeElement(
            id="bar",
            position={"x": 10, "y": 18},
            size={"width": 20, "height": 4},
            style={"fill": "#ff0000", "strokeWidth": 0, "rotation": 90},
        )
        ElementPainter(scale=1).paint(canvas, element, {})
        assert canvas.getpixel((20, 12))[3] > 0
        assert canvas.getpixel((12, 20))[3] == 0
