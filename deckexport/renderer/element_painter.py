"""Paint slide backgrounds and elements onto a Pillow surface.

Each element type has exactly one paint method, selected from a table keyed
by ``ElementType``. The table is checked for completeness when the painter is
built, so a new element type without a painter fails immediately rather than
at export time.

Every element is painted on its own transparent layer the size of its box,
then opacity and rotation are applied and the layer is composited onto the
slide at the element's position. Coordinates are multiplied by the surface
scale (supersampling factor) throughout.
"""

import logging
from typing import Callable, Dict, Mapping, Optional

from PIL import Image, ImageChops, ImageDraw, ImageOps

from deckexport.dsl.schema import (
    Background,
    BackgroundType,
    ChartElement,
    ElementBase,
    ElementType,
    IconElement,
    ImageElement,
    InvalidPayload,
    ShapeElement,
    TableElement,
    TextElement,
)
from deckexport.renderer.colors import (
    BLACK,
    TRANSPARENT,
    WHITE,
    css_url,
    is_gradient,
    parse_color,
    parse_linear_gradient,
    render_gradient,
)
from deckexport.renderer.text_measure import get_font, text_width, wrap_text
from deckexport.renderer.units import scaled_px

logger = logging.getLogger("deckexport.painter")

# Key under which a slide's background image is passed in the image mapping
BACKGROUND_IMAGE_KEY = "__background__"

# Browser defaults used when a style key is absent
DEFAULT_FONT_SIZE_PX = 16
DEFAULT_LINE_HEIGHT = 1.5
DEFAULT_SHAPE_FILL = "#ffffff"
DEFAULT_SHAPE_STROKE = "#000000"
DEFAULT_STROKE_WIDTH_PX = 1

# Placeholder box for element types drawn without their real visual form
PLACEHOLDER_FILL = "#f9f9f9"
PLACEHOLDER_BORDER = "#cccccc"
DATA_ERROR_LABEL = "DATA ERROR"

Painter = Callable[[ElementBase, int, int, Mapping[str, Image.Image]], Image.Image]


def background_image_source(background: Background) -> Optional[str]:
    """The image address a background paints, if any."""
    value = background.value.strip()
    if not value or is_gradient(value):
        return None
    url = css_url(value)
    if url is not None:
        return url
    if background.type == BackgroundType.IMAGE:
        return value
    return None


def image_sources(elements) -> Dict[str, str]:
    """Map element id to image source for every image element with one."""
    return {
        element.id: element.content.strip()
        for element in elements
        if element.type == ElementType.IMAGE.value and element.content.strip()
    }


def _apply_opacity(layer: Image.Image, opacity: float) -> Image.Image:
    alpha = layer.getchannel("A").point(lambda value: int(value * opacity))
    layer.putalpha(alpha)
    return layer


def _composite(canvas: Image.Image, layer: Image.Image, x: int, y: int) -> None:
    """Alpha-composite ``layer`` at ``(x, y)``, clipping at the canvas edges."""
    if x < 0 or y < 0:
        left, top = max(0, -x), max(0, -y)
        if left >= layer.width or top >= layer.height:
            return
        layer = layer.crop((left, top, layer.width, layer.height))
        x, y = max(0, x), max(0, y)
    if x >= canvas.width or y >= canvas.height:
        return
    canvas.alpha_composite(layer, dest=(x, y))


class ElementPainter:
    """Paints backgrounds and elements at a fixed supersampling scale."""

    def __init__(self, scale: float = 2, font_dir: Optional[str] = None):
        self.scale = scale
        self.font_dir = font_dir
        self._painters: Dict[ElementType, Painter] = {
            ElementType.TEXT: self._paint_text,
            ElementType.IMAGE: self._paint_image,
            ElementType.SHAPE: self._paint_shape,
            ElementType.TABLE: self._paint_table,
            ElementType.CHART: self._paint_chart,
            ElementType.ICON: self._paint_icon,
        }
        missing = set(ElementType) - set(self._painters)
        if missing:
            raise RuntimeError(f"No painter for element types: {sorted(t.value for t in missing)}")

    def px(self, value: float) -> int:
        """Slide pixels to surface pixels."""
        return scaled_px(value, self.scale)

    # =========================================================================
    # Background
    # =========================================================================

    def paint_background(
        self,
        canvas: Image.Image,
        background: Background,
        images: Mapping[str, Image.Image],
    ) -> None:
        """Fill the whole canvas with the slide background."""
        value = background.value.strip()
        size = canvas.size

        if is_gradient(value):
            gradient = parse_linear_gradient(value)
            if gradient is not None:
                canvas.alpha_composite(render_gradient(gradient, *size))
            return

        image = images.get(BACKGROUND_IMAGE_KEY)
        if image is not None:
            canvas.alpha_composite(ImageOps.fit(image, size, method=Image.Resampling.LANCZOS))
            return

        color = parse_color(value, default=WHITE)
        canvas.alpha_composite(Image.new("RGBA", size, color))

    # =========================================================================
    # Elements
    # =========================================================================

    def paint(
        self,
        canvas: Image.Image,
        element: ElementBase,
        images: Mapping[str, Image.Image],
    ) -> None:
        """Paint one element onto ``canvas``.

        Args:
            canvas: Slide surface (RGBA, already scaled).
            element: Element to paint.
            images: Pre-loaded images keyed by element id.
        """
        width = self.px(element.size.width)
        height = self.px(element.size.height)
        if width <= 0 or height <= 0:
            return

        painter = self._painters[ElementType(element.type)]
        layer = painter(element, width, height, images)

        opacity = element.style.opacity
        if opacity is not None and opacity < 1.0:
            layer = _apply_opacity(layer, opacity)

        x = self.px(element.position.x)
        y = self.px(element.position.y)

        rotation = element.style.rotation or 0.0
        if rotation % 360:
            # CSS rotates clockwise about the box centre
            center_x, center_y = x + width / 2, y + height / 2
            layer = layer.rotate(-rotation, expand=True, resample=Image.Resampling.BICUBIC)
            x = int(round(center_x - layer.width / 2))
            y = int(round(center_y - layer.height / 2))

        _composite(canvas, layer, x, y)

    def _paint_text(self, element: TextElement, width: int, height: int, images) -> Image.Image:
        style = element.style
        size_px = self.px(style.font_size or DEFAULT_FONT_SIZE_PX)
        font = get_font(size_px, bold=style.is_bold, italic=style.is_italic, font_dir=self.font_dir)
        color = parse_color(style.color, default=BLACK)
        line_box = size_px * (style.line_height or DEFAULT_LINE_HEIGHT)

        lines = wrap_text(element.content, font, width)

        # Text overflows its box downwards, as it does in the editor
        needed = int(round(line_box * len(lines)))
        layer = Image.new("RGBA", (width, max(height, needed)), TRANSPARENT)
        draw = ImageDraw.Draw(layer)

        if hasattr(font, "getmetrics"):
            ascent, descent = font.getmetrics()
        else:
            ascent, descent = size_px, 0
        half_leading = (line_box - (ascent + descent)) / 2
        align = (style.text_align or "left").lower()
        decoration = (style.text_decoration or "").lower()
        rule_width = max(1, size_px // 15)

        for index, line in enumerate(lines):
            line_width = text_width(line, font)
            if align == "center":
                x = (width - line_width) / 2
            elif align in ("right", "end"):
                x = width - line_width
            else:
                x = 0.0
            top = index * line_box + half_leading
            draw.text((x, top), line, font=font, fill=color)

            if line and "underline" in decoration:
                baseline = top + ascent + max(1, descent // 2)
                draw.line([(x, baseline), (x + line_width, baseline)], fill=color, width=rule_width)
            if line and "line-through" in decoration:
                middle = top + ascent * 0.65
                draw.line([(x, middle), (x + line_width, middle)], fill=color, width=rule_width)

        return layer

    def _paint_image(self, element: ImageElement, width: int, height: int, images) -> Image.Image:
        image = images.get(element.id)
        if image is None:
            return self._placeholder(width, height, ElementType.IMAGE.value.upper())

        fit = (element.style.object_fit or "cover").lower()
        size = (width, height)
        layer = Image.new("RGBA", size, TRANSPARENT)

        if fit == "fill":
            fitted = image.resize(size, Image.Resampling.LANCZOS)
        elif fit == "contain" or (fit == "scale-down" and (image.width > width or image.height > height)):
            fitted = ImageOps.contain(image, size, method=Image.Resampling.LANCZOS)
        elif fit in ("none", "scale-down"):
            fitted = image
        else:
            fitted = ImageOps.fit(image, size, method=Image.Resampling.LANCZOS)

        _composite(layer, fitted, (width - fitted.width) // 2, (height - fitted.height) // 2)

        radius = self.px(element.style.border_radius or 0)
        if radius > 0:
            mask = Image.new("L", size, 0)
            ImageDraw.Draw(mask).rounded_rectangle([0, 0, width - 1, height - 1], radius=radius, fill=255)
            layer.putalpha(ImageChops.multiply(layer.getchannel("A"), mask))

        return layer

    def _paint_shape(self, element: ShapeElement, width: int, height: int, images) -> Image.Image:
        style = element.style
        fill = parse_color(style.fill or DEFAULT_SHAPE_FILL, default=WHITE)
        stroke = parse_color(style.stroke or DEFAULT_SHAPE_STROKE, default=BLACK)
        stroke_width = self.px(style.stroke_width if style.stroke_width is not None else DEFAULT_STROKE_WIDTH_PX)

        layer = Image.new("RGBA", (width, height), TRANSPARENT)
        draw = ImageDraw.Draw(layer)
        box = [0, 0, width - 1, height - 1]
        kind = element.content.strip().lower()

        if kind == "circle":
            draw.ellipse(box, fill=fill, outline=stroke if stroke_width else None, width=stroke_width)
        elif kind == "triangle":
            points = [(width / 2, 0), (0, height - 1), (width - 1, height - 1)]
            draw.polygon(points, fill=fill)
            if stroke_width:
                draw.line(points + [points[0]], fill=stroke, width=stroke_width, joint="curve")
        else:
            draw.rectangle(box, fill=fill, outline=stroke if stroke_width else None, width=stroke_width)

        return layer

    def _paint_table(self, element: TableElement, width: int, height: int, images) -> Image.Image:
        if isinstance(element.content, InvalidPayload):
            return self._data_error(element, width, height)
        return self._placeholder(width, height, ElementType.TABLE.value.upper())

    def _paint_chart(self, element: ChartElement, width: int, height: int, images) -> Image.Image:
        if isinstance(element.content, InvalidPayload):
            return self._data_error(element, width, height)
        return self._placeholder(width, height, ElementType.CHART.value.upper())

    def _paint_icon(self, element: IconElement, width: int, height: int, images) -> Image.Image:
        return self._placeholder(width, height, ElementType.ICON.value.upper())

    # =========================================================================
    # Placeholders
    # =========================================================================

    def _data_error(self, element: ElementBase, width: int, height: int) -> Image.Image:
        logger.warning(
            f"Element {element.id} ({element.type}) has unreadable content: "
            f"{element.content.reason}"
        )
        return self._placeholder(width, height, DATA_ERROR_LABEL)

    def _placeholder(self, width: int, height: int, label: str) -> Image.Image:
        """Light grey box with a centred label."""
        layer = Image.new("RGBA", (width, height), TRANSPARENT)
        draw = ImageDraw.Draw(layer)
        draw.rectangle(
            [0, 0, width - 1, height - 1],
            fill=parse_color(PLACEHOLDER_FILL),
            outline=parse_color(PLACEHOLDER_BORDER),
            width=max(1, self.px(1)),
        )
        font = get_font(self.px(DEFAULT_FONT_SIZE_PX), font_dir=self.font_dir)
        left, top, right, bottom = draw.textbbox((0, 0), label, font=font)
        draw.text(
            ((width - (right - left)) / 2 - left, (height - (bottom - top)) / 2 - top),
            label,
            font=font,
            fill=BLACK,
        )
        return layer
