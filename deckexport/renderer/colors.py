"""CSS colour and gradient parsing for the rasterizer.

Only the subset the editor produces is understood: hex colours, ``rgb()`` /
``rgba()``, named colours, ``transparent`` and ``linear-gradient(...)`` with
an angle or a ``to <side>`` direction. Unparseable colours fall back to a
caller-supplied default, as a browser ignores an invalid declaration.
"""

import math
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from PIL import Image, ImageColor

RGBA = Tuple[int, int, int, int]

TRANSPARENT: RGBA = (0, 0, 0, 0)
BLACK: RGBA = (0, 0, 0, 255)
WHITE: RGBA = (255, 255, 255, 255)

_RGBA_RE = re.compile(
    r"^rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*([\d.]+%?)\s*)?\)$",
    re.IGNORECASE,
)
_GRADIENT_RE = re.compile(r"^linear-gradient\((.*)\)$", re.IGNORECASE | re.DOTALL)
_URL_RE = re.compile(r"""^url\(\s*['"]?(.*?)['"]?\s*\)""", re.IGNORECASE | re.DOTALL)

# CSS keyword directions, as angles
_DIRECTIONS = {
    "to top": 0.0,
    "to top right": 45.0,
    "to right top": 45.0,
    "to right": 90.0,
    "to bottom right": 135.0,
    "to right bottom": 135.0,
    "to bottom": 180.0,
    "to bottom left": 225.0,
    "to left bottom": 225.0,
    "to left": 270.0,
    "to top left": 315.0,
    "to left top": 315.0,
}


def _clamp_byte(value: float) -> int:
    return max(0, min(255, int(round(value))))


def parse_color(value: Optional[str], default: RGBA = BLACK) -> RGBA:
    """Parse a CSS colour into an RGBA tuple."""
    if not value:
        return default
    text = value.strip()
    if text.lower() == "transparent":
        return TRANSPARENT

    match = _RGBA_RE.match(text)
    if match:
        red, green, blue, alpha = match.groups()
        if alpha is None:
            alpha_byte = 255
        elif alpha.endswith("%"):
            alpha_byte = _clamp_byte(float(alpha[:-1]) * 2.55)
        else:
            alpha_byte = _clamp_byte(float(alpha) * 255)
        return (_clamp_byte(float(red)), _clamp_byte(float(green)), _clamp_byte(float(blue)), alpha_byte)

    try:
        return ImageColor.getcolor(text, "RGBA")
    except ValueError:
        return default


def css_url(value: str) -> Optional[str]:
    """The address inside ``url(...)``, or None."""
    match = _URL_RE.match(value.strip())
    return match.group(1) if match else None


# =============================================================================
# GRADIENTS
# =============================================================================

@dataclass
class LinearGradient:
    """A parsed ``linear-gradient``."""
    angle: float                            # CSS degrees, 0 = to top
    stops: List[Tuple[float, RGBA]]         # (position 0-1, colour)

    def color_at(self, t: float) -> RGBA:
        """Interpolated colour at position ``t`` along the gradient line."""
        if t <= self.stops[0][0]:
            return self.stops[0][1]
        for (start, start_color), (end, end_color) in zip(self.stops, self.stops[1:]):
            if t <= end:
                span = end - start
                ratio = 0.0 if span <= 0 else (t - start) / span
                return tuple(
                    _clamp_byte(a + (b - a) * ratio)
                    for a, b in zip(start_color, end_color)
                )
        return self.stops[-1][1]


def _split_arguments(text: str) -> List[str]:
    """Split on commas that are not nested inside parentheses."""
    parts, depth, current = [], 0, []
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    parts.append("".join(current).strip())
    return [part for part in parts if part]


def is_gradient(value: str) -> bool:
    """Whether ``value`` is a ``linear-gradient(...)`` expression."""
    return bool(_GRADIENT_RE.match(value.strip()))


def parse_linear_gradient(value: str) -> Optional[LinearGradient]:
    """Parse ``linear-gradient(...)``; None if it is not one."""
    match = _GRADIENT_RE.match(value.strip())
    if not match:
        return None

    args = _split_arguments(match.group(1))
    angle = 180.0
    if args:
        first = args[0].lower()
        if first.endswith("deg"):
            try:
                angle = float(first[:-3])
                args = args[1:]
            except ValueError:
                pass
        elif first in _DIRECTIONS:
            angle = _DIRECTIONS[first]
            args = args[1:]

    stops: List[Tuple[Optional[float], RGBA]] = []
    for arg in args:
        color_text, position = arg, None
        # "rgba(0, 0, 0, 0.5) 40%" -> colour part may contain spaces
        head, _, tail = arg.rpartition(" ")
        if head and tail.endswith("%"):
            try:
                position = float(tail[:-1]) / 100.0
                color_text = head
            except ValueError:
                pass
        stops.append((position, parse_color(color_text, default=TRANSPARENT)))

    if not stops:
        return None
    if len(stops) == 1:
        stops.append(stops[0])

    # Unpositioned stops are spread evenly, as CSS does.
    count = len(stops)
    resolved = []
    for index, (position, color) in enumerate(stops):
        if position is None:
            position = index / (count - 1)
        if resolved:
            position = max(position, resolved[-1][0])
        resolved.append((position, color))

    return LinearGradient(angle=angle, stops=resolved)


def render_gradient(gradient: LinearGradient, width: int, height: int) -> Image.Image:
    """Paint ``gradient`` into a new RGBA image of ``width`` x ``height``.

    A one-pixel strip along the gradient line is stretched into a square that
    covers the target at any angle, rotated, then centre-cropped.
    """
    radians = math.radians(gradient.angle)
    line_length = abs(width * math.sin(radians)) + abs(height * math.cos(radians))
    line_length = max(line_length, 1.0)
    diagonal = int(math.ceil(math.hypot(width, height))) + 2

    strip = Image.new("RGBA", (diagonal, 1))
    strip.putdata([
        gradient.color_at((x + 0.5 - diagonal / 2) / line_length + 0.5)
        for x in range(diagonal)
    ])
    square = strip.resize((diagonal, diagonal), Image.Resampling.NEAREST)

    # The strip runs left to right (CSS 90deg); PIL rotates counter-clockwise.
    rotated = square.rotate(90.0 - gradient.angle, resample=Image.Resampling.BICUBIC)

    left = (diagonal - width) // 2
    top = (diagonal - height) // 2
    return rotated.crop((left, top, left + width, top + height))
