"""
text_measure.py — Font loading and line wrapping for rasterized text.

We use Pillow to measure text so wrapped lines match what is painted:
- Font lookup by weight/style with graceful fallback
- Word wrapping to an element's width
- Explicit ``\\n`` line breaks preserved, as ``white-space: pre-wrap`` does
"""

import os
import platform
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import ImageFont

# =============================================================================
# FONT CONFIGURATION
# =============================================================================

# Font file names tried in order, per (bold, italic) variant
FONT_FILES: Dict[Tuple[bool, bool], List[str]] = {
    (False, False): ['DejaVuSans.ttf', 'arial.ttf', 'Arial.ttf', 'calibri.ttf'],
    (True, False): ['DejaVuSans-Bold.ttf', 'arialbd.ttf', 'Arial Bold.ttf', 'calibrib.ttf'],
    (False, True): ['DejaVuSans-Oblique.ttf', 'ariali.ttf', 'Arial Italic.ttf', 'calibrii.ttf'],
    (True, True): ['DejaVuSans-BoldOblique.ttf', 'arialbi.ttf', 'Arial Bold Italic.ttf', 'calibriz.ttf'],
}

# Cache loaded fonts to avoid repeated disk access
_font_cache: Dict[Tuple[Optional[str], int, bool, bool], ImageFont.ImageFont] = {}


def _system_font_dirs() -> List[Path]:
    """Common system font locations for this platform."""
    if platform.system() == 'Windows':
        return [Path(os.environ.get('WINDIR', 'C:/Windows')) / 'Fonts']
    if platform.system() == 'Darwin':
        return [Path('/Library/Fonts'), Path('/System/Library/Fonts/Supplemental')]
    return [
        Path('/usr/share/fonts/truetype/dejavu'),
        Path('/usr/share/fonts/TTF'),
        Path('/usr/share/fonts/dejavu'),
        Path('/usr/share/fonts/truetype/msttcorefonts'),
    ]


def _find_font_file(bold: bool, italic: bool, font_dir: Optional[str]) -> Optional[Path]:
    dirs = ([Path(font_dir)] if font_dir else []) + _system_font_dirs()
    for directory in dirs:
        for filename in FONT_FILES[(bold, italic)]:
            candidate = directory / filename
            if candidate.exists():
                return candidate
    return None


# =============================================================================
# FONT LOADING
# =============================================================================

def get_font(
    size_px: int,
    bold: bool = False,
    italic: bool = False,
    font_dir: Optional[str] = None,
) -> ImageFont.ImageFont:
    """
    Load a font at a pixel size. Falls back gracefully if not found.

    Args:
        size_px: Font size in surface pixels (already supersampled)
        bold: Whether to use the bold variant
        italic: Whether to use the italic variant
        font_dir: Extra directory searched before the system locations

    Returns:
        PIL font object ready for measuring and drawing
    """
    size_px = max(1, int(size_px))
    cache_key = (font_dir, size_px, bold, italic)
    if cache_key in _font_cache:
        return _font_cache[cache_key]

    font_path = _find_font_file(bold, italic, font_dir)
    if font_path is None and (bold or italic):
        font_path = _find_font_file(False, False, font_dir)

    font: ImageFont.ImageFont
    try:
        if font_path is None:
            raise OSError("no TrueType font found")
        font = ImageFont.truetype(str(font_path), size_px)
    except OSError:
        # Pillow's bundled font as last resort
        font = ImageFont.load_default(size=size_px)

    _font_cache[cache_key] = font
    return font


def clear_font_cache():
    """Clear the font cache (useful for testing)."""
    _font_cache.clear()


# =============================================================================
# TEXT MEASUREMENT
# =============================================================================

def text_width(text: str, font: ImageFont.ImageFont) -> float:
    """Advance width of ``text`` in pixels."""
    if not text:
        return 0.0
    return float(font.getlength(text))


def _wrap_paragraph(paragraph: str, font: ImageFont.ImageFont, max_width: float) -> List[str]:
    """Greedy word wrap of a single paragraph."""
    words = paragraph.split(' ')
    lines: List[str] = []
    current = ''

    for word in words:
        candidate = word if not current else f'{current} {word}'
        if not current or text_width(candidate, font) <= max_width:
            current = candidate
            continue
        lines.append(current)
        current = word

    lines.append(current)

    # Break words that are wider than the box on their own, character by character
    broken: List[str] = []
    for line in lines:
        while line and text_width(line, font) > max_width and len(line) > 1:
            cut = len(line) - 1
            while cut > 1 and text_width(line[:cut], font) > max_width:
                cut -= 1
            broken.append(line[:cut])
            line = line[cut:]
        broken.append(line)
    return broken


def wrap_text(text: str, font: ImageFont.ImageFont, max_width: float) -> List[str]:
    """
    Split text into lines that fit ``max_width``.

    Args:
        text: Text, with ``\\n`` as hard line breaks
        font: Font used for measurement
        max_width: Available width in pixels

    Returns:
        Lines ready to draw, top to bottom
    """
    lines: List[str] = []
    for paragraph in text.replace('\r\n', '\n').split('\n'):
        if max_width <= 0:
            lines.append(paragraph)
        else:
            lines.extend(_wrap_paragraph(paragraph, font, max_width))
    return lines
