"""
units.py — Pixel to EMU conversion.

This is the only place a pixel length becomes an OOXML length. Slide size,
picture offsets and picture extents all go through ``to_emu`` so that two
parts of the same package can never disagree on a dimension.

EMU = English Metric Units (914400 EMUs per inch)
"""

import math

from pptx.util import Emu

# =============================================================================
# UNIT CONSTANTS
# =============================================================================

EMU_PER_INCH = 914400
DEFAULT_DPI = 96
EMU_PER_PX = EMU_PER_INCH // DEFAULT_DPI  # 9525 at 96 DPI

# Rasterization supersampling factor for export-quality bitmaps
DEFAULT_SUPERSAMPLE = 2


# =============================================================================
# CONVERSIONS
# =============================================================================

def to_emu(pixels: float, dpi: float = DEFAULT_DPI) -> Emu:
    """Convert pixels to EMUs, rounded half up to an integer.

    OOXML lengths must be non-negative integers; negative input clamps to 0.
    """
    emu = math.floor(pixels * EMU_PER_INCH / dpi + 0.5)
    return Emu(max(0, emu))


def scaled_px(pixels: float, scale: float) -> int:
    """Pixel length on a supersampled surface."""
    return int(round(pixels * scale))
