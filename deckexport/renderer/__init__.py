"""PPTX export module - turns slide decks into PowerPoint packages.

Exports decks as picture-per-slide OPC packages:
- Slides rasterized to PNG with Pillow (2x supersampled)
- Backgrounds: colours, linear gradients, images
- Elements: text, images, shapes; placeholders for tables, charts, icons
- OOXML parts generated with lxml, one relationship scheme throughout
- Pixel to EMU conversion in a single function
"""

from deckexport.renderer.element_painter import ElementPainter
from deckexport.renderer.errors import (
    AssetLoadError,
    ExportError,
    RasterizationError,
    SaveError,
    SerializationError,
)
from deckexport.renderer.package_writer import (
    DirectorySaver,
    ExportResult,
    MemorySaver,
    PackageAssembler,
)
from deckexport.renderer.rasterizer import RenderSurface, SlideRasterizer
from deckexport.renderer.units import to_emu

__all__ = [
    "AssetLoadError",
    "DirectorySaver",
    "ElementPainter",
    "ExportError",
    "ExportResult",
    "MemorySaver",
    "PackageAssembler",
    "RasterizationError",
    "RenderSurface",
    "SaveError",
    "SerializationError",
    "SlideRasterizer",
    "to_emu",
]
