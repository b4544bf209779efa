"""Exceptions raised by the export pipeline.

Any ``ExportError`` is fatal to the export it occurs in: no package is
handed to the saver once one has been raised.
"""

from typing import Optional


class ExportError(Exception):
    """Base class for export failures."""


class AssetLoadError(ExportError):
    """An image source could not be fetched or decoded."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Could not load image {_shorten(source)}: {reason}")


class RasterizationError(ExportError):
    """Capturing a slide to a bitmap failed."""

    def __init__(self, message: str, slide_index: Optional[int] = None):
        self.slide_index = slide_index
        if slide_index is not None:
            message = f"Slide {slide_index + 1}: {message}"
        super().__init__(message)


class SerializationError(ExportError):
    """The archive could not be assembled or compressed."""


class SaveError(ExportError):
    """The finished package could not be handed to its destination."""


def _shorten(source: str, limit: int = 80) -> str:
    # data: URIs can be megabytes long
    return source if len(source) <= limit else source[:limit] + "..."
