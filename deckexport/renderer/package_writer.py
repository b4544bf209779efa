"""Assemble slide decks into PPTX packages.

The assembler builds every part of the package in memory, rasterizing slides
one after another on a single render surface, and only compresses the
archive once every slide has succeeded. A failure at any point therefore
leaves nothing behind: the saver is never called with a partial deck.
"""

import asyncio
import logging
import time
import zipfile
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from deckexport.api.config import Settings, get_settings
from deckexport.dsl.schema import Slide, SlideSize
from deckexport.renderer import ooxml_parts as parts
from deckexport.renderer.assets import AssetLoader
from deckexport.renderer.errors import ExportError, SaveError, SerializationError
from deckexport.renderer.rasterizer import RenderSurface, SlideRasterizer

logger = logging.getLogger("deckexport.export")

PPTX_EXTENSION = ".pptx"
PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

# Directory entries written before any part, mirroring the package layout
SKELETON_DIRECTORIES = (
    "_rels/",
    "ppt/",
    "ppt/_rels/",
    "ppt/media/",
    "ppt/slides/",
    "ppt/slides/_rels/",
    "ppt/slideMasters/",
    "ppt/slideMasters/_rels/",
    "ppt/slideLayouts/",
    "ppt/slideLayouts/_rels/",
    "ppt/theme/",
)

# (data, filename) -> None
Saver = Callable[[bytes, str], None]


def package_filename(title: str) -> str:
    """Download name for a deck; the title is used verbatim as the stem."""
    return f"{title}{PPTX_EXTENSION}"


# ============================================================================
# Savers
# ============================================================================


class DirectorySaver:
    """Writes finished packages into a directory."""

    def __init__(self, out_dir: Union[str, Path]):
        self.out_dir = Path(out_dir)
        self.last_path: Optional[Path] = None

    def __call__(self, data: bytes, filename: str) -> None:
        root = self.out_dir.resolve()
        path = (root / filename).resolve()
        # Titles are not sanitized, so refuse names that escape the directory
        if path.parent != root:
            raise SaveError(f"Refusing to write {filename!r} outside {root}")
        try:
            root.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise SaveError(f"Could not write {path}: {exc}") from exc
        self.last_path = path
        logger.info(f"Saved {path} ({len(data)} bytes)")


class MemorySaver:
    """Keeps the last package in memory, for streaming it to a client."""

    def __init__(self):
        self.data: Optional[bytes] = None
        self.filename: Optional[str] = None

    def __call__(self, data: bytes, filename: str) -> None:
        self.data = data
        self.filename = filename


# ============================================================================
# Assembler
# ============================================================================


@dataclass
class ExportResult:
    """Outcome of one export call."""
    success: bool
    filename: str
    slide_count: int = 0
    size_bytes: int = 0
    error: Optional[str] = None


class PackageAssembler:
    """Builds a picture-per-slide PPTX package from a list of slides."""

    def __init__(
        self,
        rasterizer: Optional[SlideRasterizer] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """Initialize the assembler.

        Args:
            rasterizer: Slide rasterizer; one is built from settings if omitted.
            settings: Service settings; the cached environment settings if omitted.
        """
        self.settings = settings or get_settings()
        self._rasterizer = rasterizer

    def _make_rasterizer(self) -> SlideRasterizer:
        if self._rasterizer is not None:
            return self._rasterizer
        assets = AssetLoader(
            timeout=self.settings.asset_timeout,
            base_url=self.settings.asset_base_url,
            allow_local_files=self.settings.allow_local_files,
        )
        return SlideRasterizer(assets=assets, font_dir=self.settings.font_dir)

    async def build_package(self, slides: Sequence[Slide], slide_size: SlideSize) -> bytes:
        """Build the complete package and return it as ZIP bytes.

        Args:
            slides: Slides in presentation order.
            slide_size: Pixel size shared by every slide.

        Returns:
            The compressed archive.

        Raises:
            RasterizationError: if any slide fails to render.
            SerializationError: if the archive cannot be written.
        """
        slide_count = len(slides)
        package: dict[str, bytes] = {}

        def add(partname: str, xml: str) -> None:
            package[partname] = xml.encode("utf-8")

        # Global parts, once per package
        add(parts.CONTENT_TYPES_PART, parts.content_types_xml(slide_count))
        add(parts.PACKAGE_RELS_PART, parts.package_rels_xml())
        add(parts.PRESENTATION_PART, parts.presentation_xml(slide_count, slide_size.width, slide_size.height))
        add(parts.PRESENTATION_RELS_PART, parts.presentation_rels_xml(slide_count))
        add(parts.SLIDE_MASTER_PART, parts.slide_master_xml())
        add(parts.SLIDE_MASTER_RELS_PART, parts.slide_master_rels_xml())
        add(parts.SLIDE_LAYOUT_PART, parts.slide_layout_xml())
        add(parts.SLIDE_LAYOUT_RELS_PART, parts.slide_layout_rels_xml())
        add(parts.THEME_PART, parts.theme_xml())

        rasterizer = self._make_rasterizer()
        owns_rasterizer = self._rasterizer is None
        try:
            with RenderSurface(slide_size, scale=self.settings.supersample) as surface:
                for index, slide in enumerate(slides):
                    number = index + 1
                    image = await rasterizer.rasterize_async(slide, surface, index)
                    package[parts.media_partname(number)] = image
                    add(
                        parts.slide_partname(number),
                        parts.slide_xml(parts.SLIDE_IMAGE_REL_ID, slide_size.width, slide_size.height),
                    )
                    add(
                        parts.slide_rels_partname(number),
                        parts.slide_rels_xml(parts.SLIDE_IMAGE_REL_ID, number),
                    )
                    logger.debug(f"Added slide {number}/{slide_count} ({slide.id})")
        finally:
            if owns_rasterizer:
                rasterizer.close()

        return await asyncio.to_thread(self._serialize, package)

    def _serialize(self, package: dict[str, bytes]) -> bytes:
        """Compress the parts into a ZIP archive."""
        buffer = BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                archive.writestr(parts.CONTENT_TYPES_PART, package[parts.CONTENT_TYPES_PART])
                for directory in SKELETON_DIRECTORIES:
                    archive.writestr(zipfile.ZipInfo(directory), b"")
                for partname, data in package.items():
                    if partname != parts.CONTENT_TYPES_PART:
                        archive.writestr(partname, data)
        except (OSError, ValueError, MemoryError, zipfile.LargeZipFile) as exc:
            raise SerializationError(f"Could not write archive: {exc}") from exc
        return buffer.getvalue()

    async def export_deck(
        self,
        slides: Sequence[Slide],
        slide_size: SlideSize,
        title: str,
        saver: Saver,
    ) -> ExportResult:
        """Build a package and hand it to ``saver`` as ``{title}.pptx``.

        Failures are logged and reported through the result; ``saver`` is
        called only when the whole package was built.
        """
        filename = package_filename(title)
        started = time.time()
        logger.info(f"Exporting {len(slides)} slides as {filename!r}")

        try:
            data = await self.build_package(slides, slide_size)
            await asyncio.to_thread(saver, data, filename)
        except ExportError as exc:
            logger.error(f"Export of {filename!r} failed: {exc}", exc_info=True)
            return ExportResult(success=False, filename=filename, slide_count=len(slides), error=str(exc))

        duration = (time.time() - started) * 1000
        logger.info(f"Exported {filename!r}: {len(slides)} slides, {len(data)} bytes, {duration:.2f}ms")
        return ExportResult(
            success=True,
            filename=filename,
            slide_count=len(slides),
            size_bytes=len(data),
        )

    def export_deck_sync(
        self,
        slides: Sequence[Slide],
        slide_size: SlideSize,
        title: str,
        saver: Saver,
    ) -> ExportResult:
        """Run ``export_deck`` to completion from synchronous code."""
        return asyncio.run(self.export_deck(slides, slide_size, title, saver))
