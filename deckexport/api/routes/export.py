"""Export routes."""

from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from deckexport.api.config import Settings, get_settings
from deckexport.dsl.schema import Deck
from deckexport.renderer.package_writer import (
    PPTX_MEDIA_TYPE,
    MemorySaver,
    PackageAssembler,
)

router = APIRouter()


def content_disposition(filename: str) -> str:
    """Attachment header carrying a UTF-8 filename (RFC 6266 / 5987)."""
    ascii_fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "'")
    return f"attachment; filename=\"{ascii_fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


@router.post("/export", response_class=Response)
async def export_deck(
    deck: Deck,
    settings: Settings = Depends(get_settings),
):
    """Export a deck as a PPTX download.

    Every slide is rasterized; if any slide fails nothing is returned.
    """
    if len(deck.slides) > settings.max_slides:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Deck has {len(deck.slides)} slides; at most {settings.max_slides} can be exported",
        )

    saver = MemorySaver()
    assembler = PackageAssembler(settings=settings)
    result = await assembler.export_deck(deck.slides, deck.slide_size, deck.title, saver)

    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=result.error,
        )

    return Response(
        content=saver.data,
        media_type=PPTX_MEDIA_TYPE,
        headers={
            "Content-Disposition": content_disposition(result.filename),
            "X-Slide-Count": str(result.slide_count),
        },
    )
