"""Command line export of a deck JSON file to a .pptx file."""

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from deckexport.api.config import Settings
from deckexport.dsl.schema import Deck
from deckexport.renderer.package_writer import DirectorySaver, PackageAssembler


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Export a slide deck JSON file as PowerPoint")
    parser.add_argument("deck", type=Path, help="Deck JSON file (title, slideSize, slides)")
    parser.add_argument("-o", "--output", type=Path, help="Output directory (default: OUTPUT_DIR)")
    parser.add_argument("--title", help="Override the deck title used as the file name")
    parser.add_argument("--scale", type=float, help="Supersampling factor (default: DECKEXPORT_SUPERSAMPLE)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every slide")
    return parser


def main(argv=None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        deck = Deck.model_validate_json(args.deck.read_text(encoding="utf-8"))
    except OSError as exc:
        print(f"Cannot read {args.deck}: {exc}", file=sys.stderr)
        return 1
    except ValidationError as exc:
        print(f"Invalid deck file {args.deck}:\n{exc}", file=sys.stderr)
        return 1

    settings = Settings()
    # Deck files name images on the same machine
    settings.allow_local_files = True
    if args.scale:
        settings.supersample = args.scale

    saver = DirectorySaver(args.output or settings.output_dir)
    assembler = PackageAssembler(settings=settings)
    result = assembler.export_deck_sync(deck.slides, deck.slide_size, args.title or deck.title, saver)

    if not result.success:
        print(f"Export failed: {result.error}", file=sys.stderr)
        return 1

    print(saver.last_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
