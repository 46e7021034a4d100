"""
Command-line entry point for Mockup Composer.

Composes a product photo and design files on disk and writes the
capture and guide images next to each other:

    python -m mockup_composer wallet.jpg logo.png --placements placements.json \
        --viewport 400x300 --mode engrave --out-dir out/
"""

import argparse
import json
import sys
from pathlib import Path

from loguru import logger

from .config import CompositionSettings, load_config
from .errors import MockupComposerError
from .models import CompositionRequest, MockupMode, Viewport
from .pipeline import compose


EXTENSIONS = {'image/jpeg': '.jpg', 'image/png': '.png'}


def parse_viewport(value: str) -> Viewport:
    try:
        width, height = (float(v) for v in value.lower().split('x'))
        return Viewport(width=width, height=height)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"viewport must look like 400x300, got {value!r}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Compose design images onto a product photo')
    parser.add_argument('base', type=Path, help='Product photo')
    parser.add_argument('designs', type=Path, nargs='+', help='Design images, bottom to top')
    parser.add_argument('--placements', type=Path, required=True,
                        help='JSON file with one {position, size, rotation} per design')
    parser.add_argument('--viewport', type=parse_viewport, default=None,
                        help='Editor viewport the placements were authored in, e.g. 400x300')
    parser.add_argument('--mode', choices=[m.value for m in MockupMode], default=MockupMode.ENGRAVE.value,
                        help='Mockup mode (default: engrave)')
    parser.add_argument('--out-dir', type=Path, default=Path('.'), help='Output directory')
    parser.add_argument('--format', choices=['jpeg', 'png'], default=None, help='Output format')
    parser.add_argument('--env', default='development', help='Configuration environment')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level='DEBUG' if args.verbose else 'INFO')

    try:
        overrides = {'OUTPUT_FORMAT': args.format} if args.format else None
        settings = CompositionSettings.from_config(load_config(args.env, overrides=overrides))

        with open(args.placements, 'r', encoding='utf-8') as f:
            placements = json.load(f)

        request = CompositionRequest(
            base_image=args.base,
            design_images=list(args.designs),
            placements=placements,
            editor_viewport=args.viewport,
            mockup_mode=MockupMode(args.mode),
        )
        assets = compose(request, settings)
    except MockupComposerError as e:
        logger.error(e.message)
        for suggestion in e.suggestions:
            logger.info(f"  - {suggestion}")
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"Could not read placements: {e}")
        return 1

    args.out_dir.mkdir(parents=True, exist_ok=True)
    extension = EXTENSIONS[assets.capture_image.mime_type]
    capture_path = args.out_dir / f"capture{extension}"
    guide_path = args.out_dir / f"guide{extension}"
    capture_path.write_bytes(assets.capture_image.data)
    guide_path.write_bytes(assets.guide_image.data)

    logger.info(f"Wrote {capture_path} and {guide_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
