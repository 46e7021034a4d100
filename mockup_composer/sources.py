"""
Image source decoding for Mockup Composer.

This module handles:
- Decoding base64 data URLs, bare base64, raw bytes and file paths
- Accepting already-open Pillow images unchanged
- Decoding a batch of design images concurrently while keeping input order
"""

import base64
import binascii
import io
import re
from concurrent.futures import ThreadPoolExecutor, FIRST_EXCEPTION, wait
from pathlib import Path
from typing import Any, List, Sequence

from PIL import Image, ImageOps, UnidentifiedImageError
from loguru import logger

from .errors import ImageLoadError


DATA_URL_PATTERN = re.compile(r'^data:(?P<mime>[\w/+.-]*)?(?P<params>(;[\w=.-]+)*?)(?P<b64>;base64)?,(?P<payload>.*)$', re.DOTALL)


def describe_source(source: Any) -> str:
    """Short description of a source for logs and error details."""
    if isinstance(source, Image.Image):
        return f"<image {source.mode} {source.size[0]}x{source.size[1]}>"
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    if isinstance(source, Path):
        return str(source)
    if isinstance(source, str):
        if source.startswith('data:'):
            return source[:source.find(',') + 1] + '...' if ',' in source else source[:32]
        return source if len(source) < 80 else source[:77] + '...'
    return type(source).__name__


def source_to_bytes(source: Any) -> bytes:
    """
    Resolve an encoded image source to raw encoded bytes.

    Strings are always inline payloads (data URLs or bare base64);
    only a Path is read from the filesystem.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)

    if isinstance(source, Path):
        return source.read_bytes()

    if not isinstance(source, str):
        raise TypeError(f"Unsupported image source type: {type(source).__name__}")

    return decode_inline(source)


def decode_inline(text: str) -> bytes:
    """Decode a data URL or bare base64 payload. Never touches the filesystem."""
    text = text.strip()
    match = DATA_URL_PATTERN.match(text)
    if match:
        payload = match.group('payload')
        if match.group('b64'):
            return base64.b64decode(payload, validate=False)
        # Percent-encoded payloads are not used for raster images
        return payload.encode('latin-1')

    return base64.b64decode(text, validate=True)


def load_image(source: Any, label: str = "image", index: int = None) -> Image.Image:
    """
    Decode a single source into a fully loaded Pillow image.

    Raises ImageLoadError for anything that cannot be decoded.
    """
    if isinstance(source, Image.Image):
        return source

    try:
        raw = source_to_bytes(source)
        image = Image.open(io.BytesIO(raw))
        image.load()
        # Editor placements are authored against the upright photo
        image = ImageOps.exif_transpose(image)
    except (binascii.Error, ValueError, TypeError) as e:
        raise ImageLoadError(label, f"not a valid image payload ({e})", index=index) from e
    except UnidentifiedImageError as e:
        raise ImageLoadError(label, "unrecognised image format", index=index) from e
    except (OSError, EOFError, Image.DecompressionBombError) as e:
        raise ImageLoadError(label, str(e), index=index) from e

    logger.debug(f"Loaded {label}: {describe_source(source)} -> {image.mode} {image.size}")
    return image


def load_images_concurrently(sources: Sequence[Any], label: str = "design image",
                             max_workers: int = 8) -> List[Image.Image]:
    """
    Decode all sources in parallel and return them in input order.

    The batch is all-or-nothing: the first decode failure cancels the
    decodes that have not started yet and is raised to the caller.
    """
    if not sources:
        return []

    # For a single source, don't use threading overhead
    if len(sources) == 1:
        return [load_image(sources[0], f"{label} 1", index=0)]

    with ThreadPoolExecutor(max_workers=min(max_workers, len(sources))) as executor:
        futures = [
            executor.submit(load_image, source, f"{label} {i + 1}", i)
            for i, source in enumerate(sources)
        ]

        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        failed = [f for f in futures if f in done and f.exception() is not None]
        if failed:
            for future in pending:
                future.cancel()
            error = failed[0].exception()
            logger.warning(f"Decode batch failed after {len(done)}/{len(futures)} images: {error}")
            raise error

        # Results collected by index, not completion order
        return [future.result() for future in futures]
