"""
Raster canvas helpers shared by the rasterizer and the guide stage.

Covers canvas allocation, flattening onto an opaque background and
encoding to a transport format.
"""

import io
from typing import Tuple

from PIL import Image
from loguru import logger

from .errors import CanvasUnavailableError
from .models import EncodedImage


TRANSPARENT = (0, 0, 0, 0)

MIME_TYPES = {
    'JPEG': 'image/jpeg',
    'PNG': 'image/png',
}


def create_canvas(canvas_size: Tuple[int, int], mode: str = 'RGBA',
                  color=TRANSPARENT, max_pixels: int = None) -> Image.Image:
    """Create a new canvas, raising CanvasUnavailableError if it cannot be allocated."""
    width, height = canvas_size
    if width <= 0 or height <= 0:
        raise CanvasUnavailableError(canvas_size, "canvas dimensions must be positive")
    if max_pixels is not None and width * height > max_pixels:
        raise CanvasUnavailableError(canvas_size, f"exceeds the {max_pixels:,} pixel limit")

    try:
        canvas = Image.new(mode, (width, height), color)
    except (MemoryError, ValueError) as e:
        raise CanvasUnavailableError(canvas_size, str(e) or type(e).__name__) from e

    logger.debug(f"Created {mode} canvas: {canvas_size}")
    return canvas


def flatten(image: Image.Image, background_color: Tuple[int, int, int] = (0, 0, 0)) -> Image.Image:
    """Drop the alpha channel by compositing onto an opaque background."""
    if image.mode == 'RGB':
        return image
    rgba = image.convert('RGBA')
    flat = Image.new('RGB', rgba.size, tuple(background_color))
    flat.paste(rgba, mask=rgba.getchannel('A'))
    return flat


def encode_image(image: Image.Image, output_format: str = 'JPEG', quality: int = 92,
                 background_color: Tuple[int, int, int] = (0, 0, 0)) -> EncodedImage:
    """Encode a raster for transport to an HTTP client. Output is always flat RGB."""
    output_format = output_format.upper()
    save_kwargs = {'format': output_format}
    image = flatten(image, background_color)

    if output_format == 'JPEG':
        save_kwargs['quality'] = quality
    elif output_format == 'PNG':
        save_kwargs['compress_level'] = 6

    buffer = io.BytesIO()
    image.save(buffer, **save_kwargs)
    data = buffer.getvalue()

    logger.debug(f"Encoded {image.size[0]}x{image.size[1]} {output_format} ({len(data):,} bytes)")
    return EncodedImage(data, MIME_TYPES[output_format], image.size[0], image.size[1])
