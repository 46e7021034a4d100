"""
Guide derivation for Mockup Composer.

This module handles:
- The capture image: product photo with the design plate painted on top
- The keyed plate: design alpha turned into a hard-edged key-color mask
- The guide image sent to the mockup generator, chosen by mockup mode

The downstream model is told to treat the solid magenta region as the
area to engrave or emboss, so original design colors and anti-aliasing
are discarded for those modes.
"""

from typing import Tuple

import numpy as np
from PIL import Image
from loguru import logger

from .canvas import TRANSPARENT, create_canvas
from .errors import RenderError
from .models import MockupMode


DEFAULT_ALPHA_THRESHOLD = 10
KEY_COLOR = (255, 0, 255)


def key_design_plate(plate: Image.Image,
                     threshold: int = DEFAULT_ALPHA_THRESHOLD,
                     key_color: Tuple[int, int, int] = KEY_COLOR) -> Image.Image:
    """
    Return a new plate where every pixel with alpha > threshold is the
    opaque key color and every other pixel is fully transparent.

    The comparison is strict and on the 0-255 integer alpha scale. The
    input plate is left untouched.
    """
    pixels = np.asarray(plate.convert('RGBA'))
    covered = pixels[..., 3] > threshold

    keyed = np.zeros_like(pixels)
    keyed[covered] = (*key_color, 255)

    logger.debug(f"Keyed {int(covered.sum()):,} of {covered.size:,} plate pixels (alpha > {threshold})")
    return Image.fromarray(keyed, 'RGBA')


def paint_over(base: Image.Image, plate: Image.Image = None, max_pixels: int = None) -> Image.Image:
    """Paint the base at natural size on a fresh canvas, then the plate on top."""
    canvas = create_canvas(base.size, 'RGBA', TRANSPARENT, max_pixels)
    canvas.alpha_composite(base.convert('RGBA'))
    if plate is not None:
        if plate.size != canvas.size:
            raise RenderError(
                "Design plate does not match the product image size",
                details={'plate_size': plate.size, 'base_size': canvas.size}
            )
        canvas.alpha_composite(plate)
    return canvas


class GuideDeriver:
    """Derives the capture and guide rasters from a base image and design plate."""

    def __init__(self,
                 alpha_threshold: int = DEFAULT_ALPHA_THRESHOLD,
                 key_color: Tuple[int, int, int] = KEY_COLOR,
                 max_canvas_pixels: int = None):
        self.alpha_threshold = alpha_threshold
        self.key_color = tuple(key_color)
        self.max_canvas_pixels = max_canvas_pixels

    def capture(self, base: Image.Image, plate: Image.Image) -> Image.Image:
        """Literal composite of the product photo and every design."""
        return paint_over(base, plate, self.max_canvas_pixels)

    def keyed_guide(self, base: Image.Image, plate: Image.Image) -> Image.Image:
        """Product photo with the designs replaced by a solid key-color mask."""
        keyed = key_design_plate(plate, self.alpha_threshold, self.key_color)
        return paint_over(base, keyed, self.max_canvas_pixels)

    def derive(self, base: Image.Image, plate: Image.Image, mode: MockupMode) -> Tuple[Image.Image, Image.Image]:
        """
        Return (capture, guide) rasters.

        For PRINT the guide is the capture itself; the design's true
        colors are what should be printed.
        """
        capture = self.capture(base, plate)
        if not mode.is_keyed:
            logger.debug("Print mode: guide image is the capture image")
            return capture, capture

        logger.debug(f"{mode.value.title()} mode: keying design plate with {self.key_color}")
        return capture, self.keyed_guide(base, plate)
