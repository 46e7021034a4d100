"""
Design-plate rasterizer for Mockup Composer.

This module handles:
- Converting editor placements to natural pixel placements
- Painting every design onto an isolated transparent plate in list order
- One affine resampling call per design, no shared drawing state
"""

from typing import Sequence, Tuple

from PIL import Image
from loguru import logger

from .canvas import TRANSPARENT, create_canvas
from .errors import InvalidPlacementCountError, RenderError
from .models import DesignPlacement
from .transform import (
    ScaleFactors, ScaledPlacement, affine_coefficients, bounding_box,
    design_matrix, translation
)


RESAMPLING = {
    'nearest': Image.Resampling.NEAREST,
    'bilinear': Image.Resampling.BILINEAR,
    'bicubic': Image.Resampling.BICUBIC,
}


def check_placement_count(design_count: int, placements: Sequence[DesignPlacement]):
    """Every design image needs exactly one placement."""
    if len(placements) != design_count:
        raise InvalidPlacementCountError(design_count, len(placements))


class DesignPlateRasterizer:
    """Paints designs onto a transparent plate the size of the product photo."""

    def __init__(self, resampling: str = 'bicubic', max_canvas_pixels: int = None):
        if resampling not in RESAMPLING:
            raise ValueError(f"Unsupported resampling filter: {resampling}")
        self.resampling = resampling
        self.max_canvas_pixels = max_canvas_pixels

    def rasterize(self,
                  canvas_size: Tuple[int, int],
                  designs: Sequence[Image.Image],
                  placements: Sequence[DesignPlacement],
                  scale: ScaleFactors) -> Image.Image:
        """
        Produce the design plate.

        Designs must already be decoded; painting happens strictly in
        list order so later designs cover earlier ones.
        """
        check_placement_count(len(designs), placements)

        plate = create_canvas(canvas_size, 'RGBA', TRANSPARENT, self.max_canvas_pixels)
        logger.info(f"Rasterizing {len(designs)} designs onto {canvas_size} plate ({scale})")

        for i, (design, placement) in enumerate(zip(designs, placements)):
            scaled = ScaledPlacement.from_placement(placement, scale)
            try:
                self.paint_design(plate, design, scaled)
            except (ValueError, OSError) as e:
                raise RenderError(
                    f"Failed to paint design {i + 1}: {e}",
                    details={'index': i, 'placement': repr(scaled)}
                ) from e
            logger.debug(f"Painted design {i + 1}/{len(designs)}: {scaled}")

        return plate

    def paint_design(self, plate: Image.Image, design: Image.Image, scaled: ScaledPlacement):
        """Resample one design into its rotated footprint and composite it over the plate."""
        if scaled.is_degenerate or design.width == 0 or design.height == 0:
            logger.debug(f"Skipping zero-area placement {scaled}")
            return

        left, top, right, bottom = bounding_box(scaled)
        left, top = max(left, 0), max(top, 0)
        right, bottom = min(right, plate.width), min(bottom, plate.height)
        if right <= left or bottom <= top:
            logger.debug(f"Placement {scaled} lies entirely outside the canvas")
            return

        # Only the clipped footprint box is resampled
        matrix = translation(-left, -top) @ design_matrix(scaled, design.size)
        layer = design.convert('RGBA').transform(
            (right - left, bottom - top),
            Image.Transform.AFFINE,
            affine_coefficients(matrix),
            resample=RESAMPLING[self.resampling],
            fillcolor=TRANSPARENT,
        )
        plate.alpha_composite(layer, dest=(left, top))
