"""
End-to-end composition for Mockup Composer.

compose(request) decodes the sources, rasterizes the design plate,
derives the capture and guide images and encodes both. It keeps no
state between calls, so it can be called from any thread, executor or
request handler.
"""

import time

from loguru import logger

from .canvas import encode_image
from .config import CompositionSettings
from .guides import GuideDeriver
from .models import CompositionRequest, GenerationAssets
from .rasterizer import DesignPlateRasterizer, check_placement_count
from .sources import load_image, load_images_concurrently
from .transform import compute_scale_factors


def compose(request: CompositionRequest, settings: CompositionSettings = None) -> GenerationAssets:
    """
    Build the capture and guide images for one generation request.

    All-or-nothing: any decode, allocation or paint failure raises and
    no assets are returned.
    """
    settings = settings or CompositionSettings()
    start = time.perf_counter()

    # Fail fast before any decoding
    check_placement_count(len(request.design_images), request.placements)

    base = load_image(request.base_image, "product image")
    designs = load_images_concurrently(request.design_images, "design image",
                                       max_workers=settings.max_decode_workers)

    scale = compute_scale_factors(base.size, request.editor_viewport, settings.scaling_policy)
    if not scale.is_uniform:
        logger.debug(f"Viewport aspect differs from product image: {scale}")

    rasterizer = DesignPlateRasterizer(settings.resampling, settings.max_canvas_pixels)
    plate = rasterizer.rasterize(base.size, designs, request.placements, scale)

    deriver = GuideDeriver(settings.alpha_threshold, settings.key_color, settings.max_canvas_pixels)
    capture, guide = deriver.derive(base, plate, request.mockup_mode)

    capture_image = _encode(capture, settings)
    guide_image = capture_image if guide is capture else _encode(guide, settings)

    elapsed = time.perf_counter() - start
    logger.info(f"Composed {len(designs)} designs on {base.size[0]}x{base.size[1]} "
                f"product image in {request.mockup_mode.value} mode ({elapsed:.2f}s)")

    return GenerationAssets(capture_image, guide_image, request.mockup_mode)


def _encode(image, settings: CompositionSettings):
    return encode_image(image, settings.output_format, settings.jpeg_quality, settings.background_color)
