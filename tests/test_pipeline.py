"""
Integration tests for compose(): decoding, rasterizing, guide derivation
and encoding together.
"""

import pytest

from mockup_composer import pipeline
from mockup_composer.config import CompositionSettings
from mockup_composer.errors import CanvasUnavailableError, ImageLoadError, InvalidPlacementCountError
from mockup_composer.models import CompositionRequest, MockupMode, Viewport
from mockup_composer.pipeline import compose
from tests.conftest import (
    BLUE, GREY, RED, close_to, decode_data_url, encode_png, encode_rotated_jpeg, placement, solid_image,
    to_data_url
)


MAGENTA = (255, 0, 255)


def make_request(mode=MockupMode.ENGRAVE, designs=None, placements=None,
                 viewport=Viewport(width=400, height=300), base=None):
    if designs is None:
        designs = [to_data_url(solid_image((50, 50), RED))]
    if placements is None:
        placements = [placement(100, 100, 50, 50, 45)]
    if base is None:
        base = to_data_url(solid_image((800, 600), GREY, mode='RGB'))
    return CompositionRequest(
        base_image=base,
        design_images=designs,
        placements=placements,
        editor_viewport=viewport,
        mockup_mode=mode,
    )


class TestCompose:

    def test_print_guide_is_capture(self):
        assets = compose(make_request(MockupMode.PRINT))

        assert assets.guide_image is assets.capture_image
        assert assets.guide_image.data == assets.capture_image.data
        assert not assets.is_keyed
        assert assets.mode is MockupMode.PRINT

    def test_default_output_is_jpeg_data_url(self):
        assets = compose(make_request())

        url = assets.capture_image.to_data_url()
        assert url.startswith("data:image/jpeg;base64,")
        assert assets.capture_image.data[:2] == b'\xff\xd8'

        capture = decode_data_url(url)
        assert capture.size == (800, 600)
        assert capture.mode == 'RGB'

    def test_end_to_end_engrave(self, png_settings):
        assets = compose(make_request(MockupMode.ENGRAVE), png_settings)

        capture = decode_data_url(assets.capture_image.to_data_url())
        guide = decode_data_url(assets.guide_image.to_data_url())

        assert assets.is_keyed
        assert capture.mode == 'RGB'
        assert capture.getpixel((250, 250)) == RED[:3]
        assert guide.getpixel((250, 250)) == MAGENTA
        assert guide.getpixel((250, 185)) == MAGENTA
        # Unrotated corner of the footprint stays product-colored
        assert guide.getpixel((203, 203)) == GREY
        assert capture.getpixel((10, 10)) == GREY

    def test_emboss_guide_through_jpeg(self):
        assets = compose(make_request(MockupMode.EMBOSS))

        guide = decode_data_url(assets.guide_image.to_data_url())

        assert close_to(guide.getpixel((250, 250)), MAGENTA)
        assert close_to(guide.getpixel((20, 20)), GREY)

    def test_paint_order_end_to_end(self, png_settings):
        request = make_request(
            MockupMode.PRINT,
            designs=[to_data_url(solid_image((10, 10), RED)), to_data_url(solid_image((10, 10), BLUE))],
            placements=[placement(0, 0, 100, 100), placement(50, 50, 100, 100)],
        )

        capture = decode_data_url(compose(request, png_settings).capture_image.to_data_url())

        assert capture.getpixel((150, 150)) == BLUE[:3]
        assert capture.getpixel((50, 50)) == RED[:3]

    def test_missing_viewport_means_natural_pixels(self, png_settings):
        request = make_request(MockupMode.PRINT, placements=[placement(10, 10, 20, 20)], viewport=None)

        capture = decode_data_url(compose(request, png_settings).capture_image.to_data_url())

        assert capture.getpixel((15, 15)) == RED[:3]
        assert capture.getpixel((35, 35)) == GREY

    def test_raw_bytes_sources(self, png_settings):
        request = make_request(
            MockupMode.PRINT,
            base=encode_png(solid_image((40, 40), GREY, mode='RGB')),
            designs=[encode_png(solid_image((4, 4), RED))],
            placements=[placement(0, 0, 40, 40)],
            viewport=Viewport(width=40, height=40),
        )

        capture = decode_data_url(compose(request, png_settings).capture_image.to_data_url())

        assert capture.getpixel((20, 20)) == RED[:3]

    def test_exif_rotated_product_photo(self, png_settings):
        # Phone photo stored 40x20 and displayed upright as 20x40
        request = make_request(
            MockupMode.PRINT,
            base=encode_rotated_jpeg(solid_image((40, 20), GREY, mode='RGB'), orientation=6),
            designs=[encode_png(solid_image((5, 5), RED))],
            placements=[placement(0, 30, 10, 10)],
            viewport=Viewport(width=20, height=40),
        )

        assets = compose(request, png_settings)
        capture = decode_data_url(assets.capture_image.to_data_url())

        assert (assets.capture_image.width, assets.capture_image.height) == (20, 40)
        assert capture.size == (20, 40)
        assert capture.getpixel((5, 35)) == RED[:3]
        assert close_to(capture.getpixel((15, 10)), GREY)

    def test_to_dict(self):
        result = compose(make_request(MockupMode.ENGRAVE)).to_dict()

        assert result['mode'] == 'engrave'
        assert result['width'] == 800
        assert result['height'] == 600
        assert result['keyed'] is True
        assert result['capture_image'].startswith("data:image/jpeg;base64,")
        assert result['guide_image'] != result['capture_image']


class TestAllOrNothing:

    def test_one_bad_design_rejects_request(self):
        request = make_request(
            designs=[to_data_url(solid_image((5, 5), RED)), "data:image/png;base64,AAAA"],
            placements=[placement(0, 0, 5, 5), placement(5, 5, 5, 5)],
        )

        with pytest.raises(ImageLoadError) as exc_info:
            compose(request)

        assert exc_info.value.details['index'] == 1

    def test_bad_base_image(self):
        with pytest.raises(ImageLoadError) as exc_info:
            compose(make_request(base=b'\x89PNG broken'))

        assert exc_info.value.details['source'] == "product image"

    def test_placement_count_checked_before_decoding(self, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("decoding should not start")

        monkeypatch.setattr(pipeline, 'load_image', fail)
        request = make_request(designs=["one", "two"], placements=[placement(0, 0, 1, 1)])

        with pytest.raises(InvalidPlacementCountError):
            compose(request)

    def test_canvas_limit(self):
        settings = CompositionSettings(max_canvas_pixels=1000)

        with pytest.raises(CanvasUnavailableError):
            compose(make_request(), settings)
