"""
Pytest configuration and fixtures for Mockup Composer tests.

Provides shared fixtures and image factories for running tests across
the entire application.
"""

import base64
import io
import shutil
import tempfile
from pathlib import Path

import pytest
from PIL import Image

from mockup_composer import create_app
from mockup_composer.config import CompositionSettings
from mockup_composer.models import DesignPlacement


RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
GREEN = (0, 255, 0, 255)
GREY = (128, 128, 128)


def solid_image(size, color=RED, mode='RGBA') -> Image.Image:
    """A solid-color image of the given size."""
    return Image.new(mode, size, color)


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()


def encode_rotated_jpeg(image: Image.Image, orientation: int = 6) -> bytes:
    """JPEG whose stored pixels must be turned per the EXIF Orientation tag."""
    exif = Image.Exif()
    exif[0x0112] = orientation
    buffer = io.BytesIO()
    image.convert('RGB').save(buffer, format='JPEG', exif=exif.tobytes())
    return buffer.getvalue()


def to_data_url(image: Image.Image) -> str:
    return "data:image/png;base64," + base64.b64encode(encode_png(image)).decode('ascii')


def decode_data_url(data_url: str) -> Image.Image:
    header, payload = data_url.split(',', 1)
    image = Image.open(io.BytesIO(base64.b64decode(payload)))
    image.load()
    return image


def placement(x, y, width, height, rotation=0.0) -> DesignPlacement:
    return DesignPlacement(
        position={'x': x, 'y': y},
        size={'width': width, 'height': height},
        rotation=rotation,
    )


def close_to(actual, expected, tolerance=24) -> bool:
    """Channel-wise comparison for pixels that went through JPEG."""
    return all(abs(a - e) <= tolerance for a, e in zip(actual, expected))


@pytest.fixture(scope='session')
def log_dir():
    directory = tempfile.mkdtemp()
    yield Path(directory)
    shutil.rmtree(directory, ignore_errors=True)


@pytest.fixture(scope='session')
def app(log_dir):
    """Create and configure a test Flask application."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-key',
        'DEBUG': True,
        'LOG_FILE': str(log_dir / 'test.log'),
        'LOG_LEVEL': 'DEBUG',
    })

    yield app


@pytest.fixture
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()


@pytest.fixture
def png_settings():
    """Lossless output so tests can compare exact pixels."""
    return CompositionSettings(output_format='PNG', resampling='nearest')


@pytest.fixture
def temp_work_dir():
    """Create a temporary work directory for test files."""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def wallet_image():
    """An 800x600 product photo stand-in."""
    return solid_image((800, 600), GREY, mode='RGB')


@pytest.fixture
def wallet_files(temp_work_dir, wallet_image):
    """Product photo and two designs saved to disk."""
    base_path = temp_work_dir / 'wallet.jpg'
    wallet_image.save(base_path, 'JPEG', quality=95)

    design_paths = []
    for name, color in (('logo.png', RED), ('badge.png', BLUE)):
        path = temp_work_dir / name
        solid_image((64, 64), color).save(path, 'PNG')
        design_paths.append(path)

    return base_path, design_paths
