"""
Request and result records for the composition pipeline.

Placements arrive in editor display coordinates; nothing here knows
about the natural resolution of the product photo.
"""

import base64
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MockupMode(str, Enum):
    """Rendering intent for the downstream mockup generator."""
    PRINT = "print"
    ENGRAVE = "engrave"
    EMBOSS = "emboss"

    @property
    def is_keyed(self) -> bool:
        """Engrave and emboss guides replace design colors with the key color."""
        return self is not MockupMode.PRINT

    @classmethod
    def _missing_(cls, value):
        # Accept "ENGRAVE" as well as "engrave"
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return None


class Point(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    x: float
    y: float


class Size(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    width: float = Field(ge=0)
    height: float = Field(ge=0)


class Viewport(BaseModel):
    """Display size the placements were authored against."""
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    width: float = Field(gt=0)
    height: float = Field(gt=0)


class DesignPlacement(BaseModel):
    """Position, footprint and clockwise rotation of one design in the editor."""
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    position: Point
    size: Size
    rotation: float = 0.0

    @property
    def center(self) -> Point:
        return Point(x=self.position.x + self.size.width / 2,
                     y=self.position.y + self.size.height / 2)


class CompositionRequest(BaseModel):
    """
    Everything needed for one generation request.

    Image sources are opaque: bytes, data URLs, bare base64 strings,
    filesystem paths or already-open Pillow images. When editor_viewport
    is omitted the placements are taken to be in natural pixel space.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base_image: Any
    design_images: List[Any]
    placements: List[DesignPlacement]
    editor_viewport: Optional[Viewport] = None
    mockup_mode: MockupMode = MockupMode.ENGRAVE


class EncodedImage:
    """An encoded raster ready for transport to an HTTP client."""

    def __init__(self, data: bytes, mime_type: str, width: int, height: int):
        self.data = data
        self.mime_type = mime_type
        self.width = width
        self.height = height

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode('ascii')

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    def __repr__(self) -> str:
        return f"EncodedImage({self.mime_type}, {self.width}x{self.height}, {len(self.data)} bytes)"


class GenerationAssets:
    """Capture image for the user and guide image for the generator."""

    def __init__(self, capture_image: EncodedImage, guide_image: EncodedImage, mode: MockupMode):
        self.capture_image = capture_image
        self.guide_image = guide_image
        self.mode = mode

    @property
    def is_keyed(self) -> bool:
        return self.guide_image is not self.capture_image

    def to_dict(self) -> Dict[str, Any]:
        return {
            'capture_image': self.capture_image.to_data_url(),
            'guide_image': self.guide_image.to_data_url(),
            'mode': self.mode.value,
            'width': self.capture_image.width,
            'height': self.capture_image.height,
            'keyed': self.is_keyed,
        }
