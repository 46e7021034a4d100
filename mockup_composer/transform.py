"""
Placement geometry for Mockup Composer.

Maps placements authored in editor display coordinates onto the
natural pixel grid of the product photo, and builds the affine matrix
that paints a design there:

    canvas = T(cx, cy) . R(theta) . T(-sw/2, -sh/2) . S(sw/nw, sh/nh) . design

Screen coordinates are y-down, so a positive angle turns clockwise.
All matrices are 3x3 homogeneous numpy arrays.
"""

import math
from typing import List, Tuple

import numpy as np

from .models import DesignPlacement, Viewport


class ScaleFactors:
    """Editor-to-natural scale along each axis."""

    def __init__(self, x: float, y: float):
        self.x = x
        self.y = y

    @property
    def is_uniform(self) -> bool:
        return self.x == self.y

    def __repr__(self) -> str:
        return f"ScaleFactors({self.x:.4f}, {self.y:.4f})"


def compute_scale_factors(natural_size: Tuple[int, int], viewport: Viewport = None,
                          policy: str = "independent") -> ScaleFactors:
    """
    Scale factors from the editor viewport to the natural image size.

    With the "uniform" policy both axes use natural width / viewport
    width. Without a viewport the placements are already in natural
    pixels.
    """
    width, height = natural_size
    if viewport is None:
        return ScaleFactors(1.0, 1.0)

    scale_x = width / viewport.width
    if policy == "uniform":
        return ScaleFactors(scale_x, scale_x)
    return ScaleFactors(scale_x, height / viewport.height)


class ScaledPlacement:
    """A placement expressed in natural pixel coordinates."""

    def __init__(self, x: float, y: float, width: float, height: float, rotation: float):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.rotation = rotation

    @classmethod
    def from_placement(cls, placement: DesignPlacement, scale: ScaleFactors) -> "ScaledPlacement":
        return cls(
            x=placement.position.x * scale.x,
            y=placement.position.y * scale.y,
            width=placement.size.width * scale.x,
            height=placement.size.height * scale.y,
            rotation=placement.rotation,
        )

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def pivot(self) -> Tuple[float, float]:
        return (self.center_x, self.center_y)

    @property
    def radians(self) -> float:
        # Normalised so that 0 and 360 give identical matrices
        return math.radians(self.rotation % 360)

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def __repr__(self) -> str:
        return (f"ScaledPlacement({self.x:.2f}, {self.y:.2f}, {self.width:.2f}x{self.height:.2f}, "
                f"{self.rotation:.1f}deg)")


def translation(tx: float, ty: float) -> np.ndarray:
    return np.array([[1.0, 0.0, tx],
                     [0.0, 1.0, ty],
                     [0.0, 0.0, 1.0]])


def rotation(theta: float) -> np.ndarray:
    """Rotation by theta radians, clockwise on a y-down grid."""
    if theta == 0.0:
        return np.identity(3)
    c, s = math.cos(theta), math.sin(theta)
    return np.array([[c, -s, 0.0],
                     [s, c, 0.0],
                     [0.0, 0.0, 1.0]])


def scaling(sx: float, sy: float) -> np.ndarray:
    return np.array([[sx, 0.0, 0.0],
                     [0.0, sy, 0.0],
                     [0.0, 0.0, 1.0]])


def placement_matrix(scaled: ScaledPlacement) -> np.ndarray:
    """Matrix taking footprint-local coordinates (0..sw, 0..sh) to the canvas."""
    return (translation(scaled.center_x, scaled.center_y)
            @ rotation(scaled.radians)
            @ translation(-scaled.width / 2, -scaled.height / 2))


def design_matrix(scaled: ScaledPlacement, design_size: Tuple[int, int]) -> np.ndarray:
    """Matrix taking design-native pixel coordinates to the canvas."""
    native_w, native_h = design_size
    return placement_matrix(scaled) @ scaling(scaled.width / native_w, scaled.height / native_h)


def affine_coefficients(matrix: np.ndarray) -> Tuple[float, ...]:
    """
    Inverse of a forward matrix in the (a, b, c, d, e, f) form Pillow's
    AFFINE transform expects: it maps each output pixel back to the input.
    """
    inverse = np.linalg.inv(matrix)
    return tuple(float(v) for v in inverse[:2].reshape(-1))


def apply_matrix(matrix: np.ndarray, points: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
    """Map points through a homogeneous matrix."""
    if not points:
        return []
    homogeneous = np.column_stack([np.asarray(points, dtype=float), np.ones(len(points))])
    mapped = homogeneous @ matrix.T
    return [(float(x), float(y)) for x, y, _ in mapped]


def corner_points(scaled: ScaledPlacement) -> List[Tuple[float, float]]:
    """
    Canvas positions of the footprint's corners after rotation, in the
    order top-left, top-right, bottom-right, bottom-left.
    """
    w, h = scaled.width, scaled.height
    return apply_matrix(placement_matrix(scaled), [(0.0, 0.0), (w, 0.0), (w, h), (0.0, h)])


def bounding_box(scaled: ScaledPlacement) -> Tuple[int, int, int, int]:
    """Integer (left, top, right, bottom) box enclosing the rotated footprint."""
    xs, ys = zip(*corner_points(scaled))
    return (math.floor(min(xs)), math.floor(min(ys)), math.ceil(max(xs)), math.ceil(max(ys)))
