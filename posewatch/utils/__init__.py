"""Utility modules for posewatch."""

from posewatch.utils.math_utils import (
    line_angle_degrees,
    centroid,
    mirror_x,
    frame_dimensions,
    has_valid_dimensions,
)
from posewatch.utils.drawing import OverlaySurface, hex_to_bgr

__all__ = [
    "line_angle_degrees",
    "centroid",
    "mirror_x",
    "frame_dimensions",
    "has_valid_dimensions",
    "OverlaySurface",
    "hex_to_bgr",
]
