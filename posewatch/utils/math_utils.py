"""
Geometry helpers for 2D keypoints.

Provides functions for:
- Line inclination in degrees
- Point centroids
- Horizontal mirroring into the user's view
- Frame dimension checks
"""

from typing import Optional, Sequence, Tuple

import numpy as np


def line_angle_degrees(start: Tuple[float, float], end: Tuple[float, float]) -> float:
    """
    Inclination of the line from start to end.

    Args:
        start: (x, y) of the first point
        end: (x, y) of the second point

    Returns:
        atan2(dy, dx) in degrees, in (-180, 180]. Image y grows downward, so a
        positive angle means the end point sits lower than the start point.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    return float(np.degrees(np.arctan2(dy, dx)))


def centroid(points: Sequence[Tuple[float, float]]) -> Optional[Tuple[float, float]]:
    """Mean position of a set of points, or None if empty."""
    if len(points) == 0:
        return None
    arr = np.asarray([(p[0], p[1]) for p in points], dtype=np.float64)
    cx, cy = arr.mean(axis=0)
    return float(cx), float(cy)


def mirror_x(x: float, width: float) -> float:
    """Reflect an x-coordinate across the vertical axis of a surface."""
    return width - x


def frame_dimensions(frame) -> Tuple[int, int]:
    """
    Width and height of a frame.

    Returns (0, 0) for anything that is not at least a 2D array, so callers
    can treat a missing frame and an empty one the same way.
    """
    shape = getattr(frame, "shape", None)
    if shape is None or len(shape) < 2:
        return 0, 0
    return int(shape[1]), int(shape[0])


def has_valid_dimensions(frame) -> bool:
    width, height = frame_dimensions(frame)
    return width > 0 and height > 0
