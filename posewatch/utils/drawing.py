"""
2D drawing surface for overlays.

Provides:
- Hex color parsing
- OverlaySurface: a transparent BGRA canvas with an affine x-transform,
  line / circle / polyline primitives, and compositing onto a camera frame
"""

from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

Point = Tuple[float, float]


def hex_to_bgr(color: str) -> Tuple[int, int, int]:
    """
    Convert a '#RRGGBB' string to an OpenCV BGR tuple.

    Args:
        color: Hex color string, with or without the leading '#'

    Returns:
        (blue, green, red) tuple of ints
    """
    value = color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Invalid hex color: {color}")
    r = int(value[0:2], 16)
    g = int(value[2:4], 16)
    b = int(value[4:6], 16)
    return b, g, r


class OverlaySurface:
    """
    Transparent drawing surface sized to the live frame.

    Pixels are stored as BGRA; the alpha channel carries the opacity of each
    primitive so the overlay can be composited over the camera preview.
    Coordinates passed to the drawing primitives go through the current
    x-transform (x' = scale_x * x + translate_x) before rasterization.
    """

    def __init__(self, width: int = 0, height: int = 0):
        self._canvas = np.zeros((max(height, 0), max(width, 0), 4), dtype=np.uint8)
        self._scale_x = 1.0
        self._translate_x = 0.0

    @property
    def canvas(self) -> np.ndarray:
        return self._canvas

    @property
    def width(self) -> int:
        return self._canvas.shape[1]

    @property
    def height(self) -> int:
        return self._canvas.shape[0]

    @property
    def transform(self) -> Tuple[float, float]:
        return self._scale_x, self._translate_x

    def resize(self, width: int, height: int):
        """Match the surface to a frame size, discarding its contents on change."""
        if (width, height) != (self.width, self.height):
            self._canvas = np.zeros((height, width, 4), dtype=np.uint8)

    def clear(self):
        self._canvas[:] = 0

    def set_transform(self, scale_x: float = 1.0, translate_x: float = 0.0):
        self._scale_x = scale_x
        self._translate_x = translate_x

    def set_mirror(self):
        """Flip horizontally: negate the x-scale and translate by the width."""
        self.set_transform(-1.0, float(self.width))

    def reset_transform(self):
        self.set_transform()

    def to_surface(self, point: Point) -> Tuple[int, int]:
        """Apply the current transform and snap to pixel coordinates."""
        x = self._scale_x * point[0] + self._translate_x
        return int(round(x)), int(round(point[1]))

    @staticmethod
    def _color(color: str, opacity: float) -> Tuple[int, int, int, int]:
        b, g, r = hex_to_bgr(color)
        alpha = int(round(255 * min(max(opacity, 0.0), 1.0)))
        return b, g, r, alpha

    def line(self, start: Point, end: Point, color: str, thickness: int = 2, opacity: float = 1.0):
        cv2.line(
            self._canvas,
            self.to_surface(start),
            self.to_surface(end),
            self._color(color, opacity),
            thickness,
        )

    def circle(self, center: Point, radius: int, color: str, opacity: float = 1.0, filled: bool = True):
        cv2.circle(
            self._canvas,
            self.to_surface(center),
            radius,
            self._color(color, opacity),
            -1 if filled else 1,
        )

    def polyline(
        self,
        points: Sequence[Point],
        color: str,
        thickness: int = 1,
        closed: bool = False,
        opacity: float = 1.0,
    ):
        if len(points) < 2:
            return
        pts = np.array([self.to_surface(p) for p in points], dtype=np.int32)
        cv2.polylines(self._canvas, [pts], closed, self._color(color, opacity), thickness)

    def composite(self, frame: np.ndarray, mirror: bool = True) -> np.ndarray:
        """
        Blend the overlay onto a camera frame.

        Args:
            frame: BGR camera frame
            mirror: Flip the frame horizontally first, matching a self-facing
                preview (the overlay is already drawn mirrored)

        Returns:
            New BGR image with the overlay applied
        """
        background = cv2.flip(frame, 1) if mirror else frame.copy()
        if self._canvas.shape[:2] != background.shape[:2]:
            return background

        alpha = self._canvas[..., 3:4].astype(np.float32) / 255.0
        blended = background.astype(np.float32) * (1.0 - alpha) + \
            self._canvas[..., :3].astype(np.float32) * alpha
        return blended.astype(np.uint8)

    def pixel(self, x: int, y: int) -> Optional[Tuple[int, int, int, int]]:
        """Raw BGRA value at a surface pixel, or None when out of bounds."""
        if 0 <= x < self.width and 0 <= y < self.height:
            return tuple(int(v) for v in self._canvas[y, x])
        return None
