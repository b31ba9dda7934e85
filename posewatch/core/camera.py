"""
Live camera acquisition.

CameraManager opens a capture device at the requested resolution and feeds
frames into a VideoSurface, the handle a host mounts to show the preview.
"""

import logging
from typing import Callable, Optional

import cv2
import numpy as np

from posewatch.config.settings import CameraConfig
from posewatch.exceptions import CameraAccessError, CameraFailure
from posewatch.utils.math_utils import frame_dimensions

logger = logging.getLogger(__name__)


class VideoSurface:
    """
    Display surface for the live preview.

    Holds the most recent camera frame. The host mirrors it for display; the
    detection pipeline reads it unmirrored.
    """

    def __init__(self):
        self._frame: Optional[np.ndarray] = None
        self._source: Optional[str] = None

    @property
    def frame(self) -> Optional[np.ndarray]:
        return self._frame

    @property
    def source(self) -> Optional[str]:
        return self._source

    @property
    def is_attached(self) -> bool:
        return self._source is not None

    @property
    def width(self) -> int:
        return frame_dimensions(self._frame)[0]

    @property
    def height(self) -> int:
        return frame_dimensions(self._frame)[1]

    def attach(self, source: str):
        self._source = source
        self._frame = None

    def present(self, frame: np.ndarray):
        self._frame = frame

    def detach(self):
        self._source = None
        self._frame = None


class CameraManager:
    """
    Owns one capture device for the lifetime of a detection session.

    Example:
        >>> camera = CameraManager()
        >>> camera.acquire(CameraConfig(width=640, height=480))
        >>> frame = camera.read_frame()
        >>> camera.release()
    """

    def __init__(
        self,
        surface: Optional[VideoSurface] = None,
        capture_factory: Callable[[int], cv2.VideoCapture] = cv2.VideoCapture,
    ):
        self.surface = surface or VideoSurface()
        self._capture_factory = capture_factory
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def is_acquired(self) -> bool:
        return self._cap is not None

    def acquire(self, constraints: CameraConfig) -> VideoSurface:
        """
        Open the camera and start playback on the surface.

        Args:
            constraints: Device index and ideal resolution / frame rate

        Returns:
            The attached VideoSurface

        Raises:
            CameraAccessError: the device could not be opened
        """
        if self._cap is not None:
            return self.surface

        try:
            cap = self._capture_factory(constraints.device_index)
        except cv2.error as e:
            # the OS capture backend refused the device outright
            raise CameraAccessError(
                f"Camera {constraints.device_index} refused access: {e}",
                reason=CameraFailure.PERMISSION_DENIED,
            ) from e

        if cap is None or not cap.isOpened():
            if cap is not None:
                cap.release()
            raise CameraAccessError(
                f"Camera {constraints.device_index} is not available",
                reason=CameraFailure.DEVICE_UNAVAILABLE,
            )

        # Ideal constraints; the driver may pick the closest supported mode
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.height)
        cap.set(cv2.CAP_PROP_FPS, constraints.fps)

        self._cap = cap
        self.surface.attach(f"camera:{constraints.device_index}")
        self._start_playback()

        logger.info(f"Camera {constraints.device_index} acquired")
        return self.surface

    def _start_playback(self):
        # A device still warming up returns no frame yet; that is not an error.
        if self.read_frame() is None:
            logger.debug("Camera opened but first frame not ready yet")

    def read_frame(self) -> Optional[np.ndarray]:
        """Read the next frame into the surface. None when no frame is available."""
        if self._cap is None:
            return None

        ok, frame = self._cap.read()
        if not ok or frame is None:
            return None

        self.surface.present(frame)
        return frame

    def release(self):
        """Stop the device and detach the surface. Safe to call repeatedly."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("Camera released")
        if self.surface.is_attached:
            self.surface.detach()
