"""
Exception types raised inside the detection pipeline.

Only camera acquisition failures are fatal to a session. Everything else is
caught at the lowest level that can degrade gracefully and is logged there.
"""

from enum import Enum


class PoseWatchError(Exception):
    """Base class for all posewatch errors."""


class CameraFailure(Enum):
    """Why a capture device could not be opened."""
    PERMISSION_DENIED = "permission_denied"
    DEVICE_UNAVAILABLE = "device_unavailable"


class CameraAccessError(PoseWatchError):
    """The capture device could not be acquired."""

    def __init__(self, message: str, reason: CameraFailure = CameraFailure.DEVICE_UNAVAILABLE):
        super().__init__(message)
        self.reason = reason


class EstimatorInitError(PoseWatchError):
    """An estimator could not be constructed; its modality stays empty."""


class EstimationError(PoseWatchError):
    """A single estimate call failed for one detection cycle."""
