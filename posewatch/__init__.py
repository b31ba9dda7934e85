"""
posewatch - Camera-based posture and behavior observation

Turns a live camera feed into time-stamped behavioral observations during
assessment and training sessions:
- Body posture (upright / leaning left / leaning right) from the shoulder line
- Hand keypoints for both hands (21 landmarks per hand)
- Facial landmarks grouped into named contours and iris clusters
- A bounded observation timeline with derived posture statistics
- A mirrored keypoint overlay matching a self-facing preview
"""

__version__ = "1.0.0"
__author__ = "posewatch Contributors"
__license__ = "MIT"

from posewatch.core.session import PostureSession, SessionState
from posewatch.config.settings import Settings
from posewatch.data.observation import PostureCategory, PostureObservation, PostureStatistics

__all__ = [
    "PostureSession",
    "SessionState",
    "Settings",
    "PostureCategory",
    "PostureObservation",
    "PostureStatistics",
]
