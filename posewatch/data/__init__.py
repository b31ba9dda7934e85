"""
Data structures for detection results.

Includes:
- Keypoint types and the landmark schema
- Posture observations, the observation timeline and statistics
"""

from posewatch.data.landmarks import Keypoint, HandKeypoint, PoseDetection, HandDetection, FaceDetection
from posewatch.data.observation import (
    PostureCategory,
    PostureObservation,
    ObservationTimeline,
    PostureStatistics,
    compute_statistics,
)

__all__ = [
    "Keypoint",
    "HandKeypoint",
    "PoseDetection",
    "HandDetection",
    "FaceDetection",
    "PostureCategory",
    "PostureObservation",
    "ObservationTimeline",
    "PostureStatistics",
    "compute_statistics",
]
