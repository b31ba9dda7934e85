"""
Core detection module.

Contains the detection pipeline:
- Camera acquisition
- Estimator orchestration with per-modality degradation
- Posture classification and target pose matching
- Overlay rendering
- Session lifecycle
"""

from posewatch.core.camera import CameraManager, VideoSurface
from posewatch.core.estimators import Estimator, InferenceBackend, Modality
from posewatch.core.matching import TargetPoint, TargetPose, compare_pose, movement_score
from posewatch.core.mediapipe_backend import MediaPipeBackend
from posewatch.core.orchestrator import DetectionSnapshot, EstimatorOrchestrator
from posewatch.core.overlay import OverlayRenderer
from posewatch.core.posture import PostureReading, classify, mirror_keypoints
from posewatch.core.session import PostureSession, SessionState

__all__ = [
    "CameraManager",
    "VideoSurface",
    "Estimator",
    "InferenceBackend",
    "Modality",
    "TargetPoint",
    "TargetPose",
    "compare_pose",
    "movement_score",
    "MediaPipeBackend",
    "DetectionSnapshot",
    "EstimatorOrchestrator",
    "OverlayRenderer",
    "PostureReading",
    "classify",
    "mirror_keypoints",
    "PostureSession",
    "SessionState",
]
