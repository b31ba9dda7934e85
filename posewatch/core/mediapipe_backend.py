"""
MediaPipe implementation of the estimator interfaces.

Wraps three independent MediaPipe solutions:
- Pose (33 BlazePose landmarks, reduced to the COCO-17 body joints)
- Hands (21 landmarks per hand, up to two hands, with handedness)
- Face Mesh (468 landmarks, 478 with iris refinement)

MediaPipe reports normalized coordinates; every estimator converts them to
frame pixels.
"""

import asyncio
import logging
import threading

import cv2
import numpy as np

from posewatch.config.settings import DetectionConfig
from posewatch.core.estimators import (
    BodyEstimator,
    FaceEstimator,
    HandEstimator,
    InferenceBackend,
)
from posewatch.data.landmarks import (
    HAND_JOINT_NAMES,
    FaceDetection,
    HandDetection,
    HandKeypoint,
    Keypoint,
    PoseDetection,
)
from posewatch.exceptions import EstimationError, EstimatorInitError

try:
    import mediapipe as mp
    MEDIAPIPE_AVAILABLE = True
except ImportError:
    MEDIAPIPE_AVAILABLE = False
    mp = None

logger = logging.getLogger(__name__)


# BlazePose indices for each COCO-17 joint
BLAZEPOSE_TO_COCO = {
    "nose": 0,
    "left_eye": 2,
    "right_eye": 5,
    "left_ear": 7,
    "right_ear": 8,
    "left_shoulder": 11,
    "right_shoulder": 12,
    "left_elbow": 13,
    "right_elbow": 14,
    "left_wrist": 15,
    "right_wrist": 16,
    "left_hip": 23,
    "right_hip": 24,
    "left_knee": 25,
    "right_knee": 26,
    "left_ankle": 27,
    "right_ankle": 28,
}


class _MediaPipeModel:
    """
    Owns one MediaPipe solution instance.

    process() runs in a worker thread so the event loop stays responsive;
    the lock makes close() wait for an in-flight process() call.
    """

    def __init__(self, solution):
        self._solution = solution
        self._lock = threading.Lock()

    def process(self, frame: np.ndarray):
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        with self._lock:
            if self._solution is None:
                return None
            return self._solution.process(rgb)

    async def process_async(self, frame: np.ndarray):
        try:
            return await asyncio.to_thread(self.process, frame)
        except Exception as e:
            raise EstimationError(f"MediaPipe inference failed: {e}") from e

    def close(self):
        with self._lock:
            if self._solution is not None:
                self._solution.close()
                self._solution = None


class MediaPipeBodyEstimator(BodyEstimator):
    """Single-person body pose via MediaPipe Pose."""

    def __init__(self, model: _MediaPipeModel):
        self._model = model

    async def estimate(self, frame: np.ndarray) -> list[PoseDetection]:
        h, w = frame.shape[:2]
        results = await self._model.process_async(frame)
        if results is None or not results.pose_landmarks:
            return []

        landmarks = results.pose_landmarks.landmark
        keypoints = []
        for name, idx in BLAZEPOSE_TO_COCO.items():
            lm = landmarks[idx]
            keypoints.append(Keypoint(
                x=float(lm.x) * w,
                y=float(lm.y) * h,
                confidence=float(getattr(lm, "visibility", 0.0) or 0.0),
                name=name,
            ))

        score = sum(kp.confidence for kp in keypoints) / len(keypoints)
        return [PoseDetection(keypoints=tuple(keypoints), score=score)]

    def dispose(self) -> None:
        self._model.close()


class MediaPipeHandEstimator(HandEstimator):
    """Up to two hands via MediaPipe Hands."""

    def __init__(self, model: _MediaPipeModel):
        self._model = model

    async def estimate(self, frame: np.ndarray) -> list[HandDetection]:
        h, w = frame.shape[:2]
        results = await self._model.process_async(frame)
        if results is None or not results.multi_hand_landmarks:
            return []

        handedness = results.multi_handedness or []
        hands = []
        for i, hand_landmarks in enumerate(results.multi_hand_landmarks):
            label, score = "Left", 0.0
            if i < len(handedness):
                classification = handedness[i].classification[0]
                label, score = classification.label, float(classification.score)

            keypoints = tuple(
                HandKeypoint(x=float(lm.x) * w, y=float(lm.y) * h, name=HAND_JOINT_NAMES[j])
                for j, lm in enumerate(hand_landmarks.landmark)
            )
            hands.append(HandDetection(handedness=label, keypoints=keypoints, score=score))

        return hands

    def dispose(self) -> None:
        self._model.close()


class MediaPipeFaceEstimator(FaceEstimator):
    """Single face mesh via MediaPipe Face Mesh."""

    def __init__(self, model: _MediaPipeModel):
        self._model = model

    async def estimate(self, frame: np.ndarray) -> list[FaceDetection]:
        h, w = frame.shape[:2]
        results = await self._model.process_async(frame)
        if results is None or not results.multi_face_landmarks:
            return []

        face = results.multi_face_landmarks[0]
        keypoints = tuple(
            Keypoint(x=float(lm.x) * w, y=float(lm.y) * h)
            for lm in face.landmark
        )
        return [FaceDetection(keypoints=keypoints)]

    def dispose(self) -> None:
        self._model.close()


class MediaPipeBackend(InferenceBackend):
    """
    Default inference backend.

    Each create_* call loads its model in a worker thread and raises
    EstimatorInitError on failure, so one broken model never takes the
    other two down with it.
    """

    def name(self) -> str:
        return "mediapipe"

    async def initialize(self) -> None:
        if not MEDIAPIPE_AVAILABLE:
            raise RuntimeError(
                "MediaPipe is not installed. Please install it with: "
                "pip install mediapipe"
            )
        logger.info(f"MediaPipe {getattr(mp, '__version__', 'unknown')} ready")

    async def _load(self, label: str, factory) -> _MediaPipeModel:
        if not MEDIAPIPE_AVAILABLE:
            raise EstimatorInitError(f"MediaPipe unavailable, cannot load {label}")
        try:
            solution = await asyncio.to_thread(factory)
        except Exception as e:
            raise EstimatorInitError(f"Failed to load {label}: {e}") from e
        logger.info(f"Loaded {label}")
        return _MediaPipeModel(solution)

    async def create_body_estimator(self, config: DetectionConfig) -> MediaPipeBodyEstimator:
        model = await self._load("pose model", lambda: mp.solutions.pose.Pose(
            static_image_mode=False,
            model_complexity=int(config.model_complexity),
            smooth_landmarks=True,
            enable_segmentation=False,
            min_detection_confidence=float(config.min_detection_confidence),
            min_tracking_confidence=float(config.min_tracking_confidence),
        ))
        return MediaPipeBodyEstimator(model)

    async def create_hand_estimator(self, config: DetectionConfig) -> MediaPipeHandEstimator:
        model = await self._load("hand model", lambda: mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=int(config.max_num_hands),
            model_complexity=min(int(config.model_complexity), 1),
            min_detection_confidence=float(config.min_detection_confidence),
            min_tracking_confidence=float(config.min_tracking_confidence),
        ))
        return MediaPipeHandEstimator(model)

    async def create_face_estimator(self, config: DetectionConfig) -> MediaPipeFaceEstimator:
        model = await self._load("face mesh model", lambda: mp.solutions.face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            refine_landmarks=bool(config.refine_face_landmarks),
            min_detection_confidence=float(config.min_detection_confidence),
            min_tracking_confidence=float(config.min_tracking_confidence),
        ))
        return MediaPipeFaceEstimator(model)
