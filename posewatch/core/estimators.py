"""
Estimator interfaces.

Defines the model-agnostic contract between the detection pipeline and any
keypoint inference stack: a backend constructs one estimator per modality,
and each estimator turns a frame into zero or more detections.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Sequence

import numpy as np

from posewatch.config.settings import DetectionConfig
from posewatch.data.landmarks import FaceDetection, HandDetection, PoseDetection


class Modality(Enum):
    """Independently constructible estimator kinds, in cycle order."""
    BODY = "body"
    HAND = "hand"
    FACE = "face"

    def is_enabled(self, config: DetectionConfig) -> bool:
        return bool(getattr(config, f"enable_{self.value}"))


class Estimator(ABC):
    """
    A constructed keypoint estimator for one modality.

    Implementations take a BGR frame (H,W,3 uint8) and return a list of
    detections with coordinates in frame pixels.
    """

    modality: Modality

    @abstractmethod
    async def estimate(self, frame: np.ndarray) -> Sequence:
        ...

    @abstractmethod
    def dispose(self) -> None:
        ...


class BodyEstimator(Estimator):
    modality = Modality.BODY

    @abstractmethod
    async def estimate(self, frame: np.ndarray) -> Sequence[PoseDetection]:
        """Zero or one pose (single person)."""


class HandEstimator(Estimator):
    modality = Modality.HAND

    @abstractmethod
    async def estimate(self, frame: np.ndarray) -> Sequence[HandDetection]:
        """Zero to two hands, labelled with the estimator's raw handedness."""


class FaceEstimator(Estimator):
    modality = Modality.FACE

    @abstractmethod
    async def estimate(self, frame: np.ndarray) -> Sequence[FaceDetection]:
        """Zero or one face mesh."""


class InferenceBackend(ABC):
    """
    Model adapter factory.

    initialize() prepares the shared runtime once per session start; the
    create_* methods each construct one estimator and raise
    EstimatorInitError when that model cannot be loaded.
    """

    @abstractmethod
    def name(self) -> str: ...

    async def initialize(self) -> None:
        return None

    @abstractmethod
    async def create_body_estimator(self, config: DetectionConfig) -> BodyEstimator: ...

    @abstractmethod
    async def create_hand_estimator(self, config: DetectionConfig) -> HandEstimator: ...

    @abstractmethod
    async def create_face_estimator(self, config: DetectionConfig) -> FaceEstimator: ...

    async def create_estimator(self, modality: Modality, config: DetectionConfig) -> Estimator:
        factories = {
            Modality.BODY: self.create_body_estimator,
            Modality.HAND: self.create_hand_estimator,
            Modality.FACE: self.create_face_estimator,
        }
        return await factories[modality](config)
