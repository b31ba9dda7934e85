"""Shared fakes for the capture device and the inference backend."""

import asyncio

import numpy as np
import pytest

from posewatch.config.settings import Settings
from posewatch.core.estimators import Estimator, InferenceBackend, Modality
from posewatch.data.landmarks import (
    BODY_JOINT_NAMES,
    HAND_JOINT_NAMES,
    FaceDetection,
    HandDetection,
    HandKeypoint,
    Keypoint,
    PoseDetection,
)
from posewatch.exceptions import EstimatorInitError


class FakeCapture:
    """Stands in for cv2.VideoCapture."""

    def __init__(self, opened=True, frame_shape=(480, 640, 3)):
        self.opened = opened
        self.released = False
        self.props = {}
        self.reads = 0
        self.frame = np.zeros(frame_shape, dtype=np.uint8) if frame_shape else None

    def isOpened(self):
        return self.opened and not self.released

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def read(self):
        self.reads += 1
        if self.frame is None or self.released:
            return False, None
        return True, self.frame

    def release(self):
        self.released = True


class FakeEstimator(Estimator):
    def __init__(self, modality, results=None, error=None, dispose_error=None):
        self.modality = modality
        self.results = results if results is not None else []
        self.error = error
        self.dispose_error = dispose_error
        self.calls = 0
        self.disposed = False

    async def estimate(self, frame):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.results

    def dispose(self):
        self.disposed = True
        if self.dispose_error is not None:
            raise self.dispose_error


class BlockingEstimator(FakeEstimator):
    """Holds estimate() open until released, to simulate an in-flight call."""

    def __init__(self, modality, results=None):
        super().__init__(modality, results)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def estimate(self, frame):
        self.calls += 1
        self.entered.set()
        await self.release.wait()
        return self.results


class FakeBackend(InferenceBackend):
    def __init__(self, estimators=None, failing=(), init_error=None):
        self.estimators = estimators or {}
        self.failing = set(failing)
        self.init_error = init_error
        self.initialized = 0
        self.created = []

    def name(self):
        return "fake"

    async def initialize(self):
        self.initialized += 1
        if self.init_error is not None:
            raise self.init_error

    def _create(self, modality):
        self.created.append(modality)
        if modality in self.failing:
            raise EstimatorInitError(f"{modality.value} model missing")
        return self.estimators.get(modality) or FakeEstimator(modality)

    async def create_body_estimator(self, config):
        return self._create(Modality.BODY)

    async def create_hand_estimator(self, config):
        return self._create(Modality.HAND)

    async def create_face_estimator(self, config):
        return self._create(Modality.FACE)


def make_body(left_shoulder=(240, 200, 0.9), right_shoulder=(400, 200, 0.9), confidence=0.9):
    """
    Full set of named body keypoints.

    Joints other than the shoulders are spread over the frame so their
    overlay circles never overlap.
    """
    keypoints = []
    for i, name in enumerate(BODY_JOINT_NAMES):
        if name == "left_shoulder":
            x, y, c = left_shoulder
        elif name == "right_shoulder":
            x, y, c = right_shoulder
        else:
            x, y, c = 30 + 35 * i, 20 + 25 * i, confidence
        keypoints.append(Keypoint(x=x, y=y, confidence=c, name=name))
    return keypoints


def make_hand(handedness, offset=0.0):
    keypoints = tuple(
        HandKeypoint(x=100 + offset + 3 * i, y=300 + 2 * i, name=name)
        for i, name in enumerate(HAND_JOINT_NAMES)
    )
    return HandDetection(handedness=handedness, keypoints=keypoints, score=0.95)


def make_face(count=478):
    keypoints = tuple(
        Keypoint(x=200 + (i % 40) * 5, y=100 + (i // 40) * 5)
        for i in range(count)
    )
    return FaceDetection(keypoints=keypoints)


def pose(keypoints):
    return [PoseDetection(keypoints=tuple(keypoints), score=0.9)]


@pytest.fixture
def settings():
    s = Settings(load=False)
    s.detection.target_fps = 1000.0
    s.detection.frame_wait_timeout = 0.2
    s.detection.frame_poll_interval = 0.01
    return s


@pytest.fixture
def capture():
    return FakeCapture()
