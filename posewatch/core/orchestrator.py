"""
Per-frame multi-model invocation.

The orchestrator builds up to three independent estimators and runs them
once per detection cycle. Each modality degrades on its own: a model that
fails to load stays empty for the whole session, and a model that fails on
one frame simply contributes nothing new for that cycle.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence

import numpy as np

from posewatch.config.settings import DetectionConfig
from posewatch.core.estimators import Estimator, InferenceBackend, Modality
from posewatch.data.landmarks import HandDetection, HandKeypoint, Keypoint
from posewatch.utils.math_utils import frame_dimensions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionSnapshot:
    """
    Keypoints published by one detection cycle.

    Replaced as a whole, never updated field by field, so readers always see
    a consistent set of modalities.
    """
    body: tuple[Keypoint, ...] = ()
    left_hand: tuple[HandKeypoint, ...] = ()
    right_hand: tuple[HandKeypoint, ...] = ()
    face: tuple[Keypoint, ...] = ()
    frame_width: int = 0
    frame_height: int = 0
    timestamp: float = 0.0
    fresh: frozenset[Modality] = frozenset()  # modalities that produced a result this cycle

    @property
    def has_body(self) -> bool:
        return len(self.body) > 0

    @property
    def has_hands(self) -> bool:
        return len(self.left_hand) > 0 or len(self.right_hand) > 0

    @property
    def has_face(self) -> bool:
        return len(self.face) > 0


EMPTY_SNAPSHOT = DetectionSnapshot()


def split_hands(hands: Sequence[HandDetection]) -> tuple[tuple[HandKeypoint, ...], tuple[HandKeypoint, ...]]:
    """
    Assign detected hands to the user's left and right.

    The preview is mirrored, so the estimator's raw label is the opposite of
    the user's actual hand: a raw "Left" hand is the user's right hand.

    Returns:
        (left_hand, right_hand) keypoint tuples, empty when not detected
    """
    left: tuple[HandKeypoint, ...] = ()
    right: tuple[HandKeypoint, ...] = ()
    for hand in hands:
        if hand.handedness.lower() == "left":
            if right:
                logger.debug("Two hands labelled left in one frame, keeping the last")
            right = tuple(hand.keypoints)
        else:
            if left:
                logger.debug("Two hands labelled right in one frame, keeping the last")
            left = tuple(hand.keypoints)
    return left, right


class EstimatorOrchestrator:
    """
    Runs the enabled estimators against camera frames.

    Example:
        >>> orchestrator = EstimatorOrchestrator(MediaPipeBackend(), DetectionConfig())
        >>> await orchestrator.init()
        >>> snapshot = await orchestrator.run_cycle(frame)
        >>> orchestrator.dispose()
    """

    def __init__(
        self,
        backend: InferenceBackend,
        config: DetectionConfig,
        clock: Callable[[], float] = time.time,
    ):
        self.backend = backend
        self.config = config
        self._clock = clock
        self._estimators: dict[Modality, Estimator] = {}
        self._snapshot = EMPTY_SNAPSHOT

    @property
    def snapshot(self) -> DetectionSnapshot:
        return self._snapshot

    @property
    def active_modalities(self) -> list[Modality]:
        return [m for m in Modality if m in self._estimators]

    def has_estimator(self, modality: Modality) -> bool:
        return modality in self._estimators

    async def init(self) -> dict[Modality, bool]:
        """
        Construct every enabled estimator concurrently.

        Returns:
            Mapping of each enabled modality to whether it loaded
        """
        enabled = [m for m in Modality if m.is_enabled(self.config)]
        results = await asyncio.gather(
            *(self.backend.create_estimator(m, self.config) for m in enabled),
            return_exceptions=True,
        )

        status = {}
        for modality, result in zip(enabled, results):
            if isinstance(result, Exception):
                logger.warning(
                    f"{modality.value} estimator unavailable for this session: {result}"
                )
                status[modality] = False
                continue
            if isinstance(result, BaseException):
                raise result
            self._estimators[modality] = result
            status[modality] = True

        loaded = ", ".join(m.value for m in self.active_modalities) or "none"
        logger.info(f"Estimators ready: {loaded}")
        return status

    async def run_cycle(
        self,
        frame: Optional[np.ndarray],
        is_current: Callable[[], bool] = lambda: True,
    ) -> Optional[DetectionSnapshot]:
        """
        Run one detection cycle.

        Args:
            frame: BGR camera frame
            is_current: Checked before publishing; when it returns False the
                cycle's results are discarded

        Returns:
            The newly published snapshot, or None when the frame had no valid
            dimensions or the results were discarded
        """
        width, height = frame_dimensions(frame)
        if width <= 0 or height <= 0:
            return None

        previous = self._snapshot
        updates = {}
        fresh = set()

        for modality in Modality:
            estimator = self._estimators.get(modality)
            if estimator is None:
                continue
            try:
                detections = await estimator.estimate(frame)
            except Exception as e:
                logger.warning(f"{modality.value} estimation failed this cycle: {e}")
                continue
            updates.update(self._collect(modality, detections))
            fresh.add(modality)

        if not is_current():
            logger.debug("Discarding detection results from a stopped session")
            return None

        snapshot = replace(
            previous,
            frame_width=width,
            frame_height=height,
            timestamp=self._clock(),
            fresh=frozenset(fresh),
            **updates,
        )
        self._snapshot = snapshot
        return snapshot

    @staticmethod
    def _collect(modality: Modality, detections: Sequence) -> dict:
        if modality is Modality.BODY:
            return {"body": tuple(detections[0].keypoints) if detections else ()}
        if modality is Modality.HAND:
            left, right = split_hands(detections)
            return {"left_hand": left, "right_hand": right}
        return {"face": tuple(detections[0].keypoints) if detections else ()}

    def clear(self):
        """Drop the published keypoints."""
        self._snapshot = EMPTY_SNAPSHOT

    def dispose(self):
        """Dispose every estimator independently and clear live keypoints."""
        for modality in list(self._estimators):
            estimator = self._estimators.pop(modality)
            try:
                estimator.dispose()
            except Exception as e:
                logger.error(f"Failed to dispose {modality.value} estimator: {e}")
        self.clear()
