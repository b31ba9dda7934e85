"""
Detection session lifecycle.

PostureSession is the public entry point: start() brings up the camera and
the estimators and begins the detection loop, stop() tears everything down
again. Between the two, each detection cycle classifies posture, appends to
the observation timeline and redraws the overlay.

State machine: IDLE -> STARTING -> ACTIVE -> STOPPING -> IDLE.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional

from posewatch.config.settings import Settings
from posewatch.core.camera import CameraManager, VideoSurface
from posewatch.core.estimators import InferenceBackend, Modality
from posewatch.core.orchestrator import EMPTY_SNAPSHOT, DetectionSnapshot, EstimatorOrchestrator
from posewatch.core.overlay import OverlayRenderer
from posewatch.core.posture import classify, mirror_keypoints
from posewatch.data.observation import (
    ObservationTimeline,
    PostureCategory,
    PostureObservation,
    PostureStatistics,
    compute_statistics,
)
from posewatch.exceptions import CameraAccessError
from posewatch.utils.drawing import OverlaySurface
from posewatch.utils.math_utils import has_valid_dimensions

logger = logging.getLogger(__name__)

PostureCallback = Callable[[PostureCategory, float], None]


class SessionState(Enum):
    """Lifecycle states."""
    IDLE = auto()
    STARTING = auto()
    ACTIVE = auto()
    STOPPING = auto()


@dataclass
class DetectionSession:
    """Resources owned between a successful start() and the matching stop()."""
    camera: CameraManager
    orchestrator: EstimatorOrchestrator
    active: bool = True
    pending: Optional[asyncio.TimerHandle] = None
    cycle_task: Optional[asyncio.Task] = None
    cycles: int = 0


class PostureSession:
    """
    Camera-driven posture, hand and face detection.

    Example:
        >>> session = PostureSession()
        >>> if await session.start():
        ...     session.record_observation_context(3)
        ...     await asyncio.sleep(10)
        ...     session.stop()
        >>> print(session.statistics)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        backend: Optional[InferenceBackend] = None,
        capture_factory: Optional[Callable] = None,
        on_posture_change: Optional[PostureCallback] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the session.

        Args:
            settings: Application settings (or use defaults)
            backend: Inference backend (MediaPipe when omitted)
            capture_factory: Camera constructor, cv2.VideoCapture when omitted
            on_posture_change: Called with (category, angle) whenever the
                current posture category changes
            clock: Wall clock in seconds, used for observation timestamps
        """
        self.settings = settings or Settings(load=False)
        self.config = self.settings.detection

        if backend is None:
            from posewatch.core.mediapipe_backend import MediaPipeBackend
            backend = MediaPipeBackend()
        self._backend = backend
        self._capture_factory = capture_factory
        self._on_posture_change = on_posture_change
        self._clock = clock

        self._state = SessionState.IDLE
        self._loading = False
        self._abort_start = False
        self._session: Optional[DetectionSession] = None

        self._timeline = ObservationTimeline(self.config.timeline_capacity)
        self._activity_index: Optional[int] = None
        self._current_posture = PostureCategory.UNKNOWN
        self._current_tilt_angle = 0.0
        self._snapshot = EMPTY_SNAPSHOT

        self._video_surface = VideoSurface()
        self._overlay_surface = OverlaySurface()
        self._renderer = OverlayRenderer(self.settings.overlay)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """
        Bring up the camera and estimators and begin detection.

        Returns:
            True once detection is running. False when detection is disabled,
            the camera cannot be acquired, or startup fails unexpectedly.
            Calling start() on a running session is a no-op returning True.
        """
        if self._state is SessionState.ACTIVE:
            logger.debug("start() ignored: session already active")
            return True
        if self._state is not SessionState.IDLE:
            logger.warning(f"start() ignored while {self._state.name.lower()}")
            return False
        if not self.config.enabled:
            logger.info("Posture detection disabled by configuration")
            return False

        self._state = SessionState.STARTING
        self._loading = True
        self._abort_start = False

        camera = self._create_camera()
        orchestrator = EstimatorOrchestrator(self._backend, self.config, clock=self._clock)

        try:
            await self._backend.initialize()

            try:
                camera.acquire(self.settings.camera)
            except CameraAccessError as e:
                logger.error(f"Camera unavailable ({e.reason.value}): {e}")
                self._state = SessionState.IDLE
                return False

            await self._wait_for_frame(camera)
            if not self._abort_start:
                await orchestrator.init()
        except asyncio.CancelledError:
            self._teardown(camera, orchestrator)
            self._state = SessionState.IDLE
            raise
        except Exception:
            logger.exception("Failed to start detection session")
            self._teardown(camera, orchestrator)
            self._state = SessionState.IDLE
            return False
        finally:
            self._loading = False

        if self._abort_start:
            logger.info("Session stopped during startup")
            self._teardown(camera, orchestrator)
            self._state = SessionState.IDLE
            return False

        self._session = DetectionSession(camera=camera, orchestrator=orchestrator)
        self._state = SessionState.ACTIVE
        self._schedule_cycle(self._session, 0.0)
        logger.info("Detection session active")
        return True

    def stop(self):
        """
        Stop detection and release every resource.

        The observation timeline is preserved; only clear_timeline() empties
        it. Safe to call when nothing is running.
        """
        if self._state is SessionState.STARTING:
            self._abort_start = True
            return

        session = self._session
        if session is None:
            return

        self._state = SessionState.STOPPING
        session.active = False
        if session.pending is not None:
            session.pending.cancel()
            session.pending = None

        self._teardown(session.camera, session.orchestrator)
        self._session = None
        self._state = SessionState.IDLE
        logger.info(f"Detection session stopped after {session.cycles} cycles")

    def _create_camera(self) -> CameraManager:
        if self._capture_factory is None:
            return CameraManager(self._video_surface)
        return CameraManager(self._video_surface, capture_factory=self._capture_factory)

    def _teardown(self, camera: CameraManager, orchestrator: EstimatorOrchestrator):
        # Disposal failures are logged inside dispose() and never block release()
        orchestrator.dispose()
        camera.release()
        self._snapshot = EMPTY_SNAPSHOT
        self._overlay_surface.clear()

    async def _wait_for_frame(self, camera: CameraManager) -> bool:
        """Wait for a frame with real dimensions, giving up after the timeout."""
        if has_valid_dimensions(camera.surface.frame):
            return True

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.frame_wait_timeout
        while loop.time() < deadline:
            if self._abort_start:
                return False
            if has_valid_dimensions(camera.read_frame()):
                return True
            await asyncio.sleep(self.config.frame_poll_interval)

        logger.warning(
            f"No camera frame after {self.config.frame_wait_timeout:.1f}s, continuing anyway"
        )
        return False

    # ------------------------------------------------------------------
    # Detection loop
    # ------------------------------------------------------------------

    def _schedule_cycle(self, session: DetectionSession, delay: float):
        loop = asyncio.get_running_loop()
        session.pending = loop.call_later(delay, self._launch_cycle, session)

    def _launch_cycle(self, session: DetectionSession):
        session.pending = None
        if not session.active:
            return
        session.cycle_task = asyncio.ensure_future(self._run_cycle(session))

    async def _run_cycle(self, session: DetectionSession):
        try:
            await self._detect(session)
        except Exception:
            logger.exception("Detection cycle failed")
        finally:
            session.cycle_task = None
            if session.active:
                self._schedule_cycle(session, self.config.frame_interval)

    async def _detect(self, session: DetectionSession):
        frame = session.camera.read_frame()
        if not has_valid_dimensions(frame):
            return

        snapshot = await session.orchestrator.run_cycle(frame, is_current=lambda: session.active)
        if snapshot is None or not session.active:
            return

        session.cycles += 1
        self._publish(snapshot)

    def _publish(self, snapshot: DetectionSnapshot):
        self._snapshot = snapshot
        self._renderer.render(self._overlay_surface, snapshot)

        # A body estimator that failed this cycle left its previous keypoints in
        # the snapshot; those must not be recorded again.
        if Modality.BODY not in snapshot.fresh:
            return

        body = snapshot.body
        if self.config.mirror_view:
            body = mirror_keypoints(body, snapshot.frame_width)
        reading = classify(
            body,
            threshold_degrees=self.config.tilt_threshold,
            min_confidence=self.config.min_shoulder_confidence,
        )

        changed = reading.category is not self._current_posture
        self._current_posture = reading.category
        self._current_tilt_angle = reading.angle

        if reading.category is not PostureCategory.UNKNOWN:
            self._timeline.append(PostureObservation(
                timestamp=int(round(snapshot.timestamp * 1000)),
                category=reading.category,
                tilt_angle=reading.angle,
                activity_index=self._activity_index,
            ))

        if changed and self._on_posture_change is not None:
            try:
                self._on_posture_change(reading.category, reading.angle)
            except Exception:
                logger.exception("Posture change callback failed")

    # ------------------------------------------------------------------
    # Timeline control
    # ------------------------------------------------------------------

    def clear_timeline(self):
        """Empty the observation timeline."""
        self._timeline.clear()

    def record_observation_context(self, activity_index: int):
        """Tag observations appended from now on with a caller-supplied index."""
        self._activity_index = activity_index

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def current_posture(self) -> PostureCategory:
        return self._current_posture

    @property
    def current_tilt_angle(self) -> float:
        return self._current_tilt_angle

    @property
    def timeline(self) -> tuple[PostureObservation, ...]:
        return self._timeline.entries

    @property
    def statistics(self) -> PostureStatistics:
        """Recomputed from the full timeline on every read."""
        return compute_statistics(self._timeline.entries)

    @property
    def snapshot(self) -> DetectionSnapshot:
        return self._snapshot

    @property
    def body_keypoints(self):
        return self._snapshot.body

    @property
    def left_hand_keypoints(self):
        return self._snapshot.left_hand

    @property
    def right_hand_keypoints(self):
        return self._snapshot.right_hand

    @property
    def face_keypoints(self):
        return self._snapshot.face

    @property
    def overlay_surface(self) -> OverlaySurface:
        return self._overlay_surface

    @property
    def video_surface(self) -> VideoSurface:
        return self._video_surface

    @property
    def cycle_count(self) -> int:
        return self._session.cycles if self._session else 0

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
