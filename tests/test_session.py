"""End-to-end session lifecycle tests against fake camera and backend."""

import asyncio

from posewatch.core.estimators import Modality
from posewatch.core.orchestrator import EMPTY_SNAPSHOT
from posewatch.core.session import PostureSession, SessionState
from posewatch.data.observation import PostureCategory

from tests.conftest import (
    BlockingEstimator,
    FakeBackend,
    FakeCapture,
    FakeEstimator,
    make_body,
    make_face,
    make_hand,
    pose,
)

RUN_TIME = 0.05


def raw_body():
    """Level shoulders as a raw camera frame sees them.

    The user's right shoulder appears on the image's left.
    """
    return make_body(left_shoulder=(400, 200, 0.9), right_shoulder=(240, 200, 0.9))


def full_backend(body=None, **kwargs):
    estimators = {
        Modality.BODY: FakeEstimator(Modality.BODY, pose(body or raw_body())),
        Modality.HAND: FakeEstimator(Modality.HAND, [make_hand("Left"), make_hand("Right", 200)]),
        Modality.FACE: FakeEstimator(Modality.FACE, [make_face()]),
    }
    return FakeBackend(estimators=estimators, **kwargs)


def make_session(settings, backend, capture=None, **kwargs):
    capture = capture or FakeCapture()
    return PostureSession(settings, backend=backend, capture_factory=lambda index: capture, **kwargs)


def test_start_and_stop(settings):
    backend = full_backend()
    capture = FakeCapture()
    session = make_session(settings, backend, capture)

    async def scenario():
        assert await session.start() is True
        assert session.state is SessionState.ACTIVE
        assert not session.is_loading
        await asyncio.sleep(RUN_TIME)
        assert session.cycle_count > 0
        assert session.body_keypoints
        assert len(session.left_hand_keypoints) == 21
        assert len(session.right_hand_keypoints) == 21
        assert len(session.face_keypoints) == 478
        session.stop()

    asyncio.run(scenario())
    assert session.state is SessionState.IDLE
    assert capture.released
    assert all(e.disposed for e in backend.estimators.values())
    assert session.snapshot is EMPTY_SNAPSHOT
    assert session.body_keypoints == ()
    assert not session.video_surface.is_attached


def test_timeline_survives_stop_until_cleared(settings):
    session = make_session(settings, full_backend())

    async def scenario():
        await session.start()
        await asyncio.sleep(RUN_TIME)
        session.stop()

    asyncio.run(scenario())
    recorded = len(session.timeline)
    assert recorded > 0
    assert session.statistics.upright_percentage == 100

    session.clear_timeline()
    assert session.timeline == ()


def test_timeline_is_bounded(settings):
    settings.detection.timeline_capacity = 5
    session = make_session(settings, full_backend())

    async def scenario():
        await session.start()
        await asyncio.sleep(RUN_TIME)
        session.stop()

    asyncio.run(scenario())
    assert len(session.timeline) <= 5


def test_camera_failure_builds_no_estimators(settings):
    backend = full_backend()
    session = make_session(settings, backend, FakeCapture(opened=False))

    assert asyncio.run(session.start()) is False
    assert backend.created == []
    assert session.state is SessionState.IDLE
    assert not session.is_loading


def test_unexpected_startup_error_returns_false(settings):
    backend = full_backend(init_error=RuntimeError("runtime missing"))
    capture = FakeCapture()
    session = make_session(settings, backend, capture)

    assert asyncio.run(session.start()) is False
    assert session.state is SessionState.IDLE
    assert capture.reads == 0


def test_failed_hand_model_degrades(settings):
    backend = full_backend(failing={Modality.HAND})
    session = make_session(settings, backend)

    async def scenario():
        assert await session.start() is True
        await asyncio.sleep(RUN_TIME)
        result = (session.body_keypoints, session.face_keypoints,
                  session.left_hand_keypoints, session.right_hand_keypoints)
        session.stop()
        return result

    body, face, left, right = asyncio.run(scenario())
    assert body
    assert face
    assert left == ()
    assert right == ()
    assert backend.estimators[Modality.HAND].calls == 0


def test_second_start_is_a_noop(settings):
    backend = full_backend()
    session = make_session(settings, backend)

    async def scenario():
        assert await session.start() is True
        created = list(backend.created)
        assert await session.start() is True
        assert backend.created == created
        session.stop()

    asyncio.run(scenario())


def test_stop_when_idle_is_a_noop(settings):
    session = make_session(settings, full_backend())
    session.stop()
    session.stop()
    assert session.state is SessionState.IDLE


def test_missing_first_frame_does_not_block_startup(settings):
    backend = full_backend()
    session = make_session(settings, backend, FakeCapture(frame_shape=None))

    async def scenario():
        assert await session.start() is True
        await asyncio.sleep(RUN_TIME)
        session.stop()

    asyncio.run(scenario())
    assert all(e.calls == 0 for e in backend.estimators.values())
    assert session.timeline == ()


def test_stale_cycle_results_are_discarded(settings):
    async def scenario():
        body = BlockingEstimator(Modality.BODY, pose(make_body()))
        backend = FakeBackend(estimators={Modality.BODY: body})
        session = make_session(settings, backend)

        await session.start()
        await body.entered.wait()
        session.stop()
        body.release.set()
        await asyncio.sleep(RUN_TIME)
        return session, body

    session, body = asyncio.run(scenario())
    assert body.calls == 1
    assert session.timeline == ()
    assert session.snapshot is EMPTY_SNAPSHOT
    assert session.current_posture is PostureCategory.UNKNOWN


def test_observations_carry_activity_index(settings):
    session = make_session(settings, full_backend())

    async def scenario():
        session.record_observation_context(4)
        await session.start()
        await asyncio.sleep(RUN_TIME)
        session.stop()

    asyncio.run(scenario())
    assert session.timeline
    assert all(e.activity_index == 4 for e in session.timeline)


def test_posture_change_callback_fires_once_per_change(settings):
    changes = []
    session = make_session(settings, full_backend(),
                           on_posture_change=lambda category, angle: changes.append(category))

    async def scenario():
        await session.start()
        await asyncio.sleep(RUN_TIME)
        session.stop()

    asyncio.run(scenario())
    assert changes == [PostureCategory.UPRIGHT]


def test_undetected_body_records_nothing(settings):
    body = make_body(left_shoulder=(240, 200, 0.1), right_shoulder=(400, 200, 0.1))
    session = make_session(settings, full_backend(body=body))

    async def scenario():
        await session.start()
        await asyncio.sleep(RUN_TIME)
        posture = session.current_posture
        session.stop()
        return posture

    assert asyncio.run(scenario()) is PostureCategory.UNKNOWN
    assert session.timeline == ()


def test_raw_camera_coordinates_are_classified_mirrored(settings):
    # user's right shoulder appears on the image's left in the raw frame
    body = make_body(left_shoulder=(400, 200, 0.9), right_shoulder=(240, 260, 0.9))
    session = make_session(settings, full_backend(body=body))

    async def scenario():
        await session.start()
        await asyncio.sleep(RUN_TIME)
        result = (session.current_posture, session.current_tilt_angle)
        session.stop()
        return result

    posture, angle = asyncio.run(scenario())
    assert posture is PostureCategory.LEANING_RIGHT
    assert angle > 15
    assert session.statistics.right_tilt_percentage == 100
    assert session.statistics.total_tilt_episodes == 1


def test_overlay_is_drawn_while_active(settings):
    session = make_session(settings, full_backend())

    async def scenario():
        await session.start()
        await asyncio.sleep(RUN_TIME)
        drawn = int(session.overlay_surface.canvas[..., 3].max())
        session.stop()
        return drawn

    assert asyncio.run(scenario()) == 255
    assert int(session.overlay_surface.canvas[..., 3].max()) == 0


def test_async_context_manager(settings):
    session = make_session(settings, full_backend())

    async def scenario():
        async with session as running:
            assert running.is_active
            await asyncio.sleep(RUN_TIME)
        return session.state

    assert asyncio.run(scenario()) is SessionState.IDLE


def test_disabled_detection_does_not_start(settings):
    settings.detection.enabled = False
    backend = full_backend()
    session = make_session(settings, backend)

    assert asyncio.run(session.start()) is False
    assert backend.initialized == 0
    assert session.state is SessionState.IDLE


class CrashingBodyEstimator(FakeEstimator):
    """Returns one pose, then fails on every later call."""

    async def estimate(self, frame):
        self.calls += 1
        if self.calls > 1:
            raise RuntimeError("model crashed")
        return self.results


def test_failed_body_estimate_records_nothing(settings):
    body = CrashingBodyEstimator(Modality.BODY, pose(raw_body()))
    session = make_session(settings, FakeBackend(estimators={Modality.BODY: body}))

    async def scenario():
        await session.start()
        await asyncio.sleep(RUN_TIME)
        result = (session.current_posture, session.body_keypoints)
        session.stop()
        return result

    posture, keypoints = asyncio.run(scenario())
    assert body.calls > 1
    assert len(session.timeline) == 1
    assert posture is PostureCategory.UPRIGHT
    # the overlay keeps showing the last good pose
    assert keypoints == tuple(raw_body())


class GatedBackend(FakeBackend):
    """Holds face estimator construction open until released."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def create_face_estimator(self, config):
        self.entered.set()
        await self.release.wait()
        return self._create(Modality.FACE)


def test_stop_during_startup_aborts_start(settings):
    capture = FakeCapture()

    async def scenario():
        backend = GatedBackend(estimators={m: FakeEstimator(m) for m in Modality})
        session = make_session(settings, backend, capture)

        starting = asyncio.ensure_future(session.start())
        await backend.entered.wait()
        assert session.state is SessionState.STARTING
        session.stop()
        backend.release.set()
        return await starting, session, backend

    started, session, backend = asyncio.run(scenario())
    assert started is False
    assert capture.released
    assert backend.created == [Modality.BODY, Modality.HAND, Modality.FACE]
    assert all(e.disposed for e in backend.estimators.values())
    assert session.state is SessionState.IDLE
    assert not session.is_loading


def test_stop_during_frame_wait_returns_promptly(settings):
    settings.detection.frame_wait_timeout = 5.0
    capture = FakeCapture(frame_shape=None)
    backend = full_backend()
    session = make_session(settings, backend, capture)

    async def scenario():
        starting = asyncio.ensure_future(session.start())
        await asyncio.sleep(0.05)
        session.stop()
        return await asyncio.wait_for(starting, 1.0)

    assert asyncio.run(scenario()) is False
    assert backend.created == []
    assert capture.released
    assert session.state is SessionState.IDLE
