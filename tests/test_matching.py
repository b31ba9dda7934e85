"""Tests for target pose matching and movement scoring."""

from posewatch.core.matching import (
    MovementSample,
    TargetPoint,
    TargetPose,
    compare_pose,
    movement_score,
)
from posewatch.data.landmarks import Keypoint

ARMS_UP = TargetPose(
    name="arms_up",
    keypoints={
        "left_wrist": TargetPoint(200, 100),
        "right_wrist": TargetPoint(440, 100),
        "left_shoulder": TargetPoint(240, 200),
        "right_shoulder": TargetPoint(400, 200),
    },
    tolerance=30,
)


def test_all_points_within_tolerance_match():
    keypoints = [
        Keypoint(210, 110, 0.9, "left_wrist"),
        Keypoint(430, 95, 0.9, "right_wrist"),
        Keypoint(240, 200, 0.9, "left_shoulder"),
        Keypoint(400, 205, 0.9, "right_shoulder"),
    ]
    result = compare_pose(ARMS_UP, keypoints)
    assert result.is_matching
    assert result.match_score == 100
    assert result.unmatched_points == []


def test_distant_and_low_confidence_points_do_not_match():
    keypoints = [
        Keypoint(200, 300, 0.9, "left_wrist"),
        Keypoint(440, 100, 0.2, "right_wrist"),
        Keypoint(240, 200, 0.9, "left_shoulder"),
        Keypoint(400, 200, 0.9, "right_shoulder"),
    ]
    result = compare_pose(ARMS_UP, keypoints)
    assert result.match_score == 50
    assert not result.is_matching
    assert sorted(result.unmatched_points) == ["left_wrist", "right_wrist"]


def test_threshold_boundary():
    keypoints = [
        Keypoint(200, 100, 0.9, "left_wrist"),
        Keypoint(440, 100, 0.9, "right_wrist"),
        Keypoint(240, 200, 0.9, "left_shoulder"),
    ]
    result = compare_pose(ARMS_UP, keypoints)
    assert result.match_score == 75
    assert result.is_matching
    assert result.unmatched_points == ["right_shoulder"]


def test_empty_target_scores_zero():
    result = compare_pose(TargetPose("empty", {}, 10), [])
    assert result.match_score == 0
    assert not result.is_matching


def test_movement_score():
    history = [
        MovementSample(True, 0.9, 0.0),
        MovementSample(True, 0.7, 0.1),
        MovementSample(False, 0.2, 0.2),
        MovementSample(True, 0.8, 0.3),
    ]
    # 0.75 * 80 + 0.65 * 20 = 73
    assert movement_score(history) == 73


def test_movement_score_empty_history():
    assert movement_score([]) == 0


def test_movement_score_is_capped():
    assert movement_score([MovementSample(True, 1.0, 0.0)]) == 100
