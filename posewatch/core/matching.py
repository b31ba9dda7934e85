"""
Target pose matching for movement exercises.

Compares live body keypoints against a target pose definition and scores a
movement attempt from its detection history.
"""

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from posewatch.data.landmarks import Keypoint

MATCH_THRESHOLD = 70  # percent of target points that must match


@dataclass(frozen=True)
class TargetPoint:
    x: float
    y: float
    min_confidence: float = 0.5


@dataclass(frozen=True)
class TargetPose:
    """A named pose: where each joint should be, within a pixel tolerance."""
    name: str
    keypoints: dict[str, TargetPoint]
    tolerance: float


@dataclass(frozen=True)
class PoseComparison:
    is_matching: bool
    match_score: int  # 0-100
    matched_points: list[str] = field(default_factory=list)
    unmatched_points: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class MovementSample:
    """One detection attempt while the user performs a movement."""
    detected: bool
    confidence: float
    timestamp: float


def compare_pose(target: TargetPose, keypoints: Sequence[Keypoint]) -> PoseComparison:
    """
    Compare current body keypoints against a target pose.

    A target joint matches when the live keypoint exists, meets the joint's
    minimum confidence, and lies within the target's tolerance.
    """
    current = {kp.name: kp for kp in keypoints if kp.name}
    matched, unmatched = [], []

    for name, point in target.keypoints.items():
        kp = current.get(name)
        if kp is None or (kp.confidence or 0.0) < point.min_confidence:
            unmatched.append(name)
            continue
        distance = float(np.hypot(kp.x - point.x, kp.y - point.y))
        if distance <= target.tolerance:
            matched.append(name)
        else:
            unmatched.append(name)

    total = len(target.keypoints)
    score = int(np.floor(100 * len(matched) / total + 0.5)) if total else 0
    return PoseComparison(
        is_matching=score >= MATCH_THRESHOLD,
        match_score=score,
        matched_points=matched,
        unmatched_points=unmatched,
    )


def movement_score(history: Sequence[MovementSample]) -> int:
    """
    Score a movement attempt from 0 to 100.

    80% weight on the detection success rate, 20% on mean confidence.
    """
    if len(history) == 0:
        return 0

    success_rate = float(np.mean([s.detected for s in history]))
    avg_confidence = float(np.mean([s.confidence for s in history]))
    base = success_rate * 80 + avg_confidence * 20
    return int(np.floor(min(base, 100.0) + 0.5))
