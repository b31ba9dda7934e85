"""
Shoulder-tilt posture classification.

Converts body keypoints into a discrete PostureCategory and a continuous tilt
angle. Classification is pure: identical keypoints always produce an
identical reading.
"""

from typing import NamedTuple, Sequence

from posewatch.data.landmarks import Keypoint, find_keypoint
from posewatch.data.observation import PostureCategory
from posewatch.utils.math_utils import line_angle_degrees, mirror_x

DEFAULT_TILT_THRESHOLD = 15.0
MIN_SHOULDER_CONFIDENCE = 0.3


class PostureReading(NamedTuple):
    """Result of classifying one set of body keypoints."""
    category: PostureCategory
    angle: float  # degrees, positive = rightward lean


UNKNOWN_READING = PostureReading(PostureCategory.UNKNOWN, 0.0)


def classify(
    body_keypoints: Sequence[Keypoint],
    threshold_degrees: float = DEFAULT_TILT_THRESHOLD,
    min_confidence: float = MIN_SHOULDER_CONFIDENCE,
) -> PostureReading:
    """
    Classify posture from the shoulder line.

    Args:
        body_keypoints: Named body keypoints in the user's view, i.e. with the
            user's right shoulder toward larger x
        threshold_degrees: Tilt beyond which the posture counts as a lean
        min_confidence: Minimum confidence required for both shoulders

    Returns:
        PostureReading. UNKNOWN with angle 0 when either shoulder is missing
        or below min_confidence. Never returns SLOUCHING: shoulder tilt alone
        carries no slouch signal.
    """
    left = find_keypoint(body_keypoints, "left_shoulder")
    right = find_keypoint(body_keypoints, "right_shoulder")
    if left is None or right is None:
        return UNKNOWN_READING
    if (left.confidence or 0.0) < min_confidence or (right.confidence or 0.0) < min_confidence:
        return UNKNOWN_READING

    angle = line_angle_degrees((left.x, left.y), (right.x, right.y))

    if abs(angle) > threshold_degrees:
        category = PostureCategory.LEANING_RIGHT if angle > 0 else PostureCategory.LEANING_LEFT
    else:
        category = PostureCategory.UPRIGHT

    return PostureReading(category, angle)


def mirror_keypoints(keypoints: Sequence[Keypoint], width: float) -> list[Keypoint]:
    """
    Reflect keypoints horizontally into the user's mirrored view.

    In a raw camera frame the user's right shoulder appears on the image's
    left. Mirroring puts it on the right, which is the frame classify()
    expects.
    """
    return [kp._replace(x=mirror_x(kp.x, width)) for kp in keypoints]
