"""
Keypoint types and the fixed landmark schema.

Defines:
- Keypoint / HandKeypoint containers shared by every estimator
- Per-modality detection records returned by estimators
- Body joint names and the skeleton drawn over them
- The 21-point hand graph
- Named face mesh index groups (contours and iris clusters)
"""

from dataclasses import dataclass
from typing import NamedTuple, Optional


class Keypoint(NamedTuple):
    """A 2D landmark in surface (pixel) coordinates."""
    x: float
    y: float
    confidence: Optional[float] = None
    name: Optional[str] = None


class HandKeypoint(NamedTuple):
    """A hand joint. Hand estimators do not report per-joint confidence."""
    x: float
    y: float
    name: str


@dataclass(frozen=True)
class PoseDetection:
    """A single detected body."""
    keypoints: tuple[Keypoint, ...]
    score: float = 0.0


@dataclass(frozen=True)
class HandDetection:
    """A single detected hand, labelled as the estimator sees it."""
    handedness: str  # raw "Left" / "Right"
    keypoints: tuple[HandKeypoint, ...]
    score: float = 0.0


@dataclass(frozen=True)
class FaceDetection:
    """A single detected face mesh."""
    keypoints: tuple[Keypoint, ...]


# Body joints, COCO-17 ordering
BODY_JOINT_NAMES = [
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
]

UPPER_BODY_JOINTS = frozenset(BODY_JOINT_NAMES[:11])

BODY_CONNECTIONS = [
    ("nose", "left_eye"),
    ("nose", "right_eye"),
    ("left_eye", "left_ear"),
    ("right_eye", "right_ear"),
    ("left_shoulder", "right_shoulder"),
    ("left_shoulder", "left_elbow"),
    ("left_elbow", "left_wrist"),
    ("right_shoulder", "right_elbow"),
    ("right_elbow", "right_wrist"),
    ("left_shoulder", "left_hip"),
    ("right_shoulder", "right_hip"),
    ("left_hip", "right_hip"),
    ("left_hip", "left_knee"),
    ("left_knee", "left_ankle"),
    ("right_hip", "right_knee"),
    ("right_knee", "right_ankle"),
]


def is_upper_body_connection(start: str, end: str) -> bool:
    """An edge belongs to the upper body when both of its joints do."""
    return start in UPPER_BODY_JOINTS and end in UPPER_BODY_JOINTS


class HandLandmark:
    """Hand landmark indices matching MediaPipe's specification."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_FINGER_MCP = 5
    INDEX_FINGER_PIP = 6
    INDEX_FINGER_DIP = 7
    INDEX_FINGER_TIP = 8
    MIDDLE_FINGER_MCP = 9
    MIDDLE_FINGER_PIP = 10
    MIDDLE_FINGER_DIP = 11
    MIDDLE_FINGER_TIP = 12
    RING_FINGER_MCP = 13
    RING_FINGER_PIP = 14
    RING_FINGER_DIP = 15
    RING_FINGER_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


HAND_JOINT_NAMES = [
    "wrist",
    "thumb_cmc", "thumb_mcp", "thumb_ip", "thumb_tip",
    "index_finger_mcp", "index_finger_pip", "index_finger_dip", "index_finger_tip",
    "middle_finger_mcp", "middle_finger_pip", "middle_finger_dip", "middle_finger_tip",
    "ring_finger_mcp", "ring_finger_pip", "ring_finger_dip", "ring_finger_tip",
    "pinky_mcp", "pinky_pip", "pinky_dip", "pinky_tip",
]

HAND_CONNECTIONS = [
    (HandLandmark.WRIST, HandLandmark.THUMB_CMC),
    (HandLandmark.THUMB_CMC, HandLandmark.THUMB_MCP),
    (HandLandmark.THUMB_MCP, HandLandmark.THUMB_IP),
    (HandLandmark.THUMB_IP, HandLandmark.THUMB_TIP),
    (HandLandmark.WRIST, HandLandmark.INDEX_FINGER_MCP),
    (HandLandmark.INDEX_FINGER_MCP, HandLandmark.INDEX_FINGER_PIP),
    (HandLandmark.INDEX_FINGER_PIP, HandLandmark.INDEX_FINGER_DIP),
    (HandLandmark.INDEX_FINGER_DIP, HandLandmark.INDEX_FINGER_TIP),
    (HandLandmark.WRIST, HandLandmark.MIDDLE_FINGER_MCP),
    (HandLandmark.MIDDLE_FINGER_MCP, HandLandmark.MIDDLE_FINGER_PIP),
    (HandLandmark.MIDDLE_FINGER_PIP, HandLandmark.MIDDLE_FINGER_DIP),
    (HandLandmark.MIDDLE_FINGER_DIP, HandLandmark.MIDDLE_FINGER_TIP),
    (HandLandmark.WRIST, HandLandmark.RING_FINGER_MCP),
    (HandLandmark.RING_FINGER_MCP, HandLandmark.RING_FINGER_PIP),
    (HandLandmark.RING_FINGER_PIP, HandLandmark.RING_FINGER_DIP),
    (HandLandmark.RING_FINGER_DIP, HandLandmark.RING_FINGER_TIP),
    (HandLandmark.WRIST, HandLandmark.PINKY_MCP),
    (HandLandmark.PINKY_MCP, HandLandmark.PINKY_PIP),
    (HandLandmark.PINKY_PIP, HandLandmark.PINKY_DIP),
    (HandLandmark.PINKY_DIP, HandLandmark.PINKY_TIP),
    (HandLandmark.INDEX_FINGER_MCP, HandLandmark.MIDDLE_FINGER_MCP),
    (HandLandmark.MIDDLE_FINGER_MCP, HandLandmark.RING_FINGER_MCP),
    (HandLandmark.RING_FINGER_MCP, HandLandmark.PINKY_MCP),
]


@dataclass(frozen=True)
class FaceContour:
    """A named group of face mesh indices drawn as one polyline."""
    name: str
    indices: tuple[int, ...]
    closed: bool
    color_key: str


# Face mesh index groups. "left"/"right" are the subject's own sides.
FACE_CONTOURS = [
    FaceContour(
        "face_oval",
        (10, 338, 297, 332, 284, 251, 389, 356, 454, 323, 361, 288,
         397, 365, 379, 378, 400, 377, 152, 148, 176, 149, 150, 136,
         172, 58, 132, 93, 234, 127, 162, 21, 54, 103, 67, 109),
        closed=True,
        color_key="face_oval",
    ),
    FaceContour(
        "left_eye",
        (263, 249, 390, 373, 374, 380, 381, 382, 362,
         398, 384, 385, 386, 387, 388, 466),
        closed=True,
        color_key="eyes",
    ),
    FaceContour(
        "right_eye",
        (33, 7, 163, 144, 145, 153, 154, 155, 133,
         173, 157, 158, 159, 160, 161, 246),
        closed=True,
        color_key="eyes",
    ),
    FaceContour(
        "left_eyebrow",
        (276, 283, 282, 295, 285, 300, 293, 334, 296, 336),
        closed=False,
        color_key="eyebrows",
    ),
    FaceContour(
        "right_eyebrow",
        (46, 53, 52, 65, 55, 70, 63, 105, 66, 107),
        closed=False,
        color_key="eyebrows",
    ),
    FaceContour(
        "lips",
        (61, 146, 91, 181, 84, 17, 314, 405, 321, 375,
         291, 409, 270, 269, 267, 0, 37, 39, 40, 185),
        closed=True,
        color_key="lips",
    ),
    FaceContour(
        "nose_bridge",
        (168, 6, 197, 195, 5, 4),
        closed=False,
        color_key="nose",
    ),
    FaceContour(
        "nose_tip",
        (98, 97, 2, 326, 327),
        closed=False,
        color_key="nose",
    ),
]

# Iris clusters only exist when the face model runs with refinement.
LEFT_IRIS = (473, 474, 475, 476, 477)
RIGHT_IRIS = (468, 469, 470, 471, 472)
IRIS_GROUPS = {"left_iris": LEFT_IRIS, "right_iris": RIGHT_IRIS}


def find_keypoint(keypoints, name: str) -> Optional[Keypoint]:
    """Look up a keypoint by semantic name."""
    for kp in keypoints:
        if kp.name == name:
            return kp
    return None
