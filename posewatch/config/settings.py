"""
Application settings and configuration management.

Provides dataclasses for every configurable aspect of posture detection,
including estimator selection, classification thresholds, camera
constraints, and overlay styling.
"""

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class DetectionConfig:
    """Configuration for the detection session."""

    enabled: bool = True

    # Modalities
    enable_body: bool = True
    enable_hand: bool = True
    enable_face: bool = True

    # Posture classification
    tilt_threshold: float = 15.0  # degrees
    min_shoulder_confidence: float = 0.3
    mirror_view: bool = True  # classify in the user's mirrored view

    # Timeline
    timeline_capacity: int = 100

    # Scheduling
    target_fps: float = 30.0
    frame_wait_timeout: float = 10.0  # seconds
    frame_poll_interval: float = 0.05

    # MediaPipe model configuration
    model_complexity: int = 1  # 0, 1, or 2 (higher = more accurate but slower)
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    max_num_hands: int = 2
    refine_face_landmarks: bool = True

    @property
    def frame_interval(self) -> float:
        """Delay between detection cycles in seconds."""
        if self.target_fps <= 0:
            return 0.0
        return 1.0 / self.target_fps

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "DetectionConfig":
        """Create from dictionary."""
        config = cls()
        for key, value in data.items():
            if hasattr(config, key):
                setattr(config, key, value)
        return config


@dataclass
class CameraConfig:
    """Capture constraints for the live camera."""

    device_index: int = 0  # front-facing camera on most laptops
    width: int = 640
    height: int = 480
    fps: float = 30.0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "device_index": self.device_index,
            "width": self.width,
            "height": self.height,
            "fps": self.fps,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CameraConfig":
        """Create from dictionary."""
        config = cls()
        for key, value in data.items():
            if hasattr(config, key):
                setattr(config, key, value)
        return config


def _default_face_colors() -> dict:
    return {
        "face_oval": "#E0E0E0",
        "eyes": "#4ECDC4",
        "eyebrows": "#FFE66D",
        "lips": "#FF6B6B",
        "nose": "#C792EA",
        "iris": "#00D4AA",
    }


@dataclass
class OverlayConfig:
    """Styling for the keypoint overlay."""

    # Body
    color_body: str = "#00FF00"
    keypoint_threshold: float = 0.3
    upper_body_radius: int = 6
    lower_body_radius: int = 4
    lower_body_opacity: float = 0.5
    body_line_width: int = 3

    # Hands
    color_left_hand: str = "#FF6B6B"
    color_right_hand: str = "#4ECDC4"
    hand_radius: int = 3
    hand_line_width: int = 2

    # Face
    face_colors: dict = field(default_factory=_default_face_colors)
    face_line_width: int = 1
    iris_radius: int = 3

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["face_colors"] = dict(self.face_colors)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "OverlayConfig":
        """Create from dictionary."""
        config = cls()
        for key, value in data.items():
            if key == "face_colors":
                value = {**_default_face_colors(), **value}
            if hasattr(config, key):
                setattr(config, key, value)
        return config


class Settings:
    """
    Main settings manager.

    Handles loading, saving, and managing all configuration options.
    """

    DEFAULT_CONFIG_PATH = Path.home() / ".posewatch" / "config.json"

    def __init__(self, config_path: Optional[Path] = None, load: bool = True):
        """Initialize settings with optional custom config path."""
        self.config_path = Path(config_path) if config_path else self.DEFAULT_CONFIG_PATH

        self.detection = DetectionConfig()
        self.camera = CameraConfig()
        self.overlay = OverlayConfig()

        if load:
            self.load()

    def load(self) -> bool:
        """Load settings from file. Returns True if successful."""
        if not self.config_path.exists():
            return False

        try:
            with open(self.config_path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not load settings from {self.config_path}: {e}")
            return False

        if "detection" in data:
            self.detection = DetectionConfig.from_dict(data["detection"])
        if "camera" in data:
            self.camera = CameraConfig.from_dict(data["camera"])
        if "overlay" in data:
            self.overlay = OverlayConfig.from_dict(data["overlay"])

        return True

    def save(self) -> bool:
        """Save settings to file. Returns True if successful."""
        data = self.to_dict()
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save settings to {self.config_path}: {e}")
            return False
        return True

    def to_dict(self) -> dict:
        return {
            "detection": self.detection.to_dict(),
            "camera": self.camera.to_dict(),
            "overlay": self.overlay.to_dict(),
        }

    def reset_to_defaults(self):
        """Reset all settings to defaults."""
        self.detection = DetectionConfig()
        self.camera = CameraConfig()
        self.overlay = OverlayConfig()
