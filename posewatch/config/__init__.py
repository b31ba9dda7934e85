"""Configuration module for posewatch."""

from posewatch.config.settings import Settings, DetectionConfig, CameraConfig, OverlayConfig

__all__ = ["Settings", "DetectionConfig", "CameraConfig", "OverlayConfig"]
