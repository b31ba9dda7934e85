"""Tests for settings persistence."""

import json

from posewatch.config.settings import CameraConfig, DetectionConfig, OverlayConfig, Settings


def test_defaults():
    settings = Settings(load=False)
    assert settings.detection.tilt_threshold == 15.0
    assert settings.detection.min_shoulder_confidence == 0.3
    assert settings.detection.timeline_capacity == 100
    assert settings.camera.width == 640
    assert settings.camera.height == 480


def test_save_and_load(tmp_path):
    path = tmp_path / "config.json"
    settings = Settings(path, load=False)
    settings.detection.tilt_threshold = 10.0
    settings.detection.enable_face = False
    settings.camera.device_index = 1
    settings.overlay.face_colors["lips"] = "#123456"
    assert settings.save()

    loaded = Settings(path)
    assert loaded.detection.tilt_threshold == 10.0
    assert loaded.detection.enable_face is False
    assert loaded.camera.device_index == 1
    assert loaded.overlay.face_colors["lips"] == "#123456"


def test_missing_file_keeps_defaults(tmp_path):
    settings = Settings(tmp_path / "absent.json", load=False)
    assert settings.load() is False
    assert settings.detection.tilt_threshold == 15.0


def test_invalid_json_keeps_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    settings = Settings(path, load=False)
    assert settings.load() is False
    assert settings.detection == DetectionConfig()


def test_unknown_keys_are_ignored():
    config = DetectionConfig.from_dict({"tilt_threshold": 20.0, "bogus": 1})
    assert config.tilt_threshold == 20.0
    assert not hasattr(config, "bogus")


def test_partial_face_colors_are_merged():
    config = OverlayConfig.from_dict({"face_colors": {"iris": "#FFFFFF"}})
    assert config.face_colors["iris"] == "#FFFFFF"
    assert config.face_colors["lips"] == OverlayConfig().face_colors["lips"]


def test_to_dict_is_json_serializable():
    data = Settings(load=False).to_dict()
    assert set(data) == {"detection", "camera", "overlay"}
    assert "frame_interval" not in data["detection"]
    json.dumps(data)


def test_frame_interval():
    assert DetectionConfig(target_fps=20.0).frame_interval == 0.05
    assert DetectionConfig(target_fps=0).frame_interval == 0.0


def test_reset_to_defaults():
    settings = Settings(load=False)
    settings.camera = CameraConfig(width=1280)
    settings.reset_to_defaults()
    assert settings.camera.width == 640
