"""
Keypoint overlay rendering.

Draws body, hand and face keypoints onto an OverlaySurface sized to the live
frame. The surface is mirrored before drawing so the overlay lines up with a
self-facing preview.
"""

from typing import Optional

from posewatch.config.settings import OverlayConfig
from posewatch.core.orchestrator import DetectionSnapshot
from posewatch.data.landmarks import (
    BODY_CONNECTIONS,
    FACE_CONTOURS,
    HAND_CONNECTIONS,
    IRIS_GROUPS,
    UPPER_BODY_JOINTS,
    is_upper_body_connection,
)
from posewatch.utils.drawing import OverlaySurface
from posewatch.utils.math_utils import centroid


class OverlayRenderer:
    """Renders a DetectionSnapshot onto an OverlaySurface."""

    def __init__(self, config: Optional[OverlayConfig] = None):
        self.config = config or OverlayConfig()

    def render(self, surface: OverlaySurface, snapshot: DetectionSnapshot):
        """Redraw the whole overlay for one snapshot."""
        surface.resize(snapshot.frame_width, snapshot.frame_height)
        surface.clear()
        surface.set_mirror()

        self.draw_body(surface, snapshot.body)
        self.draw_hand(surface, snapshot.left_hand, self.config.color_left_hand)
        self.draw_hand(surface, snapshot.right_hand, self.config.color_right_hand)
        self.draw_face(surface, snapshot.face)

    def _visible(self, keypoint) -> bool:
        return (keypoint.confidence or 0.0) > self.config.keypoint_threshold

    def draw_body(self, surface: OverlaySurface, keypoints):
        """
        Draw the body skeleton.

        Edges and joints appear only when confidence exceeds the threshold.
        Upper-body parts are drawn opaque with a larger radius; lower-body
        parts are drawn faded with a smaller radius.
        """
        cfg = self.config
        by_name = {kp.name: kp for kp in keypoints if kp.name}

        for start_name, end_name in BODY_CONNECTIONS:
            start = by_name.get(start_name)
            end = by_name.get(end_name)
            if start is None or end is None:
                continue
            if not (self._visible(start) and self._visible(end)):
                continue
            upper = is_upper_body_connection(start_name, end_name)
            surface.line(
                (start.x, start.y),
                (end.x, end.y),
                cfg.color_body,
                cfg.body_line_width,
                opacity=1.0 if upper else cfg.lower_body_opacity,
            )

        for name, kp in by_name.items():
            if not self._visible(kp):
                continue
            upper = name in UPPER_BODY_JOINTS
            surface.circle(
                (kp.x, kp.y),
                cfg.upper_body_radius if upper else cfg.lower_body_radius,
                cfg.color_body,
                opacity=1.0 if upper else cfg.lower_body_opacity,
            )

    def draw_hand(self, surface: OverlaySurface, keypoints, color: str):
        """Draw one hand over the 21-point graph. No confidence gating."""
        if not keypoints:
            return
        cfg = self.config
        for start_idx, end_idx in HAND_CONNECTIONS:
            if start_idx < len(keypoints) and end_idx < len(keypoints):
                start, end = keypoints[start_idx], keypoints[end_idx]
                surface.line((start.x, start.y), (end.x, end.y), color, cfg.hand_line_width)
        for kp in keypoints:
            surface.circle((kp.x, kp.y), cfg.hand_radius, color)

    def draw_face(self, surface: OverlaySurface, keypoints):
        """Draw face contours and, when the mesh includes them, the irises."""
        if not keypoints:
            return
        cfg = self.config
        count = len(keypoints)

        for contour in FACE_CONTOURS:
            if max(contour.indices) >= count:
                continue
            points = [(keypoints[i].x, keypoints[i].y) for i in contour.indices]
            surface.polyline(
                points,
                cfg.face_colors[contour.color_key],
                cfg.face_line_width,
                closed=contour.closed,
            )

        for indices in IRIS_GROUPS.values():
            # Iris points exist only with refined landmarks
            if max(indices) >= count:
                continue
            center = centroid([(keypoints[i].x, keypoints[i].y) for i in indices])
            surface.circle(center, cfg.iris_radius, cfg.face_colors["iris"])
