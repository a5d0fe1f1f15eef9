"""
Live overlay: hand skeletons, pose labels, status bar, volume bar and a
fading banner for the last dispatched effect.
"""

import time
import logging
import cv2
import numpy as np

from gesture_control.core.types import HAND_CONNECTIONS

logger = logging.getLogger(__name__)


class Overlay:
    """Draws the control session state onto BGR frames."""

    def __init__(self, config: dict = None):
        config = config or {}
        self._show_landmarks = config.get("show_landmarks", True)
        self._show_pose_labels = config.get("show_pose_labels", True)
        self._show_status = config.get("show_status", True)
        self._show_volume = config.get("show_volume", True)
        self._banner_s = config.get("effect_banner_s", 1.0)

        colors = config.get("colors", {})
        self._color_text = tuple(colors.get("text", [255, 255, 255]))
        self._color_bone = tuple(colors.get("bone", [0, 200, 0]))
        self._color_joint = tuple(colors.get("joint", [0, 0, 255]))
        self._color_banner = tuple(colors.get("effect_banner", [255, 200, 0]))
        self._color_volume = tuple(colors.get("volume", [0, 255, 255]))

        self._bar_height = 60
        self._bar_opacity = 0.7

    def render(self, image: np.ndarray, result=None, media_state=None, mode: str = "control",
               last_effect_label: str = None, last_effect_time: float = 0.0,
               now: float = None) -> np.ndarray:
        """Render the overlay in place.

        Args:
            image: BGR frame to draw on
            result: PipelineResult for this tick, or None
            media_state: MediaState from the media controller, or None
            mode: Pipeline mode
            last_effect_label: e.g. "seek_by(+5)"
            last_effect_time: time.monotonic() of that effect
            now: current time.monotonic(), injectable for tests

        Returns:
            The same image, with the overlay drawn
        """
        h, w = image.shape[:2]
        now = time.monotonic() if now is None else now

        if result is not None and result.frame is not None:
            for i, hand in enumerate(result.frame.hands):
                if not hand.is_well_formed:
                    continue
                if self._show_landmarks:
                    self._draw_skeleton(image, hand)
                if self._show_pose_labels and i < len(result.poses):
                    self._draw_pose_label(image, hand, result.poses[i])

        if self._show_status:
            self._draw_status_bar(image, w, result, mode)

        if self._show_volume and media_state is not None:
            self._draw_volume_bar(image, h, media_state.volume)

        if last_effect_label and last_effect_time:
            age = now - last_effect_time
            if 0 <= age < self._banner_s:
                self._draw_effect_banner(image, w, h, last_effect_label, 1.0 - age / self._banner_s)

        return image

    def _draw_skeleton(self, image, hand):
        points = [(int(lm.x), int(lm.y)) for lm in hand.keypoints]
        for a, b in HAND_CONNECTIONS:
            cv2.line(image, points[a], points[b], self._color_bone, 2)
        for point in points:
            cv2.circle(image, point, 4, self._color_joint, -1)

    def _draw_pose_label(self, image, hand, pose):
        wrist = hand.wrist
        text = "%s: %s" % (pose.handedness, pose.name)
        cv2.putText(
            image, text, (int(wrist.x) - 40, int(wrist.y) + 25),
            cv2.FONT_HERSHEY_SIMPLEX, 0.5, self._color_text, 1,
        )

    def _draw_status_bar(self, image, w, result, mode):
        """Top bar: mode, hand count, latency."""
        # Semi-transparent background
        overlay = image.copy()
        cv2.rectangle(overlay, (0, 0), (w, self._bar_height), (20, 20, 20), -1)
        cv2.addWeighted(overlay, self._bar_opacity, image, 1 - self._bar_opacity, 0, image)

        hand_count = result.hand_count if result is not None else 0
        latency = result.latency_ms if result is not None else 0.0

        cv2.putText(
            image, f"Mode: {mode.upper()}",
            (15, 25), cv2.FONT_HERSHEY_SIMPLEX, 0.6, self._color_text, 2,
        )
        cv2.putText(
            image, f"Hands: {hand_count}   Latency: {latency:.1f}ms",
            (15, 50), cv2.FONT_HERSHEY_SIMPLEX, 0.5, self._color_text, 1,
        )

    def _draw_volume_bar(self, image, h, volume):
        """Vertical volume bar on the left side."""
        bar_x, bar_w, bar_h = 10, 15, 200
        bar_y = h - bar_h - 40
        volume = max(0.0, min(1.0, volume))

        cv2.rectangle(image, (bar_x, bar_y), (bar_x + bar_w, bar_y + bar_h), (60, 60, 60), -1)
        fill_h = int(volume * bar_h)
        cv2.rectangle(image, (bar_x, bar_y + bar_h - fill_h), (bar_x + bar_w, bar_y + bar_h),
                      self._color_volume, -1)
        cv2.rectangle(image, (bar_x, bar_y), (bar_x + bar_w, bar_y + bar_h), (200, 200, 200), 1)
        cv2.putText(
            image, "VOL", (bar_x - 2, bar_y - 5),
            cv2.FONT_HERSHEY_SIMPLEX, 0.35, self._color_text, 1,
        )

    def _draw_effect_banner(self, image, w, h, label, alpha):
        """Centered effect label, fading out with alpha."""
        text = label.upper()
        text_size = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 1.0, 2)[0]
        x = (w - text_size[0]) // 2
        y = h // 2

        overlay = image.copy()
        cv2.rectangle(overlay, (x - 15, y - text_size[1] - 15), (x + text_size[0] + 15, y + 15),
                      (20, 20, 20), -1)
        cv2.putText(overlay, text, (x, y), cv2.FONT_HERSHEY_SIMPLEX, 1.0, self._color_banner, 2)
        cv2.addWeighted(overlay, alpha, image, 1 - alpha, 0, image)
