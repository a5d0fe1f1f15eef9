"""
Hand Detection - MediaPipe Tasks API
=====================================

Wraps the MediaPipe HandLandmarker and converts its results into Frames:
image landmarks scaled to pixels become ``keypoints``, world landmarks
(meters, hand-centered) become ``keypoints_3d``.
"""

import logging
import urllib.request
from pathlib import Path
from typing import Optional

import numpy as np
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from gesture_control.core.types import Frame, Hand, Landmark, MAX_HANDS, UNKNOWN

logger = logging.getLogger(__name__)

HAND_LANDMARKER_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
    "hand_landmarker/float16/1/hand_landmarker.task"
)
DEFAULT_MODEL_PATH = Path(__file__).resolve().parent.parent.parent / "models" / "hand_landmarker.task"


def download_model(url: str, save_path: Path):
    """Download the hand landmarker model if not present."""
    if save_path.exists():
        logger.info("Model already exists at %s", save_path)
        return
    save_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Downloading hand landmarker model to %s...", save_path)
    urllib.request.urlretrieve(url, save_path)
    logger.info("Model download complete")


def frame_from_result(result, width: int, height: int, timestamp: Optional[float] = None) -> Frame:
    """Convert a HandLandmarkerResult into a Frame.

    Args:
        result: MediaPipe HandLandmarkerResult (or anything shaped like it)
        width: Image width used to scale normalized x
        height: Image height used to scale normalized y
        timestamp: Optional capture timestamp carried on the Frame
    """
    world = result.hand_world_landmarks or []
    handedness = result.handedness or []

    hands = []
    for i, image_landmarks in enumerate(result.hand_landmarks[:MAX_HANDS]):
        keypoints = [Landmark(x=lm.x * width, y=lm.y * height) for lm in image_landmarks]

        keypoints_3d = None
        if i < len(world) and world[i]:
            keypoints_3d = [Landmark(x=lm.x, y=lm.y, z=lm.z) for lm in world[i]]

        label, score = UNKNOWN, 0.0
        if i < len(handedness) and handedness[i]:
            label = handedness[i][0].category_name or UNKNOWN
            score = float(handedness[i][0].score)

        hands.append(Hand(
            keypoints=keypoints,
            keypoints_3d=keypoints_3d,
            handedness=label,
            score=score,
        ))

    return Frame(hands=tuple(hands), timestamp=timestamp)


class HandDetector:
    """
    Hand detection wrapper using MediaPipe Tasks API (HandLandmarker).

    Example:
        >>> detector = HandDetector(config.mediapipe)
        >>> detector.start()
        >>> frame = detector.detect(rgb_image, timestamp_ms)  # RGB format!
        >>> detector.stop()
    """

    def __init__(self, config: Optional[dict] = None):
        config = config or {}
        self._model_path = config.get("model_path") or str(DEFAULT_MODEL_PATH)
        self._max_hands = min(config.get("max_num_hands", MAX_HANDS), MAX_HANDS)
        self._min_detect_conf = config.get("min_detection_confidence", 0.5)
        self._min_presence_conf = config.get("min_presence_confidence", 0.5)
        self._min_track_conf = config.get("min_tracking_confidence", 0.5)
        self._landmarker = None
        self._last_timestamp_ms = -1

    def start(self):
        """Create the landmarker, downloading the model on first use."""
        model_path = Path(self._model_path)
        if not model_path.exists():
            download_model(HAND_LANDMARKER_MODEL_URL, model_path)

        options = vision.HandLandmarkerOptions(
            base_options=python.BaseOptions(model_asset_path=str(model_path)),
            running_mode=vision.RunningMode.VIDEO,
            num_hands=self._max_hands,
            min_hand_detection_confidence=self._min_detect_conf,
            min_hand_presence_confidence=self._min_presence_conf,
            min_tracking_confidence=self._min_track_conf,
        )
        self._landmarker = vision.HandLandmarker.create_from_options(options)
        logger.info(
            "HandLandmarker initialized (model=%s, max_hands=%d, detect_conf=%.2f)",
            model_path, self._max_hands, self._min_detect_conf,
        )

    def stop(self):
        """Release resources."""
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None
            logger.info("HandLandmarker stopped")

    def detect(self, image: np.ndarray, timestamp_ms: int) -> Frame:
        """Detect hands in an RGB image.

        Args:
            image: RGB image (H, W, 3)
            timestamp_ms: Monotonically increasing timestamp (VIDEO mode)
        """
        if self._landmarker is None:
            raise RuntimeError("HandLandmarker not initialized. Call start() first.")

        # VIDEO mode rejects non-increasing timestamps
        timestamp_ms = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms

        height, width = image.shape[:2]
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=image)
        result = self._landmarker.detect_for_video(mp_image, timestamp_ms)
        return frame_from_result(result, width, height, timestamp=timestamp_ms / 1000.0)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
