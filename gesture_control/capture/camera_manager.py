"""
Camera capture for the gesture control loop.

Frames are read synchronously, one per tick, so the control loop never
races the capture device. A camera that cannot be opened, or that keeps
failing to deliver frames, raises CaptureError and ends the session.
"""

import time
import logging
import cv2
import numpy as np
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


class CaptureError(RuntimeError):
    """The frame source failed; the control loop cannot continue."""


class CameraManager:
    """OpenCV camera wrapper returning BGR frames."""

    def __init__(self, config: Optional[dict] = None):
        config = config or {}
        self._device_id = config.get("device_id", 0)
        self._width = config.get("width", 640)
        self._height = config.get("height", 480)
        self._fps = config.get("fps", 30)
        self._backend = config.get("backend", "auto")
        self._buffer_size = config.get("buffer_size", 1)
        self._flip_h = config.get("flip_horizontal", True)
        self._warmup_frames = config.get("warmup_frames", 15)
        self._max_read_failures = config.get("max_read_failures", 30)

        self._cap = None
        self._frame_id = 0
        self._read_failures = 0
        self._capture_times = []

    def open(self):
        """Open the camera with the configured settings.

        Raises:
            CaptureError: if the device cannot be opened
        """
        backend_map = {
            "v4l2": cv2.CAP_V4L2,
            "gstreamer": cv2.CAP_GSTREAMER,
            "auto": cv2.CAP_ANY,
        }
        backend = backend_map.get(self._backend, cv2.CAP_ANY)

        self._cap = cv2.VideoCapture(self._device_id, backend)
        if not self._cap.isOpened():
            self._cap = None
            raise CaptureError(
                "Failed to open camera %d with backend %s" % (self._device_id, self._backend)
            )

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        self._cap.set(cv2.CAP_PROP_FPS, self._fps)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self._buffer_size)

        actual_w = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_h = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        actual_fps = self._cap.get(cv2.CAP_PROP_FPS)
        logger.info(
            "Camera opened: %dx%d @ %.0f FPS (requested %dx%d @ %d)",
            actual_w, actual_h, actual_fps,
            self._width, self._height, self._fps,
        )

        # Let auto-exposure settle
        for _ in range(self._warmup_frames):
            self._cap.read()

    def read(self) -> Tuple[Optional[int], Optional[np.ndarray]]:
        """Read the next frame.

        Returns:
            (frame_id, BGR image), or (None, None) for a transient miss

        Raises:
            CaptureError: camera not open, or too many consecutive misses
        """
        if self._cap is None:
            raise CaptureError("Camera is not open")

        start = time.perf_counter()
        ret, frame = self._cap.read()
        elapsed_ms = (time.perf_counter() - start) * 1000

        if not ret or frame is None:
            self._read_failures += 1
            if self._read_failures > self._max_read_failures:
                raise CaptureError(
                    "Camera %d returned no frame %d times in a row"
                    % (self._device_id, self._read_failures)
                )
            return None, None

        self._read_failures = 0
        if self._flip_h:
            frame = cv2.flip(frame, 1)
        self._frame_id += 1
        self._capture_times.append(elapsed_ms)
        if len(self._capture_times) > 100:
            self._capture_times = self._capture_times[-100:]
        return self._frame_id, frame

    @property
    def avg_capture_time_ms(self) -> float:
        """Average frame capture time in ms."""
        if not self._capture_times:
            return 0.0
        return sum(self._capture_times) / len(self._capture_times)

    @property
    def resolution(self) -> tuple:
        return (self._width, self._height)

    @property
    def is_open(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def stop(self):
        """Release the camera."""
        if self._cap:
            self._cap.release()
            self._cap = None
        logger.info("Camera stopped")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.stop()
