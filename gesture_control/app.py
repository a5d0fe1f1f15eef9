"""
Gesture Media Control - application entry point.

Wires camera -> MediaPipe hand detector -> gesture tracker -> media
controller, with an optional OpenCV overlay window.

Usage:
    python main.py                    # Default control mode
    python main.py --mode demo        # Demo mode (effects shown, not sent)
    python main.py --no-display       # Headless
    gesture-control --camera 1 --debug

Keys (display mode):
    q  quit
    m  toggle control/demo mode
    r  reset the gesture tracker
"""

import time
import signal
import argparse
import logging

import cv2

from gesture_control import __version__
from gesture_control.capture.camera_manager import CameraManager, CaptureError
from gesture_control.control.media_controller import MediaController
from gesture_control.core.pipeline import Pipeline, PipelineResult
from gesture_control.detection.hand_detector import HandDetector
from gesture_control.recognition.gesture_classifier import GestureClassifier
from gesture_control.recognition.gesture_tracker import GestureTracker
from gesture_control.utils.config import Config
from gesture_control.utils.logger import EffectLogger, setup_logging
from gesture_control.visualization.overlay import Overlay

logger = logging.getLogger(__name__)


class GestureMediaControl:
    """Main application: owns the adapters and drives the Pipeline."""

    def __init__(self, config: Config, mode: str = "control", display: bool = True):
        self._config = config
        self._display = display
        self._running = False
        self._image = None

        # Capture and detection
        self._camera = CameraManager(config.camera)
        self._detector = HandDetector(config.mediapipe)

        # Recognition
        self._classifier = GestureClassifier(config.recognition)
        self._tracker = GestureTracker(config.tracking, self._classifier)

        # Control
        self._controller = MediaController(config.media)
        self._effect_logger = EffectLogger()

        # Visualization
        self._overlay = Overlay(config.visualization)
        self._window_name = config.get("visualization.window_name", "Gesture Media Control")

        self._pipeline = Pipeline(
            self._tracker,
            sinks=[self._controller.apply, self._effect_logger],
            config={
                "mode": mode,
                "autoplay": config.get("media.autoplay", False),
            },
        )

        logger.info("GestureMediaControl initialized (mode=%s, display=%s)", mode, display)

    def run(self) -> int:
        """Run until quit, signal or capture failure. Returns an exit code."""
        try:
            self._camera.open()
            self._detector.start()
            self._running = True
            self._pipeline.start()
            logger.info("Starting main loop (mode=%s)", self._pipeline.mode)
            self._pipeline.run(self._frames(), on_result=self._on_result)
        except CaptureError as e:
            logger.error("Capture failed: %s", e)
            return 1
        finally:
            self._shutdown()
        return 0

    def _frames(self):
        """Yield one Frame per camera image until stopped."""
        while self._running:
            _, image = self._camera.read()
            if image is None:
                continue
            self._image = image
            rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
            yield self._detector.detect(rgb, int(time.monotonic() * 1000))

    def _on_result(self, result: PipelineResult):
        if not self._running:
            self._pipeline.stop()
            return
        if not self._display or self._image is None:
            return

        image = self._overlay.render(
            self._image, result,
            media_state=self._controller.state,
            mode=self._pipeline.mode,
            last_effect_label=self._controller.last_effect_label,
            last_effect_time=self._controller.last_effect_time,
        )
        cv2.imshow(self._window_name, image)
        self._handle_key(cv2.waitKey(1) & 0xFF)

    def _handle_key(self, key: int):
        if key == ord("q"):
            self.stop()
        elif key == ord("m"):
            new_mode = "demo" if self._pipeline.mode == "control" else "control"
            self._pipeline.set_mode(new_mode)
        elif key == ord("r"):
            self._tracker.reset()
            logger.info("Gesture tracker reset")

    def stop(self):
        self._running = False
        self._pipeline.stop()

    def _shutdown(self):
        """Clean shutdown of all adapters."""
        logger.info("Shutting down...")
        self._running = False
        self._camera.stop()
        self._detector.stop()
        if self._display:
            cv2.destroyAllWindows()
        logger.info("Effects this session: %s", self._effect_logger.summary())
        logger.info("Shutdown complete.")

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self.stop()

    @property
    def pipeline(self) -> Pipeline:
        return self._pipeline


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Gesture Media Control - hand gestures to media player commands"
    )
    parser.add_argument(
        "--mode", choices=["control", "demo"], default=None,
        help="Operating mode (default: system.mode from config)"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.yaml"
    )
    parser.add_argument(
        "--camera", type=int, default=None,
        help="Camera device ID"
    )
    parser.add_argument(
        "--no-display", action="store_true",
        help="Run without the overlay window"
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Log at DEBUG level on the console"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    config = Config.from_file(args.config)
    if args.camera is not None:
        config.set("camera.device_id", args.camera)

    log_cfg = config.logging
    setup_logging(
        level="DEBUG" if args.debug or config.get("system.debug") else log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    mode = args.mode or config.get("system.mode", "control")
    display = not args.no_display and config.get("system.display", True)

    logger.info("=" * 60)
    logger.info("  GESTURE MEDIA CONTROL")
    logger.info("  Version: %s", __version__)
    logger.info("  Mode: %s", mode)
    logger.info("=" * 60)

    app = GestureMediaControl(config, mode=mode, display=display)

    signal.signal(signal.SIGINT, app.handle_signal)
    signal.signal(signal.SIGTERM, app.handle_signal)

    return app.run()
