"""
Per-tick orchestrator for gesture media control.

Architecture:
    Frame source -> GestureTracker (classify + track) -> effect sinks

The tracker is pure state; the Pipeline owns the loop, the mode switch and
sink dispatch. Any iterable of Frames can drive it, from a live camera
adapter to a plain list in tests.
"""

import time
import logging
from typing import Callable, Iterable, List, Optional

from gesture_control.core.types import ControlEffect, Frame, Play, describe_effect
from gesture_control.recognition.gesture_tracker import GestureTracker

logger = logging.getLogger(__name__)

MODES = ("control", "demo")

EffectSink = Callable[[ControlEffect], object]


class PipelineResult:
    """Result of a single pipeline iteration."""

    __slots__ = (
        "frame", "hand_count", "poses", "effects", "dispatched",
        "latency_ms", "frame_id", "timestamp",
    )

    def __init__(self):
        self.frame = None
        self.hand_count = 0
        self.poses = []
        self.effects = []
        self.dispatched = False
        self.latency_ms = 0.0
        self.frame_id = 0
        self.timestamp = 0.0


class Pipeline:
    """Drives a GestureTracker and fans its effects out to sinks.

    In ``control`` mode every effect is passed to each sink in order. In
    ``demo`` mode effects are computed and reported but never dispatched.
    """

    def __init__(
        self,
        tracker: GestureTracker,
        sinks: Optional[Iterable[EffectSink]] = None,
        config: Optional[dict] = None,
    ):
        config = config or {}
        self._tracker = tracker
        self._sinks: List[EffectSink] = list(sinks or [])
        self._autoplay = config.get("autoplay", False)
        self._mode = "control"
        self.set_mode(config.get("mode", "control"))

        self._frame_count = 0
        self._effect_count = 0
        self._running = False
        self._stop_requested = False

    def add_sink(self, sink: EffectSink):
        self._sinks.append(sink)

    def set_mode(self, mode: str):
        """Set pipeline mode: 'control' or 'demo'."""
        if mode not in MODES:
            raise ValueError("Unknown pipeline mode: %r (expected one of %s)" % (mode, MODES))
        self._mode = mode
        logger.info("Pipeline mode set to: %s", mode)

    def start(self) -> List[ControlEffect]:
        """Session start. Dispatches Play when autoplay is enabled."""
        if not self._autoplay:
            return []
        effects = [Play()]
        self._dispatch(effects)
        return effects

    def tick(self, frame: Frame) -> PipelineResult:
        """Execute one pipeline iteration over a single Frame."""
        start = time.perf_counter()
        result = PipelineResult()
        result.timestamp = frame.timestamp if frame.timestamp is not None else time.time()
        result.frame = frame
        result.hand_count = len(frame.hands)

        self._frame_count += 1
        result.frame_id = self._frame_count

        result.poses = self._tracker.classify_frame(frame)
        result.effects = self._tracker.process_frame(frame, result.poses)

        if result.effects and self._mode == "control":
            self._dispatch(result.effects)
            result.dispatched = True
        elif result.effects:
            logger.info("[DEMO] %s", ", ".join(describe_effect(e) for e in result.effects))

        result.latency_ms = (time.perf_counter() - start) * 1000
        return result

    def run(self, frames: Iterable[Frame], on_result: Optional[Callable[[PipelineResult], None]] = None) -> int:
        """Tick over ``frames`` until exhausted or ``stop()`` is called.

        A ``stop()`` issued before ``run()`` starts is honoured: no frame is
        ticked. Exceptions raised by the frame source propagate to the caller.

        Returns:
            Number of frames processed
        """
        processed = 0
        if self._stop_requested:
            self._stop_requested = False
            logger.info("Stop requested before run, no frames processed")
            return processed

        self._running = True
        try:
            for frame in frames:
                result = self.tick(frame)
                processed += 1
                if on_result is not None:
                    on_result(result)
                if self._stop_requested:
                    break
        finally:
            self._running = False
            self._stop_requested = False
        return processed

    def stop(self):
        """Stop ``run()`` after the current tick, or before its first one."""
        self._stop_requested = True
        self._running = False

    def _dispatch(self, effects: List[ControlEffect]):
        for effect in effects:
            self._effect_count += 1
            logger.info("Effect: %s", describe_effect(effect))
            for sink in self._sinks:
                try:
                    sink(effect)
                except Exception as e:
                    logger.error("Sink %r failed on %s: %s", sink, describe_effect(effect), e)

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def tracker(self) -> GestureTracker:
        return self._tracker

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def effect_count(self) -> int:
        return self._effect_count

    @property
    def is_running(self) -> bool:
        return self._running
