"""
Temporal gesture tracker.

Turns per-frame hand poses into control effects:

    one hand, fist held N frames          -> PauseAndHide (fire once)
    one hand, open palm facing left moves -> SeekBy(+/-seconds)
    left open palm + right index pointing -> AdjustVolume(+/-step)

Sliding windows are fixed-capacity FIFOs. Buffers are cleared right after
an emission, so the same movement never fires twice. Each tracker owns its
own TemporalState; run one tracker per session.
"""

import math
import time
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, List, Optional, Sequence, Tuple

from gesture_control.core.types import (
    AdjustVolume, ControlEffect, Frame, Hand, LandmarkIndex, LEFT, PauseAndHide,
    RIGHT, SeekBy,
)
from gesture_control.recognition.gesture_classifier import GestureClassifier, HandPose

logger = logging.getLogger(__name__)

HANDEDNESS_FALLBACKS = ("position", "order")


def _finite(value) -> bool:
    return value is not None and math.isfinite(value)


@dataclass
class TemporalState:
    """Mutable per-session state. Only GestureTracker writes to it."""
    window_size: int = 5
    fist_frames: int = 0
    scrub_buffer: Deque[float] = field(default_factory=deque)
    volume_buffer: Deque[float] = field(default_factory=deque)
    last_volume_emit: Optional[float] = None

    def __post_init__(self):
        self.scrub_buffer = deque(self.scrub_buffer, maxlen=self.window_size)
        self.volume_buffer = deque(self.volume_buffer, maxlen=self.window_size)

    def clear(self):
        """Return to the zero value, debounce clock included."""
        self.fist_frames = 0
        self.scrub_buffer.clear()
        self.volume_buffer.clear()
        self.last_volume_emit = None

    @property
    def is_idle(self) -> bool:
        return (
            self.fist_frames == 0 and not self.scrub_buffer and not self.volume_buffer
            and self.last_volume_emit is None
        )


class GestureTracker:
    """Debounces, buffers and thresholds hand poses across frames.

    Single-threaded and non-blocking: call ``process_frame`` once per tick
    from the driving loop.

    Example:
        >>> tracker = GestureTracker(config.tracking, GestureClassifier(config.recognition))
        >>> for frame in frames:
        ...     for effect in tracker.process_frame(frame):
        ...         player.apply(effect)
    """

    def __init__(
        self,
        config: Optional[dict] = None,
        classifier: Optional[GestureClassifier] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        config = config or {}
        self._fist_hold_frames = config.get("fist_hold_frames", 5)
        self._window_size = config.get("window_size", 5)
        self._scrub_threshold = config.get("scrub_threshold", 20.0)
        self._seek_seconds = config.get("seek_seconds", 5.0)
        self._volume_threshold = config.get("volume_threshold", 20.0)
        self._volume_step = config.get("volume_step", 0.5)
        self._volume_debounce_ms = config.get("volume_debounce_ms", 100.0)
        self._volume_range = tuple(config.get("volume_range", (0.0, 1.0)))
        self._handedness_fallback = config.get("handedness_fallback", "position")

        if self._handedness_fallback not in HANDEDNESS_FALLBACKS:
            logger.warning("Unknown handedness_fallback '%s', using 'position'",
                           self._handedness_fallback)
            self._handedness_fallback = "position"

        self._classifier = classifier or GestureClassifier()
        self._clock = clock
        self._state = TemporalState(window_size=self._window_size)

    # =========================================================================
    # Public API
    # =========================================================================

    def classify_frame(self, frame: Frame) -> List[HandPose]:
        """Classify every hand in the frame, in frame order."""
        return [self._classifier.classify(hand) for hand in frame.hands]

    def process_frame(
        self,
        frame: Frame,
        poses: Optional[Sequence[HandPose]] = None,
    ) -> List[ControlEffect]:
        """Advance the state machine by one tick.

        Args:
            frame: Hands visible at this tick
            poses: Precomputed ``classify_frame(frame)`` result, if the caller
                already has it

        Returns:
            Effects to execute, in emission order (usually zero or one)
        """
        if poses is None:
            poses = self.classify_frame(frame)

        hand_count = len(frame.hands)
        if hand_count == 0:
            if not self._state.is_idle:
                logger.debug("No hands: gesture state reset")
            self._state.clear()
            return []

        if hand_count == 1:
            self._state.volume_buffer.clear()
            return self._track_single_hand(frame.hands[0], poses[0])

        self._state.fist_frames = 0
        self._state.scrub_buffer.clear()
        return self._track_two_hands(frame.hands, poses)

    def reset(self):
        """Return to the zero state, including the volume debounce clock."""
        self._state = TemporalState(window_size=self._window_size)
        logger.debug("Tracker reset")

    @property
    def state(self) -> TemporalState:
        return self._state

    @property
    def classifier(self) -> GestureClassifier:
        return self._classifier

    # =========================================================================
    # One hand: fist hold and scrub
    # =========================================================================

    def _track_single_hand(self, hand: Hand, pose: HandPose) -> List[ControlEffect]:
        effects = []

        effect = self._update_fist(pose)
        if effect is not None:
            effects.append(effect)

        effect = self._update_scrub(hand, pose)
        if effect is not None:
            effects.append(effect)

        return effects

    def _update_fist(self, pose: HandPose) -> Optional[ControlEffect]:
        state = self._state
        if not pose.fist:
            state.fist_frames = 0
            return None

        state.fist_frames += 1
        # Fire on the frame that reaches the threshold, never after.
        if state.fist_frames == self._fist_hold_frames:
            logger.debug("Fist held %d frames: pause_and_hide", state.fist_frames)
            return PauseAndHide()
        return None

    def _update_scrub(self, hand: Hand, pose: HandPose) -> Optional[ControlEffect]:
        buffer = self._state.scrub_buffer
        if not (pose.open_hand and pose.palm_facing_left):
            buffer.clear()
            return None

        buffer.append(hand.get(LandmarkIndex.WRIST).x)
        if len(buffer) < self._window_size:
            return None

        delta = buffer[-1] - buffer[0]
        if abs(delta) <= self._scrub_threshold:
            return None

        seconds = self._seek_seconds if delta > 0 else -self._seek_seconds
        buffer.clear()
        logger.debug("Scrub delta %.1f: seek_by %+g", delta, seconds)
        return SeekBy(seconds=seconds)

    # =========================================================================
    # Two hands: volume
    # =========================================================================

    def _track_two_hands(
        self,
        hands: Sequence[Hand],
        poses: Sequence[HandPose],
    ) -> List[ControlEffect]:
        left, right = self._resolve_hands(hands, poses)
        (_, left_pose), (right_hand, right_pose) = left, right

        buffer = self._state.volume_buffer
        if not (left_pose.open_hand and right_pose.pointing):
            buffer.clear()
            return []

        buffer.append(right_hand.get(LandmarkIndex.INDEX_TIP).y)
        if len(buffer) < self._window_size:
            return []

        now = self._clock()
        last = self._state.last_volume_emit
        if last is not None and (now - last) * 1000.0 < self._volume_debounce_ms:
            return []

        # Image y grows downward: raising the fingertip gives a positive delta.
        delta = buffer[0] - buffer[-1]
        if abs(delta) <= self._volume_threshold:
            return []

        step = self._volume_step if delta > 0 else -self._volume_step
        self._state.last_volume_emit = now
        buffer.clear()
        logger.debug("Volume delta %.1f: adjust_volume %+g", delta, step)
        return [AdjustVolume(delta=step, clamped_range=self._volume_range)]

    def _resolve_hands(
        self,
        hands: Sequence[Hand],
        poses: Sequence[HandPose],
    ) -> Tuple[Tuple[Hand, HandPose], Tuple[Hand, HandPose]]:
        """Order two hands as (left, right).

        Uses handedness labels when they name one Left and one Right hand;
        otherwise falls back to wrist position (lower x is left) or to raw
        frame order, per ``handedness_fallback``.
        """
        pairs = list(zip(hands, poses))
        labels = [hand.label for hand in hands]

        if sorted(labels) == [LEFT, RIGHT]:
            if labels[0] == LEFT:
                return pairs[0], pairs[1]
            return pairs[1], pairs[0]

        if self._handedness_fallback == "position":
            wrists = [hand.wrist for hand in hands]
            if all(w is not None and _finite(w.x) for w in wrists) and wrists[0].x != wrists[1].x:
                if wrists[0].x < wrists[1].x:
                    return pairs[0], pairs[1]
                return pairs[1], pairs[0]

        return pairs[0], pairs[1]
