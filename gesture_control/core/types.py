"""
Shared domain types for the gesture media control system.

Centralizes landmark indices, hand/frame containers and the control
effects emitted by the tracker, so recognition, control and the I/O
adapters agree on one vocabulary.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import ClassVar, NamedTuple, Optional, Sequence, Tuple, Union

NUM_LANDMARKS = 21
MAX_HANDS = 2

LEFT = "Left"
RIGHT = "Right"
UNKNOWN = "unknown"


# =============================================================================
# Landmarks
# =============================================================================

class LandmarkIndex(IntEnum):
    """Hand landmark indices following MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


# Skeleton edges for drawing
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),          # Thumb
    (0, 5), (5, 6), (6, 7), (7, 8),          # Index
    (5, 9), (9, 10), (10, 11), (11, 12),     # Middle
    (9, 13), (13, 14), (14, 15), (15, 16),   # Ring
    (13, 17), (17, 18), (18, 19), (19, 20),  # Pinky
    (0, 17),                                 # Palm base
]


class Landmark(NamedTuple):
    """A single landmark point.

    ``x`` and ``y`` are image-space pixels for 2D keypoints. ``z`` is
    only present for 3D keypoints.
    """
    x: float
    y: float
    z: Optional[float] = None


@dataclass
class Hand:
    """One detected hand: 21 keypoints plus optional 3D keypoints.

    ``keypoints[i]`` and ``keypoints_3d[i]`` refer to the same anatomical
    point. ``score`` is the detector confidence; it is carried along but
    plays no part in classification.
    """
    keypoints: Optional[Sequence[Landmark]]
    keypoints_3d: Optional[Sequence[Landmark]] = None
    handedness: str = UNKNOWN
    score: float = 0.0

    @property
    def is_well_formed(self) -> bool:
        return self.keypoints is not None and len(self.keypoints) == NUM_LANDMARKS

    @property
    def has_3d(self) -> bool:
        return self.keypoints_3d is not None and len(self.keypoints_3d) == NUM_LANDMARKS

    def get(self, index: LandmarkIndex) -> Landmark:
        """Get 2D landmark by index."""
        return self.keypoints[index]

    def get_3d(self, index: LandmarkIndex) -> Landmark:
        """Get 3D landmark by index."""
        return self.keypoints_3d[index]

    @property
    def wrist(self) -> Optional[Landmark]:
        if not self.is_well_formed:
            return None
        return self.keypoints[LandmarkIndex.WRIST]

    @property
    def label(self) -> str:
        """Handedness normalized to ``Left``, ``Right`` or ``unknown``."""
        name = (self.handedness or "").strip().lower()
        if name == "left":
            return LEFT
        if name == "right":
            return RIGHT
        return UNKNOWN


@dataclass
class Frame:
    """All hands visible at one sampling tick (0, 1 or 2).

    Hand order carries no identity from one frame to the next.
    """
    hands: Tuple[Hand, ...] = field(default_factory=tuple)
    timestamp: Optional[float] = None

    def __post_init__(self):
        self.hands = tuple(self.hands)
        if len(self.hands) > MAX_HANDS:
            raise ValueError(
                "Frame holds at most %d hands, got %d" % (MAX_HANDS, len(self.hands))
            )

    def __len__(self) -> int:
        return len(self.hands)

    @property
    def hand_count(self) -> int:
        return len(self.hands)


# =============================================================================
# Control Effects
# =============================================================================

class EffectKind(Enum):
    """Tags for the control effects a media sink must handle."""
    PLAY = "play"
    PAUSE_AND_HIDE = "pause_and_hide"
    SEEK_BY = "seek_by"
    ADJUST_VOLUME = "adjust_volume"


@dataclass(frozen=True)
class Play:
    """Begin or resume playback."""
    kind: ClassVar[EffectKind] = EffectKind.PLAY


@dataclass(frozen=True)
class PauseAndHide:
    """Pause playback and hide the visual surface."""
    kind: ClassVar[EffectKind] = EffectKind.PAUSE_AND_HIDE


@dataclass(frozen=True)
class SeekBy:
    """Shift playback position by a signed number of seconds."""
    seconds: float
    kind: ClassVar[EffectKind] = EffectKind.SEEK_BY


@dataclass(frozen=True)
class AdjustVolume:
    """Add a signed delta to the current volume.

    The sink clamps the result into ``clamped_range``.
    """
    delta: float
    clamped_range: Tuple[float, float] = (0.0, 1.0)
    kind: ClassVar[EffectKind] = EffectKind.ADJUST_VOLUME

    def apply(self, volume: float) -> float:
        low, high = self.clamped_range
        return max(low, min(high, volume + self.delta))


ControlEffect = Union[Play, PauseAndHide, SeekBy, AdjustVolume]


def describe_effect(effect: ControlEffect) -> str:
    """Short human-readable label, e.g. ``seek_by(+5)``."""
    if isinstance(effect, SeekBy):
        return "%s(%+g)" % (effect.kind.value, effect.seconds)
    if isinstance(effect, AdjustVolume):
        return "%s(%+g)" % (effect.kind.value, effect.delta)
    return effect.kind.value
