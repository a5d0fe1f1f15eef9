"""
Static gesture classifier.

Rule-based predicates over a single hand's landmarks: finger extension and
curl from joint angles, fingertip clustering, and palm orientation from the
3D palm normal.

Every predicate fails safe: a malformed hand or degenerate geometry
(coincident landmarks, missing depth) evaluates to False instead of raising.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from gesture_control.core.types import Hand, LandmarkIndex, UNKNOWN
from gesture_control.recognition.geometry import (
    angle_degrees, mean_pairwise_distance, planar, spatial, unit_normal,
)

logger = logging.getLogger(__name__)

# Finger joint triples: (TIP, PIP, MCP)
FINGER_JOINTS: Dict[str, Tuple[int, int, int]] = {
    "index":  (LandmarkIndex.INDEX_TIP, LandmarkIndex.INDEX_PIP, LandmarkIndex.INDEX_MCP),
    "middle": (LandmarkIndex.MIDDLE_TIP, LandmarkIndex.MIDDLE_PIP, LandmarkIndex.MIDDLE_MCP),
    "ring":   (LandmarkIndex.RING_TIP, LandmarkIndex.RING_PIP, LandmarkIndex.RING_MCP),
    "pinky":  (LandmarkIndex.PINKY_TIP, LandmarkIndex.PINKY_PIP, LandmarkIndex.PINKY_MCP),
}

# Thumb: (TIP, base joint, WRIST)
THUMB_JOINTS = (LandmarkIndex.THUMB_TIP, LandmarkIndex.THUMB_MCP, LandmarkIndex.WRIST)

FINGERTIPS = tuple(tip for tip, _, _ in FINGER_JOINTS.values())

_DEFAULTS = {
    "finger_extended_angle": 160.0,
    "finger_curled_angle": 70.0,
    "thumb_extended_angle": 150.0,
    "thumb_curled_angle": 210.0,
    "fingertip_cluster_distance": 40.0,
    "palm_facing_threshold": 0.5,
}


@dataclass(frozen=True)
class HandPose:
    """Snapshot of every predicate for one hand at one tick."""
    open_hand: bool = False
    fist: bool = False
    pointing: bool = False
    palm_facing_left: bool = False
    handedness: str = UNKNOWN

    @property
    def name(self) -> str:
        if self.fist:
            return "fist"
        if self.pointing:
            return "pointing"
        if self.open_hand:
            return "open_palm_left" if self.palm_facing_left else "open_palm"
        return "none"


class GestureClassifier:
    """Classifies a single hand's pose from landmark geometry.

    Angles are measured in the image plane for finger curl tests. Palm
    orientation needs 3D keypoints.

    Example:
        >>> classifier = GestureClassifier(config.recognition)
        >>> pose = classifier.classify(hand)
        >>> if pose.fist:
        ...     print("fist")
    """

    def __init__(self, config: Optional[dict] = None):
        config = config or {}
        self._finger_extended_angle = config.get(
            "finger_extended_angle", _DEFAULTS["finger_extended_angle"])
        self._finger_curled_angle = config.get(
            "finger_curled_angle", _DEFAULTS["finger_curled_angle"])
        self._thumb_extended_angle = config.get(
            "thumb_extended_angle", _DEFAULTS["thumb_extended_angle"])
        # TODO: thumb_curled_angle of 210 can never fail on a [0, 180] angle;
        # retune once recorded fist/pointing samples are available.
        self._thumb_curled_angle = config.get(
            "thumb_curled_angle", _DEFAULTS["thumb_curled_angle"])
        self._fingertip_cluster_distance = config.get(
            "fingertip_cluster_distance", _DEFAULTS["fingertip_cluster_distance"])
        self._palm_facing_threshold = config.get(
            "palm_facing_threshold", _DEFAULTS["palm_facing_threshold"])

    def classify(self, hand: Hand) -> HandPose:
        """Evaluate all predicates for a hand in one pass."""
        if not hand.is_well_formed:
            logger.debug("Malformed hand (%s): all predicates false", hand.label)
            return HandPose(handedness=hand.label)

        pose = HandPose(
            open_hand=self.is_open_hand(hand),
            fist=self.is_fist(hand),
            pointing=self.is_pointing(hand),
            palm_facing_left=self.is_palm_facing_left(hand),
            handedness=hand.label,
        )
        logger.debug("Hand %s classified as %s", hand.label, pose.name)
        return pose

    # =========================================================================
    # Finger predicates
    # =========================================================================

    def finger_angle(self, hand: Hand, finger: str) -> float:
        """Planar angle at the PIP joint between tip and MCP (nan if undetermined)."""
        tip, pip, mcp = FINGER_JOINTS[finger]
        return angle_degrees(
            planar(hand.get(tip)), planar(hand.get(pip)), planar(hand.get(mcp))
        )

    def is_finger_extended(self, hand: Hand, finger: str) -> bool:
        if not hand.is_well_formed:
            return False
        return self.finger_angle(hand, finger) > self._finger_extended_angle

    def is_finger_curled(self, hand: Hand, finger: str) -> bool:
        if not hand.is_well_formed:
            return False
        return self.finger_angle(hand, finger) < self._finger_curled_angle

    def is_thumb_extended(self, hand: Hand) -> bool:
        """Tip, base joint and wrist nearly collinear."""
        if not hand.is_well_formed:
            return False
        tip, base, wrist = THUMB_JOINTS
        angle = angle_degrees(
            planar(hand.get(tip)), planar(hand.get(base)), planar(hand.get(wrist))
        )
        return angle > self._thumb_extended_angle

    def is_thumb_curled(self, hand: Hand) -> bool:
        """Angle at the wrist between the thumb base joint and thumb tip."""
        if not hand.is_well_formed:
            return False
        tip, base, wrist = THUMB_JOINTS
        angle = angle_degrees(
            planar(hand.get(base)), planar(hand.get(wrist)), planar(hand.get(tip))
        )
        return angle < self._thumb_curled_angle

    def fingertip_spread(self, hand: Hand) -> float:
        """Mean pairwise planar distance among the four non-thumb fingertips."""
        return mean_pairwise_distance(planar(hand.get(tip)) for tip in FINGERTIPS)

    def are_fingertips_close(self, hand: Hand) -> bool:
        if not hand.is_well_formed:
            return False
        return self.fingertip_spread(hand) < self._fingertip_cluster_distance

    # =========================================================================
    # Hand shapes
    # =========================================================================

    def is_open_hand(self, hand: Hand) -> bool:
        return (
            all(self.is_finger_extended(hand, f) for f in FINGER_JOINTS)
            and self.is_thumb_extended(hand)
        )

    def is_fist(self, hand: Hand) -> bool:
        return (
            all(self.is_finger_curled(hand, f) for f in FINGER_JOINTS)
            and self.is_thumb_curled(hand)
            and self.are_fingertips_close(hand)
        )

    def is_pointing(self, hand: Hand) -> bool:
        """Index extended, other fingers and thumb curled.

        Direction is the caller's context (which hand, which gesture slot).
        """
        return (
            self.is_finger_extended(hand, "index")
            and self.is_finger_curled(hand, "middle")
            and self.is_finger_curled(hand, "ring")
            and self.is_finger_curled(hand, "pinky")
            and self.is_thumb_curled(hand)
        )

    # =========================================================================
    # Palm orientation
    # =========================================================================

    def palm_normal(self, hand: Hand):
        """Unit normal of the palm plane from 3D keypoints, or None."""
        if not hand.has_3d:
            return None
        wrist = spatial(hand.get_3d(LandmarkIndex.WRIST))
        index_mcp = spatial(hand.get_3d(LandmarkIndex.INDEX_MCP))
        pinky_mcp = spatial(hand.get_3d(LandmarkIndex.PINKY_MCP))
        if wrist is None or index_mcp is None or pinky_mcp is None:
            return None
        return unit_normal(index_mcp - wrist, pinky_mcp - wrist)

    def is_palm_facing_left(self, hand: Hand) -> bool:
        normal = self.palm_normal(hand)
        if normal is None:
            return False
        return bool(normal[0] > self._palm_facing_threshold)
