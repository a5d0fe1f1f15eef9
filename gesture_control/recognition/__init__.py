"""Gesture recognition: geometry, static predicates and temporal tracking."""
from .gesture_classifier import GestureClassifier, HandPose
from .gesture_tracker import GestureTracker, TemporalState

__all__ = [
    "GestureClassifier",
    "HandPose",
    "GestureTracker",
    "TemporalState",
]
