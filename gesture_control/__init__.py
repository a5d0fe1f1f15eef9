"""
Gesture Media Control
=====================

Hand-skeleton gesture recognition for touchless media control.

Modules:
    - core: Shared domain types and the per-tick pipeline
    - recognition: Geometry, static gesture predicates, temporal tracker
    - control: Media player sink for emitted control effects
    - capture: Camera frame acquisition
    - detection: MediaPipe hand landmark detection
    - visualization: Skeleton and status overlay
    - utils: Configuration and logging
"""

__version__ = "1.0.0"
