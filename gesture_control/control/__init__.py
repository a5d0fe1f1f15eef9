"""Media control sink for emitted control effects."""
from .media_controller import MediaController, MediaState

__all__ = ["MediaController", "MediaState"]
