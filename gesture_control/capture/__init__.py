"""Camera frame acquisition."""
from .camera_manager import CameraManager, CaptureError

__all__ = ["CameraManager", "CaptureError"]
