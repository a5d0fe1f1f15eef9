"""Hand detection using MediaPipe."""
