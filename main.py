#!/usr/bin/env python3
"""
Gesture Media Control
Control a media player with hand gestures from a webcam.

Usage:
    python main.py                    # Default control mode
    python main.py --mode demo        # Demo mode (effects shown, not sent)
    python main.py --no-display       # Headless
"""

import sys

from gesture_control.app import main

if __name__ == "__main__":
    sys.exit(main())
