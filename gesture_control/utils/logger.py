"""
Logging setup and the effect log sink.
"""

import os
import logging
import logging.handlers
from collections import Counter

from gesture_control.core.types import ControlEffect, describe_effect


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure logging for the application."""
    # Compact console format
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    # Verbose format for log file
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
    date_format = "%H:%M:%S"

    level_value = getattr(logging, str(level).upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(min(level_value, logging.DEBUG) if log_file else level_value)

    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(level_value)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class EffectLogger:
    """Pipeline sink that logs dispatched effects and counts them by kind."""

    def __init__(self):
        self.logger = logging.getLogger("gesture_effects")
        self._counts = Counter()

    def log_effect(self, effect: ControlEffect):
        self._counts[effect.kind.value] += 1
        self.logger.info("Effect: %-22s | Total %s: %d",
                         describe_effect(effect), effect.kind.value,
                         self._counts[effect.kind.value])

    def __call__(self, effect: ControlEffect):
        self.log_effect(effect)

    @property
    def counts(self) -> dict:
        return dict(self._counts)

    @property
    def total_effects(self) -> int:
        return sum(self._counts.values())

    def summary(self) -> str:
        if not self._counts:
            return "no effects"
        return ", ".join("%s=%d" % (kind, n) for kind, n in sorted(self._counts.items()))
