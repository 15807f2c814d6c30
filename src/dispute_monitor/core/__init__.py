"""Core detection logic.

This subpackage contains the agreement detector and the loop that
drives it.

Key modules:
    - detector: Per-pass game classification via Detector.detect()
    - monitor: Periodic monitoring loop via GameMonitor.run()
"""

from dispute_monitor.core.detector import Detector, DEFAULT_MAX_CONCURRENCY
from dispute_monitor.core.monitor import GameMonitor

__all__ = [
    "Detector",
    "DEFAULT_MAX_CONCURRENCY",
    "GameMonitor",
]
