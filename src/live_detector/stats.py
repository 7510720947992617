"""
Session statistics: cumulative detection count, active objects, FPS and latency.
"""

import time
import logging
from typing import Callable

from .models import DetectionSet, Statistics

logger = logging.getLogger(__name__)

FPS_WINDOW_MS = 1000.0


class StatisticsAggregator:
    """
    Running metrics for a detection session.

    FPS is recomputed once at least FPS_WINDOW_MS has elapsed since the last
    measurement, from the number of cycles completed in that window.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            clock: Monotonic time source in seconds
        """
        self._clock = clock
        self.total_detections = 0
        self.active_objects = 0
        self.fps = 0
        self.last_latency_ms = 0.0
        self.cycles = 0
        self._window_cycles = 0
        self._window_start = clock()

    def reset_window(self):
        """Start a fresh FPS measurement window."""
        self._window_cycles = 0
        self._window_start = self._clock()

    def record_cycle(self, detections: DetectionSet, latency_ms: float) -> Statistics:
        """
        Fold one completed cycle into the statistics.

        Args:
            detections: The cycle's detection set
            latency_ms: Wall-clock duration of the cycle's inference call

        Returns:
            Updated snapshot
        """
        count = len(detections)
        self.total_detections += count
        self.active_objects = count
        self.last_latency_ms = round(latency_ms, 1)
        self.cycles += 1

        self._window_cycles += 1
        now = self._clock()
        elapsed_ms = (now - self._window_start) * 1000.0
        if elapsed_ms >= FPS_WINDOW_MS:
            self.fps = int(round(self._window_cycles * 1000.0 / elapsed_ms))
            self._window_cycles = 0
            self._window_start = now
            logger.debug(f"FPS window closed: {self.fps} fps")

        return self.snapshot()

    def clear(self):
        """Reset cumulative and active counts. FPS is left alone."""
        self.total_detections = 0
        self.active_objects = 0

    def snapshot(self) -> Statistics:
        return Statistics(
            total_detections=self.total_detections,
            active_objects=self.active_objects,
            fps=self.fps,
            last_latency_ms=self.last_latency_ms,
            cycles=self.cycles,
        )
