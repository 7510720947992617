"""
Frame clock that drives the detection loop from a background thread.
"""

import time
import logging
import threading
from typing import Optional

from .errors import DetectionError
from .loop import DetectionLoop

logger = logging.getLogger(__name__)


class FrameClock:
    """
    Calls ``loop.tick()`` at up to ``fps`` times per second.

    The next tick is issued only after the previous one returns, so slow
    inference lowers the effective rate instead of queueing work.
    """

    def __init__(self, loop: DetectionLoop, fps: float = 30.0):
        if fps <= 0:
            raise ValueError("fps must be positive")
        self.loop = loop
        self.interval = 1.0 / fps
        self._stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None
        self.is_running = False

    def start(self):
        """Start ticking in a separate thread."""
        if self.is_running:
            logger.warning("Frame clock already running")
            return

        self._stop_event.clear()
        self.thread = threading.Thread(target=self._run, name="frame-clock", daemon=True)
        self.thread.start()
        self.is_running = True
        logger.info(f"Frame clock started ({1.0 / self.interval:.0f} ticks/s)")

    def _run(self):
        while not self._stop_event.is_set():
            started = time.monotonic()
            try:
                self.loop.tick()
            except DetectionError as e:
                logger.warning(f"Detection loop halted: {e}")
            except Exception:
                logger.exception("Unexpected error in detection tick")

            remaining = self.interval - (time.monotonic() - started)
            # Always yield briefly so other threads can run
            self._stop_event.wait(max(remaining, 0.001))

    def stop(self, timeout: float = 5.0):
        """Stop ticking and wait for the thread to exit."""
        self._stop_event.set()
        if self.thread is not None:
            self.thread.join(timeout)
            self.thread = None
        self.is_running = False
        logger.info("Frame clock stopped")
