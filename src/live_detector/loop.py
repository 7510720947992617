"""
Detection loop controller: owns the session state and runs one cycle per tick.
"""

import enum
import time
import logging
import threading
import numpy as np
from typing import Callable, List, Mapping, Optional

from .capture import FrameSource
from .config import SettingsStore
from .detector import select_detections
from .errors import DetectionError, NotReadyError
from .inference import InferenceEngine
from .models import CycleResult, DetectionSet, Statistics
from .renderer import Renderer
from .stats import StatisticsAggregator
from .tally import ClassTally

logger = logging.getLogger(__name__)


class LoopState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


CycleListener = Callable[[CycleResult], None]
ErrorListener = Callable[[DetectionError], None]


class DetectionLoop:
    """
    Runs detection cycles when driven by an external tick.

    A cycle acquires the current frame, runs inference, filters the raw
    predictions with one settings snapshot, then updates statistics, the
    class tally and the overlay, in that order. Inference is the only
    blocking step; at most one inference call is in flight at any time.
    Results of a call that was in flight when stop() was issued are dropped.
    """

    def __init__(self, frame_source: FrameSource, engine: InferenceEngine,
                 settings: SettingsStore, stats: StatisticsAggregator,
                 tally: ClassTally, renderer: Renderer,
                 clock: Callable[[], float] = time.monotonic):
        if not isinstance(frame_source, FrameSource):
            raise TypeError(f"{type(frame_source).__name__} is not a FrameSource")
        if not isinstance(engine, InferenceEngine):
            raise TypeError(f"{type(engine).__name__} is not an InferenceEngine")

        self.frame_source = frame_source
        self.engine = engine
        self.settings = settings
        self.stats = stats
        self.tally = tally
        self.renderer = renderer
        self._clock = clock

        self._lock = threading.Lock()
        self._state = LoopState.IDLE
        self._generation = 0
        self._in_flight = False
        self._detections: DetectionSet = ()
        self._last_error: Optional[DetectionError] = None
        self._listeners: List[CycleListener] = []
        self._error_listeners: List[ErrorListener] = []

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is LoopState.RUNNING

    @property
    def detections(self) -> DetectionSet:
        return self._detections

    @property
    def statistics(self) -> Statistics:
        with self._lock:
            return self.stats.snapshot()

    @property
    def tally_snapshot(self) -> Mapping[str, int]:
        with self._lock:
            return self.tally.snapshot()

    @property
    def last_error(self) -> Optional[DetectionError]:
        return self._last_error

    def add_listener(self, listener: CycleListener):
        """Register a callback receiving each committed CycleResult."""
        self._listeners.append(listener)

    def add_error_listener(self, listener: ErrorListener):
        self._error_listeners.append(listener)

    def start(self) -> bool:
        """
        Begin a detection session.

        Returns:
            True if the session started, False if one was already running

        Raises:
            NotReadyError: If the engine or the frame source is not ready.
        """
        with self._lock:
            if not self.engine.is_ready:
                raise NotReadyError("Inference engine is not ready")
            if not self.frame_source.is_ready():
                raise NotReadyError("Frame source is not ready")
            if self._state is LoopState.RUNNING:
                logger.warning("Detection already running, start ignored")
                return False

            if self.frame_source.frame_size is not None:
                self.renderer.resize(*self.frame_source.frame_size)
            self.stats.reset_window()
            self._last_error = None
            self._generation += 1
            self._state = LoopState.RUNNING

        logger.info("Detection started")
        return True

    def stop(self):
        """End the session. An in-flight inference result will be discarded."""
        with self._lock:
            if self._state is LoopState.IDLE:
                return
            self._state = LoopState.IDLE
            self._generation += 1
        logger.info("Detection stopped")

    def clear(self, clear_overlay: bool = True):
        """
        Reset the cumulative and active detection counts.

        Args:
            clear_overlay: Also drop the current detections, zero the tally
                and wipe the overlay surface
        """
        with self._lock:
            self.stats.clear()
            if clear_overlay:
                self._detections = ()
                self.tally.reset()
                self.renderer.clear()
        logger.info("Detections cleared")

    def annotate(self, frame: np.ndarray) -> np.ndarray:
        """Composite the current overlay onto a frame."""
        with self._lock:
            return self.renderer.composite(frame)

    def tick(self) -> bool:
        """
        Run one detection cycle if a session is active.

        Returns:
            True if a cycle completed and its results were committed

        Raises:
            DetectionError: If inference failed. The loop is Idle afterwards.
        """
        with self._lock:
            if self._state is not LoopState.RUNNING or self._in_flight:
                return False
            self._in_flight = True
            generation = self._generation

        try:
            return self._run_cycle(generation)
        finally:
            with self._lock:
                self._in_flight = False

    def _run_cycle(self, generation: int) -> bool:
        frame = self.frame_source.current_frame()
        if frame is None:
            logger.warning("No frame available, skipping cycle")
            return False

        started = self._clock()
        try:
            predictions = self.engine.detect(frame)
            latency_ms = (self._clock() - started) * 1000.0
            settings = self.settings.snapshot()
            detections = select_detections(
                predictions, settings.confidence_threshold, settings.max_detections
            )
        except DetectionError as e:
            if not self._halt(generation, e):
                return False
            raise
        except Exception as e:
            error = DetectionError(f"Detection failed: {e}")
            if not self._halt(generation, error):
                return False
            raise error from e

        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding inference result from a stopped session")
                return False

            statistics = self.stats.record_cycle(detections, latency_ms)
            tally = self.tally.update(detections)
            self.renderer.render(detections, settings.show_confidence)
            self._detections = detections

            result = CycleResult(
                detections=detections,
                statistics=statistics,
                tally=tally,
                frame=frame,
            )

        for listener in self._listeners:
            try:
                listener(result)
            except Exception:
                logger.exception(f"Cycle listener {listener!r} failed")
        return True

    def _halt(self, generation: int, error: DetectionError) -> bool:
        """Move to Idle after a failed cycle. False if the session already ended."""
        with self._lock:
            if generation != self._generation:
                logger.debug(f"Ignoring failure from a stopped session: {error}")
                return False
            self._state = LoopState.IDLE
            self._generation += 1
            self._last_error = error

        logger.error(f"{error}; detection stopped")
        for listener in self._error_listeners:
            try:
                listener(error)
            except Exception:
                logger.exception(f"Error listener {listener!r} failed")
        return True
