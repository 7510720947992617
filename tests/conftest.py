"""
Pytest configuration and shared fixtures.
"""

import numpy as np
import pytest

from live_detector.config import SettingsStore
from live_detector.loop import DetectionLoop
from live_detector.models import RawPrediction
from live_detector.renderer import Renderer
from live_detector.stats import StatisticsAggregator
from live_detector.tally import ClassTally
from live_detector.utils import get_coco_class_names


class ManualClock:
    """Monotonic clock advanced by hand, in seconds."""

    def __init__(self, start_ms: int = 100_000):
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms / 1000.0

    def advance_ms(self, ms: int):
        self.now_ms += ms


class FakeFrameSource:
    """Frame source returning a blank frame."""

    def __init__(self, width: int = 320, height: int = 240, ready: bool = True):
        self.ready = ready
        self.frame_size = (width, height) if ready else None
        self.frame = np.zeros((height, width, 3), dtype=np.uint8)
        self.reads = 0

    def is_ready(self) -> bool:
        return self.ready

    def current_frame(self):
        self.reads += 1
        return self.frame


class ScriptedEngine:
    """Inference engine that replays queued results.

    Each queued item is either a list of RawPrediction or an exception to
    raise. An optional ``during_detect`` hook runs inside the call, to
    simulate work happening while inference is in flight.
    """

    def __init__(self, ready: bool = True):
        self.ready = ready
        self.results = []
        self.calls = 0
        self.active_calls = 0
        self.max_active_calls = 0
        self.during_detect = None
        self.default = []

    @property
    def is_ready(self) -> bool:
        return self.ready

    def load(self, timeout=None):
        self.ready = True

    def detect(self, frame):
        self.calls += 1
        self.active_calls += 1
        self.max_active_calls = max(self.max_active_calls, self.active_calls)
        try:
            if self.during_detect is not None:
                self.during_detect()
            result = self.results.pop(0) if self.results else self.default
            if isinstance(result, Exception):
                raise result
            return list(result)
        finally:
            self.active_calls -= 1


def make_prediction(label="person", score=0.9, bbox=(10, 20, 50, 60)):
    return RawPrediction(label=label, score=score, bbox=tuple(float(v) for v in bbox))


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def frame_source():
    return FakeFrameSource()


@pytest.fixture
def engine():
    return ScriptedEngine()


@pytest.fixture
def settings():
    return SettingsStore()


@pytest.fixture
def loop(frame_source, engine, settings, clock):
    return DetectionLoop(
        frame_source=frame_source,
        engine=engine,
        settings=settings,
        stats=StatisticsAggregator(clock=clock),
        tally=ClassTally(get_coco_class_names()),
        renderer=Renderer(*frame_source.frame_size),
        clock=clock,
    )
