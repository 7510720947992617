"""
Data types shared by the detection loop and its collaborators.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in frame pixel units.

    Attributes:
        x: Left edge.
        y: Top edge.
        width: Box width.
        height: Box height.
    """

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        if min(self.x, self.y, self.width, self.height) < 0:
            raise ValueError(f"Bounding box values must be nonnegative: {self}")

    @classmethod
    def from_xywh(cls, bbox: Sequence[float]) -> "BoundingBox":
        x, y, width, height = (float(v) for v in bbox)
        return cls(x=x, y=y, width=width, height=height)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class RawPrediction:
    """Unfiltered prediction as returned by an inference engine.

    Attributes:
        label: Class label name (``class`` in the engine wire format).
        score: Confidence score.
        bbox: Box as ``[x, y, width, height]``.
    """

    label: str
    score: float
    bbox: Tuple[float, float, float, float]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RawPrediction":
        """Build from the ``{class, score, bbox}`` wire shape."""
        return cls(
            label=str(data["class"]),
            score=float(data["score"]),
            bbox=tuple(float(v) for v in data["bbox"]),
        )


@dataclass(frozen=True)
class Detection:
    """One labeled, scored, boxed object for a single frame.

    Attributes:
        label: Class label name.
        confidence: Confidence score (0.0 to 1.0).
        box: Bounding box in frame pixels.
    """

    label: str
    confidence: float
    box: BoundingBox

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be in [0, 1], got {self.confidence}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "confidence": round(self.confidence, 4),
            "box": {
                "x": self.box.x,
                "y": self.box.y,
                "width": self.box.width,
                "height": self.box.height,
            },
        }


# Ordered detections for one cycle, replaced wholesale every cycle.
DetectionSet = Tuple[Detection, ...]


@dataclass(frozen=True)
class Statistics:
    """Snapshot of session metrics."""

    total_detections: int = 0
    active_objects: int = 0
    fps: int = 0
    last_latency_ms: float = 0.0
    cycles: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_detections": self.total_detections,
            "active_objects": self.active_objects,
            "fps": self.fps,
            "last_latency_ms": self.last_latency_ms,
            "cycles": self.cycles,
        }


@dataclass(frozen=True)
class CycleResult:
    """Everything a committed cycle produced, pushed to loop listeners."""

    detections: DetectionSet
    statistics: Statistics
    tally: Mapping[str, int]
    frame: Optional[np.ndarray] = field(default=None, repr=False, compare=False)
