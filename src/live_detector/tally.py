"""
Per-class occurrence counts over the fixed label vocabulary.
"""

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Sequence

from .models import Detection


class ClassTally:
    """Counts of each vocabulary label among the current detections.

    The mapping is rebuilt from zero every cycle. Labels outside the
    vocabulary are ignored.
    """

    def __init__(self, vocabulary: Sequence[str]):
        self.vocabulary = tuple(vocabulary)
        if len(set(self.vocabulary)) != len(self.vocabulary):
            raise ValueError("Class vocabulary contains duplicate labels")
        self._counts: Dict[str, int] = dict.fromkeys(self.vocabulary, 0)

    def update(self, detections: Iterable[Detection]) -> Mapping[str, int]:
        counts = dict.fromkeys(self.vocabulary, 0)
        for detection in detections:
            if detection.label in counts:
                counts[detection.label] += 1
        self._counts = counts
        return self.snapshot()

    def reset(self):
        self._counts = dict.fromkeys(self.vocabulary, 0)

    def snapshot(self) -> Mapping[str, int]:
        """Read-only view of the counts for the latest cycle."""
        return MappingProxyType(dict(self._counts))


def summarize_detections(detections: Iterable[Detection]) -> List[Dict]:
    """
    Group detections by label for display.

    Returns:
        One entry per label, in first-seen order, with the label's count and
        highest confidence.
    """
    summary: Dict[str, Dict] = {}
    for detection in detections:
        entry = summary.setdefault(
            detection.label,
            {"label": detection.label, "count": 0, "max_confidence": 0.0},
        )
        entry["count"] += 1
        entry["max_confidence"] = max(entry["max_confidence"], detection.confidence)
    return list(summary.values())
