"""
Confidence filtering and capping of raw engine output.
"""

import logging
from typing import Iterable, List

from .models import BoundingBox, Detection, DetectionSet, RawPrediction

logger = logging.getLogger(__name__)


def to_detection(prediction: RawPrediction) -> Detection:
    """Convert an engine prediction into an immutable Detection."""
    return Detection(
        label=prediction.label,
        confidence=float(prediction.score),
        box=BoundingBox.from_xywh(prediction.bbox),
    )


def select_detections(predictions: Iterable[RawPrediction], threshold: float,
                      max_detections: int) -> DetectionSet:
    """
    Reduce raw predictions to the frame's reportable detection set.

    Keeps predictions scoring at or above ``threshold`` and truncates to the
    first ``max_detections`` survivors. The engine's relative order is kept;
    results are never re-sorted by score.

    Args:
        predictions: Raw predictions in engine order
        threshold: Minimum confidence (inclusive)
        max_detections: Maximum number of detections to keep

    Returns:
        Tuple of Detection objects
    """
    if max_detections <= 0:
        return ()

    kept: List[Detection] = []
    for prediction in predictions:
        if prediction.score < threshold:
            continue
        kept.append(to_detection(prediction))
        if len(kept) >= max_detections:
            break

    return tuple(kept)
