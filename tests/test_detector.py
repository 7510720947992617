"""
Tests for confidence filtering and capping.
"""

import pytest

from live_detector.detector import select_detections, to_detection
from live_detector.models import BoundingBox, Detection

from conftest import make_prediction


def test_keeps_engine_order_and_caps():
    raw = [
        make_prediction("a", 0.9),
        make_prediction("b", 0.3),
        make_prediction("c", 0.7),
    ]
    result = select_detections(raw, threshold=0.5, max_detections=2)
    assert [d.label for d in result] == ["a", "c"]
    assert [d.confidence for d in result] == [0.9, 0.7]


def test_does_not_resort_by_score():
    raw = [make_prediction("low", 0.6), make_prediction("high", 0.95)]
    result = select_detections(raw, threshold=0.5, max_detections=10)
    assert [d.label for d in result] == ["low", "high"]


def test_threshold_boundary_is_inclusive():
    raw = [make_prediction("edge", 0.5), make_prediction("below", 0.4999)]
    result = select_detections(raw, threshold=0.5, max_detections=10)
    assert [d.label for d in result] == ["edge"]


@pytest.mark.parametrize("threshold", [0.0, 0.25, 0.5, 0.75, 1.0])
def test_result_is_exactly_scores_at_or_above_threshold(threshold):
    scores = [0.0, 0.1, 0.25, 0.4, 0.5, 0.6, 0.75, 0.99, 1.0]
    raw = [make_prediction(f"p{i}", s) for i, s in enumerate(scores)]
    result = select_detections(raw, threshold=threshold, max_detections=100)
    assert [d.confidence for d in result] == [s for s in scores if s >= threshold]


@pytest.mark.parametrize("max_detections", [1, 2, 5, 50])
def test_length_never_exceeds_max(max_detections):
    raw = [make_prediction(score=0.9) for _ in range(10)]
    result = select_detections(raw, threshold=0.5, max_detections=max_detections)
    assert len(result) == min(10, max_detections)


def test_threshold_one_keeps_only_perfect_scores():
    raw = [make_prediction(score=0.99), make_prediction(score=0.5)]
    assert select_detections(raw, threshold=1.0, max_detections=5) == ()


def test_zero_max_detections_is_empty():
    raw = [make_prediction(score=0.9)]
    assert select_detections(raw, threshold=0.0, max_detections=0) == ()


def test_to_detection_converts_box():
    detection = to_detection(make_prediction("dog", 0.8, (1, 2, 3, 4)))
    assert detection == Detection(
        label="dog", confidence=0.8, box=BoundingBox(1.0, 2.0, 3.0, 4.0)
    )


def test_result_is_immutable_tuple():
    result = select_detections([make_prediction()], threshold=0.0, max_detections=5)
    assert isinstance(result, tuple)
    with pytest.raises(AttributeError):
        result[0].label = "other"
