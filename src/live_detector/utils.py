"""
Utility functions for labels, colours and general helpers.
"""

import math
from typing import Dict, Tuple


COCO_CLASS_NAMES: Tuple[str, ...] = (
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train", "truck",
    "boat", "traffic light", "fire hydrant", "stop sign", "parking meter", "bench",
    "bird", "cat", "dog", "horse", "sheep", "cow", "elephant", "bear", "zebra",
    "giraffe", "backpack", "umbrella", "handbag", "tie", "suitcase", "frisbee",
    "skis", "snowboard", "sports ball", "kite", "baseball bat", "baseball glove",
    "skateboard", "surfboard", "tennis racket", "bottle", "wine glass", "cup",
    "fork", "knife", "spoon", "bowl", "banana", "apple", "sandwich", "orange",
    "broccoli", "carrot", "hot dog", "pizza", "donut", "cake", "chair", "couch",
    "potted plant", "bed", "dining table", "toilet", "tv", "laptop", "mouse",
    "remote", "keyboard", "cell phone", "microwave", "oven", "toaster", "sink",
    "refrigerator", "book", "clock", "vase", "scissors", "teddy bear", "hair drier",
    "toothbrush",
)

# COCO category ids skipped by the 2017 annotations (the TF object detection
# models still emit ids on the original 1..90 scale).
_UNUSED_COCO_IDS = (12, 26, 29, 30, 45, 66, 68, 69, 71, 83)

OVERLAY_PALETTE_HEX: Tuple[str, ...] = (
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEAA7",
    "#DDA0DD", "#98D8C8", "#F7DC6F", "#BB8FCE", "#85C1E9",
    "#F8C471", "#82E0AA", "#F1948A", "#85C1E9", "#D7BDE2",
    "#A3E4D7", "#FAD7A0", "#D5A6BD", "#AED6F1", "#ABEBC6",
)


def get_coco_class_names() -> Tuple[str, ...]:
    """
    Get COCO dataset class names (80 classes).

    Returns:
        Tuple of class names in canonical order
    """
    return COCO_CLASS_NAMES


def _build_category_map() -> Dict[int, str]:
    names = iter(COCO_CLASS_NAMES)
    return {
        category_id: next(names)
        for category_id in range(1, 91)
        if category_id not in _UNUSED_COCO_IDS
    }


COCO_CATEGORY_NAMES: Dict[int, str] = _build_category_map()


def get_category_name(category_id: int) -> str:
    """Get class name for a 1-based COCO category id."""
    return COCO_CATEGORY_NAMES.get(int(category_id), f"class_{int(category_id)}")


def hex_to_bgr(color: str) -> Tuple[int, int, int]:
    """
    Convert a ``#RRGGBB`` colour to an OpenCV BGR tuple.

    Args:
        color: Hex colour string

    Returns:
        (blue, green, red)
    """
    value = color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected #RRGGBB colour, got {color!r}")
    red, green, blue = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return blue, green, red


def get_overlay_palette() -> Tuple[Tuple[int, int, int], ...]:
    """Overlay palette in BGR order."""
    return tuple(hex_to_bgr(c) for c in OVERLAY_PALETTE_HEX)


def confidence_percent(confidence: float) -> int:
    """Confidence as a whole percentage, rounding halves up."""
    return int(math.floor(confidence * 100 + 0.5))


def format_label(label: str, confidence: float, show_confidence: bool) -> str:
    """Text drawn above a detection box."""
    if show_confidence:
        return f"{label} ({confidence_percent(confidence)}%)"
    return label
