"""
Draws the current detection set onto a transparent overlay surface.
"""

import cv2
import logging
import numpy as np
from typing import Iterable, Optional, Sequence, Tuple

from .models import Detection
from .utils import format_label, get_overlay_palette

logger = logging.getLogger(__name__)

BOX_THICKNESS = 3
FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.5
FONT_THICKNESS = 1
LABEL_PAD_X = 6
LABEL_PAD_Y = 4
TEXT_COLOR = (255, 255, 255, 255)


class Renderer:
    """
    Owner of the overlay surface (BGRA, fully transparent when clear).

    Every render() starts from a cleared surface, so the same detections and
    settings always produce the same pixels. Box colours come from the
    palette by position in the detection set, not by label.
    """

    def __init__(self, width: int = 640, height: int = 480,
                 palette: Optional[Sequence[Tuple[int, int, int]]] = None):
        self.palette = tuple(palette) if palette is not None else get_overlay_palette()
        if not self.palette:
            raise ValueError("Renderer palette must not be empty")
        self.surface = np.zeros((height, width, 4), dtype=np.uint8)

    @property
    def size(self) -> Tuple[int, int]:
        """Surface size as (width, height)."""
        height, width = self.surface.shape[:2]
        return width, height

    def resize(self, width: int, height: int):
        """Re-allocate the surface to match the frame dimensions."""
        if (width, height) != self.size:
            logger.info(f"Overlay surface resized to {width}x{height}")
            self.surface = np.zeros((height, width, 4), dtype=np.uint8)
        else:
            self.clear()

    def clear(self):
        self.surface[:] = 0

    def color_for(self, index: int) -> Tuple[int, int, int, int]:
        blue, green, red = self.palette[index % len(self.palette)]
        return blue, green, red, 255

    def render(self, detections: Iterable[Detection], show_confidence: bool) -> np.ndarray:
        """
        Clear the surface and draw every detection.

        Args:
            detections: Detection set for the current cycle
            show_confidence: Append "(NN%)" to each label

        Returns:
            The overlay surface
        """
        self.clear()

        for index, detection in enumerate(detections):
            self._draw_detection(detection, self.color_for(index), show_confidence)

        return self.surface

    def _draw_detection(self, detection: Detection, color: Tuple[int, int, int, int],
                        show_confidence: bool):
        box = detection.box
        x1, y1 = int(round(box.x)), int(round(box.y))
        x2, y2 = int(round(box.x + box.width)), int(round(box.y + box.height))

        cv2.rectangle(self.surface, (x1, y1), (x2, y2), color, BOX_THICKNESS)

        label = format_label(detection.label, detection.confidence, show_confidence)
        (label_w, label_h), baseline = cv2.getTextSize(
            label, FONT, FONT_SCALE, FONT_THICKNESS
        )

        # Label background sits just above the box's top-left corner.
        # Coordinates outside the surface are clipped by OpenCV.
        cv2.rectangle(
            self.surface,
            (x1, y1 - label_h - baseline - 2 * LABEL_PAD_Y),
            (x1 + label_w + 2 * LABEL_PAD_X, y1),
            color,
            -1
        )

        cv2.putText(
            self.surface,
            label,
            (x1 + LABEL_PAD_X, y1 - baseline - LABEL_PAD_Y),
            FONT,
            FONT_SCALE,
            TEXT_COLOR,
            FONT_THICKNESS,
            cv2.LINE_AA
        )

    def composite(self, frame: np.ndarray) -> np.ndarray:
        """
        Blend the overlay onto a BGR frame.

        Args:
            frame: Input frame (BGR format)

        Returns:
            Annotated copy of the frame
        """
        overlay = self.surface
        h, w = frame.shape[:2]
        if overlay.shape[:2] != (h, w):
            overlay = cv2.resize(overlay, (w, h), interpolation=cv2.INTER_NEAREST)

        alpha = overlay[:, :, 3:4].astype(np.float32) / 255.0
        if not alpha.any():
            return frame.copy()

        blended = frame.astype(np.float32) * (1.0 - alpha) + \
            overlay[:, :, :3].astype(np.float32) * alpha
        return blended.astype(np.uint8)
