#!/usr/bin/env python3
"""
Test script to check model loading and inference on a single frame.
"""

import sys
import logging
import argparse

import cv2

from live_detector.config import load_config
from live_detector.detector import select_detections
from live_detector.errors import LiveDetectorError
from live_detector.inference import SSDMobileNetEngine
from live_detector.renderer import Renderer
from live_detector.utils import format_label

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='Run one detection on a frame')
    parser.add_argument('-c', '--config', default=None, help='Configuration file')
    parser.add_argument('-i', '--image', default=None,
                        help='Image file (default: capture from the configured camera)')
    parser.add_argument('-o', '--output', default='/tmp/test_detections.jpg',
                        help='Where to save the annotated frame')
    args = parser.parse_args()

    config = load_config(args.config)

    engine = SSDMobileNetEngine(config.inference)
    try:
        engine.load()
    except LiveDetectorError as e:
        logger.error(f"Failed to load model: {e}")
        return 1

    if args.image:
        frame = cv2.imread(args.image)
    else:
        cap = cv2.VideoCapture(config.video.device)
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, config.video.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, config.video.height)
        ret, frame = cap.read()
        cap.release()
        if not ret:
            frame = None

    if frame is None:
        logger.error("Failed to get a frame")
        return 1

    logger.info(f"Frame: {frame.shape}, dtype: {frame.dtype}")

    try:
        predictions = engine.detect(frame)
    except LiveDetectorError as e:
        logger.error(f"Inference failed: {e}")
        return 1

    logger.info(f"Raw predictions: {len(predictions)}")
    for p in predictions:
        logger.info(f"  {p.label:<16} score={p.score:.3f} bbox={[round(v) for v in p.bbox]}")

    settings = config.detection
    detections = select_detections(
        predictions, settings.confidence_threshold, settings.max_detections
    )
    logger.info(
        f"Kept {len(detections)} at threshold {settings.confidence_threshold} "
        f"(max {settings.max_detections})"
    )
    for d in detections:
        logger.info(f"  {format_label(d.label, d.confidence, True)}")

    h, w = frame.shape[:2]
    renderer = Renderer(w, h)
    renderer.render(detections, settings.show_confidence)
    cv2.imwrite(args.output, renderer.composite(frame))
    logger.info(f"Annotated frame saved to {args.output}")

    engine.cleanup()
    return 0


if __name__ == "__main__":
    sys.exit(main())
