"""
Live Object Detection

Real-time object detection overlay for a camera feed. Runs an SSD-MobileNet
COCO model frame by frame, keeps running statistics and a per-class tally,
and streams the annotated video via HTTP MJPEG.
"""

__version__ = "1.0.0"
__author__ = "Live Detector Contributors"
__license__ = "MIT"
