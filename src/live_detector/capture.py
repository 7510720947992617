"""
Video capture module using OpenCV. Serves as the detection loop's frame source.
"""

import cv2
import time
import logging
import numpy as np
from typing import Optional, Protocol, Tuple, runtime_checkable
from .config import VideoConfig


logger = logging.getLogger(__name__)

VIDEO_FILE_EXTENSIONS = ('.mp4', '.avi', '.mkv', '.mov', '.webm')


@runtime_checkable
class FrameSource(Protocol):
    """Protocol for frame sources driven by the detection loop."""

    frame_size: Optional[Tuple[int, int]]

    def is_ready(self) -> bool:
        ...

    def current_frame(self) -> Optional[np.ndarray]:
        ...


class VideoCapture:
    """
    Video capture class with reconnection and error handling.

    Frame dimensions are fixed when the device opens and exposed through
    ``frame_size`` so the overlay surface can be sized to match.
    """

    def __init__(self, config: VideoConfig):
        """
        Initialize video capture.

        Args:
            config: Video configuration
        """
        self.config = config
        self.cap: Optional[cv2.VideoCapture] = None
        self.is_opened = False
        self.last_frame: Optional[np.ndarray] = None
        self.frame_count = 0
        self.frame_size: Optional[Tuple[int, int]] = None

    def open(self) -> bool:
        """
        Open video capture device.

        Returns:
            True if successful, False otherwise
        """
        try:
            logger.info(f"Opening video device: {self.config.device}")
            device = self.config.device

            if device.endswith(VIDEO_FILE_EXTENSIONS):
                logger.info(f"Detected video file: {device}")
                self.cap = cv2.VideoCapture(device)
            elif device.isdigit():
                self.cap = cv2.VideoCapture(int(device))
            else:
                # Use V4L2 backend for camera devices
                self.cap = cv2.VideoCapture(device, cv2.CAP_V4L2)

            if not self.cap.isOpened():
                logger.error(f"Failed to open {device}")
                return False

            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
            self.cap.set(cv2.CAP_PROP_FPS, self.config.fps)

            # Verify actual settings
            actual_width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
            actual_height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
            actual_fps = int(self.cap.get(cv2.CAP_PROP_FPS))

            logger.info(
                f"Camera opened: {actual_width}x{actual_height} @ {actual_fps} FPS"
            )

            if actual_width > 0 and actual_height > 0:
                self.frame_size = (actual_width, actual_height)
            self.is_opened = True
            return True

        except cv2.error as e:
            logger.error(f"Error opening camera: {e}")
            self.is_opened = False
            return False

    def read(self) -> Optional[np.ndarray]:
        """
        Read a frame from the camera.

        Returns:
            Frame as numpy array (BGR), or None if failed
        """
        cap = self.cap
        if not self.is_opened or cap is None:
            return None

        try:
            ret, frame = cap.read()

            if ret and frame is not None:
                self.last_frame = frame
                self.frame_count += 1
                if self.frame_size is None:
                    h, w = frame.shape[:2]
                    self.frame_size = (w, h)
                return frame
            else:
                logger.warning("Failed to read frame from camera")
                self.is_opened = False
                return None

        except cv2.error as e:
            logger.error(f"Error reading frame: {e}")
            self.is_opened = False
            return None

    def is_ready(self) -> bool:
        """True once the device is open and the frame size is known."""
        return self.is_opened and self.frame_size is not None

    def current_frame(self) -> Optional[np.ndarray]:
        """
        Most recent frame for the detection loop.

        None when the device is closed or the read fails; a stale frame is
        never handed back, so the loop skips ticks until reconnect.
        """
        return self.read()

    def release(self):
        """Release video capture resources."""
        if self.cap is not None:
            logger.info("Releasing video capture")
            self.cap.release()
            self.cap = None
        self.is_opened = False

    def reconnect(self, retry_interval: float = 5.0) -> bool:
        """
        Try to reconnect to camera.

        Args:
            retry_interval: Seconds to wait between retries

        Returns:
            True if reconnected successfully
        """
        logger.info(f"Attempting to reconnect to {self.config.device}...")

        self.release()
        time.sleep(retry_interval)
        return self.open()

    def get_last_frame(self) -> Optional[np.ndarray]:
        """
        Get the last successfully captured frame.

        Returns:
            Last frame or None
        """
        return self.last_frame

    def __del__(self):
        """Cleanup on deletion."""
        self.release()
