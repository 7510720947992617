"""
Inference engine interface and OpenCV DNN SSD-MobileNet implementation.
"""

import os
import cv2
import logging
import numpy as np
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import List, Optional, Protocol, runtime_checkable

from .config import InferenceConfig
from .errors import DetectionError, ModelUnavailableError
from .models import RawPrediction
from .utils import get_category_name

logger = logging.getLogger(__name__)


@runtime_checkable
class InferenceEngine(Protocol):
    """Protocol for inference engines driven by the detection loop."""

    @property
    def is_ready(self) -> bool:
        ...

    def load(self, timeout: Optional[float] = None) -> None:
        """Load the model, raising ModelUnavailableError on failure or timeout."""
        ...

    def detect(self, frame: np.ndarray) -> List[RawPrediction]:
        """Run the model on a frame, raising DetectionError on failure."""
        ...


class SSDMobileNetEngine:
    """SSD-MobileNet COCO detector using the OpenCV DNN module."""

    def __init__(self, config: InferenceConfig):
        self.config = config
        self.model: Optional[cv2.dnn_DetectionModel] = None
        self.frame_count = 0

    @property
    def is_ready(self) -> bool:
        return self.model is not None

    def _build_model(self) -> cv2.dnn_DetectionModel:
        for path in (self.config.model_path, self.config.config_path):
            if not os.path.exists(path):
                raise FileNotFoundError(f"Model file not found: {path}")

        model = cv2.dnn_DetectionModel(self.config.model_path, self.config.config_path)
        size = self.config.input_size
        model.setInputSize(size, size)
        model.setInputScale(1.0 / 127.5)
        model.setInputMean((127.5, 127.5, 127.5))
        model.setInputSwapRB(True)
        return model

    def load(self, timeout: Optional[float] = None) -> None:
        """
        Load the network, waiting at most ``timeout`` seconds.

        Raises:
            ModelUnavailableError: If the model cannot be loaded in time.
        """
        if timeout is None:
            timeout = self.config.load_timeout

        logger.info(f"Loading model: {self.config.model_path} (timeout {timeout:.0f}s)")
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="model-load")
        try:
            future = executor.submit(self._build_model)
            self.model = future.result(timeout=timeout)
        except FutureTimeout as e:
            raise ModelUnavailableError(
                f"Model loading timed out after {timeout:.0f}s"
            ) from e
        except (OSError, cv2.error) as e:
            raise ModelUnavailableError(f"Failed to load model: {e}") from e
        finally:
            executor.shutdown(wait=False)

        logger.info("Model loaded successfully")

    def detect(self, frame: np.ndarray) -> List[RawPrediction]:
        """
        Detect objects in a frame.

        Returns:
            Predictions in network output order, each with an
            ``[x, y, width, height]`` box in frame pixels.
        """
        if self.model is None:
            raise DetectionError("Model is not loaded")

        try:
            class_ids, scores, boxes = self.model.detect(
                frame, confThreshold=self.config.score_floor
            )
        except cv2.error as e:
            raise DetectionError(f"Inference failed: {e}") from e

        self.frame_count += 1
        if len(class_ids) == 0:
            return []

        h, w = frame.shape[:2]
        predictions = []
        for class_id, score, box in zip(
            np.asarray(class_ids).flatten(), np.asarray(scores).flatten(), boxes
        ):
            x, y, bw, bh = (float(v) for v in box)
            # Clip to the frame so boxes stay nonnegative
            x = min(max(x, 0.0), float(w))
            y = min(max(y, 0.0), float(h))
            bw = max(0.0, min(bw, w - x))
            bh = max(0.0, min(bh, h - y))
            predictions.append(RawPrediction(
                label=get_category_name(int(class_id)),
                score=min(max(float(score), 0.0), 1.0),
                bbox=(x, y, bw, bh),
            ))

        return predictions

    def cleanup(self):
        """Release model resources."""
        self.model = None
