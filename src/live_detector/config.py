"""
Configuration management using Pydantic for validation and type checking.
"""

import os
import threading
import yaml
from pathlib import Path
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError


DEFAULT_CONFIG_PATH = "/etc/live-detector/config.yaml"


class VideoConfig(BaseModel):
    """Video capture configuration."""
    device: str = Field(default="/dev/video0", description="Video device path, index or file")
    width: int = Field(default=640, ge=160, le=3840, description="Capture width")
    height: int = Field(default=480, ge=120, le=2160, description="Capture height")
    fps: int = Field(default=30, ge=1, le=60, description="Capture FPS")


class InferenceConfig(BaseModel):
    """Inference engine configuration."""
    model_path: str = Field(
        default="/opt/live-detector/models/ssd_mobilenet_v2_coco/frozen_inference_graph.pb",
        description="Path to the frozen TensorFlow graph"
    )
    config_path: str = Field(
        default="/opt/live-detector/models/ssd_mobilenet_v2_coco/ssd_mobilenet_v2_coco.pbtxt",
        description="Path to the OpenCV graph description"
    )
    input_size: int = Field(
        default=300, ge=128, le=1280, description="Model input size"
    )
    score_floor: float = Field(
        default=0.2, ge=0.0, le=1.0, description="Lowest score the engine reports"
    )
    load_timeout: float = Field(
        default=30.0, gt=0.0, description="Seconds to wait for the model to load"
    )


class DetectionSettings(BaseModel):
    """Per-cycle detection settings, read as one immutable snapshot."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    confidence_threshold: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Minimum confidence to report"
    )
    show_confidence: bool = Field(
        default=True, description="Append the confidence percentage to labels"
    )
    max_detections: int = Field(
        default=20, ge=1, description="Maximum detections reported per frame"
    )

    @field_validator("confidence_threshold", mode="before")
    @classmethod
    def validate_confidence_threshold(cls, v: Any) -> Any:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("confidence_threshold must be a number")
        return v

    @field_validator("show_confidence", mode="before")
    @classmethod
    def validate_show_confidence(cls, v: Any) -> Any:
        """Only accept real booleans, not truthy strings or numbers."""
        if not isinstance(v, bool):
            raise ValueError("show_confidence must be a boolean")
        return v

    @field_validator("max_detections", mode="before")
    @classmethod
    def validate_max_detections(cls, v: Any) -> Any:
        if isinstance(v, bool) or not isinstance(v, int):
            raise ValueError("max_detections must be an integer")
        return v


class StreamConfig(BaseModel):
    """Streaming server configuration."""
    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8080, ge=1024, le=65535, description="Server port")
    jpeg_quality: int = Field(
        default=80, ge=1, le=100, description="JPEG compression quality"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Logging level")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid logging level. Must be one of {valid_levels}")
        return v


class Config(BaseModel):
    """Main configuration class."""
    video: VideoConfig = Field(default_factory=VideoConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    detection: DetectionSettings = Field(default_factory=DetectionSettings)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class SettingsStore:
    """
    Owner of the live DetectionSettings.

    Writers replace the whole settings object under a lock, so a reader
    calling snapshot() never sees a threshold from one update paired with a
    limit from another. Rejected values raise ConfigurationError and the
    previous settings stay in effect.
    """

    def __init__(self, settings: Optional[DetectionSettings] = None):
        self._settings = settings or DetectionSettings()
        self._lock = threading.Lock()

    def snapshot(self) -> DetectionSettings:
        """Return the current settings (immutable)."""
        with self._lock:
            return self._settings

    def update(self, **changes: Any) -> DetectionSettings:
        """
        Atomically apply one or more field changes.

        Raises:
            ConfigurationError: If any field is unknown or out of range.
        """
        unknown = set(changes) - set(DetectionSettings.model_fields)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        with self._lock:
            merged = {**self._settings.model_dump(), **changes}
            try:
                new_settings = DetectionSettings(**merged)
            except ValidationError as e:
                messages = "; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                )
                raise ConfigurationError(messages) from e
            self._settings = new_settings
            return new_settings

    @property
    def confidence_threshold(self) -> float:
        return self.snapshot().confidence_threshold

    @confidence_threshold.setter
    def confidence_threshold(self, value: float):
        self.update(confidence_threshold=value)

    @property
    def show_confidence(self) -> bool:
        return self.snapshot().show_confidence

    @show_confidence.setter
    def show_confidence(self, value: bool):
        self.update(show_confidence=value)

    @property
    def max_detections(self) -> int:
        return self.snapshot().max_detections

    @max_detections.setter
    def max_detections(self, value: int):
        self.update(max_detections=value)


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file with sensible defaults.

    Args:
        config_path: Path to configuration file. If None, uses default location.

    Returns:
        Config object with loaded settings.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    # If config file doesn't exist, use defaults
    if not os.path.exists(config_path):
        return Config()

    try:
        with open(config_path, 'r') as f:
            config_dict = yaml.safe_load(f)

        # Handle empty file
        if config_dict is None:
            return Config()

        return Config(**config_dict)
    except Exception as e:
        raise RuntimeError(f"Failed to load configuration from {config_path}: {e}") from e


def save_example_config(output_path: str) -> None:
    """
    Save an example configuration file with comments.

    Args:
        output_path: Where to save the example config.
    """
    example_yaml = """# Video capture settings
video:
  device: "/dev/video0"  # V4L2 device path, camera index or video file
  width: 640             # Capture width in pixels
  height: 480            # Capture height in pixels
  fps: 30                # Frames per second (also paces the detection loop)

# Inference settings
inference:
  model_path: "/opt/live-detector/models/ssd_mobilenet_v2_coco/frozen_inference_graph.pb"
  config_path: "/opt/live-detector/models/ssd_mobilenet_v2_coco/ssd_mobilenet_v2_coco.pbtxt"
  input_size: 300        # Model input size (300 for SSD-MobileNet)
  score_floor: 0.2       # Lowest score the engine reports (0.0-1.0)
  load_timeout: 30       # Seconds to wait for the model to load

# Detection settings (adjustable at runtime via /api/settings)
detection:
  confidence_threshold: 0.5  # Minimum confidence for reported detections (0.0-1.0)
  show_confidence: true      # Show "label (NN%)" instead of just the label
  max_detections: 20         # Maximum detections drawn per frame

# Streaming settings
stream:
  host: "0.0.0.0"      # Bind to all interfaces
  port: 8080           # HTTP server port
  jpeg_quality: 80     # JPEG compression quality (1-100)

# Logging
logging:
  level: "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
"""

    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        f.write(example_yaml)
