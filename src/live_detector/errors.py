"""
Exception hierarchy for the live detection service.
"""


class LiveDetectorError(Exception):
    """Base class for all service errors."""


class InitializationError(LiveDetectorError):
    """Inference engine or frame source unavailable; a session cannot start."""


class ModelUnavailableError(InitializationError):
    """Model failed to load or did not load within its timeout."""


class NotReadyError(InitializationError):
    """start() was called before the engine and frame source were ready."""


class DetectionError(LiveDetectorError):
    """A single cycle's inference call failed."""


class ConfigurationError(LiveDetectorError, ValueError):
    """A settings value was rejected; the previous value is kept."""
