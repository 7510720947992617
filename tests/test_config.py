"""
Tests for configuration loading and the live settings store.
"""

import threading

import pytest

from live_detector.config import (
    Config,
    DetectionSettings,
    SettingsStore,
    load_config,
    save_example_config,
)
from live_detector.errors import ConfigurationError


def test_defaults():
    settings = SettingsStore().snapshot()
    assert settings.confidence_threshold == 0.5
    assert settings.show_confidence is True
    assert settings.max_detections == 20


@pytest.mark.parametrize("value", [-0.1, 1.01, 5])
def test_out_of_range_threshold_rejected_and_prior_kept(value):
    store = SettingsStore()
    store.confidence_threshold = 0.3
    with pytest.raises(ConfigurationError):
        store.confidence_threshold = value
    assert store.confidence_threshold == 0.3


@pytest.mark.parametrize("value", [0.0, 1.0, 0.75])
def test_threshold_boundaries_accepted(value):
    store = SettingsStore()
    store.confidence_threshold = value
    assert store.confidence_threshold == value


@pytest.mark.parametrize("value", [0, -3, 2.5, True])
def test_invalid_max_detections_rejected(value):
    store = SettingsStore()
    with pytest.raises(ConfigurationError):
        store.max_detections = value
    assert store.max_detections == 20


@pytest.mark.parametrize("value", ["0.7", True, None])
def test_threshold_requires_number(value):
    store = SettingsStore()
    with pytest.raises(ConfigurationError):
        store.confidence_threshold = value
    assert store.confidence_threshold == 0.5


def test_show_confidence_requires_bool():
    store = SettingsStore()
    store.show_confidence = False
    assert store.show_confidence is False
    with pytest.raises(ConfigurationError):
        store.show_confidence = "yes"
    assert store.show_confidence is False


def test_update_is_all_or_nothing():
    store = SettingsStore()
    with pytest.raises(ConfigurationError):
        store.update(confidence_threshold=0.9, max_detections=0)
    assert store.snapshot() == DetectionSettings()


def test_unknown_setting_rejected():
    with pytest.raises(ConfigurationError):
        SettingsStore().update(colour="red")


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        SettingsStore().update(confidence_threshold=2.0)


def test_snapshot_is_immutable():
    snapshot = SettingsStore().snapshot()
    with pytest.raises(Exception):
        snapshot.confidence_threshold = 0.1


def test_snapshot_never_torn():
    store = SettingsStore(DetectionSettings(confidence_threshold=0.1, max_detections=1))
    pairs = [(0.1, 1), (0.9, 9)]
    stop = threading.Event()

    def writer():
        i = 0
        while not stop.is_set():
            threshold, limit = pairs[i % 2]
            store.update(confidence_threshold=threshold, max_detections=limit)
            i += 1

    thread = threading.Thread(target=writer)
    thread.start()
    try:
        for _ in range(2000):
            snap = store.snapshot()
            assert (snap.confidence_threshold, snap.max_detections) in pairs
    finally:
        stop.set()
        thread.join()


def test_load_config_missing_file_uses_defaults(tmp_path):
    assert load_config(str(tmp_path / "missing.yaml")) == Config()


def test_load_config_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(str(path)) == Config()


def test_load_config_reads_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("""
video:
  device: "0"
  fps: 15
detection:
  confidence_threshold: 0.65
  max_detections: 5
logging:
  level: debug
""")
    config = load_config(str(path))
    assert config.video.device == "0"
    assert config.video.fps == 15
    assert config.detection.confidence_threshold == 0.65
    assert config.detection.max_detections == 5
    assert config.logging.level == "DEBUG"


def test_load_config_invalid_values(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("detection:\n  confidence_threshold: 3\n")
    with pytest.raises(RuntimeError):
        load_config(str(path))


def test_example_config_round_trips(tmp_path):
    path = tmp_path / "nested" / "config.yaml"
    save_example_config(str(path))
    config = load_config(str(path))
    assert config.detection == DetectionSettings()
    assert config.stream.port == 8080
