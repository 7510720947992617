"""
Tests for CLI wiring.
"""

from live_detector.__main__ import build_loop, main, parse_args
from live_detector.config import Config, load_config
from live_detector.loop import LoopState

from conftest import FakeFrameSource, ScriptedEngine


def test_parse_args_defaults():
    args = parse_args([])
    assert args.config == "/etc/live-detector/config.yaml"
    assert not args.debug
    assert not args.no_autostart
    assert args.write_example_config is None


def test_write_example_config(tmp_path, capsys):
    path = tmp_path / "example.yaml"
    assert main(["--write-example-config", str(path)]) == 0
    assert path.exists()
    assert load_config(str(path)) == Config()
    assert str(path) in capsys.readouterr().out


def test_bad_config_exits_nonzero(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("stream:\n  port: 1\n")
    assert main(["-c", str(path)]) == 1


def test_build_loop_uses_config_and_frame_size():
    config = Config(detection={"confidence_threshold": 0.7, "max_detections": 3})
    loop = build_loop(config, FakeFrameSource(200, 100), ScriptedEngine())
    assert loop.state is LoopState.IDLE
    assert loop.renderer.size == (200, 100)
    assert loop.settings.confidence_threshold == 0.7
    assert loop.settings.max_detections == 3
    assert len(loop.tally.vocabulary) == 80
