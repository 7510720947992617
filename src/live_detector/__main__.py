"""
Main entry point for the live object detection service.
"""

import sys
import time
import signal
import logging
import argparse

from . import __version__
from .capture import VideoCapture
from .config import DEFAULT_CONFIG_PATH, Config, SettingsStore, load_config, save_example_config
from .errors import InitializationError, NotReadyError
from .inference import SSDMobileNetEngine
from .loop import DetectionLoop
from .models import CycleResult
from .renderer import Renderer
from .scheduler import FrameClock
from .stats import StatisticsAggregator
from .streamer import MJPEGStreamer
from .tally import ClassTally
from .utils import get_coco_class_names

STATS_LOG_INTERVAL = 30.0
RECONNECT_INTERVAL = 5.0

# Global shutdown flag
shutdown_flag = False

logger = logging.getLogger(__name__)


def signal_handler(signum, frame):
    """Handle shutdown signals."""
    global shutdown_flag
    logger.info(f"Received signal {signum}, shutting down...")
    shutdown_flag = True


def setup_logging(level: str = "INFO"):
    """
    Setup logging configuration.

    Args:
        level: Logging level
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Live Object Detection Service')
    parser.add_argument(
        '-c', '--config',
        default=DEFAULT_CONFIG_PATH,
        help='Path to configuration file'
    )
    parser.add_argument(
        '-d', '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--no-autostart',
        action='store_true',
        help='Wait for POST /api/start instead of detecting immediately'
    )
    parser.add_argument(
        '--write-example-config',
        metavar='PATH',
        help='Write an example configuration file and exit'
    )
    return parser.parse_args(argv)


class StatsLogger:
    """Loop listener that logs a statistics line at a fixed interval."""

    def __init__(self, interval: float = STATS_LOG_INTERVAL):
        self.interval = interval
        self.last_log_time = time.monotonic()

    def __call__(self, result: CycleResult):
        now = time.monotonic()
        if now - self.last_log_time < self.interval:
            return
        stats = result.statistics
        logger.info(
            f"Stats: FPS={stats.fps}, Inference={stats.last_latency_ms:.1f}ms, "
            f"Detections={stats.active_objects}, Total={stats.total_detections}"
        )
        self.last_log_time = now


def build_loop(config: Config, video_capture: VideoCapture,
               engine: SSDMobileNetEngine) -> DetectionLoop:
    """Wire the detection loop and its collaborators from configuration."""
    width, height = video_capture.frame_size or (config.video.width, config.video.height)
    return DetectionLoop(
        frame_source=video_capture,
        engine=engine,
        settings=SettingsStore(config.detection),
        stats=StatisticsAggregator(),
        tally=ClassTally(get_coco_class_names()),
        renderer=Renderer(width, height),
    )


def main(argv=None):
    """Main application entry point."""
    global shutdown_flag

    args = parse_args(argv)

    if args.write_example_config:
        save_example_config(args.write_example_config)
        print(f"Example configuration written to {args.write_example_config}")
        return 0

    try:
        config = load_config(args.config)
    except RuntimeError as e:
        print(f"ERROR: Failed to load configuration: {e}", file=sys.stderr)
        return 1

    log_level = "DEBUG" if args.debug else config.logging.level
    setup_logging(log_level)

    logger.info("=" * 70)
    logger.info(f"Live Object Detection v{__version__}")
    logger.info("=" * 70)

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    video_capture = None
    engine = None
    streamer = None
    frame_clock = None

    try:
        logger.info("Loading detection model...")
        engine = SSDMobileNetEngine(config.inference)
        engine.load()

        logger.info("Initializing video capture...")
        video_capture = VideoCapture(config.video)
        if not video_capture.open():
            logger.error("Failed to open camera initially, will retry...")

        loop = build_loop(config, video_capture, engine)

        streamer = MJPEGStreamer(config.stream, loop, loop.settings)
        loop.add_listener(streamer.on_cycle)
        loop.add_listener(StatsLogger())
        streamer.start()

        frame_clock = FrameClock(loop, fps=config.video.fps)
        frame_clock.start()

        logger.info(f"Stream available at http://<your-ip>:{config.stream.port}/")

        if not args.no_autostart:
            try:
                loop.start()
            except NotReadyError as e:
                logger.warning(f"Detection not started: {e}; use POST /api/start")

        run_until_shutdown(video_capture)

    except InitializationError as e:
        logger.error(f"Initialization failed: {e}")
        return 1

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    finally:
        logger.info("Cleaning up...")

        if frame_clock is not None:
            frame_clock.stop()

        if streamer is not None:
            streamer.stop()

        if video_capture is not None:
            video_capture.release()

        if engine is not None:
            engine.cleanup()

        logger.info("Shutdown complete")

    return 0


def run_until_shutdown(video_capture: VideoCapture):
    """
    Keep the camera connected until a shutdown signal arrives.

    Args:
        video_capture: Video capture instance
    """
    while not shutdown_flag:
        if not video_capture.is_opened:
            logger.warning("Camera not available, attempting to reconnect...")
            video_capture.reconnect(RECONNECT_INTERVAL)
            continue
        time.sleep(0.5)


if __name__ == '__main__':
    sys.exit(main())
