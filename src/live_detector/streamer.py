"""
Flask-based MJPEG streaming server with a JSON control and output API.
"""

import cv2
import time
import logging
import threading
import numpy as np
from typing import Optional
from flask import Flask, Response, jsonify, request
from .config import SettingsStore, StreamConfig
from .errors import ConfigurationError, NotReadyError
from .loop import DetectionLoop
from .models import CycleResult
from .tally import summarize_detections


logger = logging.getLogger(__name__)


class MJPEGStreamer:
    """
    MJPEG streaming server using Flask.

    Receives annotated frames from the detection loop and exposes the
    loop's output, settings and start/stop/clear controls over HTTP.
    """

    def __init__(self, config: StreamConfig, loop: DetectionLoop, settings: SettingsStore):
        """
        Initialize MJPEG streamer.

        Args:
            config: Stream configuration
            loop: Detection loop to report on and control
            settings: Live detection settings
        """
        self.config = config
        self.loop = loop
        self.settings = settings
        self.app = Flask(__name__)
        self.app.logger.setLevel(logging.WARNING)

        # Thread-safe frame buffer
        self.current_frame: Optional[np.ndarray] = None
        self.frame_lock = threading.Lock()
        self.start_time = time.time()

        self._setup_routes()

        # Server thread
        self.server_thread: Optional[threading.Thread] = None
        self.is_running = False

    def _setup_routes(self):
        """Setup Flask routes."""

        @self.app.route('/')
        def index():
            """Serve minimal web UI."""
            return self._get_minimal_ui()

        @self.app.route('/stream')
        def stream():
            """MJPEG stream endpoint."""
            return Response(
                self._generate_frames(),
                mimetype='multipart/x-mixed-replace; boundary=frame'
            )

        @self.app.route('/health')
        def health():
            """Health check endpoint."""
            return jsonify({
                'status': 'running',
                'state': self.loop.state.value,
                'uptime': int(time.time() - self.start_time),
                'fps': self.loop.statistics.fps
            })

        @self.app.route('/api/stats')
        def stats():
            """Statistics endpoint."""
            error = self.loop.last_error
            return jsonify({
                **self.loop.statistics.to_dict(),
                'state': self.loop.state.value,
                'last_error': str(error) if error is not None else None,
                'uptime': int(time.time() - self.start_time)
            })

        @self.app.route('/api/detections')
        def detections():
            """Current detection set and per-label summary."""
            current = self.loop.detections
            return jsonify({
                'detections': [d.to_dict() for d in current],
                'summary': [
                    {**entry, 'max_confidence': round(entry['max_confidence'], 4)}
                    for entry in summarize_detections(current)
                ]
            })

        @self.app.route('/api/classes')
        def classes():
            """Vocabulary tally, optionally filtered by ?q= substring."""
            term = request.args.get('q', '').strip().lower()
            tally = self.loop.tally_snapshot
            return jsonify({
                'classes': [
                    {'label': label, 'count': count}
                    for label, count in tally.items()
                    if term in label.lower()
                ]
            })

        @self.app.route('/api/settings', methods=['GET', 'POST'])
        def settings():
            """Read or update detection settings."""
            if request.method == 'POST':
                changes = request.get_json(silent=True)
                if not isinstance(changes, dict):
                    return jsonify({'error': 'Expected a JSON object'}), 400
                try:
                    self.settings.update(**changes)
                except ConfigurationError as e:
                    return jsonify({'error': str(e)}), 400
            return jsonify(self.settings.snapshot().model_dump())

        @self.app.route('/api/start', methods=['POST'])
        def start():
            try:
                started = self.loop.start()
            except NotReadyError as e:
                return jsonify({'error': str(e)}), 409
            return jsonify({'started': started, 'state': self.loop.state.value})

        @self.app.route('/api/stop', methods=['POST'])
        def stop():
            self.loop.stop()
            return jsonify({'state': self.loop.state.value})

        @self.app.route('/api/clear', methods=['POST'])
        def clear():
            self.loop.clear()
            return jsonify(self.loop.statistics.to_dict())

    def _get_minimal_ui(self) -> str:
        """Get minimal UI."""
        return """
        <!DOCTYPE html>
        <html>
        <head><title>Live Object Detection</title></head>
        <body>
            <h1>Live Object Detection</h1>
            <img src="/stream" style="max-width: 100%;">
            <p>
                <button onclick="fetch('/api/start', {method: 'POST'})">Start</button>
                <button onclick="fetch('/api/stop', {method: 'POST'})">Stop</button>
                <button onclick="fetch('/api/clear', {method: 'POST'})">Clear</button>
            </p>
        </body>
        </html>
        """

    def _generate_frames(self):
        """
        Generator for MJPEG frames.

        Yields:
            MJPEG frame data
        """
        while True:
            with self.frame_lock:
                frame = self.current_frame

            if frame is not None:
                ret, buffer = cv2.imencode(
                    '.jpg',
                    frame,
                    [cv2.IMWRITE_JPEG_QUALITY, self.config.jpeg_quality]
                )

                if ret:
                    frame_bytes = buffer.tobytes()
                    yield (b'--frame\r\n'
                           b'Content-Type: image/jpeg\r\n\r\n' + frame_bytes + b'\r\n')

            # Small delay to prevent busy waiting
            time.sleep(0.01)

    def update_frame(self, frame: np.ndarray):
        """
        Update the current frame to be streamed.

        Args:
            frame: New frame (BGR format)
        """
        with self.frame_lock:
            self.current_frame = frame

    def on_cycle(self, result: CycleResult):
        """Detection loop listener: stream the annotated frame."""
        if result.frame is not None:
            self.update_frame(self.loop.annotate(result.frame))

    def start(self):
        """Start the streaming server in a separate thread."""
        if self.is_running:
            logger.warning("Streamer already running")
            return

        logger.info(f"Starting MJPEG server on {self.config.host}:{self.config.port}")

        def run_server():
            self.app.run(
                host=self.config.host,
                port=self.config.port,
                threaded=True,
                debug=False,
                use_reloader=False
            )

        self.server_thread = threading.Thread(target=run_server, daemon=True)
        self.server_thread.start()
        self.is_running = True

        logger.info("MJPEG server started")

    def stop(self):
        """Stop the streaming server."""
        self.is_running = False
        logger.info("MJPEG server stopped")
