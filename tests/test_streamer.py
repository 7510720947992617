"""
Tests for the HTTP output and control API.
"""

import numpy as np
import pytest

from live_detector.config import StreamConfig
from live_detector.streamer import MJPEGStreamer

from conftest import make_prediction


@pytest.fixture
def streamer(loop, settings):
    return MJPEGStreamer(StreamConfig(), loop, settings)


@pytest.fixture
def client(streamer):
    streamer.app.testing = True
    return streamer.app.test_client()


def test_health(client):
    data = client.get('/health').get_json()
    assert data['status'] == 'running'
    assert data['state'] == 'idle'


def test_start_stop(client, loop):
    resp = client.post('/api/start')
    assert resp.status_code == 200
    assert resp.get_json() == {'started': True, 'state': 'running'}

    again = client.post('/api/start').get_json()
    assert again['started'] is False

    assert client.post('/api/stop').get_json() == {'state': 'idle'}
    assert not loop.is_running


def test_start_not_ready_is_conflict(client, engine):
    engine.ready = False
    resp = client.post('/api/start')
    assert resp.status_code == 409
    assert 'not ready' in resp.get_json()['error']


def test_stats_and_detections(client, loop, engine):
    engine.default = [make_prediction("cat", 0.91), make_prediction("cat", 0.7)]
    loop.start()
    loop.tick()

    stats = client.get('/api/stats').get_json()
    assert stats['total_detections'] == 2
    assert stats['active_objects'] == 2
    assert stats['state'] == 'running'
    assert stats['last_error'] is None

    data = client.get('/api/detections').get_json()
    assert [d['label'] for d in data['detections']] == ["cat", "cat"]
    assert data['summary'] == [{'label': 'cat', 'count': 2, 'max_confidence': 0.91}]


def test_classes_filter(client, loop, engine):
    engine.default = [make_prediction("cat", 0.9)]
    loop.start()
    loop.tick()

    all_classes = client.get('/api/classes').get_json()['classes']
    assert len(all_classes) == 80

    filtered = client.get('/api/classes?q=CA').get_json()['classes']
    labels = [c['label'] for c in filtered]
    assert labels == ["car", "cat", "suitcase", "carrot", "cake"]
    assert {'label': 'cat', 'count': 1} in filtered


def test_settings_reject_string_threshold(client, settings):
    resp = client.post('/api/settings', json={'confidence_threshold': '0.7'})
    assert resp.status_code == 400
    assert settings.confidence_threshold == 0.5


def test_settings_update(client, settings):
    resp = client.post('/api/settings', json={'confidence_threshold': 0.8, 'show_confidence': False})
    assert resp.status_code == 200
    assert resp.get_json() == {
        'confidence_threshold': 0.8,
        'show_confidence': False,
        'max_detections': 20,
    }
    assert settings.confidence_threshold == 0.8


def test_settings_rejects_invalid_value(client, settings):
    resp = client.post('/api/settings', json={'confidence_threshold': 1.5})
    assert resp.status_code == 400
    assert settings.confidence_threshold == 0.5


def test_settings_rejects_non_object(client):
    assert client.post('/api/settings', json=[1, 2]).status_code == 400


def test_clear(client, loop, engine):
    engine.default = [make_prediction("cat", 0.9)]
    loop.start()
    loop.tick()
    data = client.post('/api/clear').get_json()
    assert data['total_detections'] == 0
    assert loop.is_running


def test_stats_report_last_error(client, loop, engine):
    engine.results.append(RuntimeError("camera unplugged"))
    loop.start()
    with pytest.raises(Exception):
        loop.tick()
    stats = client.get('/api/stats').get_json()
    assert stats['state'] == 'idle'
    assert 'camera unplugged' in stats['last_error']


def test_on_cycle_updates_stream_frame(streamer, loop, engine):
    loop.add_listener(streamer.on_cycle)
    engine.default = [make_prediction("cat", 0.9, (10, 40, 50, 50))]
    loop.start()
    loop.tick()
    assert streamer.current_frame is not None
    assert streamer.current_frame.shape == (240, 320, 3)
    assert np.any(streamer.current_frame)


def test_index_page(client):
    assert b'/stream' in client.get('/').data
