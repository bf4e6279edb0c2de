"""Tests for the client that forwards accepted submissions to the backend."""

import threading
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
import requests

from app.capture import install_capture
from app.capture.common import CorrelationEvent, epoch_millis
from app.capture.forwarder import TrackerClient, problem_slug
from app.capture.signals import emit_accepted

EVENT = CorrelationEvent(
    submission_id='1001',
    correlation_id='1772366400000-abcd1234',
    code='def f(): pass',
    language='python3',
    problem_id='42',
    timestamp=datetime(2026, 3, 1, 12, 0, 0),
    runtime='4 ms',
    memory=None,
)


def _http_error(status):
    resp = requests.Response()
    resp.status_code = status
    return requests.HTTPError(f'{status} error', response=resp)


@pytest.fixture()
def tracker():
    t = TrackerClient(
        'http://tracker.local/', 'tok123',
        page_url='https://leetcode.com/problems/two-sum/description/',
    )
    t.session = MagicMock()
    yield t
    t.disconnect()


class TestProblemSlug:
    @pytest.mark.parametrize('url, slug', [
        ('https://leetcode.com/problems/two-sum/', 'two-sum'),
        ('https://leetcode.com/problems/two-sum/description/?tab=1', 'two-sum'),
        ('https://leetcode.com/problems/lru-cache', 'lru-cache'),
        ('https://leetcode.com/contest/', None),
        (None, None),
    ])
    def test_slug(self, url, slug):
        assert problem_slug(url) == slug


class TestTrackerClient:
    def test_session_headers(self):
        tracker = TrackerClient('http://tracker.local', 'tok123')
        assert tracker.session.headers['Authorization'] == 'Bearer tok123'
        assert tracker.session.headers['Content-Type'] == 'application/json'
        tracker.close()

    def test_track_payload_prefers_page_slug(self, tracker):
        payload = tracker.track_payload(EVENT)
        assert payload['problemId'] == 'two-sum'
        assert payload['submissionId'] == '1001'
        assert payload['status'] == 'Accepted'
        assert payload['language'] == 'python3'
        assert payload['runtime'] == '4 ms'
        assert payload['timestamp'] == epoch_millis(EVENT.timestamp)

    def test_track_payload_falls_back_to_event_problem(self):
        tracker = TrackerClient('http://tracker.local', 'tok')
        assert tracker.track_payload(EVENT)['problemId'] == '42'
        tracker.close()

    def test_send_event_posts_to_track(self, tracker):
        tracker.session.request.return_value.json.return_value = {'success': True}
        assert tracker.send_event(EVENT) == {'success': True}
        args, kwargs = tracker.session.request.call_args
        assert args == ('POST', 'http://tracker.local/api/submissions/track')
        assert kwargs['json']['submissionId'] == '1001'

    def test_sync_offline_body(self, tracker):
        tracker.session.request.return_value.json.return_value = {'success': True}
        tracker.sync_offline(submissions=[{'problemUrl': 'u', 'status': 'Accepted'}])
        args, kwargs = tracker.session.request.call_args
        assert args[1] == 'http://tracker.local/api/extension/offline-sync'
        assert kwargs['json'] == {
            'problems': [],
            'submissions': [{'problemUrl': 'u', 'status': 'Accepted'}],
            'pendingDeletions': {'problems': [], 'submissions': []},
        }


class TestRetry:
    @patch('app.capture.forwarder.time.sleep')
    def test_retries_server_errors(self, mock_sleep, tracker):
        ok = MagicMock()
        failing = MagicMock()
        failing.raise_for_status.side_effect = _http_error(503)
        tracker.session.request.side_effect = [failing, ok]

        assert tracker._request_with_retry('/x') is ok
        assert tracker.session.request.call_count == 2
        mock_sleep.assert_called_once_with(1)

    @patch('app.capture.forwarder.time.sleep')
    def test_client_errors_not_retried(self, mock_sleep, tracker):
        failing = MagicMock()
        failing.raise_for_status.side_effect = _http_error(401)
        tracker.session.request.return_value = failing

        with pytest.raises(requests.HTTPError):
            tracker._request_with_retry('/x')
        assert tracker.session.request.call_count == 1
        mock_sleep.assert_not_called()

    @patch('app.capture.forwarder.time.sleep')
    def test_gives_up_after_max_retries(self, mock_sleep, tracker):
        tracker.session.request.side_effect = requests.ConnectionError('down')
        with pytest.raises(requests.ConnectionError):
            tracker._request_with_retry('/x')
        assert tracker.session.request.call_count == 3
        assert mock_sleep.call_count == 2


class TestSignalDelivery:
    def test_connected_client_receives_events(self, tracker):
        tracker.connect()
        with patch.object(tracker, 'send_event') as send:
            emit_accepted(None, EVENT)
            assert tracker.wait(timeout=2)
        send.assert_called_once_with(EVENT)

    def test_disconnected_client_ignores_events(self, tracker):
        tracker.connect()
        tracker.disconnect()
        with patch.object(tracker, 'send_event') as send:
            emit_accepted(None, EVENT)
            assert tracker.wait(timeout=2)
        send.assert_not_called()

    def test_delivery_failure_is_logged_not_raised(self, tracker, caplog):
        tracker.connect()
        with patch.object(tracker, 'send_event', side_effect=requests.ConnectionError('down')):
            assert emit_accepted(None, EVENT) is True
            assert tracker.wait(timeout=2)
        assert 'Could not deliver submission 1001' in caplog.text

    def test_emit_returns_before_delivery_finishes(self, tracker):
        release = threading.Event()
        delivered = threading.Event()

        def slow_send(event):
            release.wait(5)
            delivered.set()

        tracker.connect()
        with patch.object(tracker, 'send_event', side_effect=slow_send):
            assert emit_accepted(None, EVENT) is True
            assert not delivered.is_set()
            assert not tracker.wait(timeout=0.05)
            release.set()
            assert tracker.wait(timeout=2)
        assert delivered.is_set()


class TestPollNotBlockedByBackend:
    def test_status_poll_returns_while_backend_hangs(self, tracker, fake_judge):
        fake_judge.routes = {
            '/submit/': [{'submission_id': 1001}],
            '/check/': [{'status_code': 10}],
        }
        release = threading.Event()

        def hanging_backend(*args, **kwargs):
            release.wait(5)
            raise requests.ConnectionError('backend down')

        tracker.session.request.side_effect = hanging_backend
        tracker.max_retries = 1
        tracker.connect()

        session = requests.Session()
        install_capture(session, start_sweeper=False)
        session.post('https://leetcode.com/problems/two-sum/submit/', files={
            'lang': (None, 'python3'),
            'typed_code': (None, 'def f(): pass'),
            'question_id': (None, '42'),
        })
        resp = session.get('https://leetcode.com/submissions/detail/1001/check/')

        assert resp.json() == {'status_code': 10}
        assert not tracker.wait(timeout=0.05)
        release.set()
        assert tracker.wait(timeout=2)
        assert tracker.session.request.call_count == 1
        session.close()
