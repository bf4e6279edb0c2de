from __future__ import annotations

import logging
import re
import threading
import time

import requests

from .common import CorrelationEvent, epoch_millis
from .signals import submission_accepted

logger = logging.getLogger(__name__)

_PROBLEM_SLUG_RE = re.compile(r'/problems/([^/?#]+)')


def problem_slug(page_url: str) -> str | None:
    """``two-sum`` from ``https://leetcode.com/problems/two-sum/description/``."""
    m = _PROBLEM_SLUG_RE.search(page_url or '')
    return m.group(1) if m else None


class TrackerClient:
    """Delivers accepted submissions to the tracker backend."""

    TRACK_PATH = '/api/submissions/track'
    OFFLINE_SYNC_PATH = '/api/extension/offline-sync'

    def __init__(self, base_url: str, token: str, page_url: str = None,
                 max_retries: int = 3, timeout: float = 30):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.page_url = page_url
        self.max_retries = max_retries
        self.timeout = timeout
        self.session = self._create_session()
        self._deliveries = []
        self._deliveries_lock = threading.Lock()

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({
            'Authorization': f'Bearer {self.token}',
            'Content-Type': 'application/json',
        })
        return session

    def _request_with_retry(self, path, method='POST', **kwargs):
        url = f'{self.base_url}{path}'
        for attempt in range(self.max_retries):
            try:
                resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
                resp.raise_for_status()
                return resp
            except requests.HTTPError as e:
                # 4xx will not get better on retry
                if e.response is not None and e.response.status_code < 500:
                    raise
                logger.warning(f"Request failed (attempt {attempt + 1}/{self.max_retries}): {e}")
                if attempt >= self.max_retries - 1:
                    raise
            except requests.RequestException as e:
                logger.warning(f"Request failed (attempt {attempt + 1}/{self.max_retries}): {e}")
                if attempt >= self.max_retries - 1:
                    raise
            time.sleep(2 ** attempt)

    def connect(self) -> None:
        submission_accepted.connect(self._on_accepted)

    def disconnect(self) -> None:
        submission_accepted.disconnect(self._on_accepted)

    def _on_accepted(self, sender, event: CorrelationEvent = None, **kwargs) -> None:
        """Hand the event to a background thread so the poll that carried it returns now."""
        if event is None:
            return
        t = threading.Thread(target=self._deliver, args=(event,), daemon=True)
        with self._deliveries_lock:
            self._deliveries = [d for d in self._deliveries if d.is_alive()]
            self._deliveries.append(t)
        t.start()

    def _deliver(self, event: CorrelationEvent) -> None:
        try:
            self.send_event(event)
        except Exception as e:
            logger.error(f"Could not deliver submission {event.submission_id}: {e}")

    def wait(self, timeout: float = None) -> bool:
        """Join in-flight deliveries; False if any is still running after ``timeout``."""
        with self._deliveries_lock:
            pending = list(self._deliveries)
        deadline = None if timeout is None else time.monotonic() + timeout
        for t in pending:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            t.join(remaining)
        return not any(t.is_alive() for t in pending)

    def track_payload(self, event: CorrelationEvent) -> dict:
        return {
            'problemId': problem_slug(self.page_url) or event.problem_id,
            'submissionId': event.submission_id,
            'correlationId': event.correlation_id,
            'code': event.code or '',
            'language': event.language or 'unknown',
            'status': 'Accepted',
            'runtime': event.runtime,
            'memory': event.memory,
            'timestamp': epoch_millis(event.timestamp),
        }

    def send_event(self, event: CorrelationEvent) -> dict:
        resp = self._request_with_retry(self.TRACK_PATH, json=self.track_payload(event))
        logger.info(f"Delivered submission {event.submission_id}")
        return resp.json()

    def sync_offline(self, problems=None, submissions=None,
                     pending_deletions=None) -> dict:
        body = {
            'problems': problems or [],
            'submissions': submissions or [],
            'pendingDeletions': pending_deletions or {'problems': [], 'submissions': []},
        }
        resp = self._request_with_retry(self.OFFLINE_SYNC_PATH, json=body)
        return resp.json()

    def close(self, timeout: float = 5) -> None:
        if not self.wait(timeout):
            logger.warning("Closing with submission deliveries still in flight")
        self.session.close()
