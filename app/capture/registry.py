from __future__ import annotations

import logging
import secrets
import threading
from datetime import datetime, timedelta

from apscheduler.schedulers.background import BackgroundScheduler

from .common import PendingStatus, PendingSubmission, epoch_millis

logger = logging.getLogger(__name__)

PENDING_TTL_SECONDS = 5 * 60
SWEEP_INTERVAL_SECONDS = 60


def new_correlation_id(created_at: datetime) -> str:
    """Capture time in milliseconds plus a random suffix."""
    return f'{epoch_millis(created_at)}-{secrets.token_hex(4)}'


class PendingSubmissionRegistry:
    """Submissions waiting for an accepted verdict, keyed by judge id.

    Every operation holds the lock for its whole read-modify-write, so
    ``mark_accepted`` and ``sweep`` can race freely: whichever removes an
    entry first wins and the other sees it already gone.  Entries older
    than the TTL are never handed out, even before the sweep reaches them.
    """

    def __init__(
        self,
        ttl_seconds: float = PENDING_TTL_SECONDS,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
        clock=datetime.utcnow,
    ):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._entries: dict[str, PendingSubmission] = {}
        self._lock = threading.Lock()
        self._scheduler = None
        self._owns_scheduler = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, submission_id) -> bool:
        return self.get(submission_id) is not None

    def _expired(self, record: PendingSubmission, now: datetime) -> bool:
        return now - record.created_at >= self.ttl

    def register(self, submission_id: str, code=None, language=None,
                 problem_id=None) -> PendingSubmission:
        """Build a pending record for a freshly captured submission and store it."""
        created_at = self._clock()
        record = PendingSubmission(
            submission_id=submission_id,
            correlation_id=new_correlation_id(created_at),
            code=code,
            language=language,
            problem_id=problem_id,
            created_at=created_at,
        )
        self.put(submission_id, record)
        return record

    def put(self, submission_id: str, record: PendingSubmission) -> None:
        with self._lock:
            self._entries[submission_id] = record

    def get(self, submission_id, now: datetime = None) -> PendingSubmission | None:
        if submission_id is None:
            return None
        now = now or self._clock()
        with self._lock:
            record = self._entries.get(submission_id)
            if record is None or self._expired(record, now):
                return None
            return record

    def mark_accepted(self, submission_id, now: datetime = None) -> PendingSubmission | None:
        """Remove and return the live entry, flagged accepted; ``None`` if absent."""
        now = now or self._clock()
        with self._lock:
            record = self._entries.pop(submission_id, None)
        if record is None or self._expired(record, now):
            return None
        record.status = PendingStatus.ACCEPTED
        return record

    def sweep(self, now: datetime = None) -> int:
        """Drop every entry older than the TTL. Returns how many were dropped."""
        now = now or self._clock()
        with self._lock:
            stale = [
                key for key, record in self._entries.items()
                if self._expired(record, now)
            ]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug(f"Swept {len(stale)} stale pending submission(s)")
        return len(stale)

    def start_sweeper(self, scheduler: BackgroundScheduler = None) -> None:
        """Run ``sweep`` every ``sweep_interval`` seconds in the background."""
        if self._scheduler is not None:
            return
        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler or BackgroundScheduler(daemon=True)
        self._scheduler.add_job(
            self.sweep, 'interval', seconds=self.sweep_interval,
            id='pending_submission_sweep', replace_existing=True,
        )
        if not self._scheduler.running:
            self._scheduler.start()
        logger.info(f"Pending submission sweep started (every {self.sweep_interval}s)")

    def stop_sweeper(self) -> None:
        if self._scheduler is None:
            return
        try:
            if self._owns_scheduler:
                self._scheduler.shutdown(wait=False)
            else:
                self._scheduler.remove_job('pending_submission_sweep')
        except Exception as e:
            logger.debug(f"Sweep scheduler shutdown: {e}")
        self._scheduler = None
