from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class CallKind(str, Enum):
    SUBMISSION = 'submission'
    STATUS_POLL = 'statusPoll'
    PASSTHROUGH = 'passthrough'


class PendingStatus(str, Enum):
    PENDING = 'pending'
    ACCEPTED = 'accepted'


@dataclass
class OutboundCall:
    """The parts of an outbound request the capture layer looks at."""
    url: str
    method: str = 'GET'
    body: str | bytes | None = None
    content_type: str | None = None

    @property
    def text(self) -> str | None:
        if self.body is None:
            return None
        if isinstance(self.body, bytes):
            return self.body.decode('utf-8', errors='replace')
        return self.body


@dataclass
class ExtractedPayload:
    language: str | None = None
    code: str | None = None
    problem_id: str | None = None
    shape: str | None = None

    def is_empty(self) -> bool:
        return not (self.language or self.code or self.problem_id)


@dataclass
class PendingSubmission:
    submission_id: str
    correlation_id: str
    code: str | None = None
    language: str | None = None
    problem_id: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    status: PendingStatus = PendingStatus.PENDING


@dataclass(frozen=True)
class CorrelationEvent:
    submission_id: str
    correlation_id: str
    code: str | None
    language: str | None
    problem_id: str | None
    timestamp: datetime
    runtime: str | None = None
    memory: str | None = None

    @classmethod
    def from_pending(cls, record: PendingSubmission, runtime=None, memory=None):
        return cls(
            submission_id=record.submission_id,
            correlation_id=record.correlation_id,
            code=record.code,
            language=record.language,
            problem_id=record.problem_id,
            timestamp=record.created_at,
            runtime=runtime,
            memory=memory,
        )

    def to_dict(self) -> dict:
        """Wire shape of the ``submission-accepted`` event."""
        return {
            'submissionId': self.submission_id,
            'correlationId': self.correlation_id,
            'code': self.code,
            'language': self.language,
            'problemId': self.problem_id,
            'runtime': self.runtime,
            'memory': self.memory,
            'timestamp': epoch_millis(self.timestamp),
        }


def epoch_millis(dt: datetime) -> int:
    """Milliseconds since the epoch for a naive-UTC or aware datetime."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def as_id(value) -> str | None:
    """Normalise a judge identifier to a non-empty string."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None
