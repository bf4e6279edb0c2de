"""Match status polls to pending submissions and detect acceptance.

A poll response can arrive in several dialects.  Each ``VerdictDialect``
pairs a check for whether the dialect applies to a response with a
predicate for acceptance and an extractor for runtime/memory.  Dialects
are evaluated in ``VERDICT_DIALECTS`` order and the first one that applies
decides; a response no dialect applies to is "not decided yet".  Dialects
are not combined: a response whose ``status_msg`` says "Wrong Answer" is
rejected even if it also carries ``status_code`` 10.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Callable

from .common import CorrelationEvent, OutboundCall, as_id
from .registry import PendingSubmissionRegistry
from .signals import emit_accepted

logger = logging.getLogger(__name__)

ACCEPTED = 'Accepted'
ACCEPTED_CODE = 10
JUDGE_SUCCESS = 'SUCCESS'

POLL_ID_PATTERNS = [
    re.compile(r'/submissions/detail/(\d+)/check'),
    re.compile(r'/submissions/(\d+)'),
    re.compile(r'/check/(\d+)'),
    re.compile(r'submission[_-]?id=(\d+)', re.IGNORECASE),
]


def extract_poll_submission_id(call: OutboundCall) -> str | None:
    """Submission id from the poll URL, else from a query body's variables."""
    for pattern in POLL_ID_PATTERNS:
        m = pattern.search(call.url or '')
        if m:
            return m.group(1)
    text = call.text
    if not text:
        return None
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get('variables'), dict):
        return as_id(data['variables'].get('submissionId'))
    return None


def _has_any(payload: dict, *keys) -> bool:
    return any(payload.get(k) is not None for k in keys)


def _any_equals(payload: dict, expected, *keys) -> bool:
    return any(payload.get(k) == expected for k in keys)


def _details(payload: dict):
    data = payload.get('data')
    if isinstance(data, dict) and isinstance(data.get('submissionDetails'), dict):
        return data['submissionDetails']
    return None


def _text(value) -> str | None:
    return as_id(value)


def _nested_metrics(payload: dict):
    details = _details(payload) or {}
    return _text(details.get('runtime')), _text(details.get('memory'))


def _metrics(payload: dict):
    nested_runtime, nested_memory = _nested_metrics(payload)
    runtime = _text(payload.get('status_runtime')) or _text(payload.get('runtime'))
    memory = _text(payload.get('status_memory')) or _text(payload.get('memory'))
    return runtime or nested_runtime, memory or nested_memory


@dataclass(frozen=True)
class VerdictDialect:
    name: str
    applies: Callable[[dict], bool]
    accepted: Callable[[dict], bool]
    metrics: Callable[[dict], tuple]


VERDICT_DIALECTS = [
    VerdictDialect(
        'status-message',
        lambda p: _has_any(p, 'status_msg', 'statusDisplay'),
        lambda p: _any_equals(p, ACCEPTED, 'status_msg', 'statusDisplay'),
        _metrics,
    ),
    VerdictDialect(
        'status-code',
        lambda p: _has_any(p, 'status_code', 'statusCode'),
        lambda p: _any_equals(p, ACCEPTED_CODE, 'status_code', 'statusCode'),
        _metrics,
    ),
    VerdictDialect(
        'judge-state',
        lambda p: _has_any(p, 'state', 'judgeResult'),
        lambda p: _any_equals(p, JUDGE_SUCCESS, 'state', 'judgeResult'),
        _metrics,
    ),
    VerdictDialect(
        'status',
        lambda p: _has_any(p, 'status'),
        lambda p: p.get('status') == ACCEPTED,
        _metrics,
    ),
    VerdictDialect(
        'submission-details',
        lambda p: _details(p) is not None,
        lambda p: (
            _any_equals(_details(p), ACCEPTED, 'status', 'statusDisplay')
            or _details(p).get('statusCode') == ACCEPTED_CODE
        ),
        _nested_metrics,
    ),
]


def judge_verdict(payload) -> tuple[bool | None, VerdictDialect | None]:
    """``(accepted, dialect)`` for a poll response; ``(None, None)`` when undecided."""
    if not isinstance(payload, dict):
        return None, None
    for dialect in VERDICT_DIALECTS:
        if dialect.applies(payload):
            return dialect.accepted(payload), dialect
    return None, None


class StatusCorrelator:
    """Turns the accepted verdict of a tracked submission into one event."""

    def __init__(self, registry: PendingSubmissionRegistry, sender=None):
        self.registry = registry
        self.sender = sender if sender is not None else self

    def tracked_id(self, call: OutboundCall) -> str | None:
        """The poll's submission id when it refers to a live pending entry."""
        submission_id = extract_poll_submission_id(call)
        if submission_id is None or self.registry.get(submission_id) is None:
            return None
        return submission_id

    def inspect(self, submission_id: str, payload) -> CorrelationEvent | None:
        """Check a poll response; on acceptance emit and return the event."""
        accepted, dialect = judge_verdict(payload)
        if not accepted:
            logger.debug(f"Submission {submission_id} not accepted yet")
            return None

        record = self.registry.mark_accepted(submission_id)
        if record is None:
            # Already emitted by a concurrent poll, or expired meanwhile.
            return None

        runtime, memory = dialect.metrics(payload)
        event = CorrelationEvent.from_pending(record, runtime=runtime, memory=memory)
        logger.info(
            f"Accepted submission {submission_id} "
            f"(correlation {record.correlation_id}, dialect {dialect.name})"
        )
        emit_accepted(self.sender, event)
        return event
