"""Decide what an outbound call is from its URL, method and body.

Rules are checked in order; the first one that matches decides.  Anything
unrecognised is passthrough, and so is any error raised while checking.
"""
from __future__ import annotations

import logging
import re

from .common import CallKind, OutboundCall

logger = logging.getLogger(__name__)

MUTATING_METHODS = frozenset({'POST', 'PUT', 'PATCH'})

QUERY_ENDPOINT_RE = re.compile(r'graphql', re.IGNORECASE)
SUBMISSION_DETAILS_MARKER = 'submissionDetails'

SUBMISSION_PATTERNS = [
    re.compile(r'/submit\b'),
    re.compile(r'/submissions/'),
    re.compile(r'/problems/[^/]+/submit'),
]

STATUS_POLL_PATTERNS = [
    re.compile(r'/submissions/detail/\d+/check'),
    re.compile(r'/submissions/\d+'),
    re.compile(r'/check/\d+'),
    re.compile(r'submission[_-]?id=\d+', re.IGNORECASE),
    re.compile(r'check_submission'),
]


def _is_query_endpoint(call: OutboundCall) -> bool:
    return bool(QUERY_ENDPOINT_RE.search(call.url))


def _is_details_query(call: OutboundCall) -> bool:
    text = call.text
    return bool(text) and SUBMISSION_DETAILS_MARKER in text


def _is_submission(call: OutboundCall) -> bool:
    if (call.method or '').upper() not in MUTATING_METHODS or not call.body:
        return False
    if _is_query_endpoint(call):
        return True
    return any(p.search(call.url) for p in SUBMISSION_PATTERNS)


def _is_status_poll(call: OutboundCall) -> bool:
    # URL patterns apply to every endpoint, the query endpoint included
    if any(p.search(call.url) for p in STATUS_POLL_PATTERNS):
        return True
    return _is_query_endpoint(call) and _is_details_query(call)


def classify(call: OutboundCall) -> CallKind:
    try:
        if not isinstance(call.url, str):
            return CallKind.PASSTHROUGH
        # A details query goes to the same endpoint as a code submission.
        if _is_query_endpoint(call) and _is_details_query(call):
            return CallKind.STATUS_POLL
        if _is_submission(call):
            return CallKind.SUBMISSION
        if _is_status_poll(call):
            return CallKind.STATUS_POLL
    except Exception as e:
        logger.debug(f"Classification failed for {call.url!r}: {e}")
    return CallKind.PASSTHROUGH
