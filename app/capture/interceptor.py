"""Interception of the session's outbound calls.

``CaptureAdapter`` is a ``requests`` transport adapter: every request made
through a session it is mounted on passes through ``send``.  The call is
classified, and submissions and status polls are routed to a handler that
gets to look at the request before it goes out and at the response once it
has come back.  Everything else is sent untouched.

The capture layer is fail-open: the request is always sent exactly once
and the caller always gets the judge site's own response back.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable

import requests
from requests.adapters import HTTPAdapter

from .classifier import classify
from .common import CallKind, OutboundCall
from .correlator import StatusCorrelator
from .extractor import extract_payload, extract_submission_id
from .registry import PendingSubmissionRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallHandler:
    # Runs before the call; returning None leaves the call as plain passthrough.
    prepare: Callable[[OutboundCall], object]
    # Runs with prepare()'s result once the response has arrived.
    complete: Callable[[object, requests.Response], None]


def outbound_call(request: requests.PreparedRequest) -> OutboundCall:
    body = request.body if isinstance(request.body, (str, bytes)) else None
    return OutboundCall(
        url=request.url,
        method=request.method or 'GET',
        body=body,
        content_type=request.headers.get('Content-Type'),
    )


def response_json(response: requests.Response):
    """Decode the response body without consuming it for the caller."""
    try:
        return json.loads(response.content)
    except (ValueError, TypeError):
        return None


class CaptureAdapter(HTTPAdapter):
    def __init__(self, registry: PendingSubmissionRegistry = None,
                 editor_buffer=None, **kwargs):
        super().__init__(**kwargs)
        self.registry = registry if registry is not None else PendingSubmissionRegistry()
        self.editor_buffer = editor_buffer
        self.correlator = StatusCorrelator(self.registry, sender=self)
        self.handlers = {
            CallKind.SUBMISSION: CallHandler(
                self._prepare_submission, self._complete_submission
            ),
            CallKind.STATUS_POLL: CallHandler(
                self.correlator.tracked_id, self._complete_status_poll
            ),
        }

    def send(self, request, **kwargs):
        handler = context = None
        try:
            call = outbound_call(request)
            handler = self.handlers.get(classify(call))
            if handler is not None:
                context = handler.prepare(call)
        except Exception as e:
            logger.warning(f"Capture skipped for {request.url}: {e}")
            context = None

        response = super().send(request, **kwargs)

        if context is not None:
            try:
                handler.complete(context, response)
            except Exception as e:
                logger.error(f"Capture failed after response from {request.url}: {e}")
        return response

    def close(self):
        super().close()
        self.registry.stop_sweeper()

    def _prepare_submission(self, call: OutboundCall):
        payload = extract_payload(call, editor_buffer=self.editor_buffer)
        logger.debug(
            f"Submission call to {call.url} (shape={payload.shape}, "
            f"code={'yes' if payload.code else 'no'})"
        )
        return payload

    def _complete_submission(self, payload, response: requests.Response) -> None:
        submission_id = extract_submission_id(response_json(response))
        if submission_id is None:
            return
        record = self.registry.register(
            submission_id,
            code=payload.code,
            language=payload.language,
            problem_id=payload.problem_id,
        )
        logger.info(
            f"Tracking submission {submission_id} "
            f"(correlation {record.correlation_id})"
        )

    def _complete_status_poll(self, submission_id, response: requests.Response) -> None:
        self.correlator.inspect(submission_id, response_json(response))


def install_capture(
    session: requests.Session,
    editor_buffer=None,
    registry: PendingSubmissionRegistry = None,
    start_sweeper: bool = True,
    prefixes=('https://', 'http://'),
) -> CaptureAdapter:
    """Mount a ``CaptureAdapter`` on *session*.

    Closing the session tears the capture down, including the sweep timer.
    """
    adapter = CaptureAdapter(registry=registry, editor_buffer=editor_buffer)
    for prefix in prefixes:
        session.mount(prefix, adapter)
    if start_sweeper:
        adapter.registry.start_sweeper()
    return adapter
