"""Passive capture of code submissions from judge-site traffic."""
from .common import CallKind, CorrelationEvent, OutboundCall, PendingSubmission
from .interceptor import CaptureAdapter, install_capture
from .registry import PendingSubmissionRegistry
from .signals import submission_accepted

__all__ = [
    'CallKind',
    'CorrelationEvent',
    'OutboundCall',
    'PendingSubmission',
    'CaptureAdapter',
    'install_capture',
    'PendingSubmissionRegistry',
    'submission_accepted',
]
