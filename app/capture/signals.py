"""Event bus for the capture layer."""
import logging

from blinker import signal

logger = logging.getLogger(__name__)

SUBMISSION_ACCEPTED = 'submission-accepted'

#: Sent once per accepted submission with ``event=CorrelationEvent``.
submission_accepted = signal(SUBMISSION_ACCEPTED)


def emit_accepted(sender, event) -> bool:
    """Dispatch *event*; receiver failures are logged, never raised."""
    try:
        submission_accepted.send(sender, event=event)
        return True
    except Exception as e:
        logger.error(
            f"submission-accepted receiver failed for {event.submission_id}: {e}"
        )
        return False
