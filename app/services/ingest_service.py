"""Idempotent ingestion of accepted/attempted submissions.

Every event is applied inside one database transaction that is retried on
transient conflicts.  Retrying is safe because a submission that has
already been stored is recognised by its idempotency key and skipped; the
aggregate counters are only touched in the same transaction that creates
the submission row.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError

from app.extensions import db
from app.models import (
    Activity, Problem, ProblemStatus, SolutionVersion, Statistics, Submission,
    SubmissionError, Tag,
)
from app.models.submission_error import LOGICAL, RUNTIME
from app.models.submission import ACCEPTED, is_accepted
from app.models.tag import tag_color

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (OperationalError, IntegrityError)

DEFAULT_PLATFORM = 'LeetCode'
DEFAULT_DIFFICULTY = 'Medium'


class IngestError(Exception):
    """Base class for ingestion failures reported to the caller."""


class ValidationError(IngestError):
    """The event is missing a mandatory field. Nothing was written."""


class TransactionConflictError(IngestError):
    """The transaction kept conflicting after every retry."""


def _clean(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _positive_int(value) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _parse_time(value) -> datetime | None:
    """Milliseconds since epoch or an ISO-8601 string, as naive UTC."""
    if value in (None, ''):
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
    return None


@dataclass
class SubmissionEvent:
    """One submission to apply, normalised from either ingestion path."""
    code: str
    language: str
    status: str = ACCEPTED
    problem_ref: str | None = None
    problem_url: str | None = None
    external_id: str | None = None
    offline_id: str | None = None
    correlation_id: str | None = None
    runtime: str | None = None
    memory: str | None = None
    submitted_at: datetime = field(default_factory=datetime.utcnow)
    title: str | None = None
    difficulty: str | None = None
    description: str | None = None
    tags: list = field(default_factory=list)
    error_message: str | None = None
    version_number: int | None = None
    changelog: str | None = None
    has_version: bool = False

    @classmethod
    def from_track_payload(cls, data) -> SubmissionEvent:
        """Build from a ``/track`` body, rejecting incomplete events."""
        if not isinstance(data, dict):
            raise ValidationError('Invalid JSON body')
        external_id = _clean(
            data.get('submissionId')
            or data.get('leetcodeSubmissionId')
            or data.get('externalId')
        )
        problem_ref = _clean(data.get('problemId'))
        code = data.get('code')
        language = _clean(data.get('language'))
        if not problem_ref or not code or not language or not external_id:
            raise ValidationError('Missing required fields')
        tags = data.get('platformTags')
        version_info = data.get('versionInfo')
        if not isinstance(version_info, dict):
            version_info = None
        return cls(
            code=code,
            language=language,
            status=_clean(data.get('status')) or ACCEPTED,
            problem_ref=problem_ref,
            problem_url=_clean(data.get('platformUrl')),
            external_id=external_id,
            correlation_id=_clean(data.get('correlationId')),
            runtime=_clean(data.get('runtime')),
            memory=_clean(data.get('memory')),
            submitted_at=_parse_time(data.get('timestamp')) or datetime.utcnow(),
            title=_clean(data.get('platformTitle')),
            difficulty=_clean(data.get('platformDifficulty')),
            description=data.get('platformDescription') or None,
            tags=[t for t in tags if t] if isinstance(tags, list) else [],
            error_message=data.get('errorMessage') or None,
            version_number=_positive_int(version_info.get('versionNumber')) if version_info else None,
            changelog=_clean(version_info.get('changelog')) if version_info else None,
            has_version=version_info is not None,
        )

    @classmethod
    def from_offline_payload(cls, data) -> SubmissionEvent:
        if not isinstance(data, dict):
            raise ValidationError(f'Invalid submission data: {data!r}')
        problem_url = _clean(data.get('problemUrl'))
        status = _clean(data.get('status'))
        if not problem_url or not status:
            raise ValidationError(f'Invalid submission data: {data!r}')
        return cls(
            code=data.get('code') or '',
            language=_clean(data.get('language')) or 'UNKNOWN',
            status=status,
            problem_url=problem_url,
            external_id=_clean(data.get('externalId')),
            offline_id=_clean(data.get('offlineId')),
            runtime=_clean(data.get('runtime')),
            memory=_clean(data.get('memory')),
            submitted_at=_parse_time(data.get('submittedAt')) or datetime.utcnow(),
        )


@dataclass
class IngestResult:
    submission: Submission
    problem: Problem
    is_new: bool
    error: SubmissionError | None = None
    version: SolutionVersion | None = None

    def to_dict(self) -> dict:
        return {
            'success': True,
            'isNew': self.is_new,
            'submission': self.submission.to_dict(),
            'problem': self.problem.to_dict(),
            'error': self.error.to_dict() if self.error else None,
            'solutionVersion': self.version.to_dict() if self.version else None,
        }


class IngestService:
    def __init__(self, user_id: int, max_retries: int = None, base_delay: float = None):
        self.user_id = user_id
        config = current_app.config
        if max_retries is None:
            max_retries = config.get('TRACK_MAX_RETRIES', 3)
        # Always at least one attempt
        self.max_retries = max(1, max_retries)
        self.base_delay = (
            base_delay if base_delay is not None
            else config.get('TRACK_RETRY_BASE_DELAY', 0.5)
        )

    # ── transaction ───────────────────────────────

    def run_in_transaction(self, fn, *args, **kwargs):
        """Run *fn* and commit; retry transient conflicts with linear backoff.

        A unique-key violation is retried once so that a concurrent insert of
        the same key can be observed as a duplicate.  If the retry violates a
        constraint again the violation is permanent and propagates unchanged.
        """
        integrity_failed = False
        for attempt in range(1, self.max_retries + 1):
            try:
                result = fn(*args, **kwargs)
                db.session.commit()
                return result
            except TRANSIENT_ERRORS as e:
                db.session.rollback()
                if isinstance(e, IntegrityError):
                    if integrity_failed:
                        logger.error(
                            f"Constraint violation for user {self.user_id} "
                            f"persisted after retry: {e}"
                        )
                        raise
                    integrity_failed = True
                if attempt >= self.max_retries:
                    logger.error(
                        f"Transaction for user {self.user_id} failed after "
                        f"{attempt} attempts: {e}"
                    )
                    raise TransactionConflictError(
                        'Transaction conflict, retries exhausted'
                    ) from e
                logger.warning(
                    f"Retrying transaction after conflict "
                    f"({self.max_retries - attempt} attempts left): {e}"
                )
                time.sleep(self.base_delay * attempt)
            except Exception:
                db.session.rollback()
                raise

    # ── single event ──────────────────────────────

    def track(self, data) -> IngestResult:
        """Apply one correlation event. Raises ``ValidationError`` before any write."""
        event = SubmissionEvent.from_track_payload(data)
        return self.run_in_transaction(self.apply_event, event)

    def apply_event(self, event: SubmissionEvent) -> IngestResult:
        problem = self._resolve_problem(event)
        existing = self._find_duplicate(problem, event)
        if existing is not None:
            logger.info(
                f"Duplicate submission {event.external_id or event.offline_id} "
                f"for user {self.user_id}, skipping"
            )
            return IngestResult(existing, problem, is_new=False)

        submission = Submission(
            user_id=self.user_id,
            problem=problem,
            external_id=event.external_id,
            offline_id=event.offline_id,
            correlation_id=event.correlation_id,
            code=event.code,
            language=event.language,
            status=event.status,
            runtime=event.runtime,
            memory=event.memory,
            submitted_at=event.submitted_at,
        )
        db.session.add(submission)
        db.session.flush()
        error = self._record_error(submission, event)
        version = self._record_version(problem, submission, event)
        self._apply_outcome(problem, event)
        return IngestResult(submission, problem, is_new=True, error=error, version=version)

    def _record_error(self, submission: Submission, event: SubmissionEvent):
        if not event.error_message:
            return None
        error = SubmissionError(
            submission=submission,
            error_message=event.error_message,
            error_type=LOGICAL if is_accepted(event.status) else RUNTIME,
        )
        db.session.add(error)
        return error

    def _record_version(self, problem: Problem, submission: Submission,
                        event: SubmissionEvent):
        if not event.has_version:
            return None
        latest = SolutionVersion.latest_number(problem.id)
        number = latest + 1 if latest else (event.version_number or 1)
        version = SolutionVersion(
            submission=submission,
            code=event.code,
            language=event.language,
            version_number=number,
            changelog=event.changelog or f'Submission - {event.status}',
        )
        db.session.add(version)
        return version

    def _apply_outcome(self, problem: Problem, event: SubmissionEvent) -> None:
        day = self._calendar_day(event.submitted_at)
        if problem.last_attempted is None or event.submitted_at > problem.last_attempted:
            problem.last_attempted = event.submitted_at

        if is_accepted(event.status):
            if problem.advance_status(ProblemStatus.SOLVED):
                stats = Statistics.for_user(self.user_id)
                stats.record_solve(problem.difficulty, day)
                Activity.bump(self.user_id, day, solved=1, streak=stats.streak)
        elif problem.advance_status(ProblemStatus.ATTEMPTED):
            Activity.bump(self.user_id, day, attempted=1)

    def _calendar_day(self, moment: datetime):
        return current_app.to_display_tz(moment).date()

    # ── lookups ───────────────────────────────────

    def _find_duplicate(self, problem: Problem, event: SubmissionEvent):
        query = Submission.query.filter_by(user_id=self.user_id)
        if event.external_id:
            return query.filter_by(
                problem_id=problem.id, external_id=event.external_id,
            ).first()
        if event.offline_id:
            found = query.filter_by(offline_id=event.offline_id).first()
            if found is not None:
                return found
            # Weaker match for offline records created before offline ids were stored
            return query.filter_by(
                problem_id=problem.id,
                code=event.code,
                status=event.status,
                language=event.language,
            ).first()
        return None

    def _resolve_problem(self, event: SubmissionEvent) -> Problem:
        problem = None
        if event.problem_ref:
            problem = Problem.query.filter_by(
                user_id=self.user_id, platform_id=event.problem_ref,
            ).first()
        if problem is None and event.problem_ref and event.problem_ref.isdigit():
            # Row-id references match only problems stored without a judge id
            problem = Problem.query.filter_by(
                user_id=self.user_id, id=int(event.problem_ref), platform_id=None,
            ).first()
        if problem is None and event.problem_url:
            problem = Problem.query.filter_by(
                user_id=self.user_id, url=event.problem_url,
            ).first()
        if problem is not None:
            return problem

        ref = event.problem_ref
        problem = Problem(
            user_id=self.user_id,
            platform=DEFAULT_PLATFORM,
            platform_id=ref,
            title=event.title or f'LeetCode Problem {ref}',
            difficulty=event.difficulty or DEFAULT_DIFFICULTY,
            url=event.problem_url or f'https://leetcode.com/problems/{ref}/',
            description=event.description or '',
            status=ProblemStatus.TODO.value,
        )
        db.session.add(problem)
        db.session.flush()
        self._attach_tags(problem, event.tags)
        logger.info(f"Created problem {ref} for user {self.user_id}")
        return problem

    def _attach_tags(self, problem: Problem, names) -> None:
        for name in names or []:
            name = _clean(name)
            if not name:
                continue
            tag = Tag.query.filter_by(user_id=self.user_id, name=name).first()
            if tag is None:
                tag = Tag(user_id=self.user_id, name=name, color=tag_color(name))
                db.session.add(tag)
            if tag not in problem.tags:
                problem.tags.append(tag)

    # ── offline batch ─────────────────────────────

    def offline_sync(self, data) -> dict:
        """Apply a queued batch; per-item failures are collected, not raised."""
        if not isinstance(data, dict):
            raise ValidationError('Invalid data')

        results = {
            'success': True,
            'processed': {
                'problems': 0,
                'submissions': 0,
                'duplicates': 0,
                'deletions': {'problems': 0, 'submissions': 0},
            },
            'errors': [],
            'timestamp': int(time.time() * 1000),
        }
        processed = results['processed']
        errors = results['errors']

        for item in self._as_list(data.get('problems')):
            try:
                if self.run_in_transaction(self._upsert_problem, item):
                    processed['problems'] += 1
            except IngestError as e:
                errors.append(str(e))
            except Exception as e:
                logger.error(f"Error processing problem: {e}")
                errors.append(f'Failed to process problem: {e}')

        for item in self._as_list(data.get('submissions')):
            try:
                event = SubmissionEvent.from_offline_payload(item)
                result = self.run_in_transaction(self._apply_offline_event, event)
                if result.is_new:
                    processed['submissions'] += 1
                else:
                    processed['duplicates'] += 1
            except IngestError as e:
                errors.append(str(e))
            except Exception as e:
                logger.error(f"Error processing submission: {e}")
                errors.append(f'Failed to process submission: {e}')

        deletions = data.get('pendingDeletions') or {}
        if isinstance(deletions, dict):
            for url in self._as_list(deletions.get('problems')):
                try:
                    if self.run_in_transaction(self._delete_problem, url):
                        processed['deletions']['problems'] += 1
                except Exception as e:
                    logger.error(f"Error deleting problem: {e}")
                    errors.append(f'Failed to delete problem: {e}')
            for offline_id in self._as_list(deletions.get('submissions')):
                try:
                    if self.run_in_transaction(self._delete_submission, offline_id):
                        processed['deletions']['submissions'] += 1
                except Exception as e:
                    logger.error(f"Error deleting submission: {e}")
                    errors.append(f'Failed to delete submission: {e}')

        return results

    @staticmethod
    def _as_list(value) -> list:
        return value if isinstance(value, list) else []

    def _upsert_problem(self, item) -> bool:
        """Create the problem described by *item* unless it exists. True if created."""
        if not isinstance(item, dict) or not item.get('url') or not item.get('title'):
            raise ValidationError(f'Invalid problem data: {item!r}')
        url = item['url']
        platform_id = _clean(item.get('platformId'))
        if Problem.query.filter_by(user_id=self.user_id, url=url).first():
            return False
        # platform_id is unique per owner; the same problem queued under another URL
        if platform_id and Problem.query.filter_by(
                user_id=self.user_id, platform_id=platform_id).first():
            logger.info(f"Problem {platform_id} already stored for user {self.user_id}, skipping {url}")
            return False
        status = ProblemStatus.parse(item.get('status'), ProblemStatus.TODO)
        problem = Problem(
            user_id=self.user_id,
            url=url,
            title=item['title'],
            difficulty=item.get('difficulty') or DEFAULT_DIFFICULTY,
            platform=item.get('platform') or DEFAULT_PLATFORM,
            platform_id=platform_id,
            status=status.value,
        )
        db.session.add(problem)
        db.session.flush()
        self._attach_tags(problem, item.get('tags') or [])
        return True

    def _apply_offline_event(self, event: SubmissionEvent) -> IngestResult:
        problem = Problem.query.filter_by(
            user_id=self.user_id, url=event.problem_url,
        ).first()
        if problem is None:
            raise ValidationError(
                f'Problem not found for submission: {event.problem_url}'
            )
        event.problem_ref = problem.platform_id
        return self.apply_event(event)

    def _delete_problem(self, url) -> bool:
        problem = Problem.query.filter_by(user_id=self.user_id, url=url).first()
        if problem is None:
            return False
        db.session.delete(problem)
        return True

    def _delete_submission(self, offline_id) -> bool:
        submission = Submission.query.filter_by(
            user_id=self.user_id, offline_id=_clean(offline_id),
        ).first()
        if submission is None:
            return False
        db.session.delete(submission)
        return True
