from __future__ import annotations

from datetime import datetime

from app.extensions import db

ACCEPTED = 'Accepted'


def is_accepted(status) -> bool:
    return isinstance(status, str) and status.strip().lower() == ACCEPTED.lower()


class Submission(db.Model):
    """A judged code submission captured from the judge site."""

    __tablename__ = 'submission'
    __table_args__ = (
        db.UniqueConstraint(
            'user_id', 'problem_id', 'external_id',
            name='uq_submission_user_problem_external',
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey('user.id'), nullable=False, index=True
    )
    problem_id = db.Column(
        db.Integer,
        db.ForeignKey('problem.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    # Judge-issued submission id, stored verbatim as the idempotency key
    external_id = db.Column(db.String(100), nullable=True)
    offline_id = db.Column(db.String(100), nullable=True, index=True)
    correlation_id = db.Column(db.String(100), nullable=True)
    code = db.Column(db.Text, nullable=False, default='')
    language = db.Column(db.String(50), nullable=False, default='unknown')
    status = db.Column(db.String(50), nullable=False)
    runtime = db.Column(db.String(50), nullable=True)
    memory = db.Column(db.String(50), nullable=True)
    submitted_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    problem = db.relationship('Problem', back_populates='submissions')
    errors = db.relationship(
        'SubmissionError', back_populates='submission',
        cascade='all, delete-orphan', lazy='select',
    )
    versions = db.relationship(
        'SolutionVersion', back_populates='submission',
        cascade='all, delete-orphan', lazy='select',
        order_by='SolutionVersion.version_number',
    )

    @property
    def accepted(self) -> bool:
        return is_accepted(self.status)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'problemId': self.problem_id,
            'externalId': self.external_id,
            'correlationId': self.correlation_id,
            'language': self.language,
            'status': self.status,
            'runtime': self.runtime,
            'memory': self.memory,
            'submittedAt': self.submitted_at.isoformat() if self.submitted_at else None,
        }

    def __repr__(self) -> str:
        return (
            f'<Submission {self.external_id or self.offline_id} '
            f'status={self.status!r}>'
        )
