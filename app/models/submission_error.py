from __future__ import annotations

from datetime import datetime

from app.extensions import db

LOGICAL = 'logical'
RUNTIME = 'runtime'


class SubmissionError(db.Model):
    """Judge error output attached to a submission."""

    __tablename__ = 'submission_error'

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(
        db.Integer,
        db.ForeignKey('submission.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    error_message = db.Column(db.Text, nullable=False)
    # logical for an accepted run that still reported output, runtime otherwise
    error_type = db.Column(db.String(20), nullable=False, default=RUNTIME)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    submission = db.relationship('Submission', back_populates='errors')

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'submissionId': self.submission_id,
            'errorMessage': self.error_message,
            'errorType': self.error_type,
        }

    def __repr__(self) -> str:
        return f'<SubmissionError {self.error_type} submission={self.submission_id}>'
