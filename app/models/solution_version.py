from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from app.extensions import db
from .submission import Submission


class SolutionVersion(db.Model):
    """A numbered snapshot of the code submitted for a problem."""

    __tablename__ = 'solution_version'

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(
        db.Integer,
        db.ForeignKey('submission.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    code = db.Column(db.Text, nullable=False, default='')
    language = db.Column(db.String(50), nullable=False, default='unknown')
    version_number = db.Column(db.Integer, nullable=False, default=1)
    changelog = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    submission = db.relationship('Submission', back_populates='versions')

    @classmethod
    def latest_number(cls, problem_id: int) -> int | None:
        """Highest version number recorded across the problem's submissions."""
        return (
            db.session.query(func.max(cls.version_number))
            .join(Submission, Submission.id == cls.submission_id)
            .filter(Submission.problem_id == problem_id)
            .scalar()
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'submissionId': self.submission_id,
            'versionNumber': self.version_number,
            'language': self.language,
            'changelog': self.changelog,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f'<SolutionVersion v{self.version_number} submission={self.submission_id}>'
