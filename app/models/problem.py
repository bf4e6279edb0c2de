from __future__ import annotations

from datetime import datetime
from enum import Enum

from app.extensions import db
from .tag import problem_tags


class ProblemStatus(str, Enum):
    TODO = 'Todo'
    ATTEMPTED = 'Attempted'
    SOLVED = 'Solved'

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    @classmethod
    def parse(cls, value, default: ProblemStatus = None) -> ProblemStatus | None:
        """Case-insensitive lookup; unknown values map to *default*."""
        for status in cls:
            if isinstance(value, str) and value.lower() == status.value.lower():
                return status
        return default


_STATUS_ORDER = [ProblemStatus.TODO, ProblemStatus.ATTEMPTED, ProblemStatus.SOLVED]


class Problem(db.Model):
    """A judge problem tracked by one owner."""

    __tablename__ = 'problem'
    __table_args__ = (
        db.UniqueConstraint(
            'user_id', 'platform_id',
            name='uq_problem_user_platform_id',
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey('user.id'), nullable=False, index=True
    )
    platform = db.Column(db.String(50), nullable=False, default='LeetCode')
    platform_id = db.Column(db.String(200), nullable=True, index=True)
    title = db.Column(db.String(200), nullable=False)
    difficulty = db.Column(db.String(20), nullable=False, default='Medium')
    url = db.Column(db.String(500), nullable=True, index=True)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(
        db.String(20), nullable=False, default=ProblemStatus.TODO.value
    )
    last_attempted = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    user = db.relationship('User', back_populates='problems')
    tags = db.relationship(
        'Tag', secondary=problem_tags, back_populates='problems', lazy='select'
    )
    submissions = db.relationship(
        'Submission', back_populates='problem',
        cascade='all, delete-orphan', lazy='select',
    )

    @property
    def status_enum(self) -> ProblemStatus:
        return ProblemStatus.parse(self.status, ProblemStatus.TODO)

    def advance_status(self, target: ProblemStatus) -> bool:
        """Move status forward to *target*; never regress.

        Returns True when the status actually changed.
        """
        if target.rank <= self.status_enum.rank:
            return False
        self.status = target.value
        return True

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'platform': self.platform,
            'platformId': self.platform_id,
            'title': self.title,
            'difficulty': self.difficulty,
            'url': self.url,
            'status': self.status,
            'tags': [t.name for t in self.tags],
            'lastAttempted': (
                self.last_attempted.isoformat() if self.last_attempted else None
            ),
        }

    def __repr__(self) -> str:
        return f'<Problem {self.platform}:{self.platform_id} {self.title!r}>'
