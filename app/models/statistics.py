from __future__ import annotations

from datetime import date, datetime

from app.extensions import db
from app.services.streak import next_streak, longest_streak

_DIFFICULTY_COLUMNS = {
    'easy': 'easy_count',
    'medium': 'medium_count',
    'hard': 'hard_count',
}


class Statistics(db.Model):
    """Per-owner solve totals and streak counters."""

    __tablename__ = 'statistics'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey('user.id'), nullable=False, unique=True
    )
    total_solved = db.Column(db.Integer, nullable=False, default=0)
    easy_count = db.Column(db.Integer, nullable=False, default=0)
    medium_count = db.Column(db.Integer, nullable=False, default=0)
    hard_count = db.Column(db.Integer, nullable=False, default=0)
    streak = db.Column(db.Integer, nullable=False, default=0)
    longest_streak = db.Column(db.Integer, nullable=False, default=0)
    last_solved = db.Column(db.Date, nullable=True)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    user = db.relationship('User', back_populates='statistics')

    @classmethod
    def for_user(cls, user_id: int) -> Statistics:
        """Fetch the owner's row, creating an empty one in the session."""
        stats = cls.query.filter_by(user_id=user_id).first()
        if stats is None:
            stats = cls(
                user_id=user_id, total_solved=0, easy_count=0, medium_count=0,
                hard_count=0, streak=0, longest_streak=0,
            )
            db.session.add(stats)
        return stats

    def record_solve(self, difficulty: str, solved_on: date) -> None:
        """Count a first solve of a problem on *solved_on*."""
        self.total_solved = (self.total_solved or 0) + 1
        column = _DIFFICULTY_COLUMNS.get((difficulty or '').strip().lower())
        if column:
            setattr(self, column, (getattr(self, column) or 0) + 1)

        self.streak = next_streak(self.last_solved, solved_on, self.streak)
        self.longest_streak = longest_streak(self.longest_streak, self.streak)
        if self.last_solved is None or solved_on > self.last_solved:
            self.last_solved = solved_on

    def to_dict(self) -> dict:
        return {
            'totalSolved': self.total_solved or 0,
            'easyCount': self.easy_count or 0,
            'mediumCount': self.medium_count or 0,
            'hardCount': self.hard_count or 0,
            'streak': self.streak or 0,
            'longestStreak': self.longest_streak or 0,
            'lastSolved': self.last_solved.isoformat() if self.last_solved else None,
        }

    def __repr__(self) -> str:
        return (
            f'<Statistics user={self.user_id} solved={self.total_solved} '
            f'streak={self.streak}>'
        )
