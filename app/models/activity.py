from __future__ import annotations

from datetime import date

from app.extensions import db


class Activity(db.Model):
    """Daily counters per owner, used for the heatmap."""

    __tablename__ = 'activity'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'date', name='uq_activity_user_date'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey('user.id'), nullable=False, index=True
    )
    date = db.Column(db.Date, nullable=False)
    problems_attempted = db.Column(db.Integer, nullable=False, default=0)
    problems_solved = db.Column(db.Integer, nullable=False, default=0)
    streak_count = db.Column(db.Integer, nullable=False, default=0)

    @classmethod
    def bump(
        cls, user_id: int, day: date, attempted: int = 0, solved: int = 0,
        streak: int | None = None,
    ) -> Activity:
        """Increment the counters for *day*, creating the row lazily."""
        row = cls.query.filter_by(user_id=user_id, date=day).first()
        if row is None:
            row = cls(
                user_id=user_id, date=day,
                problems_attempted=0, problems_solved=0, streak_count=0,
            )
            db.session.add(row)
        row.problems_attempted += attempted
        row.problems_solved += solved
        if streak is not None:
            row.streak_count = streak
        return row

    def to_dict(self) -> dict:
        return {
            'date': self.date.isoformat(),
            'problemsAttempted': self.problems_attempted,
            'problemsSolved': self.problems_solved,
            'streakCount': self.streak_count,
        }

    def __repr__(self) -> str:
        return f'<Activity user={self.user_id} {self.date} solved={self.problems_solved}>'
