from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import func

from app.extensions import db
from app.models import Activity, Problem, ProblemStatus, Statistics, Submission


class StatsService:
    @staticmethod
    def _today():
        return current_app.to_display_tz(datetime.utcnow()).date()

    @staticmethod
    def get_user_stats(user_id: int) -> dict:
        stats = Statistics.query.filter_by(user_id=user_id).first()
        summary = stats.to_dict() if stats else Statistics(
            total_solved=0, easy_count=0, medium_count=0, hard_count=0,
            streak=0, longest_streak=0,
        ).to_dict()

        difficulty_rows = (
            db.session.query(Problem.difficulty, func.count(Problem.id))
            .filter(
                Problem.user_id == user_id,
                Problem.status == ProblemStatus.SOLVED.value,
            )
            .group_by(Problem.difficulty)
            .all()
        )

        recent = (
            Submission.query
            .filter_by(user_id=user_id)
            .order_by(Submission.submitted_at.desc())
            .limit(10)
            .all()
        )

        return {
            **summary,
            'difficultyDistribution': {d: n for d, n in difficulty_rows},
            'recentSubmissions': [
                {**s.to_dict(), 'problemTitle': s.problem.title if s.problem else None}
                for s in recent
            ],
            'dailyActivity': StatsService.get_activities(user_id, days=30)['activities'],
        }

    @staticmethod
    def get_activities(user_id: int, days: int = 365) -> dict:
        """Activity rows for the heatmap, oldest first."""
        since = StatsService._today() - timedelta(days=max(days, 1) - 1)
        rows = (
            Activity.query
            .filter(Activity.user_id == user_id, Activity.date >= since)
            .order_by(Activity.date.asc())
            .all()
        )
        stats = Statistics.query.filter_by(user_id=user_id).first()
        return {
            'activities': [row.to_dict() for row in rows],
            'streak': stats.streak if stats else 0,
            'longestStreak': stats.longest_streak if stats else 0,
        }
