"""Tests for streak arithmetic and Statistics.record_solve."""

from datetime import date, timedelta

import pytest

from app.models import Statistics
from app.services.streak import longest_streak, next_streak

TODAY = date(2026, 3, 10)


class TestNextStreak:
    def test_first_solve(self):
        assert next_streak(None, TODAY, 0) == 1

    def test_same_day_repeat(self):
        assert next_streak(TODAY, TODAY, 4) == 4

    def test_consecutive_day(self):
        assert next_streak(TODAY - timedelta(days=1), TODAY, 4) == 5

    @pytest.mark.parametrize('gap', [2, 3, 30, 400])
    def test_gap_resets(self, gap):
        assert next_streak(TODAY - timedelta(days=gap), TODAY, 9) == 1

    def test_back_dated_solve_leaves_streak(self):
        assert next_streak(TODAY, TODAY - timedelta(days=3), 6) == 6

    def test_none_current_streak(self):
        assert next_streak(TODAY - timedelta(days=1), TODAY, None) == 1


class TestLongestStreak:
    @pytest.mark.parametrize('longest, streak, expected', [
        (None, 1, 1),
        (0, 1, 1),
        (5, 3, 5),
        (5, 6, 6),
    ])
    def test_never_decreases(self, longest, streak, expected):
        assert longest_streak(longest, streak) == expected


class TestRecordSolve:
    def _stats(self):
        return Statistics(
            total_solved=0, easy_count=0, medium_count=0, hard_count=0,
            streak=0, longest_streak=0,
        )

    def test_run_of_days(self):
        stats = self._stats()
        for offset in range(3):
            stats.record_solve('Easy', TODAY + timedelta(days=offset))
        assert stats.streak == 3
        assert stats.longest_streak == 3
        assert stats.total_solved == 3
        assert stats.easy_count == 3
        assert stats.last_solved == TODAY + timedelta(days=2)

    def test_gap_keeps_longest(self):
        stats = self._stats()
        stats.record_solve('Medium', TODAY)
        stats.record_solve('Hard', TODAY + timedelta(days=1))
        stats.record_solve('medium', TODAY + timedelta(days=5))
        assert stats.streak == 1
        assert stats.longest_streak == 2
        assert stats.medium_count == 2
        assert stats.hard_count == 1

    def test_unknown_difficulty_counts_total_only(self):
        stats = self._stats()
        stats.record_solve('Insane', TODAY)
        assert stats.total_solved == 1
        assert (stats.easy_count, stats.medium_count, stats.hard_count) == (0, 0, 0)

    def test_back_dated_solve_keeps_last_solved(self):
        stats = self._stats()
        stats.record_solve('Easy', TODAY)
        stats.record_solve('Easy', TODAY - timedelta(days=4))
        assert stats.last_solved == TODAY
        assert stats.streak == 1
        assert stats.longest_streak >= stats.streak
