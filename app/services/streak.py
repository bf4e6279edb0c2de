"""Streak arithmetic over calendar days.

A streak is the number of consecutive calendar days on which at least one
problem was newly solved.  These functions are pure; the caller decides
which day counts as "today" (see ``Statistics.record_solve``).
"""
from __future__ import annotations

from datetime import date


def next_streak(last_solved: date | None, today: date, current_streak: int) -> int:
    """Return the streak value after a new solve on *today*.

    - no previous solve: 1
    - same day as the last solve: unchanged
    - the day after the last solve: extended by one
    - a gap of two or more days: restarted at 1

    A solve dated before *last_solved* (an out-of-order offline replay)
    leaves the streak unchanged.
    """
    if last_solved is None:
        return 1
    gap = (today - last_solved).days
    if gap <= 0:
        return current_streak or 0
    if gap == 1:
        return (current_streak or 0) + 1
    return 1


def longest_streak(longest: int | None, streak: int) -> int:
    return max(longest or 0, streak)
