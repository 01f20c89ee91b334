"""Adherence Engine - Pure functions for streaks and completion ratios.

All functions are pure: same input always produces same output, no side effects.
Nothing here mutates a Habit; every metric is recomputed from the habit's
creation date and completion list on each call.
"""

from datetime import date, timedelta
from typing import Iterable

from .models import AdherenceLabel, DayStatus, Habit, HabitStats
from .days import days_between, previous_day, to_local_day


# Upper bound on days walked back when counting a streak.
# Streaks longer than this are reported as this many days at most.
STREAK_LOOKBACK_DAYS = 365

# Days shown in the recent-days strip
RECENT_DAYS = 7


def compute_streak(
    habit: Habit,
    as_of: date | None = None,
    max_days: int = STREAK_LOOKBACK_DAYS,
) -> int:
    """Count consecutive completed due days walking back from ``as_of``.

    An unfinished obligation on ``as_of`` itself does not break the streak;
    counting simply starts from the previous day. Days that are not due are
    skipped. The first missed due day ends the walk.

    Args:
        habit: The habit to inspect
        as_of: Reference day (defaults to today)
        max_days: Maximum number of days to walk back

    Returns:
        Current streak length (>= 0)
    """
    if as_of is None:
        as_of = date.today()

    check_day = to_local_day(as_of)
    if not (habit.is_due(check_day) and habit.is_completed(check_day)):
        check_day = previous_day(check_day)

    streak = 0
    for _ in range(max_days):
        if habit.is_due(check_day):
            if not habit.is_completed(check_day):
                break
            streak += 1
        check_day = previous_day(check_day)

    return streak


def count_due_days(habit: Habit, as_of: date | None = None) -> tuple[int, int]:
    """Count due and completed-due days over the habit's lifetime.

    Both the creation day and ``as_of`` are included. A reference day
    before the creation date yields an empty window.

    Args:
        habit: The habit to scan
        as_of: Last day of the window (defaults to today)

    Returns:
        Tuple of (required, completed)
    """
    if as_of is None:
        as_of = date.today()

    start = habit.creation_date
    total_days = days_between(start, as_of)

    required = 0
    completed = 0
    for offset in range(total_days + 1):
        day = start + timedelta(days=offset)
        if habit.is_due(day):
            required += 1
            if habit.is_completed(day):
                completed += 1

    return required, completed


def compute_adherence(habit: Habit, as_of: date | None = None) -> float:
    """Ratio of completed due days to all due days since creation.

    Returns 0.0 when no day in the window was due.
    """
    required, completed = count_due_days(habit, as_of)
    return completed / required if required > 0 else 0.0


def adherence_label(ratio: float) -> AdherenceLabel:
    """Bucket an adherence ratio into a qualitative status."""
    if ratio >= 1.0:
        return AdherenceLabel.PERFECT
    if ratio >= 0.8:
        return AdherenceLabel.GREAT
    if ratio >= 0.5:
        return AdherenceLabel.GOOD
    if ratio > 0:
        return AdherenceLabel.ONGOING
    return AdherenceLabel.NOT_STARTED


def day_status(habit: Habit, on: date) -> DayStatus:
    day = to_local_day(on)
    return DayStatus(day=day, is_due=habit.is_due(day), is_completed=habit.is_completed(day))


def recent_days(habit: Habit, as_of: date | None = None, days: int = RECENT_DAYS) -> list[DayStatus]:
    """Day indicators for the ``days`` days ending at ``as_of``, oldest first."""
    if as_of is None:
        as_of = date.today()

    end = to_local_day(as_of)
    return [day_status(habit, end - timedelta(days=offset)) for offset in range(days - 1, -1, -1)]


def habit_stats(habit: Habit, as_of: date | None = None) -> HabitStats:
    """Compute streak and adherence for one habit.

    Args:
        habit: The habit to summarize
        as_of: Reference day (defaults to today)

    Returns:
        HabitStats for the habit
    """
    if as_of is None:
        as_of = date.today()
    as_of = to_local_day(as_of)

    required, completed = count_due_days(habit, as_of)
    ratio = completed / required if required > 0 else 0.0

    return HabitStats(
        habit_id=habit.id,
        title=habit.title,
        cadence_kind=habit.cadence.kind,
        creation_date=habit.creation_date,
        as_of=as_of,
        current_streak=compute_streak(habit, as_of),
        required_days=required,
        completed_days=completed,
        adherence=ratio,
        label=adherence_label(ratio),
    )


def summarize_habits(habits: Iterable[Habit], as_of: date | None = None) -> list[HabitStats]:
    """Compute stats for each habit, preserving input order."""
    if as_of is None:
        as_of = date.today()

    return [habit_stats(habit, as_of) for habit in habits]
