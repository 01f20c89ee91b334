"""Unit tests for habit models - cadence rules, completions and validation."""

import pytest
from datetime import date, datetime
from pydantic import ValidationError

from src.core.models import (
    Habit,
    DailyCadence,
    WeeklyCadence,
    MonthlyCadence,
    YearlyCadence,
    new_habit,
)
from src.core.days import MONDAY, WEDNESDAY, SUNDAY, SATURDAY


class TestCadence:
    """Tests for is_due on each cadence variant."""

    def test_daily_always_due(self):
        """Daily habits are due every day."""
        habit = Habit(title="Stretch", cadence=DailyCadence())
        for offset in range(1, 32):
            assert habit.is_due(date(2024, 12, offset)) is True

    def test_weekly_due_on_selected_weekdays(self):
        """Weekly habits are due only on the selected weekdays."""
        habit = Habit(title="Gym", cadence=WeeklyCadence(weekdays={MONDAY, WEDNESDAY}))
        # 2024-12-01 is a Sunday
        due = [d for d in range(1, 8) if habit.is_due(date(2024, 12, d))]
        assert due == [2, 4]

    def test_weekly_weekend_numbering(self):
        """Sunday is 1 and Saturday is 7."""
        habit = Habit(title="Long run", cadence=WeeklyCadence(weekdays={SUNDAY, SATURDAY}))
        assert habit.is_due(date(2024, 12, 1)) is True
        assert habit.is_due(date(2024, 12, 7)) is True
        assert habit.is_due(date(2024, 12, 2)) is False

    def test_weekly_empty_set_never_due(self):
        """A weekly habit without weekdays is never due."""
        habit = Habit(title="Gym", cadence=WeeklyCadence())
        assert not any(habit.is_due(date(2024, 12, d)) for d in range(1, 8))

    def test_monthly_due_on_target_day(self):
        """Monthly habits are due on the target day of every month."""
        habit = Habit(title="Budget", cadence=MonthlyCadence(day=15))
        assert habit.is_due(date(2024, 11, 15)) is True
        assert habit.is_due(date(2024, 12, 15)) is True
        assert habit.is_due(date(2024, 12, 14)) is False

    def test_monthly_day_31_skips_short_months(self):
        """Day 31 is never due in a 30-day month."""
        habit = Habit(title="Review", cadence=MonthlyCadence(day=31))
        assert not any(habit.is_due(date(2024, 11, d)) for d in range(1, 31))

    def test_monthly_missing_target_never_due(self):
        """Monthly habit without a target day is never due."""
        habit = Habit(title="Budget", cadence=MonthlyCadence())
        assert habit.is_due(date(2024, 12, 1)) is False

    def test_yearly_due_on_day_and_month(self):
        """Yearly habits need both day and month to match."""
        habit = Habit(title="Checkup", cadence=YearlyCadence(day=3, month=6))
        assert habit.is_due(date(2025, 6, 3)) is True
        assert habit.is_due(date(2025, 7, 3)) is False
        assert habit.is_due(date(2025, 6, 4)) is False

    def test_yearly_missing_month_never_due(self):
        """Yearly habit with a missing month is never due."""
        habit = Habit(title="Checkup", cadence=YearlyCadence(day=3))
        assert habit.is_due(date(2025, 6, 3)) is False

    def test_due_ignores_time_of_day(self):
        """is_due looks at the calendar day only."""
        habit = Habit(title="Budget", cadence=MonthlyCadence(day=15))
        assert habit.is_due(datetime(2024, 12, 15, 23, 59)) is True

    def test_out_of_range_weekday_rejected(self):
        """Weekday numbers outside 1-7 are rejected."""
        with pytest.raises(ValidationError):
            WeeklyCadence(weekdays={0})
        with pytest.raises(ValidationError):
            WeeklyCadence(weekdays={8})

    def test_out_of_range_day_and_month_rejected(self):
        """Day 32 and month 13 are rejected."""
        with pytest.raises(ValidationError):
            MonthlyCadence(day=32)
        with pytest.raises(ValidationError):
            YearlyCadence(day=1, month=13)


class TestCompletions:
    """Tests for completion queries and mutations."""

    def test_completion_matches_whole_day(self):
        """A completion at any time marks the whole day completed."""
        habit = Habit(title="Read")
        habit.add_completion(datetime(2024, 12, 5, 23, 30))

        assert habit.is_completed(date(2024, 12, 5)) is True
        assert habit.is_completed(datetime(2024, 12, 5, 0, 1)) is True
        assert habit.is_completed(date(2024, 12, 6)) is False

    def test_plain_date_stored_as_midnight(self):
        """Adding a plain date records local midnight."""
        habit = Habit(title="Read")
        habit.add_completion(date(2024, 12, 5))
        assert habit.completed_dates == [datetime(2024, 12, 5, 0, 0)]

    def test_add_keeps_duplicates(self):
        """Adding the same day twice keeps both entries."""
        habit = Habit(title="Read")
        habit.add_completion(date(2024, 12, 5))
        habit.add_completion(datetime(2024, 12, 5, 18, 0))
        assert len(habit.completed_dates) == 2

    def test_remove_clears_all_duplicates(self):
        """Removing a day drops every entry on that day."""
        habit = Habit(
            title="Read",
            completed_dates=[
                datetime(2024, 12, 5, 8, 0),
                datetime(2024, 12, 4, 8, 0),
                datetime(2024, 12, 5, 21, 0),
            ],
        )
        habit.remove_completion(date(2024, 12, 5))

        assert habit.is_completed(date(2024, 12, 5)) is False
        assert habit.completed_dates == [datetime(2024, 12, 4, 8, 0)]

    def test_remove_missing_day_is_noop(self):
        """Removing a day that was never completed changes nothing."""
        habit = Habit(title="Read", completed_dates=[date(2024, 12, 4)])
        habit.remove_completion(date(2024, 12, 5))
        assert len(habit.completed_dates) == 1

    def test_completion_days_deduplicates(self):
        """completion_days returns distinct calendar days."""
        habit = Habit(
            title="Read",
            completed_dates=[datetime(2024, 12, 5, 8), datetime(2024, 12, 5, 9), date(2024, 12, 1)],
        )
        assert habit.completion_days() == {date(2024, 12, 5), date(2024, 12, 1)}


class TestToggleCompletion:
    """Tests for toggle_completion."""

    def test_toggle_on_due_day(self):
        """Toggling an open due day completes it."""
        habit = Habit(title="Read")
        assert habit.toggle_completion(date(2024, 12, 5)) is True
        assert habit.is_completed(date(2024, 12, 5)) is True

    def test_toggle_off_completed_day(self):
        """Toggling a completed day clears it, duplicates included."""
        habit = Habit(title="Read", completed_dates=[date(2024, 12, 5), date(2024, 12, 5)])
        assert habit.toggle_completion(date(2024, 12, 5)) is False
        assert habit.completed_dates == []

    def test_toggle_on_non_due_day_ignored(self):
        """A day that is not due cannot be marked completed."""
        habit = Habit(title="Gym", cadence=WeeklyCadence(weekdays={MONDAY}))
        # 2024-12-03 is a Tuesday
        assert habit.toggle_completion(date(2024, 12, 3)) is False
        assert habit.completed_dates == []

    def test_toggle_off_after_cadence_change(self):
        """A completed day can be cleared even if it is no longer due."""
        habit = Habit(
            title="Gym",
            cadence=WeeklyCadence(weekdays={MONDAY}),
            completed_dates=[date(2024, 12, 2)],
        )
        habit.set_weekdays({WEDNESDAY})
        assert habit.toggle_completion(date(2024, 12, 2)) is False
        assert habit.completed_dates == []


class TestHabitRecord:
    """Tests for Habit construction and cadence edits."""

    def test_defaults(self):
        """Defaults are set correctly."""
        habit = Habit(title="Meditate")
        assert habit.id is not None
        assert habit.creation_date == date.today()
        assert habit.cadence.kind == "daily"
        assert habit.completed_dates == []

    def test_empty_title_rejected(self):
        """Empty title is rejected."""
        with pytest.raises(ValidationError):
            Habit(title="")

    def test_creation_datetime_reduced_to_day(self):
        """A naive creation timestamp keeps only its day."""
        habit = Habit(title="Read", creation_date=datetime(2024, 12, 1, 15, 45))
        assert habit.creation_date == date(2024, 12, 1)

    def test_id_is_immutable(self):
        """The id cannot be reassigned."""
        habit = Habit(title="Read")
        with pytest.raises(ValidationError):
            habit.id = "other"

    def test_creation_date_is_immutable(self):
        """The creation date cannot be reassigned."""
        habit = Habit(title="Read", creation_date=date(2024, 12, 1))
        with pytest.raises(ValidationError):
            habit.creation_date = date(2024, 1, 1)

    def test_set_weekdays(self):
        """Weekdays of a weekly habit can be replaced."""
        habit = Habit(title="Gym", cadence=WeeklyCadence(weekdays={MONDAY}))
        habit.set_weekdays([WEDNESDAY])
        assert habit.is_due(date(2024, 12, 4)) is True
        assert habit.is_due(date(2024, 12, 2)) is False

    def test_set_weekdays_rejects_out_of_range(self):
        """Invalid weekday numbers leave the cadence untouched."""
        habit = Habit(title="Gym", cadence=WeeklyCadence(weekdays={MONDAY}))
        with pytest.raises(ValidationError):
            habit.set_weekdays([9])
        assert habit.cadence.weekdays == {MONDAY}

    def test_set_weekdays_on_daily_rejected(self):
        """Weekdays can only be edited on weekly habits."""
        habit = Habit(title="Read")
        with pytest.raises(ValueError):
            habit.set_weekdays([MONDAY])

    def test_set_title(self):
        """A habit can be renamed."""
        habit = Habit(title="Read")
        habit.set_title("Read 20 pages")
        assert habit.title == "Read 20 pages"

    def test_set_title_rejects_empty(self):
        """Renaming to an empty title is rejected and keeps the old one."""
        habit = Habit(title="Read")
        with pytest.raises(ValidationError):
            habit.set_title("")
        assert habit.title == "Read"

    def test_set_cadence(self):
        """Cadence can be replaced with another variant."""
        habit = Habit(title="Read")
        habit.set_cadence(MonthlyCadence(day=1))
        assert habit.is_due(date(2024, 12, 1)) is True
        assert habit.is_due(date(2024, 12, 2)) is False

    def test_json_round_trip_keeps_cadence_variant(self):
        """Cadence is stored as a tagged object and decoded back to its variant."""
        habit = Habit(
            title="Gym",
            creation_date=date(2024, 12, 1),
            cadence=WeeklyCadence(weekdays={MONDAY, WEDNESDAY}),
            completed_dates=[datetime(2024, 12, 2, 7, 30)],
        )
        data = habit.model_dump(mode="json")

        assert data["cadence"]["kind"] == "weekly"
        assert Habit(**data) == habit


class TestNewHabit:
    """Tests for new_habit factory."""

    def test_weekly(self):
        """Weekly habit keeps the given weekdays."""
        habit = new_habit("Gym", "weekly", weekdays=[MONDAY, WEDNESDAY], today=date(2024, 12, 2))
        assert habit.cadence.weekdays == {MONDAY, WEDNESDAY}
        assert habit.creation_date == date(2024, 12, 2)

    def test_monthly_defaults_to_today(self):
        """Monthly target defaults to today's day of month."""
        habit = new_habit("Budget", "monthly", today=date(2024, 12, 9))
        assert habit.cadence.day == 9

    def test_yearly_defaults_to_today(self):
        """Yearly target defaults to today's day and month."""
        habit = new_habit("Checkup", "yearly", today=date(2024, 6, 3))
        assert (habit.cadence.day, habit.cadence.month) == (3, 6)

    def test_explicit_targets_win(self):
        """Explicit targets override today's values."""
        habit = new_habit("Checkup", "yearly", day=25, month=12, today=date(2024, 6, 3))
        assert (habit.cadence.day, habit.cadence.month) == (25, 12)

    def test_unknown_kind_rejected(self):
        """Unknown cadence kinds raise ValueError."""
        with pytest.raises(ValueError):
            new_habit("Read", "hourly")
