"""Core Data Models - Pydantic models for habits and their derived metrics.

The Habit record is the only mutable model: it owns its completion list and
exposes an explicit mutation API. Everything else is a value object.
"""

from datetime import datetime
from datetime import date as DateType
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator
import uuid

from .days import start_of_day, to_local_day, weekday_number


Weekday = Annotated[int, Field(ge=1, le=7)]


# ==================== Cadence Variants ====================


class DailyCadence(BaseModel):
    """Due every calendar day."""

    kind: Literal["daily"] = "daily"

    def is_due(self, on: DateType) -> bool:
        return True


class WeeklyCadence(BaseModel):
    """Due on the selected weekdays (1=Sunday .. 7=Saturday)."""

    kind: Literal["weekly"] = "weekly"
    weekdays: set[Weekday] = Field(default_factory=set, description="Empty set means never due")

    def is_due(self, on: DateType) -> bool:
        return weekday_number(on) in self.weekdays


class MonthlyCadence(BaseModel):
    """Due on a fixed day of every month."""

    kind: Literal["monthly"] = "monthly"
    day: Optional[int] = Field(default=None, ge=1, le=31, description="None means never due")

    def is_due(self, on: DateType) -> bool:
        if self.day is None:
            return False
        return on.day == self.day


class YearlyCadence(BaseModel):
    """Due on a fixed day and month every year."""

    kind: Literal["yearly"] = "yearly"
    day: Optional[int] = Field(default=None, ge=1, le=31)
    month: Optional[int] = Field(default=None, ge=1, le=12)

    def is_due(self, on: DateType) -> bool:
        if self.day is None or self.month is None:
            return False
        return on.day == self.day and on.month == self.month


Cadence = Annotated[
    Union[DailyCadence, WeeklyCadence, MonthlyCadence, YearlyCadence],
    Field(discriminator="kind"),
]

CADENCE_KINDS = ("daily", "weekly", "monthly", "yearly")


# ==================== Habit Record ====================


class Habit(BaseModel):
    """A recurring goal and the days it was completed.

    ``completed_dates`` is kept exactly as recorded: unsorted and possibly
    holding several timestamps for the same day. Queries compare by local
    calendar day.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), frozen=True)
    title: str = Field(min_length=1, description="Display name of the habit")
    creation_date: DateType = Field(default_factory=DateType.today, frozen=True)
    cadence: Cadence = Field(default_factory=DailyCadence)
    completed_dates: list[datetime] = Field(default_factory=list)

    @field_validator("creation_date", mode="before")
    @classmethod
    def _creation_day(cls, value):
        if isinstance(value, datetime):
            return to_local_day(value)
        return value

    @field_validator("completed_dates", mode="before")
    @classmethod
    def _completion_timestamps(cls, value):
        # Plain dates are stored as local midnight
        if isinstance(value, (list, tuple)):
            return [
                start_of_day(v) if isinstance(v, DateType) and not isinstance(v, datetime) else v
                for v in value
            ]
        return value

    # ---------- Queries ----------

    def is_due(self, on: DateType | datetime) -> bool:
        """Whether the cadence obligates an action on the day of ``on``."""
        return self.cadence.is_due(to_local_day(on))

    def is_completed(self, on: DateType | datetime) -> bool:
        """Whether any completion falls on the same local day as ``on``."""
        day = to_local_day(on)
        return any(to_local_day(c) == day for c in self.completed_dates)

    def completion_days(self) -> set[DateType]:
        """Distinct local days with at least one completion."""
        return {to_local_day(c) for c in self.completed_dates}

    # ---------- Mutations ----------

    def add_completion(self, when: DateType | datetime) -> None:
        """Record a completion. Duplicates are kept."""
        if not isinstance(when, datetime):
            when = start_of_day(when)
        self.completed_dates = [*self.completed_dates, when]

    def remove_completion(self, when: DateType | datetime) -> None:
        """Remove every completion on the same local day as ``when``."""
        day = to_local_day(when)
        self.completed_dates = [c for c in self.completed_dates if to_local_day(c) != day]

    def toggle_completion(self, when: DateType | datetime) -> bool:
        """Flip the completed state of a day and return the new state.

        Days that are neither due nor completed cannot be switched on.
        """
        if self.is_completed(when):
            self.remove_completion(when)
            return False
        if not self.is_due(when):
            return False
        self.add_completion(when)
        return True

    def set_title(self, title: str) -> None:
        """Rename the habit. Empty titles are rejected."""
        self.title = title

    def set_cadence(self, cadence: Cadence) -> None:
        self.cadence = cadence

    def set_weekdays(self, weekdays) -> None:
        """Replace the weekday set of a weekly habit.

        Raises:
            ValueError: If the habit is not on a weekly cadence
        """
        if not isinstance(self.cadence, WeeklyCadence):
            raise ValueError(f"Habit {self.id} has a {self.cadence.kind} cadence, not weekly")
        self.cadence = WeeklyCadence(weekdays=set(weekdays))


def new_habit(
    title: str,
    kind: str = "daily",
    weekdays=None,
    day: int | None = None,
    month: int | None = None,
    today: DateType | None = None,
) -> Habit:
    """Create a habit from flat creation-form fields.

    Monthly and yearly targets that are not given default to today's
    day-of-month and month.

    Args:
        title: Habit title
        kind: One of "daily", "weekly", "monthly", "yearly"
        weekdays: Weekday numbers for weekly habits (1=Sunday .. 7=Saturday)
        day: Target day-of-month for monthly/yearly habits
        month: Target month for yearly habits
        today: Creation date (defaults to today)

    Returns:
        The new Habit

    Raises:
        ValueError: If ``kind`` is unknown
        pydantic.ValidationError: If any field is out of range
    """
    if today is None:
        today = DateType.today()

    if kind == "daily":
        cadence = DailyCadence()
    elif kind == "weekly":
        cadence = WeeklyCadence(weekdays=set(weekdays or []))
    elif kind == "monthly":
        cadence = MonthlyCadence(day=day if day is not None else today.day)
    elif kind == "yearly":
        cadence = YearlyCadence(
            day=day if day is not None else today.day,
            month=month if month is not None else today.month,
        )
    else:
        raise ValueError(f"Unknown cadence: {kind!r}. Expected one of {', '.join(CADENCE_KINDS)}")

    return Habit(title=title, creation_date=today, cadence=cadence)


# ==================== Derived Metrics ====================


class AdherenceLabel(str, Enum):
    """Qualitative status bucket for an adherence ratio."""

    PERFECT = "perfect"
    GREAT = "great"
    GOOD = "good"
    ONGOING = "ongoing"
    NOT_STARTED = "not_started"


class DayStatus(BaseModel):
    """Due/completed pair for rendering a single day indicator."""

    day: DateType
    is_due: bool
    is_completed: bool


class HabitStats(BaseModel):
    """Streak and adherence for one habit as of a reference date."""

    habit_id: str
    title: str
    cadence_kind: str
    creation_date: DateType
    as_of: DateType
    current_streak: int = Field(ge=0)
    required_days: int = Field(ge=0, description="Due days from creation to as_of")
    completed_days: int = Field(ge=0, description="Due days that were completed")
    adherence: float = Field(ge=0, le=1)
    label: AdherenceLabel
