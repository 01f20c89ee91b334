"""Firestore Client - Persistence for habit records.

This module handles all database I/O for habits.
All I/O is contained here; scheduling and adherence logic is in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable

from google.cloud import firestore

from ..core.models import Habit


logger = logging.getLogger(__name__)


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
        collection: Collection holding one document per habit
    """

    project_id: str | None = None
    database: str | None = None
    collection: str = "habits"


class HabitFirestoreClient:
    """Client for persisting habits to Firestore.

    Document structure:
        {collection}/{habit_id}: { id, title, creation_date, cadence: {kind, ...}, completed_dates: [...] }
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.config.project_id:
                kwargs["project"] = self.config.project_id
            if self.config.database:
                kwargs["database"] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _habit_ref(self, habit_id: str) -> firestore.DocumentReference:
        return self.client.collection(self.config.collection).document(habit_id)

    # ==================== Habit Operations ====================

    def list_habits(self) -> list[Habit]:
        """Fetch all habits, oldest first.

        Returns:
            List of habits (empty on failure)
        """
        logger.debug("Listing habits in %s", self.config.collection)
        try:
            docs = self.client.collection(self.config.collection).order_by("creation_date").stream()
            habits = [Habit(**doc.to_dict()) for doc in docs]
            logger.debug("Found %d habits", len(habits))
            return habits
        except Exception as e:
            logger.error("Failed to list habits: %s", str(e))
            return []

    def get_habit(self, habit_id: str) -> Habit | None:
        """Fetch a single habit.

        Args:
            habit_id: The habit's ID

        Returns:
            Habit if found, None otherwise
        """
        logger.debug("Fetching habit: %s", habit_id[:8])
        try:
            doc = self._habit_ref(habit_id).get()
            if not doc.exists:
                return None
            return Habit(**doc.to_dict())
        except Exception as e:
            logger.error("Failed to fetch habit: %s", str(e))
            return None

    def save_habit(self, habit: Habit) -> bool:
        """Create or overwrite a habit document.

        The cadence is stored as a nested map keyed by ``kind``; dates and
        timestamps are stored as ISO strings.

        Args:
            habit: The habit to save

        Returns:
            True if successful
        """
        logger.info("Saving habit %s (%s)", habit.id[:8], habit.title)
        try:
            self._habit_ref(habit.id).set(habit.model_dump(mode="json"))
            return True
        except Exception as e:
            logger.error("Failed to save habit: %s", str(e))
            return False

    def delete_habit(self, habit_id: str) -> bool:
        """Delete a habit permanently.

        Args:
            habit_id: The habit's ID

        Returns:
            True if the habit existed and was deleted
        """
        logger.info("Deleting habit: %s", habit_id[:8])
        try:
            ref = self._habit_ref(habit_id)
            if not ref.get().exists:
                logger.warning("Habit not found: %s", habit_id)
                return False
            ref.delete()
            return True
        except Exception as e:
            logger.error("Failed to delete habit: %s", str(e))
            return False

    def toggle_completion(self, habit_id: str, on: date | None = None) -> Habit | None:
        """Flip a day's completion for a habit and persist it.

        Args:
            habit_id: The habit's ID
            on: Day to toggle (defaults to today)

        Returns:
            Updated Habit if successful, None otherwise
        """
        if on is None:
            on = date.today()

        habit = self.get_habit(habit_id)
        if habit is None:
            logger.warning("Habit not found: %s", habit_id)
            return None

        completed = habit.toggle_completion(on)
        logger.debug("Habit %s on %s completed=%s", habit_id[:8], on, completed)

        if self.save_habit(habit):
            return habit
        return None

    def rename_habit(self, habit_id: str, title: str) -> Habit | None:
        """Change a habit's title.

        Args:
            habit_id: The habit's ID
            title: New non-empty title

        Returns:
            Updated Habit if successful, None otherwise

        Raises:
            pydantic.ValidationError: If the title is empty
        """
        habit = self.get_habit(habit_id)
        if habit is None:
            logger.warning("Habit not found: %s", habit_id)
            return None

        habit.set_title(title)

        if self.save_habit(habit):
            return habit
        return None

    def set_weekdays(self, habit_id: str, weekdays: Iterable[int]) -> Habit | None:
        """Replace the weekday selection of a weekly habit.

        Args:
            habit_id: The habit's ID
            weekdays: Weekday numbers (1=Sunday .. 7=Saturday)

        Returns:
            Updated Habit if successful, None otherwise

        Raises:
            ValueError: If the habit is not weekly
            pydantic.ValidationError: If a weekday number is out of range
        """
        habit = self.get_habit(habit_id)
        if habit is None:
            logger.warning("Habit not found: %s", habit_id)
            return None

        habit.set_weekdays(weekdays)

        if self.save_habit(habit):
            return habit
        return None
