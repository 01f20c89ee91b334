"""MCP Server - Tool definitions for habit tracking.

Defines all MCP tools that an assistant can invoke to manage habits,
toggle completions and read streak/adherence statistics.
"""

import logging
import os
from collections import Counter
from datetime import date

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings
from pydantic import ValidationError

from ..core.models import CADENCE_KINDS, Habit, new_habit
from ..core.adherence import habit_stats, recent_days, summarize_habits, RECENT_DAYS, STREAK_LOOKBACK_DAYS
from .firestore_client import HabitFirestoreClient, FirestoreConfig


logger = logging.getLogger(__name__)

transport_security = TransportSecuritySettings(
    enable_dns_rebinding_protection=True,
    allowed_hosts=[
        "localhost:*",
        "127.0.0.1:*",
        "*.run.app:*",
        "*.run.app",
    ],
)

mcp = FastMCP(
    "habits",
    instructions="""Habits - Personal habit tracker.

Use these tools to help the user keep their habit chains unbroken.

Cadences: "daily", "weekly" (with weekdays 1=Sunday .. 7=Saturday),
"monthly" (day of month) and "yearly" (day and month).
Call list_habits to see today's status before toggling completions.
After toggling, show the updated streak and adherence.""",
    stateless_http=True,
    transport_security=transport_security,
)

_firestore_client: HabitFirestoreClient | None = None


def get_firestore_client() -> HabitFirestoreClient:
    """Get or create Firestore client."""
    global _firestore_client
    if _firestore_client is None:
        config = FirestoreConfig(
            project_id=os.environ.get("FIRESTORE_PROJECT"),
            database=os.environ.get("FIRESTORE_DATABASE", "habits"),
            collection=os.environ.get("FIRESTORE_COLLECTION", "habits"),
        )
        _firestore_client = HabitFirestoreClient(config)
    return _firestore_client


def _parse_day(date_str: str | None) -> date:
    """Parse an optional YYYY-MM-DD string, defaulting to today.

    Raises:
        ValueError: If the string is not a valid ISO date
    """
    if date_str is None:
        return date.today()
    return date.fromisoformat(date_str)


def _habit_payload(habit: Habit, as_of: date, days: int = RECENT_DAYS) -> dict:
    stats = habit_stats(habit, as_of)
    return {
        "habit": habit.model_dump(mode="json", exclude={"completed_dates"}),
        "stats": stats.model_dump(mode="json"),
        "recent_days": [s.model_dump(mode="json") for s in recent_days(habit, as_of, days)],
    }


# ==================== Habit Tools ====================


@mcp.tool()
def create_habit(
    title: str,
    cadence: str = "daily",
    weekdays: list[int] | None = None,
    day: int | None = None,
    month: int | None = None,
) -> dict:
    """Create a new habit.

    Args:
        title: Name of the habit (e.g., "Read 20 pages")
        cadence: One of "daily", "weekly", "monthly", "yearly"
        weekdays: For weekly habits, weekday numbers 1=Sunday .. 7=Saturday
        day: For monthly/yearly habits, day of month (defaults to today's)
        month: For yearly habits, month 1-12 (defaults to this month)

    Returns:
        The created habit, or an error message
    """
    db = get_firestore_client()

    if cadence not in CADENCE_KINDS:
        return {"error": f"Unknown cadence. Use one of: {', '.join(CADENCE_KINDS)}."}
    if cadence == "weekly" and not weekdays:
        return {"error": "Weekly habits need at least one weekday (1=Sunday .. 7=Saturday)."}

    try:
        habit = new_habit(title, cadence, weekdays=weekdays, day=day, month=month)
    except ValidationError as e:
        logger.warning("Rejected habit: %s", str(e))
        return {"error": f"Invalid habit: {e.errors()[0]['msg']}"}

    if not db.save_habit(habit):
        return {"error": "Failed to save habit. Please try again."}

    return {"habit": habit.model_dump(mode="json")}


@mcp.tool()
def list_habits(as_of: str | None = None) -> dict:
    """List all habits with today's status, streak and adherence.

    Args:
        as_of: Reference date in YYYY-MM-DD format (defaults to today)

    Returns:
        Dictionary with the reference date and one entry per habit
    """
    db = get_firestore_client()

    try:
        day = _parse_day(as_of)
    except ValueError:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}

    habits = db.list_habits()
    return {
        "as_of": day.isoformat(),
        "habits": [_habit_payload(h, day) for h in habits],
    }


@mcp.tool()
def get_habit(habit_id: str, as_of: str | None = None, days: int = RECENT_DAYS) -> dict:
    """Get one habit with its recent day indicators and statistics.

    Args:
        habit_id: The ID of the habit
        as_of: Reference date in YYYY-MM-DD format (defaults to today)
        days: Number of recent days to include (default 7, at most 365)

    Returns:
        Habit details, stats and recent day statuses
    """
    db = get_firestore_client()

    try:
        day = _parse_day(as_of)
    except ValueError:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}
    if not 1 <= days <= STREAK_LOOKBACK_DAYS:
        return {"error": f"days must be between 1 and {STREAK_LOOKBACK_DAYS}."}

    habit = db.get_habit(habit_id)
    if habit is None:
        return {"error": "Habit not found."}

    return _habit_payload(habit, day, days)


@mcp.tool()
def toggle_completion(habit_id: str, date_str: str | None = None) -> dict:
    """Mark a day completed, or unmark it if it already was.

    Days on which the habit is not due cannot be marked.

    Args:
        habit_id: The ID of the habit
        date_str: Date in YYYY-MM-DD format (defaults to today)

    Returns:
        New completed state with updated statistics
    """
    db = get_firestore_client()

    try:
        day = _parse_day(date_str)
    except ValueError:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}

    habit = db.toggle_completion(habit_id, day)
    if habit is None:
        return {"error": "Habit not found or update failed."}

    result = {
        "date": day.isoformat(),
        "is_due": habit.is_due(day),
        "is_completed": habit.is_completed(day),
        "stats": habit_stats(habit, max(day, date.today())).model_dump(mode="json"),
    }
    if not result["is_due"] and not result["is_completed"]:
        result["warning"] = "Habit is not due on this date; nothing was recorded."
    return result


@mcp.tool()
def update_title(habit_id: str, title: str) -> dict:
    """Rename a habit.

    Args:
        habit_id: The ID of the habit
        title: New title (must not be empty)

    Returns:
        The updated habit, or an error message
    """
    db = get_firestore_client()

    try:
        habit = db.rename_habit(habit_id, title)
    except ValidationError:
        return {"error": "Title must not be empty."}

    if habit is None:
        return {"error": "Habit not found or update failed."}

    return {"habit": habit.model_dump(mode="json", exclude={"completed_dates"})}


@mcp.tool()
def update_weekdays(habit_id: str, weekdays: list[int]) -> dict:
    """Change the weekdays of a weekly habit.

    Args:
        habit_id: The ID of the habit
        weekdays: Weekday numbers 1=Sunday .. 7=Saturday

    Returns:
        The updated habit, or an error message
    """
    db = get_firestore_client()

    try:
        habit = db.set_weekdays(habit_id, weekdays)
    except ValidationError:
        return {"error": "Weekdays must be numbers from 1 (Sunday) to 7 (Saturday)."}
    except ValueError as e:
        return {"error": str(e)}

    if habit is None:
        return {"error": "Habit not found or update failed."}

    return {"habit": habit.model_dump(mode="json", exclude={"completed_dates"})}


@mcp.tool()
def delete_habit(habit_id: str) -> dict:
    """Delete a habit and all of its completions.

    Args:
        habit_id: The ID of the habit to delete

    Returns:
        Confirmation
    """
    db = get_firestore_client()

    if not db.delete_habit(habit_id):
        return {"error": "Habit not found or delete failed."}

    return {"success": True}


# ==================== Statistics Tools ====================


@mcp.tool()
def get_statistics(as_of: str | None = None) -> dict:
    """Adherence statistics across all habits.

    Adherence is completed due days divided by all due days since each
    habit was created. Labels: perfect (100%), great (>= 80%),
    good (>= 50%), ongoing (> 0%), not_started (0%).

    Args:
        as_of: Reference date in YYYY-MM-DD format (defaults to today)

    Returns:
        Per-habit statistics and a count of habits per label
    """
    db = get_firestore_client()

    try:
        day = _parse_day(as_of)
    except ValueError:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}

    stats = summarize_habits(db.list_habits(), day)
    labels = Counter(s.label.value for s in stats)

    return {
        "as_of": day.isoformat(),
        "habit_count": len(stats),
        "habits": [s.model_dump(mode="json") for s in stats],
        "labels": dict(labels),
        "longest_current_streak": max((s.current_streak for s in stats), default=0),
    }
