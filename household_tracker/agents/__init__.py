"""AI Agents package."""

from household_tracker.agents.reminders import (
    GENERATION_FAILED_MESSAGE,
    ReminderGenerationError,
    ReminderRequest,
    ReorderReminderAgent,
    ReorderReminders,
)

__all__ = [
    "GENERATION_FAILED_MESSAGE",
    "ReminderGenerationError",
    "ReminderRequest",
    "ReorderReminderAgent",
    "ReorderReminders",
]
