"""Entry validation package."""

from household_tracker.validation.validator import EntryValidator

__all__ = ["EntryValidator"]
