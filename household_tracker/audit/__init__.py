"""Audit logging package."""

from household_tracker.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
