"""
Data Models Package

This package contains all Pydantic models used in the Household Tracker.
All data flowing through the system must conform to these schemas.
"""

from household_tracker.models.records import (
    DEFAULT_RATES,
    DateRange,
    DeliveryDetails,
    DeliveryEvent,
    DeliveryStatus,
    PaymentDetails,
    PaymentRecord,
    RateTable,
    ServiceItem,
    ValidationIssue,
    ValidationResult,
)
from household_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "DEFAULT_RATES",
    "DateRange",
    "DeliveryDetails",
    "DeliveryEvent",
    "DeliveryStatus",
    "PaymentDetails",
    "PaymentRecord",
    "RateTable",
    "ServiceItem",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
