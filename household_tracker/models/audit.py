"""
Audit Models for Household Tracker

Every significant action in the system is logged for audit purposes.
This provides:
1. Complete traceability of what was recorded and paid
2. Debugging information when the store rejects a write
3. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Deliveries
    DELIVERY_ADDED = "delivery_added"
    DELIVERY_UPDATED = "delivery_updated"
    DELIVERY_DELETED = "delivery_deleted"

    # Payments and settlement
    PAYMENT_ADDED = "payment_added"
    PAYMENT_UPDATED = "payment_updated"
    PAYMENT_DELETED = "payment_deleted"
    SETTLEMENT_RECORDED = "settlement_recorded"
    SETTLEMENT_REJECTED = "settlement_rejected"
    RECEIPT_UPLOADED = "receipt_uploaded"

    # Configuration and maintenance
    RATES_UPDATED = "rates_updated"
    ITEM_HISTORY_CLEARED = "item_history_cleared"

    # Reminders
    REMINDERS_GENERATED = "reminders_generated"

    # Failures
    DATA_LOAD_FAILED = "data_load_failed"
    SAVE_FAILED = "save_failed"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
    )

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'delivery', 'payment', 'rates')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Store id of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_changed(AuditEventType.DELIVERY_ADDED, "delivery", record_id, {...})
        event = AuditEventBuilder.settlement_rejected("water", "0", "Rate is zero")
    """

    @staticmethod
    def record_changed(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        details: dict,
    ) -> AuditEvent:
        action = event_type.value.split("_", 1)[1]
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} {action}: {entity_id}",
            details=details,
            is_user_action=True,
        )

    @staticmethod
    def settlement_recorded(
        payment_id: str,
        item: str,
        amount: str,
        outstanding_before: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_RECORDED,
            entity_type="payment",
            entity_id=payment_id,
            description=f"Settlement of {amount} recorded for {item}",
            details={
                "item": item,
                "amount": amount,
                "outstanding_before": outstanding_before,
            },
            is_user_action=True,
        )

    @staticmethod
    def settlement_rejected(
        item: str,
        amount: str,
        reason: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="payment",
            description=f"Settlement for {item} rejected",
            details={
                "item": item,
                "amount": amount,
                "reason": reason,
            },
            is_user_action=True,
        )

    @staticmethod
    def receipt_uploaded(filename: str, url: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_UPLOADED,
            entity_type="receipt",
            description=f"Receipt uploaded: {filename}",
            details={"filename": filename, "url": url},
            is_user_action=True,
        )

    @staticmethod
    def rates_updated(rates: dict) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATES_UPDATED,
            entity_type="rates",
            description="Service rates updated",
            details={"rates": rates},
            is_user_action=True,
        )

    @staticmethod
    def item_history_cleared(item: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ITEM_HISTORY_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="item",
            entity_id=item,
            description=f"All deliveries and payments for {item} deleted",
            is_user_action=True,
        )

    @staticmethod
    def reminders_generated(
        days_without_delivery_milk: int,
        days_without_delivery_water: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMINDERS_GENERATED,
            entity_type="reminder",
            description="Reorder reminders generated",
            details={
                "days_without_delivery_milk": days_without_delivery_milk,
                "days_without_delivery_water": days_without_delivery_water,
            },
            is_user_action=True,
        )

    @staticmethod
    def failure(
        event_type: AuditEventType,
        description: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.ERROR,
            description=description,
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
        )
