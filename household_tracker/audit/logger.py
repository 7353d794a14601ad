"""
Audit Logger

DESIGN DECISION: Every change to the household's records is logged.
This provides:
1. Traceability of who-recorded-what when a bill looks wrong
2. Debugging capability when the store rejects a write

The audit logger:
- Is async to match the storage layer
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

import logging
from decimal import Decimal
from typing import Optional

import structlog

from household_tracker.config import get_settings
from household_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from household_tracker.models.records import RateTable, ServiceItem
from household_tracker.services.storage import AuditStorageInterface


# stdlib logging carries the rendered JSON lines
logging.basicConfig(
    format="%(message)s",
    level=get_settings().app.log_level.upper(),
)

# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Google Sheets audit worksheet (when configured)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Persist to storage if available
        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_record_changed(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log a create, update or delete of a delivery or payment."""
        event = AuditEventBuilder.record_changed(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details or {},
        )
        await self.log(event)

    async def log_settlement_recorded(
        self,
        payment_id: str,
        item: ServiceItem,
        amount: Decimal,
        outstanding_before: Decimal,
    ) -> None:
        event = AuditEventBuilder.settlement_recorded(
            payment_id=payment_id,
            item=item.value,
            amount=str(amount),
            outstanding_before=str(outstanding_before),
        )
        await self.log(event)

    async def log_settlement_rejected(
        self,
        item: ServiceItem,
        amount: Decimal,
        reason: str,
    ) -> None:
        event = AuditEventBuilder.settlement_rejected(
            item=item.value,
            amount=str(amount),
            reason=reason,
        )
        await self.log(event)

    async def log_receipt_uploaded(self, filename: str, url: str) -> None:
        await self.log(AuditEventBuilder.receipt_uploaded(filename, url))

    async def log_rates_updated(self, rates: RateTable) -> None:
        event = AuditEventBuilder.rates_updated(
            {item.value: str(rate) for item, rate in rates.as_mapping().items()}
        )
        await self.log(event)

    async def log_item_history_cleared(self, item: ServiceItem) -> None:
        await self.log(AuditEventBuilder.item_history_cleared(item.value))

    async def log_reminders_generated(
        self,
        days_without_delivery_milk: int,
        days_without_delivery_water: int,
    ) -> None:
        event = AuditEventBuilder.reminders_generated(
            days_without_delivery_milk=days_without_delivery_milk,
            days_without_delivery_water=days_without_delivery_water,
        )
        await self.log(event)

    async def log_failure(
        self,
        event_type: AuditEventType,
        description: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log a load or save failure."""
        event = AuditEventBuilder.failure(
            event_type=event_type,
            description=description,
            error_message=error_message,
            details=details,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
        )
        await self.log(event)
