"""
In-memory storage.

Used by the tests and as the fallback when Google Sheets is not
configured. Nothing survives a restart.
"""

from typing import Optional
from uuid import uuid4

from household_tracker.models.records import (
    DEFAULT_RATES,
    DeliveryDetails,
    DeliveryEvent,
    PaymentDetails,
    PaymentRecord,
    RateTable,
    ServiceItem,
)
from household_tracker.models.audit import AuditEvent
from household_tracker.services.storage.interface import (
    AuditStorageInterface,
    DeliveryStorageInterface,
    NotFoundError,
    PaymentStorageInterface,
    RatesStorageInterface,
)


class InMemoryStore(
    DeliveryStorageInterface,
    PaymentStorageInterface,
    RatesStorageInterface,
    AuditStorageInterface,
):
    """One object implementing every storage interface with plain dicts."""

    def __init__(
        self,
        deliveries: Optional[list[DeliveryEvent]] = None,
        payments: Optional[list[PaymentRecord]] = None,
        rates: Optional[RateTable] = None,
    ):
        self._deliveries: dict[str, DeliveryEvent] = {e.id: e for e in deliveries or []}
        self._payments: dict[str, PaymentRecord] = {p.id: p for p in payments or []}
        self._rates = rates
        self._audit: list[AuditEvent] = []

    # Deliveries

    async def list_deliveries(self) -> list[DeliveryEvent]:
        return sorted(self._deliveries.values(), key=lambda e: e.date, reverse=True)

    async def add_delivery(self, details: DeliveryDetails) -> str:
        event = details.with_id(uuid4().hex)
        self._deliveries[event.id] = event
        return event.id

    async def update_delivery(self, event: DeliveryEvent) -> None:
        if event.id not in self._deliveries:
            raise NotFoundError(f"Delivery not found: {event.id}")
        self._deliveries[event.id] = event

    async def delete_delivery(self, event_id: str) -> None:
        self._deliveries.pop(event_id, None)

    async def delete_deliveries_for_item(self, item: ServiceItem) -> int:
        doomed = [key for key, event in self._deliveries.items() if event.item == item]
        for key in doomed:
            del self._deliveries[key]
        return len(doomed)

    # Payments

    async def list_payments(self) -> list[PaymentRecord]:
        return sorted(self._payments.values(), key=lambda p: p.date, reverse=True)

    async def add_payment(self, details: PaymentDetails) -> str:
        payment = details.with_id(uuid4().hex)
        self._payments[payment.id] = payment
        return payment.id

    async def update_payment(self, payment: PaymentRecord) -> None:
        if payment.id not in self._payments:
            raise NotFoundError(f"Payment not found: {payment.id}")
        self._payments[payment.id] = payment

    async def delete_payment(self, payment_id: str) -> None:
        self._payments.pop(payment_id, None)

    async def delete_payments_for_item(self, item: ServiceItem) -> int:
        doomed = [key for key, payment in self._payments.items() if payment.item == item]
        for key in doomed:
            del self._payments[key]
        return len(doomed)

    # Rates

    async def get_rates(self) -> RateTable:
        if self._rates is None:
            self._rates = DEFAULT_RATES
        return self._rates

    async def save_rates(self, rates: RateTable) -> None:
        self._rates = rates

    # Audit

    async def append_event(self, event: AuditEvent) -> bool:
        self._audit.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._audit))[:limit]
