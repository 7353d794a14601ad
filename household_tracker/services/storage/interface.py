"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the ledger decoupled from storage implementation

The store is only responsible for durability. All totals and balances
are recomputed from the full history it returns.
"""

from abc import ABC, abstractmethod

from household_tracker.models.records import (
    DeliveryDetails,
    DeliveryEvent,
    PaymentDetails,
    PaymentRecord,
    RateTable,
    ServiceItem,
)
from household_tracker.models.audit import AuditEvent


class DeliveryStorageInterface(ABC):
    """Storage operations for delivery events."""

    @abstractmethod
    async def list_deliveries(self) -> list[DeliveryEvent]:
        """
        Return every delivery event, newest first.

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def add_delivery(self, details: DeliveryDetails) -> str:
        """
        Persist a new delivery event.

        Returns:
            The id assigned by the store

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update_delivery(self, event: DeliveryEvent) -> None:
        """
        Replace the stored event with the same id.

        Raises:
            NotFoundError: If no event has this id
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_delivery(self, event_id: str) -> None:
        """
        Delete a delivery event by id.

        Raises:
            StorageError: If delete fails
        """
        pass

    @abstractmethod
    async def delete_deliveries_for_item(self, item: ServiceItem) -> int:
        """
        Delete every event of one service kind.

        Returns:
            Number of events removed
        """
        pass


class PaymentStorageInterface(ABC):
    """Storage operations for payment records."""

    @abstractmethod
    async def list_payments(self) -> list[PaymentRecord]:
        """Return every payment, newest first."""
        pass

    @abstractmethod
    async def add_payment(self, details: PaymentDetails) -> str:
        """Persist a new payment and return its id."""
        pass

    @abstractmethod
    async def update_payment(self, payment: PaymentRecord) -> None:
        """
        Replace the stored payment with the same id.

        Raises:
            NotFoundError: If no payment has this id
        """
        pass

    @abstractmethod
    async def delete_payment(self, payment_id: str) -> None:
        """Delete a payment by id."""
        pass

    @abstractmethod
    async def delete_payments_for_item(self, item: ServiceItem) -> int:
        """Delete every payment of one service kind and return the count."""
        pass


class RatesStorageInterface(ABC):
    """Storage for the single global rate row."""

    @abstractmethod
    async def get_rates(self) -> RateTable:
        """
        Return the stored rates.

        If no rates are stored yet, the defaults are written and returned.
        """
        pass

    @abstractmethod
    async def save_rates(self, rates: RateTable) -> None:
        """Overwrite the stored rates wholesale."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
