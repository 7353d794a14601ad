"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the durable backend; the in-memory store backs the tests
and runs the app when Sheets is not configured.
"""

from household_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DeliveryStorageInterface,
    NotFoundError,
    PaymentStorageInterface,
    RatesStorageInterface,
    StorageError,
)
from household_tracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsDeliveryStorage,
    GoogleSheetsPaymentStorage,
    GoogleSheetsRatesStorage,
)
from household_tracker.services.storage.memory import InMemoryStore

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "DeliveryStorageInterface",
    "PaymentStorageInterface",
    "RatesStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsDeliveryStorage",
    "GoogleSheetsPaymentStorage",
    "GoogleSheetsRatesStorage",
    # In-memory implementation
    "InMemoryStore",
]
