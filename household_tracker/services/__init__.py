"""Services package."""

from household_tracker.services.image import (
    CloudinaryReceiptService,
    InvalidReceiptError,
    ReceiptUploadError,
    UploadSignature,
)
from household_tracker.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DeliveryStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsDeliveryStorage,
    GoogleSheetsPaymentStorage,
    GoogleSheetsRatesStorage,
    InMemoryStore,
    NotFoundError,
    PaymentStorageInterface,
    RatesStorageInterface,
    StorageError,
)

__all__ = [
    # Receipt images
    "CloudinaryReceiptService",
    "InvalidReceiptError",
    "ReceiptUploadError",
    "UploadSignature",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "DeliveryStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsDeliveryStorage",
    "GoogleSheetsPaymentStorage",
    "GoogleSheetsRatesStorage",
    "InMemoryStore",
    "NotFoundError",
    "PaymentStorageInterface",
    "RatesStorageInterface",
    "StorageError",
]
