"""Receipt image services package."""

from household_tracker.services.image.cloudinary_service import (
    CloudinaryReceiptService,
    InvalidReceiptError,
    ReceiptUploadError,
    UploadSignature,
)

__all__ = [
    "CloudinaryReceiptService",
    "InvalidReceiptError",
    "ReceiptUploadError",
    "UploadSignature",
]
