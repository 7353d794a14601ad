"""
Receipt Attachment Service using Cloudinary

DESIGN DECISION: Payment receipts are stored on Cloudinary because:
1. The dashboard only needs a URL to show next to the payment
2. Reliable cloud infrastructure with a free tier sufficient for a household
3. Signed uploads let a browser widget upload directly without the API secret

This service handles:
1. Checking that the bytes really are a supported image (Pillow)
2. Uploading the receipt and returning its secure URL
3. Producing short-lived signed parameters for direct browser uploads

A failed upload is terminal. The payment is still recorded without an
attachment if the user chooses to continue.
"""

import hashlib
import time
from io import BytesIO
from typing import Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import cloudinary.utils
import structlog
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel

from household_tracker.config import get_settings


logger = structlog.get_logger(__name__)


class ReceiptUploadError(Exception):
    """Failed to upload a receipt to Cloudinary."""
    pass


class InvalidReceiptError(ReceiptUploadError):
    """The file is not a supported image, or is too large."""
    pass


class UploadSignature(BaseModel):
    """Signed parameters a browser upload widget posts along with the file."""
    timestamp: int
    signature: str
    api_key: str
    cloud_name: str
    folder: str
    expire: int


class CloudinaryReceiptService:
    """
    Service for receipt attachments.

    Flow:
    1. Receive raw image bytes from the settle or payment dialog
    2. Verify format and size locally
    3. Upload to the configured folder
    4. Return the secure URL, stored as the payment's attachment
    """

    def __init__(self):
        self._settings = get_settings().cloudinary
        self._app_settings = get_settings().app
        self._configured = False

    def _configure(self):
        """Configure Cloudinary SDK."""
        if not self._configured:
            cloudinary.config(
                cloud_name=self._settings.cloud_name,
                api_key=self._settings.api_key,
                api_secret=self._settings.api_secret,
                secure=True,
            )
            self._configured = True

    def _generate_public_id(self, filename: str, image_bytes: bytes) -> str:
        """
        Content-addressed public ID.

        Format: {filename_stem}_{content_hash}
        Uploading the same receipt twice overwrites instead of duplicating.
        """
        stem = filename.rsplit(".", 1)[0] or "receipt"
        content_hash = hashlib.md5(image_bytes).hexdigest()[:12]
        return f"{stem}_{content_hash}"

    def check_receipt(self, image_bytes: bytes) -> str:
        """
        Verify the bytes are a supported image within the size limit.

        Returns:
            The detected format, lower-cased (e.g. "jpeg")

        Raises:
            InvalidReceiptError: If the file cannot be accepted
        """
        if not image_bytes:
            raise InvalidReceiptError("Receipt file is empty")

        if len(image_bytes) > self._app_settings.max_upload_size_bytes:
            raise InvalidReceiptError(
                f"Receipt is larger than {self._app_settings.max_upload_size_mb} MB"
            )

        try:
            with Image.open(BytesIO(image_bytes)) as img:
                img.verify()
                detected = (img.format or "").lower()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise InvalidReceiptError(f"Receipt is not a readable image: {e}")

        allowed = self._app_settings.supported_formats_list
        # Pillow reports JPEG for .jpg files
        if detected not in allowed and not (detected == "jpeg" and "jpg" in allowed):
            raise InvalidReceiptError(
                f"Unsupported receipt format '{detected}'. "
                f"Supported: {', '.join(allowed)}"
            )
        return detected

    async def upload_receipt(self, image_bytes: bytes, filename: str) -> str:
        """
        Upload a receipt image.

        Args:
            image_bytes: Raw file bytes
            filename: Original file name, used for the public id

        Returns:
            Secure URL of the uploaded image

        Raises:
            InvalidReceiptError: If the file fails the local checks
            ReceiptUploadError: If Cloudinary rejects the upload
        """
        self.check_receipt(image_bytes)
        self._configure()

        public_id = self._generate_public_id(filename, image_bytes)
        try:
            result = cloudinary.uploader.upload(
                image_bytes,
                public_id=public_id,
                folder=self._settings.upload_folder,
                resource_type="image",
                overwrite=True,
            )
        except cloudinary.exceptions.Error as e:
            raise ReceiptUploadError(f"Cloudinary error: {e}")
        except Exception as e:
            raise ReceiptUploadError(f"Failed to upload receipt: {e}")

        url = result.get("secure_url") or result.get("url", "")
        if not url:
            raise ReceiptUploadError("No URL returned from Cloudinary")

        logger.info("receipt_uploaded", public_id=public_id, size=len(image_bytes))
        return url

    def get_upload_signature(self, now: Optional[int] = None) -> UploadSignature:
        """
        Signed upload parameters for a direct browser upload.

        This is the signing endpoint for an external upload widget that
        posts straight to Cloudinary. The Streamlit app does not call it
        because it uploads server-side through upload_receipt. The secret
        never leaves the server; the widget posts the timestamp, folder
        and signature with the file.
        """
        timestamp = now if now is not None else int(time.time())
        folder = self._settings.upload_folder
        signature = cloudinary.utils.api_sign_request(
            {"timestamp": timestamp, "folder": folder},
            self._settings.api_secret,
        )
        return UploadSignature(
            timestamp=timestamp,
            signature=signature,
            api_key=self._settings.api_key,
            cloud_name=self._settings.cloud_name,
            folder=folder,
            expire=timestamp + self._settings.signature_ttl_seconds,
        )
