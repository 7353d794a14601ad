"""
Dashboard Controller

Ties the state reducers to the storage collaborators. Every command
follows the same shape:

1. Validate (settlement only)
2. One store round trip
3. On success, apply the matching reducer and audit the change
4. On failure, leave the state alone and return a destructive
   notification for the UI to show

No command retries. The user re-initiates a failed action.
"""

import asyncio
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

import structlog
from pydantic import BaseModel

from household_tracker.agents import (
    ReminderGenerationError,
    ReminderRequest,
    ReorderReminderAgent,
    ReorderReminders,
)
from household_tracker.audit import AuditLogger
from household_tracker.config import get_settings
from household_tracker.dashboard.state import (
    DashboardState,
    summary,
    with_event_added,
    with_event_removed,
    with_event_replaced,
    with_filters,
    with_item_history_cleared,
    with_loaded,
    with_payment_added,
    with_payment_removed,
    with_payment_replaced,
    with_rates,
)
from household_tracker.models.audit import AuditEventType
from household_tracker.models.records import (
    DEFAULT_RATES,
    DeliveryDetails,
    DeliveryEvent,
    PaymentDetails,
    PaymentRecord,
    RateTable,
    ServiceItem,
)
from household_tracker.services.image import CloudinaryReceiptService, ReceiptUploadError
from household_tracker.services.storage import (
    DeliveryStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsDeliveryStorage,
    GoogleSheetsPaymentStorage,
    GoogleSheetsRatesStorage,
    InMemoryStore,
    PaymentStorageInterface,
    RatesStorageInterface,
)
from household_tracker.validation import EntryValidator


logger = structlog.get_logger(__name__)


class NotificationVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class Notification(BaseModel):
    """A toast for the UI."""
    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.DEFAULT

    @property
    def is_error(self) -> bool:
        return self.variant == NotificationVariant.DESTRUCTIVE


def _error(description: str, title: str = "Error") -> Notification:
    return Notification(
        title=title,
        description=description,
        variant=NotificationVariant.DESTRUCTIVE,
    )


class DashboardController:
    """
    Owns the dashboard state and the collaborators that persist it.

    Commands return None when they succeed silently, or a Notification
    to show. The current state is always available as `state`.
    """

    def __init__(
        self,
        deliveries: DeliveryStorageInterface,
        payments: PaymentStorageInterface,
        rates: RatesStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[EntryValidator] = None,
        reminder_agent: Optional[ReorderReminderAgent] = None,
        receipt_service: Optional[CloudinaryReceiptService] = None,
        state: Optional[DashboardState] = None,
    ):
        self._deliveries = deliveries
        self._payments = payments
        self._rates = rates
        self._audit = audit_logger or AuditLogger()
        self._validator = validator or EntryValidator()
        self._reminder_agent = reminder_agent
        self._receipt_service = receipt_service
        self.state = state or DashboardState()

    @property
    def validator(self) -> EntryValidator:
        return self._validator

    @property
    def receipts_enabled(self) -> bool:
        return self._receipt_service is not None

    @property
    def reminders_enabled(self) -> bool:
        return self._reminder_agent is not None

    async def _save_failed(self, description: str, error: Exception) -> Notification:
        logger.error("save_failed", description=description, error=str(error))
        await self._audit.log_failure(
            AuditEventType.SAVE_FAILED,
            description=description,
            error_message=str(error),
        )
        return _error(description)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load(self) -> Optional[Notification]:
        """
        Fetch events, payments and rates concurrently.

        If any read fails the dashboard starts from empty collections
        and default rates, and every figure computes to zero.
        """
        try:
            events, payments, rates = await asyncio.gather(
                self._deliveries.list_deliveries(),
                self._payments.list_payments(),
                self._rates.get_rates(),
            )
        except Exception as e:
            logger.error("data_load_failed", error=str(e))
            await self._audit.log_failure(
                AuditEventType.DATA_LOAD_FAILED,
                description="Initial data load failed",
                error_message=str(e),
            )
            self.state = with_loaded(self.state, [], [], DEFAULT_RATES)
            return _error(
                "Could not load delivery records or rates from the database.",
                title="Error fetching data",
            )

        self.state = with_loaded(self.state, events, payments, rates)
        logger.info("data_loaded", events=len(events), payments=len(payments))
        return None

    # -------------------------------------------------------------------------
    # Deliveries
    # -------------------------------------------------------------------------

    async def add_delivery(self, details: DeliveryDetails) -> Optional[Notification]:
        try:
            event_id = await self._deliveries.add_delivery(details)
        except Exception as e:
            return await self._save_failed("Failed to add the delivery record.", e)

        self.state = with_event_added(self.state, details.with_id(event_id))
        await self._audit.log_record_changed(
            AuditEventType.DELIVERY_ADDED,
            "delivery",
            event_id,
            details.model_dump(mode="json"),
        )
        return None

    async def update_delivery(self, event: DeliveryEvent) -> Optional[Notification]:
        try:
            await self._deliveries.update_delivery(event)
        except Exception as e:
            return await self._save_failed("Failed to update the delivery record.", e)

        self.state = with_event_replaced(self.state, event)
        await self._audit.log_record_changed(
            AuditEventType.DELIVERY_UPDATED,
            "delivery",
            event.id,
            event.model_dump(mode="json"),
        )
        return None

    async def delete_delivery(self, event_id: str) -> Optional[Notification]:
        try:
            await self._deliveries.delete_delivery(event_id)
        except Exception as e:
            return await self._save_failed("Failed to delete the delivery record.", e)

        self.state = with_event_removed(self.state, event_id)
        await self._audit.log_record_changed(
            AuditEventType.DELIVERY_DELETED, "delivery", event_id
        )
        return None

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    async def add_payment(self, details: PaymentDetails) -> Optional[Notification]:
        try:
            payment_id = await self._payments.add_payment(details)
        except Exception as e:
            return await self._save_failed("Failed to add the payment record.", e)

        self.state = with_payment_added(self.state, details.with_id(payment_id))
        await self._audit.log_record_changed(
            AuditEventType.PAYMENT_ADDED,
            "payment",
            payment_id,
            details.model_dump(mode="json"),
        )
        return None

    async def update_payment(self, payment: PaymentRecord) -> Optional[Notification]:
        try:
            await self._payments.update_payment(payment)
        except Exception as e:
            return await self._save_failed("Failed to update the payment record.", e)

        self.state = with_payment_replaced(self.state, payment)
        await self._audit.log_record_changed(
            AuditEventType.PAYMENT_UPDATED,
            "payment",
            payment.id,
            payment.model_dump(mode="json"),
        )
        return None

    async def delete_payment(self, payment_id: str) -> Optional[Notification]:
        try:
            await self._payments.delete_payment(payment_id)
        except Exception as e:
            return await self._save_failed("Failed to delete the payment record.", e)

        self.state = with_payment_removed(self.state, payment_id)
        await self._audit.log_record_changed(
            AuditEventType.PAYMENT_DELETED, "payment", payment_id
        )
        return None

    async def settle(
        self,
        item: ServiceItem,
        amount: Decimal,
        on: date,
        reason: Optional[str] = None,
        attachment: Optional[str] = None,
    ) -> Notification:
        """
        Record a payment against an item's outstanding balance.

        The amount is whatever the user confirmed; it may be more or less
        than the balance. Individual deliveries are never marked paid.
        """
        # Floats go through str to avoid binary noise
        amount = Decimal(str(amount))
        check = self._validator.validate_settlement(item, amount, self.state.rates)
        if not check.is_valid:
            message = check.errors[0]
            logger.warning("settlement_rejected", item=item.value, amount=str(amount))
            await self._audit.log_settlement_rejected(item, amount, message)
            return _error(message)

        outstanding_before = summary(self.state).outstanding[item]
        details = PaymentDetails(
            date=on,
            item=item,
            amount=amount,
            reason=reason,
            attachment=attachment,
        )
        try:
            payment_id = await self._payments.add_payment(details)
        except Exception as e:
            return await self._save_failed("Failed to add payment record.", e)

        self.state = with_payment_added(self.state, details.with_id(payment_id))
        await self._audit.log_settlement_recorded(
            payment_id, item, amount, outstanding_before
        )
        currency = get_settings().app.currency_code
        return Notification(
            title="Payment Added",
            description=f"Payment of {amount} {currency} for {item.value} has been recorded.",
        )

    # -------------------------------------------------------------------------
    # Settings page
    # -------------------------------------------------------------------------

    async def save_rates(self, rates: RateTable) -> Notification:
        try:
            await self._rates.save_rates(rates)
        except Exception as e:
            return await self._save_failed("Failed to save rates.", e)

        self.state = with_rates(self.state, rates)
        await self._audit.log_rates_updated(rates)
        return Notification(title="Rates Saved", description="New rates apply to all records.")

    async def clear_item_history(self, item: ServiceItem) -> Notification:
        """
        Delete every delivery and payment of one item.

        Deliveries go first. If the payment delete fails, the deliveries
        are already gone from the store, so the state drops them too.
        """
        try:
            await self._deliveries.delete_deliveries_for_item(item)
        except Exception as e:
            return await self._save_failed(f"Failed to clear {item.label} history.", e)

        try:
            await self._payments.delete_payments_for_item(item)
        except Exception as e:
            self.state = self.state.model_copy(update={
                "events": tuple(ev for ev in self.state.events if ev.item != item)
            })
            return await self._save_failed(f"Failed to clear {item.label} payments.", e)

        self.state = with_item_history_cleared(self.state, item)
        await self._audit.log_item_history_cleared(item)
        return Notification(
            title="History Cleared",
            description=f"All {item.label} records have been deleted.",
        )

    def set_filters(self, **filters) -> None:
        """Forward to with_filters; accepts item= and date_range=."""
        self.state = with_filters(self.state, **filters)

    # -------------------------------------------------------------------------
    # Collaborators outside the ledger
    # -------------------------------------------------------------------------

    async def upload_receipt(
        self,
        image_bytes: bytes,
        filename: str,
    ) -> tuple[Optional[str], Optional[Notification]]:
        """Upload a receipt and return its URL for the payment's attachment."""
        if self._receipt_service is None:
            return None, _error("Receipt uploads are not configured.")
        try:
            url = await self._receipt_service.upload_receipt(image_bytes, filename)
        except ReceiptUploadError as e:
            await self._audit.log_external_service_error("cloudinary", str(e))
            return None, _error(str(e), title="Upload failed")

        await self._audit.log_receipt_uploaded(filename, url)
        return url, None

    async def generate_reminders(
        self,
        delivery_schedule: str,
        consumption_patterns: str,
    ) -> tuple[Optional[ReorderReminders], Optional[Notification]]:
        """Ask the reminder agent for milk and water reminders. Never touches state."""
        if self._reminder_agent is None:
            return None, _error("AI reminders are not configured.")

        days = summary(self.state).days_without_delivery
        try:
            request = ReminderRequest.from_days(
                delivery_schedule, consumption_patterns, days
            )
        except ValueError:
            return None, _error("Invalid input for generating reminders.")

        try:
            reminders = await self._reminder_agent.generate(request)
        except ReminderGenerationError as e:
            await self._audit.log_external_service_error("gemini", str(e))
            return None, _error(str(e))

        await self._audit.log_reminders_generated(
            request.days_without_delivery_milk,
            request.days_without_delivery_water,
        )
        return reminders, None


def create_app_components(use_storage: bool = True) -> DashboardController:
    """
    Factory function to create the dashboard controller.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run on the in-memory store.

    Falls back to the in-memory store when Sheets is not configured,
    and leaves out the receipt and reminder collaborators whose
    settings are missing.
    """
    controller_kwargs = {}

    if use_storage:
        try:
            get_settings().google_sheets
            sheets_client = GoogleSheetsClient()
            controller_kwargs.update(
                deliveries=GoogleSheetsDeliveryStorage(sheets_client),
                payments=GoogleSheetsPaymentStorage(sheets_client),
                rates=GoogleSheetsRatesStorage(sheets_client),
                audit_logger=AuditLogger(GoogleSheetsAuditStorage(sheets_client)),
            )
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))

    if "deliveries" not in controller_kwargs:
        store = InMemoryStore()
        controller_kwargs.update(
            deliveries=store,
            payments=store,
            rates=store,
            audit_logger=AuditLogger(),  # Local-only logging
        )

    try:
        controller_kwargs["receipt_service"] = CloudinaryReceiptService()
    except Exception as e:
        logger.warning("receipts_not_configured", error=str(e))

    try:
        controller_kwargs["reminder_agent"] = ReorderReminderAgent()
    except Exception as e:
        logger.warning("reminders_not_configured", error=str(e))

    return DashboardController(**controller_kwargs)
