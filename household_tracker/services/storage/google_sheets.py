"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the storage backend because:
1. The household can view and correct their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (a household logs a few rows a day)
- No transactions (every mutation is a single row operation)
- Limited query capabilities (we filter and sort in Python)

No call here is retried. A failed write surfaces as StorageError and
the user re-initiates the action.
"""

import json
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials

from household_tracker.config import get_settings
from household_tracker.models.records import (
    DEFAULT_RATES,
    DeliveryDetails,
    DeliveryEvent,
    DeliveryStatus,
    PaymentDetails,
    PaymentRecord,
    RateTable,
    ServiceItem,
)
from household_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from household_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DeliveryStorageInterface,
    NotFoundError,
    PaymentStorageInterface,
    RatesStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


DELIVERY_COLUMNS = [
    "id",
    "date",
    "item",
    "quantity",
    "status",
    "billed_quantity",
    "created_at",
]

PAYMENT_COLUMNS = [
    "id",
    "date",
    "item",
    "amount",
    "reason",
    "attachment",
    "created_at",
]

RATES_COLUMNS = [item.value for item in ServiceItem] + ["updated_at"]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _new_id() -> str:
    return uuid4().hex


def _safe_get(row: list, index: int, default: str = "") -> str:
    """Handle short rows gracefully."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and get-or-create of the worksheets.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_deliveries_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(
            self._settings.deliveries_sheet_name, DELIVERY_COLUMNS, rows=2000
        )

    def get_payments_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(
            self._settings.payments_sheet_name, PAYMENT_COLUMNS, rows=1000
        )

    def get_rates_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(
            self._settings.rates_sheet_name, RATES_COLUMNS, rows=2
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class _RowStorage:
    """
    Shared row plumbing for the one-record-per-row worksheets.

    Column 0 always holds the record id, column 2 the service kind and
    the last column the time the row was first appended.
    """

    def _sheet(self) -> gspread.Worksheet:
        raise NotImplementedError

    def _find_row_index(self, all_rows: list[list], record_id: str) -> Optional[int]:
        # Sheet rows are 1-based and row 1 is the header
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == record_id:
                return idx
        return None

    def _replace_row(self, record_id: str, new_row: list, kind: str) -> None:
        sheet = self._sheet()
        all_rows = sheet.get_all_values()
        idx = self._find_row_index(all_rows, record_id)
        if idx is None:
            raise NotFoundError(f"{kind.capitalize()} not found: {record_id}")

        created_at = _safe_get(all_rows[idx - 1], len(new_row) - 1)
        if created_at:
            new_row = new_row[:-1] + [created_at]
        sheet.update(range_name=f"A{idx}", values=[new_row], value_input_option="RAW")

    def _delete_row(self, record_id: str) -> None:
        sheet = self._sheet()
        idx = self._find_row_index(sheet.get_all_values(), record_id)
        if idx is not None:
            sheet.delete_rows(idx)

    def _delete_item_rows(self, item: ServiceItem) -> int:
        sheet = self._sheet()
        all_rows = sheet.get_all_values()
        matches = [
            idx for idx, row in enumerate(all_rows[1:], start=2)
            if len(row) > 2 and row[2] == item.value
        ]
        # Bottom-up so earlier indices stay valid
        for idx in reversed(matches):
            sheet.delete_rows(idx)
        return len(matches)


class GoogleSheetsDeliveryStorage(_RowStorage, DeliveryStorageInterface):
    """
    Google Sheets implementation of delivery event storage.

    One event per row. Dates are stored as ISO calendar dates.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_deliveries_sheet()

    def _event_to_row(self, event: DeliveryEvent) -> list:
        return [
            event.id,
            event.date.isoformat(),
            event.item.value,
            str(event.quantity),
            event.status.value,
            str(event.billed_quantity) if event.billed_quantity is not None else "",
            datetime.utcnow().isoformat(),
        ]

    def _row_to_event(self, row: list) -> DeliveryEvent:
        billed = _safe_get(row, 5)
        return DeliveryEvent(
            id=_safe_get(row, 0),
            date=_safe_get(row, 1),
            item=ServiceItem(_safe_get(row, 2)),
            quantity=Decimal(_safe_get(row, 3)),
            # Rows written before statuses existed are deliveries
            status=DeliveryStatus(_safe_get(row, 4, DeliveryStatus.DELIVERED.value)),
            billed_quantity=Decimal(billed) if billed else None,
        )

    async def list_deliveries(self) -> list[DeliveryEvent]:
        try:
            all_rows = self._sheet().get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list deliveries: {e}")

        events = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, InvalidOperation) as e:
                logger.warning("delivery_row_skipped", row_id=row[0], error=str(e))

        events.sort(key=lambda e: e.date, reverse=True)
        return events

    async def add_delivery(self, details: DeliveryDetails) -> str:
        event = details.with_id(_new_id())
        try:
            self._sheet().append_row(self._event_to_row(event), value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to save delivery: {e}")
        return event.id

    async def update_delivery(self, event: DeliveryEvent) -> None:
        try:
            self._replace_row(event.id, self._event_to_row(event), "delivery")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update delivery: {e}")

    async def delete_delivery(self, event_id: str) -> None:
        try:
            self._delete_row(event_id)
        except Exception as e:
            raise StorageError(f"Failed to delete delivery: {e}")

    async def delete_deliveries_for_item(self, item: ServiceItem) -> int:
        try:
            return self._delete_item_rows(item)
        except Exception as e:
            raise StorageError(f"Failed to delete {item.value} deliveries: {e}")


class GoogleSheetsPaymentStorage(_RowStorage, PaymentStorageInterface):
    """Google Sheets implementation of payment storage."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_payments_sheet()

    def _payment_to_row(self, payment: PaymentRecord) -> list:
        return [
            payment.id,
            payment.date.isoformat(),
            payment.item.value,
            str(payment.amount),
            payment.reason or "",
            payment.attachment or "",
            datetime.utcnow().isoformat(),
        ]

    def _row_to_payment(self, row: list) -> PaymentRecord:
        return PaymentRecord(
            id=_safe_get(row, 0),
            date=_safe_get(row, 1),
            item=ServiceItem(_safe_get(row, 2)),
            amount=Decimal(_safe_get(row, 3)),
            reason=_safe_get(row, 4) or None,
            attachment=_safe_get(row, 5) or None,
        )

    async def list_payments(self) -> list[PaymentRecord]:
        try:
            all_rows = self._sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to list payments: {e}")

        payments = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                payments.append(self._row_to_payment(row))
            except (ValueError, InvalidOperation) as e:
                logger.warning("payment_row_skipped", row_id=row[0], error=str(e))

        payments.sort(key=lambda p: p.date, reverse=True)
        return payments

    async def add_payment(self, details: PaymentDetails) -> str:
        payment = details.with_id(_new_id())
        try:
            self._sheet().append_row(self._payment_to_row(payment), value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to save payment: {e}")
        return payment.id

    async def update_payment(self, payment: PaymentRecord) -> None:
        try:
            self._replace_row(payment.id, self._payment_to_row(payment), "payment")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update payment: {e}")

    async def delete_payment(self, payment_id: str) -> None:
        try:
            self._delete_row(payment_id)
        except Exception as e:
            raise StorageError(f"Failed to delete payment: {e}")

    async def delete_payments_for_item(self, item: ServiceItem) -> int:
        try:
            return self._delete_item_rows(item)
        except Exception as e:
            raise StorageError(f"Failed to delete {item.value} payments: {e}")


class GoogleSheetsRatesStorage(RatesStorageInterface):
    """
    Rates live in row 2 of their own worksheet, one column per item.

    The row is created with the defaults the first time it is read.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _rates_to_row(self, rates: RateTable) -> list:
        mapping = rates.as_mapping()
        return [str(mapping[item]) for item in ServiceItem] + [datetime.utcnow().isoformat()]

    async def get_rates(self) -> RateTable:
        try:
            sheet = self._client.get_rates_sheet()
            all_rows = sheet.get_all_values()
            if len(all_rows) < 2 or not any(all_rows[1]):
                sheet.append_row(self._rates_to_row(DEFAULT_RATES), value_input_option="RAW")
                return DEFAULT_RATES

            row = all_rows[1]
            return RateTable.from_mapping({
                item.value: Decimal(_safe_get(row, idx, "0"))
                for idx, item in enumerate(ServiceItem)
            })
        except Exception as e:
            raise StorageError(f"Failed to load rates: {e}")

    async def save_rates(self, rates: RateTable) -> None:
        try:
            sheet = self._client.get_rates_sheet()
            sheet.update(
                range_name="A2",
                values=[self._rates_to_row(rates)],
                value_input_option="RAW",
            )
        except Exception as e:
            raise StorageError(f"Failed to save rates: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        return AuditEvent(
            event_id=_safe_get(row, 0),
            timestamp=datetime.fromisoformat(_safe_get(row, 1)),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            entity_type=_safe_get(row, 4) or None,
            entity_id=_safe_get(row, 5) or None,
            description=_safe_get(row, 6),
            details=json.loads(_safe_get(row, 7)) if _safe_get(row, 7) else {},
            error_message=_safe_get(row, 8) or None,
            is_user_action=_safe_get(row, 9).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning("audit_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            all_rows = self._client.get_audit_sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except (ValueError, json.JSONDecodeError):
                    continue

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
