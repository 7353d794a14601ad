"""
Tests for the Google Sheets storage.

The worksheet is a small fake that keeps rows in a list, so no network
calls are made.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from household_tracker.models.records import (
    DEFAULT_RATES,
    DeliveryDetails,
    DeliveryStatus,
    PaymentDetails,
    RateTable,
    ServiceItem,
)
from household_tracker.models.audit import AuditEventBuilder
from household_tracker.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsDeliveryStorage,
    GoogleSheetsPaymentStorage,
    GoogleSheetsRatesStorage,
    NotFoundError,
    StorageError,
)
from household_tracker.services.storage.google_sheets import (
    AUDIT_COLUMNS,
    DELIVERY_COLUMNS,
    PAYMENT_COLUMNS,
    RATES_COLUMNS,
)


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the storage classes."""

    def __init__(self, header, rows=None):
        self.rows = [list(header)] + [list(r) for r in rows or []]

    def get_all_values(self):
        return [list(r) for r in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append([str(v) for v in values])

    def update(self, range_name=None, values=None, value_input_option=None):
        index = int(range_name[1:]) - 1
        row = [str(v) for v in values[0]]
        if index < len(self.rows):
            self.rows[index] = row
        else:
            self.rows.append(row)

    def delete_rows(self, index):
        del self.rows[index - 1]


def sheets_client(deliveries=None, payments=None, rates=None, audit=None):
    client = MagicMock()
    client.get_deliveries_sheet.return_value = deliveries or FakeWorksheet(DELIVERY_COLUMNS)
    client.get_payments_sheet.return_value = payments or FakeWorksheet(PAYMENT_COLUMNS)
    client.get_rates_sheet.return_value = rates or FakeWorksheet(RATES_COLUMNS)
    client.get_audit_sheet.return_value = audit or FakeWorksheet(AUDIT_COLUMNS)
    return client


class TestDeliveryStorage:

    @pytest.mark.asyncio
    async def test_add_then_list(self):
        sheet = FakeWorksheet(DELIVERY_COLUMNS)
        storage = GoogleSheetsDeliveryStorage(sheets_client(deliveries=sheet))

        first = await storage.add_delivery(
            DeliveryDetails(date=date(2024, 3, 1), item="milk", quantity=Decimal("1.5"))
        )
        second = await storage.add_delivery(
            DeliveryDetails(
                date=date(2024, 3, 4), item="water", quantity=2, status=DeliveryStatus.RETURNED
            )
        )

        assert first != second
        assert sheet.rows[1][:5] == [first, "2024-03-01", "milk", "1.5", "delivered"]

        events = await storage.list_deliveries()
        assert [e.id for e in events] == [second, first]
        assert events[0].status == DeliveryStatus.RETURNED
        assert events[1].quantity == Decimal("1.5")

    @pytest.mark.asyncio
    async def test_legacy_and_malformed_rows(self):
        sheet = FakeWorksheet(DELIVERY_COLUMNS, rows=[
            ["a", "2024-03-01T10:00:00.000Z", "milk", "2"],           # no status column
            ["b", "2024-03-02", "milk", "-1.5", "paid"],              # old payment-as-delivery row
            ["c", "2024-03-03", "electricity", "1", "delivered"],     # unknown item
            ["d", "2024-03-04", "water", "abc", "delivered"],         # bad number
            [],
            ["e", "2024-03-05", "gardener", "1", "delivered", "2"],
        ])
        storage = GoogleSheetsDeliveryStorage(sheets_client(deliveries=sheet))

        events = await storage.list_deliveries()

        assert [e.id for e in events] == ["e", "a"]
        assert events[1].status == DeliveryStatus.DELIVERED
        assert events[1].date == date(2024, 3, 1)
        assert events[0].billed_quantity == Decimal("2")

    @pytest.mark.asyncio
    async def test_update_and_delete(self):
        sheet = FakeWorksheet(DELIVERY_COLUMNS)
        storage = GoogleSheetsDeliveryStorage(sheets_client(deliveries=sheet))
        event_id = await storage.add_delivery(
            DeliveryDetails(date=date(2024, 3, 1), item="milk", quantity=1)
        )

        event = (await storage.list_deliveries())[0]
        await storage.update_delivery(event.model_copy(update={"quantity": Decimal("3")}))
        assert (await storage.list_deliveries())[0].quantity == Decimal("3")

        await storage.delete_delivery(event_id)
        assert await storage.list_deliveries() == []

    @pytest.mark.asyncio
    async def test_update_keeps_created_at(self):
        """Editing a row leaves its creation time alone."""
        sheet = FakeWorksheet(DELIVERY_COLUMNS, rows=[
            ["a", "2024-03-01", "milk", "1", "delivered", "", "2024-03-01T07:00:00"],
        ])
        storage = GoogleSheetsDeliveryStorage(sheets_client(deliveries=sheet))

        event = (await storage.list_deliveries())[0]
        await storage.update_delivery(event.model_copy(update={"quantity": Decimal("2")}))

        assert sheet.rows[1][3] == "2"
        assert sheet.rows[1][6] == "2024-03-01T07:00:00"

    @pytest.mark.asyncio
    async def test_update_missing_row_raises_not_found(self):
        storage = GoogleSheetsDeliveryStorage(sheets_client())
        event = DeliveryDetails(date=date(2024, 3, 1), item="milk", quantity=1).with_id("nope")
        with pytest.raises(NotFoundError):
            await storage.update_delivery(event)

    @pytest.mark.asyncio
    async def test_delete_for_item(self):
        sheet = FakeWorksheet(DELIVERY_COLUMNS, rows=[
            ["a", "2024-03-01", "milk", "1", "delivered"],
            ["b", "2024-03-02", "water", "1", "delivered"],
            ["c", "2024-03-03", "milk", "1", "returned"],
        ])
        storage = GoogleSheetsDeliveryStorage(sheets_client(deliveries=sheet))

        removed = await storage.delete_deliveries_for_item(ServiceItem.MILK)

        assert removed == 2
        assert [e.id for e in await storage.list_deliveries()] == ["b"]

    @pytest.mark.asyncio
    async def test_backend_error_becomes_storage_error(self):
        sheet = MagicMock()
        sheet.get_all_values.side_effect = RuntimeError("quota exceeded")
        storage = GoogleSheetsDeliveryStorage(sheets_client(deliveries=sheet))
        with pytest.raises(StorageError):
            await storage.list_deliveries()


class TestPaymentStorage:

    @pytest.mark.asyncio
    async def test_absent_fields_written_blank_and_read_as_none(self):
        sheet = FakeWorksheet(PAYMENT_COLUMNS)
        storage = GoogleSheetsPaymentStorage(sheets_client(payments=sheet))

        payment_id = await storage.add_payment(
            PaymentDetails(date=date(2024, 3, 5), item="milk", amount=Decimal("300"))
        )

        assert sheet.rows[1][4:6] == ["", ""]
        payment = (await storage.list_payments())[0]
        assert payment.id == payment_id
        assert payment.reason is None
        assert payment.attachment is None

    @pytest.mark.asyncio
    async def test_update_keeps_created_at(self):
        sheet = FakeWorksheet(PAYMENT_COLUMNS, rows=[
            ["p1", "2024-03-05", "milk", "300", "", "", "2024-03-05T09:30:00"],
        ])
        storage = GoogleSheetsPaymentStorage(sheets_client(payments=sheet))

        payment = (await storage.list_payments())[0]
        await storage.update_payment(payment.model_copy(update={"reason": "advance"}))

        assert sheet.rows[1][4] == "advance"
        assert sheet.rows[1][6] == "2024-03-05T09:30:00"

    @pytest.mark.asyncio
    async def test_delete_for_item(self):
        sheet = FakeWorksheet(PAYMENT_COLUMNS, rows=[
            ["p1", "2024-03-01", "milk", "10", "", ""],
            ["p2", "2024-03-02", "milk", "20", "advance", ""],
            ["p3", "2024-03-03", "water", "30", "", ""],
        ])
        storage = GoogleSheetsPaymentStorage(sheets_client(payments=sheet))

        assert await storage.delete_payments_for_item(ServiceItem.MILK) == 2
        assert [p.id for p in await storage.list_payments()] == ["p3"]


class TestRatesStorage:

    @pytest.mark.asyncio
    async def test_defaults_written_on_first_read(self):
        sheet = FakeWorksheet(RATES_COLUMNS)
        storage = GoogleSheetsRatesStorage(sheets_client(rates=sheet))

        rates = await storage.get_rates()

        assert rates == DEFAULT_RATES
        assert sheet.rows[1][:4] == ["220", "150", "500", "1000"]

    @pytest.mark.asyncio
    async def test_save_then_read(self):
        sheet = FakeWorksheet(RATES_COLUMNS)
        storage = GoogleSheetsRatesStorage(sheets_client(rates=sheet))

        await storage.save_rates(RateTable(milk=Decimal("240"), water=Decimal("0")))
        rates = await storage.get_rates()

        assert rates.milk == Decimal("240")
        assert rates.water == Decimal("0")
        assert len(sheet.rows) == 2


class TestAuditStorage:

    @pytest.mark.asyncio
    async def test_append_and_read_back(self):
        sheet = FakeWorksheet(AUDIT_COLUMNS)
        storage = GoogleSheetsAuditStorage(sheets_client(audit=sheet))
        event = AuditEventBuilder.item_history_cleared("milk")

        assert await storage.append_event(event) is True

        recent = await storage.get_recent_events()
        assert recent[0].event_id == event.event_id
        assert recent[0].entity_id == "milk"
        assert recent[0].is_user_action is True

    @pytest.mark.asyncio
    async def test_append_failure_returns_false(self):
        sheet = MagicMock()
        sheet.append_row.side_effect = RuntimeError("offline")
        storage = GoogleSheetsAuditStorage(sheets_client(audit=sheet))
        assert await storage.append_event(AuditEventBuilder.item_history_cleared("milk")) is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
