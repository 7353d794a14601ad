"""Shared fixtures for Household Tracker tests."""

from datetime import date
from decimal import Decimal

import pytest

from household_tracker.config import get_settings
from household_tracker.models.records import (
    DeliveryEvent,
    DeliveryStatus,
    PaymentRecord,
    RateTable,
    ServiceItem,
)


@pytest.fixture(autouse=True)
def service_env(monkeypatch):
    """Fake credentials so collaborator settings load without a .env file."""
    monkeypatch.setenv("CLOUDINARY_CLOUD_NAME", "demo-cloud")
    monkeypatch.setenv("CLOUDINARY_API_KEY", "123456")
    monkeypatch.setenv("CLOUDINARY_API_SECRET", "shh-secret")
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
    monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_event(
    item="milk",
    quantity="1",
    on=date(2024, 3, 1),
    status=DeliveryStatus.DELIVERED,
    id=None,
) -> DeliveryEvent:
    return DeliveryEvent(
        id=id or f"{item}-{on.isoformat()}-{quantity}-{status.value}",
        date=on,
        item=ServiceItem(item),
        quantity=Decimal(quantity),
        status=status,
    )


def make_payment(item="milk", amount="100", on=date(2024, 3, 5), id=None) -> PaymentRecord:
    return PaymentRecord(
        id=id or f"pay-{item}-{on.isoformat()}-{amount}",
        date=on,
        item=ServiceItem(item),
        amount=Decimal(amount),
    )


@pytest.fixture
def milk_rate_100() -> RateTable:
    return RateTable(
        milk=Decimal("100"),
        water=Decimal("0"),
        house_cleaning=Decimal("500"),
        gardener=Decimal("1000"),
    )
