"""Tests for the ledger calculator and payment aggregator."""

import random
from datetime import date
from decimal import Decimal

import pytest

from household_tracker.ledger import (
    calculate_bill,
    calculate_days_without_delivery,
    calculate_payments,
    calculate_totals,
    zero_amounts,
)
from household_tracker.models.records import DeliveryStatus, RateTable, ServiceItem

from conftest import make_event, make_payment


class TestCalculateTotals:
    """Tests for net quantity per item."""

    def test_empty_history_gives_zero_for_every_item(self):
        assert calculate_totals([]) == {
            ServiceItem.MILK: Decimal("0"),
            ServiceItem.WATER: Decimal("0"),
            ServiceItem.HOUSE_CLEANING: Decimal("0"),
            ServiceItem.GARDENER: Decimal("0"),
        }

    def test_returns_are_subtracted(self):
        """10 delivered and 2 returned leaves 8."""
        events = [
            make_event("milk", "10"),
            make_event("milk", "2", status=DeliveryStatus.RETURNED),
        ]
        totals = calculate_totals(events)
        assert totals[ServiceItem.MILK] == Decimal("8")
        assert totals[ServiceItem.WATER] == Decimal("0")

    def test_order_does_not_matter(self):
        events = [
            make_event("milk", "1.5", on=date(2024, 3, 1)),
            make_event("water", "3", on=date(2024, 3, 2)),
            make_event("milk", "0.5", on=date(2024, 3, 3), status=DeliveryStatus.RETURNED),
            make_event("gardener", "1", on=date(2024, 3, 4)),
            make_event("house-cleaning", "2", on=date(2024, 3, 5)),
        ]
        expected = calculate_totals(events)
        shuffled = list(events)
        random.Random(7).shuffle(shuffled)
        assert calculate_totals(shuffled) == expected
        assert calculate_totals(reversed(events)) == expected

    def test_returned_is_negation_of_delivered(self):
        delivered = calculate_totals([make_event("water", "4")])
        returned = calculate_totals(
            [make_event("water", "4", status=DeliveryStatus.RETURNED)]
        )
        assert returned[ServiceItem.WATER] == -delivered[ServiceItem.WATER]

    def test_total_can_go_negative(self):
        totals = calculate_totals(
            [make_event("milk", "3", status=DeliveryStatus.RETURNED)]
        )
        assert totals[ServiceItem.MILK] == Decimal("-3")


class TestCalculateBill:
    """Tests for quantity times rate."""

    def test_bill_for_net_quantity(self, milk_rate_100):
        totals = {**zero_amounts(), ServiceItem.MILK: Decimal("8")}
        bill = calculate_bill(totals, milk_rate_100)
        assert bill[ServiceItem.MILK] == Decimal("800")

    def test_zero_rate_bills_zero(self, milk_rate_100):
        totals = {**zero_amounts(), ServiceItem.WATER: Decimal("12")}
        assert calculate_bill(totals, milk_rate_100)[ServiceItem.WATER] == Decimal("0")

    def test_missing_items_bill_zero(self):
        bill = calculate_bill({ServiceItem.GARDENER: Decimal("2")}, RateTable())
        assert bill[ServiceItem.GARDENER] == Decimal("2000")
        assert bill[ServiceItem.MILK] == Decimal("0")

    def test_linear_in_rates(self):
        totals = calculate_totals([
            make_event("milk", "2.5"),
            make_event("water", "3"),
            make_event("gardener", "1"),
        ])
        rates = RateTable()
        k = Decimal("3")
        scaled = RateTable.from_mapping(
            {item: rate * k for item, rate in rates.as_mapping().items()}
        )
        bill = calculate_bill(totals, rates)
        scaled_bill = calculate_bill(totals, scaled)
        for item in ServiceItem:
            assert scaled_bill[item] == bill[item] * k


class TestDaysWithoutDelivery:
    """Tests for days since the last delivery."""

    def test_empty_history_is_all_none(self):
        days = calculate_days_without_delivery([], today=date(2024, 3, 10))
        assert days == {item: None for item in ServiceItem}

    def test_latest_delivered_event_wins(self):
        events = [
            make_event("milk", "1", on=date(2024, 3, 1)),
            make_event("milk", "1", on=date(2024, 3, 7)),
            make_event("milk", "1", on=date(2024, 3, 4)),
        ]
        days = calculate_days_without_delivery(events, today=date(2024, 3, 10))
        assert days[ServiceItem.MILK] == 3
        assert days[ServiceItem.WATER] is None

    def test_returns_do_not_count(self):
        events = [
            make_event("water", "2", on=date(2024, 3, 1)),
            make_event("water", "1", on=date(2024, 3, 9), status=DeliveryStatus.RETURNED),
        ]
        days = calculate_days_without_delivery(events, today=date(2024, 3, 10))
        assert days[ServiceItem.WATER] == 9

    def test_only_returns_is_none(self):
        events = [make_event("water", "1", status=DeliveryStatus.RETURNED)]
        days = calculate_days_without_delivery(events, today=date(2024, 3, 10))
        assert days[ServiceItem.WATER] is None

    def test_delivery_today_is_zero(self):
        events = [make_event("milk", "1", on=date(2024, 3, 10))]
        days = calculate_days_without_delivery(events, today=date(2024, 3, 10))
        assert days[ServiceItem.MILK] == 0

    def test_future_delivery_clamps_to_zero(self):
        events = [make_event("milk", "1", on=date(2024, 3, 12))]
        days = calculate_days_without_delivery(events, today=date(2024, 3, 10))
        assert days[ServiceItem.MILK] == 0


class TestCalculatePayments:
    """Tests for payment sums per item."""

    def test_sums_per_item(self):
        payments = [
            make_payment("milk", "300", id="a"),
            make_payment("milk", "200", id="b"),
            make_payment("water", "150", id="c"),
        ]
        paid = calculate_payments(payments)
        assert paid[ServiceItem.MILK] == Decimal("500")
        assert paid[ServiceItem.WATER] == Decimal("150")
        assert paid[ServiceItem.GARDENER] == Decimal("0")

    def test_empty(self):
        assert calculate_payments([]) == zero_amounts()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
