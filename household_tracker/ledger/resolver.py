"""
Outstanding-Balance Resolver

Combines the ledger calculations, the rate table and the payment sums
into the two figures the dashboard shows:

1. PERIOD BILL: what the deliveries inside the selected date range cost.
2. OUTSTANDING BALANCE: everything ever delivered minus everything ever
   paid, per item.

CRITICAL: The outstanding balance ALWAYS uses the full, unfiltered
history. Narrowing the date range or the item filter changes what the
tables show, never what the household owes.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from household_tracker.ledger.calculations import (
    ItemAmounts,
    calculate_bill,
    calculate_days_without_delivery,
    calculate_payments,
    calculate_totals,
)
from household_tracker.models.records import (
    DateRange,
    DeliveryEvent,
    PaymentRecord,
    RateTable,
    ServiceItem,
)


class BillingSummary(BaseModel):
    """Everything the summary cards and period panel need, in one object."""
    model_config = ConfigDict(frozen=True)

    date_range: DateRange
    period_totals: ItemAmounts
    period_bill: ItemAmounts
    all_time_totals: ItemAmounts
    all_time_bill: ItemAmounts
    payments: ItemAmounts
    outstanding: ItemAmounts
    days_without_delivery: dict[ServiceItem, Optional[int]]

    total_outstanding: Decimal = Field(
        default=Decimal("0"),
        description="Sum of the per-item outstanding balances"
    )
    total_period_bill: Decimal = Decimal("0")


def filter_events(
    events: Iterable[DeliveryEvent],
    date_range: Optional[DateRange] = None,
    item: Optional[ServiceItem] = None,
) -> list[DeliveryEvent]:
    """Derive a filtered view. The input collection is left as it is."""
    return [
        event for event in events
        if (item is None or event.item == item)
        and (date_range is None or date_range.contains(event.date))
    ]


def filter_payments(
    payments: Iterable[PaymentRecord],
    date_range: Optional[DateRange] = None,
    item: Optional[ServiceItem] = None,
) -> list[PaymentRecord]:
    """Derive a filtered view. The input collection is left as it is."""
    return [
        payment for payment in payments
        if (item is None or payment.item == item)
        and (date_range is None or date_range.contains(payment.date))
    ]


def calculate_period_bill(
    events: Iterable[DeliveryEvent],
    rates: RateTable,
    date_range: DateRange,
) -> ItemAmounts:
    """Bill for the events inside the range only."""
    return calculate_bill(calculate_totals(filter_events(events, date_range)), rates)


def calculate_outstanding_balance(
    events: Iterable[DeliveryEvent],
    payments: Iterable[PaymentRecord],
    rates: RateTable,
) -> ItemAmounts:
    """
    All-time bill minus all-time payments, per item.

    Callers must pass the full collections. A negative balance means the
    household has paid in advance.
    """
    bill = calculate_bill(calculate_totals(events), rates)
    paid = calculate_payments(payments)
    return {item: bill[item] - paid[item] for item in ServiceItem}


def summarize(
    events: Sequence[DeliveryEvent],
    payments: Sequence[PaymentRecord],
    rates: RateTable,
    date_range: DateRange,
    today: Optional[date] = None,
) -> BillingSummary:
    """
    Build the dashboard summary from the full collections.

    `events` and `payments` must be the unfiltered history; the date
    range is applied here for the period figures only.
    """
    period_totals = calculate_totals(filter_events(events, date_range))
    period_bill = calculate_bill(period_totals, rates)

    all_time_totals = calculate_totals(events)
    all_time_bill = calculate_bill(all_time_totals, rates)
    paid = calculate_payments(payments)
    outstanding = {item: all_time_bill[item] - paid[item] for item in ServiceItem}

    return BillingSummary(
        date_range=date_range,
        period_totals=period_totals,
        period_bill=period_bill,
        all_time_totals=all_time_totals,
        all_time_bill=all_time_bill,
        payments=paid,
        outstanding=outstanding,
        days_without_delivery=calculate_days_without_delivery(events, today),
        total_outstanding=sum(outstanding.values(), Decimal("0")),
        total_period_bill=sum(period_bill.values(), Decimal("0")),
    )


def suggested_settlement(summary: BillingSummary, item: ServiceItem) -> Decimal:
    """Amount to prefill in the settle dialog: the balance if anything is owed."""
    balance = summary.outstanding[item]
    return balance if balance > 0 else Decimal("0")
