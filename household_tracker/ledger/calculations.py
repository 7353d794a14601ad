"""
Ledger Calculations

Pure functions that turn delivery events into net quantities, net
quantities into money, and payments into per-item sums.

DESIGN DECISION: No I/O and no rounding here. Every figure on the
dashboard is recomputed from whatever full history the store returned;
formatting to two decimals is a presentation concern.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from household_tracker.models.records import (
    DeliveryEvent,
    DeliveryStatus,
    PaymentRecord,
    RateTable,
    ServiceItem,
)


ItemAmounts = dict[ServiceItem, Decimal]


def zero_amounts() -> ItemAmounts:
    """One zero entry per service kind."""
    return {item: Decimal("0") for item in ServiceItem}


def calculate_totals(events: Iterable[DeliveryEvent]) -> ItemAmounts:
    """
    Net quantity per item.

    Delivered events add their quantity, returned events subtract it.
    The fold is a plain sum, so input order does not matter. A total can
    go negative when returns exceed deliveries.
    """
    totals = zero_amounts()
    for event in events:
        totals[event.item] += event.signed_quantity
    return totals


def calculate_bill(
    totals: Mapping[ServiceItem, Decimal],
    rates: RateTable,
) -> ItemAmounts:
    """Multiply each item's net quantity by its rate. A zero rate bills zero."""
    return {
        item: totals.get(item, Decimal("0")) * rates.rate_for(item)
        for item in ServiceItem
    }


def calculate_days_without_delivery(
    events: Iterable[DeliveryEvent],
    today: Optional[date] = None,
) -> dict[ServiceItem, Optional[int]]:
    """
    Whole days since the most recent delivered event of each item.

    Dates are calendar dates, so the result does not depend on the time
    of day. Returned events don't count as deliveries. An item with no
    delivered event maps to None ("no data yet"), not to zero. A delivery
    dated after today counts as zero days.
    """
    today = today or date.today()

    last_delivered: dict[ServiceItem, date] = {}
    for event in events:
        if event.status != DeliveryStatus.DELIVERED:
            continue
        latest = last_delivered.get(event.item)
        if latest is None or event.date > latest:
            last_delivered[event.item] = event.date

    days: dict[ServiceItem, Optional[int]] = {}
    for item in ServiceItem:
        latest = last_delivered.get(item)
        days[item] = None if latest is None else max(0, (today - latest).days)
    return days


def calculate_payments(payments: Iterable[PaymentRecord]) -> ItemAmounts:
    """
    Sum of payment amounts per item.

    No sign handling: every payment reduces what is owed, so the
    resolver subtracts these sums as they are.
    """
    paid = zero_amounts()
    for payment in payments:
        paid[payment.item] += payment.amount
    return paid
