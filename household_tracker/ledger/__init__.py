"""Billing and ledger calculations package."""

from household_tracker.ledger.calculations import (
    ItemAmounts,
    calculate_bill,
    calculate_days_without_delivery,
    calculate_payments,
    calculate_totals,
    zero_amounts,
)
from household_tracker.ledger.resolver import (
    BillingSummary,
    calculate_outstanding_balance,
    calculate_period_bill,
    filter_events,
    filter_payments,
    suggested_settlement,
    summarize,
)

__all__ = [
    "BillingSummary",
    "ItemAmounts",
    "calculate_bill",
    "calculate_days_without_delivery",
    "calculate_outstanding_balance",
    "calculate_payments",
    "calculate_period_bill",
    "calculate_totals",
    "filter_events",
    "filter_payments",
    "suggested_settlement",
    "summarize",
    "zero_amounts",
]
