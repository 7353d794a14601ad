"""
Dashboard State

DESIGN DECISION: The dashboard's data lives in one immutable object.
Every change goes through a pure reducer that returns a new state, so
a failed store write simply never calls the reducer and the old state
stays exactly as it was.

The collections held here are the FULL history. Filters are stored
alongside and applied only when deriving views; the outstanding
balance is always computed from the unfiltered collections.
"""

from datetime import date
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from household_tracker.ledger import BillingSummary, filter_events, filter_payments, summarize
from household_tracker.models.records import (
    DEFAULT_RATES,
    DateRange,
    DeliveryEvent,
    PaymentRecord,
    RateTable,
    ServiceItem,
)


def _newest_first(records: Iterable) -> tuple:
    # sorted() is stable, so same-day records keep their relative order
    return tuple(sorted(records, key=lambda r: r.date, reverse=True))


class DashboardState(BaseModel):
    """Everything the dashboard shows, derived or stored."""
    model_config = ConfigDict(frozen=True)

    events: tuple[DeliveryEvent, ...] = ()
    payments: tuple[PaymentRecord, ...] = ()
    rates: RateTable = DEFAULT_RATES

    item_filter: Optional[ServiceItem] = Field(
        default=None,
        description="None shows every item"
    )
    date_range: DateRange = Field(default_factory=DateRange.current_month)


# =============================================================================
# REDUCERS
# =============================================================================

def with_loaded(
    state: DashboardState,
    events: Iterable[DeliveryEvent],
    payments: Iterable[PaymentRecord],
    rates: Optional[RateTable] = None,
) -> DashboardState:
    """Replace the collections with a fresh load. Filters are kept."""
    return state.model_copy(update={
        "events": _newest_first(events),
        "payments": _newest_first(payments),
        "rates": rates or DEFAULT_RATES,
    })


def with_event_added(state: DashboardState, event: DeliveryEvent) -> DashboardState:
    return state.model_copy(update={"events": _newest_first((*state.events, event))})


def with_event_replaced(state: DashboardState, event: DeliveryEvent) -> DashboardState:
    """Swap the event with the same id. Unknown ids leave the state as it is."""
    return state.model_copy(update={
        "events": _newest_first(event if e.id == event.id else e for e in state.events)
    })


def with_event_removed(state: DashboardState, event_id: str) -> DashboardState:
    return state.model_copy(update={
        "events": tuple(e for e in state.events if e.id != event_id)
    })


def with_payment_added(state: DashboardState, payment: PaymentRecord) -> DashboardState:
    return state.model_copy(update={"payments": _newest_first((*state.payments, payment))})


def with_payment_replaced(state: DashboardState, payment: PaymentRecord) -> DashboardState:
    return state.model_copy(update={
        "payments": _newest_first(
            payment if p.id == payment.id else p for p in state.payments
        )
    })


def with_payment_removed(state: DashboardState, payment_id: str) -> DashboardState:
    return state.model_copy(update={
        "payments": tuple(p for p in state.payments if p.id != payment_id)
    })


def with_item_history_cleared(state: DashboardState, item: ServiceItem) -> DashboardState:
    return state.model_copy(update={
        "events": tuple(e for e in state.events if e.item != item),
        "payments": tuple(p for p in state.payments if p.item != item),
    })


def with_rates(state: DashboardState, rates: RateTable) -> DashboardState:
    return state.model_copy(update={"rates": rates})


_UNCHANGED = object()


def with_filters(
    state: DashboardState,
    item=_UNCHANGED,
    date_range=_UNCHANGED,
) -> DashboardState:
    """
    Change the item filter, the date range, or both.

    Pass item=None to show every item. Arguments left out keep their
    current value.
    """
    update = {}
    if item is not _UNCHANGED:
        update["item_filter"] = ServiceItem(item) if item is not None else None
    if date_range is not _UNCHANGED:
        update["date_range"] = date_range if date_range is not None else DateRange()
    return state.model_copy(update=update)


# =============================================================================
# VIEWS
# =============================================================================

def visible_events(state: DashboardState) -> list[DeliveryEvent]:
    """Events the deliveries table shows: item filter and date range applied."""
    return filter_events(state.events, state.date_range, state.item_filter)


def visible_payments(state: DashboardState) -> list[PaymentRecord]:
    return filter_payments(state.payments, state.date_range, state.item_filter)


def summary(state: DashboardState, today: Optional[date] = None) -> BillingSummary:
    """
    Summary cards and period bill.

    The period bill uses the date range only; the item filter narrows
    the tables, not the per-item cards.
    """
    return summarize(state.events, state.payments, state.rates, state.date_range, today)
