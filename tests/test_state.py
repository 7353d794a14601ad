"""Tests for the dashboard state reducers and views."""

from datetime import date
from decimal import Decimal

import pytest

from household_tracker.dashboard.state import (
    DashboardState,
    summary,
    visible_events,
    visible_payments,
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
from household_tracker.models.records import (
    DEFAULT_RATES,
    DateRange,
    DeliveryStatus,
    RateTable,
    ServiceItem,
)

from conftest import make_event, make_payment


@pytest.fixture
def state():
    return with_loaded(
        DashboardState(date_range=DateRange()),
        events=[
            make_event("milk", "1", on=date(2024, 3, 1), id="e1"),
            make_event("water", "2", on=date(2024, 3, 5), id="e2"),
            make_event("milk", "1", on=date(2024, 3, 3), id="e3"),
        ],
        payments=[make_payment("milk", "100", on=date(2024, 3, 2), id="p1")],
        rates=RateTable(milk=Decimal("100")),
    )


class TestReducers:
    """Each reducer returns a new state and leaves the old one alone."""

    def test_loaded_sorts_newest_first(self, state):
        assert [e.id for e in state.events] == ["e2", "e3", "e1"]
        assert state.rates.milk == Decimal("100")

    def test_loaded_without_rates_uses_defaults(self):
        loaded = with_loaded(DashboardState(), [], [], None)
        assert loaded.rates == DEFAULT_RATES
        assert loaded.events == ()

    def test_event_added_is_inserted_in_date_order(self, state):
        new = with_event_added(state, make_event("gardener", "1", on=date(2024, 3, 4), id="e4"))
        assert [e.id for e in new.events] == ["e2", "e4", "e3", "e1"]
        assert [e.id for e in state.events] == ["e2", "e3", "e1"]

    def test_event_replaced_by_id_and_resorted(self, state):
        moved = make_event("milk", "3", on=date(2024, 3, 9), id="e1")
        new = with_event_replaced(state, moved)
        assert [e.id for e in new.events] == ["e1", "e2", "e3"]
        assert new.events[0].quantity == Decimal("3")
        assert len(new.events) == 3

    def test_replacing_unknown_id_changes_nothing(self, state):
        new = with_event_replaced(state, make_event("milk", "9", id="missing"))
        assert new.events == state.events

    def test_event_removed(self, state):
        new = with_event_removed(state, "e3")
        assert [e.id for e in new.events] == ["e2", "e1"]

    def test_payment_reducers(self, state):
        added = with_payment_added(state, make_payment("water", "50", on=date(2024, 3, 6), id="p2"))
        assert [p.id for p in added.payments] == ["p2", "p1"]

        replaced = with_payment_replaced(added, make_payment("water", "75", on=date(2024, 3, 6), id="p2"))
        assert replaced.payments[0].amount == Decimal("75")

        removed = with_payment_removed(replaced, "p1")
        assert [p.id for p in removed.payments] == ["p2"]

    def test_item_history_cleared(self, state):
        new = with_item_history_cleared(state, ServiceItem.MILK)
        assert [e.id for e in new.events] == ["e2"]
        assert new.payments == ()

    def test_rates(self, state):
        new = with_rates(state, DEFAULT_RATES)
        assert new.rates == DEFAULT_RATES
        assert state.rates.milk == Decimal("100")


class TestFiltersAndViews:
    """Filters narrow the views, never the collections."""

    def test_item_filter_narrows_tables(self, state):
        filtered = with_filters(state, item=ServiceItem.MILK)
        assert [e.id for e in visible_events(filtered)] == ["e3", "e1"]
        assert [p.id for p in visible_payments(filtered)] == ["p1"]
        assert len(filtered.events) == 3

    def test_item_filter_accepts_string_and_none(self, state):
        filtered = with_filters(state, item="water")
        assert filtered.item_filter == ServiceItem.WATER
        assert with_filters(filtered, item=None).item_filter is None

    def test_unspecified_filter_is_kept(self, state):
        filtered = with_filters(state, item=ServiceItem.MILK)
        narrowed = with_filters(filtered, date_range=DateRange(start=date(2024, 3, 2)))
        assert narrowed.item_filter == ServiceItem.MILK
        assert [e.id for e in visible_events(narrowed)] == ["e3"]

    def test_summary_outstanding_ignores_filters(self, state):
        narrowed = with_filters(
            state,
            item=ServiceItem.WATER,
            date_range=DateRange(start=date(2024, 3, 5), end=date(2024, 3, 5)),
        )
        full = summary(state, today=date(2024, 3, 10))
        filtered = summary(narrowed, today=date(2024, 3, 10))

        assert filtered.outstanding == full.outstanding
        assert full.outstanding[ServiceItem.MILK] == Decimal("100")
        assert filtered.period_bill[ServiceItem.MILK] == Decimal("0")

    def test_returned_event_reduces_summary(self, state):
        new = with_event_added(
            state,
            make_event("milk", "1", on=date(2024, 3, 8), status=DeliveryStatus.RETURNED, id="r1"),
        )
        assert summary(new).all_time_totals[ServiceItem.MILK] == Decimal("1")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
