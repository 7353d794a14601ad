"""Dashboard state and controller package."""

from household_tracker.dashboard.controller import (
    DashboardController,
    Notification,
    NotificationVariant,
    create_app_components,
)
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

__all__ = [
    "DashboardController",
    "DashboardState",
    "Notification",
    "NotificationVariant",
    "create_app_components",
    "summary",
    "visible_events",
    "visible_payments",
    "with_event_added",
    "with_event_removed",
    "with_event_replaced",
    "with_filters",
    "with_item_history_cleared",
    "with_loaded",
    "with_payment_added",
    "with_payment_removed",
    "with_payment_replaced",
    "with_rates",
]
