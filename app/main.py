"""
Streamlit Frontend for Household Tracker

The page the household opens every day to log the milkman, the water
delivery, the cleaner and the gardener, and to see what is owed.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every figure is recomputed from the full history on each rerun
3. Clear error messages in simple language
4. Visual feedback for all operations
5. No hidden actions

Nothing is written without an explicit button press, and a failed
write leaves the screen exactly as it was.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import streamlit as st

from household_tracker.config import get_settings, validate_all_settings
from household_tracker.dashboard import (
    DashboardController,
    Notification,
    create_app_components,
    summary,
    visible_events,
    visible_payments,
)
from household_tracker.ledger import suggested_settlement
from household_tracker.models import (
    DateRange,
    DeliveryEvent,
    DeliveryStatus,
    PaymentRecord,
    RateTable,
    ServiceItem,
)


# Page configuration
st.set_page_config(
    page_title="Household Tracker",
    page_icon="🥛",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .big-number {
        font-size: 2em;
        font-weight: bold;
        color: #2c3e50;
    }
    .owed {
        color: #dc3545;
    }
    .credit {
        color: #28a745;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_controller() -> DashboardController:
    """Get or create the dashboard controller (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def notify(notification: Optional[Notification]):
    """Queue a notification so it survives the next st.rerun()."""
    if notification is not None:
        st.session_state.setdefault("notifications", []).append(notification)


def show_notifications():
    for notification in st.session_state.pop("notifications", []):
        if notification.is_error:
            st.error(f"**{notification.title}:** {notification.description}")
        else:
            st.toast(f"{notification.title}: {notification.description}", icon="✅")


def money(amount: Decimal) -> str:
    currency = get_settings().app.currency_code
    return f"{currency} {amount:,.2f}"


def as_decimal(value: float) -> Decimal:
    # number_input returns floats; go through str to avoid binary noise
    return Decimal(str(value))


def main():
    """Main application entry point."""
    controller = get_controller()

    if not st.session_state.get("loaded"):
        with st.spinner("Loading your records..."):
            notify(run_async(controller.load()))
        st.session_state.loaded = True

    # Sidebar navigation
    st.sidebar.title("🥛 Household Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Log each delivery or visit
        2. Mark returns as "returned"
        3. Press **Settle** when you pay
        """
    )

    show_notifications()

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(controller)
    elif page == "⚙️ Settings":
        render_settings_page(controller)


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard_page(controller: DashboardController):
    st.title("📊 Dashboard")

    render_filters(controller)
    billing = summary(controller.state)

    render_summary_cards(controller, billing)

    if st.session_state.get("settle_item"):
        render_settle_form(controller, billing)

    st.markdown("---")
    left, right = st.columns([1, 2])
    with left:
        render_delivery_form(controller)
        render_reminder_card(controller)
    with right:
        render_period_bill(billing)
        render_deliveries_table(controller)
        render_payments_table(controller)


def render_filters(controller: DashboardController):
    state = controller.state
    col1, col2 = st.columns(2)

    with col1:
        options = [None] + list(ServiceItem)
        item = st.selectbox(
            "Filter by Item",
            options=options,
            index=options.index(state.item_filter),
            format_func=lambda x: "All Items" if x is None else x.label,
        )

    with col2:
        current = state.date_range
        picked = st.date_input(
            "Date Range",
            value=[d for d in (current.start, current.end) if d],
            help="Filters the tables and the period bill. Balances always use all records.",
        )

    # date_input returns a partial tuple while the user is still picking
    if isinstance(picked, (list, tuple)):
        picked = list(picked)
        date_range = DateRange(
            start=picked[0] if picked else None,
            end=picked[1] if len(picked) > 1 else None,
        )
    else:
        date_range = DateRange(start=picked, end=picked)

    if item != state.item_filter or date_range != state.date_range:
        controller.set_filters(item=item, date_range=date_range)


def render_summary_cards(controller: DashboardController, billing):
    columns = st.columns(len(ServiceItem))
    for column, item in zip(columns, ServiceItem):
        with column:
            balance = billing.outstanding[item]
            css = "owed" if balance > 0 else "credit"
            days = billing.days_without_delivery[item]

            st.markdown(f"#### {item.label}")
            st.markdown(
                f"{billing.all_time_totals[item]:,.2f} {item.unit} in total"
            )
            st.markdown(
                f'<div class="big-number {css}">{money(balance)}</div>',
                unsafe_allow_html=True,
            )
            st.caption(
                "No deliveries yet" if days is None
                else f"{days} day(s) since last delivery"
            )
            if st.button("💸 Settle", key=f"settle_{item.value}"):
                st.session_state.settle_item = item.value
                st.rerun()


def render_settle_form(controller: DashboardController, billing):
    item = ServiceItem(st.session_state.settle_item)

    with st.form("settle_form"):
        st.markdown(f"### Settle {item.label} bill")
        st.markdown(f"Outstanding: **{money(billing.outstanding[item])}**")

        amount = st.number_input(
            "Amount",
            min_value=0.0,
            value=float(suggested_settlement(billing, item)),
            step=10.0,
        )
        paid_on = st.date_input("Payment date", value=date.today(), max_value=date.today())
        reason = st.text_input("Note (optional)")
        receipt = None
        if controller.receipts_enabled:
            receipt = st.file_uploader(
                "Receipt (optional)",
                type=get_settings().app.supported_formats_list,
            )

        col1, col2 = st.columns(2)
        with col1:
            confirmed = st.form_submit_button("✅ Record Payment", type="primary")
        with col2:
            cancelled = st.form_submit_button("Cancel")

    if cancelled:
        st.session_state.settle_item = None
        st.rerun()

    if confirmed:
        attachment = None
        if receipt is not None:
            with st.spinner("Uploading receipt..."):
                attachment, failure = run_async(
                    controller.upload_receipt(receipt.getvalue(), receipt.name)
                )
            if failure:
                notify(failure)
                st.rerun()

        notify(run_async(controller.settle(
            item,
            as_decimal(amount),
            paid_on,
            reason=reason or None,
            attachment=attachment,
        )))
        st.session_state.settle_item = None
        st.rerun()


def render_delivery_form(controller: DashboardController):
    st.markdown("### ➕ Add Delivery")

    with st.form("delivery_form", clear_on_submit=True):
        day = st.date_input("Date", value=date.today(), max_value=date.today())
        item = st.selectbox("Item", options=list(ServiceItem), format_func=lambda x: x.label)
        quantity = st.number_input("Quantity", min_value=0.0, value=1.0, step=0.5)
        status = st.radio(
            "Status",
            options=list(DeliveryStatus),
            format_func=lambda x: x.value.title(),
            horizontal=True,
        )
        submitted = st.form_submit_button("Add Record", type="primary")

    if submitted:
        details, result = controller.validator.validate_delivery({
            "date": day,
            "item": item,
            "quantity": as_decimal(quantity),
            "status": status,
        })
        if details is None:
            for message in result.errors:
                st.error(message)
            return
        notify(run_async(controller.add_delivery(details)))
        st.rerun()


def render_reminder_card(controller: DashboardController):
    st.markdown("### 🔔 Reorder Reminders")

    if not controller.reminders_enabled:
        st.info("Set GEMINI_API_KEY to enable AI reminders.")
        return

    app_settings = get_settings().app
    schedule = st.text_area("Delivery schedule", value=app_settings.default_delivery_schedule)
    patterns = st.text_area("Consumption patterns", value=app_settings.default_consumption_patterns)

    if st.button("✨ Generate Reminders"):
        with st.spinner("Thinking..."):
            reminders, failure = run_async(
                controller.generate_reminders(schedule, patterns)
            )
        if failure:
            st.error(failure.description)
        else:
            st.session_state.reminders = reminders

    reminders = st.session_state.get("reminders")
    if reminders:
        st.markdown(f"**Milk:** {reminders.milk_reorder_reminder}")
        st.markdown(f"**Water:** {reminders.water_reorder_reminder}")


def render_period_bill(billing):
    st.markdown("### 🧾 Bill for Selected Period")

    rows = [
        {
            "Item": item.label,
            "Quantity": f"{billing.period_totals[item]:,.2f} {item.unit}",
            "Amount": money(billing.period_bill[item]),
        }
        for item in ServiceItem
    ]
    st.table(rows)
    st.markdown(f"**Total for period:** {money(billing.total_period_bill)}")
    st.markdown(f"**Total outstanding (all time):** {money(billing.total_outstanding)}")


def render_deliveries_table(controller: DashboardController):
    st.markdown("### 🚚 Deliveries")

    events = visible_events(controller.state)
    if not events:
        st.info("No deliveries in this period.")
        return

    for event in events:
        with st.expander(
            f"{event.date:%d %b %Y} · {event.item.label} · "
            f"{event.quantity} {event.item.unit} · {event.status.value}"
        ):
            render_edit_delivery(controller, event)


def render_edit_delivery(controller: DashboardController, event: DeliveryEvent):
    with st.form(f"edit_delivery_{event.id}"):
        day = st.date_input("Date", value=event.date, max_value=date.today())
        quantity = st.number_input(
            "Quantity", min_value=0.0, value=float(event.quantity), step=0.5
        )
        status = st.radio(
            "Status",
            options=list(DeliveryStatus),
            index=list(DeliveryStatus).index(event.status),
            format_func=lambda x: x.value.title(),
            horizontal=True,
        )
        col1, col2 = st.columns(2)
        with col1:
            save = st.form_submit_button("💾 Save")
        with col2:
            delete = st.form_submit_button("🗑️ Delete")

    if delete:
        notify(run_async(controller.delete_delivery(event.id)))
        st.rerun()

    if save:
        details, result = controller.validator.validate_delivery({
            "date": day,
            "item": event.item,
            "quantity": as_decimal(quantity),
            "status": status,
            "billed_quantity": event.billed_quantity,
        })
        if details is None:
            for message in result.errors:
                st.error(message)
            return
        notify(run_async(controller.update_delivery(details.with_id(event.id))))
        st.rerun()


def render_payments_table(controller: DashboardController):
    st.markdown("### 💳 Payment History")

    payments = visible_payments(controller.state)
    if not payments:
        st.info("No payments in this period.")
        return

    for payment in payments:
        with st.expander(
            f"{payment.date:%d %b %Y} · {payment.item.label} · {money(payment.amount)}"
        ):
            if payment.reason:
                st.markdown(f"_{payment.reason}_")
            if payment.attachment:
                st.image(payment.attachment, width=240)
            render_edit_payment(controller, payment)


def render_edit_payment(controller: DashboardController, payment: PaymentRecord):
    with st.form(f"edit_payment_{payment.id}"):
        day = st.date_input("Date", value=payment.date, max_value=date.today())
        amount = st.number_input(
            "Amount", min_value=0.0, value=float(payment.amount), step=10.0
        )
        reason = st.text_input("Note", value=payment.reason or "")
        col1, col2 = st.columns(2)
        with col1:
            save = st.form_submit_button("💾 Save")
        with col2:
            delete = st.form_submit_button("🗑️ Delete")

    if delete:
        notify(run_async(controller.delete_payment(payment.id)))
        st.rerun()

    if save:
        details, result = controller.validator.validate_payment({
            "date": day,
            "item": payment.item,
            "amount": as_decimal(amount),
            "reason": reason,
            "attachment": payment.attachment,
        })
        if details is None:
            for message in result.errors:
                st.error(message)
            return
        notify(run_async(controller.update_payment(details.with_id(payment.id))))
        st.rerun()


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_page(controller: DashboardController):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Rates")
    rates = controller.state.rates.as_mapping()

    with st.form("rates_form"):
        new_rates = {
            item: st.number_input(
                f"{item.label} (per {item.unit.rstrip('s')})",
                min_value=0.0,
                value=float(rates[item]),
                step=10.0,
            )
            for item in ServiceItem
        }
        if st.form_submit_button("💾 Save Rates", type="primary"):
            notify(run_async(controller.save_rates(
                RateTable.from_mapping({k: as_decimal(v) for k, v in new_rates.items()})
            )))
            st.rerun()

    st.markdown("---")
    st.markdown("### Reset Item History")
    st.warning("This permanently deletes every delivery and payment for the item.")

    col1, col2 = st.columns(2)
    with col1:
        item = st.selectbox(
            "Item to reset",
            options=list(ServiceItem),
            format_func=lambda x: x.label,
        )
    with col2:
        confirmed = st.checkbox(f"Yes, delete all {item.label} records")

    if st.button("🗑️ Delete History", disabled=not confirmed):
        notify(run_async(controller.clear_item_history(item)))
        st.rerun()

    st.markdown("---")
    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Cloudinary (Receipts)", "cloudinary"),
        ("Gemini (Reminders)", "gemini"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Connected")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
