import logging
from dataclasses import replace
from datetime import date

import pandas as pd
import streamlit as st

from ptmanage.config import CURRENCY, PAYMENT_FREQUENCIES, SESSION_STATUSES, WEEKDAY_HEADERS
from ptmanage.models.clients import Client, PaymentPlan, ValidationError
from ptmanage.models.sessions import occupied_dates
from ptmanage.repositories.clients_repo import delete_client, load_clients, save_client
from ptmanage.services.reports import (
    business_stats,
    client_summary,
    invoice_summary,
    month_revenue,
    month_sessions_frame,
    renewal_watchlist,
)
from ptmanage.services.scheduling import (
    SessionNotFoundError,
    finalize_sessions,
    find_double_bookings,
    renew_package,
    reschedule_session,
    update_session_status,
)
from ptmanage.services.status import STATUS_TONES
from ptmanage.ui import state
from ptmanage.utils.dates import InvalidDateError, enumerate_month, today_local

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="PT Manager", layout="wide")


def money(x: float) -> str:
    return f"{CURRENCY}{x:,.2f}"


def refresh_clients_cache():
    st.session_state["clients_cache"] = load_clients()
    st.session_state["clients_cache_ready"] = True


def get_clients() -> list[Client]:
    if not st.session_state.get("clients_cache_ready"):
        refresh_clients_cache()
    return st.session_state["clients_cache"]


def find_client(client_id) -> Client | None:
    return next((c for c in get_clients() if c.client_id == client_id), None)


def persist(client: Client, message: str) -> None:
    save_client(client)
    refresh_clients_cache()
    st.success(message)


# -----------------------------
# Password gate
# -----------------------------
def require_password():
    if st.session_state.get("authenticated"):
        return

    with st.form("login"):
        pw = st.text_input("Password", type="password")
        ok = st.form_submit_button("Login")

    if not ok:
        st.stop()

    if pw == st.secrets["APP_PASSWORD"]:
        st.session_state["authenticated"] = True
        st.rerun()
    else:
        st.error("Incorrect password")
        st.stop()


require_password()
state.init_state_if_missing()
state.apply_reset_if_marked()

today = today_local()
tab_dash, tab_clients, tab_form, tab_sessions = st.tabs(["Dashboard", "Clients", "Client form", "Sessions"])


# -----------------------------
# Dashboard
# -----------------------------
with tab_dash:
    clients = get_clients()
    stats = business_stats(clients, today)
    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("Clients", stats.total_clients)
    c2.metric("Active", stats.active_clients)
    c3.metric("Revenue", money(stats.total_revenue))
    c4.metric("Outstanding", money(stats.outstanding_revenue))
    c5.metric("Upcoming sessions", stats.upcoming_sessions)
    st.caption(f"Collection rate: {stats.collection_rate}%")

    st.subheader("Renewals")
    watch = renewal_watchlist(clients, today)
    if watch:
        for c in watch[:5]:
            summary = client_summary(c, today)
            label = "Expired" if summary.days_to_expiry < 0 else f"{summary.days_to_expiry}d left"
            st.write(f"**{c.name}** · expires {c.expiry_date} · {label}")
    else:
        st.info("No renewals due.")

    month_df = month_sessions_frame(clients, today)
    st.subheader(f"This month: {len(month_df)} sessions, {money(month_revenue(month_df))}")


# -----------------------------
# Client list
# -----------------------------
with tab_clients:
    search = st.text_input("Search clients", key="client_search").strip().lower()
    clients = [
        c for c in get_clients()
        if search in c.name.lower() or search in c.email.lower()
    ]
    if not clients:
        st.info("No clients yet.")

    for c in clients:
        try:
            summary = client_summary(c, today)
        except InvalidDateError as e:
            st.error(f"{c.name}: {e}")
            continue

        with st.container(border=True):
            left, mid, right = st.columns([4, 3, 2])
            tone = STATUS_TONES[summary.status]
            left.markdown(f"**{c.name}**  :{tone}[{summary.status.value}]")
            left.caption(f"{c.email or '-'} · expires {c.expiry_date}")
            if summary.is_due:
                mid.markdown(f":red[Due {money(summary.balance_due)}]")
            else:
                mid.markdown(":green[Paid]")
            mid.progress(summary.progress_percent, text=f"{summary.completed}/{summary.total} Done")

            if right.button("Edit", key=f"edit_{c.client_id}"):
                state.load_form(c)
                st.info("Loaded into the Client form tab.")
            if right.button("Delete", key=f"delete_{c.client_id}"):
                delete_client(c.client_id)
                refresh_clients_cache()
                st.rerun()

            with st.expander("Invoice"):
                inv = invoice_summary(c, today)
                st.markdown(f"**{inv.invoice_number}** · issued {inv.issued_on}")
                if inv.payment_plan:
                    st.write(f"Recurring plan: {money(inv.payment_plan.amount)} / {inv.payment_plan.frequency}")
                i1, i2, i3, i4 = st.columns(4)
                i1.metric("Total fee", money(inv.total_fee))
                i2.metric("Paid", money(inv.paid_amount))
                i3.metric("Balance due", money(inv.balance_due))
                i4.metric("Value rendered", money(inv.value_rendered))
                st.caption(f"{inv.completed}/{inv.total} sessions at {money(inv.rate_per_session)} each")
                if inv.lines:
                    st.dataframe(
                        pd.DataFrame([vars(line) for line in inv.lines]),
                        hide_index=True,
                        use_container_width=True,
                    )


# -----------------------------
# Client form (create / edit, calendar picker)
# -----------------------------
with tab_form:
    editing = find_client(st.session_state.get(state.KEY_EDITING_ID))
    st.header("Manage client" if editing else "New client")

    if editing:
        clear_old = st.checkbox("Clear old sessions on renewal", key="renew_clear")
        if st.button("Renew package cycle"):
            renewed = renew_package(editing, today, clear_sessions=clear_old)
            state.apply_renewal(renewed)
            st.rerun()

    st.text_input("Name", key=state.KEY_NAME)
    c1, c2 = st.columns(2)
    c1.text_input("Email", key=state.KEY_EMAIL)
    c2.text_input("Phone", key=state.KEY_PHONE)
    st.text_area("Health notes", key=state.KEY_NOTES)

    st.markdown("**Financials**")
    plan_on = st.checkbox("Recurring payments", key=state.KEY_PLAN_ENABLED)
    plan = None
    if plan_on:
        p1, p2, p3 = st.columns(3)
        freq = p1.selectbox("Frequency", PAYMENT_FREQUENCIES, key=state.KEY_PLAN_FREQ)
        amount = p2.number_input("Rate", min_value=0.0, step=100.0, key=state.KEY_PLAN_AMOUNT)
        count = p3.number_input("Payments", min_value=1, step=1, key=state.KEY_PLAN_COUNT)
        plan = PaymentPlan(enabled=True, frequency=freq, amount=float(amount), count=int(count))
        st.session_state[state.KEY_TOTAL_FEE] = state.fmt_amount(plan.total)
    f1, f2 = st.columns(2)
    f1.text_input("Total fee", key=state.KEY_TOTAL_FEE, disabled=plan_on, help='Arithmetic allowed, e.g. "4*1500"')
    f2.text_input("Paid amount", key=state.KEY_PAID_AMOUNT)

    st.markdown("**Session schedule**")
    d1, d2, d3, d4 = st.columns(4)
    d1.date_input("Start", key=state.KEY_START_DATE)
    d2.date_input("Expiry", key=state.KEY_EXPIRY_DATE)
    d3.text_input("From", key=state.KEY_START_TIME)
    d4.text_input("To", key=state.KEY_END_TIME)

    month = st.session_state[state.KEY_CALENDAR_MONTH]
    n1, n2, n3 = st.columns([1, 3, 1])
    n1.button("◀", on_click=state.shift_month, args=(-1,), key="cal_prev")
    n2.markdown(f"### {month:%B %Y}")
    n3.button("▶", on_click=state.shift_month, args=(1,), key="cal_next")

    days, pad = enumerate_month(month)
    selected = occupied_dates(st.session_state[state.KEY_FORM_SESSIONS])
    cols = st.columns(7)
    for i, h in enumerate(WEEKDAY_HEADERS):
        cols[i].caption(h)
    cells: list[date | None] = [None] * pad + days
    for week_start in range(0, len(cells), 7):
        cols = st.columns(7)
        for i, day in enumerate(cells[week_start:week_start + 7]):
            if day is None:
                continue
            cols[i].button(
                str(day.day),
                key=f"cal_{day.isoformat()}",
                type="primary" if day in selected else "secondary",
                on_click=state.tap_date,
                args=(day,),
            )

    r1, r2 = st.columns(2)
    r1.toggle("Auto-repeat weekly", key=state.KEY_RECURRING_MODE)
    r2.caption(f"{len(st.session_state[state.KEY_FORM_SESSIONS])} sessions")

    b1, b2 = st.columns(2)
    b2.button("Reset", on_click=state.mark_reset, key="reset_form_btn")
    if b1.button("Save client", type="primary", key="save_client_btn"):
        slot = state.form_time_slot()
        try:
            client = Client.create(
                name=st.session_state[state.KEY_NAME],
                email=st.session_state[state.KEY_EMAIL],
                phone=st.session_state[state.KEY_PHONE],
                notes=st.session_state[state.KEY_NOTES],
                start_date=st.session_state[state.KEY_START_DATE],
                expiry_date=st.session_state[state.KEY_EXPIRY_DATE],
                default_time_slot=slot,
                total_fee=st.session_state[state.KEY_TOTAL_FEE],
                paid_amount=st.session_state[state.KEY_PAID_AMOUNT],
                sessions=finalize_sessions(st.session_state[state.KEY_FORM_SESSIONS], slot),
                payment_plan=plan,
                client_id=editing.client_id if editing else None,
                created_at=editing.created_at if editing else None,
            )
        except ValidationError as e:
            for msg in e.errors:
                st.error(msg)
        else:
            persist(client, f"Saved: {client.name}")
            state.mark_reset()
            st.rerun()


# -----------------------------
# Sessions (status updates + reschedule)
# -----------------------------
with tab_sessions:
    clients = get_clients()
    clashes = find_double_bookings(clients)
    if clashes:
        st.warning("Double-booked: " + ", ".join(f"{d} {t}" for d, t in sorted(clashes)))

    if not clients:
        st.info("No clients yet.")
        st.stop()

    names = {c.client_id: c.name for c in clients}
    cid = st.selectbox("Client", list(names), format_func=names.get, key="sessions_client")
    client = find_client(cid)

    if not client.sessions:
        st.info("No sessions for this client.")
        st.stop()

    editor_df = pd.DataFrame(
        [
            {
                "session_id": s.session_id,
                "session_date": date.fromisoformat(s.date),
                "session_time": s.time,
                "status": s.status or ("completed" if s.completed else "scheduled"),
            }
            for s in client.sessions
        ]
    )
    edited = st.data_editor(
        editor_df,
        use_container_width=True,
        num_rows="fixed",
        disabled=["session_id"],
        column_config={
            "session_id": None,
            "session_date": st.column_config.DateColumn("Date"),
            "session_time": st.column_config.TextColumn("Time"),
            "status": st.column_config.SelectboxColumn("Status", options=SESSION_STATUSES),
        },
        hide_index=True,
        key=f"sessions_editor_{cid}",
    )

    if st.button("Save changes", type="primary", key=f"save_sessions_{cid}"):
        updated = client
        try:
            for before, after in zip(editor_df.to_dict("records"), edited.to_dict("records")):
                sid = before["session_id"]
                if (after["session_date"], after["session_time"]) != (before["session_date"], before["session_time"]):
                    updated = replace(updated, sessions=reschedule_session(
                        updated, sid, after["session_date"], after["session_time"]
                    ))
                if after["status"] != before["status"]:
                    updated = replace(updated, sessions=update_session_status(updated, sid, after["status"]))
        except (ValidationError, SessionNotFoundError) as e:
            st.error(str(e))
        else:
            persist(updated, "Saved changes for this client.")
            st.rerun()
