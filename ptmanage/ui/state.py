# ptmanage/ui/state.py
from datetime import date
from typing import Optional

import streamlit as st

from ptmanage.config import DEFAULT_TIME_SLOT
from ptmanage.models.clients import Client
from ptmanage.services.scheduling import toggle_session
from ptmanage.utils.dates import add_months, today_local

# Centralize keys to avoid typos across files
KEY_EDITING_ID = "editing_client_id"
KEY_FORM_SESSIONS = "form_sessions"
KEY_RECURRING_MODE = "recurring_mode"
KEY_CALENDAR_MONTH = "calendar_month"
KEY_DO_RESET = "_do_reset"

KEY_NAME = "name"
KEY_EMAIL = "email"
KEY_PHONE = "phone"
KEY_NOTES = "notes"
KEY_START_DATE = "start_date"
KEY_EXPIRY_DATE = "expiry_date"
KEY_START_TIME = "start_time"
KEY_END_TIME = "end_time"
KEY_TOTAL_FEE = "total_fee"
KEY_PAID_AMOUNT = "paid_amount"
KEY_PLAN_ENABLED = "plan_enabled"
KEY_PLAN_FREQ = "plan_freq"
KEY_PLAN_AMOUNT = "plan_amount"
KEY_PLAN_COUNT = "plan_count"


def _split_slot(slot: str) -> tuple[str, str]:
    if "-" in (slot or ""):
        s, e = slot.split("-", 1)
        return s.strip(), e.strip()
    return (slot or DEFAULT_TIME_SLOT.split("-")[0]).strip(), DEFAULT_TIME_SLOT.split("-")[1]


def fmt_amount(x: float) -> str:
    x = float(x)
    return str(int(x)) if x.is_integer() else str(x)


def load_form(client: Optional[Client]) -> None:
    """Fill the form keys from `client`, or blank them for a new one."""
    today = today_local()
    start, end = _split_slot(client.default_time_slot if client else DEFAULT_TIME_SLOT)
    st.session_state[KEY_EDITING_ID] = client.client_id if client else None
    st.session_state[KEY_NAME] = client.name if client else ""
    st.session_state[KEY_EMAIL] = client.email if client else ""
    st.session_state[KEY_PHONE] = client.phone if client else ""
    st.session_state[KEY_NOTES] = client.notes if client else ""
    st.session_state[KEY_START_DATE] = date.fromisoformat(client.start_date) if client else today
    st.session_state[KEY_EXPIRY_DATE] = date.fromisoformat(client.expiry_date) if client else add_months(today, 1)
    st.session_state[KEY_START_TIME] = start
    st.session_state[KEY_END_TIME] = end
    st.session_state[KEY_TOTAL_FEE] = fmt_amount(client.total_fee) if client else "0"
    st.session_state[KEY_PAID_AMOUNT] = fmt_amount(client.paid_amount) if client else "0"
    plan = client.payment_plan if client else None
    st.session_state[KEY_PLAN_ENABLED] = bool(plan and plan.enabled)
    st.session_state[KEY_PLAN_FREQ] = plan.frequency if plan else "monthly"
    st.session_state[KEY_PLAN_AMOUNT] = float(plan.amount) if plan else 0.0
    st.session_state[KEY_PLAN_COUNT] = int(plan.count) if plan else 1
    st.session_state[KEY_FORM_SESSIONS] = list(client.sessions) if client else []
    st.session_state[KEY_CALENDAR_MONTH] = today.replace(day=1)
    st.session_state[KEY_RECURRING_MODE] = False


def init_state_if_missing() -> None:
    """Call at the top of the page before rendering widgets."""
    if KEY_FORM_SESSIONS not in st.session_state:
        load_form(None)


def form_time_slot() -> str:
    return f"{st.session_state[KEY_START_TIME]}-{st.session_state[KEY_END_TIME]}"


def tap_date(day: date) -> None:
    """Calendar button callback: toggle the draft session set."""
    draft = Client(
        client_id=st.session_state.get(KEY_EDITING_ID) or "draft",
        name=st.session_state.get(KEY_NAME, ""),
        start_date=st.session_state[KEY_START_DATE].isoformat(),
        expiry_date=st.session_state[KEY_EXPIRY_DATE].isoformat(),
        default_time_slot=form_time_slot(),
        sessions=st.session_state[KEY_FORM_SESSIONS],
    )
    st.session_state[KEY_FORM_SESSIONS] = toggle_session(
        draft, day, bool(st.session_state.get(KEY_RECURRING_MODE))
    )


def shift_month(months: int) -> None:
    st.session_state[KEY_CALENDAR_MONTH] = add_months(st.session_state[KEY_CALENDAR_MONTH], months)


def apply_renewal(client: Client) -> None:
    """Push a renewed cycle (dates, payments, sessions) into the form."""
    st.session_state[KEY_START_DATE] = date.fromisoformat(client.start_date)
    st.session_state[KEY_EXPIRY_DATE] = date.fromisoformat(client.expiry_date)
    st.session_state[KEY_PAID_AMOUNT] = fmt_amount(client.paid_amount)
    st.session_state[KEY_FORM_SESSIONS] = list(client.sessions)


def mark_reset() -> None:
    st.session_state[KEY_DO_RESET] = True


def apply_reset_if_marked() -> None:
    """
    'Reset on next run' pattern: call at the very top of the page
    BEFORE creating widgets.
    """
    if st.session_state.get(KEY_DO_RESET):
        load_form(None)
        st.session_state[KEY_DO_RESET] = False
