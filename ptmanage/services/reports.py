# ptmanage/services/reports.py
"""
Read-only summaries for the list, invoice, dashboard and monthly views.
Views render these; they never recompute status or money themselves.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

import pandas as pd

from ptmanage.config import STATUS_CANCELLED
from ptmanage.models.clients import Client, PaymentPlan
from ptmanage.models.sessions import display_status, sorted_by_date_time
from ptmanage.services.finance import (
    balance_due,
    completed_count,
    progress_fraction,
    progress_percent,
    rate_per_session,
    total_sessions,
    value_rendered,
)
from ptmanage.services.status import (
    ClientStatus,
    derive_status,
    is_upcoming,
    needs_renewal,
)
from ptmanage.utils.dates import month_bounds, parse_date, try_parse_date


@dataclass(frozen=True)
class ClientSummary:
    client_id: str
    name: str
    status: ClientStatus
    is_due: bool
    days_to_expiry: int
    balance_due: float
    completed: int
    total: int
    rate_per_session: float
    value_rendered: float
    progress_fraction: float
    progress_percent: int


def client_summary(client: Client, today) -> ClientSummary:
    result = derive_status(client, today)
    return ClientSummary(
        client_id=client.client_id,
        name=client.name,
        status=result.category,
        is_due=result.is_due,
        days_to_expiry=result.days_to_expiry,
        balance_due=balance_due(client),
        completed=completed_count(client.sessions),
        total=total_sessions(client),
        rate_per_session=rate_per_session(client),
        value_rendered=value_rendered(client),
        progress_fraction=progress_fraction(client),
        progress_percent=progress_percent(client),
    )


@dataclass(frozen=True)
class InvoiceLine:
    index: int
    date: str
    time: str
    status: str


@dataclass(frozen=True)
class InvoiceSummary:
    invoice_number: str
    issued_on: str
    client_name: str
    total_fee: float
    paid_amount: float
    balance_due: float
    completed: int
    total: int
    rate_per_session: float
    value_rendered: float
    payment_plan: Optional[PaymentPlan]
    lines: list[InvoiceLine]


def invoice_number(client: Client, today) -> str:
    d = parse_date(today)
    return f"INV-{client.client_id[:6].upper()}-{d.month:02d}{d.day:02d}"


def invoice_summary(client: Client, today) -> InvoiceSummary:
    d = parse_date(today)
    lines = [
        InvoiceLine(index=i, date=s.date, time=s.time, status=display_status(s))
        for i, s in enumerate(sorted_by_date_time(client.sessions), start=1)
    ]
    return InvoiceSummary(
        invoice_number=invoice_number(client, d),
        issued_on=d.isoformat(),
        client_name=client.name,
        total_fee=float(client.total_fee),
        paid_amount=float(client.paid_amount),
        balance_due=balance_due(client),
        completed=completed_count(client.sessions),
        total=total_sessions(client),
        rate_per_session=rate_per_session(client),
        value_rendered=value_rendered(client),
        payment_plan=client.payment_plan if (client.payment_plan and client.payment_plan.enabled) else None,
        lines=lines,
    )


@dataclass(frozen=True)
class BusinessStats:
    total_clients: int
    active_clients: int
    total_revenue: float
    outstanding_revenue: float
    upcoming_sessions: int
    collection_rate: int          # percent of fees collected


def business_stats(clients: Iterable[Client], today) -> BusinessStats:
    today = parse_date(today)
    clients = list(clients)
    active = 0
    upcoming = 0
    for c in clients:
        expiry = try_parse_date(c.expiry_date)
        if expiry is not None and expiry >= today:
            active += 1
        upcoming += sum(1 for s in c.sessions if is_upcoming(s, today))

    total_revenue = sum(float(c.total_fee) for c in clients)
    collected = sum(float(c.paid_amount) for c in clients)
    outstanding = sum(max(balance_due(c), 0.0) for c in clients)
    rate = int(round(collected / total_revenue * 100)) if total_revenue > 0 else 0
    return BusinessStats(
        total_clients=len(clients),
        active_clients=active,
        total_revenue=total_revenue,
        outstanding_revenue=outstanding,
        upcoming_sessions=upcoming,
        collection_rate=rate,
    )


def renewal_watchlist(clients: Iterable[Client], today) -> list[Client]:
    """Clients needing renewal, soonest expiry first."""
    due = [c for c in clients if needs_renewal(c, today)]
    return sorted(due, key=lambda c: c.expiry_date)


MONTH_COLUMNS = ["client_id", "client_name", "session_date", "session_time", "status", "rate"]


def month_sessions_frame(clients: Iterable[Client], anchor) -> pd.DataFrame:
    """
    Every non-cancelled session in the month containing `anchor`, one row
    per session, valued at the client's per-session rate.
    """
    first, last = month_bounds(anchor)
    rows = []
    for c in clients:
        rate = rate_per_session(c)
        for s in c.sessions:
            if s.status == STATUS_CANCELLED:
                continue
            rows.append(
                {
                    "client_id": c.client_id,
                    "client_name": c.name,
                    "session_date": s.date,
                    "session_time": s.time,
                    "status": display_status(s),
                    "rate": rate,
                }
            )

    df = pd.DataFrame(rows, columns=MONTH_COLUMNS)
    if df.empty:
        return df
    dt = pd.to_datetime(df["session_date"], errors="coerce")
    df = df[(dt >= pd.Timestamp(first)) & (dt <= pd.Timestamp(last))].copy()
    df["_sort"] = pd.to_datetime(
        df["session_date"] + " " + df["session_time"].str.split("-").str[0], errors="coerce"
    )
    df = df.sort_values(["_sort", "client_name"], kind="stable").drop(columns="_sort")
    return df.reset_index(drop=True)


def month_revenue(df: pd.DataFrame) -> float:
    if df.empty:
        return 0.0
    return float(pd.to_numeric(df["rate"], errors="coerce").fillna(0.0).sum())
