# ptmanage/services/scheduling.py
import logging
from collections import Counter
from dataclasses import replace
from datetime import date
from typing import Callable, Iterable, Optional

from ptmanage.config import SESSION_STATUSES, STATUS_CANCELLED, STATUS_SCHEDULED
from ptmanage.models.clients import Client, ValidationError
from ptmanage.models.sessions import (
    Session,
    find_session,
    new_id,
    new_session,
    occupied_dates,
    remove_by_date,
    sorted_by_date_time,
    upsert_many,
    with_status,
)
from ptmanage.utils.dates import add_months, add_weeks, parse_date, try_parse_date

log = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    pass


def expand_weekly(start, end) -> list[date]:
    """Weekly dates from `start` through `end`, both inclusive. Empty if end < start."""
    first = parse_date(start)
    last = try_parse_date(end)
    if last is None:
        return []
    out = []
    current = first
    while current <= last:
        out.append(current)
        current = add_weeks(current, 1)
    return out


def toggle_session(
    client: Client,
    tapped_date,
    recurring_mode: bool = False,
    id_factory: Callable[[], str] = new_id,
) -> list[Session]:
    """
    A calendar tap. Removes the session on `tapped_date` if there is one,
    otherwise adds one session (or, in recurring mode, one per week up to
    and including the expiry date) at the client's default time slot.
    """
    sessions = list(client.sessions)
    tapped = parse_date(tapped_date)

    if find_session(sessions, tapped) is not None:
        return remove_by_date(sessions, tapped)

    if not recurring_mode:
        return upsert_many(sessions, [new_session(tapped, client.default_time_slot, id_factory)])

    taken = occupied_dates(sessions)
    to_add = [
        new_session(d, client.default_time_slot, id_factory)
        for d in expand_weekly(tapped, client.expiry_date)
        if d not in taken
    ]
    log.debug("recurring tap %s for %s: %d new sessions", tapped, client.client_id, len(to_add))
    return upsert_many(sessions, to_add)


def finalize_sessions(sessions: Iterable[Session], time_slot: Optional[str] = None) -> list[Session]:
    """Save-time pass: optionally restamp the form's time slot, then sort."""
    if time_slot:
        sessions = [replace(s, time=time_slot) for s in sessions]
    return sorted_by_date_time(sessions)


def _locate(client: Client, session_id: str) -> int:
    for i, s in enumerate(client.sessions):
        if s.session_id == session_id:
            return i
    raise SessionNotFoundError(f"Session {session_id} not found for client {client.client_id}")


def update_session_status(client: Client, session_id: str, status: str) -> list[Session]:
    if status not in SESSION_STATUSES:
        raise ValidationError([f"Unknown session status: {status!r}"])
    idx = _locate(client, session_id)
    sessions = list(client.sessions)
    sessions[idx] = with_status(sessions[idx], status)
    return sessions


def reschedule_session(client: Client, session_id: str, new_date, new_time: str) -> list[Session]:
    """Move a session; it becomes scheduled again. The target date must be free."""
    idx = _locate(client, session_id)
    target = try_parse_date(new_date)
    if target is None:
        raise ValidationError([f"Invalid date: {new_date!r}"])
    if not (new_time or "").strip():
        raise ValidationError(["Time is required."])

    clash = find_session(client.sessions, target)
    if clash is not None and clash.session_id != session_id:
        raise ValidationError([f"{target.isoformat()} already has a session."])

    sessions = list(client.sessions)
    sessions[idx] = replace(
        sessions[idx],
        date=target.isoformat(),
        time=new_time.strip(),
        status=STATUS_SCHEDULED,
        completed=False,
    )
    return sorted_by_date_time(sessions)


def renew_package(client: Client, today, clear_sessions: bool = False) -> Client:
    """
    Start a new one-month cycle: from today if the old expiry has passed,
    otherwise from the old expiry. Payments are reset.
    """
    today = parse_date(today)
    last_expiry = try_parse_date(client.expiry_date)
    if last_expiry is None or last_expiry < today:
        new_start = today
    else:
        new_start = last_expiry
    new_expiry = add_months(new_start, 1)
    log.info("renewing %s: %s -> %s", client.client_id, new_start, new_expiry)
    return replace(
        client,
        start_date=new_start.isoformat(),
        expiry_date=new_expiry.isoformat(),
        paid_amount=0.0,
        sessions=[] if clear_sessions else list(client.sessions),
    )


def find_double_bookings(clients: Iterable[Client]) -> set[tuple[str, str]]:
    """(date, time) slots held by more than one non-cancelled session."""
    counts = Counter(
        (s.date, s.time)
        for c in clients
        for s in c.sessions
        if s.status != STATUS_CANCELLED
    )
    return {slot for slot, n in counts.items() if n > 1}
