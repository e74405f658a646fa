# ptmanage/services/status.py
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable

from ptmanage.config import (
    EXPIRING_SOON_DAYS,
    RENEWAL_SESSIONS_LEFT,
    STATUS_CANCELLED,
    STATUS_MISSED,
    TERMINAL_STATUSES,
)
from ptmanage.models.clients import Client
from ptmanage.models.sessions import Session, is_completed
from ptmanage.services.finance import balance_due
from ptmanage.utils.dates import days_until, is_before, parse_date, try_parse_date


class ClientStatus(str, Enum):
    EXPIRED = "Expired"
    EXPIRING_SOON = "Expiring Soon"
    NEEDS_FOLLOW_UP = "Needs Follow-up"
    ACTIVE = "Active"


# badge colours for the list view
STATUS_TONES = {
    ClientStatus.EXPIRED: "red",
    ClientStatus.EXPIRING_SOON: "orange",
    ClientStatus.NEEDS_FOLLOW_UP: "blue",
    ClientStatus.ACTIVE: "green",
}


@dataclass(frozen=True)
class ClientStatusResult:
    category: ClientStatus
    is_due: bool
    days_to_expiry: int


def has_missed_session(client: Client) -> bool:
    return any(s.status == STATUS_MISSED for s in client.sessions)


def is_upcoming(session: Session, today: date) -> bool:
    """Today or later, and neither cancelled nor completed."""
    d = try_parse_date(session.date)
    if d is None or d < today:
        return False
    return not (session.status in TERMINAL_STATUSES or is_completed(session))


def has_upcoming_session(client: Client, today: date) -> bool:
    return any(is_upcoming(s, today) for s in client.sessions)


def _expired(client: Client, today: date) -> bool:
    return is_before(client.expiry_date, today)


def _expiring_soon(client: Client, today: date) -> bool:
    return days_until(client.expiry_date, today) <= EXPIRING_SOON_DAYS


def _needs_follow_up(client: Client, today: date) -> bool:
    return has_missed_session(client) or not has_upcoming_session(client, today)


# Evaluated in order; the first rule that matches decides.
STATUS_RULES: list[tuple[ClientStatus, Callable[[Client, date], bool]]] = [
    (ClientStatus.EXPIRED, _expired),
    (ClientStatus.EXPIRING_SOON, _expiring_soon),
    (ClientStatus.NEEDS_FOLLOW_UP, _needs_follow_up),
]


def derive_status(client: Client, today) -> ClientStatusResult:
    """
    Raises InvalidDateError when the client's expiry date can't be parsed.
    """
    today = parse_date(today)
    expiry = parse_date(client.expiry_date)

    category = ClientStatus.ACTIVE
    for candidate, rule in STATUS_RULES:
        if rule(client, today):
            category = candidate
            break

    return ClientStatusResult(
        category=category,
        is_due=balance_due(client) > 0,
        days_to_expiry=(expiry - today).days,
    )


def sessions_left(client: Client) -> int:
    return sum(1 for s in client.sessions if not is_completed(s) and s.status != STATUS_CANCELLED)


def needs_renewal(client: Client, today) -> bool:
    """Renewal watch list: expired, expiring within a week, or nearly out of sessions."""
    today = parse_date(today)
    expiry = try_parse_date(client.expiry_date)
    if expiry is None:
        return False
    days_left = (expiry - today).days
    left = sessions_left(client)
    return (
        expiry < today
        or 0 <= days_left <= EXPIRING_SOON_DAYS
        or 0 < left <= RENEWAL_SESSIONS_LEFT
    )
