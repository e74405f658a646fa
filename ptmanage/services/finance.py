# ptmanage/services/finance.py
from typing import Iterable

from ptmanage.models.clients import Client
from ptmanage.models.sessions import Session, is_completed


def balance_due(client: Client) -> float:
    """Negative when the client has overpaid."""
    return float(client.total_fee) - float(client.paid_amount)


def completed_count(sessions: Iterable[Session]) -> int:
    return sum(1 for s in sessions if is_completed(s))


def total_sessions(client: Client) -> int:
    return len(client.sessions)


def rate_per_session(client: Client) -> float:
    n = total_sessions(client)
    if n <= 0:
        return 0.0
    return float(client.total_fee) / n


def value_rendered(client: Client) -> float:
    return completed_count(client.sessions) * rate_per_session(client)


def progress_fraction(client: Client) -> float:
    n = total_sessions(client)
    if n <= 0:
        return 0.0
    return completed_count(client.sessions) / n


def progress_percent(client: Client) -> int:
    return int(round(progress_fraction(client) * 100))
