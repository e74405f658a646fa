import itertools
from datetime import date

import pytest

from ptmanage.models.clients import Client
from ptmanage.models.sessions import Session


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"s{next(counter)}"


def make_session(day, status="scheduled", time="10:00-11:00", sid=None, completed=False):
    return Session(session_id=sid or f"id-{day}", date=day, time=time, status=status, completed=completed)


def make_client(**overrides) -> Client:
    values = dict(
        client_id="abcdef123456",
        name="Asha Rao",
        start_date="2024-01-01",
        expiry_date="2024-01-22",
        default_time_slot="07:00-08:00",
        total_fee=400.0,
        paid_amount=150.0,
        sessions=[],
        created_at="2024-01-01T00:00:00+00:00",
    )
    values.update(overrides)
    return Client(**values)


TODAY = date(2024, 1, 10)
