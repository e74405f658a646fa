import pytest

from ptmanage.services.status import (
    STATUS_RULES,
    STATUS_TONES,
    ClientStatus,
    derive_status,
    has_upcoming_session,
    needs_renewal,
)
from ptmanage.utils.dates import InvalidDateError

from conftest import TODAY, make_client, make_session

FAR = "2024-03-01"


def category(**overrides):
    return derive_status(make_client(**overrides), TODAY).category


def test_expired_when_expiry_before_today():
    assert category(expiry_date="2024-01-09") == ClientStatus.EXPIRED


def test_expiring_soon_within_a_week():
    assert category(expiry_date="2024-01-14") == ClientStatus.EXPIRING_SOON
    assert category(expiry_date="2024-01-17") == ClientStatus.EXPIRING_SOON


def test_same_day_expiry_is_expiring_not_expired():
    assert category(expiry_date="2024-01-10") == ClientStatus.EXPIRING_SOON


def test_eight_days_out_is_no_longer_expiring():
    upcoming = [make_session("2024-01-12")]
    assert category(expiry_date="2024-01-18", sessions=upcoming) == ClientStatus.ACTIVE


def test_expiry_wins_over_missed_session():
    missed = [make_session("2024-01-05", status="missed")]
    assert category(expiry_date="2024-01-09", sessions=missed) == ClientStatus.EXPIRED


def test_expiring_wins_over_follow_up():
    assert category(expiry_date="2024-01-12", sessions=[]) == ClientStatus.EXPIRING_SOON


def test_no_sessions_and_far_expiry_needs_follow_up():
    assert category(expiry_date=FAR, sessions=[]) == ClientStatus.NEEDS_FOLLOW_UP


def test_missed_session_needs_follow_up_even_with_future_sessions():
    sessions = [make_session("2024-01-03", status="missed"), make_session("2024-01-17")]
    assert category(expiry_date=FAR, sessions=sessions) == ClientStatus.NEEDS_FOLLOW_UP


def test_only_terminal_or_past_sessions_need_follow_up():
    sessions = [
        make_session("2024-01-03", status="completed"),
        make_session("2024-01-08"),                          # past, still scheduled
        make_session("2024-01-17", status="cancelled"),
        make_session("2024-01-24", status="completed"),
        make_session("2024-01-31", status=None, completed=True),
    ]
    assert category(expiry_date=FAR, sessions=sessions) == ClientStatus.NEEDS_FOLLOW_UP


def test_session_scheduled_today_counts_as_upcoming():
    sessions = [make_session("2024-01-10")]
    assert category(expiry_date=FAR, sessions=sessions) == ClientStatus.ACTIVE


def test_active_with_future_session():
    sessions = [make_session("2024-01-03", status="completed"), make_session("2024-01-17")]
    result = derive_status(make_client(expiry_date=FAR, sessions=sessions), TODAY)
    assert result.category == ClientStatus.ACTIVE
    assert result.days_to_expiry == 51


def test_is_due_follows_balance():
    assert derive_status(make_client(total_fee=400, paid_amount=150, expiry_date=FAR), TODAY).is_due
    assert not derive_status(make_client(total_fee=400, paid_amount=400, expiry_date=FAR), TODAY).is_due
    assert not derive_status(make_client(total_fee=400, paid_amount=500, expiry_date=FAR), TODAY).is_due


def test_unparseable_expiry_is_rejected():
    with pytest.raises(InvalidDateError):
        derive_status(make_client(expiry_date="31/01/2024"), TODAY)


def test_malformed_session_dates_never_count_as_upcoming():
    client = make_client(expiry_date=FAR, sessions=[make_session("2024/01/20")])
    assert not has_upcoming_session(client, TODAY)


def test_rule_order_and_tones():
    assert [c for c, _ in STATUS_RULES] == [
        ClientStatus.EXPIRED,
        ClientStatus.EXPIRING_SOON,
        ClientStatus.NEEDS_FOLLOW_UP,
    ]
    assert set(STATUS_TONES) == set(ClientStatus)
    assert ClientStatus.NEEDS_FOLLOW_UP.value == "Needs Follow-up"


def test_needs_renewal():
    assert needs_renewal(make_client(expiry_date="2024-01-05"), TODAY)
    assert needs_renewal(make_client(expiry_date="2024-01-15"), TODAY)
    two_left = [make_session("2024-01-20"), make_session("2024-01-27"), make_session("2024-01-03", status="completed")]
    assert needs_renewal(make_client(expiry_date=FAR, sessions=two_left), TODAY)
    plenty = [make_session(f"2024-02-0{d}") for d in range(1, 5)]
    assert not needs_renewal(make_client(expiry_date=FAR, sessions=plenty), TODAY)
    assert not needs_renewal(make_client(expiry_date=FAR, sessions=[]), TODAY)
