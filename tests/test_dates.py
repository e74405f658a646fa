from datetime import date, datetime

import pandas as pd
import pytest

from ptmanage.utils.dates import (
    InvalidDateError,
    add_months,
    add_weeks,
    days_until,
    enumerate_month,
    is_after,
    is_before,
    is_same_day,
    month_bounds,
    parse_date,
    try_parse_date,
)


def test_parse_date_accepts_common_inputs():
    assert parse_date("2024-02-29") == date(2024, 2, 29)
    assert parse_date(date(2024, 1, 1)) == date(2024, 1, 1)
    assert parse_date(datetime(2024, 1, 1, 23, 59)) == date(2024, 1, 1)
    assert parse_date(pd.Timestamp("2024-03-05")) == date(2024, 3, 5)
    assert parse_date("2024-01-01T10:00") == date(2024, 1, 1)


@pytest.mark.parametrize("bad", ["", None, "2024-13-01", "not a date", pd.NaT, float("nan")])
def test_parse_date_rejects_garbage(bad):
    with pytest.raises(InvalidDateError):
        parse_date(bad)
    assert try_parse_date(bad) is None


def test_calendar_day_comparisons_ignore_time_of_day():
    assert is_same_day(datetime(2024, 1, 1, 6), datetime(2024, 1, 1, 22))
    assert is_before("2024-01-09", "2024-01-10")
    assert not is_before("2024-01-10", datetime(2024, 1, 10, 23))
    assert is_after("2024-01-11", "2024-01-10")


def test_comparison_against_malformed_date_is_rejected():
    with pytest.raises(InvalidDateError):
        is_before("garbage", "2024-01-10")


def test_add_weeks_crosses_month_and_year():
    assert add_weeks("2024-01-29", 1) == date(2024, 2, 5)
    assert add_weeks("2023-12-28", 1) == date(2024, 1, 4)
    assert add_weeks("2024-03-31", 2) == date(2024, 4, 14)
    assert add_weeks("2024-01-15", -2) == date(2024, 1, 1)


def test_days_until_is_signed():
    assert days_until("2024-01-14", "2024-01-10") == 4
    assert days_until("2024-01-09", "2024-01-10") == -1
    assert days_until("2024-01-10", "2024-01-10") == 0


def test_enumerate_month():
    days, first_weekday = enumerate_month(date(2024, 2, 17))
    assert len(days) == 29
    assert days[0] == date(2024, 2, 1)
    assert days[-1] == date(2024, 2, 29)
    # 2024-02-01 is a Thursday; Sunday-based index
    assert first_weekday == 4

    days, first_weekday = enumerate_month("2024-09-30")
    assert len(days) == 30
    assert first_weekday == 0  # 2024-09-01 is a Sunday


def test_month_bounds_december():
    assert month_bounds("2024-12-15") == (date(2024, 12, 1), date(2024, 12, 31))


def test_add_months_clamps_to_month_end():
    assert add_months("2024-01-31", 1) == date(2024, 2, 29)
    assert add_months("2023-01-31", 1) == date(2023, 2, 28)
    assert add_months("2024-12-15", 1) == date(2025, 1, 15)
