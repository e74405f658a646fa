# ptmanage/utils/dates.py
from datetime import date, datetime, timedelta
from typing import Optional

import pandas as pd
import pytz

from ptmanage.config import TIMEZONE


class InvalidDateError(ValueError):
    pass


def parse_date(value) -> date:
    """
    Normalize a calendar date. Accepts date, datetime, pandas.Timestamp
    or an ISO string (YYYY-MM-DD). Anything else is rejected, never
    replaced by "today".
    """
    if value is None or value is pd.NaT:
        raise InvalidDateError("Date is empty")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    s = str(value or "").strip()
    if not s:
        raise InvalidDateError("Date is empty")
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        raise InvalidDateError(f"Invalid date: {s!r}") from None


def try_parse_date(value) -> Optional[date]:
    try:
        return parse_date(value)
    except InvalidDateError:
        return None


def is_same_day(a, b) -> bool:
    return parse_date(a) == parse_date(b)


def is_before(a, b) -> bool:
    return parse_date(a) < parse_date(b)


def is_after(a, b) -> bool:
    return parse_date(a) > parse_date(b)


def add_weeks(d, n: int) -> date:
    return parse_date(d) + timedelta(weeks=n)


def days_until(target, from_) -> int:
    """Signed number of calendar days from `from_` to `target`."""
    return (parse_date(target) - parse_date(from_)).days


def month_bounds(anchor) -> tuple[date, date]:
    first = parse_date(anchor).replace(day=1)
    if first.month == 12:
        next_month = first.replace(year=first.year + 1, month=1, day=1)
    else:
        next_month = first.replace(month=first.month + 1, day=1)
    last = next_month - timedelta(days=1)
    return first, last


def enumerate_month(anchor) -> tuple[list[date], int]:
    """
    Days of the month containing `anchor`, plus the weekday of the 1st
    with Sunday = 0 (calendar grid padding).
    """
    first, last = month_bounds(anchor)
    days = [ts.date() for ts in pd.date_range(first, last, freq="D")]
    first_weekday = (first.weekday() + 1) % 7
    return days, first_weekday


def add_months(d, months: int) -> date:
    """Jan 31 + 1 month => Feb 28/29."""
    start = parse_date(d)
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    _, last = month_bounds(date(y, m, 1))
    return date(y, m, min(start.day, last.day))


def today_local(tz_name: str = TIMEZONE) -> date:
    return datetime.now(pytz.timezone(tz_name)).date()


def now_utc_iso() -> str:
    return datetime.now(pytz.UTC).isoformat()
