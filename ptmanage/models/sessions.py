# ptmanage/models/sessions.py
import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from typing import Callable, Iterable, Optional

from ptmanage.config import SESSION_STATUSES, STATUS_COMPLETED, STATUS_SCHEDULED
from ptmanage.utils.dates import parse_date, try_parse_date


def new_id() -> str:
    return str(uuid.uuid4())


# -----------------------------
# Data model
# -----------------------------
@dataclass(frozen=True)
class Session:
    session_id: str
    date: str                    # YYYY-MM-DD
    time: str                    # HH:MM or HH:MM-HH:MM
    status: Optional[str] = STATUS_SCHEDULED
    completed: bool = False      # legacy flag, older records only carry this

    @staticmethod
    def from_record(r: dict) -> "Session":
        status = str(r.get("status", "") or "").strip().lower() or None
        if status is not None and status not in SESSION_STATUSES:
            status = None
        return Session(
            session_id=str(r.get("session_id") or r.get("id") or new_id()),
            date=str(r.get("session_date") or r.get("date") or "").strip(),
            time=str(r.get("session_time") or r.get("time") or "").strip(),
            status=status,
            completed=_to_bool(r.get("completed", False)),
        )


def _to_bool(x) -> bool:
    if isinstance(x, bool):
        return x
    return str(x).strip().lower() in ("true", "1", "yes", "y")


def is_completed(session: Session) -> bool:
    """Single 'done' predicate over both representations."""
    return session.status == STATUS_COMPLETED or session.completed is True


def display_status(session: Session) -> str:
    if session.status:
        return session.status
    return STATUS_COMPLETED if session.completed else STATUS_SCHEDULED


def new_session(day, time_slot: str, id_factory: Callable[[], str] = new_id) -> Session:
    return Session(
        session_id=id_factory(),
        date=parse_date(day).isoformat(),
        time=time_slot,
        status=STATUS_SCHEDULED,
        completed=False,
    )


# -----------------------------
# Session set operations (one session per date)
# -----------------------------
def _date_key(value) -> Optional[date]:
    return try_parse_date(value)


def find_session(sessions: Iterable[Session], day) -> Optional[Session]:
    target = _date_key(day)
    if target is None:
        return None
    for s in sessions:
        if _date_key(s.date) == target:
            return s
    return None


def occupied_dates(sessions: Iterable[Session]) -> set[date]:
    out = set()
    for s in sessions:
        d = _date_key(s.date)
        if d is not None:
            out.add(d)
    return out


def upsert_many(sessions: list[Session], new_records: Iterable[Session]) -> list[Session]:
    """
    Merge, not replace: a new record is appended only when its date is
    free. Records with an unparseable date are skipped.
    """
    taken = occupied_dates(sessions)
    out = list(sessions)
    for rec in new_records:
        d = _date_key(rec.date)
        if d is None or d in taken:
            continue
        taken.add(d)
        out.append(rec)
    return out


def remove_by_date(sessions: list[Session], day) -> list[Session]:
    target = _date_key(day)
    if target is None:
        return list(sessions)
    out = []
    removed = False
    for s in sessions:
        if not removed and _date_key(s.date) == target:
            removed = True
            continue
        out.append(s)
    return out


def start_time(time_slot: str) -> str:
    return (time_slot or "").split("-")[0].strip()


def parse_start_time(time_slot: str) -> Optional[time]:
    """Lenient H:MM[:SS] start of a slot ("7:00-8:00" -> 07:00)."""
    parts = start_time(time_slot).split(":")
    if not 2 <= len(parts) <= 3 or not all(p.strip().isdigit() for p in parts):
        return None
    try:
        return time(*(int(p) for p in parts))
    except ValueError:
        return None


def session_timestamp(session: Session) -> Optional[datetime]:
    """
    `{date}T{start}` as a timestamp. A missing or unreadable start time
    sorts as the start of the day; None only when the date is malformed.
    """
    d = _date_key(session.date)
    if d is None:
        return None
    return datetime.combine(d, parse_start_time(session.time) or time.min)


def sorted_by_date_time(sessions: Iterable[Session]) -> list[Session]:
    """
    Stable ascending sort on date + start time. Sessions whose date
    cannot be parsed keep their relative order after the sorted ones.
    """
    keyed, malformed = [], []
    for s in sessions:
        ts = session_timestamp(s)
        if ts is None:
            malformed.append(s)
        else:
            keyed.append((ts, s))
    keyed.sort(key=lambda pair: pair[0])
    return [s for _, s in keyed] + malformed


def with_status(session: Session, status: str) -> Session:
    return replace(session, status=status, completed=(status == STATUS_COMPLETED))
