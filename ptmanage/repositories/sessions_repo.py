# ptmanage/repositories/sessions_repo.py
import logging
from collections import defaultdict

import pandas as pd

from ptmanage.config import SESSIONS_HEADERS, SESSIONS_TAB
from ptmanage.models.sessions import Session
from ptmanage.repositories.worksheets import overwrite_df, read_df
from ptmanage.services.gsheets_client import get_worksheet
from ptmanage.utils.dates import now_utc_iso, try_parse_date

log = logging.getLogger(__name__)


def _sessions_ws():
    return get_worksheet(SESSIONS_TAB)


def load_sessions_df() -> pd.DataFrame:
    df = read_df(_sessions_ws(), SESSIONS_HEADERS)
    if not df.empty:
        df["client_id"] = df["client_id"].astype(str)
    return df


def group_sessions(df: pd.DataFrame) -> dict[str, list[Session]]:
    """client_id -> sessions, skipping rows without a usable date."""
    out: dict[str, list[Session]] = defaultdict(list)
    if df.empty:
        return out
    for r in df.to_dict("records"):
        s = Session.from_record(r)
        if try_parse_date(s.date) is None:
            log.warning("skipping session %s with bad date %r", s.session_id, s.date)
            continue
        out[str(r.get("client_id", ""))].append(s)
    return out


def session_rows(client_id: str, sessions: list[Session]) -> pd.DataFrame:
    now_utc = now_utc_iso()
    rows = [
        {
            "session_id": s.session_id,
            "client_id": client_id,
            "session_date": s.date,
            "session_time": s.time,
            "status": s.status or "",
            "completed": "TRUE" if s.completed else "FALSE",
            "updated_at_utc": now_utc,
        }
        for s in sessions
    ]
    return pd.DataFrame(rows, columns=SESSIONS_HEADERS)


def replace_client_sessions(client_id: str, sessions: list[Session]) -> None:
    """Swap out every stored session of one client, leaving the others untouched."""
    full = load_sessions_df()
    if not full.empty:
        full = full[full["client_id"] != str(client_id)]
    parts = [df for df in (full, session_rows(client_id, sessions)) if not df.empty]
    merged = pd.concat(parts, ignore_index=True) if parts else pd.DataFrame(columns=SESSIONS_HEADERS)
    overwrite_df(_sessions_ws(), merged, SESSIONS_HEADERS)
    log.info("stored %d sessions for client %s", len(sessions), client_id)
