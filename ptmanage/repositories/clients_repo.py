# ptmanage/repositories/clients_repo.py
import logging

import pandas as pd

from ptmanage.config import CLIENTS_HEADERS, CLIENTS_TAB
from ptmanage.models.clients import Client, PaymentPlan
from ptmanage.models.sessions import Session, sorted_by_date_time
from ptmanage.repositories.sessions_repo import group_sessions, load_sessions_df, replace_client_sessions
from ptmanage.repositories.worksheets import overwrite_df, read_df
from ptmanage.services.gsheets_client import get_worksheet
from ptmanage.utils.amount_parser import parse_amount_or_zero
from ptmanage.utils.dates import now_utc_iso, try_parse_date

log = logging.getLogger(__name__)


def _clients_ws():
    return get_worksheet(CLIENTS_TAB)


def load_clients_df() -> pd.DataFrame:
    df = read_df(_clients_ws(), CLIENTS_HEADERS)
    if not df.empty:
        df["client_id"] = df["client_id"].astype(str)
    return df


def client_from_row(r: dict, sessions: list[Session]) -> Client:
    return Client(
        client_id=str(r.get("client_id", "")).strip(),
        name=str(r.get("name", "")).strip(),
        email=str(r.get("email", "") or ""),
        phone=str(r.get("phone", "") or ""),
        start_date=str(r.get("start_date", "")).strip(),
        expiry_date=str(r.get("expiry_date", "")).strip(),
        default_time_slot=str(r.get("default_time_slot", "")).strip(),
        total_fee=parse_amount_or_zero(r.get("total_fee")),
        paid_amount=parse_amount_or_zero(r.get("paid_amount")),
        notes=str(r.get("notes", "") or ""),
        sessions=sorted_by_date_time(sessions),
        created_at=str(r.get("created_at_utc", "") or ""),
        payment_plan=PaymentPlan.from_json(r.get("payment_plan", "")),
    )


def client_to_row(client: Client) -> dict:
    return {
        "client_id": client.client_id,
        "name": client.name,
        "email": client.email,
        "phone": client.phone,
        "start_date": client.start_date,
        "expiry_date": client.expiry_date,
        "default_time_slot": client.default_time_slot,
        "total_fee": client.total_fee,
        "paid_amount": client.paid_amount,
        "notes": client.notes,
        "payment_plan": client.payment_plan.to_json() if client.payment_plan else "",
        "created_at_utc": client.created_at,
        "updated_at_utc": now_utc_iso(),
    }


def load_clients() -> list[Client]:
    clients_df = load_clients_df()
    if clients_df.empty:
        return []
    by_client = group_sessions(load_sessions_df())

    out = []
    for r in clients_df.to_dict("records"):
        cid = str(r.get("client_id", "")).strip()
        if not cid:
            continue
        if try_parse_date(r.get("start_date")) is None or try_parse_date(r.get("expiry_date")) is None:
            log.warning("skipping client %s with bad subscription dates", cid)
            continue
        out.append(client_from_row(r, by_client.get(cid, [])))
    return out


def save_client(client: Client) -> None:
    """Create or update by client_id; the client's sessions are replaced wholesale."""
    df = load_clients_df()
    row = pd.DataFrame([client_to_row(client)], columns=CLIENTS_HEADERS)
    if not df.empty and (df["client_id"] == client.client_id).any():
        df = df[df["client_id"] != client.client_id]
        log.info("updating client %s", client.client_id)
    else:
        log.info("creating client %s", client.client_id)
    df = pd.concat([df, row], ignore_index=True) if not df.empty else row

    overwrite_df(_clients_ws(), df, CLIENTS_HEADERS)
    replace_client_sessions(client.client_id, client.sessions)


def delete_client(client_id: str) -> None:
    df = load_clients_df()
    if not df.empty:
        df = df[df["client_id"] != str(client_id)]
    overwrite_df(_clients_ws(), df, CLIENTS_HEADERS)
    replace_client_sessions(client_id, [])
    log.info("deleted client %s", client_id)
