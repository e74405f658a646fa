from types import SimpleNamespace

import pandas as pd
import pytest
from gspread.exceptions import WorksheetNotFound
from gspread.utils import numericise

from ptmanage.config import CLIENTS_HEADERS, CLIENTS_TAB, SESSIONS_HEADERS, SESSIONS_TAB
from ptmanage.models.clients import PaymentPlan
from ptmanage.repositories import clients_repo, sessions_repo
from ptmanage.repositories.worksheets import ensure_headers, overwrite_df, read_df
from ptmanage.services import gsheets_client

from conftest import make_client, make_session


class FakeWorksheet:
    """
    In-memory stand-in for a gspread Worksheet. Values are stored as
    strings; get_all_records numericises them the way gspread does unless
    told to ignore every column.
    """

    def __init__(self, values=None):
        self.values = [list(r) for r in (values or [])]

    def get_all_values(self):
        return [list(r) for r in self.values]

    def get_all_records(self, numericise_ignore=None):
        if len(self.values) < 2:
            return []
        headers = self.values[0]
        rows = self.values[1:]
        if numericise_ignore != ["all"]:
            rows = [[numericise(v) for v in row] for row in rows]
        return [dict(zip(headers, row)) for row in rows]

    def update(self, cell, rows):
        assert cell == "A1"
        rows = [[str(v) for v in r] for r in rows]
        self.values[: len(rows)] = rows

    def clear(self):
        self.values = []


class FakeSpreadsheet:
    def __init__(self, existing=()):
        self.tabs = {name: FakeWorksheet() for name in existing}
        self.lookups = 0

    def worksheet(self, title):
        self.lookups += 1
        if title not in self.tabs:
            raise WorksheetNotFound(title)
        return self.tabs[title]

    def add_worksheet(self, title, rows, cols):
        self.tabs[title] = FakeWorksheet()
        return self.tabs[title]


@pytest.fixture
def sheets(monkeypatch):
    tabs = {CLIENTS_TAB: FakeWorksheet(), SESSIONS_TAB: FakeWorksheet()}
    for mod in (clients_repo, sessions_repo):
        monkeypatch.setattr(mod, "get_worksheet", tabs.__getitem__)
    return tabs


def test_get_worksheet_creates_missing_tab_once(monkeypatch):
    sh = FakeSpreadsheet(existing=[SESSIONS_TAB])
    monkeypatch.setattr(gsheets_client, "st", SimpleNamespace(session_state={}))
    monkeypatch.setattr(gsheets_client, "get_spreadsheet", lambda: sh)

    clients_ws = gsheets_client.get_worksheet(CLIENTS_TAB)
    assert sh.tabs[CLIENTS_TAB] is clients_ws
    assert gsheets_client.get_worksheet(CLIENTS_TAB) is clients_ws
    assert gsheets_client.get_worksheet(SESSIONS_TAB) is sh.tabs[SESSIONS_TAB]
    assert sh.lookups == 2


def test_read_df_keeps_cells_as_text():
    ws = FakeWorksheet([["phone", "fee"], ["0987654321", "400"]])
    df = read_df(ws, ["phone", "fee"])
    assert df.to_dict("records") == [{"phone": "0987654321", "fee": "400"}]


def test_ensure_headers_rewrites_first_row():
    ws = FakeWorksheet([["old"], ["x"]])
    ensure_headers(ws, ["a", "b"])
    assert ws.values[0] == ["a", "b"]
    empty = FakeWorksheet()
    ensure_headers(empty, ["a"])
    assert empty.values == [["a"]]


def test_overwrite_df_orders_and_fills_columns():
    ws = FakeWorksheet()
    overwrite_df(ws, pd.DataFrame([{"b": 2, "extra": "x"}]), ["a", "b"])
    assert ws.values == [["a", "b"], ["", "2"]]


def test_save_and_load_round_trip(sheets):
    plan = PaymentPlan(enabled=True, frequency="monthly", amount=200.0, count=2)
    client = make_client(
        payment_plan=plan,
        sessions=[
            make_session("2024-01-08", sid="b", status="completed", completed=True),
            make_session("2024-01-01", sid="a"),
        ],
    )
    clients_repo.save_client(client)

    assert sheets[CLIENTS_TAB].values[0] == CLIENTS_HEADERS
    assert sheets[SESSIONS_TAB].values[0] == SESSIONS_HEADERS

    [loaded] = clients_repo.load_clients()
    assert loaded.client_id == client.client_id
    assert (loaded.total_fee, loaded.paid_amount) == (400.0, 150.0)
    assert loaded.payment_plan == plan
    assert [s.session_id for s in loaded.sessions] == ["a", "b"]
    assert loaded.sessions[1].completed is True


def test_save_updates_in_place_and_replaces_sessions(sheets):
    clients_repo.save_client(make_client(client_id="c1", sessions=[make_session("2024-01-01", sid="a")]))
    clients_repo.save_client(make_client(client_id="c2", sessions=[make_session("2024-01-02", sid="z")]))
    clients_repo.save_client(make_client(client_id="c1", name="Renamed", sessions=[make_session("2024-01-09", sid="n")]))

    loaded = {c.client_id: c for c in clients_repo.load_clients()}
    assert set(loaded) == {"c1", "c2"}
    assert loaded["c1"].name == "Renamed"
    assert [s.session_id for s in loaded["c1"].sessions] == ["n"]
    assert [s.session_id for s in loaded["c2"].sessions] == ["z"]


def test_delete_client_removes_sessions(sheets):
    clients_repo.save_client(make_client(client_id="c1", sessions=[make_session("2024-01-01", sid="a")]))
    clients_repo.save_client(make_client(client_id="c2", sessions=[make_session("2024-01-02", sid="z")]))
    clients_repo.delete_client("c1")

    assert [c.client_id for c in clients_repo.load_clients()] == ["c2"]
    assert len(sheets[SESSIONS_TAB].values) == 2


def test_load_skips_malformed_rows(sheets):
    sheets[CLIENTS_TAB].values = [
        CLIENTS_HEADERS,
        ["ok", "Asha", "", "", "2024-01-01", "2024-01-31", "10:00-11:00", "400", "n/a", "", "", "", ""],
        ["bad", "Bilal", "", "", "someday", "2024-01-31", "10:00-11:00", "400", "0", "", "", "", ""],
        ["", "Nobody", "", "", "2024-01-01", "2024-01-31", "", "", "", "", "", "", ""],
    ]
    sheets[SESSIONS_TAB].values = [
        SESSIONS_HEADERS,
        ["s1", "ok", "2024-01-03", "10:00-11:00", "scheduled", "FALSE", ""],
        ["s2", "ok", "not-a-date", "10:00-11:00", "scheduled", "FALSE", ""],
    ]
    [client] = clients_repo.load_clients()
    assert client.client_id == "ok"
    assert client.paid_amount == 0.0
    assert [s.session_id for s in client.sessions] == ["s1"]


def test_phone_with_leading_zero_survives_round_trip(sheets):
    clients_repo.save_client(make_client(phone="09876543210", default_time_slot="7:00-8:00"))
    [loaded] = clients_repo.load_clients()
    assert loaded.phone == "09876543210"
    assert loaded.default_time_slot == "7:00-8:00"
