# ptmanage/services/gsheets_client.py
import json
import logging

import gspread
import streamlit as st
from google.oauth2.service_account import Credentials
from gspread.exceptions import WorksheetNotFound

log = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


# -----------------------------
# Google Sheets client + worksheets
# -----------------------------
@st.cache_resource
def get_gsheets_client():
    creds_dict = st.secrets["GOOGLE_SHEETS_CREDENTIALS"]
    if isinstance(creds_dict, str):
        creds_dict = json.loads(creds_dict)

    credentials = Credentials.from_service_account_info(dict(creds_dict), scopes=SCOPES)
    return gspread.authorize(credentials)


@st.cache_resource
def get_spreadsheet():
    client = get_gsheets_client()
    sheet_id = st.secrets["GOOGLE_SHEET_ID"]
    log.info("opening spreadsheet %s", sheet_id)
    return client.open_by_key(sheet_id)


def get_worksheet(tab_name: str):
    """
    Tab of the app spreadsheet, created on first use. Cached per Streamlit
    session so each rerun doesn't refetch sheet metadata.
    """
    cache = st.session_state.setdefault("_ws_cache", {})
    if tab_name in cache:
        return cache[tab_name]

    sh = get_spreadsheet()
    try:
        ws = sh.worksheet(tab_name)
    except WorksheetNotFound:
        log.info("creating worksheet %s", tab_name)
        ws = sh.add_worksheet(title=tab_name, rows=1000, cols=50)

    cache[tab_name] = ws
    return ws
