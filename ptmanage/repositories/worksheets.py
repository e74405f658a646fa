# ptmanage/repositories/worksheets.py
import pandas as pd


def ensure_headers(ws, headers):
    values = ws.get_all_values()
    if not values or values[0] != headers:
        ws.update("A1", [headers])


def read_df(ws, headers) -> pd.DataFrame:
    """
    Every cell comes back as the text stored in the sheet. gspread would
    otherwise turn phone numbers like "0987..." into ints and drop the
    leading zero.
    """
    ensure_headers(ws, headers)
    records = ws.get_all_records(numericise_ignore=["all"])
    return pd.DataFrame(records) if records else pd.DataFrame(columns=headers)


def overwrite_df(ws, df_all: pd.DataFrame, headers) -> None:
    """
    Simple + reliable approach: rewrite the whole tab.
    Fine for small/medium datasets.
    """
    df_all = df_all.copy()
    for c in headers:
        if c not in df_all.columns:
            df_all[c] = ""
    df_all = df_all[headers]

    values = [headers] + df_all.astype(str).values.tolist()
    ws.clear()
    ws.update("A1", values)
