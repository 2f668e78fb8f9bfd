"""Table helpers for Streamlit rendering."""

from __future__ import annotations

import pandas as pd
import streamlit as st


def add_ticket_link(df: pd.DataFrame, server: str, key_col: str = "key", label: str = "Ticket"):
    if df.empty or key_col not in df.columns:
        return df, {}
    out = df.copy()
    base = server.rstrip("/")
    out[label] = out[key_col].astype(str).apply(lambda k: f"{base}/browse/{k}" if k and k != "nan" else "")
    cfg = {
        label: st.column_config.LinkColumn(
            label,
            display_text=r"browse/(.*)$",
            help="Open in Jira",
            width="small",
        )
    }
    return out, cfg


def prepare_timesheet_table(df: pd.DataFrame, server: str) -> tuple[pd.DataFrame, list[str], dict[str, object]]:
    """Link keys to Jira and pick the display columns for a timesheet frame."""
    if df.empty:
        return df, [], {}
    table, cfg = add_ticket_link(df, server)
    display_cols = [c for c in ("Ticket", "summary", "date", "hours") if c in table.columns]
    cfg["hours"] = st.column_config.NumberColumn("Hours", format="%.2f")
    cfg["date"] = st.column_config.TextColumn("Date")
    return table, display_cols, cfg
