"""Convenience launcher for the Streamlit app.

Usage:
  streamlit run run_app.py

Automatically imports every module in ``timesheet_app/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

from importlib import import_module
from pathlib import Path

import streamlit as st

from timesheet_app.app import SERVICE_KEY, main
from timesheet_app.core.config import load_config
from timesheet_app.core.errors import TimesheetError
from timesheet_app.core.service import build_service

st.set_page_config(page_title="Jira Timesheet", layout="wide")


def _auto_init_service():
    """Initialize the Jira service from JIRA_URL/JIRA_EMAIL/JIRA_TOKEN if set."""
    if SERVICE_KEY in st.session_state:
        return
    try:
        config = load_config()
    except TimesheetError as e:
        st.sidebar.error(f"Jira settings could not be loaded: {e}")
        return
    if not config.is_complete:
        st.sidebar.warning("Jira settings not found. Please use the Setup page.")
        return
    try:
        st.session_state[SERVICE_KEY] = build_service(config)
        st.session_state["jira_server"] = config.jira_url
    except TimesheetError as e:
        st.sidebar.error(f"Jira connection failed: {e}")


_auto_init_service()

PAGES_DIR = Path(__file__).parent / "timesheet_app" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    import_module(f"timesheet_app.pages.{py.stem}")

if __name__ == "__main__":
    main()
