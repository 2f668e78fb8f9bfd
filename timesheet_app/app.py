"""Application entry point: page registry and router."""

from __future__ import annotations

import streamlit as st

PAGES = {}

SERVICE_KEY = "timesheet_service"


def register_page(label):
    def decorator(func):
        PAGES[label] = func
        return func

    return decorator


def main():
    st.sidebar.title("Jira Timesheet")
    pages = list(PAGES.keys())
    if not pages:
        st.write("No pages registered yet.")
        return
    preferred_order = [
        "Timers",  # running timers and history
        "Tickets",  # browse projects, start timers
        "Timesheet",  # reconciled worklogs
        "Setup / Connection",  # configuration
    ]
    ordered = [name for name in preferred_order if name in pages]
    trailing = sorted(name for name in pages if name not in preferred_order)
    pages = ordered + trailing

    # If setup exists and no service yet, default to setup page
    if "Setup / Connection" in pages and SERVICE_KEY not in st.session_state:
        default = pages.index("Setup / Connection")
    else:
        default = 0
    page = st.sidebar.selectbox("Page", pages, index=default)
    PAGES[page]()


if __name__ == "__main__":
    main()
