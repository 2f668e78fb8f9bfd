"""Connection setup page: collect Jira credentials and initialize TimesheetService."""

from __future__ import annotations

import streamlit as st

from timesheet_app.app import SERVICE_KEY, register_page
from timesheet_app.core.config import JIRA_DEFAULT_SERVER, AppConfig, ConfigState
from timesheet_app.core.errors import TimesheetError
from timesheet_app.core.service import build_service


def _config_state() -> ConfigState:
    if "config_state" not in st.session_state:
        try:
            state = ConfigState()
        except TimesheetError as e:
            st.warning(f"Ignoring saved settings: {e}")
            state = ConfigState(AppConfig())
        st.session_state["config_state"] = state
    return st.session_state["config_state"]


@register_page("Setup / Connection")
def setup_page():
    st.title("Jira Connection Setup")
    st.caption("Enter credentials (use secrets manager in production).")

    state = _config_state()
    current = state.get()
    try:
        jira_secrets = st.secrets.get("jira", {})
    except FileNotFoundError:  # no secrets.toml
        jira_secrets = {}

    server = st.text_input(
        "Jira Server URL",
        value=current.jira_url or jira_secrets.get("JIRA_URL", ""),
        placeholder=JIRA_DEFAULT_SERVER,
    )
    email = st.text_input(
        "Email / Username",
        value=current.email or jira_secrets.get("JIRA_EMAIL", ""),
    )
    token = st.text_input(
        "API Token",
        type="password",
        value=current.api_token or jira_secrets.get("JIRA_TOKEN", ""),
    )
    init_btn = st.button("Initialize Connection", type="primary")

    if init_btn:
        config = state.save(server, email, token)
        existing = st.session_state.get(SERVICE_KEY)
        try:
            # Reuse the registry so running timers survive a reconnect
            service = build_service(config, registry=existing.registry if existing else None)
            with st.spinner("Checking credentials..."):
                account_id = service.verify_connection()
        except TimesheetError as e:
            st.error(str(e))
            return
        st.session_state["jira_server"] = config.jira_url
        st.session_state[SERVICE_KEY] = service
        st.success(f"Connection initialized (account {account_id}).")

    if SERVICE_KEY in st.session_state:
        st.info("TimesheetService ready.")
