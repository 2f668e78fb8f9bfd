"""Tickets page: browse projects, inspect assigned tickets, change status, start timers."""

from __future__ import annotations

import logging

import pandas as pd
import streamlit as st

from timesheet_app.app import SERVICE_KEY, register_page
from timesheet_app.core.errors import TimesheetError
from timesheet_app.core.mappers import format_duration
from timesheet_app.core.service import TimesheetService
from timesheet_app.visual.tables import add_ticket_link

logger = logging.getLogger(__name__)


def _render_detail(service: TimesheetService, issue_key: str) -> None:
    try:
        detail = service.get_issue_detail(issue_key)
    except TimesheetError as exc:
        st.error(f"Failed to load {issue_key}: {exc}")
        return
    st.subheader(f"{detail.key}: {detail.summary}")
    meta = {
        "Type": detail.issue_type or "—",
        "Status": detail.status,
        "Priority": detail.priority or "—",
        "Assignee": detail.assignee or "—",
        "Reporter": detail.reporter or "—",
        "Labels": ", ".join(detail.labels) or "—",
        "Created": detail.created or "—",
        "Updated": detail.updated or "—",
    }
    st.table(pd.DataFrame({"field": list(meta), "value": list(meta.values())}).set_index("field"))
    times = []
    if detail.time_spent_seconds:
        times.append(f"{format_duration(detail.time_spent_seconds)} logged")
    if detail.time_estimate_seconds:
        times.append(f"{format_duration(detail.time_estimate_seconds)} estimated")
    if detail.time_remaining_seconds:
        times.append(f"{format_duration(detail.time_remaining_seconds)} remaining")
    if times:
        st.caption(" · ".join(times))
    if detail.description:
        st.text(detail.description)

    left, right = st.columns(2)
    if left.button("Start Timer", type="primary", key=f"start_{detail.key}"):
        try:
            service.start_timer(detail.key, detail.summary)
            st.success(f"Timer started for {detail.key}")
        except TimesheetError as exc:
            st.error(str(exc))

    try:
        transitions = service.get_transitions(detail.key)
    except TimesheetError as exc:
        right.error(f"Failed to load transitions: {exc}")
        return
    if not transitions:
        right.caption("No transitions available")
        return
    names = {t.name: t.id for t in transitions}
    target = right.selectbox("Change status", list(names), key=f"transition_{detail.key}")
    if right.button("Apply", key=f"apply_{detail.key}"):
        try:
            service.transition_issue(detail.key, names[target])
            st.success("Status updated")
        except TimesheetError as exc:
            st.error(str(exc))


@register_page("Tickets")
def tickets_page():
    st.title("Tickets")
    st.caption("Open tickets assigned to you, per project.")
    service: TimesheetService | None = st.session_state.get(SERVICE_KEY)
    if service is None:
        st.warning("Initialize connection on Setup page first.")
        return

    if "projects" not in st.session_state or st.button("Reload projects"):
        try:
            st.session_state["projects"] = service.list_projects()
        except TimesheetError as exc:
            logger.error("Jira API error listing projects: %s", exc)
            st.error(str(exc))
            return
    projects = st.session_state["projects"]
    if not projects:
        st.info("No projects found.")
        return
    labels = {f"{p.key} — {p.name}": p.key for p in projects}
    project_key = labels[st.selectbox("Project", list(labels))]

    try:
        tickets = service.search_tickets(project_key)
    except TimesheetError as exc:
        logger.error("Jira API error searching %s: %s", project_key, exc)
        st.error(str(exc))
        return
    if not tickets:
        st.info("No tickets assigned to you in this project.")
        return

    query = st.text_input("Filter", "").strip().lower()
    rows = [
        {
            "key": t.key,
            "summary": t.summary,
            "status": t.status,
            "logged": format_duration(t.time_spent_seconds) if t.time_spent_seconds else "",
        }
        for t in tickets
        if not query or query in t.key.lower() or query in t.summary.lower() or query in t.status.lower()
    ]
    df = pd.DataFrame(rows, columns=["key", "summary", "status", "logged"])
    linked, cfg = add_ticket_link(df, st.session_state.get("jira_server", ""))
    st.dataframe(linked, hide_index=True, column_config=cfg)

    if df.empty:
        return
    selected = st.selectbox("Ticket", df["key"].tolist())
    if selected:
        _render_detail(service, selected)
