"""Timers page: running timers with pause/resume/discard/log actions, plus history."""

from __future__ import annotations

import logging

import streamlit as st

from timesheet_app.app import SERVICE_KEY, register_page
from timesheet_app.core.errors import TimesheetError
from timesheet_app.core.mappers import format_duration, history_to_dataframe
from timesheet_app.core.service import TimesheetService

logger = logging.getLogger(__name__)


def _run(action, success: str | None = None) -> None:
    try:
        result = action()
    except TimesheetError as exc:
        logger.error("Timer action failed: %s", exc)
        st.error(str(exc))
        return
    if success:
        st.toast(success.format(result=result))
    st.rerun()


@register_page("Timers")
def timers_page():
    st.title("Timers")
    service: TimesheetService | None = st.session_state.get(SERVICE_KEY)
    if service is None:
        st.warning("Initialize connection on Setup page first.")
        return

    timers = service.list_timers()
    if not timers:
        st.info("No active timers. Pick a project on the Tickets page and start a ticket.")
    for t in timers:
        cols = st.columns([2, 5, 2, 1, 1, 1])
        cols[0].markdown(f"**{t.issue_key}**")
        cols[1].write(t.summary)
        cols[2].markdown(f"`{format_duration(t.elapsed_seconds)}`" + (" (paused)" if t.paused else ""))
        if t.paused:
            if cols[3].button("▶", key=f"resume_{t.id}", help="Resume"):
                _run(lambda: service.resume_timer(t.id))
        elif cols[3].button("⏸", key=f"pause_{t.id}", help="Pause"):
            _run(lambda: service.pause_timer(t.id))
        if cols[4].button("■", key=f"discard_{t.id}", help="Stop (discard)"):
            _run(lambda: service.discard_timer(t.id), "Timer stopped (not logged)")
        if cols[5].button("✓", key=f"log_{t.id}", help="Stop & log to Jira"):
            _run(lambda: format_duration(service.stop_and_log(t.id)), "Logged {result} to Jira")

    if timers and st.button("Refresh"):
        st.rerun()

    st.markdown("---")
    st.subheader("History")
    history = history_to_dataframe(service.get_history())
    if history.empty:
        st.caption("No finished timers yet.")
        return
    st.dataframe(history, hide_index=True)
