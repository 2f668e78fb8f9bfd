"""Timesheet page: reconcile the current user's Jira worklogs over a date range."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

import pytz
import streamlit as st

from timesheet_app.app import SERVICE_KEY, register_page
from timesheet_app.core.config import DEFAULT_TIMESHEET_DAYS, TIMEZONE
from timesheet_app.core.errors import TimesheetError
from timesheet_app.core.mappers import format_duration, issue_totals, timesheet_to_dataframe
from timesheet_app.core.service import TimesheetService
from timesheet_app.visual.charts import daily_hours_chart
from timesheet_app.visual.progress import ProgressReporter
from timesheet_app.visual.tables import prepare_timesheet_table

logger = logging.getLogger(__name__)

TZ = pytz.timezone(TIMEZONE)


@register_page("Timesheet")
def timesheet_page():
    st.title("Timesheet")
    st.caption("Worklogs you logged in Jira, per day.")
    service: TimesheetService | None = st.session_state.get(SERVICE_KEY)
    if service is None:
        st.warning("Initialize connection on Setup page first.")
        return

    today = datetime.now(TZ).date()
    left, right = st.columns(2)
    start = left.date_input("From", value=today - timedelta(days=DEFAULT_TIMESHEET_DAYS - 1))
    end = right.date_input("To", value=today)

    if st.button("Fetch Timesheet", type="primary"):
        reporter = ProgressReporter(f"Fetching worklogs {start:%Y-%m-%d} .. {end:%Y-%m-%d}")
        try:
            entries = service.get_my_worklogs(
                start.strftime("%Y-%m-%d"),
                end.strftime("%Y-%m-%d"),
                progress=reporter.callback,
            )
        except TimesheetError as exc:
            logger.error("Timesheet reconciliation failed: %s", exc)
            reporter.error(f"Failed to fetch worklogs: {exc}")
            return
        st.session_state["timesheet_df"] = timesheet_to_dataframe(entries)
        st.session_state["timesheet_range"] = (start, end)
        reporter.complete(f"Found {len(entries)} worklog(s).")

    df = st.session_state.get("timesheet_df")
    if df is None:
        st.info("No timesheet fetched yet.")
        return
    if df.empty:
        st.info("No worklogs in this range.")
        return
    range_start, range_end = st.session_state["timesheet_range"]

    total = int(df["time_spent_seconds"].sum())
    st.metric("Total logged", format_duration(total))
    chart, _ = daily_hours_chart(df, range_start, range_end)
    if chart is not None:
        st.altair_chart(chart, use_container_width=True)

    prepared, display_cols, cfg = prepare_timesheet_table(df, st.session_state.get("jira_server", ""))
    st.dataframe(prepared[display_cols], hide_index=True, column_config=cfg)

    st.subheader("Per ticket")
    st.dataframe(issue_totals(df), hide_index=True)

    csv = df.to_csv(index=False).encode("utf-8")
    st.download_button(
        "Download Timesheet CSV",
        data=csv,
        file_name=f"timesheet_{range_start:%Y%m%d}_{range_end:%Y%m%d}.csv",
        mime="text/csv",
    )
