"""Chart builders (Altair) for timesheet totals."""

from __future__ import annotations

import altair as alt
import pandas as pd

from timesheet_app.core.mappers import daily_totals


def daily_hours_chart(df: pd.DataFrame, start, end):
    """Bar chart of logged hours per day, with empty days filled in.

    Returns ``(chart, frame)``; ``chart`` is None when nothing was logged.
    """
    totals = daily_totals(df)
    if totals.empty:
        return None, totals
    totals = totals.assign(date=pd.to_datetime(totals["date"]))
    all_dates = pd.DataFrame({"date": pd.date_range(pd.Timestamp(start), pd.Timestamp(end), freq="D")})
    chart_df = all_dates.merge(totals, on="date", how="left")
    chart_df["time_spent_seconds"] = chart_df["time_spent_seconds"].fillna(0).astype(int)
    chart_df["hours"] = chart_df["hours"].fillna(0.0)

    chart = (
        alt.Chart(chart_df)
        .mark_bar()
        .encode(
            x=alt.X("date:T", title="Day", axis=alt.Axis(format="%a %d %b")),
            y=alt.Y("hours:Q", title="Hours logged"),
            tooltip=[
                alt.Tooltip("date:T", title="Day", format="%Y-%m-%d"),
                alt.Tooltip("hours:Q", title="Hours", format=".2f"),
            ],
        )
        .properties(height=260)
    )
    return chart, chart_df
