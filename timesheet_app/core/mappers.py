"""Mapping raw Jira JSON into model instances, and models into DataFrames."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pandas as pd

from .adf import extract_adf_text
from .errors import UpstreamMalformedResponse
from .models import (
    HistoryEntry,
    JiraProject,
    JiraTicket,
    JiraTicketDetail,
    JiraTransition,
    Timer,
    TimesheetEntry,
    WorklogContainer,
    WorklogEntry,
    WorklogIssue,
)


def _require(obj: Any, name: str, stage: str, kind: type | tuple[type, ...] = str):
    if not isinstance(obj, dict):
        raise UpstreamMalformedResponse(stage, f"expected object holding {name!r}, got {type(obj).__name__}")
    value = obj.get(name)
    if not isinstance(value, kind) or isinstance(value, bool) and kind is not bool:
        raise UpstreamMalformedResponse(stage, f"missing or invalid {name!r}")
    return value


def _require_list(obj: Any, name: str, stage: str) -> list:
    return _require(obj, name, stage, list)


def _name_of(value: Any, attr: str = "name") -> str:
    if isinstance(value, dict):
        return str(value.get(attr) or "")
    return ""


def _seconds(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


# ------------------ Worklogs ------------------
def map_worklog_entry(raw: Any, stage: str = "worklog") -> WorklogEntry:
    author = _require(raw, "author", stage, dict)
    return WorklogEntry(
        author_account_id=_require(author, "accountId", stage),
        time_spent_seconds=_require(raw, "timeSpentSeconds", stage, int),
        started=_require(raw, "started", stage),
    )


def map_worklog_issue(raw: Any, stage: str = "search") -> WorklogIssue:
    key = _require(raw, "key", stage)
    fields = _require(raw, "fields", stage, dict)
    container_raw = fields.get("worklog")
    container = None
    if container_raw is not None:
        entries = _require_list(container_raw, "worklogs", stage)
        container = WorklogContainer(
            total=_require(container_raw, "total", stage, int),
            max_results=_require(container_raw, "maxResults", stage, int),
            worklogs=[map_worklog_entry(w, stage) for w in entries],
        )
    return WorklogIssue(key=key, summary=_require(fields, "summary", stage), worklog=container)


def map_worklog_page(payload: Any, stage: str = "worklog") -> list[WorklogEntry]:
    return [map_worklog_entry(w, stage) for w in _require_list(payload, "worklogs", stage)]


# ------------------ Tickets / Projects ------------------
def map_project(raw: Any, stage: str = "projects") -> JiraProject:
    return JiraProject(key=_require(raw, "key", stage), name=_require(raw, "name", stage))


def map_ticket(raw: Any, stage: str = "tickets") -> JiraTicket:
    fields = _require(raw, "fields", stage, dict)
    tracking = fields.get("timetracking") or {}
    return JiraTicket(
        key=_require(raw, "key", stage),
        summary=_require(fields, "summary", stage),
        status=_require(_require(fields, "status", stage, dict), "name", stage),
        time_spent_seconds=_seconds(tracking.get("timeSpentSeconds")),
    )


def map_transition(raw: Any, stage: str = "transitions") -> JiraTransition:
    return JiraTransition(id=str(_require(raw, "id", stage, (str, int))), name=_require(raw, "name", stage))


def map_issue_detail(raw: Any, stage: str = "issue") -> JiraTicketDetail:
    fields = _require(raw, "fields", stage, dict)
    tracking = fields.get("timetracking") or {}
    return JiraTicketDetail(
        key=_require(raw, "key", stage),
        summary=_require(fields, "summary", stage),
        status=_require(_require(fields, "status", stage, dict), "name", stage),
        description=extract_adf_text(fields.get("description")),
        priority=_name_of(fields.get("priority")),
        assignee=_name_of(fields.get("assignee"), "displayName"),
        reporter=_name_of(fields.get("reporter"), "displayName"),
        issue_type=_name_of(fields.get("issuetype")),
        labels=list(fields.get("labels") or []),
        created=fields.get("created") or "",
        updated=fields.get("updated") or "",
        time_spent_seconds=_seconds(tracking.get("timeSpentSeconds")),
        time_estimate_seconds=_seconds(tracking.get("originalEstimateSeconds")),
        time_remaining_seconds=_seconds(tracking.get("remainingEstimateSeconds")),
    )


# ------------------ DataFrames ------------------
TIMESHEET_COLUMNS = ["key", "summary", "date", "time_spent_seconds", "hours"]


def format_duration(total_seconds: int) -> str:
    """``H:MM:SS`` for an hour or more, ``MM:SS`` otherwise."""
    total_seconds = max(0, int(total_seconds))
    h, rem = divmod(total_seconds, 3600)
    m, s = divmod(rem, 60)
    return f"{h}:{m:02d}:{s:02d}" if h > 0 else f"{m:02d}:{s:02d}"


def timesheet_to_dataframe(entries: Iterable[TimesheetEntry]) -> pd.DataFrame:
    rows = [
        {
            "key": e.issue_key,
            "summary": e.summary,
            "date": e.date,
            "time_spent_seconds": e.time_spent_seconds,
        }
        for e in entries
    ]
    if not rows:
        return pd.DataFrame(columns=TIMESHEET_COLUMNS)
    df = pd.DataFrame(rows)
    df["hours"] = (df["time_spent_seconds"] / 3600.0).round(2)
    return df[TIMESHEET_COLUMNS]


def daily_totals(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=["date", "time_spent_seconds", "hours"])
    out = df.groupby("date", as_index=False)["time_spent_seconds"].sum().sort_values("date")
    out["hours"] = (out["time_spent_seconds"] / 3600.0).round(2)
    return out.reset_index(drop=True)


def issue_totals(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=["key", "summary", "time_spent_seconds", "hours"])
    out = (
        df.groupby(["key", "summary"], as_index=False)["time_spent_seconds"]
        .sum()
        .sort_values(["time_spent_seconds", "key"], ascending=[False, True])
    )
    out["hours"] = (out["time_spent_seconds"] / 3600.0).round(2)
    return out.reset_index(drop=True)


def timers_to_dataframe(timers: Iterable[Timer]) -> pd.DataFrame:
    rows = [
        {
            "id": t.id,
            "key": t.issue_key,
            "summary": t.summary,
            "elapsed": format_duration(t.elapsed_seconds),
            "state": "Paused" if t.paused else "Running",
            "started": t.started_at,
        }
        for t in timers
    ]
    return pd.DataFrame(rows, columns=["id", "key", "summary", "elapsed", "state", "started"])


def history_to_dataframe(history: Iterable[HistoryEntry]) -> pd.DataFrame:
    rows = [
        {
            "key": h.issue_key,
            "summary": h.summary,
            "elapsed": format_duration(h.elapsed_seconds),
            "logged": h.logged,
            "stopped": h.stopped_at,
        }
        for h in history
    ]
    return pd.DataFrame(rows, columns=["key", "summary", "elapsed", "logged", "stopped"])
