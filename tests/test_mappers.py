from datetime import UTC, datetime

import pandas as pd
import pytest

from timesheet_app.core.errors import UpstreamMalformedResponse
from timesheet_app.core.mappers import (
    daily_totals,
    format_duration,
    history_to_dataframe,
    issue_totals,
    map_issue_detail,
    map_ticket,
    map_transition,
    map_worklog_issue,
    timers_to_dataframe,
    timesheet_to_dataframe,
)
from timesheet_app.core.models import HistoryEntry, Timer, TimesheetEntry


def _raw_issue(**worklog_overrides):
    worklog = {
        "total": 1,
        "maxResults": 20,
        "worklogs": [
            {
                "author": {"accountId": "acc-me", "displayName": "Me"},
                "timeSpentSeconds": 3600,
                "started": "2024-01-15T09:00:00.000+0000",
            }
        ],
    }
    worklog.update(worklog_overrides)
    return {"key": "PROJ-1", "fields": {"summary": "Fix login", "worklog": worklog}}


def test_map_worklog_issue():
    issue = map_worklog_issue(_raw_issue())
    assert issue.key == "PROJ-1"
    assert issue.summary == "Fix login"
    assert issue.worklog.total == 1
    assert not issue.worklog.is_truncated
    assert issue.worklog.worklogs[0].author_account_id == "acc-me"
    assert issue.worklog.worklogs[0].time_spent_seconds == 3600


def test_map_worklog_issue_truncated_and_absent():
    assert map_worklog_issue(_raw_issue(total=40)).worklog.is_truncated
    raw = {"key": "PROJ-2", "fields": {"summary": "x"}}
    assert map_worklog_issue(raw).worklog is None


@pytest.mark.parametrize(
    "raw",
    [
        {"fields": {"summary": "no key"}},
        {"key": "P-1"},
        {"key": "P-1", "fields": {"summary": None}},
        _raw_issue(worklogs="nope"),
        _raw_issue(worklogs=[{"author": {}, "timeSpentSeconds": 1, "started": "2024-01-01"}]),
        _raw_issue(worklogs=[{"author": {"accountId": "a"}, "timeSpentSeconds": "1h", "started": "2024-01-01"}]),
        "not an object",
    ],
)
def test_malformed_worklog_payloads(raw):
    with pytest.raises(UpstreamMalformedResponse) as info:
        map_worklog_issue(raw, "search")
    assert info.value.stage == "search"


def test_map_ticket_and_transition():
    ticket = map_ticket(
        {
            "key": "PROJ-4",
            "fields": {"summary": "Tidy", "status": {"name": "In Progress"}, "timetracking": {"timeSpentSeconds": 7200}},
        }
    )
    assert (ticket.key, ticket.status, ticket.time_spent_seconds) == ("PROJ-4", "In Progress", 7200)
    no_tracking = map_ticket({"key": "PROJ-5", "fields": {"summary": "x", "status": {"name": "To Do"}}})
    assert no_tracking.time_spent_seconds == 0
    assert map_transition({"id": 31, "name": "Done"}).id == "31"


def test_map_issue_detail_flattens_description():
    raw = {
        "key": "PROJ-7",
        "fields": {
            "summary": "Detail",
            "status": {"name": "To Do"},
            "description": {
                "type": "doc",
                "content": [
                    {"type": "paragraph", "content": [{"type": "text", "text": "Hello"}]},
                    {"type": "paragraph", "content": [{"type": "text", "text": "World"}]},
                ],
            },
            "priority": {"name": "High"},
            "assignee": {"displayName": "Ada"},
            "reporter": None,
            "issuetype": {"name": "Bug"},
            "labels": ["backend"],
            "created": "2024-01-01T10:00:00.000+0000",
            "timetracking": {"timeSpentSeconds": 60, "originalEstimateSeconds": 3600, "remainingEstimateSeconds": 3540},
        },
    }
    detail = map_issue_detail(raw)
    assert detail.description == "Hello\nWorld"
    assert detail.priority == "High"
    assert detail.assignee == "Ada"
    assert detail.reporter == ""
    assert detail.updated == ""
    assert (detail.time_spent_seconds, detail.time_estimate_seconds, detail.time_remaining_seconds) == (60, 3600, 3540)


def test_format_duration():
    assert format_duration(0) == "00:00"
    assert format_duration(59) == "00:59"
    assert format_duration(61) == "01:01"
    assert format_duration(3600) == "1:00:00"
    assert format_duration(37230) == "10:20:30"


def _entries():
    return [
        TimesheetEntry("PROJ-1", "Fix login", "2024-01-15", 3600),
        TimesheetEntry("PROJ-2", "Docs", "2024-01-15", 1800),
        TimesheetEntry("PROJ-1", "Fix login", "2024-01-16", 5400),
    ]


def test_timesheet_dataframe_and_totals():
    df = timesheet_to_dataframe(_entries())
    assert list(df.columns) == ["key", "summary", "date", "time_spent_seconds", "hours"]
    assert df["hours"].tolist() == [1.0, 0.5, 1.5]

    daily = daily_totals(df)
    assert daily["date"].tolist() == ["2024-01-15", "2024-01-16"]
    assert daily["time_spent_seconds"].tolist() == [5400, 5400]

    per_issue = issue_totals(df)
    assert per_issue["key"].tolist() == ["PROJ-1", "PROJ-2"]
    assert per_issue["hours"].tolist() == [2.5, 0.5]


def test_empty_frames_keep_columns():
    df = timesheet_to_dataframe([])
    assert df.empty
    assert "hours" in df.columns
    assert daily_totals(df).empty
    assert issue_totals(df).empty


def test_timer_and_history_frames():
    now = datetime(2024, 1, 15, 9, tzinfo=UTC)
    timers = timers_to_dataframe([Timer(1, "PROJ-1", "x", now, 75, True, now)])
    assert timers.loc[0, "elapsed"] == "01:15"
    assert timers.loc[0, "state"] == "Paused"
    history = history_to_dataframe([HistoryEntry("PROJ-1", "x", 3661, True, now)])
    assert history.loc[0, "elapsed"] == "1:01:01"
    assert bool(history.loc[0, "logged"]) is True
    assert isinstance(history_to_dataframe([]), pd.DataFrame)
